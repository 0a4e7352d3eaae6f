"""Request dependencies shared by the API routers."""

from __future__ import annotations

import hmac
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from ..config import get_admin_key
from ..services import Services


def get_services(request: Request) -> Services:
    """Return the service graph, or answer 503 when it failed to initialise."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        detail = getattr(request.app.state, "services_error", None) or "Services unavailable"
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)
    return services


ServicesDep = Annotated[Services, Depends(get_services)]


def require_admin(
    services: ServicesDep,
    x_admin_key: Annotated[str | None, Header()] = None,
) -> None:
    """Check X-Admin-Key when an admin key is configured."""
    expected = get_admin_key(services.cfg.api)
    if not expected:
        return
    if not x_admin_key or not hmac.compare_digest(x_admin_key, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin key")
