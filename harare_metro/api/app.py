"""
FastAPI application factory.

The service graph is built when the app is created so every request sees
the same cache, lock and scheduler. If it cannot be built, the app still
starts and answers every API call with 503.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .. import __version__
from ..config import AppConfig
from ..errors import ServiceUnavailableError
from ..services import Services, build_services
from ..utils.logging import get_logger, log_event
from . import admin, feeds

logger = get_logger("api")


def create_app(cfg: AppConfig | None = None, services: Services | None = None) -> FastAPI:
    """Create the API app.

    Args:
        cfg: Application configuration (defaults when omitted)
        services: Pre-built services; built from cfg when omitted
    """
    cfg = cfg or AppConfig()
    services_error: str | None = None
    if services is None:
        try:
            services = build_services(cfg)
        except ServiceUnavailableError as exc:
            services_error = str(exc)
            log_event(logger, "Service initialisation failed", level=logging.ERROR, event="services_failed", error=services_error)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        stop = asyncio.Event()
        task: asyncio.Task | None = None
        if services is not None and cfg.scheduler.enabled:
            task = asyncio.create_task(services.scheduler.run_forever(stop))
        try:
            yield
        finally:
            stop.set()
            if task is not None:
                await task

    app = FastAPI(title="Harare Metro", version=__version__, lifespan=lifespan)
    app.state.services = services
    app.state.services_error = services_error
    app.include_router(feeds.router)
    app.include_router(admin.router)
    return app
