"""
Per-source feed fetching.

Each source is fetched with a single GET under a hard timeout. Every way a
source can fail (timeout, transport error, non-2xx status, short body,
unparseable document) is reported as a SourceFailed value so one bad
source never affects its siblings.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from ..config import FetchConfig
from ..core.types import SourceConfig, SourceFailed, SourceOk, SourceResult
from ..errors import FeedParseError
from ..utils.logging import get_logger, log_event
from .parser import parse_feed

logger = get_logger("fetcher")


def build_headers(cfg: FetchConfig) -> dict[str, str]:
    return {
        "User-Agent": cfg.user_agent,
        "Accept": cfg.accept,
        "Cache-Control": "no-cache",
    }


def build_client(cfg: FetchConfig, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    """Create the shared AsyncClient used for one aggregation run."""
    return httpx.AsyncClient(
        headers=build_headers(cfg),
        timeout=cfg.timeout_seconds,
        follow_redirects=True,
        trust_env=cfg.trust_env,
        transport=transport,
    )


async def fetch_source(client: httpx.AsyncClient, source: SourceConfig, cfg: FetchConfig) -> SourceResult:
    """Fetch and parse one source.

    Args:
        client: Shared HTTP client
        source: The source to fetch
        cfg: Fetch settings (timeout, headers, minimum body length)

    Returns:
        SourceOk with the parsed items, or SourceFailed with a reason.
        This coroutine does not raise for fetch or parse problems.
    """
    log_event(logger, "Fetch start", level=logging.DEBUG, event="source_fetch_start", source=source.name, url=source.url)

    try:
        resp = await asyncio.wait_for(
            client.get(source.url, headers=build_headers(cfg)),
            timeout=cfg.timeout_seconds,
        )
    except asyncio.TimeoutError:
        return _failed(source, f"Timeout after {cfg.timeout_seconds:g}s")
    except httpx.TimeoutException as exc:
        return _failed(source, f"TimeoutError: {exc}")
    except httpx.HTTPError as exc:
        return _failed(source, f"{type(exc).__name__}: {exc}")

    if not resp.is_success:
        return _failed(source, f"HTTP {resp.status_code}: {resp.reason_phrase}", resp.status_code)

    body = resp.content
    if len(body.strip()) < cfg.min_body_chars:
        return _failed(source, "Empty or invalid RSS content", resp.status_code)

    try:
        items = parse_feed(body, min_chars=cfg.min_body_chars)
    except FeedParseError as exc:
        return _failed(source, str(exc), resp.status_code)

    log_event(
        logger,
        "Fetch ok",
        level=logging.DEBUG,
        event="source_fetch_ok",
        source=source.name,
        status_code=resp.status_code,
        items=len(items),
    )
    return SourceOk(source=source, items=items, status_code=resp.status_code)


def _failed(source: SourceConfig, reason: str, status_code: int | None = None) -> SourceFailed:
    log_event(
        logger,
        "Fetch failed",
        level=logging.WARNING,
        event="source_fetch_failed",
        source=source.name,
        url=source.url,
        status_code=status_code,
        error=reason,
    )
    return SourceFailed(source=source, reason=reason, status_code=status_code)
