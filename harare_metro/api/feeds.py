"""Public read endpoints: health, feeds and catalogue."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, HTTPException, Query, Response

from ..core.query import ALL_TIMEFRAME, FeedQuery, apply_query
from ..core.types import CATCH_ALL_CATEGORY, Article, utc_now
from ..errors import StoreError
from ..utils.logging import get_logger, log_event
from ..services import Services
from .deps import ServicesDep

logger = get_logger("api.feeds")

router = APIRouter(prefix="/api", tags=["feeds"])


def clamp_limit(limit: int | None, default: int, lower: int, upper: int) -> int:
    if limit is None:
        return default
    return max(lower, min(limit, upper))


def category_filter(category: str | None) -> str | None:
    """Map the request category to a filter; blank or "all" means no filter."""
    category = (category or "").strip()
    if not category or category.lower() == CATCH_ALL_CATEGORY:
        return None
    return category


@router.get("/health")
async def health(services: ServicesDep) -> dict[str, Any]:
    meta = services.cache.get_metadata()
    return {
        "status": "ok" if meta.status != "error" else "degraded",
        "cache": meta.status,
        "articles": meta.article_count,
        "timestamp": utc_now().isoformat(),
    }


@router.get("/feeds")
async def get_feeds(
    response: Response,
    services: ServicesDep,
    category: Annotated[str | None, Query(description='Category id; omit or "all" for every category')] = None,
    search: Annotated[str | None, Query(description="Free text search")] = None,
    timeframe: Annotated[str, Query(description="1h, 6h, 24h, 7d or all")] = ALL_TIMEFRAME,
    sort: Annotated[str, Query(description="newest, oldest, source, category or title")] = "newest",
    limit: Annotated[int | None, Query(description="Page size")] = None,
    offset: Annotated[int, Query(ge=0, description="Pagination offset")] = 0,
) -> dict[str, Any]:
    """Serve the cached snapshot, filtered and paged.

    An empty cache answers 200 with ``status: "initializing"`` and a
    Retry-After header, and starts a background initial load.
    """
    api_cfg = services.cfg.api
    query = FeedQuery(
        category=category_filter(category),
        search=search,
        timeframe=timeframe,
        sort=sort,
        limit=clamp_limit(limit, api_cfg.default_limit, api_cfg.min_limit, api_cfg.max_limit),
        offset=offset,
    )

    try:
        snapshot = services.cache.get_snapshot()
    except StoreError as exc:
        log_event(logger, "Snapshot read failed", level=logging.WARNING, event="cache_read_failed", error=str(exc))
        snapshot = None

    if snapshot is None:
        started = services.scheduler.trigger_initial_load()
        response.headers["Retry-After"] = str(api_cfg.retry_after_seconds)
        return {
            "success": True,
            "articles": [],
            "total": 0,
            "totalCached": 0,
            "category": query.category,
            "searchQuery": query.search or "",
            "timeframe": query.timeframe,
            "sortBy": query.sort,
            "limit": query.limit,
            "hasMore": False,
            "status": "initializing",
            "loadStarted": started,
            "message": "System is loading articles. Please check back in a moment.",
            "retryAfter": api_cfg.retry_after_seconds,
            "timestamp": utc_now().isoformat(),
        }

    articles, total, has_more = _run_query(services, snapshot.articles, query)
    return {
        "success": True,
        "articles": [a.to_dict() for a in articles],
        "total": total,
        "totalCached": snapshot.article_count,
        "category": query.category,
        "searchQuery": query.search or "",
        "timeframe": query.timeframe,
        "sortBy": query.sort,
        "limit": query.limit,
        "offset": query.offset,
        "hasMore": has_more,
        "status": "ready",
        "lastRefresh": snapshot.last_refresh.isoformat() if snapshot.last_refresh else None,
        "filters": query.filters(),
        "timestamp": utc_now().isoformat(),
    }


def _run_query(services: Services, articles: list[Article], query: FeedQuery) -> tuple[list[Article], int, bool]:
    """Apply the query, going through the search cache for plain text searches."""
    search = (query.search or "").strip()
    cacheable = bool(search) and query.timeframe == ALL_TIMEFRAME and query.sort == "newest" and query.offset == 0
    cache = services.cache

    if cacheable:
        try:
            hit = cache.get_cached_search(search, query.category, query.limit)
        except StoreError:
            hit = None
        if hit is not None:
            cached, total = hit
            return cached, total, total > len(cached)

    result = apply_query(articles, query, now=cache.now())
    if cacheable:
        try:
            cache.set_cached_search(search, query.category, query.limit, result.articles, result.total)
        except StoreError as exc:
            log_event(logger, "Search cache write failed", level=logging.WARNING, event="search_cache_failed", error=str(exc))
    return result.articles, result.total, result.has_more


@router.get("/config/{section}")
async def get_config_section(section: str, services: ServicesDep) -> dict[str, Any]:
    catalog = services.catalog
    if section == "sources":
        return {"success": True, "sources": [s.to_dict() for s in catalog.get_sources()]}
    if section == "categories":
        return {"success": True, "categories": catalog.get_categories()}
    if section == "keywords":
        return {
            "success": True,
            "categoryKeywords": catalog.get_category_keywords(),
            "priorityKeywords": catalog.get_priority_keywords(),
        }
    if section == "all":
        snapshot = catalog.snapshot()
        return {
            "success": True,
            "config": {
                "sources": [s.to_dict() for s in snapshot.sources],
                "categories": snapshot.categories,
                "categoryKeywords": snapshot.category_keywords,
                "priorityKeywords": snapshot.priority_keywords,
                "trustedImageDomains": snapshot.trusted_image_domains,
                "site": snapshot.site,
            },
            "metadata": catalog.feed_metadata(),
        }
    raise HTTPException(status_code=404, detail=f"Unknown config section: {section}")
