"""
Wiring of the stores, cache, lock, catalogue, pipeline and scheduler.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx
import yaml

from .catalog import CatalogService, load_fallback
from .config import AppConfig
from .errors import ServiceUnavailableError, StoreError
from .pipeline import AggregationService
from .scheduler import RefreshScheduler
from .store.cache import CacheStore
from .store.kv import Clock, KeyValueStore, build_store
from .store.lock import KVRefreshLock, REFRESH_LOCK_KEY
from .utils.logging import get_logger, log_event

logger = get_logger("services")


@dataclass
class Services:
    """Everything the API and the CLI need, built once per process."""

    cfg: AppConfig
    news_store: KeyValueStore
    content_store: KeyValueStore
    config_store: KeyValueStore
    cache: CacheStore
    lock: KVRefreshLock
    catalog: CatalogService
    aggregator: AggregationService
    scheduler: RefreshScheduler


def build_services(
    cfg: AppConfig,
    clock: Clock | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Services:
    """Build the service graph.

    Args:
        cfg: Application configuration
        clock: Optional shared time source (epoch seconds)
        transport: Optional httpx transport for feed fetching

    Raises:
        ServiceUnavailableError: If a store or the catalogue cannot be initialised
    """
    try:
        news_store = build_store(cfg.cache, "news", clock)
        content_store = build_store(cfg.cache, "content", clock)
        config_store = build_store(cfg.cache, "config", clock)
    except StoreError as exc:
        raise ServiceUnavailableError(f"Storage unavailable: {exc}") from exc

    try:
        fallback = load_fallback(cfg.catalog.path)
    except (OSError, yaml.YAMLError) as exc:
        raise ServiceUnavailableError(f"Catalogue unavailable: {exc}") from exc

    cache = CacheStore(news_store, content_store, cfg.cache, clock)
    lock = KVRefreshLock(news_store, REFRESH_LOCK_KEY, cfg.cache.lock_ttl_seconds, clock)
    catalog = CatalogService(config_store, cfg.catalog.ttl_seconds, clock, fallback)
    aggregator = AggregationService(catalog, cfg, transport=transport)
    scheduler = RefreshScheduler(cache, lock, aggregator, cfg.scheduler, clock)

    log_event(
        logger,
        "Services ready",
        event="services_ready",
        backend=cfg.cache.backend,
        catalog=cfg.catalog.path or "built-in",
    )
    return Services(
        cfg=cfg,
        news_store=news_store,
        content_store=content_store,
        config_store=config_store,
        cache=cache,
        lock=lock,
        catalog=catalog,
        aggregator=aggregator,
        scheduler=scheduler,
    )
