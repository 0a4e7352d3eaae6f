"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- FetchConfig: HTTP fetching settings for feed sources
- AggregationConfig: Per-source and global article limits
- CacheConfig: Key-value backend and TTL settings
- SchedulerConfig: Refresh interval and periodic trigger settings
- CatalogConfig: Source/keyword catalogue location and memo TTL
- ApiConfig: HTTP surface limits and admin key
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import os
from typing import Any

import yaml


@dataclass
class FetchConfig:
    """Configuration for fetching feed documents.

    Attributes:
        timeout_seconds: Per-source timeout covering the whole request
        user_agent: HTTP User-Agent header string
        accept: HTTP Accept header string
        trust_env: Whether to respect system proxy settings
        min_body_chars: Bodies shorter than this are treated as failed fetches
    """

    timeout_seconds: float = 15.0
    user_agent: str = (
        "Harare Metro News Aggregator/2.0 (Zimbabwe; +https://harare-metro.nyuchi.dev)"
    )
    accept: str = "application/rss+xml, application/xml, text/xml, */*"
    trust_env: bool = True
    min_body_chars: int = 100


@dataclass
class AggregationConfig:
    """Configuration for the aggregation pipeline.

    Attributes:
        items_per_source: Maximum feed items processed per source
        max_articles: Maximum articles kept after dedup and sort
        excerpt_chars: Length bound of the list-view description
        min_title_chars: Titles shorter than this are rejected
        image_proxy_path: Path of the image proxy used for optimized URLs
    """

    items_per_source: int = 100
    max_articles: int = 20000
    excerpt_chars: int = 300
    min_title_chars: int = 10
    image_proxy_path: str = "/api/image-proxy"


@dataclass
class CacheConfig:
    """Configuration for the key-value backed cache.

    Attributes:
        backend: "memory" for an in-process store, "file" for a directory store
        directory: Root directory for the file backend
        articles_ttl_seconds: TTL of the snapshot and its metadata (two weeks)
        search_ttl_seconds: TTL of cached search results
        lock_ttl_seconds: TTL of the refresh lock
        max_articles: Hard cap on the stored snapshot size
    """

    backend: str = "memory"
    directory: str = ".harare_metro"
    articles_ttl_seconds: int = 14 * 24 * 60 * 60
    search_ttl_seconds: int = 60 * 60
    lock_ttl_seconds: int = 30 * 60
    max_articles: int = 20000


@dataclass
class SchedulerConfig:
    """Configuration for refresh scheduling.

    Attributes:
        interval_seconds: Minimum time between scheduled refreshes
        tick_seconds: Polling period of the periodic trigger loop
        enabled: Whether the API process runs the periodic trigger itself
        health_factor: Status reports healthy while the last run is within
                       health_factor * interval_seconds
    """

    interval_seconds: int = 60 * 60
    tick_seconds: int = 60
    enabled: bool = False
    health_factor: int = 2


@dataclass
class CatalogConfig:
    """Configuration for the source/keyword catalogue.

    Attributes:
        path: Optional YAML file overriding the built-in catalogue
        ttl_seconds: How long catalogue reads are memoised in process
    """

    path: str | None = None
    ttl_seconds: int = 5 * 60


@dataclass
class ApiConfig:
    """Configuration for the HTTP API.

    Attributes:
        default_limit: Page size when the client sends none
        min_limit: Smallest accepted page size
        max_limit: Largest accepted page size
        retry_after_seconds: Retry-After value while the cache initializes
        admin_key: Optional key required in X-Admin-Key for admin routes
        admin_key_env: Environment variable consulted when admin_key is unset
        host: Bind host for `harare-metro serve`
        port: Bind port for `harare-metro serve`
    """

    default_limit: int = 100
    min_limit: int = 1
    max_limit: int = 1000
    retry_after_seconds: int = 30
    admin_key: str | None = None
    admin_key_env: str = "HARARE_METRO_ADMIN_KEY"
    host: str = "127.0.0.1"
    port: int = 8787


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the main log file
        directory: Directory for the log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    filename: str = "harare_metro.jsonl"
    directory: str = "logs"


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    fetch: FetchConfig = field(default_factory=FetchConfig)
    aggregation: AggregationConfig = field(default_factory=AggregationConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return _merge_config(AppConfig(), raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig.

    Unknown sections are ignored; unknown keys inside a known section raise
    TypeError when the section dataclass is rebuilt.
    """
    data = asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update(value)
        else:
            data[key] = value
    return _fromdict(data)


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    return AppConfig(
        fetch=FetchConfig(**data["fetch"]),
        aggregation=AggregationConfig(**data["aggregation"]),
        cache=CacheConfig(**data["cache"]),
        scheduler=SchedulerConfig(**data["scheduler"]),
        catalog=CatalogConfig(**data["catalog"]),
        api=ApiConfig(**data["api"]),
        logging=LoggingConfig(**data["logging"]),
    )


def get_admin_key(cfg: ApiConfig) -> str | None:
    """Get admin key from inline config or environment variable."""
    if cfg.admin_key:
        return cfg.admin_key
    return os.getenv(cfg.admin_key_env) or None
