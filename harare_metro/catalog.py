"""
Source and keyword catalogue.

The catalogue (feed sources, categories, category keywords, priority
keywords, trusted image domains and site settings) is read from
``config:<name>`` keys in the config store and falls back to the built-in
defaults, optionally overridden by a YAML file. Reads are memoised in a
TTLCache with an injected clock so tests can control expiry.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
import logging
import time
from typing import Any

import yaml

from .core.classifier import ArticleClassifier
from .core.types import CATCH_ALL_CATEGORY, SourceConfig
from .defaults import DEFAULT_CATALOG
from .errors import StoreError
from .store.kv import Clock, KeyValueStore
from .utils.logging import get_logger, log_event

logger = get_logger("catalog")

CATALOG_KEYS = (
    "rss_sources",
    "categories",
    "category_keywords",
    "priority_keywords",
    "trusted_image_domains",
    "site",
)

_MISSING = object()


def config_key(name: str) -> str:
    return f"config:{name}"


class TTLCache:
    """Small memo with a fixed TTL per entry, measured by an injected clock."""

    def __init__(self, ttl_seconds: float, clock: Clock | None = None):
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.time
        self._entries: dict[str, tuple[Any, float]] = {}

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return default
        return value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (value, self._clock() + self.ttl_seconds)

    def invalidate(self, key: str | None = None) -> None:
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)


@dataclass
class CatalogSnapshot:
    """Everything one aggregation run needs from the catalogue."""

    sources: list[SourceConfig] = field(default_factory=list)
    categories: list[dict[str, Any]] = field(default_factory=list)
    category_keywords: dict[str, list[str]] = field(default_factory=dict)
    priority_keywords: list[str] = field(default_factory=list)
    trusted_image_domains: list[str] = field(default_factory=list)
    site: dict[str, Any] = field(default_factory=dict)

    def classifier(self) -> ArticleClassifier:
        """Build a classifier over the keyword map; its order decides ties."""
        ordered = {
            category: list(keywords)
            for category, keywords in self.category_keywords.items()
            if category != CATCH_ALL_CATEGORY
        }
        return ArticleClassifier(ordered, self.priority_keywords, catch_all=CATCH_ALL_CATEGORY)


def load_fallback(path: str | None) -> dict[str, Any]:
    """Return the built-in catalogue, with top-level keys replaced from a YAML file."""
    fallback = copy.deepcopy(DEFAULT_CATALOG)
    if not path:
        return fallback
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    for key, value in raw.items():
        if key in CATALOG_KEYS:
            fallback[key] = value
    return fallback


class CatalogService:
    """Reads catalogue entries from the config store with fallback defaults.

    Args:
        store: Config store holding ``config:<name>`` keys
        ttl_seconds: How long each read is memoised
        clock: Time source for the memo
        fallback: Values used when the store has none (defaults to the built-in catalogue)
    """

    def __init__(
        self,
        store: KeyValueStore,
        ttl_seconds: float = 300,
        clock: Clock | None = None,
        fallback: dict[str, Any] | None = None,
    ):
        self.store = store
        self.fallback = fallback if fallback is not None else copy.deepcopy(DEFAULT_CATALOG)
        self.memo = TTLCache(ttl_seconds, clock)

    def _get(self, name: str) -> Any:
        cached = self.memo.get(name, _MISSING)
        if cached is not _MISSING:
            return cached
        try:
            value = self.store.get(config_key(name), as_json=True)
        except StoreError as exc:
            log_event(
                logger,
                "Config read failed, using fallback",
                level=logging.WARNING,
                event="config_read_failed",
                key=config_key(name),
                error=str(exc),
            )
            value = None
        if value is None:
            value = copy.deepcopy(self.fallback[name])
        self.memo.set(name, value)
        return value

    def get_sources(self) -> list[SourceConfig]:
        return [SourceConfig.from_dict(item) for item in self._get("rss_sources")]

    def get_categories(self) -> list[dict[str, Any]]:
        return self._get("categories")

    def get_category_keywords(self) -> dict[str, list[str]]:
        return self._get("category_keywords")

    def get_priority_keywords(self) -> list[str]:
        return self._get("priority_keywords")

    def get_trusted_image_domains(self) -> list[str]:
        return self._get("trusted_image_domains")

    def get_site_config(self) -> dict[str, Any]:
        return self._get("site")

    def snapshot(self) -> CatalogSnapshot:
        return CatalogSnapshot(
            sources=self.get_sources(),
            categories=self.get_categories(),
            category_keywords=self.get_category_keywords(),
            priority_keywords=self.get_priority_keywords(),
            trusted_image_domains=self.get_trusted_image_domains(),
            site=self.get_site_config(),
        )

    def feed_metadata(self) -> dict[str, Any]:
        """Summarise the configured sources and categories."""
        sources = self.get_sources()
        return {
            "totalSources": len(sources),
            "enabledSources": sum(1 for s in sources if s.enabled),
            "categories": [c.get("id") for c in self.get_categories()],
            "sources": [
                {"id": s.id, "name": s.name, "category": s.category, "enabled": s.enabled}
                for s in sources
            ],
        }

    def initialize_from_fallback(self) -> dict[str, Any]:
        """Write fallback values for keys the store does not have yet."""
        initialized: list[str] = []
        for name in CATALOG_KEYS:
            key = config_key(name)
            if self.store.get(key) is None:
                self.store.put(key, self.fallback[name])
                initialized.append(key)
        self.memo.invalidate()
        log_event(logger, "Config initialised", event="config_init", initialized=initialized)
        return {
            "success": True,
            "message": f"Initialized {len(initialized)} configuration items",
            "initialized": len(initialized),
            "keys": initialized,
        }

    def force_refresh_from_fallback(self) -> dict[str, Any]:
        """Overwrite every catalogue key with the fallback and drop the memo."""
        for name in CATALOG_KEYS:
            self.store.put(config_key(name), self.fallback[name])
        self.memo.invalidate()
        log_event(logger, "Config refreshed from fallback", event="config_refresh", refreshed=len(CATALOG_KEYS))
        return {
            "success": True,
            "message": "All configurations refreshed from fallback",
            "refreshed": len(CATALOG_KEYS),
        }

    def invalidate(self) -> None:
        self.memo.invalidate()
