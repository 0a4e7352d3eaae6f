"""
Article snapshot cache over the key-value stores.

The snapshot is written data first, then ``last_refresh``, then the
article count, so the metadata never claims articles the data does not
hold. Search results live in a separate short-lived namespace and are
safe to lose.
"""

from __future__ import annotations

from datetime import datetime, timezone
import hashlib
import json
import logging
import time
from typing import Any, Sequence

from ..config import CacheConfig
from ..core.dedup import sort_by_recency
from ..core.types import AggregationReport, Article, CacheMetadata, Snapshot, parse_timestamp
from ..errors import StoreError
from ..utils.logging import get_logger, log_event
from .kv import Clock, KeyValueStore
from .lock import REFRESH_LOCK_KEY, SCHEDULED_LOCK_KEY

logger = get_logger("cache")

ARTICLES_KEY = "cache:all_articles"
LAST_REFRESH_KEY = "cache:last_refresh"
ARTICLE_COUNT_KEY = "cache:article_count"
LAST_SCHEDULED_RUN_KEY = "cache:last_scheduled_run"
RSS_METADATA_KEY = "cache:rss_metadata"
FEED_STATUS_KEY = "cache:feed_status"
SEARCH_PREFIX = "search:"

CORE_KEYS = (
    ARTICLES_KEY,
    LAST_REFRESH_KEY,
    ARTICLE_COUNT_KEY,
    REFRESH_LOCK_KEY,
    SCHEDULED_LOCK_KEY,
    LAST_SCHEDULED_RUN_KEY,
    RSS_METADATA_KEY,
    FEED_STATUS_KEY,
)


def search_key(query: str, category: str | None, limit: int) -> str:
    """Hash (query, category, limit) into a search cache key."""
    raw = json.dumps([query.strip().lower(), (category or "").lower(), int(limit)])
    return SEARCH_PREFIX + hashlib.sha256(raw.encode("utf-8")).hexdigest()


class CacheStore:
    """Snapshot, metadata and search-result cache.

    Args:
        news_store: Holds the snapshot, its metadata and the locks
        content_store: Holds cached search results
        cfg: TTLs and the snapshot size cap
        clock: Time source (epoch seconds)
    """

    def __init__(
        self,
        news_store: KeyValueStore,
        content_store: KeyValueStore,
        cfg: CacheConfig | None = None,
        clock: Clock | None = None,
    ):
        self.news_store = news_store
        self.content_store = content_store
        self.cfg = cfg or CacheConfig()
        self._clock = clock or time.time

    def now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), timezone.utc)

    def get_snapshot(self) -> Snapshot | None:
        """Return the stored snapshot, or None when the cache is empty."""
        raw = self.news_store.get(ARTICLES_KEY, as_json=True)
        if not raw:
            return None
        articles = [Article.from_dict(item) for item in raw]
        last_refresh = self._get_time(LAST_REFRESH_KEY)
        return Snapshot(articles=articles, last_refresh=last_refresh, article_count=len(articles))

    def put_snapshot(self, articles: Sequence[Article]) -> int:
        """Sort by recency, truncate, and store the snapshot with its metadata.

        Returns:
            Number of articles stored
        """
        ordered = sort_by_recency(articles)[: self.cfg.max_articles]
        ttl = self.cfg.articles_ttl_seconds
        self.news_store.put(ARTICLES_KEY, [a.to_dict() for a in ordered], ttl)
        self.news_store.put(LAST_REFRESH_KEY, self.now().isoformat(), ttl)
        self.news_store.put(ARTICLE_COUNT_KEY, str(len(ordered)), ttl)
        log_event(logger, "Snapshot stored", event="cache_write", articles=len(ordered))
        return len(ordered)

    def get_metadata(self) -> CacheMetadata:
        """Return refresh metadata. Store failures are reported as status "error"."""
        try:
            last_refresh = self._get_time(LAST_REFRESH_KEY)
            count = int(self.news_store.get(ARTICLE_COUNT_KEY) or 0)
        except (StoreError, ValueError) as exc:
            log_event(logger, "Metadata read failed", level=logging.WARNING, event="cache_read_failed", error=str(exc))
            return CacheMetadata(last_refresh=None, article_count=0, status="error")
        return CacheMetadata(
            last_refresh=last_refresh,
            article_count=count,
            status="active" if count > 0 else "empty",
        )

    def get_last_scheduled_run(self) -> datetime | None:
        return self._get_time(LAST_SCHEDULED_RUN_KEY)

    def set_last_scheduled_run(self, when: datetime | None = None) -> None:
        when = when or self.now()
        self.news_store.put(LAST_SCHEDULED_RUN_KEY, when.isoformat(), self.cfg.articles_ttl_seconds)

    def put_feed_status(self, report: AggregationReport) -> None:
        """Store the per-source outcome of the last aggregation run."""
        status = {
            "timestamp": self.now().isoformat(),
            "succeeded": [
                {"source": s.source, "items": s.items, "articles": s.articles} for s in report.succeeded
            ],
            "failed": dict(report.failed),
            "durationSeconds": round(report.duration_seconds, 3),
        }
        self.news_store.put(FEED_STATUS_KEY, status, self.cfg.articles_ttl_seconds)

    def get_feed_status(self) -> dict[str, Any] | None:
        return self.news_store.get(FEED_STATUS_KEY, as_json=True)

    def get_cached_search(self, query: str, category: str | None, limit: int) -> tuple[list[Article], int] | None:
        """Return (articles, total matches) for a cached search, or None on a miss."""
        raw = self.content_store.get(search_key(query, category, limit), as_json=True)
        if not isinstance(raw, dict):
            return None
        articles = [Article.from_dict(item) for item in raw.get("articles", [])]
        return articles, int(raw.get("total", len(articles)))

    def set_cached_search(
        self,
        query: str,
        category: str | None,
        limit: int,
        results: Sequence[Article],
        total: int | None = None,
    ) -> None:
        self.content_store.put(
            search_key(query, category, limit),
            {"total": len(results) if total is None else total, "articles": [a.to_dict() for a in results]},
            self.cfg.search_ttl_seconds,
        )

    def clear_all(self) -> list[str]:
        """Delete the snapshot, core metadata keys and cached searches.

        Returns:
            The keys that were cleared
        """
        cleared = list(CORE_KEYS)
        for key in CORE_KEYS:
            self.news_store.delete(key)
        for key in self.content_store.list_keys(SEARCH_PREFIX):
            self.content_store.delete(key)
            cleared.append(key)
        log_event(logger, "Cache cleared", event="cache_cleared", keys=len(cleared))
        return cleared

    def stats(self) -> dict[str, Any]:
        meta = self.get_metadata()
        last_run = self.get_last_scheduled_run()
        return {
            "articles": meta.article_count,
            "status": meta.status,
            "lastRefresh": meta.last_refresh.isoformat() if meta.last_refresh else None,
            "lastScheduledRun": last_run.isoformat() if last_run else None,
            "searchEntries": len(self.content_store.list_keys(SEARCH_PREFIX)),
        }

    def _get_time(self, key: str) -> datetime | None:
        value = self.news_store.get(key)
        if not value:
            return None
        return parse_timestamp(value)
