"""
In-memory filtering, sorting and paging of a snapshot for the feeds endpoint.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Sequence

from .types import Article, utc_now

TIMEFRAMES: dict[str, timedelta] = {
    "1h": timedelta(hours=1),
    "6h": timedelta(hours=6),
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
}
DEFAULT_TIMEFRAME = "24h"
ALL_TIMEFRAME = "all"
SORTS = ("newest", "oldest", "source", "category", "title")


@dataclass
class FeedQuery:
    """Reader query over the snapshot.

    Attributes:
        category: Category id to match (case-insensitive); None means no filter
        search: Free text matched against title, description, source and body
        timeframe: "1h", "6h", "24h", "7d" or "all"; unknown values mean 24h
        sort: One of SORTS; unknown values mean newest first
        limit: Page size
        offset: Articles to skip before the page
    """
    category: str | None = None
    search: str | None = None
    timeframe: str = ALL_TIMEFRAME
    sort: str = "newest"
    limit: int = 100
    offset: int = 0

    def filters(self) -> dict[str, Any]:
        """Echo the active (non-default) filters."""
        return {
            "category": self.category or None,
            "search": (self.search or "").strip() or None,
            "timeframe": self.timeframe if self.timeframe != ALL_TIMEFRAME else None,
            "sort": self.sort if self.sort != "newest" else None,
        }


@dataclass
class QueryResult:
    articles: list[Article] = field(default_factory=list)
    total: int = 0
    has_more: bool = False


def apply_query(articles: Sequence[Article], query: FeedQuery, now: datetime | None = None) -> QueryResult:
    """Filter, sort and page articles.

    Returns:
        QueryResult where ``total`` counts all matches before paging
    """
    now = now or utc_now()
    selected = list(articles)

    if query.category:
        wanted = query.category.lower()
        selected = [a for a in selected if a.category.lower() == wanted]

    needle = (query.search or "").strip().lower()
    if needle:
        selected = [a for a in selected if _matches(a, needle)]

    if query.timeframe and query.timeframe != ALL_TIMEFRAME:
        window = TIMEFRAMES.get(query.timeframe, TIMEFRAMES[DEFAULT_TIMEFRAME])
        cutoff = now - window
        selected = [a for a in selected if a.pub_date >= cutoff]

    selected = sort_for_query(selected, query.sort)
    total = len(selected)
    start = max(query.offset, 0)
    page = selected[start : start + query.limit]
    return QueryResult(articles=page, total=total, has_more=total > start + len(page))


def sort_for_query(articles: list[Article], sort: str) -> list[Article]:
    if sort == "oldest":
        return sorted(articles, key=lambda a: a.pub_date)
    if sort == "source":
        return sorted(articles, key=lambda a: a.source.casefold())
    if sort == "category":
        return sorted(articles, key=lambda a: a.category.casefold())
    if sort == "title":
        return sorted(articles, key=lambda a: a.title.casefold())
    return sorted(articles, key=lambda a: a.pub_date, reverse=True)


def _matches(article: Article, needle: str) -> bool:
    return any(
        needle in field_value.lower()
        for field_value in (article.title, article.description, article.source, article.full_content)
    )
