"""
Article deduplication and ordering.

Deduplication keys on the normalized title (lowercased, punctuation
stripped, whitespace collapsed) so the same story syndicated by several
outlets appears once. The first occurrence wins.
"""

from __future__ import annotations

import re
from typing import Iterable

from .types import Article

_PUNCT_RE = re.compile(r"[^\w\s]")
_WS_RE = re.compile(r"\s+")


def normalize_title(title: str) -> str:
    """Normalize a title for duplicate detection.

    Examples:
        >>> normalize_title("Cabinet Reshuffle Announced!")
        'cabinet reshuffle announced'
    """
    lowered = _PUNCT_RE.sub("", title.lower())
    return _WS_RE.sub(" ", lowered).strip()


def dedup_articles(articles: Iterable[Article]) -> list[Article]:
    """Remove articles whose normalized title was already seen, preserving order."""
    seen: set[str] = set()
    kept: list[Article] = []
    for article in articles:
        key = normalize_title(article.title)
        if key in seen:
            continue
        seen.add(key)
        kept.append(article)
    return kept


def sort_articles(articles: Iterable[Article]) -> list[Article]:
    """Order by priority, then relevance score, then recency (all descending)."""
    return sorted(
        articles,
        key=lambda a: (a.priority, a.relevance_score, a.pub_date.timestamp()),
        reverse=True,
    )


def sort_by_recency(articles: Iterable[Article]) -> list[Article]:
    return sorted(articles, key=lambda a: a.pub_date.timestamp(), reverse=True)
