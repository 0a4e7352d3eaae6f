"""
Core data types for the aggregation backend.

This module defines the fundamental data structures used throughout the pipeline:
- SourceConfig: One configured feed endpoint
- RawItem: A feed entry normalized at the parser boundary
- Classification: Category/priority/score output of the classifier
- Article: The canonical record stored in a snapshot and served to readers
- SourceOk / SourceFailed: Typed per-source fetch results
- AggregationReport: Outcome of one pipeline run
- Snapshot / CacheMetadata: What the cache store hands back to readers
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Union

from dateutil import parser as dateutil_parser

CATCH_ALL_CATEGORY = "all"


@dataclass(frozen=True)
class SourceConfig:
    """Represents one configured RSS/Atom source.

    Attributes:
        id: Stable identifier (e.g. "herald-zimbabwe")
        name: Human-readable name stamped on every article from this source
        url: Feed URL
        category: Editorial category hint for the source
        enabled: Disabled sources are skipped by the pipeline
        priority: Editorial weight (informational)
    """
    id: str
    name: str
    url: str
    category: str = "general"
    enabled: bool = True
    priority: int = 3

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SourceConfig":
        return cls(
            id=str(data.get("id") or data.get("name") or data["url"]),
            name=str(data.get("name") or data.get("id") or data["url"]),
            url=str(data["url"]),
            category=str(data.get("category") or "general"),
            enabled=bool(data.get("enabled", True)),
            priority=int(data.get("priority", 3)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "category": self.category,
            "enabled": self.enabled,
            "priority": self.priority,
        }


@dataclass(frozen=True)
class ImageCandidate:
    """An image URL found in a structured feed field.

    Attributes:
        url: The URL as it appeared in the feed (possibly relative)
        kind: Which field it came from ("media", "enclosure", "image", "featured",
              "attachment")
        typed: True when the feed declared the URL to be an image (medium or
               MIME type), so no extension check is needed
    """
    url: str
    kind: str
    typed: bool = False


@dataclass
class RawItem:
    """A feed entry in one canonical shape.

    Whatever the underlying document looked like (RSS text nodes, Atom
    objects with attributes, namespaced extensions), the parser reduces it
    to plain strings here so later stages never branch on shape.

    Attributes:
        title: Raw title text (entities may still be encoded)
        link: Item link, empty when the feed gave none
        guid: Item guid/id, empty when absent
        published: Raw date string, None when absent
        description_html: RSS description / Atom summary markup
        content_html: content:encoded / Atom content markup
        media: Structured image candidates in priority order
    """
    title: str
    link: str = ""
    guid: str = ""
    published: str | None = None
    description_html: str = ""
    content_html: str = ""
    media: list[ImageCandidate] = field(default_factory=list)

    def html_fields(self) -> list[str]:
        """Markup fields searched for inline images, in priority order."""
        return [f for f in (self.description_html, self.content_html) if f]


@dataclass(frozen=True)
class Classification:
    """Output of the article classifier.

    Attributes:
        category: A configured category or the catch-all, never empty
        priority: True when any priority keyword occurs
        relevance_score: Integer in [0, 10]
        keywords: Up to five matched keywords, priority keywords first
    """
    category: str
    priority: bool
    relevance_score: int
    keywords: list[str]


@dataclass
class Article:
    """The canonical article record stored in a snapshot.

    Attributes:
        title: Cleaned title, at least the configured minimum length
        link: Canonical URL, the natural identity of the article
        description: Plain-text excerpt for list views
        full_content: Plain-text body, unbounded
        pub_date: Publication time (timezone-aware)
        source: Source name from the source config
        category: Detected category, or the catch-all
        priority: Priority keyword flag
        relevance_score: Integer in [0, 10]
        keywords: Up to five keywords
        guid: Stable identifier
        image_url: Trusted source image, if any
        optimized_image_url: Proxied form of image_url
        word_count: Words in full_content
        has_full_content: True when full_content exceeds the excerpt bound
        processed_at: When the pipeline produced this record
    """
    title: str
    link: str
    description: str
    full_content: str
    pub_date: datetime
    source: str
    category: str = CATCH_ALL_CATEGORY
    priority: bool = False
    relevance_score: int = 0
    keywords: list[str] = field(default_factory=list)
    guid: str = ""
    image_url: str | None = None
    optimized_image_url: str | None = None
    word_count: int = 0
    has_full_content: bool = False
    processed_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase shape used in storage and API responses."""
        return {
            "title": self.title,
            "link": self.link,
            "description": self.description,
            "fullContent": self.full_content,
            "pubDate": self.pub_date.isoformat(),
            "source": self.source,
            "category": self.category,
            "priority": self.priority,
            "relevanceScore": self.relevance_score,
            "keywords": list(self.keywords),
            "guid": self.guid,
            "imageUrl": self.image_url,
            "optimizedImageUrl": self.optimized_image_url,
            "wordCount": self.word_count,
            "hasFullContent": self.has_full_content,
            "processed": self.processed_at.isoformat() if self.processed_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Article":
        processed = data.get("processed")
        return cls(
            title=data["title"],
            link=data["link"],
            description=data.get("description") or "",
            full_content=data.get("fullContent") or "",
            pub_date=parse_timestamp(data.get("pubDate")),
            source=data.get("source") or "",
            category=data.get("category") or CATCH_ALL_CATEGORY,
            priority=bool(data.get("priority", False)),
            relevance_score=int(data.get("relevanceScore") or 0),
            keywords=list(data.get("keywords") or []),
            guid=data.get("guid") or "",
            image_url=data.get("imageUrl"),
            optimized_image_url=data.get("optimizedImageUrl"),
            word_count=int(data.get("wordCount") or 0),
            has_full_content=bool(data.get("hasFullContent", False)),
            processed_at=parse_timestamp(processed) if processed else None,
        )


@dataclass
class SourceOk:
    """A source that was fetched and parsed."""
    source: SourceConfig
    items: list[RawItem]
    status_code: int | None = None


@dataclass
class SourceFailed:
    """A source that contributed nothing this run, with the reason why."""
    source: SourceConfig
    reason: str
    status_code: int | None = None


SourceResult = Union[SourceOk, SourceFailed]


@dataclass
class SourceSummary:
    """Per-source line of an aggregation report."""
    source: str
    items: int = 0
    articles: int = 0


@dataclass
class AggregationReport:
    """Result of one aggregation pipeline run.

    Attributes:
        articles: Deduplicated, sorted, truncated articles
        succeeded: Sources that were fetched and parsed
        failed: Sources that failed, keyed by name, with the reason
        duration_seconds: Wall time of the run
    """
    articles: list[Article] = field(default_factory=list)
    succeeded: list[SourceSummary] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    duration_seconds: float = 0.0


@dataclass
class Snapshot:
    """The article list of one refresh cycle plus its metadata."""
    articles: list[Article]
    last_refresh: datetime | None
    article_count: int


@dataclass
class CacheMetadata:
    """Refresh metadata stored next to the snapshot.

    Attributes:
        last_refresh: Time of the last snapshot write, None if never
        article_count: Articles claimed by the stored snapshot
        status: "active", "empty" or "error"
    """
    last_refresh: datetime | None
    article_count: int
    status: str


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any, default: datetime | None = None) -> datetime:
    """Parse a timestamp string into an aware datetime.

    Naive values are assumed to be UTC. Unparseable or empty values return
    ``default`` (or now when no default is given).
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = dateutil_parser.parse(str(value)) if value else None
        except (ValueError, OverflowError, TypeError):
            parsed = None
    if parsed is None:
        return default if default is not None else utc_now()
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
