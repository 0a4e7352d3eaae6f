"""
Conversion of parsed feed items into canonical Article records.

Combines the text cleaners, the image extractor and the classifier into
one Article per valid feed item. Items without a usable title or link are
dropped (None is returned) without affecting sibling items.
"""

from __future__ import annotations

from datetime import datetime
import random
from typing import Sequence
from urllib.parse import quote

from ..config import AggregationConfig
from ..fetch.images import extract_image
from ..fetch.parser import clean_html, clean_text
from .classifier import ArticleClassifier
from .types import Article, RawItem, SourceConfig, parse_timestamp, utc_now


def normalize_item(
    item: RawItem,
    source: SourceConfig,
    classifier: ArticleClassifier,
    trusted_domains: Sequence[str],
    cfg: AggregationConfig,
    now: datetime | None = None,
) -> Article | None:
    """Build an Article from a parsed feed item.

    Args:
        item: Parsed feed item
        source: The source the item came from (its name is stamped on the article)
        classifier: Classifier holding the category and priority keywords
        trusted_domains: Hostname suffixes allowed for article images
        cfg: Aggregation settings (excerpt bound, minimum title length, proxy path)
        now: Processing time; also the fallback publication date

    Returns:
        The Article, or None if the item has no usable title or link
    """
    now = now or utc_now()

    title = clean_text(item.title)
    if not title or len(title) < cfg.min_title_chars:
        return None

    link = resolve_link(item)
    if not link:
        return None

    full_content = clean_html(_longest_body(item))
    excerpt = full_content[: cfg.excerpt_chars]

    classification = classifier.classify(f"{title} {excerpt}", title)
    image_url = extract_image(item, link, trusted_domains)

    return Article(
        title=title,
        link=link,
        description=excerpt,
        full_content=full_content,
        pub_date=parse_timestamp(item.published, default=now),
        source=source.name,
        category=classification.category,
        priority=classification.priority,
        relevance_score=classification.relevance_score,
        keywords=classification.keywords,
        guid=item.guid or _fallback_guid(source, now),
        image_url=image_url,
        optimized_image_url=proxy_image_url(image_url, cfg.image_proxy_path),
        word_count=len(full_content.split()),
        has_full_content=len(full_content) > cfg.excerpt_chars,
        processed_at=now,
    )


def resolve_link(item: RawItem) -> str:
    """Return the item link, falling back to a URL-shaped guid."""
    link = item.link.strip()
    if link and link != "#":
        return link
    guid = item.guid.strip()
    if guid.lower().startswith(("http://", "https://")):
        return guid
    return ""


def proxy_image_url(image_url: str | None, proxy_path: str) -> str | None:
    if not image_url:
        return None
    return f"{proxy_path}?url={quote(image_url, safe='')}"


def _longest_body(item: RawItem) -> str:
    bodies = [item.content_html, item.description_html]
    return max(bodies, key=len)


def _fallback_guid(source: SourceConfig, now: datetime) -> str:
    millis = int(now.timestamp() * 1000)
    return f"{source.name}-{millis}-{random.random()}"
