"""
Feed document parsing and text sanitisation.

This module turns a raw RSS 2.0 / RSS 1.0 / Atom document into a list of
RawItem objects using feedparser, which tolerates missing namespaces and
malformed markup. It also provides the text cleaning helpers used by the
normalizer:
1. decode_entities: numeric, hex and named HTML entities
2. clean_text: single-line plain text for titles
3. clean_html: plain text from markup, optionally bounded
"""

from __future__ import annotations

import html
import re
from typing import Any

from bs4 import BeautifulSoup
import feedparser

from ..core.types import ImageCandidate, RawItem
from ..errors import FeedParseError

MIN_DOCUMENT_CHARS = 100

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")

# Namespaced extension fields, as feedparser names them (prefix_localname)
_FEATURED_FIELDS = ("wp_featured_image", "featured_image")
_ATTACHMENT_FIELDS = ("wp_attachment_url",)


def parse_feed(document: str | bytes, min_chars: int = MIN_DOCUMENT_CHARS) -> list[RawItem]:
    """Parse a feed document into RawItem objects.

    Args:
        document: The raw feed body. Bytes are preferred so feedparser can
                  honour the encoding declared in the XML prolog.
        min_chars: Documents shorter than this are rejected outright

    Returns:
        Parsed items in document order. A well-formed feed with no items
        yields an empty list.

    Raises:
        FeedParseError: If the document is too short or nothing could be parsed
    """
    if isinstance(document, str):
        document = document.encode("utf-8")
    if len(document.strip()) < min_chars:
        raise FeedParseError("Empty or invalid feed document")

    parsed = feedparser.parse(document)
    entries = parsed.get("entries") or []
    if not entries and parsed.get("bozo"):
        reason = parsed.get("bozo_exception")
        raise FeedParseError(f"Unparseable feed: {reason}")

    return [_to_raw_item(entry) for entry in entries]


def _to_raw_item(entry: Any) -> RawItem:
    """Reduce one feedparser entry to the canonical RawItem shape."""
    return RawItem(
        title=_text(entry.get("title")),
        link=_text(entry.get("link")),
        guid=_text(entry.get("id")),
        published=_text(entry.get("published") or entry.get("updated") or entry.get("created")) or None,
        description_html=_text(entry.get("summary")),
        content_html=_longest_content(entry.get("content")),
        media=_image_candidates(entry),
    )


def _text(value: Any) -> str:
    """Flatten a field that may be a string or an object carrying text."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, dict):
        for key in ("value", "text", "#text", "href", "url"):
            if value.get(key):
                return str(value[key]).strip()
        return ""
    return str(value).strip()


def _longest_content(contents: Any) -> str:
    if not contents:
        return ""
    if not isinstance(contents, list):
        contents = [contents]
    best = ""
    for content in contents:
        text = _text(content)
        if len(text) > len(best):
            best = text
    return best


def _image_candidates(entry: Any) -> list[ImageCandidate]:
    """Collect image URLs from structured fields, highest priority first."""
    candidates: list[ImageCandidate] = []

    for media in _as_list(entry.get("media_content")):
        url = media.get("url") if isinstance(media, dict) else None
        if url and media.get("medium") == "image":
            candidates.append(ImageCandidate(url=url, kind="media", typed=True))

    for enclosure in _as_list(entry.get("enclosures")):
        if not isinstance(enclosure, dict):
            continue
        url = enclosure.get("href") or enclosure.get("url")
        if url and str(enclosure.get("type", "")).startswith("image/"):
            candidates.append(ImageCandidate(url=url, kind="enclosure", typed=True))

    image = _text(entry.get("image"))
    if image:
        candidates.append(ImageCandidate(url=image, kind="image"))

    for name in _FEATURED_FIELDS:
        url = _text(entry.get(name))
        if url:
            candidates.append(ImageCandidate(url=url, kind="featured", typed=True))
    for name in _ATTACHMENT_FIELDS:
        url = _text(entry.get(name))
        if url:
            candidates.append(ImageCandidate(url=url, kind="attachment"))

    return candidates


def _as_list(value: Any) -> list[Any]:
    if not value:
        return []
    if isinstance(value, list):
        return value
    return [value]


def decode_entities(text: str) -> str:
    """Decode numeric (&#8217;), hex (&#x2019;) and named (&rsquo;) entities.

    Non-breaking spaces are folded into plain spaces.
    """
    if not text:
        return text
    return html.unescape(text).replace("\xa0", " ")


def clean_text(text: str) -> str:
    """Produce single-line plain text from a title-like field."""
    if not text:
        return ""
    cleaned = decode_entities(text)
    cleaned = _TAG_RE.sub("", cleaned)
    cleaned = _WS_RE.sub(" ", cleaned).strip()
    cleaned = cleaned.replace("[…]", "…").replace("[&hellip;]", "…")
    return cleaned


def clean_html(markup: str, limit: int | None = None) -> str:
    """Extract plain text from markup.

    Args:
        markup: HTML fragment (entities may be double-encoded)
        limit: Optional maximum length of the result

    Returns:
        Whitespace-collapsed plain text, truncated to ``limit`` when given
    """
    if not markup:
        return ""
    soup = BeautifulSoup(markup, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    text = decode_entities(soup.get_text(separator=" "))
    # Entities decoded above can reveal markup that was double-encoded
    text = _TAG_RE.sub("", text)
    text = _WS_RE.sub(" ", text).strip()
    if limit is not None:
        text = text[:limit]
    return text
