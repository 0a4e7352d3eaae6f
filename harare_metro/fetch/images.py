"""
Image URL extraction for feed items.

Candidates are collected in a fixed priority order:
1. media:content with medium="image"
2. enclosures with an image/* type
3. the item image field
4. platform fields (WordPress featured image / attachment URL)
5. <img src> tags inside the item markup
6. og:image meta tags inside the item markup
7. bare image URLs (by extension) inside the item markup

Every candidate is resolved against the item link and filtered against the
trusted image domain list. Only trusted hosts are ever returned.
"""

from __future__ import annotations

import html
import logging
import re
from typing import Iterable, Sequence
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from ..core.types import RawItem
from ..utils.logging import get_logger, log_event

logger = get_logger("images")

_IMAGE_EXT_RE = re.compile(r"\.(jpe?g|png|gif|webp|svg|bmp|avif|ico|tiff?)(\?.*)?$", re.IGNORECASE)
_IMAGE_PARAM_RE = re.compile(r"[?&](format|f)=(jpe?g|png|gif|webp|svg|bmp|avif)", re.IGNORECASE)
_BARE_IMAGE_RE = re.compile(
    r"https?://[^\s<>\"']+\.(?:jpe?g|png|gif|webp|svg|bmp|avif)(?:\?[^\s<>\"']*)?",
    re.IGNORECASE,
)


def is_image_url(url: str | None) -> bool:
    """Return True if the URL looks like an image by extension or format parameter."""
    if not url or not isinstance(url, str):
        return False
    path = url.split("#", 1)[0]
    return bool(_IMAGE_EXT_RE.search(path) or _IMAGE_PARAM_RE.search(path))


def is_trusted_host(hostname: str, trusted_domains: Iterable[str]) -> bool:
    """Return True if hostname equals a trusted domain or is a subdomain of one."""
    host = hostname.lower().rstrip(".")
    if not host:
        return False
    for domain in trusted_domains:
        domain = domain.lower().strip().lstrip(".")
        if not domain:
            continue
        if host == domain or host.endswith("." + domain):
            return True
    return False


def extract_image(item: RawItem, link: str, trusted_domains: Sequence[str]) -> str | None:
    """Return the best trusted image URL for an item, or None.

    Args:
        item: Parsed feed item
        link: The item's canonical link, used to resolve relative URLs
        trusted_domains: Hostname suffixes images may be served from

    Returns:
        The first candidate, in priority order, that resolves to an absolute
        http(s) URL on a trusted host
    """
    candidates = _collect_candidates(item)
    seen: set[str] = set()
    rejected = 0

    for raw_url, needs_extension in candidates:
        url = _resolve(raw_url, link)
        if url is None or url in seen:
            continue
        seen.add(url)
        if needs_extension and not is_image_url(url):
            continue
        hostname = urlparse(url).hostname or ""
        if not is_trusted_host(hostname, trusted_domains):
            rejected += 1
            continue
        return url

    if rejected:
        log_event(
            logger,
            "No trusted image found",
            level=logging.DEBUG,
            event="image_untrusted",
            title=item.title,
            rejected=rejected,
        )
    return None


def _collect_candidates(item: RawItem) -> list[tuple[str, bool]]:
    """Gather (url, needs_extension_check) pairs in priority order."""
    candidates: list[tuple[str, bool]] = [
        (candidate.url, not candidate.typed) for candidate in item.media
    ]

    soups = [BeautifulSoup(markup, "html.parser") for markup in item.html_fields()]
    for soup in soups:
        for img in soup.find_all("img"):
            src = img.get("src")
            if src:
                candidates.append((src, False))
    for soup in soups:
        for meta in soup.find_all("meta", attrs={"property": "og:image"}):
            content = meta.get("content")
            if content:
                candidates.append((content, False))
    for markup in item.html_fields():
        for match in _BARE_IMAGE_RE.finditer(html.unescape(markup)):
            candidates.append((match.group(0), True))

    return candidates


def _resolve(raw_url: str, link: str) -> str | None:
    """Resolve protocol-relative and relative URLs against the item link."""
    url = html.unescape(raw_url.strip())
    if not url:
        return None
    if url.startswith("//"):
        url = "https:" + url
    elif not url.lower().startswith(("http://", "https://")):
        if not link or not link.lower().startswith(("http://", "https://")):
            return None
        url = urljoin(link, url)
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return None
    return url
