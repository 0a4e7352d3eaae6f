"""Shared builders for feed documents, catalogues and fake clocks."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from email.utils import format_datetime

import httpx

from harare_metro.catalog import CatalogSnapshot
from harare_metro.core.types import Article, SourceConfig

BASE_TIME = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Epoch-seconds clock that only moves when told to."""

    def __init__(self, start: datetime = BASE_TIME):
        self.now = start.timestamp()

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def rss_item(
    title: str,
    link: str,
    description: str = "",
    content: str = "",
    published: datetime | None = None,
    guid: str | None = None,
    extra: str = "",
) -> str:
    parts = [f"<title>{title}</title>", f"<link>{link}</link>"]
    parts.append(f"<guid>{guid or link}</guid>")
    if published is not None:
        parts.append(f"<pubDate>{format_datetime(published)}</pubDate>")
    if description:
        parts.append(f"<description><![CDATA[{description}]]></description>")
    if content:
        parts.append(f"<content:encoded><![CDATA[{content}]]></content:encoded>")
    parts.append(extra)
    return "<item>" + "".join(parts) + "</item>"


def rss_document(items: list[str], title: str = "Test Feed", link: str = "https://www.herald.co.zw") -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/" '
        'xmlns:media="http://search.yahoo.com/mrss/">'
        f"<channel><title>{title}</title><link>{link}</link>"
        "<description>Latest news from a test outlet in Zimbabwe</description>"
        + "".join(items)
        + "</channel></rss>"
    )


def source(id: str, url: str | None = None, enabled: bool = True) -> SourceConfig:
    return SourceConfig(
        id=id,
        name=id.replace("-", " ").title(),
        url=url or f"https://{id}.example.co.zw/feed/",
        enabled=enabled,
    )


def sample_catalog(sources: list[SourceConfig] | None = None) -> CatalogSnapshot:
    """A small catalogue where "budget" is a priority economy keyword."""
    return CatalogSnapshot(
        sources=sources or [],
        categories=[{"id": "all"}, {"id": "politics"}, {"id": "economy"}, {"id": "sports"}],
        category_keywords={
            "politics": ["parliament", "cabinet", "minister"],
            "economy": ["budget", "inflation", "economy"],
            "sports": ["football", "soccer", "warriors"],
        },
        priority_keywords=["budget", "harare", "zimbabwe", "warriors"],
        trusted_image_domains=["herald.co.zw", "wp.com"],
        site={},
    )


def catalog_dict(snapshot: CatalogSnapshot) -> dict:
    return {
        "rss_sources": [s.to_dict() for s in snapshot.sources],
        "categories": snapshot.categories,
        "category_keywords": snapshot.category_keywords,
        "priority_keywords": snapshot.priority_keywords,
        "trusted_image_domains": snapshot.trusted_image_domains,
        "site": snapshot.site,
    }


def make_article(
    title: str,
    hours_ago: float = 0,
    priority: bool = False,
    relevance: int = 0,
    category: str = "all",
    source_name: str = "Herald",
    body: str = "",
) -> Article:
    return Article(
        title=title,
        link=f"https://www.herald.co.zw/{title.lower().replace(' ', '-')}",
        description=body[:300],
        full_content=body,
        pub_date=BASE_TIME - timedelta(hours=hours_ago),
        source=source_name,
        category=category,
        priority=priority,
        relevance_score=relevance,
    )


def feed_transport(routes: dict[str, object]) -> httpx.MockTransport:
    """MockTransport answering by URL.

    A route value may be a feed string (200), an int status code, or an
    async callable taking the request.
    """

    async def handler(request: httpx.Request) -> httpx.Response:
        route = routes.get(str(request.url))
        if route is None:
            return httpx.Response(404, text="not found")
        if callable(route):
            return await route(request)
        if isinstance(route, int):
            return httpx.Response(route, text="error " * 50)
        return httpx.Response(200, content=str(route).encode("utf-8"), headers={"Content-Type": "application/rss+xml"})

    return httpx.MockTransport(handler)
