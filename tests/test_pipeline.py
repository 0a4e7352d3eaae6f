"""Tests for source fetching and the aggregation pipeline."""

from __future__ import annotations

import asyncio
from datetime import timedelta

import httpx

from harare_metro import pipeline
from harare_metro.catalog import CatalogService
from harare_metro.config import AppConfig, FetchConfig
from harare_metro.core.dedup import dedup_articles, normalize_title
from harare_metro.core.types import SourceFailed, SourceOk
from harare_metro.fetch.fetcher import fetch_source
from harare_metro.pipeline import AggregationService, run_aggregation
from harare_metro.store.kv import MemoryKVStore

from helpers import BASE_TIME, catalog_dict, feed_transport, make_article, rss_document, rss_item, sample_catalog, source


def _feed(*titles: str, prefix: str = "https://www.herald.co.zw") -> str:
    items = [
        rss_item(title, f"{prefix}/{i}", description=f"<p>{title} body</p>", published=BASE_TIME - timedelta(hours=i))
        for i, title in enumerate(titles)
    ]
    return rss_document(items)


def _run(sources, routes, cfg: AppConfig | None = None):
    cfg = cfg or AppConfig()

    async def go():
        async with httpx.AsyncClient(transport=feed_transport(routes)) as client:
            return await run_aggregation(sources, sample_catalog(sources), cfg, client=client)

    return asyncio.run(go())


def test_fetch_source_sends_headers_and_parses():
    seen = {}

    async def handler(request: httpx.Request) -> httpx.Response:
        seen["ua"] = request.headers.get("user-agent")
        seen["accept"] = request.headers.get("accept")
        return httpx.Response(200, content=_feed("Harare council meets today").encode())

    src = source("herald")
    cfg = FetchConfig()

    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await fetch_source(client, src, cfg)

    result = asyncio.run(go())

    assert isinstance(result, SourceOk)
    assert [i.title for i in result.items] == ["Harare council meets today"]
    assert seen["ua"] == cfg.user_agent
    assert "application/rss+xml" in seen["accept"]


def test_fetch_source_maps_failures_to_results():
    cfg = FetchConfig(timeout_seconds=0.2)

    async def slow(request):
        await asyncio.sleep(5)
        return httpx.Response(200, content=b"late")

    async def broken(request):
        raise httpx.ConnectError("connection refused", request=request)

    routes = {
        "https://a.test/feed": 503,
        "https://b.test/feed": "<rss/>",
        "https://c.test/feed": slow,
        "https://d.test/feed": broken,
        "https://e.test/feed": "x" * 200,
    }

    async def go():
        async with httpx.AsyncClient(transport=feed_transport(routes)) as client:
            return [
                await fetch_source(client, source(name, url), cfg)
                for name, url in zip("abcde", routes)
            ]

    results = asyncio.run(go())

    assert all(isinstance(r, SourceFailed) for r in results)
    assert results[0].status_code == 503
    assert "Empty or invalid" in results[1].reason
    assert "Timeout" in results[2].reason
    assert "ConnectError" in results[3].reason


def test_timeout_source_does_not_block_healthy_ones():
    async def slow(request):
        await asyncio.sleep(5)
        return httpx.Response(200, content=_feed("Never arrives headline").encode())

    sources = [
        source("one", "https://one.test/feed"),
        source("two", "https://two.test/feed"),
        source("three", "https://three.test/feed"),
    ]
    routes = {
        "https://one.test/feed": _feed("Harare water supply restored", "Bulawayo rains flood roads", prefix="https://one.test"),
        "https://two.test/feed": slow,
        "https://three.test/feed": _feed("Warriors name squad for qualifier", prefix="https://three.test"),
    }
    cfg = AppConfig()
    cfg.fetch.timeout_seconds = 0.2

    report = _run(sources, routes, cfg)

    assert len(report.articles) == 3
    assert set(report.failed) == {"Two"}
    assert "Timeout" in report.failed["Two"]
    assert {s.source for s in report.succeeded} == {"One", "Three"}
    assert report.duration_seconds < 5


def test_identical_normalized_titles_are_deduplicated_across_sources():
    sources = [source("alpha", "https://alpha.test/feed"), source("beta", "https://beta.test/feed")]
    routes = {
        "https://alpha.test/feed": _feed("Cabinet Reshuffle Announced!", prefix="https://alpha.test"),
        "https://beta.test/feed": _feed("cabinet reshuffle announced", "Inflation eases in June figures", prefix="https://beta.test"),
    }

    report = _run(sources, routes)

    titles = [normalize_title(a.title) for a in report.articles]
    assert titles.count("cabinet reshuffle announced") == 1
    kept = next(a for a in report.articles if normalize_title(a.title) == "cabinet reshuffle announced")
    assert kept.source == "Alpha"
    assert len(report.articles) == 2


def test_output_is_sorted_by_priority_relevance_then_date():
    sources = [source("mixed", "https://mixed.test/feed")]
    routes = {
        "https://mixed.test/feed": _feed(
            "Local football results roundup",
            "Budget Speech 2024 presented in Harare",
            "Zimbabwe budget consultations open",
            "Weather outlook for the weekend",
            prefix="https://mixed.test",
        )
    }

    report = _run(sources, routes)

    keys = [(a.priority, a.relevance_score, a.pub_date) for a in report.articles]
    assert keys == sorted(keys, reverse=True)
    assert report.articles[0].title == "Budget Speech 2024 presented in Harare"


def test_disabled_sources_are_skipped_and_limits_apply():
    titles = [f"Story number {n} from the newsroom" for n in range(6)]
    sources = [source("busy", "https://busy.test/feed"), source("off", "https://off.test/feed", enabled=False)]
    routes = {
        "https://busy.test/feed": _feed(*titles, prefix="https://busy.test"),
        "https://off.test/feed": _feed("Should never be fetched at all", prefix="https://off.test"),
    }
    cfg = AppConfig()
    cfg.aggregation.items_per_source = 4
    cfg.aggregation.max_articles = 3

    report = _run(sources, routes, cfg)

    assert [s.source for s in report.succeeded] == ["Busy"]
    assert report.succeeded[0].items == 4
    assert len(report.articles) == 3
    assert all(a.source == "Busy" for a in report.articles)


def test_crashing_fetch_is_isolated(monkeypatch):
    real_fetch = pipeline.fetch_source

    async def flaky(client, src, cfg):
        if src.id == "bad":
            raise RuntimeError("boom")
        return await real_fetch(client, src, cfg)

    monkeypatch.setattr(pipeline, "fetch_source", flaky)
    sources = [source("bad", "https://bad.test/feed"), source("good", "https://good.test/feed")]
    routes = {"https://good.test/feed": _feed("Healthy source headline here", prefix="https://good.test")}

    report = _run(sources, routes)

    assert "RuntimeError" in report.failed["Bad"]
    assert [a.title for a in report.articles] == ["Healthy source headline here"]


def test_dedup_is_idempotent():
    articles = [
        make_article("Cabinet Reshuffle Announced!"),
        make_article("cabinet   reshuffle announced"),
        make_article("Fuel prices rise again today"),
        make_article("Fuel prices rise again, today"),
    ]
    once = dedup_articles(articles)
    assert dedup_articles(once) == once
    assert [a.title for a in once] == ["Cabinet Reshuffle Announced!", "Fuel prices rise again today"]


def test_aggregation_service_reads_sources_from_catalogue():
    sources = [source("herald", "https://herald.test/feed")]
    fallback = catalog_dict(sample_catalog(sources))
    catalog = CatalogService(MemoryKVStore(), fallback=fallback)
    transport = feed_transport({"https://herald.test/feed": _feed("Harare traffic plan unveiled", prefix="https://herald.test")})
    service = AggregationService(catalog, AppConfig(), transport=transport)

    report = asyncio.run(service())

    assert [a.title for a in report.articles] == ["Harare traffic plan unveiled"]
    assert report.articles[0].priority is True
