"""HTTP API tests over an in-process ASGI transport."""

from __future__ import annotations

import asyncio
from datetime import timedelta

import httpx
import yaml

from harare_metro.api.app import create_app
from harare_metro.config import AppConfig
from harare_metro.services import build_services

from helpers import BASE_TIME, catalog_dict, feed_transport, rss_document, rss_item, sample_catalog, source

HERALD_URL = "https://www.herald.co.zw/feed/"
NEWSDAY_URL = "https://www.newsday.co.zw/feed/"


def _herald_feed():
    return rss_document(
        [
            rss_item(
                "Budget allocation for Harare roads announced",
                "https://www.herald.co.zw/budget-roads",
                description="<p>Treasury set aside funds for roads in the capital.</p>",
                published=BASE_TIME - timedelta(hours=1),
            ),
            rss_item(
                "Warriors squad named for Afcon qualifier",
                "https://www.herald.co.zw/warriors-squad",
                description="<p>The national football team coach named the squad.</p>",
                published=BASE_TIME - timedelta(hours=2),
            ),
            rss_item(
                "Parliament debates new mining bill",
                "https://www.herald.co.zw/mining-bill",
                description="<p>Members of parliament and the minister clashed.</p>",
                published=BASE_TIME - timedelta(hours=3),
            ),
        ]
    )


def _setup(tmp_path, routes=None, admin_key=None):
    catalog = sample_catalog([source("herald", HERALD_URL), source("newsday", NEWSDAY_URL)])
    catalog_path = tmp_path / "catalog.yaml"
    catalog_path.write_text(yaml.safe_dump(catalog_dict(catalog)), encoding="utf-8")

    cfg = AppConfig()
    cfg.catalog.path = str(catalog_path)
    cfg.api.admin_key = admin_key
    cfg.api.admin_key_env = "HARARE_METRO_TEST_UNSET_KEY"
    routes = routes if routes is not None else {HERALD_URL: _herald_feed(), NEWSDAY_URL: 503}
    services = build_services(cfg, transport=feed_transport(routes))
    return create_app(cfg, services), services


def _client(app):
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")


def test_empty_cache_initializes_then_serves(tmp_path):
    app, services = _setup(tmp_path)

    async def scenario():
        async with _client(app) as client:
            first = await client.get("/api/feeds")
            assert first.status_code == 200
            assert first.headers["Retry-After"] == "30"
            body = first.json()
            assert body["status"] == "initializing"
            assert body["articles"] == []
            assert body["loadStarted"] is True

            result = await services.scheduler.wait_for_background(timeout=10)
            assert result.status == "refreshed"

            ready = await client.get("/api/feeds")
            data = ready.json()
            assert data["status"] == "ready"
            assert data["total"] == 3
            assert data["totalCached"] == 3
            assert data["articles"][0]["title"] == "Budget allocation for Harare roads announced"
            assert "Retry-After" not in ready.headers

            sports = (await client.get("/api/feeds", params={"category": "Sports"})).json()
            assert [a["title"] for a in sports["articles"]] == ["Warriors squad named for Afcon qualifier"]

            paged = (await client.get("/api/feeds", params={"limit": 2})).json()
            assert len(paged["articles"]) == 2
            assert paged["hasMore"] is True

    asyncio.run(scenario())


def test_limit_is_clamped(tmp_path):
    app, services = _setup(tmp_path)

    async def scenario():
        await services.scheduler.force_refresh()
        async with _client(app) as client:
            huge = (await client.get("/api/feeds", params={"limit": 50000})).json()
            assert huge["limit"] == 1000
            tiny = (await client.get("/api/feeds", params={"limit": 0})).json()
            assert tiny["limit"] == 1
            negative = await client.get("/api/feeds", params={"offset": -1})
            assert negative.status_code == 422

    asyncio.run(scenario())


def test_search_results_are_cached(tmp_path):
    app, services = _setup(tmp_path)

    async def scenario():
        await services.scheduler.force_refresh()
        async with _client(app) as client:
            found = (await client.get("/api/feeds", params={"search": "mining"})).json()
            assert [a["title"] for a in found["articles"]] == ["Parliament debates new mining bill"]
            assert services.cache.stats()["searchEntries"] == 1

            again = (await client.get("/api/feeds", params={"search": "Mining"})).json()
            assert again["total"] == 1
            assert services.cache.stats()["searchEntries"] == 1

    asyncio.run(scenario())


def test_force_refresh_and_status(tmp_path):
    app, _ = _setup(tmp_path)

    async def scenario():
        async with _client(app) as client:
            refreshed = await client.post("/api/admin/force-refresh")
            assert refreshed.status_code == 200
            body = refreshed.json()
            assert body["success"] is True
            assert body["articlesLoaded"] == 3
            assert body["sourcesFailed"] == {"Newsday": "HTTP 503: Service Unavailable"}

            status = (await client.get("/api/admin/status")).json()
            assert status["cache"]["articles"] == 3
            assert status["cache"]["status"] == "active"
            assert status["cache"]["refreshLock"] is False
            assert status["refresh"]["state"] == "idle"
            assert status["refresh"]["isWorking"] is True
            assert status["feeds"]["failed"] == {"Newsday": "HTTP 503: Service Unavailable"}

    asyncio.run(scenario())


def test_force_refresh_fails_when_every_source_fails(tmp_path):
    app, services = _setup(tmp_path, routes={HERALD_URL: 500, NEWSDAY_URL: "<rss/>"})

    async def scenario():
        async with _client(app) as client:
            response = await client.post("/api/admin/force-refresh")
            assert response.status_code == 500
            assert response.json()["success"] is False
            assert services.cache.get_snapshot() is None
            assert services.lock.is_held() is False

    asyncio.run(scenario())


def test_clear_cache(tmp_path):
    app, services = _setup(tmp_path)

    async def scenario():
        await services.scheduler.force_refresh()
        async with _client(app) as client:
            cleared = (await client.post("/api/admin/clear-cache")).json()
            assert cleared["success"] is True
            assert "cache:all_articles" in cleared["clearedKeys"]

            status = (await client.get("/api/admin/status")).json()
            assert status["cache"]["articles"] == 0
            assert status["cache"]["status"] == "empty"
            assert status["cache"]["lastScheduledRun"] is None

    asyncio.run(scenario())


def test_admin_key_required_when_configured(tmp_path):
    app, _ = _setup(tmp_path, admin_key="s3cret")

    async def scenario():
        async with _client(app) as client:
            assert (await client.get("/api/admin/status")).status_code == 401
            wrong = await client.get("/api/admin/status", headers={"X-Admin-Key": "nope"})
            assert wrong.status_code == 401
            ok = await client.get("/api/admin/status", headers={"X-Admin-Key": "s3cret"})
            assert ok.status_code == 200
            assert (await client.get("/api/health")).status_code == 200

    asyncio.run(scenario())


def test_unavailable_services_answer_503():
    cfg = AppConfig()
    cfg.cache.backend = "carrier-pigeon"
    app = create_app(cfg)

    async def scenario():
        async with _client(app) as client:
            response = await client.get("/api/feeds")
            assert response.status_code == 503
            assert "carrier-pigeon" in response.json()["detail"]
            assert (await client.post("/api/admin/clear-cache")).status_code == 503

    asyncio.run(scenario())


def test_config_endpoints(tmp_path):
    app, _ = _setup(tmp_path)

    async def scenario():
        async with _client(app) as client:
            sources = (await client.get("/api/config/sources")).json()
            assert [s["id"] for s in sources["sources"]] == ["herald", "newsday"]

            categories = (await client.get("/api/config/categories")).json()
            assert categories["categories"][0] == {"id": "all"}

            keywords = (await client.get("/api/config/keywords")).json()
            assert keywords["priorityKeywords"] == ["budget", "harare", "zimbabwe", "warriors"]

            everything = (await client.get("/api/config/all")).json()
            assert everything["metadata"]["totalSources"] == 2
            assert everything["config"]["trustedImageDomains"] == ["herald.co.zw", "wp.com"]

            assert (await client.get("/api/config/secrets")).status_code == 404

            init = (await client.post("/api/admin/init-config")).json()
            assert init["initialized"] == 6
            refreshed = (await client.post("/api/admin/config-refresh")).json()
            assert refreshed["refreshed"] == 6

    asyncio.run(scenario())


def test_health(tmp_path):
    app, _ = _setup(tmp_path)

    async def scenario():
        async with _client(app) as client:
            body = (await client.get("/api/health")).json()
            assert body["status"] == "ok"
            assert body["cache"] == "empty"

    asyncio.run(scenario())


def test_category_all_means_every_category(tmp_path):
    app, services = _setup(tmp_path)

    async def scenario():
        await services.scheduler.force_refresh()
        async with _client(app) as client:
            unfiltered = (await client.get("/api/feeds")).json()
            for value in ("all", "ALL", " all "):
                every = (await client.get("/api/feeds", params={"category": value})).json()
                assert every["total"] == unfiltered["total"] == 3
                assert every["category"] is None

            searched = (await client.get("/api/feeds", params={"category": "all", "search": "warriors"})).json()
            assert searched["total"] == 1

    asyncio.run(scenario())
