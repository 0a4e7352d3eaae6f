"""
Aggregation pipeline.

One run does the following:
1. Fetch every enabled source concurrently (each bound to its own timeout)
2. Cap each source's items and normalize them into Articles
3. Concatenate in source order and deduplicate by normalized title
4. Sort by priority, relevance and recency, then truncate

Failed sources contribute nothing and are listed in the AggregationReport.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Sequence

import httpx

from .catalog import CatalogService, CatalogSnapshot
from .config import AppConfig
from .core.dedup import dedup_articles, sort_articles
from .core.normalize import normalize_item
from .core.types import (
    AggregationReport,
    Article,
    SourceConfig,
    SourceFailed,
    SourceResult,
    SourceSummary,
    utc_now,
)
from .fetch.fetcher import build_client, fetch_source
from .utils.logging import get_logger, log_event

logger = get_logger("pipeline")

Aggregator = Callable[[], Awaitable[AggregationReport]]


async def run_aggregation(
    sources: Sequence[SourceConfig],
    catalog: CatalogSnapshot,
    cfg: AppConfig,
    client: httpx.AsyncClient | None = None,
) -> AggregationReport:
    """Run one aggregation pass over the given sources.

    Args:
        sources: Sources to fetch; disabled ones are skipped
        catalog: Keyword lists and trusted image domains for this run
        cfg: Application configuration
        client: Optional shared HTTP client; one is created (and closed) when omitted

    Returns:
        AggregationReport with the final article list and per-source outcomes
    """
    started = time.monotonic()
    enabled = [s for s in sources if s.enabled]
    log_event(logger, "Aggregation start", event="aggregation_start", sources=len(enabled))

    owns_client = client is None
    if client is None:
        client = build_client(cfg.fetch)
    try:
        results = await _fetch_all(client, enabled, cfg)
    finally:
        if owns_client:
            await client.aclose()

    classifier = catalog.classifier()
    now = utc_now()
    report = AggregationReport()
    collected: list[Article] = []

    for result in results:
        name = result.source.name
        if isinstance(result, SourceFailed):
            report.failed[name] = result.reason
            continue
        items = result.items[: cfg.aggregation.items_per_source]
        articles: list[Article] = []
        for item in items:
            try:
                article = normalize_item(
                    item,
                    result.source,
                    classifier,
                    catalog.trusted_image_domains,
                    cfg.aggregation,
                    now=now,
                )
            except Exception as exc:  # noqa: BLE001
                log_event(
                    logger,
                    "Item dropped",
                    level=logging.DEBUG,
                    event="item_dropped",
                    source=name,
                    title=item.title,
                    error=f"{type(exc).__name__}: {exc}",
                )
                continue
            if article is not None:
                articles.append(article)
        collected.extend(articles)
        report.succeeded.append(SourceSummary(source=name, items=len(items), articles=len(articles)))

    unique = dedup_articles(collected)
    report.articles = sort_articles(unique)[: cfg.aggregation.max_articles]
    report.duration_seconds = time.monotonic() - started

    log_event(
        logger,
        "Aggregation done",
        event="aggregation_done",
        sources_ok=len(report.succeeded),
        sources_failed=len(report.failed),
        collected=len(collected),
        duplicates=len(collected) - len(unique),
        articles=len(report.articles),
        duration_seconds=round(report.duration_seconds, 3),
    )
    return report


async def _fetch_all(
    client: httpx.AsyncClient, sources: Sequence[SourceConfig], cfg: AppConfig
) -> list[SourceResult]:
    # gather() preserves input order, which keeps the concatenation order stable.
    tasks = [asyncio.create_task(fetch_source(client, source, cfg.fetch)) for source in sources]
    outcomes = await asyncio.gather(*tasks, return_exceptions=True)
    results: list[SourceResult] = []
    for source, outcome in zip(sources, outcomes):
        if isinstance(outcome, BaseException):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            log_event(
                logger,
                "Fetch crashed",
                level=logging.ERROR,
                event="source_fetch_crashed",
                source=source.name,
                error=f"{type(outcome).__name__}: {outcome}",
            )
            results.append(SourceFailed(source=source, reason=f"{type(outcome).__name__}: {outcome}"))
        else:
            results.append(outcome)
    return results


class AggregationService:
    """Binds the pipeline to the catalogue so the scheduler can call it with no arguments.

    Args:
        catalog: Catalogue service read at the start of every run
        cfg: Application configuration
        transport: Optional httpx transport (tests inject httpx.MockTransport)
    """

    def __init__(
        self,
        catalog: CatalogService,
        cfg: AppConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.catalog = catalog
        self.cfg = cfg
        self.transport = transport

    async def __call__(self) -> AggregationReport:
        snapshot = self.catalog.snapshot()
        async with build_client(self.cfg.fetch, transport=self.transport) as client:
            return await run_aggregation(snapshot.sources, snapshot, self.cfg, client=client)
