"""
Refresh scheduling.

The scheduler is either IDLE or REFRESHING. A refresh starts only when it
is due (or forced) and the refresh lock is acquired; it always returns to
IDLE and releases the lock afterwards, whatever the pipeline did. A run
that yields zero articles, or raises, leaves the previous snapshot intact.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
import logging
import time
from typing import Any

from .config import SchedulerConfig
from .core.types import AggregationReport
from .errors import RefreshError, StoreError
from .pipeline import Aggregator
from .store.cache import CacheStore
from .store.kv import Clock
from .store.lock import RefreshLock
from .utils.logging import get_logger, log_event

logger = get_logger("scheduler")


class SchedulerState(str, Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"


@dataclass
class RefreshResult:
    """Outcome of one refresh attempt.

    Attributes:
        status: "refreshed", "skipped", "empty" or "failed"
        reason: Why the run was skipped or failed
        articles_count: Articles stored by this run
        duration_seconds: Wall time of the attempt
        report: The pipeline report, when the pipeline ran to completion
    """
    status: str
    reason: str | None = None
    articles_count: int = 0
    duration_seconds: float = 0.0
    report: AggregationReport | None = None

    @property
    def ok(self) -> bool:
        return self.status == "refreshed"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "status": self.status,
            "reason": self.reason,
            "articlesCount": self.articles_count,
            "durationSeconds": round(self.duration_seconds, 3),
        }
        if self.report is not None:
            data["sourcesSucceeded"] = len(self.report.succeeded)
            data["sourcesFailed"] = dict(self.report.failed)
        return data


class RefreshScheduler:
    """Coordinates refresh runs between the cache, the lock and the pipeline.

    Args:
        cache: Snapshot cache
        lock: Refresh lock shared by every trigger
        aggregate: Zero-argument coroutine function running the pipeline
        cfg: Interval and health settings
        clock: Time source (epoch seconds)
    """

    def __init__(
        self,
        cache: CacheStore,
        lock: RefreshLock,
        aggregate: Aggregator,
        cfg: SchedulerConfig | None = None,
        clock: Clock | None = None,
    ):
        self.cache = cache
        self.lock = lock
        self.aggregate = aggregate
        self.cfg = cfg or SchedulerConfig()
        self._clock = clock or time.time
        self._running = 0
        self._background: asyncio.Task | None = None

    @property
    def state(self) -> SchedulerState:
        # A forced run may overlap a background one; IDLE only once both finished
        return SchedulerState.REFRESHING if self._running else SchedulerState.IDLE

    def seconds_since_last_run(self) -> float | None:
        last_run = self.cache.get_last_scheduled_run()
        if last_run is None:
            return None
        return self._clock() - last_run.timestamp()

    def is_due(self) -> bool:
        elapsed = self.seconds_since_last_run()
        return elapsed is None or elapsed >= self.cfg.interval_seconds

    def is_working(self) -> bool:
        """Health signal: the periodic trigger ran within health_factor intervals."""
        elapsed = self.seconds_since_last_run()
        if elapsed is None:
            return False
        return elapsed < self.cfg.health_factor * self.cfg.interval_seconds

    async def run_scheduled(self) -> RefreshResult:
        """Periodic trigger: refresh only when due and the lock is free."""
        if not self.is_due():
            log_event(logger, "Refresh not due", level=logging.DEBUG, event="refresh_skipped", reason="not_due")
            return RefreshResult(status="skipped", reason="not due")
        return await self._refresh(trigger="scheduled")

    def trigger_initial_load(self) -> bool:
        """Start a background refresh for an empty cache without waiting for it.

        Returns:
            True if a background run was started, False if one is already in
            flight or another holder has the lock
        """
        if self._background is not None and not self._background.done():
            return False
        try:
            if self.lock.is_held():
                return False
        except StoreError as exc:
            log_event(logger, "Lock check failed", level=logging.WARNING, event="lock_check_failed", error=str(exc))
            return False
        self._background = asyncio.create_task(self._refresh(trigger="initial"))
        log_event(logger, "Initial load triggered", event="refresh_triggered", trigger="initial")
        return True

    async def force_refresh(self) -> RefreshResult:
        """Admin trigger: clear the lock, skip the due check and run now.

        Raises:
            RefreshError: If the run stored no snapshot
        """
        self.lock.release(force=True)
        result = await self._refresh(trigger="admin")
        if not result.ok:
            raise RefreshError(result.reason or f"Refresh {result.status}")
        return result

    async def wait_for_background(self, timeout: float | None = None) -> RefreshResult | None:
        """Wait for the background initial load, if one was started."""
        if self._background is None:
            return None
        return await asyncio.wait_for(asyncio.shield(self._background), timeout)

    async def run_forever(self, stop_event: asyncio.Event | None = None) -> None:
        """Poll the due check every tick until stop_event is set."""
        stop_event = stop_event or asyncio.Event()
        log_event(
            logger,
            "Periodic trigger started",
            event="scheduler_start",
            interval_seconds=self.cfg.interval_seconds,
            tick_seconds=self.cfg.tick_seconds,
        )
        while not stop_event.is_set():
            await self.run_scheduled()
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.cfg.tick_seconds)
            except asyncio.TimeoutError:
                continue
        log_event(logger, "Periodic trigger stopped", event="scheduler_stop")

    def status(self) -> dict[str, Any]:
        last_run = self.cache.get_last_scheduled_run()
        return {
            "state": self.state.value,
            "interval": self.cfg.interval_seconds,
            "lastScheduledRun": last_run.isoformat() if last_run else None,
            "isWorking": self.is_working(),
            "isDue": self.is_due(),
        }

    async def _refresh(self, trigger: str) -> RefreshResult:
        started = time.monotonic()
        try:
            token = self.lock.acquire()
        except StoreError as exc:
            log_event(logger, "Lock acquire failed", level=logging.ERROR, event="refresh_failed", trigger=trigger, error=str(exc))
            return RefreshResult(status="failed", reason=str(exc))
        if token is None:
            log_event(logger, "Refresh already running", event="refresh_skipped", trigger=trigger, reason="locked")
            return RefreshResult(status="skipped", reason="refresh already in progress")

        self._running += 1
        log_event(logger, "Refresh start", event="refresh_start", trigger=trigger)
        try:
            report = await self.aggregate()
            duration = time.monotonic() - started
            if not report.articles:
                log_event(
                    logger,
                    "Refresh produced no articles, keeping previous snapshot",
                    level=logging.WARNING,
                    event="refresh_empty",
                    trigger=trigger,
                    sources_failed=len(report.failed),
                    duration_seconds=round(duration, 3),
                )
                return RefreshResult(status="empty", reason="no articles fetched", duration_seconds=duration, report=report)

            count = self.cache.put_snapshot(report.articles)
            self.cache.put_feed_status(report)
            self.cache.set_last_scheduled_run()
            duration = time.monotonic() - started
            log_event(
                logger,
                "Refresh done",
                event="refresh_done",
                trigger=trigger,
                articles=count,
                duration_seconds=round(duration, 3),
            )
            return RefreshResult(status="refreshed", articles_count=count, duration_seconds=duration, report=report)
        except Exception as exc:  # noqa: BLE001
            duration = time.monotonic() - started
            logger.error(
                "Refresh failed",
                exc_info=True,
                extra={
                    "event": "refresh_failed",
                    "trigger": trigger,
                    "error": f"{type(exc).__name__}: {exc}",
                    "duration_seconds": round(duration, 3),
                },
            )
            return RefreshResult(status="failed", reason=f"{type(exc).__name__}: {exc}", duration_seconds=duration)
        finally:
            self._running -= 1
            try:
                self.lock.release(token)
            except StoreError as exc:
                log_event(logger, "Lock release failed", level=logging.ERROR, event="lock_release_failed", error=str(exc))
