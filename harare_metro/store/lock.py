"""
Refresh lock over a key-value store.

The lock key holds ``{"token": ..., "acquiredAt": ...}`` with a short TTL so
a crashed holder cannot block refreshes for longer than the TTL. Its
presence is the only signal that a refresh is in progress.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
import logging
import time
import uuid
from typing import Callable

from ..utils.logging import get_logger, log_event
from .kv import Clock, KeyValueStore

logger = get_logger("lock")

REFRESH_LOCK_KEY = "cache:refresh_lock"
SCHEDULED_LOCK_KEY = "cache:scheduled_lock"
DEFAULT_LOCK_TTL_SECONDS = 30 * 60


class RefreshLock(ABC):
    """Mutual exclusion for refresh runs.

    Ownership belongs to an acquisition, not to the lock object: ``acquire``
    hands back a token and only that token can release the lock.
    """

    @abstractmethod
    def acquire(self) -> str | None:
        """Try to take the lock. Returns the owner token, or None when someone else holds it."""

    @abstractmethod
    def release(self, token: str | None = None, force: bool = False) -> bool:
        """Release the lock held by ``token``; ``force`` clears it whoever holds it.

        Returns True when the lock key was removed.
        """

    @abstractmethod
    def is_held(self) -> bool:
        """Return True while any holder has the lock."""


class KVRefreshLock(RefreshLock):
    """Token lock over a KeyValueStore.

    On stores that can create keys atomically the write is a compare-and-swap
    and two acquires can never both succeed. On other stores the write is
    followed by a re-read, and the lock is only considered taken when the
    re-read returns the token just written.

    The instance keeps no owner state, so one instance can be shared by
    every trigger in a process.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = REFRESH_LOCK_KEY,
        ttl_seconds: float = DEFAULT_LOCK_TTL_SECONDS,
        clock: Clock | None = None,
        token_factory: Callable[[], str] | None = None,
    ):
        self.store = store
        self.key = key
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.time
        self._token_factory = token_factory or (lambda: uuid.uuid4().hex)

    def acquire(self) -> str | None:
        if self.store.get(self.key) is not None:
            log_event(logger, "Lock busy", level=logging.DEBUG, event="lock_busy", key=self.key)
            return None

        token = self._token_factory()
        payload = {
            "token": token,
            "acquiredAt": datetime.fromtimestamp(self._clock(), timezone.utc).isoformat(),
        }
        if self.store.atomic_put_if_absent:
            if not self.store.put_if_absent(self.key, payload, self.ttl_seconds):
                log_event(logger, "Lock lost race", level=logging.DEBUG, event="lock_busy", key=self.key)
                return None
        else:
            self.store.put(self.key, payload, self.ttl_seconds)

        if self.holder() != token:
            log_event(logger, "Lock lost race", level=logging.DEBUG, event="lock_busy", key=self.key)
            return None

        log_event(logger, "Lock acquired", level=logging.DEBUG, event="lock_acquired", key=self.key)
        return token

    def release(self, token: str | None = None, force: bool = False) -> bool:
        current = self.store.get(self.key, as_json=True)
        if current is None:
            return False
        holder = current.get("token") if isinstance(current, dict) else None
        if not force and (token is None or holder != token):
            log_event(
                logger,
                "Lock held by another owner, not released",
                level=logging.WARNING,
                event="lock_release_skipped",
                key=self.key,
            )
            return False
        self.store.delete(self.key)
        log_event(logger, "Lock released", level=logging.DEBUG, event="lock_released", key=self.key, forced=force)
        return True

    def is_held(self) -> bool:
        return self.store.get(self.key) is not None

    def holder(self) -> str | None:
        """Return the token of the current holder, if any."""
        info = self.info()
        return info.get("token") if info else None

    def info(self) -> dict | None:
        """Return the stored lock payload, if any."""
        current = self.store.get(self.key, as_json=True)
        return current if isinstance(current, dict) else None
