"""
Key-value storage backends.

The cache store, the refresh lock and the catalogue all sit on top of a
small key-value contract (get / put with TTL / delete / put_if_absent).
Two backends are provided:
1. MemoryKVStore: in-process dict with TTLs measured by an injected clock
2. FileKVStore: one JSON envelope per key under a directory

Values are strings; non-string values are JSON encoded on write and can be
decoded on read with ``as_json=True``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import hashlib
import json
import os
from pathlib import Path
import threading
import time
from typing import Any, Callable

from ..config import CacheConfig
from ..errors import StoreError

Clock = Callable[[], float]


class KeyValueStore(ABC):
    """Abstract key-value contract.

    Subclasses that can create a key atomically set ``atomic_put_if_absent``
    so callers (the refresh lock) can rely on compare-and-swap semantics.
    """

    atomic_put_if_absent = False

    @abstractmethod
    def get(self, key: str, as_json: bool = False) -> Any:
        """Return the value for key, or None when missing or expired."""

    @abstractmethod
    def put(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        """Store value under key, optionally expiring after ttl_seconds."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key; missing keys are ignored."""

    @abstractmethod
    def list_keys(self, prefix: str = "") -> list[str]:
        """Return live keys starting with prefix."""

    def put_if_absent(self, key: str, value: Any, ttl_seconds: float | None = None) -> bool:
        """Store value only if key is missing. Returns True when written.

        The base implementation is a read followed by a write and is not atomic.
        """
        if self.get(key) is not None:
            return False
        self.put(key, value, ttl_seconds)
        return True


def _encode(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, default=str)


def _decode(raw: str | None, as_json: bool) -> Any:
    if raw is None or not as_json:
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise StoreError(f"Stored value is not valid JSON: {exc}") from exc


class MemoryKVStore(KeyValueStore):
    """In-process store. Entries expire lazily when read after their deadline."""

    atomic_put_if_absent = True

    def __init__(self, clock: Clock | None = None):
        self._clock = clock or time.time
        self._data: dict[str, tuple[str, float | None]] = {}
        self._mutex = threading.Lock()

    def _live(self, key: str) -> str | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    def _deadline(self, ttl_seconds: float | None) -> float | None:
        return self._clock() + ttl_seconds if ttl_seconds else None

    def get(self, key: str, as_json: bool = False) -> Any:
        with self._mutex:
            raw = self._live(key)
        return _decode(raw, as_json)

    def put(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        with self._mutex:
            self._data[key] = (_encode(value), self._deadline(ttl_seconds))

    def delete(self, key: str) -> None:
        with self._mutex:
            self._data.pop(key, None)

    def list_keys(self, prefix: str = "") -> list[str]:
        with self._mutex:
            return [key for key in list(self._data) if key.startswith(prefix) and self._live(key) is not None]

    def put_if_absent(self, key: str, value: Any, ttl_seconds: float | None = None) -> bool:
        with self._mutex:
            if self._live(key) is not None:
                return False
            self._data[key] = (_encode(value), self._deadline(ttl_seconds))
            return True


class FileKVStore(KeyValueStore):
    """Directory-backed store.

    Each key lives in ``<sha256(key)>.json`` holding
    ``{"key": ..., "value": ..., "expires_at": ...}``. Writes go through a
    temporary file and ``os.replace``; ``put_if_absent`` hard-links the
    temporary file into place so concurrent processes cannot both claim a key.
    """

    atomic_put_if_absent = True

    def __init__(self, directory: Path, clock: Clock | None = None):
        self.directory = Path(directory)
        self._clock = clock or time.time
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreError(f"Cannot create store directory {self.directory}: {exc}") from exc

    def _path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.directory / f"{digest}.json"

    def _envelope(self, key: str, value: Any, ttl_seconds: float | None) -> str:
        expires_at = self._clock() + ttl_seconds if ttl_seconds else None
        return json.dumps({"key": key, "value": _encode(value), "expires_at": expires_at}, ensure_ascii=False)

    def _read_envelope(self, path: Path) -> dict[str, Any] | None:
        try:
            with open(path, "r", encoding="utf-8") as f:
                envelope = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreError(f"Cannot read {path}: {exc}") from exc
        expires_at = envelope.get("expires_at")
        if expires_at is not None and self._clock() >= expires_at:
            self._unlink(path)
            return None
        return envelope

    def _unlink(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise StoreError(f"Cannot delete {path}: {exc}") from exc

    def get(self, key: str, as_json: bool = False) -> Any:
        envelope = self._read_envelope(self._path(key))
        if envelope is None:
            return None
        return _decode(envelope.get("value"), as_json)

    def put(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(f".{os.getpid()}.{threading.get_ident()}.tmp")
        try:
            tmp_path.write_text(self._envelope(key, value, ttl_seconds), encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as exc:
            raise StoreError(f"Cannot write {path}: {exc}") from exc

    def delete(self, key: str) -> None:
        self._unlink(self._path(key))

    def list_keys(self, prefix: str = "") -> list[str]:
        keys: list[str] = []
        for path in sorted(self.directory.glob("*.json")):
            envelope = self._read_envelope(path)
            if envelope is None:
                continue
            key = envelope.get("key", "")
            if key.startswith(prefix):
                keys.append(key)
        return keys

    def put_if_absent(self, key: str, value: Any, ttl_seconds: float | None = None) -> bool:
        path = self._path(key)
        # An expired envelope is removed here so the exclusive create can succeed
        self._read_envelope(path)
        tmp_path = path.with_suffix(f".{os.getpid()}.{threading.get_ident()}.tmp")
        try:
            tmp_path.write_text(self._envelope(key, value, ttl_seconds), encoding="utf-8")
            # link() fails if the target exists, and readers never see a partial file
            os.link(tmp_path, path)
        except FileExistsError:
            return False
        except OSError as exc:
            raise StoreError(f"Cannot create {path}: {exc}") from exc
        finally:
            tmp_path.unlink(missing_ok=True)
        return True


def build_store(cfg: CacheConfig, name: str, clock: Clock | None = None) -> KeyValueStore:
    """Create the backend named by ``cfg.backend`` for one logical namespace.

    Args:
        cfg: Cache configuration
        name: Namespace ("news", "content", "config"); the file backend uses
              it as a sub-directory
        clock: Optional time source used for TTLs

    Raises:
        StoreError: If the backend is unknown or cannot be initialised
    """
    backend = cfg.backend.lower()
    if backend == "memory":
        return MemoryKVStore(clock=clock)
    if backend == "file":
        return FileKVStore(Path(cfg.directory) / name, clock=clock)
    raise StoreError(f"Unknown cache backend: {cfg.backend}")
