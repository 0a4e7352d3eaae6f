"""
Key-value backends, the refresh lock and the article snapshot cache.
"""

from .cache import CacheStore
from .kv import FileKVStore, KeyValueStore, MemoryKVStore, build_store
from .lock import KVRefreshLock, RefreshLock

__all__ = [
    "CacheStore",
    "FileKVStore",
    "KVRefreshLock",
    "KeyValueStore",
    "MemoryKVStore",
    "RefreshLock",
    "build_store",
]
