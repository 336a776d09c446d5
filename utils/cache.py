from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional

from cachetools import TTLCache

from config import get_config_value

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0
DEFAULT_MAXSIZE = 1024


class AggregateCache:
    """In-process cache for aggregate reports.

    Entries live in a cachetools TTLCache, so they expire after the TTL and
    the store never holds more than `maxsize` reports. A cold key is
    computed once even when several requests ask for it together; its lock
    exists only while someone is computing or waiting on it.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        maxsize: int = DEFAULT_MAXSIZE,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._entries = TTLCache(maxsize=maxsize, ttl=ttl_seconds, timer=timer)
        self._lock = threading.Lock()
        # key -> [lock, number of threads holding or waiting on it]
        self._key_locks: Dict[str, List[Any]] = {}

    def __len__(self) -> int:
        with self._lock:
            self._entries.expire()
            return len(self._entries)

    @property
    def pending_keys(self) -> int:
        with self._lock:
            return len(self._key_locks)

    @contextmanager
    def _key_lock(self, key: str):
        with self._lock:
            slot = self._key_locks.get(key)
            if slot is None:
                slot = [threading.Lock(), 0]
                self._key_locks[key] = slot
            slot[1] += 1
        try:
            with slot[0]:
                yield
        finally:
            with self._lock:
                slot[1] -= 1
                if slot[1] == 0:
                    del self._key_locks[key]

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, value: Any) -> None:
        # TTLCache drops expired entries on every insert.
        with self._lock:
            self._entries[key] = value

    def get_or_create(self, key: str, factory: Callable[[], Any]) -> Any:
        value = self.get(key)
        if value is not None:
            return value
        with self._key_lock(key):
            value = self.get(key)
            if value is not None:
                return value
            logger.debug("Cache miss for %s", key)
            value = factory()
            self.set(key, value)
            return value

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> int:
        with self._lock:
            self._entries.expire()
            stale = [key for key in self._entries if key.startswith(prefix)]
            for key in stale:
                self._entries.pop(key, None)
        if stale:
            logger.debug("Invalidated %d cached reports under %s", len(stale), prefix)
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


_CACHE: Optional[AggregateCache] = None


def get_cache() -> AggregateCache:
    global _CACHE
    if _CACHE is None:
        _CACHE = AggregateCache(float(get_config_value("cache", "ttl_seconds", DEFAULT_TTL_SECONDS)))
    return _CACHE


def reset_cache() -> None:
    global _CACHE
    _CACHE = None
