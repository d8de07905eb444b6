"""Explicit read-through cache for per-session reference data."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    value: Any
    loaded_at: float


class SessionCache:
    """Thread-safe TTL cache, created once per operator session.

    Args:
        ttl_seconds: Entry lifetime. Zero disables caching.
        clock: Monotonic clock, injectable for tests.
    """

    def __init__(self, ttl_seconds: float = 300.0, clock: Optional[Callable[[], float]] = None):
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.monotonic
        self._entries: Dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def get_or_load(self, key: str, loader: Callable[[], Any]) -> Any:
        """Return the cached value for ``key`` or load, store and return it.

        The loader runs outside the lock; concurrent misses may load twice and
        the last writer wins.
        """
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and now - entry.loaded_at < self.ttl_seconds:
                return entry.value

        value = loader()
        with self._lock:
            self._entries[key] = _Entry(value=value, loaded_at=self._clock())
        logger.debug("Cache loaded '%s'", key)
        return value

    def invalidate(self, key: Optional[str] = None) -> None:
        """Drop one key, or everything when ``key`` is None."""
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and self._clock() - entry.loaded_at < self.ttl_seconds
