"""Cache stores for reconciled bundle state.

The engine only needs ``get`` and ``set``; any key-value backend (Redis,
memcached, a database table) can be plugged in by implementing
:class:`CacheStore`. :class:`MemoryCacheStore` is the in-process reference
implementation.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any, Protocol


class CacheStore(Protocol):
    """Protocol for a key-value cache with optional expiry."""

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if absent or expired."""
        ...

    def set(self, key: str, value: Any, ttl: float | None = None) -> bool:
        """Store a value, expiring after ``ttl`` seconds if given.

        Returns:
            True if the value was stored
        """
        ...


class MemoryCacheStore:
    """Thread-safe in-memory cache.

    Args:
        clock: Time source in seconds (injectable for tests)
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[Any, float | None]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl: float | None = None) -> bool:
        expires_at = self._clock() + ttl if ttl is not None else None
        with self._lock:
            self._entries[key] = (value, expires_at)
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
