"""Introspection result caching.

The middleware depends only on the ``IntrospectionCache`` protocol; any
object with ``get`` and ``store`` works, so shared stores such as Redis
can be plugged in. ``MemoryCache`` is a thread-safe in-process store.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .models import IntrospectionResult


@runtime_checkable
class IntrospectionCache(Protocol):
    """Synchronous token -> result store with per-entry TTL."""

    def get(self, token: str) -> IntrospectionResult | None:
        """Return the cached result, or None if missing or expired."""
        ...

    def store(self, token: str, result: IntrospectionResult, ttl: float) -> None:
        """Store a result for ``ttl`` seconds."""
        ...


@runtime_checkable
class AsyncIntrospectionCache(Protocol):
    """Asynchronous token -> result store with per-entry TTL."""

    async def get(self, token: str) -> IntrospectionResult | None:
        """Return the cached result, or None if missing or expired."""
        ...

    async def store(self, token: str, result: IntrospectionResult, ttl: float) -> None:
        """Store a result for ``ttl`` seconds."""
        ...


class MemoryCache:
    """Thread-safe in-memory cache with per-entry TTL."""

    def __init__(self, *, max_entries: int | None = None) -> None:
        """Initialize memory cache.

        Args:
            max_entries: Optional bound; oldest entries are evicted first.
        """
        if max_entries is not None and max_entries <= 0:
            raise ValueError("max_entries must be positive")

        self.max_entries = max_entries
        self._entries: OrderedDict[str, tuple[IntrospectionResult, float]] = OrderedDict()
        self._lock = threading.RLock()

    def get(self, token: str) -> IntrospectionResult | None:
        with self._lock:
            entry = self._entries.get(token)
            if entry is None:
                return None

            result, expires_at = entry
            if time.monotonic() >= expires_at:
                del self._entries[token]
                return None

            return result

    def store(self, token: str, result: IntrospectionResult, ttl: float) -> None:
        with self._lock:
            self._entries.pop(token, None)
            self._entries[token] = (result, time.monotonic() + ttl)

            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    self._entries.popitem(last=False)

    def invalidate(self, token: str) -> None:
        """Drop the entry for a token, if any."""
        with self._lock:
            self._entries.pop(token, None)

    def clear(self) -> None:
        """Drop all entries."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
