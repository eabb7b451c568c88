"""Short-lived per-user cache of loaded rules.

Entries expire after a TTL and are dropped explicitly whenever the owner's
rules change, so a writer always sees its own edits.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, TypeVar

V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    value: V
    loaded_at: float


def is_stale(entry: CacheEntry, now: float, ttl: float) -> bool:
    """An entry is stale once ``ttl`` seconds have elapsed since it was loaded."""
    return now - entry.loaded_at >= ttl


class RuleCache(Generic[V]):
    """Key -> (value, load time) map with TTL expiry and explicit invalidation."""

    def __init__(self, ttl_seconds: float = 10.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry[V]] = {}

    def get(self, key: Hashable) -> V | None:
        """Return the cached value, or None when missing or expired."""
        entry = self._entries.get(key)
        if entry is None or is_stale(entry, self._clock(), self.ttl_seconds):
            return None
        return entry.value

    def set(self, key: Hashable, value: V) -> None:
        self._entries[key] = CacheEntry(value=value, loaded_at=self._clock())

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
