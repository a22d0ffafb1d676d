"""Process-memory TTL store for recipe API responses."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Mapping, TypeVar

T = TypeVar('T')

Pagination = Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    payload: T
    timestamp: float
    pagination: Pagination | None = None


class TTLCacheStore(Generic[T]):
    """Mapping of cache key to the last successful payload stored under it.

    Freshness is decided by the caller's TTL at read time, so one store can
    serve queries with different TTL overrides. Entries are never evicted;
    concurrent writers to one key simply overwrite each other.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}

    def get(self, key: str) -> CacheEntry[T] | None:
        return self._entries.get(key)

    def is_fresh(self, entry: CacheEntry[T], ttl: float, now: float | None = None) -> bool:
        current = self._clock() if now is None else now
        return current - entry.timestamp <= ttl

    def get_fresh(self, key: str, ttl: float) -> CacheEntry[T] | None:
        entry = self._entries.get(key)
        if entry is None or not self.is_fresh(entry, ttl):
            return None
        return entry

    def set(self, key: str, payload: T, pagination: Pagination | None = None) -> CacheEntry[T]:
        entry = CacheEntry(payload=payload, timestamp=self._clock(), pagination=pagination)
        self._entries[key] = entry
        return entry

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
