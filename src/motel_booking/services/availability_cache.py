"""In-process availability cache: LRU bounded, TTL expiring, property tagged.

Availability results may be served stale for at most ``ttl_seconds``; booking
mutations on a property invalidate that property's entries right away.
Creating a booking always re-checks the room calendars, so a stale entry can
only overstate availability, never cause a double booking.
"""

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Generic, Hashable, TypeVar

V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    value: V
    expires_at: float
    property_id: str


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    invalidations: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


@dataclass
class AvailabilityCache(Generic[V]):
    """Thread-safe TTL + LRU cache keyed by availability query."""

    ttl_seconds: float = 30.0
    max_entries: int = 512
    clock: Callable[[], float] = time.monotonic
    stats: CacheStats = field(default_factory=CacheStats)
    _entries: "OrderedDict[Hashable, CacheEntry[V]]" = field(default_factory=OrderedDict)
    _by_property: dict[str, set[Hashable]] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    def get(self, key: Hashable) -> V | None:
        """Return the cached value, or None on a miss or expired entry."""
        if not self.enabled:
            return None
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.stats.misses += 1
                return None
            if self.clock() >= entry.expires_at:
                self._drop(key)
                self.stats.misses += 1
                return None
            self._entries.move_to_end(key)
            self.stats.hits += 1
            return entry.value

    def put(self, key: Hashable, value: V, property_id: str) -> None:
        if not self.enabled:
            return
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_entries:
                oldest = next(iter(self._entries))
                self._drop(oldest)
                self.stats.evictions += 1
            self._entries[key] = CacheEntry(
                value=value,
                expires_at=self.clock() + self.ttl_seconds,
                property_id=property_id,
            )
            self._entries.move_to_end(key)
            self._by_property.setdefault(property_id, set()).add(key)

    def invalidate_property(self, property_id: str) -> int:
        """Drop every entry of a property. Returns the number dropped."""
        with self._lock:
            keys = self._by_property.pop(property_id, set())
            count = 0
            for key in keys:
                if self._entries.pop(key, None) is not None:
                    count += 1
            self.stats.invalidations += count
            return count

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._by_property.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def _drop(self, key: Hashable) -> None:
        entry = self._entries.pop(key, None)
        if entry is None:
            return
        keys = self._by_property.get(entry.property_id)
        if keys is not None:
            keys.discard(key)
            if not keys:
                del self._by_property[entry.property_id]
