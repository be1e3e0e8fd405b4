"""In-memory TTL cache used in front of the primary provider."""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Optional


@dataclass
class CacheEntry:
    value: Any
    inserted_at: float


class TTLCache:
    """
    Bounded key/value store with a fixed time-to-live per entry.

    - ``get`` returns ``None`` for keys that were never set and for expired
      keys alike. Expiry is lazy: an expired entry is dropped when it is read,
      there is no background sweep.
    - Eviction is LRU. A hit moves the key to the most-recent end, ``set``
      inserts at the most-recent end, and once ``max_entries`` is exceeded the
      least-recently used entry is evicted.
    - Every operation runs under one lock, so ``get``/``set`` are atomic per key.

    ``None`` cannot be cached; it is indistinguishable from a miss.
    """

    def __init__(
        self,
        ttl_seconds: float = 180.0,
        max_entries: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._store: "OrderedDict[Hashable, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def _is_valid(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.inserted_at < self.ttl_seconds

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                return None
            if not self._is_valid(entry, self._clock()):
                del self._store[key]
                self._misses += 1
                return None
            self._store.move_to_end(key)
            self._hits += 1
            return entry.value

    def set(self, key: Hashable, value: Any) -> None:
        if value is None:
            raise ValueError("None cannot be cached")
        with self._lock:
            self._store[key] = CacheEntry(value=value, inserted_at=self._clock())
            self._store.move_to_end(key)
            while len(self._store) > self.max_entries:
                self._store.popitem(last=False)
                self._evictions += 1

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            entry = self._store.get(key)
            return entry is not None and self._is_valid(entry, self._clock())

    def __len__(self) -> int:
        # Counts stored entries, including expired ones not yet read
        with self._lock:
            return len(self._store)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "entries": len(self._store),
                "max_entries": self.max_entries,
                "ttl_seconds": self.ttl_seconds,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }
