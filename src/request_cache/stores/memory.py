"""
Memory store implementations for request_cache.
"""
import time
from typing import Callable, Dict, Iterable, List, Optional

from ..types import (
    CacheEntry,
    CacheEntryStore,
    InFlightRequest,
    InFlightStore,
)


def _matches(key: str, prefixes: List[str]) -> bool:
    return any(key.startswith(prefix) for prefix in prefixes)


class MemoryCacheEntryStore(CacheEntryStore):
    """
    In-memory cache entry store.

    Expired entries are dropped lazily on access. There is no size bound:
    entries without a TTL live until they are invalidated.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._cache: Dict[str, CacheEntry] = {}
        self._clock = clock

    def _cleanup(self) -> None:
        """Remove expired entries."""
        now = self._clock()
        expired_keys = [
            key for key, entry in self._cache.items() if entry.is_expired(now)
        ]
        for key in expired_keys:
            del self._cache[key]

    def get(self, key: str) -> Optional[CacheEntry]:
        """Get a live entry by key."""
        entry = self._cache.get(key)
        if entry is None:
            return None

        if entry.is_expired(self._clock()):
            del self._cache[key]
            return None

        return entry

    def set(self, entry: CacheEntry) -> None:
        """Store an entry."""
        self._cache[entry.key] = entry

    def delete(self, key: str) -> bool:
        """Delete an entry."""
        if key in self._cache:
            del self._cache[key]
            return True
        return False

    def delete_prefixes(self, prefixes: Iterable[str]) -> List[str]:
        """Delete every entry whose key starts with one of the prefixes."""
        prefix_list = list(prefixes)
        removed = [key for key in self._cache if _matches(key, prefix_list)]
        for key in removed:
            del self._cache[key]
        return removed

    def clear(self) -> None:
        """Clear all entries."""
        self._cache.clear()

    def size(self) -> int:
        """Get current number of live entries."""
        self._cleanup()
        return len(self._cache)


class MemoryInFlightStore(InFlightStore):
    """
    In-memory store for tracking in-flight operations (singleflight).
    """

    def __init__(self) -> None:
        self._in_flight: Dict[str, InFlightRequest] = {}

    def get(self, key: str) -> Optional[InFlightRequest]:
        """Get an in-flight operation by key."""
        return self._in_flight.get(key)

    def set(self, key: str, request: InFlightRequest) -> None:
        """Register an in-flight operation."""
        self._in_flight[key] = request

    def discard(self, key: str, request: InFlightRequest) -> bool:
        """Remove the operation if it is still the registered one."""
        if self._in_flight.get(key) is request:
            del self._in_flight[key]
            return True
        return False

    def pop_prefixes(self, prefixes: Iterable[str]) -> List[InFlightRequest]:
        """Remove and return matching in-flight operations."""
        prefix_list = list(prefixes)
        keys = [key for key in self._in_flight if _matches(key, prefix_list)]
        return [self._in_flight.pop(key) for key in keys]

    def has(self, key: str) -> bool:
        """Check if an operation is in-flight."""
        return key in self._in_flight

    def size(self) -> int:
        """Get current number of in-flight operations."""
        return len(self._in_flight)

    def clear(self) -> None:
        """Clear all in-flight operations."""
        self._in_flight.clear()


def create_memory_cache_entry_store(
    clock: Callable[[], float] = time.monotonic,
) -> MemoryCacheEntryStore:
    """Create a memory cache entry store."""
    return MemoryCacheEntryStore(clock)


def create_memory_in_flight_store() -> MemoryInFlightStore:
    """Create a memory in-flight store."""
    return MemoryInFlightStore()
