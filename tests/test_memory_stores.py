"""
Tests for the in-memory cache and in-flight stores.
"""
import asyncio

import pytest

from request_cache import (
    CacheEntry,
    InFlightRequest,
    MemoryCacheEntryStore,
    MemoryInFlightStore,
    create_memory_cache_entry_store,
    create_memory_in_flight_store,
)


class FakeClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestMemoryCacheEntryStore:
    """Tests for MemoryCacheEntryStore."""

    @pytest.fixture
    def clock(self) -> FakeClock:
        return FakeClock()

    @pytest.fixture
    def store(self, clock: FakeClock) -> MemoryCacheEntryStore:
        return MemoryCacheEntryStore(clock)

    def test_get_returns_none_for_missing_key(self, store: MemoryCacheEntryStore) -> None:
        assert store.get("missing") is None

    def test_set_then_get(self, store: MemoryCacheEntryStore) -> None:
        store.set(CacheEntry(key="fetchCities:0:10:", value=[1, 2], created_at=100.0))

        entry = store.get("fetchCities:0:10:")
        assert entry is not None
        assert entry.value == [1, 2]

    def test_set_replaces_entry_under_same_key(self, store: MemoryCacheEntryStore) -> None:
        store.set(CacheEntry(key="k", value="first", created_at=100.0))
        store.set(CacheEntry(key="k", value="second", created_at=101.0))

        assert store.get("k").value == "second"
        assert store.size() == 1

    def test_entry_without_expiry_never_expires(
        self, store: MemoryCacheEntryStore, clock: FakeClock
    ) -> None:
        store.set(CacheEntry(key="k", value=1, created_at=100.0))
        clock.now = 1_000_000.0

        assert store.get("k") is not None

    def test_expired_entry_is_dropped_on_access(
        self, store: MemoryCacheEntryStore, clock: FakeClock
    ) -> None:
        """Should report an expired entry missing and remove it."""
        store.set(CacheEntry(key="k", value=1, created_at=100.0, expires_at=105.0))

        clock.now = 104.9
        assert store.get("k") is not None

        clock.now = 105.0
        assert store.get("k") is None
        assert store.size() == 0

    def test_size_ignores_expired_entries(
        self, store: MemoryCacheEntryStore, clock: FakeClock
    ) -> None:
        store.set(CacheEntry(key="a", value=1, created_at=100.0, expires_at=101.0))
        store.set(CacheEntry(key="b", value=2, created_at=100.0))
        clock.now = 102.0

        assert store.size() == 1

    def test_delete(self, store: MemoryCacheEntryStore) -> None:
        store.set(CacheEntry(key="k", value=1, created_at=100.0))

        assert store.delete("k") is True
        assert store.delete("k") is False

    def test_delete_prefixes_returns_removed_keys(self, store: MemoryCacheEntryStore) -> None:
        for key in ("fetchSportClubs:0:10:", "fetchSportClubs:1:10:", "fetchSportClub_1", "fetchCities:0:10:"):
            store.set(CacheEntry(key=key, value=key, created_at=100.0))

        removed = store.delete_prefixes(["fetchSportClubs", "fetchSportClub_1"])

        assert sorted(removed) == ["fetchSportClub_1", "fetchSportClubs:0:10:", "fetchSportClubs:1:10:"]
        assert store.get("fetchCities:0:10:") is not None

    def test_empty_prefix_matches_everything(self, store: MemoryCacheEntryStore) -> None:
        store.set(CacheEntry(key="a", value=1, created_at=100.0))
        store.set(CacheEntry(key="b", value=2, created_at=100.0))

        assert len(store.delete_prefixes([""])) == 2
        assert store.size() == 0

    def test_clear(self, store: MemoryCacheEntryStore) -> None:
        store.set(CacheEntry(key="a", value=1, created_at=100.0))
        store.clear()

        assert store.size() == 0

    def test_factory(self) -> None:
        assert isinstance(create_memory_cache_entry_store(), MemoryCacheEntryStore)


class TestMemoryInFlightStore:
    """Tests for MemoryInFlightStore."""

    @pytest.fixture
    def store(self) -> MemoryInFlightStore:
        return MemoryInFlightStore()

    async def test_set_get_has(self, store: MemoryInFlightStore) -> None:
        request = InFlightRequest(future=asyncio.get_running_loop().create_future())
        store.set("k", request)

        assert store.get("k") is request
        assert store.has("k") is True
        assert store.size() == 1

    async def test_discard_only_removes_the_registered_request(
        self, store: MemoryInFlightStore
    ) -> None:
        """A stale leader must not remove the request that replaced it."""
        loop = asyncio.get_running_loop()
        old = InFlightRequest(future=loop.create_future())
        new = InFlightRequest(future=loop.create_future())
        store.set("k", new)

        assert store.discard("k", old) is False
        assert store.get("k") is new

        assert store.discard("k", new) is True
        assert store.has("k") is False

    async def test_pop_prefixes(self, store: MemoryInFlightStore) -> None:
        loop = asyncio.get_running_loop()
        a = InFlightRequest(future=loop.create_future())
        b = InFlightRequest(future=loop.create_future())
        store.set("fetchNewsList:0:10:", a)
        store.set("fetchCities:0:10:", b)

        popped = store.pop_prefixes(["fetchNewsList"])

        assert popped == [a]
        assert store.has("fetchCities:0:10:") is True

    async def test_clear(self, store: MemoryInFlightStore) -> None:
        store.set("k", InFlightRequest(future=asyncio.get_running_loop().create_future()))
        store.clear()

        assert store.size() == 0

    def test_factory(self) -> None:
        assert isinstance(create_memory_in_flight_store(), MemoryInFlightStore)
