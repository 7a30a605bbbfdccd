"""
Tests for RequestExecutor.

Coverage includes:
- De-duplication of concurrent calls
- Cache hits, force refresh and enable_cache
- Prefix invalidation of cached and in-flight keys
- TTL expiry
- Retry with backoff
- Loading manager integration
"""
import asyncio
from typing import List

import pytest

from loading_state import LoadingManager
from request_cache import (
    ExecuteOptions,
    RequestCacheConfig,
    RequestCacheEvent,
    RequestCacheEventType,
    RequestExecutor,
    RetryPolicy,
    calculate_retry_delay,
    create_request_executor,
    merge_request_cache_config,
)


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class Counter:
    """Async operation that counts calls and can be held open."""

    def __init__(self, value="result"):
        self.calls = 0
        self.value = value
        self.release = asyncio.Event()
        self.release.set()

    async def __call__(self):
        self.calls += 1
        await self.release.wait()
        return f"{self.value}-{self.calls}"


class TestExecuteDedup:
    """Tests for single-flight behaviour of execute()."""

    async def test_concurrent_calls_run_operation_once(self, executor: RequestExecutor) -> None:
        op = Counter()
        op.release.clear()

        tasks = [asyncio.create_task(executor.execute(op, "fetchSportClubs:0:10:")) for _ in range(10)]
        await asyncio.sleep(0)
        assert executor.is_in_flight("fetchSportClubs:0:10:") is True

        op.release.set()
        results = await asyncio.gather(*tasks)

        assert op.calls == 1
        assert set(results) == {"result-1"}
        assert executor.is_in_flight("fetchSportClubs:0:10:") is False

    async def test_distinct_keys_run_separately(self, executor: RequestExecutor) -> None:
        op = Counter()

        await asyncio.gather(executor.execute(op, "a"), executor.execute(op, "b"))

        assert op.calls == 2

    async def test_failure_reaches_all_joiners_and_is_not_cached(
        self, executor: RequestExecutor
    ) -> None:
        calls = 0

        async def failing():
            nonlocal calls
            calls += 1
            await asyncio.sleep(0)
            raise RuntimeError("backend down")

        results = await asyncio.gather(
            *[executor.execute(failing, "k") for _ in range(3)],
            return_exceptions=True,
        )

        assert calls == 1
        assert all(isinstance(r, RuntimeError) for r in results)
        assert executor.get_cached("k") is None

        with pytest.raises(RuntimeError):
            await executor.execute(failing, "k")
        assert calls == 2


class TestExecuteCache:
    """Tests for result caching."""

    async def test_second_call_is_served_from_cache(self, executor: RequestExecutor) -> None:
        op = Counter()

        first = await executor.execute(op, "k")
        second = await executor.execute(op, "k")

        assert first == second == "result-1"
        assert op.calls == 1

    async def test_force_refresh_bypasses_cache_and_replaces_entry(
        self, executor: RequestExecutor
    ) -> None:
        op = Counter()
        await executor.execute(op, "k")

        refreshed = await executor.execute(op, "k", ExecuteOptions(force_refresh=True))

        assert refreshed == "result-2"
        assert executor.get_cached("k").value == "result-2"

    async def test_force_refresh_joins_in_flight_call(self, executor: RequestExecutor) -> None:
        op = Counter()
        op.release.clear()

        first = asyncio.create_task(executor.execute(op, "k"))
        await asyncio.sleep(0)
        second = asyncio.create_task(executor.execute(op, "k", ExecuteOptions(force_refresh=True)))
        await asyncio.sleep(0)
        op.release.set()

        assert await first == await second == "result-1"
        assert op.calls == 1

    async def test_enable_cache_false_stores_nothing(self, executor: RequestExecutor) -> None:
        op = Counter()

        await executor.execute(op, "createCity:abc", ExecuteOptions(enable_cache=False))
        await executor.execute(op, "createCity:abc", ExecuteOptions(enable_cache=False))

        assert op.calls == 2
        assert executor.get_cached("createCity:abc") is None

    async def test_none_result_is_cached(self, executor: RequestExecutor) -> None:
        calls = 0

        async def op():
            nonlocal calls
            calls += 1
            return None

        await executor.execute(op, "k")
        await executor.execute(op, "k")

        assert calls == 1

    async def test_get_stats(self, executor: RequestExecutor) -> None:
        await executor.execute(Counter(), "a")
        await executor.execute(Counter(), "b")

        assert executor.get_stats() == {"cached": 2, "in_flight": 0}


class TestClearCache:
    """Tests for clear_cache()."""

    async def test_clear_by_prefix(self, executor: RequestExecutor) -> None:
        for key in ("fetchCities:0:10:", "fetchCities:1:10:", "fetchCity_1", "fetchNewsList:0:10:"):
            await executor.execute(Counter(key), key)

        removed = executor.clear_cache(["fetchCities", "fetchCity_1"])

        assert removed == 3
        assert executor.get_cached("fetchCities:0:10:") is None
        assert executor.get_cached("fetchCity_1") is None
        assert executor.get_cached("fetchNewsList:0:10:") is not None

    async def test_clear_without_prefixes_clears_everything(self, executor: RequestExecutor) -> None:
        await executor.execute(Counter(), "a")
        await executor.execute(Counter(), "b")

        assert executor.clear_cache() == 2
        assert executor.get_stats()["cached"] == 0

    async def test_empty_prefix_list_clears_nothing(self, executor: RequestExecutor) -> None:
        await executor.execute(Counter(), "a")

        assert executor.clear_cache([]) == 0
        assert executor.get_cached("a") is not None

    async def test_next_call_after_clear_runs_operation(self, executor: RequestExecutor) -> None:
        op = Counter()
        await executor.execute(op, "fetchCity_1")

        executor.clear_cache(["fetchCity_1"])
        result = await executor.execute(op, "fetchCity_1")

        assert result == "result-2"
        assert op.calls == 2

    async def test_result_of_invalidated_call_is_not_cached(self, executor: RequestExecutor) -> None:
        """A read racing a mutation must not repopulate the cleared key."""
        op = Counter()
        op.release.clear()

        running = asyncio.create_task(executor.execute(op, "fetchCities:0:10:"))
        await asyncio.sleep(0)

        executor.clear_cache(["fetchCities"])
        assert executor.is_in_flight("fetchCities:0:10:") is False

        op.release.set()
        assert await running == "result-1"
        assert executor.get_cached("fetchCities:0:10:") is None

    async def test_invalidate_events(self, executor: RequestExecutor) -> None:
        events: List[RequestCacheEvent] = []
        await executor.execute(Counter(), "fetchCity_1")
        executor.on(events.append)

        executor.clear_cache(["fetchCity_"])

        assert [(e.type, e.key) for e in events] == [
            (RequestCacheEventType.CACHE_INVALIDATE, "fetchCity_1"),
        ]


class TestTtl:
    """Tests for cache expiry."""

    async def test_default_ttl_expires_entries(self) -> None:
        clock = FakeClock()
        executor = RequestExecutor(RequestCacheConfig(default_ttl_seconds=30), clock=clock)
        op = Counter()

        await executor.execute(op, "k")
        clock.now = 29.0
        await executor.execute(op, "k")
        assert op.calls == 1

        clock.now = 30.0
        await executor.execute(op, "k")
        assert op.calls == 2

    async def test_per_call_ttl_overrides_default(self) -> None:
        clock = FakeClock()
        executor = RequestExecutor(RequestCacheConfig(default_ttl_seconds=300), clock=clock)
        op = Counter()

        await executor.execute(op, "k", ExecuteOptions(ttl_seconds=5))

        assert executor.get_cached("k").expires_at == 5.0

    async def test_no_ttl_caches_until_cleared(self) -> None:
        clock = FakeClock()
        executor = RequestExecutor(clock=clock)
        op = Counter()

        await executor.execute(op, "k")
        clock.now = 10_000.0
        await executor.execute(op, "k")

        assert op.calls == 1


class TestRetry:
    """Tests for retry with exponential backoff."""

    @pytest.fixture
    def sleeps(self) -> List[float]:
        return []

    @pytest.fixture
    def retrying(self, sleeps: List[float]) -> RequestExecutor:
        async def fake_sleep(delay: float) -> None:
            sleeps.append(delay)

        policy = RetryPolicy(
            max_attempts=3,
            base_delay_seconds=1.0,
            backoff_factor=2.0,
            max_delay_seconds=10.0,
            should_retry=lambda error: isinstance(error, ConnectionError),
        )
        return RequestExecutor(RequestCacheConfig(retry=policy), sleep=fake_sleep)

    async def test_retries_until_success(self, retrying: RequestExecutor, sleeps: List[float]) -> None:
        attempts = 0

        async def flaky():
            nonlocal attempts
            attempts += 1
            if attempts < 3:
                raise ConnectionError("reset")
            return "ok"

        assert await retrying.execute(flaky, "k") == "ok"
        assert attempts == 3
        assert sleeps == [1.0, 2.0]

    async def test_gives_up_after_max_attempts(self, retrying: RequestExecutor, sleeps: List[float]) -> None:
        attempts = 0

        async def down():
            nonlocal attempts
            attempts += 1
            raise ConnectionError("reset")

        with pytest.raises(ConnectionError):
            await retrying.execute(down, "k")

        assert attempts == 3
        assert len(sleeps) == 2

    async def test_non_retryable_error_fails_immediately(
        self, retrying: RequestExecutor, sleeps: List[float]
    ) -> None:
        attempts = 0

        async def bad_request():
            nonlocal attempts
            attempts += 1
            raise ValueError("400")

        with pytest.raises(ValueError):
            await retrying.execute(bad_request, "k")

        assert attempts == 1
        assert sleeps == []

    async def test_retry_wait_event(self, retrying: RequestExecutor) -> None:
        events: List[RequestCacheEvent] = []
        retrying.on(events.append)
        attempts = 0

        async def flaky():
            nonlocal attempts
            attempts += 1
            if attempts == 1:
                raise ConnectionError("reset")
            return "ok"

        await retrying.execute(flaky, "k")

        waits = [e for e in events if e.type == RequestCacheEventType.RETRY_WAIT]
        assert len(waits) == 1
        assert waits[0].metadata == {"attempt": 1, "delay_seconds": 1.0}

    def test_calculate_retry_delay(self) -> None:
        policy = RetryPolicy(base_delay_seconds=1.0, backoff_factor=2.0, max_delay_seconds=5.0)

        assert calculate_retry_delay(policy, 1) == 1.0
        assert calculate_retry_delay(policy, 2) == 2.0
        assert calculate_retry_delay(policy, 3) == 4.0
        assert calculate_retry_delay(policy, 4) == 5.0


class TestLoadingIntegration:
    """Tests for loading flags raised by the executor."""

    async def test_flag_is_held_while_leader_runs(
        self, executor: RequestExecutor, loading: LoadingManager
    ) -> None:
        op = Counter()
        op.release.clear()
        seen: List[bool] = []
        loading.subscribe("fetchCity_1", seen.append)

        task = asyncio.create_task(executor.execute(op, "fetchCity_1"))
        await asyncio.sleep(0)
        assert loading.is_loading("fetchCity_1") is True
        assert loading.get_global_loading_state() is True

        op.release.set()
        await task

        assert loading.is_loading("fetchCity_1") is False
        assert seen == [True, False]

    async def test_flag_survives_leader_replaced_after_clear(
        self, executor: RequestExecutor, loading: LoadingManager
    ) -> None:
        first = Counter("first")
        first.release.clear()
        second = Counter("second")
        second.release.clear()

        first_task = asyncio.create_task(executor.execute(first, "k"))
        await asyncio.sleep(0)
        executor.clear_cache(["k"])
        second_task = asyncio.create_task(executor.execute(second, "k"))
        await asyncio.sleep(0)
        assert second.calls == 1

        first.release.set()
        await first_task

        assert executor.is_in_flight("k") is True
        assert loading.is_loading("k") is True
        assert loading.get_global_loading_state() is True

        second.release.set()
        assert await second_task == "second-1"
        assert loading.is_loading("k") is False
        assert loading.get_global_loading_state() is False

    async def test_cache_hit_does_not_toggle_flag(
        self, executor: RequestExecutor, loading: LoadingManager
    ) -> None:
        await executor.execute(Counter(), "k")
        seen: List[bool] = []
        loading.subscribe("k", seen.append)

        await executor.execute(Counter(), "k")

        assert seen == []

    async def test_flag_is_cleared_on_failure(
        self, executor: RequestExecutor, loading: LoadingManager
    ) -> None:
        async def failing():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await executor.execute(failing, "k")

        assert loading.get_global_loading_state() is False


class TestConfig:
    """Tests for config helpers."""

    def test_merge_defaults(self) -> None:
        config = merge_request_cache_config()

        assert config.default_ttl_seconds is None
        assert config.retry.max_attempts == 1

    def test_merge_keeps_user_values(self) -> None:
        policy = RetryPolicy(max_attempts=5)
        config = merge_request_cache_config(RequestCacheConfig(default_ttl_seconds=60, retry=policy))

        assert config.default_ttl_seconds == 60
        assert config.retry is policy

    def test_create_request_executor(self) -> None:
        loading = LoadingManager()
        executor = create_request_executor(loading_manager=loading)

        assert isinstance(executor, RequestExecutor)
        assert executor.get_config().retry.max_attempts == 1
