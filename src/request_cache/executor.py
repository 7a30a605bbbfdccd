"""
Request executor: single-flight execution with keyed result caching.
"""
import asyncio
import logging
import time
from typing import TYPE_CHECKING, Awaitable, Callable, Iterable, Optional, Set, TypeVar

from .types import (
    CacheEntry,
    CacheEntryStore,
    ExecuteOptions,
    InFlightStore,
    RequestCacheConfig,
    RequestCacheEvent,
    RequestCacheEventListener,
    RequestCacheEventType,
    RetryPolicy,
)
from .singleflight import Singleflight
from .stores.memory import MemoryCacheEntryStore, MemoryInFlightStore

if TYPE_CHECKING:
    from loading_state import LoadingManager

T = TypeVar("T")

logger = logging.getLogger("request_cache.executor")


DEFAULT_RETRY_POLICY = RetryPolicy(
    max_attempts=1,
    base_delay_seconds=1.0,
    backoff_factor=2.0,
    max_delay_seconds=10.0,
    should_retry=None,
)

DEFAULT_REQUEST_CACHE_CONFIG = RequestCacheConfig(
    default_ttl_seconds=None,
    retry=DEFAULT_RETRY_POLICY,
)


def merge_request_cache_config(
    config: Optional[RequestCacheConfig] = None,
) -> RequestCacheConfig:
    """Merge user config with defaults."""
    if config is None:
        return RequestCacheConfig(
            default_ttl_seconds=DEFAULT_REQUEST_CACHE_CONFIG.default_ttl_seconds,
            retry=DEFAULT_RETRY_POLICY,
        )

    return RequestCacheConfig(
        default_ttl_seconds=config.default_ttl_seconds,
        retry=config.retry or DEFAULT_RETRY_POLICY,
    )


def calculate_retry_delay(policy: RetryPolicy, attempt: int) -> float:
    """Delay before the next attempt, `attempt` being the 1-based attempt that failed."""
    delay = policy.base_delay_seconds * (policy.backoff_factor ** (attempt - 1))
    return min(delay, policy.max_delay_seconds)


class RequestExecutor:
    """
    Executes keyed asynchronous operations with de-duplication and caching.

    For any key at most one underlying operation runs at a time; concurrent
    callers share its outcome. Successful results are cached under the key
    until they expire or are cleared by prefix.

    Example:
        executor = RequestExecutor()

        clubs = await executor.execute(
            lambda: api.list(0, 10, filters),
            "fetchSportClubs:0:10:name=Kairat",
        )

        # after a mutation
        executor.clear_cache(["fetchSportClub_", "fetchSportClubs"])
    """

    def __init__(
        self,
        config: Optional[RequestCacheConfig] = None,
        cache_store: Optional[CacheEntryStore] = None,
        in_flight_store: Optional[InFlightStore] = None,
        loading_manager: Optional["LoadingManager"] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._config = merge_request_cache_config(config)
        self._clock = clock
        self._sleep = sleep
        self._cache = cache_store or MemoryCacheEntryStore(clock)
        self._singleflight = Singleflight(in_flight_store or MemoryInFlightStore(), clock)
        self._loading = loading_manager
        self._listeners: Set[RequestCacheEventListener] = set()
        self._singleflight.on(self._emit)

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        key: str,
        options: Optional[ExecuteOptions] = None,
    ) -> T:
        """
        Run `operation` under `key`.

        1. Return a live cached value unless `force_refresh` is set.
        2. Join the in-flight operation for the key if there is one.
        3. Otherwise run the operation, caching its result on success
           unless `enable_cache` is False.
        """
        options = options or ExecuteOptions()

        if not options.force_refresh:
            entry = self._cache.get(key)
            if entry is not None:
                logger.debug(f"RequestExecutor.execute: cache hit key={key}")
                self._emit(
                    RequestCacheEvent(
                        type=RequestCacheEventType.CACHE_HIT,
                        key=key,
                        timestamp=time.time(),
                        metadata={"created_at": entry.created_at},
                    )
                )
                return entry.value

            self._emit(
                RequestCacheEvent(
                    type=RequestCacheEventType.CACHE_MISS,
                    key=key,
                    timestamp=time.time(),
                )
            )

        result = await self._singleflight.do(key, lambda: self._run(operation, key))

        if result.shared:
            return result.value

        if not options.enable_cache:
            return result.value

        if result.invalidated:
            logger.debug(f"RequestExecutor.execute: key={key} was cleared while running, result not cached")
            return result.value

        self._store(key, result.value, options.ttl_seconds)
        return result.value

    async def _run(self, operation: Callable[[], Awaitable[T]], key: str) -> T:
        """Run the leader's operation, with loading flag and retries."""
        if self._loading is None:
            return await self._run_with_retry(operation, key)

        async with self._loading.track(key):
            return await self._run_with_retry(operation, key)

    async def _run_with_retry(self, operation: Callable[[], Awaitable[T]], key: str) -> T:
        policy = self._config.retry or DEFAULT_RETRY_POLICY
        attempt = 1
        while True:
            try:
                return await operation()
            except Exception as error:
                if attempt >= policy.max_attempts:
                    raise
                if policy.should_retry is None or not policy.should_retry(error):
                    raise

                delay = calculate_retry_delay(policy, attempt)
                logger.info(
                    f"Retrying {key} in {delay:.2f}s (attempt {attempt}/{policy.max_attempts}): {error}"
                )
                self._emit(
                    RequestCacheEvent(
                        type=RequestCacheEventType.RETRY_WAIT,
                        key=key,
                        timestamp=time.time(),
                        metadata={"attempt": attempt, "delay_seconds": delay},
                    )
                )
                await self._sleep(delay)
                attempt += 1

    def _store(self, key: str, value: T, ttl_seconds: Optional[float]) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self._config.default_ttl_seconds
        now = self._clock()
        entry = CacheEntry(
            key=key,
            value=value,
            created_at=now,
            expires_at=now + ttl if ttl is not None else None,
        )
        self._cache.set(entry)

        self._emit(
            RequestCacheEvent(
                type=RequestCacheEventType.CACHE_STORE,
                key=key,
                timestamp=time.time(),
                metadata={"expires_at": entry.expires_at},
            )
        )

    def clear_cache(self, prefixes: Optional[Iterable[str]] = None) -> int:
        """
        Invalidate cached results and in-flight calls by key prefix.

        With no prefixes, everything is cleared. Returns the number of
        cache entries removed.
        """
        prefix_list = [""] if prefixes is None else list(prefixes)
        if not prefix_list:
            return 0

        removed = self._cache.delete_prefixes(prefix_list)
        dropped = self._singleflight.invalidate(prefix_list)

        logger.debug(
            f"RequestExecutor.clear_cache: prefixes={prefix_list} entries={len(removed)} in_flight={dropped}"
        )

        for key in removed:
            self._emit(
                RequestCacheEvent(
                    type=RequestCacheEventType.CACHE_INVALIDATE,
                    key=key,
                    timestamp=time.time(),
                )
            )

        return len(removed)

    def get_cached(self, key: str) -> Optional[CacheEntry]:
        """Get the live cache entry for a key, if any."""
        return self._cache.get(key)

    def is_in_flight(self, key: str) -> bool:
        """Check if an operation is running for the key."""
        return self._singleflight.is_in_flight(key)

    def get_stats(self) -> dict:
        """Get cache and in-flight statistics."""
        return {
            "cached": self._cache.size(),
            **self._singleflight.get_stats(),
        }

    def get_config(self) -> RequestCacheConfig:
        """Get configuration."""
        return self._config

    def on(self, listener: RequestCacheEventListener) -> Callable[[], None]:
        """Add event listener."""
        self._listeners.add(listener)
        return lambda: self._listeners.discard(listener)

    def off(self, listener: RequestCacheEventListener) -> None:
        """Remove event listener."""
        self._listeners.discard(listener)

    def _emit(self, event: RequestCacheEvent) -> None:
        """Emit an event to all listeners."""
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"RequestExecutor listener failed for {event.type.value}")

    def close(self) -> None:
        """Drop cached results, in-flight bookkeeping and listeners."""
        self._cache.clear()
        self._singleflight.close()
        self._listeners.clear()


def create_request_executor(
    config: Optional[RequestCacheConfig] = None,
    loading_manager: Optional["LoadingManager"] = None,
) -> RequestExecutor:
    """Create a request executor with in-memory stores."""
    return RequestExecutor(config, loading_manager=loading_manager)
