"""
Request coalescing (Singleflight) implementation.

When multiple callers ask for the same key concurrently, only one
operation actually executes - others wait and receive the same result.
"""
import asyncio
import logging
import time
from typing import Awaitable, Callable, Iterable, Optional, Set, TypeVar

from .types import (
    InFlightStore,
    InFlightRequest,
    SingleflightResult,
    RequestCacheEvent,
    RequestCacheEventType,
    RequestCacheEventListener,
)
from .stores.memory import MemoryInFlightStore

T = TypeVar("T")

logger = logging.getLogger("request_cache.singleflight")


class Singleflight:
    """
    Singleflight - coalescing of concurrent calls that share a key.

    Implements the "singleflight" pattern (popularized by Go's sync/singleflight):
    when several tasks request the same key simultaneously, only one
    operation is run and its outcome is shared with all waiters.

    Example:
        sf = Singleflight()

        # These 50 concurrent calls result in only 1 actual fetch
        async def fetch_clubs():
            return await sf.do("fetchSportClubs:0:10:", lambda: api.list(0, 10))

        results = await asyncio.gather(*[fetch_clubs() for _ in range(50)])

        print(results[0].shared)  # False (the leader)
        print(results[1].shared)  # True (joined existing)
    """

    def __init__(
        self,
        store: Optional[InFlightStore] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store or MemoryInFlightStore()
        self._clock = clock
        self._listeners: Set[RequestCacheEventListener] = set()

    async def do(
        self,
        key: str,
        fn: Callable[[], Awaitable[T]],
    ) -> SingleflightResult[T]:
        """
        Execute a function with request coalescing.

        If a call for the key is already in-flight, wait for it and share the result.
        Otherwise, execute the function and share the result with any later waiters.
        """
        existing = self._store.get(key)
        if existing:
            existing.subscribers += 1

            self._emit(
                RequestCacheEvent(
                    type=RequestCacheEventType.SINGLEFLIGHT_JOIN,
                    key=key,
                    timestamp=time.time(),
                    metadata={"subscribers": existing.subscribers},
                )
            )

            value = await asyncio.shield(existing.future)
            return SingleflightResult(
                value=value,
                shared=True,
                subscribers=existing.subscribers,
                invalidated=existing.invalidated,
            )

        loop = asyncio.get_running_loop()
        future: asyncio.Future[T] = loop.create_future()

        in_flight = InFlightRequest(
            future=future,
            subscribers=1,
            started_at=self._clock(),
        )

        self._store.set(key, in_flight)

        self._emit(
            RequestCacheEvent(
                type=RequestCacheEventType.SINGLEFLIGHT_LEAD,
                key=key,
                timestamp=time.time(),
            )
        )

        try:
            value = await fn()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as error:
            future.set_exception(error)
            # Mark the exception retrieved; joiners re-raise it on their own.
            future.exception()

            self._emit(
                RequestCacheEvent(
                    type=RequestCacheEventType.SINGLEFLIGHT_ERROR,
                    key=key,
                    timestamp=time.time(),
                    metadata={
                        "subscribers": in_flight.subscribers,
                        "error": str(error),
                    },
                )
            )
            raise
        finally:
            self._store.discard(key, in_flight)

        future.set_result(value)

        self._emit(
            RequestCacheEvent(
                type=RequestCacheEventType.SINGLEFLIGHT_COMPLETE,
                key=key,
                timestamp=time.time(),
                metadata={
                    "subscribers": in_flight.subscribers,
                    "duration_seconds": self._clock() - in_flight.started_at,
                },
            )
        )

        return SingleflightResult(
            value=value,
            shared=False,
            subscribers=in_flight.subscribers,
            invalidated=in_flight.invalidated,
        )

    def invalidate(self, prefixes: Iterable[str]) -> int:
        """
        Forget in-flight calls whose key starts with one of the prefixes.

        Running operations are not interrupted; their waiters still get the
        result, but the next call for the key starts a fresh operation.
        """
        removed = self._store.pop_prefixes(prefixes)
        for request in removed:
            request.invalidated = True
        return len(removed)

    def is_in_flight(self, key: str) -> bool:
        """Check if a key is currently in-flight."""
        return self._store.has(key)

    def get_subscribers(self, key: str) -> int:
        """Get the number of subscribers for an in-flight key."""
        existing = self._store.get(key)
        return existing.subscribers if existing else 0

    def get_stats(self) -> dict:
        """Get statistics about in-flight calls."""
        return {"in_flight": self._store.size()}

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
                logger.exception(f"Singleflight listener failed for {event.type.value}")

    def clear(self) -> None:
        """Clear all in-flight calls (use with caution)."""
        self.invalidate([""])

    def close(self) -> None:
        """Close and release resources."""
        self.clear()
        self._listeners.clear()


def create_singleflight(
    store: Optional[InFlightStore] = None,
) -> Singleflight:
    """Create a singleflight instance."""
    return Singleflight(store)
