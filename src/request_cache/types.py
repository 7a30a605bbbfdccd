"""
Types for request_cache package.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, TypeVar
import asyncio

T = TypeVar("T")


@dataclass
class ExecuteOptions:
    """Per-call options for RequestExecutor.execute()."""

    enable_cache: bool = True
    """Store the result under the key on success."""

    force_refresh: bool = False
    """Skip the cache lookup. In-flight calls for the key are still joined."""

    ttl_seconds: Optional[float] = None
    """TTL for the stored result. None falls back to the executor default."""


@dataclass
class RetryPolicy:
    """Retry policy applied by the leader of a single-flight call."""

    max_attempts: int = 1
    """Total attempts including the first one. Default: 1 (no retry)"""

    base_delay_seconds: float = 1.0
    """Delay before the second attempt (seconds). Default: 1.0"""

    backoff_factor: float = 2.0
    """Multiplier applied to the delay after every failed attempt. Default: 2.0"""

    max_delay_seconds: float = 10.0
    """Upper bound for a single delay (seconds). Default: 10.0"""

    should_retry: Optional[Callable[[Exception], bool]] = None
    """Predicate deciding whether a failure is worth another attempt."""


@dataclass
class RequestCacheConfig:
    """Executor configuration."""

    default_ttl_seconds: Optional[float] = None
    """TTL for cached results when the call does not set one. None caches until cleared."""

    retry: Optional[RetryPolicy] = None
    """Retry policy for leaders."""


@dataclass
class CacheEntry(Generic[T]):
    """Cached result of an operation."""

    key: str
    """Operation key supplied by the caller."""

    value: T
    """The cached result."""

    created_at: float
    """When the entry was stored (clock seconds)."""

    expires_at: Optional[float] = None
    """When the entry expires (clock seconds). None never expires."""

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and self.expires_at <= now


@dataclass
class InFlightRequest(Generic[T]):
    """In-flight operation tracker for singleflight."""

    future: "asyncio.Future[T]"
    """Future that resolves when the leader settles."""

    subscribers: int = 1
    """Number of callers waiting for this operation."""

    started_at: float = 0
    """When the operation was started (clock seconds)."""

    invalidated: bool = False
    """Set when the key was cleared while the operation was running."""


class CacheEntryStore(ABC):
    """Cache entry store interface."""

    @abstractmethod
    def get(self, key: str) -> Optional[CacheEntry]:
        """Get a live entry by key. Expired entries are dropped and reported missing."""
        pass

    @abstractmethod
    def set(self, entry: CacheEntry) -> None:
        """Store an entry, replacing any entry under the same key."""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete an entry."""
        pass

    @abstractmethod
    def delete_prefixes(self, prefixes: Iterable[str]) -> List[str]:
        """Delete every entry whose key starts with one of the prefixes."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Clear all entries."""
        pass

    @abstractmethod
    def size(self) -> int:
        """Get current number of live entries."""
        pass


class InFlightStore(ABC):
    """Store interface for tracking in-flight operations."""

    @abstractmethod
    def get(self, key: str) -> Optional[InFlightRequest]:
        """Get an in-flight operation by key."""
        pass

    @abstractmethod
    def set(self, key: str, request: InFlightRequest) -> None:
        """Register an in-flight operation."""
        pass

    @abstractmethod
    def discard(self, key: str, request: InFlightRequest) -> bool:
        """Remove the operation only if it is still the one registered under key."""
        pass

    @abstractmethod
    def pop_prefixes(self, prefixes: Iterable[str]) -> List[InFlightRequest]:
        """Remove and return every operation whose key starts with one of the prefixes."""
        pass

    @abstractmethod
    def has(self, key: str) -> bool:
        """Check if an operation is in-flight."""
        pass

    @abstractmethod
    def size(self) -> int:
        """Get current number of in-flight operations."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Clear all in-flight operations."""
        pass


@dataclass
class SingleflightResult(Generic[T]):
    """Result of a singleflight operation."""

    value: T
    """The result value."""

    shared: bool
    """Whether this was from a shared/coalesced call."""

    subscribers: int
    """Number of callers that shared this result."""

    invalidated: bool = False
    """Whether the key was cleared while the operation ran."""


class RequestCacheEventType(str, Enum):
    """Event types for request cache operations."""

    CACHE_HIT = "cache:hit"
    CACHE_MISS = "cache:miss"
    CACHE_STORE = "cache:store"
    CACHE_INVALIDATE = "cache:invalidate"
    SINGLEFLIGHT_JOIN = "singleflight:join"
    SINGLEFLIGHT_LEAD = "singleflight:lead"
    SINGLEFLIGHT_COMPLETE = "singleflight:complete"
    SINGLEFLIGHT_ERROR = "singleflight:error"
    RETRY_WAIT = "retry:wait"


@dataclass
class RequestCacheEvent:
    """Request cache event."""

    type: RequestCacheEventType
    key: str
    timestamp: float
    metadata: Dict[str, Any] = field(default_factory=dict)


RequestCacheEventListener = Callable[[RequestCacheEvent], None]
"""Event listener type."""
