"""
Keyed request execution with single-flight de-duplication and result caching.
"""
from .types import (
    ExecuteOptions,
    RetryPolicy,
    RequestCacheConfig,
    CacheEntry,
    InFlightRequest,
    CacheEntryStore,
    InFlightStore,
    SingleflightResult,
    RequestCacheEventType,
    RequestCacheEvent,
    RequestCacheEventListener,
)
from .singleflight import (
    Singleflight,
    create_singleflight,
)
from .executor import (
    RequestExecutor,
    create_request_executor,
    calculate_retry_delay,
    DEFAULT_REQUEST_CACHE_CONFIG,
    DEFAULT_RETRY_POLICY,
    merge_request_cache_config,
)
from .stores import (
    MemoryCacheEntryStore,
    MemoryInFlightStore,
    create_memory_cache_entry_store,
    create_memory_in_flight_store,
)


__all__ = [
    # Types
    "ExecuteOptions",
    "RetryPolicy",
    "RequestCacheConfig",
    "CacheEntry",
    "InFlightRequest",
    "CacheEntryStore",
    "InFlightStore",
    "SingleflightResult",
    "RequestCacheEventType",
    "RequestCacheEvent",
    "RequestCacheEventListener",
    # Singleflight
    "Singleflight",
    "create_singleflight",
    # Executor
    "RequestExecutor",
    "create_request_executor",
    "calculate_retry_delay",
    "DEFAULT_REQUEST_CACHE_CONFIG",
    "DEFAULT_RETRY_POLICY",
    "merge_request_cache_config",
    # Stores
    "MemoryCacheEntryStore",
    "MemoryInFlightStore",
    "create_memory_cache_entry_store",
    "create_memory_in_flight_store",
]

__version__ = "1.0.0"
