"""
Store implementations for request_cache.
"""
from .memory import (
    MemoryCacheEntryStore,
    MemoryInFlightStore,
    create_memory_cache_entry_store,
    create_memory_in_flight_store,
)

__all__ = [
    "MemoryCacheEntryStore",
    "MemoryInFlightStore",
    "create_memory_cache_entry_store",
    "create_memory_in_flight_store",
]
