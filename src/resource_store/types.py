"""
Types for resource_store package.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Optional, Protocol, Tuple, TypeVar

from .filters import FilterParams
from .page import Page

T = TypeVar("T")
F = TypeVar("F", bound=FilterParams)


class StoreStatus(str, Enum):
    """Lifecycle of the last store action."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class ResourceState(Generic[T, F]):
    """
    Immutable snapshot of a resource store.

    A store replaces its state wholesale on every change; readers never see
    a partially applied update.
    """

    items: Tuple[T, ...] = ()
    current: Optional[T] = None
    page: int = 0
    page_size: int = 10
    total_elements: int = 0
    total_pages: int = 0
    filters: Optional[F] = None
    is_loading: bool = False
    error: Optional[str] = None
    status: StoreStatus = StoreStatus.IDLE


StateListener = Callable[[Any], None]
"""Callback receiving the new state after every replacement."""


class ResourceApi(Protocol[T, F]):
    """Endpoint adapter a ResourceStore drives."""

    async def list(self, page: int, size: int, filters: F) -> Page[T]:
        """Fetch one page."""
        ...

    async def get(self, id: int) -> T:
        """Fetch one entity."""
        ...

    async def create(self, data: Any) -> Any:
        """Create an entity; returns the backend response."""
        ...

    async def update(self, id: int, data: Any) -> Optional[T]:
        """Update an entity; returns the entity when the backend echoes it."""
        ...

    async def delete(self, id: int) -> None:
        """Delete an entity."""
        ...
