"""Pytest configuration and fixtures for the data-layer tests."""
import asyncio
import math
from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

import httpx
import pytest
import respx
from pydantic import BaseModel

from api_client import AsyncApiClient, ClientConfig
from loading_state import LoadingManager
from request_cache import RequestExecutor
from resource_store import (
    AppError,
    ErrorCode,
    FilterParams,
    Page,
    ResourceStore,
    filter_field,
)

BASE_URL = "http://test.local/api/v1"


class Item(BaseModel):
    id: int
    name: str


@dataclass(frozen=True)
class ItemFilters(FilterParams):
    name: Optional[str] = filter_field()


class FakeItemApi:
    """
    In-memory ResourceApi with call counters.

    ``gates`` holds list requests whose name filter matches a key (and detail
    requests whose id matches a key) until the event is set.
    """

    def __init__(self, items: Iterable[Item] = (), echo_updates: bool = False):
        self.items: Dict[int, Item] = {item.id: item for item in items}
        self.calls: Counter = Counter()
        self.gates: Dict[Any, asyncio.Event] = {}
        self.failures: List[Exception] = []
        self.echo_updates = echo_updates

    async def _enter(self, op: str, gate_key: Any = None) -> None:
        self.calls[op] += 1
        await asyncio.sleep(0)
        gate = self.gates.get(gate_key)
        if gate is not None:
            await gate.wait()
        if self.failures:
            raise self.failures.pop(0)

    async def list(self, page: int, size: int, filters: ItemFilters) -> Page[Item]:
        await self._enter("list", filters.name)
        values = [
            item for _, item in sorted(self.items.items())
            if not filters.name or filters.name in item.name
        ]
        return Page[Item](
            content=values[page * size:(page + 1) * size],
            total_elements=len(values),
            total_pages=math.ceil(len(values) / size) if size else 0,
            number=page,
            size=size,
        )

    async def get(self, id: int) -> Item:
        await self._enter("get", id)
        if id not in self.items:
            raise AppError("Resource not found", ErrorCode.NOT_FOUND, 404)
        return self.items[id]

    async def create(self, data: Dict[str, Any]) -> Dict[str, int]:
        await self._enter("create")
        new_id = max(self.items, default=0) + 1
        self.items[new_id] = Item(id=new_id, **data)
        return {"id": new_id}

    async def update(self, id: int, data: Dict[str, Any]) -> Optional[Item]:
        await self._enter("update")
        self.items[id] = self.items[id].model_copy(update=data)
        return self.items[id] if self.echo_updates else None

    async def delete(self, id: int) -> None:
        await self._enter("delete")
        self.items.pop(id, None)


def make_items(count: int) -> List[Item]:
    return [Item(id=i, name=f"item-{i}") for i in range(1, count + 1)]


@pytest.fixture
def loading() -> LoadingManager:
    """Create a loading manager for testing."""
    return LoadingManager()


@pytest.fixture
def executor(loading: LoadingManager):
    """Create an executor wired to the loading manager."""
    ex = RequestExecutor(loading_manager=loading)
    yield ex
    ex.close()


@pytest.fixture
def api() -> FakeItemApi:
    return FakeItemApi(make_items(3))


@pytest.fixture
def store(api: FakeItemApi, executor: RequestExecutor, loading: LoadingManager) -> ResourceStore:
    return ResourceStore(
        entity="Item",
        plural="Items",
        api=api,
        executor=executor,
        filters=ItemFilters(),
        loading_manager=loading,
    )


@pytest.fixture
def router() -> respx.MockRouter:
    """respx router for the test backend; unmatched requests fail the test."""
    return respx.MockRouter(base_url=BASE_URL, assert_all_called=False)


@pytest.fixture
async def client(router: respx.MockRouter):
    """AsyncApiClient whose transport is the respx router."""
    transport = httpx.MockTransport(router.async_handler)
    api_client = AsyncApiClient(
        ClientConfig(base_url=BASE_URL, auth_token="test-token"),
        httpx_client=httpx.AsyncClient(transport=transport),
    )
    yield api_client
    await api_client.close()


def page_body(content: List[Dict[str, Any]], page: int = 0, size: int = 10, total: Optional[int] = None) -> Dict[str, Any]:
    """Backend page body in its camelCase wire shape."""
    total = len(content) if total is None else total
    return {
        "content": content,
        "totalElements": total,
        "totalPages": math.ceil(total / size) if size else 0,
        "number": page,
        "size": size,
        "numberOfElements": len(content),
        "first": page == 0,
        "last": (page + 1) * size >= total,
        "empty": not content,
    }


def recorder() -> Callable[..., None]:
    """Callable that appends its single argument to ``recorder.calls``."""
    calls: List[Any] = []

    def record(value: Any) -> None:
        calls.append(value)

    record.calls = calls  # type: ignore[attr-defined]
    return record
