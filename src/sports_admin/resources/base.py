"""
Shared pieces of the entity endpoint adapters.
"""
from typing import Any, ClassVar, Generic, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from api_client import AsyncApiClient
from resource_store import FilterParams, Page, parse_page


M = TypeVar("M", bound=BaseModel)
F = TypeVar("F", bound=FilterParams)


class ApiModel(BaseModel):
    """Backend payload: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class CreatedResponse(ApiModel):
    """``{"id": ...}`` body returned by most create and update endpoints."""

    id: int


def parse_echo(model: Type[M], data: Any) -> Optional[M]:
    """
    Parse an update response that may or may not echo the entity.

    A bare ``{"id": ...}`` (or an empty body) yields None; anything with more
    fields must validate as ``model``.
    """
    if not isinstance(data, dict) or not set(data) - {"id"}:
        return None
    return model.model_validate(data)


class EntityApi(Generic[M, F]):
    """
    CRUD endpoint adapter for one entity.

    Reads go to the public endpoints, writes to the admin collection:

    - ``GET  {public_path}?page=&size=&<filters>``
    - ``GET  {public_path}/{id}``
    - ``POST {admin_path}``
    - ``PUT  {admin_path}/{id}``
    - ``DELETE {admin_path}/{id}``
    """

    model: ClassVar[Type[BaseModel]]
    public_path: ClassVar[str]
    admin_path: ClassVar[str]

    def __init__(self, client: AsyncApiClient):
        self._client = client

    def page_query(self, page: int, size: int, filters: F) -> List[Tuple[str, Any]]:
        return [("page", page), ("size", size), *filters.to_query()]

    async def list(self, page: int, size: int, filters: F) -> Page[M]:
        data = await self._client.get(self.public_path, query=self.page_query(page, size, filters))
        return parse_page(self.model, data)

    async def get(self, id: int) -> M:
        data = await self._client.get(f"{self.public_path}/{id}")
        return self.model.model_validate(data)

    async def create(self, data: Any) -> Any:
        return await self._client.post(self.admin_path, json=data)

    async def update(self, id: int, data: Any) -> Optional[M]:
        response = await self._client.put(f"{self.admin_path}/{id}", json=data)
        return parse_echo(self.model, response)

    async def delete(self, id: int) -> None:
        await self._client.delete(f"{self.admin_path}/{id}")
