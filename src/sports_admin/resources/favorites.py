"""
Favorites of the signed-in user.

Favorites are listed per entity type (``GET /favorites/{entityType}``) and
removed by (entity type, entity id), not by favorite id. The store keeps two
extra maps next to the list: a per-entity favorite status and per-type
counts.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from resource_store import (
    AppError,
    ErrorCode,
    FilterParams,
    Page,
    ResourceState,
    ResourceStore,
    UnexpectedResponseError,
    filter_field,
    parse_page,
)
from resource_store.store import NO_CACHE
from resource_store.store import entity_id as id_of

from .base import ApiModel, EntityApi


class EntityType(str, Enum):
    TEAM = "TEAM"
    TOURNAMENT = "TOURNAMENT"
    PLAYGROUND = "PLAYGROUND"
    MATCH = "MATCH"
    PLAYER = "PLAYER"
    SPORT_CLUB = "SPORT_CLUB"


class Favorite(ApiModel):
    id: int
    entity_type: EntityType
    entity_id: int
    created_at: Optional[datetime] = None


class AddFavoriteRequest(ApiModel):
    entity_id: int
    entity_type: EntityType


@dataclass(frozen=True)
class FavoriteFilters(FilterParams):
    # Path parameter of the list endpoint, not a query parameter.
    entity_type: Optional[EntityType] = filter_field(query=False)


def status_key(entity_type: EntityType, entity_id: int) -> str:
    return f"{EntityType(entity_type).value}:{entity_id}"


@dataclass(frozen=True)
class FavoriteState(ResourceState):
    """ResourceState plus favorite flags keyed ``TYPE:id`` and counts keyed by type."""

    favorite_status: Mapping[str, bool] = field(default_factory=dict)
    counts: Mapping[str, int] = field(default_factory=dict)


class FavoriteApi(EntityApi[Favorite, FavoriteFilters]):
    model = Favorite
    public_path = "/favorites"
    admin_path = "/favorites"

    async def list(self, page: int, size: int, filters: FavoriteFilters) -> Page[Favorite]:
        if filters.entity_type is None:
            raise AppError("Entity type is required to list favorites", ErrorCode.VALIDATION_ERROR)
        data = await self._client.get(
            f"/favorites/{EntityType(filters.entity_type).value}",
            query=self.page_query(page, size, filters),
        )
        return parse_page(Favorite, data)

    async def create(self, data: Any) -> Favorite:
        response = await self._client.post("/favorites", json=data)
        return Favorite.model_validate(response)

    async def remove(self, entity_type: EntityType, entity_id: int) -> None:
        await self._client.delete(f"/favorites/{EntityType(entity_type).value}/{entity_id}")

    async def check_status(self, entity_type: EntityType, entity_id: int) -> bool:
        data = await self._client.get(f"/favorites/{EntityType(entity_type).value}/{entity_id}/status")
        if not isinstance(data, bool):
            raise UnexpectedResponseError()
        return data

    async def batch_check(self, entity_type: EntityType, entity_ids: List[int]) -> Dict[int, bool]:
        data = await self._client.post(
            f"/favorites/{EntityType(entity_type).value}/batch-check",
            json=list(entity_ids),
        )
        if not isinstance(data, dict):
            raise UnexpectedResponseError()
        return {int(key): bool(value) for key, value in data.items()}

    async def count(self, entity_type: EntityType) -> int:
        data = await self._client.get(f"/favorites/{EntityType(entity_type).value}/count")
        if isinstance(data, bool) or not isinstance(data, int):
            raise UnexpectedResponseError()
        return data


class FavoriteStore(ResourceStore[Favorite, FavoriteFilters]):
    """
    Favorites store.

    ``fetch_one`` and ``delete`` work on favorite ids and resolve them
    against the loaded list, since the backend addresses favorites by entity.
    Status and count lookups raise AppError on failure, like mutations.
    """

    state_class = FavoriteState
    _api: FavoriteApi

    def __init__(self, api: FavoriteApi, executor, **options):
        options.setdefault("filters", FavoriteFilters())
        super().__init__(entity="Favorite", plural="Favorites", api=api, executor=executor, **options)

    def _find(self, id: int) -> Favorite:
        for item in self._state.items:
            if id_of(item) == id:
                return item
        raise AppError("Favorite not found", ErrorCode.NOT_FOUND, 404)

    async def _detail_call(self, id: Any) -> Favorite:
        return self._find(id)

    async def _delete_call(self, id: Any) -> None:
        favorite = self._find(id)
        await self._api.remove(favorite.entity_type, favorite.entity_id)

    def _entity_prefixes(self, entity_type: EntityType, entity_id: int) -> List[str]:
        # The list prefix also covers the per-type counts.
        return [self.list_prefix, f"fetchFavoriteStatus_{EntityType(entity_type).value}_{entity_id}"]

    def _with_status(self, flags: Mapping[str, bool]) -> Dict[str, bool]:
        merged = dict(self._state.favorite_status)
        merged.update(flags)
        return merged

    def _after_create(self, data: Any, result: Any) -> None:
        request = data if isinstance(data, AddFavoriteRequest) else AddFavoriteRequest.model_validate(data)
        self._executor.clear_cache(self._entity_prefixes(request.entity_type, request.entity_id))
        key = status_key(request.entity_type, request.entity_id)
        self._set(favorite_status=self._with_status({key: True}))

    async def _reload_list(self) -> None:
        if self._state.filters.entity_type is not None:
            await super()._reload_list()

    async def delete(self, id: Any) -> None:
        favorite = next((item for item in self._state.items if id_of(item) == id), None)
        await super().delete(id)
        if favorite is None:
            return
        self._executor.clear_cache(self._entity_prefixes(favorite.entity_type, favorite.entity_id))
        key = status_key(favorite.entity_type, favorite.entity_id)
        self._set(favorite_status=self._with_status({key: False}))

    async def remove(self, entity_type: EntityType, entity_id: int) -> None:
        """Unfavorite an entity whether or not it is in the loaded list."""
        entity_type = EntityType(entity_type)
        await self._call(
            lambda: self._api.remove(entity_type, entity_id),
            f"removeFavorite_{entity_type.value}_{entity_id}",
            invalidate=self._entity_prefixes(entity_type, entity_id),
        )
        state = self._state
        self._loaded_list = None
        self._succeed(
            items=tuple(
                item
                for item in state.items
                if not (item.entity_type == entity_type and item.entity_id == entity_id)
            ),
            favorite_status=self._with_status({status_key(entity_type, entity_id): False}),
        )

    async def check_status(
        self,
        entity_type: EntityType,
        entity_id: int,
        force_refresh: bool = False,
    ) -> bool:
        entity_type = EntityType(entity_type)
        result = await self._call(
            lambda: self._api.check_status(entity_type, entity_id),
            f"fetchFavoriteStatus_{entity_type.value}_{entity_id}",
            self._read_options(force_refresh),
        )
        self._succeed(
            favorite_status=self._with_status({status_key(entity_type, entity_id): result}),
        )
        return result

    async def batch_check(self, entity_type: EntityType, entity_ids: Iterable[int]) -> Dict[int, bool]:
        entity_type = EntityType(entity_type)
        ids = sorted(set(entity_ids))
        if not ids:
            return {}
        result = await self._call(
            lambda: self._api.batch_check(entity_type, ids),
            f"batchCheckFavorites_{entity_type.value}:{','.join(str(i) for i in ids)}",
            NO_CACHE,
        )
        self._succeed(
            favorite_status=self._with_status(
                {status_key(entity_type, key): value for key, value in result.items()}
            ),
        )
        return result

    async def fetch_count(self, entity_type: EntityType, force_refresh: bool = False) -> int:
        entity_type = EntityType(entity_type)
        result = await self._call(
            lambda: self._api.count(entity_type),
            f"fetchFavoritesCount_{entity_type.value}",
            self._read_options(force_refresh),
        )
        counts = dict(self._state.counts)
        counts[entity_type.value] = result
        self._succeed(counts=counts)
        return result

    async def toggle(self, entity_type: EntityType, entity_id: int) -> bool:
        """Flip the favorite flag of an entity; returns the new flag."""
        entity_type = EntityType(entity_type)
        key = status_key(entity_type, entity_id)
        is_favorite = self._state.favorite_status.get(key)
        if is_favorite is None:
            is_favorite = await self.check_status(entity_type, entity_id)

        if is_favorite:
            await self.remove(entity_type, entity_id)
            return False

        await self.create(AddFavoriteRequest(entity_type=entity_type, entity_id=entity_id))
        return True
