"""
Generic paginated resource store.
"""
import asyncio
import hashlib
import json
import logging
from dataclasses import replace
from typing import (
    Any,
    Awaitable,
    Callable,
    ClassVar,
    Generic,
    Iterable,
    List,
    Optional,
    Set,
    Tuple,
    Type,
    TypeVar,
)

from pydantic import BaseModel

from loading_state import LoadingManager
from request_cache import ExecuteOptions, RequestExecutor

from .errors import AppError, UnexpectedResponseError, normalize_error
from .filters import FilterParams
from .page import Page
from .types import ResourceApi, ResourceState, StateListener, StoreStatus

T = TypeVar("T")
F = TypeVar("F", bound=FilterParams)
R = TypeVar("R")

logger = logging.getLogger("resource_store.store")

NO_CACHE = ExecuteOptions(enable_cache=False)


def entity_id(item: Any) -> Any:
    """Id of a model instance or mapping, None when it has none."""
    if item is None:
        return None
    if isinstance(item, dict):
        return item.get("id")
    return getattr(item, "id", None)


def payload_fingerprint(data: Any) -> str:
    """Short stable hash of a mutation payload."""
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True, exclude_none=True)
    raw = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(raw.encode()).hexdigest()[:16]


class ResourceStore(Generic[T, F]):
    """
    Paginated list + detail state for one entity type.

    All network calls go through the shared RequestExecutor under keys
    namespaced by the entity name:

    - list:   ``fetch<Plural>:<page>:<size>:<filters>``
    - detail: ``fetch<Entity>_<id>``

    State is an immutable ResourceState replaced on every change. Read
    actions (fetch_list, fetch_one) absorb failures into ``state.error``;
    mutations (create, update, delete) also raise the normalized AppError.

    Example:
        store = ResourceStore(
            entity="City",
            plural="Cities",
            api=CityApi(client),
            executor=executor,
            filters=CityFilters(),
        )
        await store.fetch_list(0, 10, CityFilters(name="Almaty"))
        print(store.state.items, store.state.total_elements)
    """

    state_class: ClassVar[Type[ResourceState]] = ResourceState

    def __init__(
        self,
        *,
        entity: str,
        plural: str,
        api: ResourceApi[T, F],
        executor: RequestExecutor,
        filters: F,
        loading_manager: Optional[LoadingManager] = None,
        page_size: int = 10,
        cache_reads: bool = True,
        cache_ttl_seconds: Optional[float] = None,
    ) -> None:
        self.entity = entity
        self.plural = plural
        self._api = api
        self._executor = executor
        self._loading = loading_manager
        self._default_filters = filters
        self._default_page_size = page_size
        self._cache_reads = cache_reads
        self._cache_ttl_seconds = cache_ttl_seconds
        self._listeners: Set[StateListener] = set()
        self._pending = 0
        self._list_generation = 0
        self._loaded_list: Optional[Tuple[int, int, F]] = None
        self._requested_list: Optional[Tuple[int, int, F]] = None
        self._detail_target: Any = None
        self._detail_token: object = object()
        self._state: ResourceState = self._initial_state()

    # === Keys ===

    @property
    def list_prefix(self) -> str:
        return f"fetch{self.plural}"

    @property
    def detail_prefix(self) -> str:
        return f"fetch{self.entity}_"

    @property
    def loading_key(self) -> str:
        return f"store:{self.entity}"

    def list_key(self, page: int, size: int, filters: F) -> str:
        return f"{self.list_prefix}:{page}:{size}:{filters.cache_key()}"

    def detail_key(self, id: Any) -> str:
        return f"{self.detail_prefix}{id}"

    # === State ===

    @property
    def state(self) -> ResourceState:
        """Current immutable snapshot."""
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Observe state replacements; returns the unsubscribe function."""
        self._listeners.add(listener)
        return lambda: self._listeners.discard(listener)

    def _initial_state(self) -> ResourceState:
        return self.state_class(
            page_size=self._default_page_size,
            filters=self._default_filters,
        )

    def _set(self, **changes: Any) -> None:
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception(f"{self.entity} store listener failed")

    def _sync_loading(self) -> None:
        if self._loading is not None:
            self._loading.set_loading(self.loading_key, self._pending > 0)

    def _begin(self, **changes: Any) -> None:
        self._pending += 1
        self._set(is_loading=True, error=None, status=StoreStatus.LOADING, **changes)
        self._sync_loading()

    def _succeed(self, **changes: Any) -> None:
        self._pending -= 1
        self._set(
            is_loading=self._pending > 0,
            error=None,
            status=StoreStatus.SUCCESS,
            **changes,
        )
        self._sync_loading()

    def _fail(self, error: BaseException, context: str) -> AppError:
        app_error = normalize_error(error, context)
        self._pending -= 1
        self._set(
            is_loading=self._pending > 0,
            error=app_error.message,
            status=StoreStatus.ERROR,
        )
        self._sync_loading()
        return app_error

    def _settle(self) -> None:
        """Finish an action whose outcome is discarded."""
        self._pending -= 1
        self._set(is_loading=self._pending > 0)
        self._sync_loading()

    def _read_options(self, force_refresh: bool) -> ExecuteOptions:
        return ExecuteOptions(
            enable_cache=self._cache_reads,
            force_refresh=force_refresh,
            ttl_seconds=self._cache_ttl_seconds,
        )

    # === Calls (overridable per entity) ===

    async def _list_call(self, page: int, size: int, filters: F) -> Page[T]:
        return await self._api.list(page, size, filters)

    async def _detail_call(self, id: Any) -> T:
        return await self._api.get(id)

    async def _create_call(self, data: Any) -> Any:
        return await self._api.create(data)

    async def _update_call(self, id: Any, data: Any) -> Optional[T]:
        return await self._api.update(id, data)

    async def _delete_call(self, id: Any) -> None:
        await self._api.delete(id)

    # === Reads ===

    async def fetch_list(
        self,
        page: int = 0,
        size: Optional[int] = None,
        filters: Optional[F] = None,
        force_refresh: bool = False,
    ) -> None:
        """
        Load one page into ``items``.

        Skipped when the same (page, size, filters) triple is already loaded,
        no other list request is pending and no refresh is forced.
        """
        size = size or self._state.page_size
        filters = filters if filters is not None else self._state.filters
        snapshot = (page, size, filters)

        if not force_refresh and self._loaded_list == snapshot and self._requested_list == snapshot:
            logger.debug(f"{self.entity} fetch_list: {snapshot} already loaded, skipping")
            return

        self._list_generation += 1
        generation = self._list_generation
        self._requested_list = snapshot
        self._begin()

        try:
            result = await self._executor.execute(
                lambda: self._list_call(page, size, filters),
                self.list_key(page, size, filters),
                self._read_options(force_refresh),
            )
            if not isinstance(result, Page):
                raise UnexpectedResponseError()
        except asyncio.CancelledError:
            self._settle()
            raise
        except Exception as exc:
            if generation != self._list_generation:
                self._settle()
                return
            self._fail(exc, f"fetch{self.plural}")
            return

        if generation != self._list_generation:
            logger.debug(f"{self.entity} fetch_list: dropping superseded response for {snapshot}")
            self._settle()
            return

        self._loaded_list = snapshot
        self._succeed(
            items=tuple(result.content),
            total_elements=result.total_elements,
            total_pages=result.total_pages,
            page=result.number if result.number is not None else page,
            page_size=result.size or size,
            filters=filters,
        )

    async def fetch_one(self, id: Any, force_refresh: bool = False) -> None:
        """Load one entity into ``current``; skipped when it is already current."""
        if not force_refresh and entity_id(self._state.current) == id:
            return

        await self._load_current(
            id,
            lambda: self._detail_call(id),
            self.detail_key(id),
            force_refresh,
        )

    async def _load_current(
        self,
        target: Any,
        operation: Callable[[], Awaitable[T]],
        key: str,
        force_refresh: bool,
    ) -> None:
        """
        Load ``current`` for ``target``.

        ``current`` is cleared while the request runs. A response is dropped
        when another target was requested in the meantime.
        """
        token = object()
        self._detail_target = target
        self._detail_token = token
        self._begin(current=None)

        try:
            entity = await self._executor.execute(operation, key, self._read_options(force_refresh))
            if entity_id(entity) is None:
                raise UnexpectedResponseError()
        except asyncio.CancelledError:
            self._settle()
            raise
        except Exception as exc:
            if self._detail_token is not token:
                self._settle()
                return
            self._fail(exc, key)
            return

        if self._detail_token is not token:
            logger.debug(f"{self.entity}: dropping superseded response for {key}")
            self._settle()
            return

        self._succeed(current=entity)

    # === Mutations ===

    def _change_prefixes(self, id: Any) -> List[str]:
        """Cache prefixes made stale by a change to entity ``id``."""
        return [self.detail_key(id), self.list_prefix]

    async def _call(
        self,
        operation: Callable[[], Awaitable[R]],
        key: str,
        options: ExecuteOptions = NO_CACHE,
        invalidate: Iterable[str] = (),
    ) -> R:
        """
        Run a call through the executor as a store action.

        On success the action is still pending: the caller finishes it with
        ``_succeed``. On failure the store error is set and the normalized
        AppError is raised.
        """
        self._begin()
        try:
            result = await self._executor.execute(operation, key, options)
        except asyncio.CancelledError:
            self._settle()
            raise
        except Exception as exc:
            raise self._fail(exc, key) from exc

        prefixes = list(invalidate)
        if prefixes:
            self._executor.clear_cache(prefixes)
        return result

    async def _refresh_after_change(self, id: Any) -> None:
        """
        Finish an action that changed entity ``id`` on the backend.

        ``current`` is reloaded when it is that entity and the list is
        reloaded when one was loaded.
        """
        state = self._state
        list_loaded = self._loaded_list is not None
        self._loaded_list = None
        self._succeed()

        if id is not None and entity_id(state.current) == id:
            await self.fetch_one(id, force_refresh=True)
        if list_loaded:
            await self._reload_list()

    async def _reload_list(self) -> None:
        """Refetch the loaded page with its parameters, bypassing the cache."""
        state = self._state
        await self.fetch_list(state.page, state.page_size, state.filters, force_refresh=True)

    async def create(self, data: Any) -> Any:
        """Create an entity, then reload the current page."""
        result = await self._call(
            lambda: self._create_call(data),
            f"create{self.entity}:{payload_fingerprint(data)}",
            invalidate=[self.list_prefix],
        )
        self._loaded_list = None
        self._succeed()
        self._after_create(data, result)

        await self._reload_list()
        return result

    async def update(self, id: Any, data: Any) -> T:
        """Update an entity and refresh it in ``items`` and ``current``."""
        result = await self._call(
            lambda: self._update_call(id, data),
            f"update{self.entity}_{id}:{payload_fingerprint(data)}",
            invalidate=self._change_prefixes(id),
        )

        updated = result if entity_id(result) == id else None
        if updated is None:
            try:
                updated = await self._executor.execute(
                    lambda: self._detail_call(id),
                    self.detail_key(id),
                    self._read_options(force_refresh=True),
                )
                if entity_id(updated) is None:
                    raise UnexpectedResponseError()
            except asyncio.CancelledError:
                self._settle()
                raise
            except Exception as exc:
                raise self._fail(exc, f"fetch{self.entity}_{id}") from exc

        state = self._state
        list_loaded = self._loaded_list is not None
        self._loaded_list = None
        current = state.current
        if entity_id(current) == id or self._detail_target == id:
            current = updated
            self._supersede_detail()
        self._succeed(
            items=tuple(updated if entity_id(item) == id else item for item in state.items),
            current=current,
        )

        if list_loaded:
            await self._reload_list()
        return updated

    async def delete(self, id: Any) -> None:
        """Delete an entity and drop it from local state without reloading the list."""
        await self._call(
            lambda: self._delete_call(id),
            f"delete{self.entity}_{id}",
            invalidate=self._change_prefixes(id),
        )

        state = self._state
        self._loaded_list = None
        current = state.current
        if entity_id(current) == id:
            current = None
        if self._detail_target == id:
            self._supersede_detail()
        self._succeed(
            items=tuple(item for item in state.items if entity_id(item) != id),
            current=current,
        )

    def _after_create(self, data: Any, result: Any) -> None:
        """Hook for entity stores that keep extra state."""

    def _supersede_detail(self) -> None:
        """Drop the response of any detail request still in flight."""
        self._detail_target = None
        self._detail_token = object()

    # === Utilities ===

    def set_filters(self, filters: F) -> None:
        """Replace the filters used by the next fetch_list and go back to page 0."""
        self._set(filters=filters, page=0)

    def clear_error(self) -> None:
        status = StoreStatus.LOADING if self._pending else StoreStatus.IDLE
        self._set(error=None, status=status)

    def reset(self) -> None:
        """Back to the initial state; list and detail responses still in flight are dropped."""
        self._list_generation += 1
        self._loaded_list = None
        self._requested_list = None
        self._supersede_detail()
        self._state = self._initial_state()
        self._set(is_loading=self._pending > 0)
