"""
News articles.

The news list endpoint namespaces its query: filters travel as
``filter.<name>`` and paging as ``pageable.page|size|sort``.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional, Tuple

from resource_store import FilterParams, ResourceStore, filter_field, normalize_error
from resource_store.store import NO_CACHE

from .base import ApiModel, CreatedResponse, EntityApi

DEFAULT_NEWS_SORT = ("createdAt,desc",)


class NewsStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"
    DELETED = "DELETED"


class NewsAuthor(ApiModel):
    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None


class News(ApiModel):
    id: int
    title: str
    summary: Optional[str] = None
    content: Optional[str] = None
    images: List[str] = []
    tags: List[str] = []
    category: Optional[str] = None
    status: Optional[NewsStatus] = None
    view_count: int = 0
    is_featured: bool = False
    is_breaking: bool = False
    published_at: Optional[datetime] = None
    author: Optional[NewsAuthor] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    slug: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    active: bool = True


class NewsRequest(ApiModel):
    title: Optional[str] = None
    summary: Optional[str] = None
    content: Optional[str] = None
    tags: Optional[List[str]] = None
    category: Optional[str] = None
    status: Optional[NewsStatus] = None
    is_featured: Optional[bool] = None
    is_breaking: Optional[bool] = None
    published_at: Optional[datetime] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    slug: Optional[str] = None
    active: Optional[bool] = None


@dataclass(frozen=True)
class NewsFilters(FilterParams):
    query_prefix = "filter."

    title: Optional[str] = filter_field()
    content: Optional[str] = filter_field()
    summary: Optional[str] = filter_field()
    category: Optional[str] = filter_field()
    status: Optional[NewsStatus] = filter_field()
    is_featured: Optional[bool] = filter_field()
    is_breaking: Optional[bool] = filter_field()
    is_active: Optional[bool] = filter_field()
    author_id: Optional[int] = filter_field()
    author_name: Optional[str] = filter_field()
    tags: Tuple[str, ...] = filter_field(default=())
    published_after: Optional[str] = filter_field()
    published_before: Optional[str] = filter_field()
    created_after: Optional[str] = filter_field()
    created_before: Optional[str] = filter_field()
    min_view_count: Optional[int] = filter_field()
    max_view_count: Optional[int] = filter_field()
    keyword: Optional[str] = filter_field()
    sort: Tuple[str, ...] = filter_field(default=DEFAULT_NEWS_SORT, query=False)


class NewsApi(EntityApi[News, NewsFilters]):
    model = News
    public_path = "/news"
    admin_path = "/news"

    def page_query(self, page: int, size: int, filters: NewsFilters) -> List[Tuple[str, Any]]:
        query: List[Tuple[str, Any]] = list(filters.to_query())
        query.append(("pageable.page", page))
        query.append(("pageable.size", size))
        query.extend(("pageable.sort", sort) for sort in filters.sort or DEFAULT_NEWS_SORT)
        return query

    async def get_by_slug(self, slug: str) -> News:
        data = await self._client.get(f"/news/slug/{slug}")
        return News.model_validate(data)

    async def increment_view_count(self, id: int) -> None:
        await self._client.post(f"/news/{id}/view")

    async def set_status(self, id: int, status: NewsStatus) -> CreatedResponse:
        data = await self._client.patch(f"/news/{id}/status", query={"status": status})
        return CreatedResponse.model_validate(data)

    async def publish(self, id: int) -> CreatedResponse:
        data = await self._client.patch(f"/news/{id}/publish")
        return CreatedResponse.model_validate(data)

    async def archive(self, id: int) -> CreatedResponse:
        data = await self._client.patch(f"/news/{id}/archive")
        return CreatedResponse.model_validate(data)

    async def validate_slug(self, slug: str, exclude_id: Optional[int] = None) -> bool:
        """True when ``slug`` is free (``exclude_id`` is the article being edited)."""
        data = await self._client.get(
            "/news/validate-slug",
            query={"slug": slug, "excludeId": exclude_id},
        )
        if isinstance(data, bool):
            return data
        if isinstance(data, dict) and data:
            return all(bool(value) for value in data.values())
        return False


class NewsStore(ResourceStore[News, NewsFilters]):
    """News store with publication workflow and slug lookups."""

    _api: NewsApi

    def __init__(self, api: NewsApi, executor, **options):
        options.setdefault("filters", NewsFilters())
        super().__init__(entity="News", plural="NewsList", api=api, executor=executor, **options)

    def slug_key(self, slug: str) -> str:
        return f"fetchNewsBySlug_{slug}"

    def _change_prefixes(self, id: Any) -> List[str]:
        # Slug lookups cache the same article under a second key.
        return [*super()._change_prefixes(id), "fetchNewsBySlug_"]

    async def fetch_by_slug(self, slug: str, force_refresh: bool = False) -> None:
        """Load an article into ``current`` by its slug."""
        current = self._state.current
        if not force_refresh and current is not None and current.slug == slug:
            return

        await self._load_current(
            ("slug", slug),
            lambda: self._api.get_by_slug(slug),
            self.slug_key(slug),
            force_refresh,
        )

    async def publish(self, id: int) -> None:
        await self._call(
            lambda: self._api.publish(id),
            f"publishNews_{id}",
            invalidate=self._change_prefixes(id),
        )
        await self._refresh_after_change(id)

    async def archive(self, id: int) -> None:
        await self._call(
            lambda: self._api.archive(id),
            f"archiveNews_{id}",
            invalidate=self._change_prefixes(id),
        )
        await self._refresh_after_change(id)

    async def set_status(self, id: int, status: NewsStatus) -> None:
        status = NewsStatus(status)
        await self._call(
            lambda: self._api.set_status(id, status),
            f"setNewsStatus_{id}:{status.value}",
            invalidate=self._change_prefixes(id),
        )
        await self._refresh_after_change(id)

    async def increment_view_count(self, id: int) -> None:
        """Record a view. Only cached copies are dropped; nothing is reloaded."""
        await self._call(
            lambda: self._api.increment_view_count(id),
            f"incrementNewsViewCount_{id}",
            invalidate=[self.detail_key(id), "fetchNewsBySlug_"],
        )
        self._succeed()

    async def validate_slug(self, slug: str, exclude_id: Optional[int] = None) -> bool:
        """
        Check slug availability.

        Concurrent checks for the same slug share one request; the result is
        never cached and store state is left untouched. Failures raise
        AppError.
        """
        try:
            return await self._executor.execute(
                lambda: self._api.validate_slug(slug, exclude_id),
                f"validateNewsSlug:{slug}:{exclude_id if exclude_id is not None else ''}",
                NO_CACHE,
            )
        except Exception as exc:
            raise normalize_error(exc, f"validateNewsSlug:{slug}") from exc
