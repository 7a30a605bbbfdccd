"""
Tournament categories.
"""
from dataclasses import dataclass
from typing import Optional

from resource_store import FilterParams, ResourceStore, filter_field

from .base import ApiModel, EntityApi


class TournamentCategory(ApiModel):
    id: int
    name: str
    description: Optional[str] = None
    active: bool = True


class TournamentCategoryRequest(ApiModel):
    name: str
    description: Optional[str] = None


@dataclass(frozen=True)
class TournamentCategoryFilters(FilterParams):
    name: Optional[str] = filter_field()
    active: Optional[bool] = filter_field()


class TournamentCategoryApi(EntityApi[TournamentCategory, TournamentCategoryFilters]):
    model = TournamentCategory
    public_path = "/tournament-categories/public"
    admin_path = "/tournament-categories"


class TournamentCategoryStore(ResourceStore[TournamentCategory, TournamentCategoryFilters]):
    def __init__(self, api: TournamentCategoryApi, executor, **options):
        options.setdefault("filters", TournamentCategoryFilters())
        super().__init__(
            entity="TournamentCategory",
            plural="TournamentCategories",
            api=api,
            executor=executor,
            **options,
        )
