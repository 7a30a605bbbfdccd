"""
Sport types.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from resource_store import FilterParams, ResourceStore, filter_field

from .base import ApiModel, EntityApi


class SportType(ApiModel):
    id: int
    name: str
    description: Optional[str] = None
    team_based: bool = False
    max_team_size: Optional[int] = None
    min_team_size: Optional[int] = None
    active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SportTypeRequest(ApiModel):
    name: str
    description: Optional[str] = None
    team_based: bool = False
    max_team_size: Optional[int] = None
    min_team_size: Optional[int] = None
    active: bool = True


@dataclass(frozen=True)
class SportTypeFilters(FilterParams):
    name: Optional[str] = filter_field()
    team_based: Optional[bool] = filter_field()
    active: Optional[bool] = filter_field()


class SportTypeApi(EntityApi[SportType, SportTypeFilters]):
    model = SportType
    public_path = "/sport-types/public"
    admin_path = "/sport-types"


class SportTypeStore(ResourceStore[SportType, SportTypeFilters]):
    def __init__(self, api: SportTypeApi, executor, **options):
        options.setdefault("filters", SportTypeFilters())
        super().__init__(entity="SportType", plural="SportTypes", api=api, executor=executor, **options)
