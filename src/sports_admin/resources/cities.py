"""
Cities.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from resource_store import FilterParams, ResourceStore, filter_field

from .base import ApiModel, EntityApi


class City(ApiModel):
    id: int
    name: str
    country: Optional[str] = None
    region: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    description: Optional[str] = None
    active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CityRequest(ApiModel):
    """Create and update payload; population and postal code are write-only."""

    name: str
    country: str
    region: str
    population: Optional[int] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    description: Optional[str] = None
    postal_code: Optional[str] = None
    active: bool = True


@dataclass(frozen=True)
class CityFilters(FilterParams):
    name: Optional[str] = filter_field()
    country: Optional[str] = filter_field()
    region: Optional[str] = filter_field()
    active: Optional[bool] = filter_field()


class CityApi(EntityApi[City, CityFilters]):
    model = City
    public_path = "/cities/public"
    admin_path = "/cities"


class CityStore(ResourceStore[City, CityFilters]):
    def __init__(self, api: CityApi, executor, **options):
        options.setdefault("filters", CityFilters())
        super().__init__(entity="City", plural="Cities", api=api, executor=executor, **options)
