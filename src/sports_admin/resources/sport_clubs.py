"""
Sport clubs, with their addresses and team memberships.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

from resource_store import FilterParams, ResourceStore, filter_field, payload_fingerprint

from .base import ApiModel, EntityApi


class ClubType(str, Enum):
    KIDS = "KIDS"
    REGULAR = "REGULAR"
    PROFESSIONAL = "PROFESSIONAL"
    MIXED = "MIXED"


class SportClubAddress(ApiModel):
    id: Optional[int] = None
    street_line1: str
    street_line2: Optional[str] = None
    city_id: int
    city_name: Optional[str] = None
    zip_code: Optional[str] = None
    description: Optional[str] = None
    is_primary: bool = False
    latitude: Optional[str] = None
    longitude: Optional[str] = None


class SportClubAddressRequest(ApiModel):
    street_line1: str
    street_line2: Optional[str] = None
    city_id: int
    zip_code: Optional[str] = None
    description: Optional[str] = None
    is_primary: bool = False
    latitude: Optional[str] = None
    longitude: Optional[str] = None


class OpeningHours(ApiModel):
    day_of_week: str
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    is_closed: bool = False


class AgeCategory(ApiModel):
    age_category: str
    is_active: bool = True
    max_participants: Optional[int] = None
    category_description: Optional[str] = None


class SportClubTeam(ApiModel):
    id: int
    name: str
    description: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    avatar: Optional[str] = None
    sport_type_id: Optional[int] = None


class SportClub(ApiModel):
    id: int
    name: str
    description: Optional[str] = None
    club_type: ClubType = ClubType.REGULAR
    addresses: List[SportClubAddress] = []
    opening_hours: List[OpeningHours] = []
    age_categories: List[AgeCategory] = []
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    website: Optional[str] = None
    facilities: Optional[str] = None
    membership_fee: Optional[float] = None
    membership_benefits: Optional[str] = None
    sport_type_id: Optional[int] = None
    sport_type_name: Optional[str] = None
    establishment_year: Optional[int] = None
    active: bool = True
    teams: List[SportClubTeam] = []
    image_url: Optional[int] = None
    hero_id: Optional[int] = None
    hero_gif: Optional[str] = None


class SportClubRequest(ApiModel):
    name: str
    description: Optional[str] = None
    club_type: ClubType
    addresses: List[SportClubAddressRequest] = []
    opening_hours: Optional[List[OpeningHours]] = None
    age_categories: Optional[List[AgeCategory]] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    website: Optional[str] = None
    facilities: Optional[str] = None
    membership_fee: Optional[float] = None
    membership_benefits: Optional[str] = None
    sport_type_id: int
    establishment_year: Optional[int] = None
    teams: Optional[List[int]] = None
    image_url: Optional[int] = None
    hero_id: Optional[int] = None
    hero_gif: Optional[str] = None


@dataclass(frozen=True)
class SportClubFilters(FilterParams):
    name: Optional[str] = filter_field()
    club_type: Optional[ClubType] = filter_field()
    city_id: Optional[int] = filter_field()
    min_age: Optional[int] = filter_field()
    max_age: Optional[int] = filter_field()
    sport_type_id: Optional[int] = filter_field()
    active: Optional[bool] = filter_field()


class SportClubApi(EntityApi[SportClub, SportClubFilters]):
    model = SportClub
    public_path = "/sport-clubs/public"
    admin_path = "/sport-clubs"

    async def add_team(self, club_id: int, team_id: int) -> None:
        await self._client.post(f"/sport-clubs/{club_id}/teams/{team_id}")

    async def remove_team(self, club_id: int, team_id: int) -> None:
        await self._client.delete(f"/sport-clubs/{club_id}/teams/{team_id}")

    async def add_address(self, club_id: int, data: Any) -> None:
        await self._client.post(f"/sport-clubs/{club_id}/addresses", json=data)

    async def update_address(self, address_id: int, data: Any) -> None:
        await self._client.put(f"/sport-clubs/addresses/{address_id}", json=data)

    async def delete_address(self, address_id: int) -> None:
        await self._client.delete(f"/sport-clubs/addresses/{address_id}")

    async def set_primary_address(self, club_id: int, address_id: int) -> None:
        await self._client.put(f"/sport-clubs/{club_id}/addresses/{address_id}/primary")


class SportClubStore(ResourceStore[SportClub, SportClubFilters]):
    """
    Sport club store.

    Team and address changes are sub-resource writes: they invalidate the
    club's cached detail and the list, and reload ``current`` when it is the
    affected club.
    """

    _api: SportClubApi

    def __init__(self, api: SportClubApi, executor, **options):
        options.setdefault("filters", SportClubFilters())
        super().__init__(entity="SportClub", plural="SportClubs", api=api, executor=executor, **options)

    async def add_team(self, club_id: int, team_id: int) -> None:
        await self._call(
            lambda: self._api.add_team(club_id, team_id),
            f"addSportClubTeam_{club_id}_{team_id}",
            invalidate=self._change_prefixes(club_id),
        )
        await self._refresh_after_change(club_id)

    async def remove_team(self, club_id: int, team_id: int) -> None:
        await self._call(
            lambda: self._api.remove_team(club_id, team_id),
            f"removeSportClubTeam_{club_id}_{team_id}",
            invalidate=self._change_prefixes(club_id),
        )
        await self._refresh_after_change(club_id)

    async def add_address(self, club_id: int, data: Any) -> None:
        await self._call(
            lambda: self._api.add_address(club_id, data),
            f"addSportClubAddress_{club_id}:{payload_fingerprint(data)}",
            invalidate=self._change_prefixes(club_id),
        )
        await self._refresh_after_change(club_id)

    async def update_address(self, address_id: int, data: Any) -> None:
        club_id = self._club_owning_address(address_id)
        await self._call(
            lambda: self._api.update_address(address_id, data),
            f"updateSportClubAddress_{address_id}:{payload_fingerprint(data)}",
            invalidate=[self.detail_prefix, self.list_prefix],
        )
        await self._refresh_after_change(club_id)

    async def delete_address(self, address_id: int) -> None:
        club_id = self._club_owning_address(address_id)
        await self._call(
            lambda: self._api.delete_address(address_id),
            f"deleteSportClubAddress_{address_id}",
            invalidate=[self.detail_prefix, self.list_prefix],
        )
        await self._refresh_after_change(club_id)

    async def set_primary_address(self, club_id: int, address_id: int) -> None:
        await self._call(
            lambda: self._api.set_primary_address(club_id, address_id),
            f"setPrimarySportClubAddress_{club_id}_{address_id}",
            invalidate=self._change_prefixes(club_id),
        )
        await self._refresh_after_change(club_id)

    def _club_owning_address(self, address_id: int) -> Optional[int]:
        # Address endpoints are not scoped by club; the owner is looked up locally.
        current = self._state.current
        if current is not None and any(a.id == address_id for a in current.addresses):
            return current.id
        for club in self._state.items:
            if any(a.id == address_id for a in club.addresses):
                return club.id
        return None
