"""
Entity models, endpoint adapters and stores.
"""
from .base import ApiModel, CreatedResponse, EntityApi, parse_echo
from .cities import City, CityApi, CityFilters, CityRequest, CityStore
from .favorites import (
    AddFavoriteRequest,
    EntityType,
    Favorite,
    FavoriteApi,
    FavoriteFilters,
    FavoriteState,
    FavoriteStore,
    status_key,
)
from .news import (
    DEFAULT_NEWS_SORT,
    News,
    NewsApi,
    NewsAuthor,
    NewsFilters,
    NewsRequest,
    NewsStatus,
    NewsStore,
)
from .sport_clubs import (
    AgeCategory,
    ClubType,
    OpeningHours,
    SportClub,
    SportClubAddress,
    SportClubAddressRequest,
    SportClubApi,
    SportClubFilters,
    SportClubRequest,
    SportClubStore,
    SportClubTeam,
)
from .sport_types import SportType, SportTypeApi, SportTypeFilters, SportTypeRequest, SportTypeStore
from .tournament_categories import (
    TournamentCategory,
    TournamentCategoryApi,
    TournamentCategoryFilters,
    TournamentCategoryRequest,
    TournamentCategoryStore,
)


__all__ = [
    # Base
    "ApiModel",
    "CreatedResponse",
    "EntityApi",
    "parse_echo",
    # Cities
    "City",
    "CityApi",
    "CityFilters",
    "CityRequest",
    "CityStore",
    # Favorites
    "AddFavoriteRequest",
    "EntityType",
    "Favorite",
    "FavoriteApi",
    "FavoriteFilters",
    "FavoriteState",
    "FavoriteStore",
    "status_key",
    # News
    "DEFAULT_NEWS_SORT",
    "News",
    "NewsApi",
    "NewsAuthor",
    "NewsFilters",
    "NewsRequest",
    "NewsStatus",
    "NewsStore",
    # Sport clubs
    "AgeCategory",
    "ClubType",
    "OpeningHours",
    "SportClub",
    "SportClubAddress",
    "SportClubAddressRequest",
    "SportClubApi",
    "SportClubFilters",
    "SportClubRequest",
    "SportClubStore",
    "SportClubTeam",
    # Sport types
    "SportType",
    "SportTypeApi",
    "SportTypeFilters",
    "SportTypeRequest",
    "SportTypeStore",
    # Tournament categories
    "TournamentCategory",
    "TournamentCategoryApi",
    "TournamentCategoryFilters",
    "TournamentCategoryRequest",
    "TournamentCategoryStore",
]
