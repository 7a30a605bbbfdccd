"""
sports_admin - data-access layer of the sports administration dashboard.

Six entity stores (cities, sport clubs, sport types, tournament categories,
favorites, news) sharing one RequestExecutor (single-flight + cache) and one
LoadingManager.

    from sports_admin import create_stores, SportClubFilters

    async with create_stores() as admin:
        await admin.sport_clubs.fetch_list(0, 10, SportClubFilters(city_id=1))
        print(admin.sport_clubs.state.items)
"""
from .config import Settings, get_settings
from .factory import (
    SportsAdmin,
    create_api_client_from_settings,
    create_request_cache_config,
    create_stores,
)
from .resources import *  # noqa: F401,F403
from .resources import __all__ as _resources_all

__all__ = [
    "Settings",
    "get_settings",
    "SportsAdmin",
    "create_api_client_from_settings",
    "create_request_cache_config",
    "create_stores",
    *_resources_all,
]

__version__ = "1.0.0"
