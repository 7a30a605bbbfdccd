"""
Factory functions wiring the shared services and the entity stores.

This module provides create_stores, which builds one RequestExecutor and one
LoadingManager and injects them into every store.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from api_client import AsyncApiClient, ClientConfig
from loading_state import LoadingManager
from request_cache import RequestCacheConfig, RequestExecutor, RetryPolicy
from resource_store import is_retryable_error

from .config import Settings, get_settings
from .resources import (
    CityApi,
    CityStore,
    FavoriteApi,
    FavoriteStore,
    NewsApi,
    NewsStore,
    SportClubApi,
    SportClubStore,
    SportTypeApi,
    SportTypeStore,
    TournamentCategoryApi,
    TournamentCategoryStore,
)

logger = logging.getLogger("sports_admin.factory")


@dataclass
class SportsAdmin:
    """Shared services and one store per entity."""

    client: AsyncApiClient
    executor: RequestExecutor
    loading: LoadingManager
    cities: CityStore
    sport_clubs: SportClubStore
    sport_types: SportTypeStore
    tournament_categories: TournamentCategoryStore
    favorites: FavoriteStore
    news: NewsStore

    async def aclose(self) -> None:
        """Drop cached results and close the HTTP client."""
        self.executor.close()
        await self.client.close()

    async def __aenter__(self) -> "SportsAdmin":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


def create_request_cache_config(settings: Settings) -> RequestCacheConfig:
    """Executor config: reads cached per settings, retries for retryable failures only."""
    return RequestCacheConfig(
        default_ttl_seconds=settings.cache_ttl_seconds,
        retry=RetryPolicy(
            max_attempts=settings.retry_max_attempts,
            base_delay_seconds=settings.retry_base_delay,
            backoff_factor=settings.retry_backoff_factor,
            max_delay_seconds=settings.retry_max_delay,
            should_retry=is_retryable_error,
        ),
    )


def create_api_client_from_settings(
    settings: Settings,
    httpx_client: Optional[httpx.AsyncClient] = None,
) -> AsyncApiClient:
    config = ClientConfig(
        base_url=settings.api_base_url,
        timeout=settings.timeout_seconds,
        auth_token=settings.auth_token,
        trace=settings.trace_http,
    )
    return AsyncApiClient(config, httpx_client=httpx_client)


def create_stores(
    settings: Optional[Settings] = None,
    client: Optional[AsyncApiClient] = None,
    executor: Optional[RequestExecutor] = None,
    loading: Optional[LoadingManager] = None,
) -> SportsAdmin:
    """
    Build the data layer.

    Args:
        settings: Defaults to get_settings().
        client: API client; built from settings when omitted.
        executor: Shared executor; built from settings when omitted.
        loading: Shared loading manager.

    Example:
        admin = create_stores()
        await admin.sport_clubs.fetch_list(0, 10, SportClubFilters(name="Kairat"))
        admin.loading.subscribe("global", lambda active: spinner.show(active))
    """
    settings = settings or get_settings()
    loading = loading or LoadingManager()
    executor = executor or RequestExecutor(
        create_request_cache_config(settings),
        loading_manager=loading,
    )
    client = client or create_api_client_from_settings(settings)

    logger.debug(
        f"create_stores: base_url={settings.api_base_url}, page_size={settings.default_page_size}, "
        f"cache_reads={settings.cache_reads}, cache_ttl={settings.cache_ttl_seconds}"
    )

    options = dict(
        loading_manager=loading,
        page_size=settings.default_page_size,
        cache_reads=settings.cache_reads,
        cache_ttl_seconds=settings.cache_ttl_seconds,
    )

    return SportsAdmin(
        client=client,
        executor=executor,
        loading=loading,
        cities=CityStore(CityApi(client), executor, **options),
        sport_clubs=SportClubStore(SportClubApi(client), executor, **options),
        sport_types=SportTypeStore(SportTypeApi(client), executor, **options),
        tournament_categories=TournamentCategoryStore(TournamentCategoryApi(client), executor, **options),
        favorites=FavoriteStore(FavoriteApi(client), executor, **options),
        news=NewsStore(NewsApi(client), executor, **options),
    )
