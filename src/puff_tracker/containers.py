"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import acreate_client

from puff_tracker.adapters.json_profile_storage import JsonFileProfileStorage
from puff_tracker.adapters.supabase_entry_repository import SupabaseEntryRepository
from puff_tracker.adapters.supabase_profile_repository import (
    SupabaseProfileRepository,
)
from puff_tracker.adapters.supabase_session import SupabaseSessionProvider
from puff_tracker.config import Settings
from puff_tracker.services.accounts import AccountService
from puff_tracker.services.currency import CurrencyResolver
from puff_tracker.services.entries import EntryStore
from puff_tracker.services.pricing import PriceCatalog
from puff_tracker.services.profiles import ProfileCache
from puff_tracker.services.sessions import SessionProvider
from puff_tracker.services.stats import StatsService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    session: SessionProvider
    profile_cache: ProfileCache
    entry_store: EntryStore
    account_service: AccountService
    stats_service: StatsService
    close_resources: Callable[[], Awaitable[None]]


async def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = await acreate_client(
        resolved_settings.supabase_url, resolved_settings.supabase_anon_key
    )
    session = SupabaseSessionProvider(supabase_client)
    profile_repository = SupabaseProfileRepository(supabase_client)
    entry_repository = SupabaseEntryRepository(supabase_client)
    profile_cache = ProfileCache(
        repository=profile_repository,
        session=session,
        storage=JsonFileProfileStorage(
            resolved_settings.cache_dir, resolved_settings.profile_cache_key
        ),
        currency_resolver=CurrencyResolver(resolved_settings.locale),
        price_catalog=PriceCatalog(),
        validity_seconds=resolved_settings.profile_cache_ttl_seconds,
    )
    entry_store = EntryStore(
        repository=entry_repository,
        session=session,
        page_size=resolved_settings.entries_page_size,
    )
    account_service = AccountService(
        session=session,
        profile_repository=profile_repository,
        profile_cache=profile_cache,
        entry_store=entry_store,
    )
    stats_service = StatsService(
        repository=entry_repository,
        session=session,
        profile_cache=profile_cache,
        timezone_name=resolved_settings.timezone,
    )

    async def close_resources() -> None:
        await supabase_client.postgrest.aclose()

    return AppContainer(
        settings=resolved_settings,
        session=session,
        profile_cache=profile_cache,
        entry_store=entry_store,
        account_service=account_service,
        stats_service=stats_service,
        close_resources=close_resources,
    )
