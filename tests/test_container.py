"""Tests for container wiring."""

import asyncio

from puff_tracker.adapters.json_profile_storage import JsonFileProfileStorage
from puff_tracker.config import Settings
from puff_tracker.containers import build_container


def test_build_container_creates_services(settings: Settings) -> None:
    async def scenario() -> None:
        container = await build_container(settings)
        assert container.entry_store.page_size == 20
        assert container.profile_cache.validity_seconds == 3600
        assert isinstance(container.profile_cache.storage, JsonFileProfileStorage)
        assert container.profile_cache.storage.directory == settings.cache_dir
        assert container.stats_service.timezone_name == "UTC"
        assert container.stats_service.repository is container.entry_store.repository
        assert container.session.current_user_id() is None
        await container.close_resources()

    asyncio.run(scenario())
