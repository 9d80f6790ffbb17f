"""Tests for admin settings parsing and caching."""

from unittest.mock import AsyncMock

import orjson
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from creator_live.app_config import get_app_environ_config
from creator_live.services.admin_settings import (
    ADMIN_SETTINGS_CACHE_KEY,
    AdminSettings,
    AdminSettingsProvider,
)

RAW = {
    "max_number_of_reschedules": "5",
    "live_schedule_delay": "30",
    "min_tipmenu_coins": "10",
    "max_tipmenu_coins": "",
    "agora_app_id": "app-id",
    "agora_app_certificate": "app-cert",
    "call_token_ttl": "7200",
    "unrelated_key": "ignored",
}


class TestFromRaw:
    def test_known_keys_are_parsed(self):
        settings = AdminSettings.from_raw(RAW)

        assert settings.max_reschedules == 5
        assert settings.reschedule_buffer_minutes == 30
        assert settings.min_tip_amount == 10
        assert settings.rtc_app_id == "app-id"
        assert settings.rtc_app_secret == "app-cert"
        assert settings.call_token_ttl == 7200
        assert settings.configured is True

    def test_blank_values_use_defaults(self):
        settings = AdminSettings.from_raw(RAW)

        assert settings.max_tip_amount == 1000000

    def test_empty_table_is_unconfigured(self):
        settings = AdminSettings.from_raw({})

        assert settings.configured is False
        assert settings.max_reschedules == 3
        assert settings.call_token_ttl == get_app_environ_config().DEFAULT_CALL_TOKEN_TTL


class TestAdminSettingsProvider:
    @pytest.fixture
    def redis_client(self) -> AsyncMock:
        client = AsyncMock()
        client.get.return_value = None
        return client

    async def test_loads_from_database_and_caches(self, storage, redis_client):
        storage.state.admin_settings = dict(RAW)
        provider = AdminSettingsProvider(storage=storage, redis_client=redis_client)

        settings = await provider.get_settings()

        assert settings.max_reschedules == 5
        key, packed = redis_client.set.await_args.args
        assert key == ADMIN_SETTINGS_CACHE_KEY
        assert orjson.loads(packed) == RAW

    async def test_uses_cached_rows(self, storage, redis_client):
        redis_client.get.return_value = orjson.dumps({"max_number_of_reschedules": "9"})
        provider = AdminSettingsProvider(storage=storage, redis_client=redis_client)

        settings = await provider.get_settings()

        assert settings.max_reschedules == 9
        redis_client.set.assert_not_awaited()

    async def test_redis_outage_falls_back_to_database(self, storage, redis_client):
        storage.state.admin_settings = dict(RAW)
        redis_client.get.side_effect = RedisConnectionError("down")
        redis_client.set.side_effect = RedisConnectionError("down")
        provider = AdminSettingsProvider(storage=storage, redis_client=redis_client)

        settings = await provider.get_settings()

        assert settings.rtc_app_id == "app-id"
