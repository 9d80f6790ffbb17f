"""Admin-configured limits, read from ``admin_settings`` and cached in Redis."""

import orjson
from loguru import logger
from pydantic import BaseModel, Field, field_validator
from redis.asyncio import Redis

from creator_live.app_config import get_app_environ_config
from creator_live.repositories import LiveStorage, get_live_storage
from creator_live.shared.storage.redis import get_cache_client

ADMIN_SETTINGS_CACHE_KEY = "creator-live:admin_settings"


class AdminSettings(BaseModel):
    """Typed view over the admin key/value settings; blank values fall back to defaults."""

    max_reschedules: int = Field(3, alias="max_number_of_reschedules")
    reschedule_buffer_minutes: int = Field(120, alias="live_schedule_delay")
    min_tip_amount: int = Field(1, alias="min_tipmenu_coins")
    max_tip_amount: int = Field(1000000, alias="max_tipmenu_coins")
    min_live_price: int = Field(0, alias="min_live_price")
    max_live_duration: int = Field(1440, alias="max_live_duration")
    rtc_app_id: str | None = Field(None, alias="agora_app_id")
    rtc_app_secret: str | None = Field(None, alias="agora_app_certificate")
    call_token_ttl: int = Field(216000, alias="call_token_ttl")

    # False when the admin_settings table had no rows at all
    configured: bool = True

    model_config = {"populate_by_name": True}

    @field_validator(
        "max_reschedules",
        "reschedule_buffer_minutes",
        "min_tip_amount",
        "max_tip_amount",
        "min_live_price",
        "max_live_duration",
        "call_token_ttl",
        mode="before",
    )
    @classmethod
    def _blank_int(cls, v, info):
        if v is None or (isinstance(v, str) and not v.strip()):
            return cls.model_fields[info.field_name].default
        return v

    @field_validator("rtc_app_id", "rtc_app_secret", mode="before")
    @classmethod
    def _blank_str(cls, v):
        if isinstance(v, str):
            return v.strip() or None
        return v

    @classmethod
    def from_raw(cls, raw: dict[str, str | None]) -> "AdminSettings":
        known = {f.alias for f in cls.model_fields.values() if f.alias}
        settings = cls.model_validate({k: v for k, v in raw.items() if k in known})
        settings.configured = bool(raw)

        env = get_app_environ_config()
        if not str(raw.get("call_token_ttl") or "").strip():
            settings.call_token_ttl = env.DEFAULT_CALL_TOKEN_TTL
        if not settings.rtc_app_id:
            settings.rtc_app_id = env.RTC_APP_ID
        if not settings.rtc_app_secret:
            settings.rtc_app_secret = env.RTC_APP_SECRET
        return settings


class AdminSettingsProvider:
    """
    Read-only access to admin settings.

    Rows are cached in Redis for ``ADMIN_SETTINGS_CACHE_SECONDS``; a Redis failure
    falls through to the database rather than failing the request.
    """

    def __init__(self, storage: LiveStorage | None = None, redis_client: Redis | None = None):
        self._storage = storage
        self._redis = redis_client
        self._ttl = get_app_environ_config().ADMIN_SETTINGS_CACHE_SECONDS

    @property
    def storage(self) -> LiveStorage:
        if self._storage is None:
            self._storage = get_live_storage()
        return self._storage

    @property
    def redis(self) -> Redis:
        if self._redis is None:
            self._redis = get_cache_client()
        return self._redis

    async def _load_cached(self) -> dict[str, str | None] | None:
        try:
            packed = await self.redis.get(ADMIN_SETTINGS_CACHE_KEY)
        except Exception as exc:
            logger.warning("admin settings cache read failed: {}", exc)
            return None
        if not packed:
            return None
        try:
            return orjson.loads(packed)
        except orjson.JSONDecodeError:
            logger.warning("admin settings cache entry is not valid JSON, ignoring")
            return None

    async def _store_cached(self, raw: dict[str, str | None]) -> None:
        try:
            await self.redis.set(ADMIN_SETTINGS_CACHE_KEY, orjson.dumps(raw), ex=self._ttl)
        except Exception as exc:
            logger.warning("admin settings cache write failed: {}", exc)

    async def get_settings(self) -> AdminSettings:
        raw = await self._load_cached()
        if raw is None:
            async with self.storage.session() as conn:
                raw = await self.storage.admin_settings.load_all(conn)
            await self._store_cached(raw)
            logger.debug("admin settings loaded from database: {} keys", len(raw))

        return AdminSettings.from_raw(raw)


_admin_settings_provider: AdminSettingsProvider | None = None


def get_admin_settings_provider() -> AdminSettingsProvider:
    global _admin_settings_provider
    if _admin_settings_provider is None:
        _admin_settings_provider = AdminSettingsProvider()
    return _admin_settings_provider
