from pydantic import BaseModel

from creator_live.shared.config import config


class AppEnvironConfig(BaseModel):
    API_BASE_URL: str = config.get("API_BASE_URL", "http://localhost:8000").strip()  # type: ignore

    # Opaque id codec (AES-256-CBC); must be at least 32 characters
    ENCRYPT_SECRET_ID: str = (config.get("ENCRYPT_SECRET_ID") or "").strip()

    # Bearer token verification
    JWT_ACCESS_SECRET: str | None = (config.get("JWT_ACCESS_SECRET") or "").strip() or None
    JWT_ALGORITHM: str = config.get("JWT_ALGORITHM", "HS256").strip()  # type: ignore

    # Real-time provider fallback credentials when admin settings carry none
    RTC_APP_ID: str | None = (config.get("RTC_APP_ID") or "").strip() or None
    RTC_APP_SECRET: str | None = (config.get("RTC_APP_SECRET") or "").strip() or None
    DEFAULT_CALL_TOKEN_TTL: int = int((config.get("DEFAULT_CALL_TOKEN_TTL") or "").strip() or 216000)

    # Live scheduling
    LIVE_RESCHEDULE_EXEMPT_GROUP: str = config.get("LIVE_RESCHEDULE_EXEMPT_GROUP", "20").strip()  # type: ignore
    LIVE_CHANNEL_SUFFIX_LENGTH: int = int((config.get("LIVE_CHANNEL_SUFFIX_LENGTH") or "").strip() or 5)

    # Admin settings cache lifetime in Redis
    ADMIN_SETTINGS_CACHE_SECONDS: int = int(
        (config.get("ADMIN_SETTINGS_CACHE_SECONDS") or "").strip() or 60
    )


_app_environ_config = AppEnvironConfig()


def get_app_environ_config() -> AppEnvironConfig:
    return _app_environ_config
