import os
from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from tests.fixtures.constants import JWT_ACCESS_SECRET, NOW, RTC_APP_ID, RTC_APP_SECRET

# Set test environment variables before creator_live reads its configuration
os.environ.update(
    {
        "ENCRYPT_SECRET_ID": "test-encrypt-secret-0123456789abcdef",
        "JWT_ACCESS_SECRET": JWT_ACCESS_SECRET,
        "JWT_ALGORITHM": "HS256",
        "RTC_APP_ID": "",
        "RTC_APP_SECRET": "",
        "LIVE_RESCHEDULE_EXEMPT_GROUP": "20",
    }
)

from creator_live.domain.live.stream.live_domain import LiveService  # noqa: E402
from creator_live.services.admin_settings import AdminSettings, AdminSettingsProvider  # noqa: E402
from creator_live.services.goal_mirror import GoalMirrorSync  # noqa: E402
from creator_live.services.integrations.rtc_credentials import RtcCredentialIssuer  # noqa: E402
from creator_live.utils.id_codec import IdCodec  # noqa: E402
from tests.fixtures.fake_storage import FakeStorage  # noqa: E402


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage(now=NOW)


@pytest.fixture
def codec() -> IdCodec:
    return IdCodec("unit-test-secret-0123456789abcdefghij")


@pytest.fixture
def settings() -> AdminSettings:
    return AdminSettings(
        max_reschedules=3,
        reschedule_buffer_minutes=120,
        min_tip_amount=1,
        max_tip_amount=1000,
        min_live_price=0,
        max_live_duration=1440,
        rtc_app_id=RTC_APP_ID,
        rtc_app_secret=RTC_APP_SECRET,
        call_token_ttl=3600,
    )


@pytest.fixture
def settings_provider(settings: AdminSettings) -> AsyncMock:
    provider = AsyncMock(spec=AdminSettingsProvider)
    provider.get_settings.return_value = settings
    return provider


@pytest.fixture
def mirror() -> AsyncMock:
    return AsyncMock(spec=GoalMirrorSync)


@pytest.fixture
def live_service(
    storage: FakeStorage, codec: IdCodec, settings_provider: AsyncMock, mirror: AsyncMock
) -> LiveService:
    return LiveService(
        storage=storage,
        codec=codec,
        settings_provider=settings_provider,
        mirror=mirror,
        issuer=RtcCredentialIssuer(),
        clock=lambda: NOW,
    )
