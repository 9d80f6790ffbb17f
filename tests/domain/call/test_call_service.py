"""Tests for call credential issuance."""

from unittest.mock import AsyncMock

import jwt
import pytest

from creator_live.domain.call.call_domain import CallService
from creator_live.domain.call.room_access import RoomAccessValidator
from creator_live.schemas import CallStatus
from creator_live.services.admin_settings import AdminSettings
from creator_live.services.integrations.rtc_credentials import RtcCredentialIssuer
from creator_live.utils.app_errors import AppError, AppErrorCode, HttpStatusCode
from tests.fixtures.constants import RTC_APP_ID, RTC_APP_SECRET

CALLER = 7
CREATOR = 8
ROOM = "room-abc"


@pytest.fixture
def call_service(storage, settings_provider) -> CallService:
    return CallService(
        validator=RoomAccessValidator(storage),
        settings_provider=settings_provider,
        issuer=RtcCredentialIssuer(),
    )


class TestGetCallCredential:
    async def test_participant_gets_publisher_token(self, call_service: CallService, storage):
        storage.add_call(ROOM, CALLER, CREATOR, CallStatus.RINGING)

        credential = await call_service.get_call_credential(CALLER, ROOM, CALLER)

        assert credential.app_id == RTC_APP_ID
        assert credential.app_secret == RTC_APP_SECRET
        assert 0 <= credential.uid <= 9999
        claims = jwt.decode(credential.token, RTC_APP_SECRET, algorithms=["HS256"])
        assert claims["video"]["room"] == ROOM
        assert claims["video"]["canPublish"] is True

    async def test_token_lifetime_follows_settings(self, call_service: CallService, storage):
        storage.add_call(ROOM, CALLER, CREATOR, CallStatus.RINGING)

        credential = await call_service.get_call_credential(CALLER, ROOM, CALLER)

        claims = jwt.decode(credential.token, RTC_APP_SECRET, algorithms=["HS256"])
        assert claims["exp"] - claims["nbf"] == 3600

    async def test_user_id_from_query_string(self, call_service: CallService, storage):
        storage.add_call(ROOM, CALLER, CREATOR, CallStatus.RINGING)

        credential = await call_service.get_call_credential(CALLER, ROOM, str(CALLER))

        assert credential.app_id == RTC_APP_ID

    @pytest.mark.parametrize("user_id", ["abc", "7.0", ""])
    async def test_non_numeric_user_id(self, call_service: CallService, storage, user_id):
        storage.add_call(ROOM, CALLER, CREATOR, CallStatus.RINGING)

        with pytest.raises(AppError) as exc_info:
            await call_service.get_call_credential(CALLER, ROOM, user_id)

        assert exc_info.value.errcode == AppErrorCode.E_INVALID_REQUEST.value
        assert exc_info.value.status_code == HttpStatusCode.BAD_REQUEST
        assert exc_info.value.errmesg == "Invalid user_id: must be an integer"

    @pytest.mark.parametrize(
        "room_id,user_id,message",
        [
            (None, CALLER, "Missing required parameters: room_id is required"),
            ("", CALLER, "Missing required parameters: room_id is required"),
            (ROOM, None, "Missing required parameters: user_id is required"),
        ],
    )
    async def test_missing_parameters(self, call_service: CallService, room_id, user_id, message):
        with pytest.raises(AppError) as exc_info:
            await call_service.get_call_credential(CALLER, room_id, user_id)

        assert exc_info.value.status_code == HttpStatusCode.BAD_REQUEST
        assert exc_info.value.errmesg == message

    async def test_user_id_must_be_caller(self, call_service: CallService, storage):
        storage.add_call(ROOM, CALLER, CREATOR, CallStatus.RINGING)

        with pytest.raises(AppError) as exc_info:
            await call_service.get_call_credential(CALLER, ROOM, CREATOR)

        assert exc_info.value.status_code == HttpStatusCode.FORBIDDEN

    async def test_no_active_call(self, call_service: CallService):
        with pytest.raises(AppError) as exc_info:
            await call_service.get_call_credential(CALLER, ROOM, CALLER)

        assert exc_info.value.errcode == AppErrorCode.E_ROOM_ACCESS_DENIED.value
        assert exc_info.value.errmesg == "No active video call found for this room"

    async def test_unconfigured_settings(self, storage):
        storage.add_call(ROOM, CALLER, CREATOR, CallStatus.RINGING)
        provider = AsyncMock()
        provider.get_settings.return_value = AdminSettings(configured=False)
        service = CallService(validator=RoomAccessValidator(storage), settings_provider=provider)

        with pytest.raises(AppError) as exc_info:
            await service.get_call_credential(CALLER, ROOM, CALLER)

        assert exc_info.value.status_code == HttpStatusCode.NOT_FOUND
        assert exc_info.value.errmesg == "Admin settings not found"
