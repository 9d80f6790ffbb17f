"""Video call credential service."""

from loguru import logger
from pydantic import BaseModel

from creator_live.services.admin_settings import AdminSettingsProvider, get_admin_settings_provider
from creator_live.services.integrations.rtc_credentials import (
    RtcCredentialIssuer,
    RtcRole,
    get_rtc_credential_issuer,
    new_participant_id,
)
from creator_live.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from .room_access import RoomAccessValidator


class CallCredential(BaseModel):
    app_id: str
    app_secret: str
    token: str
    uid: int


class CallService:
    def __init__(
        self,
        validator: RoomAccessValidator | None = None,
        settings_provider: AdminSettingsProvider | None = None,
        issuer: RtcCredentialIssuer | None = None,
    ):
        self.validator = validator or RoomAccessValidator()
        self._settings_provider = settings_provider
        self.issuer = issuer or get_rtc_credential_issuer()

    @property
    def settings_provider(self) -> AdminSettingsProvider:
        if self._settings_provider is None:
            self._settings_provider = get_admin_settings_provider()
        return self._settings_provider

    async def get_call_credential(self, caller_id: int, room_id: str | None, user_id: str | int | None) -> CallCredential:
        """
        Issue a publisher token for a video call room.

        ``user_id`` is the participant named in the request, as sent on the query
        string. It must parse as an integer and be the authenticated caller, and
        the caller must be a participant of the room's active call.

        Raises:
            AppError: 400 on missing parameters, 403 on access denial, 404 when no
                admin settings exist, 500 when provider credentials are missing
        """
        if not room_id:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="Missing required parameters: room_id is required",
                status_code=HttpStatusCode.BAD_REQUEST,
            )
        if user_id is None:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="Missing required parameters: user_id is required",
                status_code=HttpStatusCode.BAD_REQUEST,
            )
        try:
            user_id = int(user_id)
        except ValueError as exc:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="Invalid user_id: must be an integer",
                status_code=HttpStatusCode.BAD_REQUEST,
            ) from exc
        if user_id != caller_id:
            logger.warning("caller {} requested call credentials as user {}", caller_id, user_id)
            raise AppError(
                errcode=AppErrorCode.E_ROOM_ACCESS_DENIED,
                errmesg="Unauthorized access to this room",
                status_code=HttpStatusCode.FORBIDDEN,
            )

        access = await self.validator.validate(room_id, caller_id)
        if not access.allowed:
            raise AppError(
                errcode=AppErrorCode.E_ROOM_ACCESS_DENIED,
                errmesg=access.message,
                status_code=HttpStatusCode.FORBIDDEN,
            )

        settings = await self.settings_provider.get_settings()
        if not settings.configured:
            raise AppError(
                errcode=AppErrorCode.E_SETTINGS_NOT_FOUND,
                errmesg="Admin settings not found",
                status_code=HttpStatusCode.NOT_FOUND,
            )

        credential = self.issuer.issue(
            app_id=settings.rtc_app_id,
            app_secret=settings.rtc_app_secret,
            channel=room_id,
            participant_id=new_participant_id(),
            role=RtcRole.PUBLISHER,
            ttl_seconds=settings.call_token_ttl,
        )
        logger.info("call credential issued for room {} uid {}", room_id, credential.uid)
        return CallCredential(
            app_id=credential.app_id,
            app_secret=settings.rtc_app_secret,  # type: ignore[arg-type]
            token=credential.token,
            uid=credential.uid,
        )
