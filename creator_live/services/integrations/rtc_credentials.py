"""Real-time join credentials.

Grants are described with ``livekit-api`` ``VideoGrants`` and signed locally with
PyJWT in the LiveKit token layout. ``nbf`` and ``exp`` come from the ``now``
argument, so a fixed clock gives a fixed token. No network calls are made and
nothing is persisted.

Usage:
    from creator_live.services.integrations.rtc_credentials import get_rtc_credential_issuer

    credential = get_rtc_credential_issuer().issue(
        app_id=settings.rtc_app_id,
        app_secret=settings.rtc_app_secret,
        channel=live.channel,
        participant_id=new_participant_id(),
        role=RtcRole.PUBLISHER,
        ttl_seconds=3600,
    )
"""

from __future__ import annotations

import dataclasses
import secrets
from datetime import datetime, timezone
from enum import Enum

import jwt
from livekit import api
from loguru import logger
from pydantic import BaseModel

from creator_live.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

MAX_PARTICIPANT_ID = 9999
TOKEN_ALGORITHM = "HS256"


class RtcRole(str, Enum):
    PUBLISHER = "publisher"
    SUBSCRIBER = "subscriber"


class RtcCredential(BaseModel):
    app_id: str
    channel: str
    token: str
    uid: int
    role: RtcRole
    expires_at: datetime


def new_participant_id() -> int:
    """Random participant id in 0..9999."""
    return secrets.randbelow(MAX_PARTICIPANT_ID + 1)


class RtcCredentialIssuer:
    """Mints short-lived, role-scoped join tokens for one channel."""

    def issue(
        self,
        app_id: str | None,
        app_secret: str | None,
        channel: str,
        participant_id: int,
        role: RtcRole,
        ttl_seconds: int,
        now: datetime | None = None,
    ) -> RtcCredential:
        """
        Sign a join token.

        Args:
            app_id: Provider app id (LiveKit API key)
            app_secret: Provider app secret (LiveKit API secret)
            channel: Room the token is valid for
            participant_id: Numeric participant id, used as the token identity
            role: Publishers may send media; subscribers only receive
            ttl_seconds: Token lifetime in whole seconds

        Raises:
            AppError: E_RTC_CONFIG_UNAVAILABLE when the app id or secret is missing
        """
        if not app_id or not app_secret:
            logger.error("RTC app id or secret not configured")
            raise AppError(
                errcode=AppErrorCode.E_RTC_CONFIG_UNAVAILABLE,
                errmesg="Agora configuration not available",
                status_code=HttpStatusCode.INTERNAL_SERVER_ERROR,
            )

        role = RtcRole(role)
        ttl_seconds = max(int(ttl_seconds), 1)
        issued_at = int((now or datetime.now(timezone.utc)).timestamp())

        can_publish = role is RtcRole.PUBLISHER
        grants = api.VideoGrants(
            room_join=True,
            room=channel,
            can_publish=can_publish,
            can_subscribe=True,
            can_publish_data=can_publish,
        )
        claims = {
            "iss": app_id,
            "sub": str(participant_id),
            "nbf": issued_at,
            "exp": issued_at + ttl_seconds,
            "video": _video_claim(grants),
        }

        logger.debug("issued {} credential for channel={} uid={} ttl={}s", role.value, channel, participant_id, ttl_seconds)
        return RtcCredential(
            app_id=app_id,
            channel=channel,
            token=jwt.encode(claims, app_secret, algorithm=TOKEN_ALGORITHM),
            uid=participant_id,
            role=role,
            expires_at=datetime.fromtimestamp(claims["exp"], timezone.utc),
        )


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _video_claim(grants: api.VideoGrants) -> dict:
    """Grants keyed the way LiveKit servers read them (``roomJoin``, ``canPublish``)."""
    return {_camel(key): value for key, value in dataclasses.asdict(grants).items() if value is not None}


_rtc_credential_issuer: RtcCredentialIssuer | None = None


def get_rtc_credential_issuer() -> RtcCredentialIssuer:
    global _rtc_credential_issuer
    if _rtc_credential_issuer is None:
        _rtc_credential_issuer = RtcCredentialIssuer()
    return _rtc_credential_issuer
