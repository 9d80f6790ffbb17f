"""Tests for the real-time credential issuer."""

from datetime import timedelta

import jwt
import pytest

from creator_live.services.integrations.rtc_credentials import (
    RtcCredentialIssuer,
    RtcRole,
    new_participant_id,
)
from creator_live.utils.app_errors import AppError, AppErrorCode
from tests.fixtures.constants import NOW, RTC_APP_ID, RTC_APP_SECRET
from tests.fixtures.tokens import decode_rtc_token


@pytest.fixture
def issuer() -> RtcCredentialIssuer:
    return RtcCredentialIssuer()


class TestIssue:
    def test_publisher_may_publish(self, issuer: RtcCredentialIssuer):
        credential = issuer.issue(RTC_APP_ID, RTC_APP_SECRET, "live_x1y2z_7", 1234, RtcRole.PUBLISHER, 600, now=NOW)

        claims = decode_rtc_token(credential.token)
        assert claims["iss"] == RTC_APP_ID
        assert claims["sub"] == "1234"
        assert claims["video"]["room"] == "live_x1y2z_7"
        assert claims["video"]["canPublish"] is True
        assert credential.uid == 1234
        assert credential.expires_at == NOW + timedelta(seconds=600)

    def test_validity_window_follows_the_given_clock(self, issuer: RtcCredentialIssuer):
        credential = issuer.issue(RTC_APP_ID, RTC_APP_SECRET, "room-1", 5, RtcRole.PUBLISHER, 600, now=NOW)

        claims = decode_rtc_token(credential.token)
        assert claims["nbf"] == int(NOW.timestamp())
        assert claims["exp"] == int((NOW + timedelta(seconds=600)).timestamp())
        assert claims["exp"] == int(credential.expires_at.timestamp())

    def test_same_clock_gives_same_token(self, issuer: RtcCredentialIssuer):
        first = issuer.issue(RTC_APP_ID, RTC_APP_SECRET, "room-1", 5, RtcRole.SUBSCRIBER, 600, now=NOW)
        second = issuer.issue(RTC_APP_ID, RTC_APP_SECRET, "room-1", 5, RtcRole.SUBSCRIBER, 600, now=NOW)

        assert first.token == second.token

    def test_subscriber_cannot_publish(self, issuer: RtcCredentialIssuer):
        credential = issuer.issue(RTC_APP_ID, RTC_APP_SECRET, "room-1", 5, RtcRole.SUBSCRIBER, 600)

        claims = jwt.decode(credential.token, RTC_APP_SECRET, algorithms=["HS256"])
        assert claims["video"]["canPublish"] is False
        assert claims["video"]["canSubscribe"] is True
        assert credential.role is RtcRole.SUBSCRIBER

    def test_wrong_secret_does_not_verify(self, issuer: RtcCredentialIssuer):
        credential = issuer.issue(RTC_APP_ID, RTC_APP_SECRET, "room-1", 5, RtcRole.PUBLISHER, 600)

        with pytest.raises(jwt.InvalidSignatureError):
            jwt.decode(credential.token, "another-secret-of-sufficient-length", algorithms=["HS256"])

    @pytest.mark.parametrize("app_id,app_secret", [(None, RTC_APP_SECRET), (RTC_APP_ID, None), ("", "")])
    def test_missing_configuration(self, issuer: RtcCredentialIssuer, app_id, app_secret):
        with pytest.raises(AppError) as exc_info:
            issuer.issue(app_id, app_secret, "room-1", 5, RtcRole.PUBLISHER, 600)

        assert exc_info.value.errcode == AppErrorCode.E_RTC_CONFIG_UNAVAILABLE.value
        assert exc_info.value.errmesg == "Agora configuration not available"


def test_participant_id_range():
    ids = {new_participant_id() for _ in range(200)}

    assert all(0 <= i <= 9999 for i in ids)
