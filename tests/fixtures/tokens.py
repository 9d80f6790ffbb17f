"""Join-token helpers for tests signed at the fixed test clock."""

import jwt

from tests.fixtures.constants import RTC_APP_SECRET


def decode_rtc_token(token: str, secret: str = RTC_APP_SECRET) -> dict:
    # Tokens minted at NOW are already expired on the wall clock
    return jwt.decode(token, secret, algorithms=["HS256"], options={"verify_exp": False, "verify_nbf": False})
