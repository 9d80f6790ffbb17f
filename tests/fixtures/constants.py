from datetime import datetime, timezone

NOW = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)

RTC_APP_ID = "APItestkey"
RTC_APP_SECRET = "test-rtc-secret-with-enough-length"
JWT_ACCESS_SECRET = "test-jwt-access-secret-0123456789abcdef"
