"""Application error type raised by domain code and rendered by the API layer."""

import inspect
from enum import Enum, IntEnum
from typing import Any
from uuid import uuid4


class HttpStatusCode(IntEnum):
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    UNPROCESSABLE_ENTITY = 422
    INTERNAL_SERVER_ERROR = 500


class AppErrorCode(str, Enum):
    # Generic
    E_INTERNAL_ERROR = "E_INTERNAL_ERROR"
    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_INVALID_PARAMS = "E_INVALID_PARAMS"
    E_INVALID_ID = "E_INVALID_ID"

    # Identity
    E_BAD_TOKEN = "E_BAD_TOKEN"
    E_USER_NOT_FOUND = "E_USER_NOT_FOUND"
    E_NOT_VERIFIED = "E_NOT_VERIFIED"
    E_FORBIDDEN = "E_FORBIDDEN"

    # Live streams
    E_LIVE_NOT_FOUND = "E_LIVE_NOT_FOUND"
    E_LIVE_EXISTS = "E_LIVE_EXISTS"
    E_INVALID_STATE = "E_INVALID_STATE"
    E_RESCHEDULE_LIMIT = "E_RESCHEDULE_LIMIT"
    E_RESCHEDULE_TOO_SOON = "E_RESCHEDULE_TOO_SOON"

    # Calls and credentials
    E_ROOM_NOT_FOUND = "E_ROOM_NOT_FOUND"
    E_ROOM_ACCESS_DENIED = "E_ROOM_ACCESS_DENIED"
    E_SETTINGS_NOT_FOUND = "E_SETTINGS_NOT_FOUND"
    E_RTC_CONFIG_UNAVAILABLE = "E_RTC_CONFIG_UNAVAILABLE"

    def __str__(self) -> str:
        return self.value


class AppError(Exception):
    """
    Error carrying an API error code, a user-facing message and an HTTP status.

    The frame that raised the error is captured so the handler can log the real
    origin instead of the handler itself.
    """

    def __init__(
        self,
        errcode: AppErrorCode | str,
        errmesg: str,
        status_code: HttpStatusCode | int = HttpStatusCode.BAD_REQUEST,
        details: Any = None,
    ):
        super().__init__(errmesg)
        self.errcode = str(errcode)
        self.errmesg = errmesg
        self.status_code = int(status_code)
        self.details = details
        self.erresid = uuid4().hex[:10]
        self.caller_info = self._capture_caller()

    @staticmethod
    def _capture_caller() -> str:
        frame = inspect.currentframe()
        # skip _capture_caller and __init__
        for _ in range(2):
            if frame is None:
                return "unknown"
            frame = frame.f_back
        if frame is None:
            return "unknown"
        module = frame.f_globals.get("__name__", "?")
        return f"{module}:{frame.f_code.co_name}:{frame.f_lineno}"

    def __repr__(self) -> str:
        return f"AppError({self.errcode!r}, {self.errmesg!r}, status_code={self.status_code})"
