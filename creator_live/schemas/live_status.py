"""Enums shared by the live stream schemas and domain."""

from enum import Enum, IntEnum


class LiveStatus(IntEnum):
    """Live stream lifecycle status as stored in ``live_streamings.status``.

    Only SCHEDULED streams can be edited, deleted or joined. Goals and tipping
    menus follow ownership alone. Deletion is a soft delete to DELETED.
    """

    SCHEDULED = 0
    COMPLETED = 1
    DELETED = 2
    EXPIRED = 3
    UNCLOSED = 4
    REFUNDED = 5

    def __str__(self) -> str:
        return self.name.lower()


class LiveType(str, Enum):
    IMMEDIATE = "livenow"
    SCHEDULED = "scheduled"

    def __str__(self) -> str:
        return self.value


class CallStatus(IntEnum):
    """``video_call.status`` values; only RINGING and ANSWERED grant room access."""

    RINGING = 0
    ANSWERED = 1

    @classmethod
    def active_states(cls) -> list["CallStatus"]:
        return [cls.RINGING, cls.ANSWERED]


__all__ = ["CallStatus", "LiveStatus", "LiveType"]
