"""Relational data access for the live stream core."""

from .records import GoalRecord, LiveRecord, TipMenuRecord, UserRecord, VideoCallRecord
from .storage import LiveStorage, get_live_storage

__all__ = [
    "GoalRecord",
    "LiveRecord",
    "LiveStorage",
    "TipMenuRecord",
    "UserRecord",
    "VideoCallRecord",
    "get_live_storage",
]
