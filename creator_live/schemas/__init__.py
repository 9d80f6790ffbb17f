"""Beanie ODM schemas for MongoDB collections and shared enums."""

from .goal_mirror import GoalMirror, goal_percentage
from .init import init_beanie_odm
from .live_status import CallStatus, LiveStatus, LiveType

__all__ = [
    "CallStatus",
    "GoalMirror",
    "LiveStatus",
    "LiveType",
    "goal_percentage",
    "init_beanie_odm",
]
