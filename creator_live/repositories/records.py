"""Row models returned by the repositories."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from creator_live.schemas import LiveStatus, LiveType


class UserRecord(BaseModel):
    id: int
    username: str
    verified: bool


class LiveRecord(BaseModel):
    id: int
    user_id: int
    channel: str
    name: str
    description: str = ""
    price: int = 0
    availability: str = "all_pay"
    type: LiveType
    duration: int
    date_time: datetime
    status: LiveStatus
    number_of_reschedules: int = 0
    user_notification: int = 0
    creator_joined: bool = False
    filter_applied: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class GoalRecord(BaseModel):
    id: int
    live_id: int
    goal_name: str
    coins: int
    active: bool
    created_at: datetime | None = None

    @property
    def is_empty(self) -> bool:
        return not self.goal_name.strip() and not self.coins


class TipMenuRecord(BaseModel):
    id: int
    live_id: int
    activity_name: str
    coins: int


class VideoCallRecord(BaseModel):
    id: int
    room_id: str
    user_id: int
    creator_id: int
    status: int
    started_at: datetime | None = None
    ended_at: datetime | None = None


def from_row(model: type[BaseModel], row: Any):
    """Build a record from an asyncpg Record, returning None for a missing row."""
    if row is None:
        return None
    return model.model_validate(dict(row))
