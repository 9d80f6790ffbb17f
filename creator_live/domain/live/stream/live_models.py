"""Live stream domain models."""

from datetime import datetime

from pydantic import BaseModel, Field

from creator_live.schemas import LiveType
from creator_live.services.integrations.rtc_credentials import RtcCredential


class LiveUpsertParams(BaseModel):
    """Parameters for creating a live, or editing one when ``live_id`` is set."""

    live_id: str | None = None
    name: str
    description: str = ""
    price: int = 0
    availability: str = "all_pay"
    type: LiveType
    duration: int

    scheduled_date: str | None = None
    scheduled_time: str | None = None
    timezone: str | None = None

    # Tipping menu replacement; None leaves the menu untouched
    activity: list[str] | None = None
    coins: list[int] | None = None

    goal_name: str | None = None
    goal_coins: int | None = None
    goal_id: str | None = None
    delete_goal_ids: list[str] = Field(default_factory=list)


class LiveUpsertResult(BaseModel):
    live_id: str
    url: str
    credential: RtcCredential | None = None


class TipMenuItem(BaseModel):
    id: str
    activity_name: str
    coins: int


class GoalItem(BaseModel):
    id: str
    live_id: str
    goal_name: str
    coins: int


class GoalProgress(BaseModel):
    goal_id: str
    live_id: str
    name: str
    price: int
    tips_received: int = 0
    percentage: int = 0


class LiveCreateView(BaseModel):
    live_id: str | None = None
    tipping_menus: list[TipMenuItem] = Field(default_factory=list)


class LiveEditDetails(BaseModel):
    id: str
    name: str
    description: str
    price: int
    availability: str
    type: LiveType
    duration: int
    date: str
    time: str
    date_time: datetime
    number_of_reschedules: int
    remaining_reschedules: int


class LiveEditView(BaseModel):
    live: LiveEditDetails
    tipping_menus: list[TipMenuItem]
    goal: GoalItem | None = None


class TipMenuReplaceResult(BaseModel):
    live_id: str
    items: list[TipMenuItem]


class GoalUpsertParams(BaseModel):
    live_id: str
    goal_name: str | None = None
    coins: int | None = None
    goal_id: str | None = None


class LiveFilters(BaseModel):
    filters: dict[str, str]
    current_filter: str


class LiveEarnings(BaseModel):
    total: int
    bookings: int
    tip: int


class LiveJoinDetails(BaseModel):
    credential: RtcCredential
    live_duration: int
    earnings: LiveEarnings
    goal: GoalProgress | None = None
    tipmenu: list[TipMenuItem]
    viewers_count: int
