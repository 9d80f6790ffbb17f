from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field, field_serializer

from creator_live.schemas import LiveType

from .base import AliasedOut
from .serializers import serialize_utc_datetime


# ==================== INPUTS ====================


class LiveUpsertIn(BaseModel):
    live_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("live_id", "liveId"),
        description="Opaque id of the live to edit; omit to create",
    )
    name: str = Field(validation_alias=AliasChoices("name", "title"), description="Title of the live")
    description: str = Field(default="", description="Up to 500 characters")
    price: int = Field(default=0, description="Entry price in coins")
    availability: str = Field(default="all_pay")
    type: LiveType = Field(description="'livenow' starts immediately, 'scheduled' needs a date and time")
    duration: int = Field(description="Duration in minutes")
    scheduled_date: str | None = Field(default=None, description="YYYY-MM-DD in the creator's timezone")
    scheduled_time: str | None = Field(default=None, description="HH:MM in the creator's timezone")
    timezone: str | None = Field(default=None, description="IANA timezone name")
    activity: list[str] | None = Field(default=None, description="Tip menu activity names")
    coins: list[int] | None = Field(default=None, description="Tip menu amounts, same length as activity")
    goal_name: str | None = None
    goal_coins: int | None = None
    goalid: str | None = Field(default=None, description="Opaque id of the goal to update")
    delgoalid: str | None = Field(default=None, description="Comma separated opaque goal ids to deactivate")

    def delete_goal_ids(self) -> list[str]:
        if not self.delgoalid:
            return []
        return [token.strip() for token in self.delgoalid.split(",") if token.strip()]


class TipMenuReplaceIn(BaseModel):
    c: str | None = Field(default=None, description="Opaque live id")
    activity: list[str] | None = None
    coins: list[int] | None = None


class GoalUpsertIn(BaseModel):
    live_id: str | None = None
    goal_name: str | None = None
    coins: int | None = None
    goal_id: str | None = None


class ApplyFilterIn(BaseModel):
    c: str | None = Field(default=None, description="Opaque live id")
    filter: str | None = Field(default=None, description="Filter key, unknown keys fall back to 'none'")


# ==================== OUTPUTS ====================


class TipMenuItemOut(BaseModel):
    id: str
    activity_name: str
    coins: int


class GoalOut(BaseModel):
    id: str
    live_id: str
    goal_name: str
    coins: int


class LiveUpsertOut(AliasedOut):
    live_id: str = Field(alias="liveId")
    url: str
    agora_app_id: str | None = Field(default=None, alias="agoraAppId")
    agora_channel: str | None = Field(default=None, alias="agoraChannel")
    token: str | None = None
    uid: int | None = None


class LiveCreateViewOut(AliasedOut):
    live_id: str | None = Field(default=None, alias="liveId")
    tipping_menus: list[TipMenuItemOut] = Field(alias="tippingMenus")


class LiveStreamingOut(BaseModel):
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

    @field_serializer("date_time")
    def serialize_date_time(self, value: datetime) -> str:
        return serialize_utc_datetime(value)


class LiveEditViewOut(AliasedOut):
    live_streaming: LiveStreamingOut = Field(alias="liveStreaming")
    tipping_menus: list[TipMenuItemOut] = Field(alias="tippingMenus")
    live_goal: GoalOut | None = Field(default=None, alias="liveGoal")


class TipMenuReplaceOut(BaseModel):
    data: list[TipMenuItemOut]
    c: str


class LiveDeleteOut(AliasedOut):
    live_id: str = Field(alias="liveId")


class LiveFiltersOut(BaseModel):
    filters: dict[str, str]
    current_filter: str


class FilterAppliedOut(BaseModel):
    filter: str


class GoalUpsertOut(BaseModel):
    live: list[GoalOut]


class EarningsOut(BaseModel):
    total: int
    bookings: int
    tip: int


class GoalProgressOut(BaseModel):
    goal_id: str
    live_id: str
    name: str
    price: int
    tips_received: int
    percentage: int


class LiveJoinOut(AliasedOut):
    agora_app_id: str = Field(alias="agoraAppId")
    agora_channel: str = Field(alias="agoraChannel")
    token: str
    uid: int
    live_duration: int = Field(alias="liveDuration")
    earnings: EarningsOut
    goal: GoalProgressOut | None = None
    tipmenu: list[TipMenuItemOut]
    viewers_count: int = Field(alias="viewersCount")
