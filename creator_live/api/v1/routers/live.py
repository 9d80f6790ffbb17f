from fastapi import APIRouter, Depends, Query

from creator_live.api.v1.dependency import CurrentUser
from creator_live.api.v1.schemas.base import ApiOut
from creator_live.api.v1.schemas.live import (
    ApplyFilterIn,
    EarningsOut,
    FilterAppliedOut,
    GoalOut,
    GoalProgressOut,
    GoalUpsertIn,
    GoalUpsertOut,
    LiveCreateViewOut,
    LiveDeleteOut,
    LiveEditViewOut,
    LiveFiltersOut,
    LiveJoinOut,
    LiveStreamingOut,
    LiveUpsertIn,
    LiveUpsertOut,
    TipMenuItemOut,
    TipMenuReplaceIn,
    TipMenuReplaceOut,
)
from creator_live.domain.live.stream.live_domain import LiveService
from creator_live.domain.live.stream.live_models import (
    GoalItem,
    GoalUpsertParams,
    LiveUpsertParams,
    TipMenuItem,
)

router = APIRouter(prefix="/live", tags=["Live"])

# Singleton instance
_live_service = LiveService()


def get_live_service() -> LiveService:
    """Get the singleton LiveService instance."""
    return _live_service


def _tip_menu_out(items: list[TipMenuItem]) -> list[TipMenuItemOut]:
    return [TipMenuItemOut(id=i.id, activity_name=i.activity_name, coins=i.coins) for i in items]


def _goal_out(goal: GoalItem) -> GoalOut:
    return GoalOut(id=goal.id, live_id=goal.live_id, goal_name=goal.goal_name, coins=goal.coins)


@router.get("/create")
async def get_create_view(
    user: CurrentUser,
    service: LiveService = Depends(get_live_service),
) -> ApiOut[LiveCreateViewOut]:
    """Latest live of the creator with its active tipping menu."""
    view = await service.get_create_view(user.user_id)
    return ApiOut[LiveCreateViewOut](
        message="Fetched latest live and tipping menu",
        data=LiveCreateViewOut(live_id=view.live_id, tipping_menus=_tip_menu_out(view.tipping_menus)),
    )


@router.post("/create")
async def upsert_live(
    body: LiveUpsertIn,
    user: CurrentUser,
    service: LiveService = Depends(get_live_service),
) -> ApiOut[LiveUpsertOut]:
    """Create a live, or edit the one named by ``live_id``.

    A ``livenow`` live also returns a publisher credential for the streaming room.
    """
    params = LiveUpsertParams(
        live_id=body.live_id,
        name=body.name,
        description=body.description,
        price=body.price,
        availability=body.availability,
        type=body.type,
        duration=body.duration,
        scheduled_date=body.scheduled_date,
        scheduled_time=body.scheduled_time,
        timezone=body.timezone,
        activity=body.activity,
        coins=body.coins,
        goal_name=body.goal_name,
        goal_coins=body.goal_coins,
        goal_id=body.goalid,
        delete_goal_ids=body.delete_goal_ids(),
    )
    result = await service.upsert_live(user.user_id, params)

    out = LiveUpsertOut(live_id=result.live_id, url=result.url)
    if result.credential is not None:
        out.agora_app_id = result.credential.app_id
        out.agora_channel = result.credential.channel
        out.token = result.credential.token
        out.uid = result.credential.uid

    message = "Live stream edited successfully" if body.live_id else "Live stream created successfully"
    return ApiOut[LiveUpsertOut](message=message, data=out)


@router.get("/edit/{live_id}")
async def get_edit_view(
    live_id: str,
    user: CurrentUser,
    service: LiveService = Depends(get_live_service),
) -> ApiOut[LiveEditViewOut]:
    view = await service.get_edit_view(user.user_id, live_id)
    live = view.live
    return ApiOut[LiveEditViewOut](
        message="Live edit details retrieved successfully",
        data=LiveEditViewOut(
            live_streaming=LiveStreamingOut(**live.model_dump()),
            tipping_menus=_tip_menu_out(view.tipping_menus),
            live_goal=_goal_out(view.goal) if view.goal else None,
        ),
    )


@router.put("/edit/tipmenu")
async def replace_tip_menu(
    body: TipMenuReplaceIn,
    user: CurrentUser,
    service: LiveService = Depends(get_live_service),
) -> ApiOut[TipMenuReplaceOut]:
    """Replace the whole tipping menu of a live."""
    result = await service.replace_tip_menu(user.user_id, body.c, body.activity, body.coins)
    return ApiOut[TipMenuReplaceOut](
        message="Tipping menu updated",
        data=TipMenuReplaceOut(data=_tip_menu_out(result.items), c=result.live_id),
    )


@router.delete("/delete/{live_id}")
async def delete_live(
    live_id: str,
    user: CurrentUser,
    service: LiveService = Depends(get_live_service),
) -> ApiOut[LiveDeleteOut]:
    deleted = await service.delete_live(user.user_id, live_id)
    return ApiOut[LiveDeleteOut](
        message="Live stream deleted successfully",
        data=LiveDeleteOut(live_id=deleted),
    )


@router.get("/filter")
async def get_filters(
    user: CurrentUser,
    service: LiveService = Depends(get_live_service),
    c: str | None = Query(None, description="Opaque live id"),
) -> ApiOut[LiveFiltersOut]:
    result = await service.get_filters(c)
    return ApiOut[LiveFiltersOut](
        message="Live filters fetched",
        data=LiveFiltersOut(filters=result.filters, current_filter=result.current_filter),
    )


@router.post("/filter")
async def apply_filter(
    body: ApplyFilterIn,
    user: CurrentUser,
    service: LiveService = Depends(get_live_service),
) -> ApiOut[FilterAppliedOut]:
    applied = await service.apply_filter(user.user_id, body.c, body.filter)
    return ApiOut[FilterAppliedOut](message="Live filter applied", data=FilterAppliedOut(filter=applied))


@router.post("/goal")
async def upsert_goal(
    body: GoalUpsertIn,
    user: CurrentUser,
    service: LiveService = Depends(get_live_service),
) -> ApiOut[GoalUpsertOut]:
    """Create, update or clear the active goal of a live."""
    params = GoalUpsertParams(
        live_id=body.live_id or "",
        goal_name=body.goal_name,
        coins=body.coins,
        goal_id=body.goal_id,
    )
    goals = await service.upsert_goal(user.user_id, params)
    return ApiOut[GoalUpsertOut](
        message="Goal Updated successfully",
        data=GoalUpsertOut(live=[_goal_out(g) for g in goals]),
    )


@router.get("/go/{live_id}")
async def join_live(
    live_id: str,
    user: CurrentUser,
    service: LiveService = Depends(get_live_service),
) -> ApiOut[LiveJoinOut]:
    """Everything the creator needs to start streaming their scheduled live."""
    details = await service.join_live(user.user_id, live_id)
    goal = details.goal
    return ApiOut[LiveJoinOut](
        message="Live details fetched",
        data=LiveJoinOut(
            agora_app_id=details.credential.app_id,
            agora_channel=details.credential.channel,
            token=details.credential.token,
            uid=details.credential.uid,
            live_duration=details.live_duration,
            earnings=EarningsOut(**details.earnings.model_dump()),
            goal=GoalProgressOut(**goal.model_dump()) if goal else None,
            tipmenu=_tip_menu_out(details.tipmenu),
            viewers_count=details.viewers_count,
        ),
    )
