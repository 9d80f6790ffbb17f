"""Join-time aggregation for the creator's own live."""

from loguru import logger

from creator_live.repositories.records import GoalRecord
from creator_live.repositories.stats import EARNING_TYPES
from creator_live.schemas import goal_percentage
from creator_live.services.integrations.rtc_credentials import RtcRole, new_participant_id
from creator_live.shared.api.utils import log_taskgroup_errors, run_taskgroup
from creator_live.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from ._base import BaseService
from ._streams import live_token_ttl
from .live_models import GoalProgress, LiveEarnings, LiveJoinDetails, TipMenuItem
from .live_state_machine import LiveStateMachine


class DetailOperations(BaseService):
    """Builds the payload a creator needs to go live."""

    async def _total_earnings(self, live_id: int) -> int:
        async with self.storage.session() as conn:
            return await self.storage.stats.earnings(conn, live_id, EARNING_TYPES)

    async def _tip_earnings(self, live_id: int) -> int:
        async with self.storage.session() as conn:
            return await self.storage.stats.tips_since(conn, live_id, None)

    async def _bookings(self, live_id: int) -> int:
        async with self.storage.session() as conn:
            return await self.storage.stats.bookings_count(conn, live_id)

    async def _viewers(self, live_id: int) -> int:
        async with self.storage.session() as conn:
            return await self.storage.stats.viewers_count(conn, live_id)

    async def _tip_menu(self, live_id: int) -> list[TipMenuItem]:
        async with self.storage.session() as conn:
            return self._tip_items(await self.storage.tip_menus.list_active(conn, live_id))

    async def _goal(self, live_id: int) -> tuple[GoalRecord | None, int]:
        """Active goal and the tips received since it was set."""
        async with self.storage.session() as conn:
            goal = await self.storage.goals.get_current(conn, live_id)
            if goal is None or goal.is_empty:
                return goal, 0
            return goal, await self.storage.stats.tips_since(conn, live_id, goal.created_at)

    async def _mark_joined(self, live_id: int) -> None:
        try:
            async with self.storage.session() as conn:
                if await self.storage.lives.mark_creator_joined(conn, live_id):
                    logger.info("creator joined live {}", live_id)
        except Exception as exc:
            logger.warning("creator_joined update failed for live {}: {}", live_id, exc)

    async def join_live(self, user_id: int, live_token: str | None) -> LiveJoinDetails:
        if not live_token:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="Live id is required in path",
                status_code=HttpStatusCode.BAD_REQUEST,
            )
        live_id = self._decode_id(live_token, "Invalid live id format")

        async with self.storage.session() as conn:
            await self._require_verified_user(conn, user_id)
            live = await self.storage.lives.get(conn, live_id)

        if live is None:
            raise AppError(
                errcode=AppErrorCode.E_LIVE_NOT_FOUND,
                errmesg="Live not found",
                status_code=HttpStatusCode.NOT_FOUND,
            )
        if not LiveStateMachine.is_mutable(live.status):
            raise AppError(
                errcode=AppErrorCode.E_INVALID_STATE,
                errmesg="Live already closed",
                status_code=HttpStatusCode.BAD_REQUEST,
            )
        if live.user_id != user_id:
            raise AppError(
                errcode=AppErrorCode.E_FORBIDDEN,
                errmesg="You are not authorized to access this live",
                status_code=HttpStatusCode.FORBIDDEN,
            )

        settings = await self._get_settings()
        now = self.clock()
        credential = self.issuer.issue(
            app_id=settings.rtc_app_id,
            app_secret=settings.rtc_app_secret,
            channel=live.channel,
            participant_id=new_participant_id(),
            role=RtcRole.PUBLISHER,
            ttl_seconds=live_token_ttl(live.duration),
            now=now,
        )
        if not live.creator_joined:
            await self._mark_joined(live_id)

        try:
            total, tip, bookings, (goal, goal_tips), tipmenu, viewers = await run_taskgroup(
                self._total_earnings(live_id),
                self._tip_earnings(live_id),
                self._bookings(live_id),
                self._goal(live_id),
                self._tip_menu(live_id),
                self._viewers(live_id),
            )
        except Exception as exc:
            log_taskgroup_errors(exc)
            logger.error("live {} detail fetch failed", live_id)
            raise AppError(
                errcode=AppErrorCode.E_INTERNAL_ERROR,
                errmesg="Failed to fetch live details",
                status_code=HttpStatusCode.INTERNAL_SERVER_ERROR,
            ) from exc

        progress = None
        if goal is not None and not goal.is_empty:
            await self.mirror.sync(goal, goal_tips, now)
            progress = GoalProgress(
                goal_id=self.codec.encrypt(goal.id),
                live_id=live_token,
                name=goal.goal_name,
                price=goal.coins,
                tips_received=goal_tips,
                percentage=goal_percentage(goal_tips, goal.coins),
            )

        return LiveJoinDetails(
            credential=credential,
            live_duration=live.duration,
            earnings=LiveEarnings(total=total, bookings=bookings, tip=tip),
            goal=progress,
            tipmenu=tipmenu,
            viewers_count=viewers,
        )
