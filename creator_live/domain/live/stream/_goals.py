"""Goal ledger and the goal endpoint operations."""

from loguru import logger

from creator_live.repositories import LiveStorage
from creator_live.repositories.records import GoalRecord
from creator_live.shared.storage.postgres import AsyncPGClient
from creator_live.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from ._base import BaseService
from .live_models import GoalItem, GoalUpsertParams

GOAL_PAIR_REQUIRED = "Both goal_name and coins are required together"


def has_goal_name(name: str | None) -> bool:
    return bool(name and name.strip())


def has_goal_coins(coins: int | None) -> bool:
    return coins is not None and coins != 0


class GoalLedger:
    """
    Active-pointer goal history for one live.

    Goals are never deleted: a replaced goal is deactivated and kept. Callers run
    every method inside a transaction that holds the live row lock. Other rows
    are always deactivated before a row is activated, so the one-active-goal
    index is never violated mid-transaction.
    """

    def __init__(self, storage: LiveStorage):
        self.storage = storage

    async def current(self, conn: AsyncPGClient, live_id: int) -> GoalRecord | None:
        return await self.storage.goals.get_current(conn, live_id)

    async def upsert(
        self,
        conn: AsyncPGClient,
        live_id: int,
        goal_name: str,
        coins: int,
        goal_id: int | None = None,
    ) -> GoalRecord:
        goals = self.storage.goals
        goal_name = goal_name.strip()

        if goal_id is not None:
            target = await goals.get(conn, goal_id)
            if target is None or target.live_id != live_id:
                raise AppError(
                    errcode=AppErrorCode.E_INVALID_ID,
                    errmesg="Invalid goal id format",
                    status_code=HttpStatusCode.BAD_REQUEST,
                )
            await goals.deactivate_all_except(conn, live_id, goal_id)
            await goals.update(conn, goal_id, goal_name, coins)
            logger.info("live {} goal {} updated by id", live_id, goal_id)
            return target.model_copy(update={"goal_name": goal_name, "coins": coins, "active": True})

        current = await goals.get_current(conn, live_id)
        if current is not None and not current.is_empty:
            await goals.deactivate_all_except(conn, live_id, current.id)
            await goals.update(conn, current.id, goal_name, coins)
            logger.info("live {} goal {} updated in place", live_id, current.id)
            return current.model_copy(update={"goal_name": goal_name, "coins": coins})

        # No goal yet, or only the empty placeholder
        await goals.deactivate_all_except(conn, live_id, None)
        new_id = await goals.insert(conn, live_id, goal_name, coins)
        logger.info("live {} goal {} created", live_id, new_id)
        return await goals.get(conn, new_id)

    async def clear(self, conn: AsyncPGClient, live_id: int) -> GoalRecord:
        """Make the empty placeholder the active goal; a no-op when it already is."""
        goals = self.storage.goals
        current = await goals.get_current(conn, live_id)
        if current is not None and current.is_empty:
            return current

        await goals.deactivate_all_except(conn, live_id, None)
        new_id = await goals.insert(conn, live_id, "", 0)
        logger.info("live {} goal cleared, placeholder {}", live_id, new_id)
        return await goals.get(conn, new_id)

    async def deactivate(self, conn: AsyncPGClient, live_id: int, goal_ids: list[int]) -> int:
        if not goal_ids:
            return 0
        count = await self.storage.goals.deactivate(conn, live_id, goal_ids)
        logger.info("live {} goals deactivated: {} of {}", live_id, count, len(goal_ids))
        return count

    async def apply(
        self,
        conn: AsyncPGClient,
        live_id: int,
        goal_name: str | None,
        coins: int | None,
        goal_id: int | None = None,
    ) -> GoalRecord | None:
        """
        Dispatch a goal request.

        Name and coins together upsert; neither clears. A goal id with neither
        name nor coins keeps the active goal, or writes the placeholder when the
        live has none.
        """
        named, priced = has_goal_name(goal_name), has_goal_coins(coins)
        if named != priced:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_PARAMS,
                errmesg=GOAL_PAIR_REQUIRED,
                status_code=HttpStatusCode.UNPROCESSABLE_ENTITY,
            )
        if named:
            return await self.upsert(conn, live_id, goal_name, coins, goal_id)  # type: ignore[arg-type]
        if goal_id is not None:
            current = await self.current(conn, live_id)
            if current is not None:
                return current
        return await self.clear(conn, live_id)


class GoalOperations(BaseService):
    """Operations behind the goal endpoint."""

    @property
    def ledger(self) -> GoalLedger:
        return GoalLedger(self.storage)

    async def upsert_goal(self, user_id: int, params: GoalUpsertParams) -> list[GoalItem]:
        """
        Create, update or clear the goal of a live owned by the caller.

        Returns the active goals of the live after the change.
        """
        await self._verified_user(user_id, "User must be verified to manage goals")

        errors: dict[str, str] = {}
        if not params.live_id:
            errors["live_id"] = "live_id is required"
        if has_goal_name(params.goal_name) != has_goal_coins(params.coins):
            errors["goal"] = GOAL_PAIR_REQUIRED
        if errors:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_PARAMS,
                errmesg="Validation failed",
                status_code=HttpStatusCode.UNPROCESSABLE_ENTITY,
                details=errors,
            )

        live_id = self._decode_id(params.live_id, "Invalid live id format")
        goal_id = None
        if params.goal_id and params.goal_id.strip():
            goal_id = self._decode_id(params.goal_id.strip(), "Invalid goal id format")

        async with self.storage.transaction() as conn:
            live = await self.storage.lives.get(conn, live_id, for_update=True)
            if live is None:
                raise AppError(
                    errcode=AppErrorCode.E_LIVE_NOT_FOUND,
                    errmesg="Live not found",
                    status_code=HttpStatusCode.NOT_FOUND,
                )
            if live.user_id != user_id:
                raise AppError(
                    errcode=AppErrorCode.E_FORBIDDEN,
                    errmesg="You are not authorized to manage this live goal",
                    status_code=HttpStatusCode.FORBIDDEN,
                )

            await self.ledger.apply(conn, live_id, params.goal_name, params.coins, goal_id)
            active = await self.storage.goals.list_active(conn, live_id)

        await self._sync_goal_mirror(live_id)
        return [self._goal_item(goal) for goal in active]
