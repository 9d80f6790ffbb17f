"""Keeps the MongoDB goal mirror in step with the active relational goal."""

from datetime import datetime

from loguru import logger

from creator_live.repositories.records import GoalRecord
from creator_live.schemas import GoalMirror, goal_percentage


class GoalMirrorSync:
    """
    Best-effort writer for ``GoalMirror`` documents.

    Every method logs and swallows its own failures; the mirror is a cache and a
    Mongo outage must not fail a goal write or a join.
    """

    async def sync(self, goal: GoalRecord | None, tips_received: int, now: datetime) -> GoalMirror | None:
        if goal is None:
            return None
        live_id = goal.live_id
        try:
            await self.remove_stale(live_id, keep_goal_id=None if goal.is_empty else goal.id)
            if goal.is_empty:
                return None

            doc = await GoalMirror.find_one(GoalMirror.goal_id == goal.id)
            if doc is None:
                doc = GoalMirror(
                    goal_id=goal.id,
                    live_id=live_id,
                    name=goal.goal_name,
                    amount=goal.coins,
                    updated_at=now,
                )
            doc.name = goal.goal_name
            doc.amount = goal.coins
            doc.tips_received = tips_received
            doc.percentage = goal_percentage(tips_received, goal.coins)
            doc.updated_at = now
            await doc.save()
            return doc
        except Exception as exc:
            logger.warning("goal mirror sync failed for live {} goal {}: {}", live_id, goal.id, exc)
            return None

    async def remove_stale(self, live_id: int, keep_goal_id: int | None) -> None:
        query = GoalMirror.find(GoalMirror.live_id == live_id)
        if keep_goal_id is not None:
            query = GoalMirror.find(GoalMirror.live_id == live_id, GoalMirror.goal_id != keep_goal_id)
        await query.delete()


_goal_mirror_sync: GoalMirrorSync | None = None


def get_goal_mirror_sync() -> GoalMirrorSync:
    global _goal_mirror_sync
    if _goal_mirror_sync is None:
        _goal_mirror_sync = GoalMirrorSync()
    return _goal_mirror_sync
