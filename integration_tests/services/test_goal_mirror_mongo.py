"""Goal mirror synchronization against a real MongoDB.

Run with: pytest integration_tests/services/test_goal_mirror_mongo.py -v

Requires the MONGO_URL_LIVE_PRIMARY environment variable.
"""

from datetime import datetime, timezone

import pytest

from creator_live.repositories.records import GoalRecord
from creator_live.schemas import GoalMirror
from creator_live.services.goal_mirror import GoalMirrorSync

NOW = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)


def goal(goal_id: int, name: str = "Mic", coins: int = 400) -> GoalRecord:
    return GoalRecord(id=goal_id, live_id=11, goal_name=name, coins=coins, active=True)


@pytest.mark.integration
class TestGoalMirrorSync:
    async def test_sync_writes_progress(self, mongo_database):
        doc = await GoalMirrorSync().sync(goal(1), tips_received=150, now=NOW)

        stored = await GoalMirror.find_one(GoalMirror.goal_id == 1)
        assert doc is not None
        assert stored.percentage == 37
        assert stored.tips_received == 150

    async def test_new_goal_replaces_previous_document(self, mongo_database):
        sync = GoalMirrorSync()
        await sync.sync(goal(1), tips_received=0, now=NOW)
        await sync.sync(goal(2, "Camera", 1000), tips_received=250, now=NOW)

        docs = await GoalMirror.find(GoalMirror.live_id == 11).to_list()
        assert [(d.goal_id, d.name, d.percentage) for d in docs] == [(2, "Camera", 25)]

    async def test_cleared_goal_removes_documents(self, mongo_database):
        sync = GoalMirrorSync()
        await sync.sync(goal(1), tips_received=0, now=NOW)

        assert await sync.sync(goal(1, "", 0), tips_received=0, now=NOW) is None
        assert await GoalMirror.find(GoalMirror.live_id == 11).count() == 0
