"""Tests for goal upsert and clear."""

from datetime import datetime, timezone

import pytest

from creator_live.domain.live.stream.live_domain import LiveService
from creator_live.domain.live.stream.live_models import GoalUpsertParams
from creator_live.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

USER_ID = 7
START = datetime(2026, 1, 12, 18, 0, tzinfo=timezone.utc)


@pytest.fixture
def live(storage):
    storage.add_user(USER_ID)
    return storage.add_live(USER_ID, date_time=START)


class TestUpsertGoal:
    async def test_create_goal(self, live_service: LiveService, storage, codec, mirror, live):
        params = GoalUpsertParams(live_id=codec.encrypt(live.id), goal_name="New mic", coins=500)

        goals = await live_service.upsert_goal(USER_ID, params)

        assert [(g.goal_name, g.coins) for g in goals] == [("New mic", 500)]
        assert goals[0].live_id == codec.encrypt(live.id)
        mirror.sync.assert_awaited_once()

    async def test_update_keeps_single_active_goal(self, live_service: LiveService, storage, codec, live):
        existing = storage.add_goal(live.id, "Mic", 100)
        params = GoalUpsertParams(live_id=codec.encrypt(live.id), goal_name="Better mic", coins=300)

        goals = await live_service.upsert_goal(USER_ID, params)

        assert len(goals) == 1
        assert goals[0].id == codec.encrypt(existing.id)
        assert storage.goals.active_count(live.id) == 1

    async def test_update_by_goal_id_reactivates_it(self, live_service: LiveService, storage, codec, live):
        old = storage.add_goal(live.id, "Old goal", 100, active=False)
        storage.add_goal(live.id, "Current goal", 200)
        params = GoalUpsertParams(
            live_id=codec.encrypt(live.id), goal_name="Revived", coins=150, goal_id=codec.encrypt(old.id)
        )

        goals = await live_service.upsert_goal(USER_ID, params)

        assert [(g.id, g.goal_name) for g in goals] == [(codec.encrypt(old.id), "Revived")]

    async def test_goal_id_from_another_live_rejected(self, live_service: LiveService, storage, codec, live):
        other_live = storage.add_live(99, date_time=START)
        foreign = storage.add_goal(other_live.id, "Theirs", 100)
        params = GoalUpsertParams(
            live_id=codec.encrypt(live.id), goal_name="Mine", coins=10, goal_id=codec.encrypt(foreign.id)
        )

        with pytest.raises(AppError) as exc_info:
            await live_service.upsert_goal(USER_ID, params)

        assert exc_info.value.errmesg == "Invalid goal id format"
        assert storage.state.goals[foreign.id].goal_name == "Theirs"

    async def test_clear_inserts_placeholder_once(self, live_service: LiveService, storage, codec, live):
        storage.add_goal(live.id, "Mic", 100)
        params = GoalUpsertParams(live_id=codec.encrypt(live.id))

        first = await live_service.upsert_goal(USER_ID, params)
        goal_rows = len(storage.state.goals)
        second = await live_service.upsert_goal(USER_ID, params)

        assert [(g.goal_name, g.coins) for g in first] == [("", 0)]
        assert second == first
        assert len(storage.state.goals) == goal_rows
        assert storage.goals.active_count(live.id) == 1

    async def test_name_without_coins_rejected(self, live_service: LiveService, codec, live):
        params = GoalUpsertParams(live_id=codec.encrypt(live.id), goal_name="Mic")

        with pytest.raises(AppError) as exc_info:
            await live_service.upsert_goal(USER_ID, params)

        assert exc_info.value.status_code == HttpStatusCode.UNPROCESSABLE_ENTITY
        assert exc_info.value.details == {"goal": "Both goal_name and coins are required together"}

    async def test_zero_coins_counts_as_missing(self, live_service: LiveService, codec, live):
        params = GoalUpsertParams(live_id=codec.encrypt(live.id), goal_name="Mic", coins=0)

        with pytest.raises(AppError) as exc_info:
            await live_service.upsert_goal(USER_ID, params)

        assert exc_info.value.errcode == AppErrorCode.E_INVALID_PARAMS.value

    async def test_other_users_live_forbidden(self, live_service: LiveService, storage, codec, live):
        other_live = storage.add_live(99, date_time=START)
        params = GoalUpsertParams(live_id=codec.encrypt(other_live.id), goal_name="Mic", coins=10)

        with pytest.raises(AppError) as exc_info:
            await live_service.upsert_goal(USER_ID, params)

        assert exc_info.value.status_code == HttpStatusCode.FORBIDDEN
        assert storage.goals.active_count(other_live.id) == 0

    async def test_mirror_failure_does_not_fail_upsert(self, live_service: LiveService, storage, codec, mirror, live):
        mirror.sync.side_effect = RuntimeError("mongo down")
        params = GoalUpsertParams(live_id=codec.encrypt(live.id), goal_name="Mic", coins=10)

        goals = await live_service.upsert_goal(USER_ID, params)

        assert [(g.goal_name, g.coins) for g in goals] == [("Mic", 10)]

    async def test_unverified_user_rejected(self, live_service: LiveService, storage, codec):
        storage.add_user(USER_ID, verified=False)
        live = storage.add_live(USER_ID, date_time=START)

        with pytest.raises(AppError) as exc_info:
            await live_service.upsert_goal(
                USER_ID, GoalUpsertParams(live_id=codec.encrypt(live.id), goal_name="Mic", coins=10)
            )

        assert exc_info.value.errmesg == "User must be verified to manage goals"
