"""Tests for LiveStateMachine transitions."""

from creator_live.domain.live.stream.live_state_machine import LiveStateMachine
from creator_live.schemas import LiveStatus


class TestCanTransition:
    def test_scheduled_to_deleted_valid(self):
        assert LiveStateMachine.can_transition(LiveStatus.SCHEDULED, LiveStatus.DELETED) is True

    def test_scheduled_to_completed_valid(self):
        assert LiveStateMachine.can_transition(LiveStatus.SCHEDULED, LiveStatus.COMPLETED) is True

    def test_unclosed_to_refunded_valid(self):
        assert LiveStateMachine.can_transition(LiveStatus.UNCLOSED, LiveStatus.REFUNDED) is True

    def test_expired_to_deleted_invalid(self):
        assert LiveStateMachine.can_transition(LiveStatus.EXPIRED, LiveStatus.DELETED) is False

    def test_terminal_states_have_no_exits(self):
        for state in (LiveStatus.COMPLETED, LiveStatus.DELETED, LiveStatus.REFUNDED):
            assert not any(LiveStateMachine.can_transition(state, target) for target in LiveStatus)


class TestMutability:
    def test_only_scheduled_is_mutable(self):
        mutable = [state for state in LiveStatus if LiveStateMachine.is_mutable(state)]

        assert mutable == [LiveStatus.SCHEDULED]


class TestDeleteRejection:
    def test_completed_message(self):
        assert (
            LiveStateMachine.delete_rejection(LiveStatus.COMPLETED)
            == "Live stream is completed and cannot be deleted"
        )

    def test_deleted_message(self):
        assert LiveStateMachine.delete_rejection(LiveStatus.DELETED) == "Live stream is already deleted"

    def test_unknown_status_falls_back(self):
        assert LiveStateMachine.delete_rejection(99) == "Live stream cannot be deleted"
