"""Live stream status transitions."""

from creator_live.schemas import LiveStatus


class LiveStateMachine:
    """State machine for live stream status.

    State flow:
    - SCHEDULED (created or edited by the owner) -> any other status
    - UNCLOSED (stream ended without being closed) -> COMPLETED | REFUNDED
    - EXPIRED (never started) -> REFUNDED
    - COMPLETED, DELETED and REFUNDED are terminal

    Only SCHEDULED lives can be edited, deleted or joined.
    """

    TRANSITIONS: dict[LiveStatus, set[LiveStatus]] = {
        LiveStatus.SCHEDULED: {
            LiveStatus.COMPLETED,
            LiveStatus.DELETED,
            LiveStatus.EXPIRED,
            LiveStatus.UNCLOSED,
            LiveStatus.REFUNDED,
        },
        LiveStatus.UNCLOSED: {LiveStatus.COMPLETED, LiveStatus.REFUNDED},
        LiveStatus.EXPIRED: {LiveStatus.REFUNDED},
        LiveStatus.COMPLETED: set(),
        LiveStatus.DELETED: set(),
        LiveStatus.REFUNDED: set(),
    }

    # Reasons shown when a non-scheduled live is deleted
    DELETE_REJECTIONS: dict[LiveStatus, str] = {
        LiveStatus.COMPLETED: "Live stream is completed and cannot be deleted",
        LiveStatus.DELETED: "Live stream is already deleted",
        LiveStatus.EXPIRED: "Live stream is expired and cannot be deleted",
        LiveStatus.UNCLOSED: "Live stream is unclosed and cannot be deleted",
        LiveStatus.REFUNDED: "Live stream is refunded and cannot be deleted",
    }

    @classmethod
    def can_transition(cls, current: LiveStatus, new: LiveStatus) -> bool:
        return new in cls.TRANSITIONS.get(current, set())

    @classmethod
    def is_mutable(cls, state: LiveStatus) -> bool:
        """True while the owner may still edit, delete or join the live."""
        return state == LiveStatus.SCHEDULED

    @classmethod
    def delete_rejection(cls, state: LiveStatus | int) -> str:
        try:
            return cls.DELETE_REJECTIONS[LiveStatus(state)]
        except (KeyError, ValueError):
            return "Live stream cannot be deleted"
