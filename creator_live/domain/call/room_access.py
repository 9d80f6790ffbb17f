"""Who may obtain call credentials for a video call room."""

from enum import Enum

from loguru import logger
from pydantic import BaseModel

from creator_live.repositories import LiveStorage, get_live_storage
from creator_live.repositories.records import VideoCallRecord
from creator_live.schemas import CallStatus


class RoomAccessReason(str, Enum):
    GRANTED = "granted"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    INACTIVE = "inactive"


DENIAL_MESSAGES: dict[RoomAccessReason, str] = {
    RoomAccessReason.NOT_FOUND: "No active video call found for this room",
    RoomAccessReason.UNAUTHORIZED: "Unauthorized access to this room",
    RoomAccessReason.INACTIVE: "Video call is not active",
}


class RoomAccess(BaseModel):
    allowed: bool
    reason: RoomAccessReason
    record: VideoCallRecord | None = None

    @property
    def message(self) -> str:
        return DENIAL_MESSAGES.get(self.reason, "")


class RoomAccessValidator:
    """Grants access to the caller or the creator of the room's latest ringing or answered call."""

    def __init__(self, storage: LiveStorage | None = None):
        self._storage = storage

    @property
    def storage(self) -> LiveStorage:
        if self._storage is None:
            self._storage = get_live_storage()
        return self._storage

    async def validate(self, room_id: str, caller_id: int) -> RoomAccess:
        async with self.storage.session() as conn:
            call = await self.storage.calls.get_latest_active(conn, room_id)

        if call is None:
            logger.info("room {} has no active call", room_id)
            return RoomAccess(allowed=False, reason=RoomAccessReason.NOT_FOUND)

        if caller_id not in (call.user_id, call.creator_id):
            logger.info("user {} is not a participant of room {}", caller_id, room_id)
            return RoomAccess(allowed=False, reason=RoomAccessReason.UNAUTHORIZED, record=call)

        if call.status not in CallStatus.active_states():
            logger.info("room {} call {} is in status {}", room_id, call.id, call.status)
            return RoomAccess(allowed=False, reason=RoomAccessReason.INACTIVE, record=call)

        return RoomAccess(allowed=True, reason=RoomAccessReason.GRANTED, record=call)
