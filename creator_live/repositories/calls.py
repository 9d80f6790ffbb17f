from creator_live.schemas import CallStatus
from creator_live.shared.storage.postgres import AsyncPGClient

from .records import VideoCallRecord, from_row


class VideoCallRepository:
    """SQL access to ``video_call``."""

    async def get_latest_active(self, conn: AsyncPGClient, room_id: str) -> VideoCallRecord | None:
        row = await conn.fetchrow(
            """
            SELECT id, room_id, user_id, creator_id, status, started_at, ended_at
              FROM video_call
             WHERE room_id = $1 AND status = ANY($2::smallint[])
             ORDER BY created_at DESC, id DESC
             LIMIT 1
            """,
            room_id,
            [int(s) for s in CallStatus.active_states()],
        )
        return from_row(VideoCallRecord, row)
