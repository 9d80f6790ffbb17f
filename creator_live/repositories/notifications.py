from datetime import datetime

from creator_live.shared.storage.postgres import AsyncPGClient

LIVE_NOTIFICATION_TYPES = ("live", "live_reminder")
PENDING_STATUS = "0"


class NotificationRepository:
    """Pending reminder rows in ``email_notify_schedules``."""

    async def replace_pending(
        self, conn: AsyncPGClient, live_id: int, owner_id: int, sends: list[tuple[str, datetime]]
    ) -> None:
        await self.delete_pending(conn, live_id)
        if sends:
            await conn.executemany(
                """
                INSERT INTO email_notify_schedules (notification_id, user_id, type, status, send_at)
                VALUES ($1, $2, $3, $4, $5)
                """,
                [(live_id, owner_id, kind, PENDING_STATUS, send_at) for kind, send_at in sends],
            )

    async def delete_pending(self, conn: AsyncPGClient, live_id: int) -> int:
        result = await conn.execute(
            """
            DELETE FROM email_notify_schedules
             WHERE notification_id = $1 AND type = ANY($2::text[]) AND status = $3
            """,
            live_id,
            list(LIVE_NOTIFICATION_TYPES),
            PENDING_STATUS,
        )
        return int(result.split()[-1])
