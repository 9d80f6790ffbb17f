from datetime import datetime

from creator_live.schemas import LiveStatus, LiveType
from creator_live.shared.storage.postgres import AsyncPGClient

from .records import LiveRecord, from_row

_LIVE_COLUMNS = """
    id, user_id, channel, name, description, price, availability, type, duration,
    date_time, status, number_of_reschedules, user_notification, creator_joined,
    filter_applied, created_at, updated_at
"""


class LiveRepository:
    """SQL access to ``live_streamings``."""

    async def get(self, conn: AsyncPGClient, live_id: int, *, for_update: bool = False) -> LiveRecord | None:
        sql = f"SELECT {_LIVE_COLUMNS} FROM live_streamings WHERE id = $1"
        if for_update:
            sql += " FOR UPDATE"
        return from_row(LiveRecord, await conn.fetchrow(sql, live_id))

    async def get_latest_for_user(self, conn: AsyncPGClient, user_id: int) -> LiveRecord | None:
        row = await conn.fetchrow(
            f"SELECT {_LIVE_COLUMNS} FROM live_streamings WHERE user_id = $1 ORDER BY id DESC LIMIT 1",
            user_id,
        )
        return from_row(LiveRecord, row)

    async def has_scheduled(self, conn: AsyncPGClient, user_id: int) -> bool:
        return bool(
            await conn.fetchval(
                "SELECT EXISTS (SELECT 1 FROM live_streamings WHERE user_id = $1 AND status = $2)",
                user_id,
                int(LiveStatus.SCHEDULED),
            )
        )

    async def insert(
        self,
        conn: AsyncPGClient,
        *,
        user_id: int,
        channel: str,
        name: str,
        description: str,
        price: int,
        availability: str,
        live_type: LiveType,
        duration: int,
        date_time: datetime,
    ) -> int:
        return await conn.fetchval(
            """
            INSERT INTO live_streamings
                (user_id, channel, name, description, price, availability, type, duration,
                 date_time, status, number_of_reschedules, creator_joined)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, 0, FALSE)
            RETURNING id
            """,
            user_id,
            channel,
            name,
            description,
            price,
            availability,
            live_type.value,
            duration,
            date_time,
            int(LiveStatus.SCHEDULED),
        )

    async def update_details(
        self,
        conn: AsyncPGClient,
        live_id: int,
        *,
        name: str,
        description: str,
        price: int,
        availability: str,
        live_type: LiveType,
        duration: int,
        date_time: datetime,
    ) -> None:
        await conn.execute(
            """
            UPDATE live_streamings
               SET name = $2, description = $3, price = $4, availability = $5, type = $6,
                   duration = $7, date_time = $8, updated_at = now()
             WHERE id = $1
            """,
            live_id,
            name,
            description,
            price,
            availability,
            live_type.value,
            duration,
            date_time,
        )

    async def increment_reschedules(self, conn: AsyncPGClient, live_id: int) -> None:
        await conn.execute(
            """
            UPDATE live_streamings
               SET number_of_reschedules = number_of_reschedules + 1, user_notification = 0,
                   updated_at = now()
             WHERE id = $1
            """,
            live_id,
        )

    async def set_status(self, conn: AsyncPGClient, live_id: int, status: LiveStatus, modified_by: int) -> None:
        await conn.execute(
            "UPDATE live_streamings SET status = $2, modify_user = $3, updated_at = now() WHERE id = $1",
            live_id,
            int(status),
            modified_by,
        )

    async def set_filter(self, conn: AsyncPGClient, live_id: int, filter_key: str) -> None:
        await conn.execute(
            "UPDATE live_streamings SET filter_applied = $2, updated_at = now() WHERE id = $1",
            live_id,
            filter_key,
        )

    async def mark_creator_joined(self, conn: AsyncPGClient, live_id: int) -> bool:
        """Flip creator_joined to true once; returns False when it was already set."""
        result = await conn.execute(
            "UPDATE live_streamings SET creator_joined = TRUE WHERE id = $1 AND creator_joined = FALSE",
            live_id,
        )
        return result.endswith(" 1")
