from datetime import datetime

from creator_live.shared.storage.postgres import AsyncPGClient

EARNING_TYPES = ("live_tip", "tipmenu", "live")
TIP_TYPES = ("live_tip", "tipmenu")


class LiveStatsRepository:
    """Read-only aggregates used by the join payload and the goal mirror."""

    async def earnings(self, conn: AsyncPGClient, live_id: int, types: tuple[str, ...] = EARNING_TYPES) -> int:
        value = await conn.fetchval(
            """
            SELECT COALESCE(SUM(earning_net_user_coins), 0)
              FROM transactions
             WHERE (live_id = $1 OR ref_id = $1) AND type = ANY($2::text[])
            """,
            live_id,
            list(types),
        )
        return int(value or 0)

    async def tips_since(self, conn: AsyncPGClient, live_id: int, since: datetime | None) -> int:
        value = await conn.fetchval(
            """
            SELECT COALESCE(SUM(earning_net_user_coins), 0)
              FROM transactions
             WHERE (live_id = $1 OR ref_id = $1) AND type = ANY($2::text[])
               AND ($3::timestamptz IS NULL OR created_at >= $3)
            """,
            live_id,
            list(TIP_TYPES),
            since,
        )
        return int(value or 0)

    async def bookings_count(self, conn: AsyncPGClient, live_id: int) -> int:
        return int(await conn.fetchval("SELECT COUNT(*) FROM live_prebooks WHERE live_id = $1", live_id) or 0)

    async def viewers_count(self, conn: AsyncPGClient, live_id: int) -> int:
        value = await conn.fetchval(
            "SELECT COUNT(DISTINCT user_id) FROM live_online_users WHERE live_streamings_id = $1",
            live_id,
        )
        return int(value or 0)
