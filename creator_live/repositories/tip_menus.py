from creator_live.shared.storage.postgres import AsyncPGClient

from .records import TipMenuRecord


class TipMenuRepository:
    """SQL access to ``live_tipping_menus``."""

    async def list_active(self, conn: AsyncPGClient, live_id: int) -> list[TipMenuRecord]:
        rows = await conn.fetch(
            """
            SELECT id, live_streamings_id AS live_id, activity_name, coins
              FROM live_tipping_menus
             WHERE live_streamings_id = $1 AND active
             ORDER BY id
            """,
            live_id,
        )
        return [TipMenuRecord.model_validate(dict(row)) for row in rows]

    async def replace_all(self, conn: AsyncPGClient, live_id: int, items: list[tuple[str, int]]) -> None:
        """Delete every row of the live, then insert the given (activity, coins) pairs as active."""
        await conn.execute("DELETE FROM live_tipping_menus WHERE live_streamings_id = $1", live_id)
        if items:
            await conn.executemany(
                """
                INSERT INTO live_tipping_menus (live_streamings_id, activity_name, coins, active)
                VALUES ($1, $2, $3, TRUE)
                """,
                [(live_id, name, coins) for name, coins in items],
            )
