from creator_live.shared.storage.postgres import AsyncPGClient

from .records import GoalRecord, from_row

_GOAL_COLUMNS = "id, live_streamings_id AS live_id, goal_name, coins, active, created_at"


class GoalRepository:
    """SQL access to ``live_goals``.

    The current goal of a live is its active row; ``id DESC`` breaks ties.
    """

    async def get(self, conn: AsyncPGClient, goal_id: int) -> GoalRecord | None:
        row = await conn.fetchrow(f"SELECT {_GOAL_COLUMNS} FROM live_goals WHERE id = $1", goal_id)
        return from_row(GoalRecord, row)

    async def get_current(self, conn: AsyncPGClient, live_id: int) -> GoalRecord | None:
        row = await conn.fetchrow(
            f"""
            SELECT {_GOAL_COLUMNS} FROM live_goals
             WHERE live_streamings_id = $1 AND active
             ORDER BY id DESC
             LIMIT 1
            """,
            live_id,
        )
        return from_row(GoalRecord, row)

    async def list_active(self, conn: AsyncPGClient, live_id: int) -> list[GoalRecord]:
        rows = await conn.fetch(
            f"SELECT {_GOAL_COLUMNS} FROM live_goals WHERE live_streamings_id = $1 AND active ORDER BY id DESC",
            live_id,
        )
        return [GoalRecord.model_validate(dict(row)) for row in rows]

    async def insert(self, conn: AsyncPGClient, live_id: int, goal_name: str, coins: int) -> int:
        return await conn.fetchval(
            """
            INSERT INTO live_goals (live_streamings_id, goal_name, coins, active)
            VALUES ($1, $2, $3, TRUE)
            RETURNING id
            """,
            live_id,
            goal_name,
            coins,
        )

    async def update(self, conn: AsyncPGClient, goal_id: int, goal_name: str, coins: int) -> None:
        await conn.execute(
            "UPDATE live_goals SET goal_name = $2, coins = $3, active = TRUE, updated_at = now() WHERE id = $1",
            goal_id,
            goal_name,
            coins,
        )

    async def deactivate(self, conn: AsyncPGClient, live_id: int, goal_ids: list[int]) -> int:
        if not goal_ids:
            return 0
        result = await conn.execute(
            """
            UPDATE live_goals SET active = FALSE, updated_at = now()
             WHERE live_streamings_id = $1 AND id = ANY($2::bigint[]) AND active
            """,
            live_id,
            goal_ids,
        )
        return int(result.split()[-1])

    async def deactivate_all_except(self, conn: AsyncPGClient, live_id: int, keep_id: int | None) -> int:
        result = await conn.execute(
            """
            UPDATE live_goals SET active = FALSE, updated_at = now()
             WHERE live_streamings_id = $1 AND active AND ($2::bigint IS NULL OR id <> $2)
            """,
            live_id,
            keep_id,
        )
        return int(result.split()[-1])
