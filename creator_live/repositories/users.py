from creator_live.shared.storage.postgres import AsyncPGClient

from .records import UserRecord


class UserRepository:
    """Caller records for the identity gateway."""

    async def get(self, conn: AsyncPGClient, user_id: int) -> UserRecord | None:
        row = await conn.fetchrow("SELECT id, username, verified_id FROM users WHERE id = $1", user_id)
        if row is None:
            return None
        return UserRecord(id=row["id"], username=row["username"], verified=row["verified_id"] == "yes")
