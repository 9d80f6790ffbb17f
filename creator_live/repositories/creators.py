from creator_live.shared.storage.postgres import AsyncPGClient


class CreatorRepository:
    """Admin-managed creator lists: notification restrictions and creator groups."""

    async def restricted_notification_creators(self, conn: AsyncPGClient) -> set[int]:
        rows = await conn.fetch(
            "SELECT creator_id FROM admin_restricted_creators WHERE live_email_notification = 1"
        )
        return {int(row["creator_id"]) for row in rows}

    async def group_members(self, conn: AsyncPGClient, group_tag: str) -> list[int]:
        rows = await conn.fetch(
            "SELECT user_id FROM creator_groups WHERE id = $1 AND is_active = 1",
            group_tag,
        )
        return [int(row["user_id"]) for row in rows]
