from creator_live.repositories import LiveStorage, get_live_storage
from creator_live.shared.storage.postgres import AsyncPGClient


class GroupMembership:
    """Creator group lookups, e.g. the group exempt from the 12 hour reschedule rule."""

    def __init__(self, storage: LiveStorage | None = None):
        self._storage = storage

    @property
    def storage(self) -> LiveStorage:
        if self._storage is None:
            self._storage = get_live_storage()
        return self._storage

    async def get_members(self, conn: AsyncPGClient, group_tag: str) -> list[int]:
        return await self.storage.creators.group_members(conn, group_tag)

    async def is_member(self, conn: AsyncPGClient, group_tag: str, user_id: int) -> bool:
        return user_id in await self.get_members(conn, group_tag)
