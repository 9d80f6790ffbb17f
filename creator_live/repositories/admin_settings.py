from creator_live.shared.storage.postgres import AsyncPGClient


class AdminSettingsRepository:
    async def load_all(self, conn: AsyncPGClient) -> dict[str, str | None]:
        rows = await conn.fetch("SELECT key, value FROM admin_settings")
        return {row["key"]: row["value"] for row in rows}
