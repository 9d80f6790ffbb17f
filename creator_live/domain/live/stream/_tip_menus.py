"""Tipping menu store and the standalone replace endpoint."""

from loguru import logger

from creator_live.repositories import LiveStorage
from creator_live.repositories.records import TipMenuRecord
from creator_live.services.admin_settings import AdminSettings
from creator_live.shared.storage.postgres import AsyncPGClient
from creator_live.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from ._base import BaseService
from .live_models import TipMenuReplaceResult


class TipMenuStore:
    """Whole-set replacement of a live's tipping menu."""

    def __init__(self, storage: LiveStorage):
        self.storage = storage

    @staticmethod
    def validate(names: list[str], amounts: list[int], settings: AdminSettings) -> dict[str, str]:
        """Return errors keyed ``activity_{i}`` / ``coins_{i}``; empty when the menu is valid."""
        errors: dict[str, str] = {}
        if len(names) != len(amounts):
            errors["activity"] = "Activity and coins must have the same number of items"
            return errors

        low, high = settings.min_tip_amount, settings.max_tip_amount
        for i, (name, amount) in enumerate(zip(names, amounts)):
            if not name or not str(name).strip():
                errors[f"activity_{i}"] = "Activity name is required"
            if amount is None or amount < low or amount > high:
                errors[f"coins_{i}"] = f"Amount should be between {low} and {high} coins"
        return errors

    @classmethod
    def check(cls, names: list[str], amounts: list[int], settings: AdminSettings) -> None:
        errors = cls.validate(names, amounts, settings)
        if errors:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_PARAMS,
                errmesg="Validation failed",
                status_code=HttpStatusCode.UNPROCESSABLE_ENTITY,
                details=errors,
            )

    async def replace_all(
        self, conn: AsyncPGClient, live_id: int, names: list[str], amounts: list[int]
    ) -> list[TipMenuRecord]:
        """Swap in the new menu. Must run inside the caller's transaction, after ``check``."""
        items = [(name.strip(), int(amount)) for name, amount in zip(names, amounts)]
        await self.storage.tip_menus.replace_all(conn, live_id, items)
        logger.info("live {} tipping menu replaced with {} items", live_id, len(items))
        return await self.storage.tip_menus.list_active(conn, live_id)


class TipMenuOperations(BaseService):
    @property
    def tip_menus(self) -> TipMenuStore:
        return TipMenuStore(self.storage)

    async def replace_tip_menu(
        self,
        user_id: int,
        live_token: str | None,
        activity: list[str] | None,
        coins: list[int] | None,
    ) -> TipMenuReplaceResult:
        live_id = self._decode_id(live_token, "Invalid or missing live id")

        async with self.storage.session() as conn:
            live = await self.storage.lives.get(conn, live_id)
        if live is None:
            raise AppError(
                errcode=AppErrorCode.E_LIVE_NOT_FOUND,
                errmesg="Live stream not found",
                status_code=HttpStatusCode.NOT_FOUND,
            )
        if live.user_id != user_id:
            raise AppError(
                errcode=AppErrorCode.E_FORBIDDEN,
                errmesg="You are not authorized to edit this live tipping menu",
                status_code=HttpStatusCode.FORBIDDEN,
            )

        names, amounts = activity or [], coins or []
        settings = await self._get_settings()
        TipMenuStore.check(names, amounts, settings)

        async with self.storage.transaction() as conn:
            await self.storage.lives.get(conn, live_id, for_update=True)
            records = await self.tip_menus.replace_all(conn, live_id, names, amounts)

        return TipMenuReplaceResult(live_id=self.codec.encrypt(live_id), items=self._tip_items(records))
