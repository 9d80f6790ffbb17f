"""Live stream domain service."""

from ._details import DetailOperations
from ._goals import GoalOperations
from ._streams import StreamOperations
from ._tip_menus import TipMenuOperations
from .live_models import (
    GoalItem,
    GoalUpsertParams,
    LiveCreateView,
    LiveEditView,
    LiveFilters,
    LiveJoinDetails,
    LiveUpsertParams,
    LiveUpsertResult,
    TipMenuReplaceResult,
)


class LiveService:
    """Facade over the live stream operations.

    Keyword arguments are passed to every operations class, so tests can inject
    storage, codec, settings provider, mirror, issuer, scheduler and clock once.
    """

    def __init__(self, **deps):
        self._streams = StreamOperations(**deps)
        self._goals = GoalOperations(**deps)
        self._tip_menus = TipMenuOperations(**deps)
        self._details = DetailOperations(**deps)

    # ==================== STREAMS ====================

    async def upsert_live(self, user_id: int, params: LiveUpsertParams) -> LiveUpsertResult:
        """Create a live, or edit it when ``params.live_id`` is set.

        Raises AppError on validation, ownership, state or reschedule failures.
        """
        return await self._streams.upsert_live(user_id, params)

    async def get_create_view(self, user_id: int) -> LiveCreateView:
        return await self._streams.get_create_view(user_id)

    async def get_edit_view(self, user_id: int, live_token: str) -> LiveEditView:
        return await self._streams.get_edit_view(user_id, live_token)

    async def delete_live(self, user_id: int, live_token: str | None) -> str:
        """Soft-delete a scheduled live. Returns the opaque id."""
        return await self._streams.delete_live(user_id, live_token)

    async def get_filters(self, live_token: str | None) -> LiveFilters:
        return await self._streams.get_filters(live_token)

    async def apply_filter(self, user_id: int, live_token: str | None, filter_key) -> str:
        return await self._streams.apply_filter(user_id, live_token, filter_key)

    # ==================== GOALS / TIP MENU ====================

    async def upsert_goal(self, user_id: int, params: GoalUpsertParams) -> list[GoalItem]:
        return await self._goals.upsert_goal(user_id, params)

    async def replace_tip_menu(
        self,
        user_id: int,
        live_token: str | None,
        activity: list[str] | None,
        coins: list[int] | None,
    ) -> TipMenuReplaceResult:
        return await self._tip_menus.replace_tip_menu(user_id, live_token, activity, coins)

    # ==================== JOIN ====================

    async def join_live(self, user_id: int, live_token: str | None) -> LiveJoinDetails:
        """Credential, earnings, goal, tip menu and viewers for the owner of a scheduled live."""
        return await self._details.join_live(user_id, live_token)
