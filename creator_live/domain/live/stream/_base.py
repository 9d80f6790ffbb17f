"""Base service for live stream operations."""

from collections.abc import Callable
from datetime import datetime

from loguru import logger

from creator_live.domain.utils.timeutil import utc_now
from creator_live.repositories import LiveStorage, get_live_storage
from creator_live.repositories.records import GoalRecord, TipMenuRecord, UserRecord
from creator_live.schemas import LiveType
from creator_live.services.admin_settings import (
    AdminSettings,
    AdminSettingsProvider,
    get_admin_settings_provider,
)
from creator_live.services.goal_mirror import GoalMirrorSync, get_goal_mirror_sync
from creator_live.services.group_membership import GroupMembership
from creator_live.services.integrations.rtc_credentials import (
    RtcCredentialIssuer,
    get_rtc_credential_issuer,
)
from creator_live.services.notification_scheduler import NotificationScheduler
from creator_live.shared.storage.postgres import AsyncPGClient
from creator_live.utils.app_errors import AppError, AppErrorCode, HttpStatusCode
from creator_live.utils.id_codec import IdCodec, get_id_codec

from .live_models import GoalItem, TipMenuItem

VERIFIED_REQUIRED = "User must be verified to access creator settings"


class BaseService:
    """Shared collaborators and lookups for live stream operations.

    Every collaborator can be injected; the defaults are the process-wide
    instances used by the API.
    """

    def __init__(
        self,
        storage: LiveStorage | None = None,
        codec: IdCodec | None = None,
        settings_provider: AdminSettingsProvider | None = None,
        mirror: GoalMirrorSync | None = None,
        issuer: RtcCredentialIssuer | None = None,
        scheduler: NotificationScheduler | None = None,
        groups: GroupMembership | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._storage = storage
        self._codec = codec
        self._settings_provider = settings_provider
        self.mirror = mirror or get_goal_mirror_sync()
        self.issuer = issuer or get_rtc_credential_issuer()
        self._scheduler = scheduler
        self._groups = groups
        self.clock = clock

    @property
    def storage(self) -> LiveStorage:
        if self._storage is None:
            self._storage = get_live_storage()
        return self._storage

    @property
    def codec(self) -> IdCodec:
        if self._codec is None:
            self._codec = get_id_codec()
        return self._codec

    @property
    def settings_provider(self) -> AdminSettingsProvider:
        if self._settings_provider is None:
            self._settings_provider = get_admin_settings_provider()
        return self._settings_provider

    @property
    def scheduler(self) -> NotificationScheduler:
        if self._scheduler is None:
            self._scheduler = NotificationScheduler(self.storage)
        return self._scheduler

    @property
    def groups(self) -> GroupMembership:
        if self._groups is None:
            self._groups = GroupMembership(self.storage)
        return self._groups

    async def _get_settings(self) -> AdminSettings:
        return await self.settings_provider.get_settings()

    def _decode_id(
        self,
        token: str | None,
        message: str,
        errcode: AppErrorCode = AppErrorCode.E_INVALID_ID,
    ) -> int:
        """Decrypt an opaque id or raise a 400 with the given message."""
        decoded = self.codec.decrypt(token)
        if decoded is None:
            logger.info("rejected opaque id {!r}: {}", token, message)
            raise AppError(errcode=errcode, errmesg=message, status_code=HttpStatusCode.BAD_REQUEST)
        return decoded

    async def _get_user(self, conn: AsyncPGClient, user_id: int) -> UserRecord:
        user = await self.storage.users.get(conn, user_id)
        if user is None:
            raise AppError(
                errcode=AppErrorCode.E_USER_NOT_FOUND,
                errmesg="User not found",
                status_code=HttpStatusCode.NOT_FOUND,
            )
        return user

    async def _require_verified_user(
        self, conn: AsyncPGClient, user_id: int, message: str = VERIFIED_REQUIRED
    ) -> UserRecord:
        user = await self._get_user(conn, user_id)
        if not user.verified:
            raise AppError(
                errcode=AppErrorCode.E_NOT_VERIFIED,
                errmesg=message,
                status_code=HttpStatusCode.FORBIDDEN,
            )
        return user

    async def _verified_user(self, user_id: int, message: str = VERIFIED_REQUIRED) -> UserRecord:
        async with self.storage.session() as conn:
            return await self._require_verified_user(conn, user_id, message)

    def _tip_items(self, records: list[TipMenuRecord]) -> list[TipMenuItem]:
        return [
            TipMenuItem(id=self.codec.encrypt(r.id), activity_name=r.activity_name, coins=r.coins)
            for r in records
        ]

    def _goal_item(self, goal: GoalRecord) -> GoalItem:
        return GoalItem(
            id=self.codec.encrypt(goal.id),
            live_id=self.codec.encrypt(goal.live_id),
            goal_name=goal.goal_name,
            coins=goal.coins,
        )

    def _live_url(self, live_id: int, live_type: LiveType, username: str) -> str:
        if live_type is LiveType.IMMEDIATE:
            return f"/live/go/{self.codec.encrypt(live_id)}"
        return f"/{username}"

    async def _sync_goal_mirror(self, live_id: int) -> None:
        """Rebuild the mirror of the live's active goal; failures are logged only."""
        try:
            async with self.storage.session() as conn:
                goal = await self.storage.goals.get_current(conn, live_id)
                if goal is None:
                    return
                tips = 0
                if not goal.is_empty:
                    tips = await self.storage.stats.tips_since(conn, live_id, goal.created_at)
            await self.mirror.sync(goal, tips, self.clock())
        except Exception as exc:
            logger.warning("goal mirror refresh failed for live {}: {}", live_id, exc)
