"""Bundle of repositories sharing one PostgreSQL label."""

from contextlib import AbstractAsyncContextManager

from creator_live.shared.storage.postgres import AsyncPGClient, PostgresManager, get_postgres_manager

from .admin_settings import AdminSettingsRepository
from .calls import VideoCallRepository
from .creators import CreatorRepository
from .goals import GoalRepository
from .lives import LiveRepository
from .notifications import NotificationRepository
from .stats import LiveStatsRepository
from .tip_menus import TipMenuRepository
from .users import UserRepository


class LiveStorage:
    """
    Entry point for relational access.

    ``session()`` yields a plain connection for reads; ``transaction()`` yields a
    connection inside one transaction that commits on success and rolls back on
    any exception.
    """

    def __init__(self, manager: PostgresManager | None = None, label: str = "default"):
        self._manager = manager
        self._label = label

        self.lives = LiveRepository()
        self.goals = GoalRepository()
        self.tip_menus = TipMenuRepository()
        self.calls = VideoCallRepository()
        self.users = UserRepository()
        self.stats = LiveStatsRepository()
        self.creators = CreatorRepository()
        self.notifications = NotificationRepository()
        self.admin_settings = AdminSettingsRepository()

    @property
    def manager(self) -> PostgresManager:
        if self._manager is None:
            self._manager = get_postgres_manager()
        return self._manager

    def session(self) -> AbstractAsyncContextManager[AsyncPGClient]:
        return self.manager.session(self._label)

    def transaction(self) -> AbstractAsyncContextManager[AsyncPGClient]:
        return self.manager.transaction(self._label)


_live_storage: LiveStorage | None = None


def get_live_storage() -> LiveStorage:
    global _live_storage
    if _live_storage is None:
        _live_storage = LiveStorage()
    return _live_storage
