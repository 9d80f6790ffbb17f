"""Pending reminder rows for scheduled lives.

Delivery happens elsewhere; this module only keeps ``email_notify_schedules`` in
step with the live's time. Scheduling failures are logged and never fail the
surrounding create or edit.
"""

from datetime import datetime, timedelta

from loguru import logger

from creator_live.repositories import LiveStorage, get_live_storage
from creator_live.shared.storage.postgres import AsyncPGClient


class NotificationScheduler:
    def __init__(self, storage: LiveStorage | None = None, reminder_lead_minutes: int = 60):
        self._storage = storage
        self.reminder_lead = timedelta(minutes=reminder_lead_minutes)

    @property
    def storage(self) -> LiveStorage:
        if self._storage is None:
            self._storage = get_live_storage()
        return self._storage

    def plan(self, date_time: datetime, now: datetime) -> list[tuple[str, datetime]]:
        """Announcement now, reminder ahead of the start when that is still in the future."""
        sends = [("live", now)]
        reminder_at = date_time - self.reminder_lead
        if reminder_at > now:
            sends.append(("live_reminder", reminder_at))
        return sends

    async def schedule(
        self,
        conn: AsyncPGClient,
        live_id: int,
        owner_id: int,
        skip_notify: bool,
        *,
        date_time: datetime,
        now: datetime,
    ) -> None:
        try:
            async with conn.transaction():
                if skip_notify:
                    await self.storage.notifications.delete_pending(conn, live_id)
                    logger.info("live {} notifications skipped", live_id)
                    return
                sends = self.plan(date_time, now)
                await self.storage.notifications.replace_pending(conn, live_id, owner_id, sends)
                logger.info("live {} notifications scheduled: {}", live_id, [kind for kind, _ in sends])
        except Exception as exc:
            logger.warning("live {} notification scheduling failed: {}", live_id, exc)

    async def cleanup(self, conn: AsyncPGClient, live_id: int) -> int:
        """Drop pending reminders; runs inside the caller's transaction and propagates errors."""
        removed = await self.storage.notifications.delete_pending(conn, live_id)
        logger.debug("live {} pending notifications removed: {}", live_id, removed)
        return removed
