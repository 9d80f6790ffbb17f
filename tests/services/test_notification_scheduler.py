from datetime import datetime, timedelta, timezone

from creator_live.services.notification_scheduler import NotificationScheduler

NOW = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)


class TestPlan:
    def test_announcement_and_reminder(self):
        scheduler = NotificationScheduler(reminder_lead_minutes=60)
        start = NOW + timedelta(days=1)

        assert scheduler.plan(start, NOW) == [("live", NOW), ("live_reminder", start - timedelta(minutes=60))]

    def test_reminder_dropped_when_already_due(self):
        scheduler = NotificationScheduler(reminder_lead_minutes=60)

        assert scheduler.plan(NOW + timedelta(minutes=30), NOW) == [("live", NOW)]


class TestSchedule:
    async def test_skip_removes_pending(self, storage):
        storage.state.notifications.append({"live_id": 1, "user_id": 7, "type": "live", "send_at": NOW})
        scheduler = NotificationScheduler(storage)

        async with storage.session() as conn:
            await scheduler.schedule(conn, 1, 7, True, date_time=NOW + timedelta(days=1), now=NOW)

        assert storage.notifications.pending(1) == []

    async def test_reschedule_replaces_pending(self, storage):
        scheduler = NotificationScheduler(storage)
        start = NOW + timedelta(days=1)

        async with storage.session() as conn:
            await scheduler.schedule(conn, 1, 7, False, date_time=start, now=NOW)
            await scheduler.schedule(conn, 1, 7, False, date_time=start + timedelta(hours=2), now=NOW)

        reminders = [n["send_at"] for n in storage.notifications.pending(1) if n["type"] == "live_reminder"]
        assert reminders == [start + timedelta(hours=1)]

    async def test_failure_is_swallowed_and_rolled_back(self, storage):
        storage.notifications.fail = True
        scheduler = NotificationScheduler(storage)

        async with storage.session() as conn:
            await scheduler.schedule(conn, 1, 7, False, date_time=NOW + timedelta(days=1), now=NOW)

        assert storage.notifications.pending(1) == []
