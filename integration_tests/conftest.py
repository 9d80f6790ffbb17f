"""Pytest configuration for integration tests.

Integration tests run against real PostgreSQL and MongoDB servers and are
excluded from the normal unit test run. Point ``POSTGRES_URL_DEFAULT`` and
``MONGO_URL_LIVE_PRIMARY`` at disposable databases: every test truncates them.
"""

import os
from pathlib import Path

import pytest

os.environ.setdefault("ENCRYPT_SECRET_ID", "integration-encrypt-secret-0123456789")

from creator_live.repositories import LiveStorage  # noqa: E402
from creator_live.shared.storage.postgres import PostgresManager  # noqa: E402

SCHEMA_SQL = Path(__file__).resolve().parents[1] / "sql" / "schema.sql"

TABLES = (
    "users",
    "admin_settings",
    "admin_restricted_creators",
    "creator_groups",
    "live_goals",
    "live_tipping_menus",
    "live_streamings",
    "email_notify_schedules",
    "video_call",
    "transactions",
    "live_prebooks",
    "live_online_users",
)


@pytest.fixture
async def pg_storage():
    """LiveStorage over a freshly truncated schema.

    Raises:
        pytest.skip: If POSTGRES_URL_DEFAULT is not set.
    """
    if not os.environ.get("POSTGRES_URL_DEFAULT"):
        pytest.skip("POSTGRES_URL_DEFAULT environment variable required")

    manager = PostgresManager()
    async with manager.session() as conn:
        await conn.execute(SCHEMA_SQL.read_text())
        await conn.execute(f"TRUNCATE {', '.join(TABLES)} RESTART IDENTITY CASCADE")

    yield LiveStorage(manager)

    # pools are bound to the per-test event loop
    await manager.close_all()


@pytest.fixture
async def mongo_database():
    """Beanie-initialized database with an empty goal mirror collection.

    Raises:
        pytest.skip: If MONGO_URL_LIVE_PRIMARY is not set.
    """
    if not os.environ.get("MONGO_URL_LIVE_PRIMARY"):
        pytest.skip("MONGO_URL_LIVE_PRIMARY environment variable required")

    from creator_live.schemas import GoalMirror, init_beanie_odm
    from creator_live.shared.storage.mongo import get_mongo_manager

    manager = get_mongo_manager()
    database = manager.get_client("live_primary").get_default_database()
    await init_beanie_odm(database)
    await GoalMirror.find_all().delete()

    yield database

    manager.close_all()
