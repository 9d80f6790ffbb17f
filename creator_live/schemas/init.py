"""Beanie initialization for ODM."""

from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorDatabase

from creator_live.shared.storage.mongo import get_mongo_client

from .goal_mirror import GoalMirror

LIVE_MONGO_LABEL = "live_primary"


async def init_beanie_odm(database: AsyncIOMotorDatabase) -> None:
    """Initialize Beanie ODM with all document models."""
    await init_beanie(
        database=database,  # type: ignore[arg-type]
        document_models=[GoalMirror],
    )


async def init_schema() -> None:
    mongo_client = get_mongo_client(LIVE_MONGO_LABEL)
    await init_beanie_odm(mongo_client.get_default_database())


__all__ = ["LIVE_MONGO_LABEL", "init_beanie_odm", "init_schema"]
