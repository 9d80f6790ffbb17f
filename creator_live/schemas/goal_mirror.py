"""Goal progress mirror ODM schema.

A read-optimized copy of the active goal of a live stream. It is rebuilt from
PostgreSQL on every goal write and join-time read; it is never a source of truth.
"""

from datetime import datetime

from beanie import Document, Indexed


def goal_percentage(tips_received: int, amount: int) -> int:
    """Progress as a whole percentage, floored; zero when the goal has no amount."""
    if amount <= 0:
        return 0
    return (max(tips_received, 0) * 100) // amount


class GoalMirror(Document):
    """Goal progress document keyed by the relational goal id."""

    goal_id: Indexed(int, unique=True)  # type: ignore[valid-type]
    live_id: Indexed(int)  # type: ignore[valid-type]

    name: str
    amount: int
    tips_received: int = 0
    percentage: int = 0

    updated_at: datetime

    class Settings:
        name = "live_goal_mirror"
        indexes = [
            "live_id",
            [("goal_id", 1)],  # unique handled by Indexed
        ]
