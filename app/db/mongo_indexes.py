from motor.motor_asyncio import AsyncIOMotorDatabase
from app.db.mongo import get_mongo_db


async def ensure_indexes(db: AsyncIOMotorDatabase | None = None) -> None:
    """Create required MongoDB indexes (idempotent)."""
    if db is None:
        db = get_mongo_db()

    users = db["users"]
    # Canonical usernames are unique
    await users.create_index([("username", 1)], unique=True, name="uniq_username")
    await users.create_index([("role", 1)], name="idx_user_role")

    time_entries = db["time_entries"]
    # Per-user date range queries for reports
    await time_entries.create_index([("user_id", 1), ("date", 1)], name="idx_te_user_date")
    # Admin timesheets across users
    await time_entries.create_index([("date", -1)], name="idx_te_date")
    # At most one active entry per user, enforced by the database
    await time_entries.create_index(
        [("user_id", 1)],
        unique=True,
        partialFilterExpression={"status": "active"},
        name="uniq_te_active_by_user",
    )
