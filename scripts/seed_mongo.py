from __future__ import annotations

import asyncio

from app.db.mongo import get_mongo_db, close_mongo_client
from app.db.mongo_indexes import ensure_indexes
from app.db.seed import seed_user_store
from app.db.user_store import MongoUserStore


async def main():
    db = get_mongo_db()
    # Ensure indexes before inserting
    await ensure_indexes(db)
    created = await seed_user_store(MongoUserStore(db))

    print(f"MongoDB seed completed ({created} users created).")
    close_mongo_client()


if __name__ == "__main__":
    asyncio.run(main())
