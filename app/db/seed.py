import os

from app.core.config import settings
from app.core.security import hash_password
from app.db.user_store import UserStore
from app.models.user import User, normalize_username
from app.schemas.common import Role


# Stable ids keep seeding idempotent
DEFAULT_USERS = [
    {"id": "6562a0f0a0a0a0a0a0a0a0b1", "username": "admin", "name": "Admin User", "role": Role.admin,
     "password": os.getenv("SEED_ADMIN_PASSWORD", "admin123")},
    {"id": "6562a0f0a0a0a0a0a0a0a0b2", "username": "john", "name": "John Doe", "role": Role.staff,
     "password": os.getenv("SEED_STAFF_PASSWORD", "password123")},
    {"id": "6562a0f0a0a0a0a0a0a0a0b3", "username": "jane", "name": "Jane Smith", "role": Role.staff,
     "password": os.getenv("SEED_STAFF_PASSWORD", "password123")},
]


def default_users() -> list[User]:
    return [
        User(
            id=u["id"],
            username=normalize_username(u["username"], settings.USERNAME_DOMAIN),
            name=u["name"],
            role=u["role"],
            password_hash=hash_password(u["password"]),
        )
        for u in DEFAULT_USERS
    ]


async def seed_user_store(users: UserStore) -> int:
    created = 0
    for user in default_users():
        if await users.get_by_username(user.username) is None:
            await users.create(user)
            created += 1
    return created
