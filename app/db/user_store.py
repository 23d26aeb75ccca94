from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, DuplicateKeyError

from app.core.errors import NotFound, StoreUnavailable, WriteConflict
from app.models.time_entry import new_id
from app.models.user import User
from app.schemas.common import Role


logger = logging.getLogger("uvicorn.error")


class UserStore(ABC):
    @abstractmethod
    async def create(self, user: User) -> User:
        ...

    @abstractmethod
    async def get(self, user_id: str) -> Optional[User]:
        ...

    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[User]:
        ...

    @abstractmethod
    async def list(self, search: Optional[str] = None) -> list[User]:
        ...

    @abstractmethod
    async def set_password_hash(self, user_id: str, password_hash: str) -> None:
        ...

    @abstractmethod
    async def delete(self, user_id: str) -> None:
        ...


def _matches(user: User, search: Optional[str]) -> bool:
    if not search:
        return True
    s = search.lower()
    return s in user.username.lower() or s in user.name.lower()


class InMemoryUserStore(UserStore):
    def __init__(self) -> None:
        self._users: dict[str, User] = {}

    async def create(self, user: User) -> User:
        if await self.get_by_username(user.username):
            raise WriteConflict("Username already registered")
        stored = user.model_copy(update={"id": user.id or new_id()})
        self._users[stored.id] = stored
        return stored.model_copy()

    async def get(self, user_id: str) -> Optional[User]:
        u = self._users.get(user_id)
        return u.model_copy() if u else None

    async def get_by_username(self, username: str) -> Optional[User]:
        for u in self._users.values():
            if u.username == username:
                return u.model_copy()
        return None

    async def list(self, search: Optional[str] = None) -> list[User]:
        return [u.model_copy() for u in sorted(self._users.values(), key=lambda u: u.name) if _matches(u, search)]

    async def set_password_hash(self, user_id: str, password_hash: str) -> None:
        if user_id not in self._users:
            raise NotFound("User not found")
        self._users[user_id] = self._users[user_id].model_copy(update={"password_hash": password_hash})

    async def delete(self, user_id: str) -> None:
        if self._users.pop(user_id, None) is None:
            raise NotFound("User not found")


def _from_doc(doc: dict) -> User:
    return User(
        id=str(doc["_id"]),
        username=doc.get("username", ""),
        name=doc.get("name", ""),
        role=Role(doc.get("role", "staff")),
        password_hash=doc.get("password_hash", ""),
        is_active=doc.get("is_active", True),
    )


def _oid(value: str) -> Optional[ObjectId]:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


class MongoUserStore(UserStore):
    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._col = db["users"]

    async def create(self, user: User) -> User:
        now = datetime.now(timezone.utc)
        doc = {
            "username": user.username,
            "name": user.name,
            "role": user.role.value,
            "password_hash": user.password_hash,
            "is_active": user.is_active,
            "created_at": now,
            "updated_at": now,
        }
        if user.id:
            doc["_id"] = ObjectId(user.id)
        try:
            res = await self._col.insert_one(doc)
        except DuplicateKeyError as exc:
            raise WriteConflict("Username already registered") from exc
        except ConnectionFailure as exc:
            raise StoreUnavailable() from exc
        return user.model_copy(update={"id": str(res.inserted_id)})

    async def get(self, user_id: str) -> Optional[User]:
        oid = _oid(user_id)
        if oid is None:
            return None
        try:
            doc = await self._col.find_one({"_id": oid})
        except ConnectionFailure as exc:
            raise StoreUnavailable() from exc
        return _from_doc(doc) if doc else None

    async def get_by_username(self, username: str) -> Optional[User]:
        try:
            doc = await self._col.find_one({"username": username})
        except ConnectionFailure as exc:
            raise StoreUnavailable() from exc
        return _from_doc(doc) if doc else None

    async def list(self, search: Optional[str] = None) -> list[User]:
        q: dict = {}
        if search:
            q["$or"] = [
                {"username": {"$regex": search, "$options": "i"}},
                {"name": {"$regex": search, "$options": "i"}},
            ]
        out: list[User] = []
        try:
            async for doc in self._col.find(q).sort("name", 1):
                out.append(_from_doc(doc))
        except ConnectionFailure as exc:
            raise StoreUnavailable() from exc
        return out

    async def set_password_hash(self, user_id: str, password_hash: str) -> None:
        oid = _oid(user_id)
        if oid is None:
            raise NotFound("User not found")
        try:
            res = await self._col.update_one(
                {"_id": oid},
                {"$set": {"password_hash": password_hash, "updated_at": datetime.now(timezone.utc)}},
            )
        except ConnectionFailure as exc:
            raise StoreUnavailable() from exc
        if res.matched_count == 0:
            raise NotFound("User not found")

    async def delete(self, user_id: str) -> None:
        oid = _oid(user_id)
        if oid is None:
            raise NotFound("User not found")
        try:
            res = await self._col.delete_one({"_id": oid})
        except ConnectionFailure as exc:
            raise StoreUnavailable() from exc
        if res.deleted_count == 0:
            raise NotFound("User not found")
        logger.info("Deleted user %s", user_id)
