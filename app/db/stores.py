from typing import Optional

from app.core.config import settings
from app.db.entry_store import EntryStore, InMemoryEntryStore, MongoEntryStore
from app.db.mongo import get_mongo_db
from app.db.user_store import InMemoryUserStore, MongoUserStore, UserStore


_entry_store: Optional[EntryStore] = None
_user_store: Optional[UserStore] = None


def use_memory_backend() -> bool:
    return settings.STORE_BACKEND == "memory"


def get_entry_store() -> EntryStore:
    global _entry_store
    if _entry_store is None:
        _entry_store = InMemoryEntryStore() if use_memory_backend() else MongoEntryStore(get_mongo_db())
    return _entry_store


def get_user_store() -> UserStore:
    global _user_store
    if _user_store is None:
        _user_store = InMemoryUserStore() if use_memory_backend() else MongoUserStore(get_mongo_db())
    return _user_store


def reset_stores() -> None:
    """Drop cached store instances so the next request builds fresh ones."""
    global _entry_store, _user_store
    _entry_store = None
    _user_store = None
