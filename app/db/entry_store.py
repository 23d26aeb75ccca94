"""Entry Store: durable keyed storage for time entries.

One contract, two backends. ``MongoEntryStore`` is used in deployments,
``InMemoryEntryStore`` in tests and local demos. Both enforce a single
active entry per user and optimistic versioning on update.
"""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date as _date
from typing import Iterator, Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, DuplicateKeyError

from app.core.errors import NotFound, StoreUnavailable, WriteConflict
from app.models.time_entry import EntryStatus, TimeEntry, from_record, new_id, to_record


logger = logging.getLogger("uvicorn.error")

# Fields that may change after creation
MUTABLE_FIELDS = {"clock_out_at", "breaks", "total_hours", "status"}


class EntryStore(ABC):
    @abstractmethod
    async def create(self, entry: TimeEntry) -> str:
        ...

    @abstractmethod
    async def get(self, entry_id: str) -> TimeEntry:
        ...

    @abstractmethod
    async def update(self, entry_id: str, patch: dict, expected_version: int) -> None:
        ...

    @abstractmethod
    async def query(
        self,
        user_id: Optional[str] = None,
        date_from: Optional[_date] = None,
        date_to: Optional[_date] = None,
        status: Optional[EntryStatus] = None,
    ) -> list[TimeEntry]:
        ...

    async def find_active(self, user_id: str) -> Optional[TimeEntry]:
        entries = await self.query(user_id=user_id, status=EntryStatus.active)
        return entries[0] if entries else None


def _check_patch(patch: dict) -> None:
    illegal = set(patch) - MUTABLE_FIELDS
    if illegal:
        raise ValueError(f"Immutable fields in patch: {sorted(illegal)}")


def _sort_newest_first(entries: list[TimeEntry]) -> list[TimeEntry]:
    return sorted(entries, key=lambda e: (e.date, e.clock_in_at), reverse=True)


# ---------------------- In-memory ----------------------


class InMemoryEntryStore(EntryStore):
    def __init__(self) -> None:
        self._records: dict[str, dict] = {}

    async def create(self, entry: TimeEntry) -> str:
        if entry.is_active:
            for rec in self._records.values():
                if rec["user_id"] == entry.user_id and rec["status"] == EntryStatus.active.value:
                    raise WriteConflict("User already has an active entry")
        entry_id = entry.id or new_id()
        record = to_record(entry)
        record["id"] = entry_id
        self._records[entry_id] = copy.deepcopy(record)
        return entry_id

    async def get(self, entry_id: str) -> TimeEntry:
        rec = self._records.get(entry_id)
        if rec is None:
            raise NotFound(f"Time entry {entry_id} not found")
        return from_record(copy.deepcopy(rec))

    async def update(self, entry_id: str, patch: dict, expected_version: int) -> None:
        _check_patch(patch)
        rec = self._records.get(entry_id)
        if rec is None:
            raise NotFound(f"Time entry {entry_id} not found")
        if rec["version"] != expected_version:
            raise WriteConflict()
        rec.update(copy.deepcopy(patch))
        rec["version"] = expected_version + 1

    async def query(self, user_id=None, date_from=None, date_to=None, status=None) -> list[TimeEntry]:
        out: list[TimeEntry] = []
        for rec in self._records.values():
            if user_id is not None and rec["user_id"] != user_id:
                continue
            if status is not None and rec["status"] != EntryStatus(status).value:
                continue
            if date_from is not None and rec["date"] < date_from.isoformat():
                continue
            if date_to is not None and rec["date"] > date_to.isoformat():
                continue
            out.append(from_record(copy.deepcopy(rec)))
        return _sort_newest_first(out)


# ---------------------- MongoDB ----------------------


@contextmanager
def _mongo_errors() -> Iterator[None]:
    try:
        yield
    except ConnectionFailure as exc:
        logger.warning("Entry store unavailable: %s", exc)
        raise StoreUnavailable() from exc


def _oid(value: str) -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError) as exc:
        raise NotFound(f"Invalid id: {value}") from exc


def _to_doc(entry: TimeEntry) -> dict:
    doc = to_record(entry)
    doc.pop("id")
    doc["user_id"] = _oid(entry.user_id)
    return doc


def _from_doc(doc: dict) -> TimeEntry:
    rec = dict(doc)
    rec["id"] = str(rec.pop("_id"))
    rec["user_id"] = str(rec["user_id"])
    return from_record(rec)


class MongoEntryStore(EntryStore):
    collection_name = "time_entries"

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._col = db[self.collection_name]

    async def create(self, entry: TimeEntry) -> str:
        doc = _to_doc(entry)
        if entry.id:
            doc["_id"] = _oid(entry.id)
        with _mongo_errors():
            try:
                res = await self._col.insert_one(doc)
            except DuplicateKeyError as exc:
                # Partial unique index on active entries per user
                raise WriteConflict("User already has an active entry") from exc
        return str(res.inserted_id)

    async def get(self, entry_id: str) -> TimeEntry:
        with _mongo_errors():
            doc = await self._col.find_one({"_id": _oid(entry_id)})
        if not doc:
            raise NotFound(f"Time entry {entry_id} not found")
        return _from_doc(doc)

    async def update(self, entry_id: str, patch: dict, expected_version: int) -> None:
        _check_patch(patch)
        oid = _oid(entry_id)
        with _mongo_errors():
            res = await self._col.update_one(
                {"_id": oid, "version": expected_version},
                {"$set": patch, "$inc": {"version": 1}},
            )
            if res.matched_count == 0:
                exists = await self._col.count_documents({"_id": oid}, limit=1)
                if not exists:
                    raise NotFound(f"Time entry {entry_id} not found")
                raise WriteConflict()

    async def query(self, user_id=None, date_from=None, date_to=None, status=None) -> list[TimeEntry]:
        q: dict = {}
        if user_id is not None:
            q["user_id"] = _oid(user_id)
        if status is not None:
            q["status"] = EntryStatus(status).value
        if date_from is not None:
            q["date"] = {"$gte": date_from.isoformat()}
        if date_to is not None:
            q.setdefault("date", {}).update({"$lte": date_to.isoformat()})
        items: list[TimeEntry] = []
        with _mongo_errors():
            cursor = self._col.find(q).sort([("date", -1), ("clock_in_at", -1)])
            async for doc in cursor:
                items.append(_from_doc(doc))
        return items
