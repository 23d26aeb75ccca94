import os

# Must be set before app.core.config is imported
os.environ["STORE_BACKEND"] = "memory"
os.environ["TIMEZONE"] = "UTC"
os.environ["CLOCK_OUT_BREAK_POLICY"] = "auto_close"
os.environ["SECRET_KEY"] = "test-secret"

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from main import app
from app.api.deps import get_time_service, reset_time_service
from app.db.entry_store import InMemoryEntryStore
from app.db.stores import get_entry_store, reset_stores
from app.services.time_service import TimeAccountingService


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def set(self, hour: int, minute: int = 0, day_offset: int = 0) -> None:
        base = self.current.replace(hour=0, minute=0, second=0, microsecond=0)
        self.current = base + timedelta(days=day_offset, hours=hour, minutes=minute)

    def advance(self, minutes: int) -> None:
        self.current += timedelta(minutes=minutes)


def at(day: str, hhmm: str) -> datetime:
    """UTC timestamp from ``YYYY-MM-DD`` and ``HH:MM``."""
    return datetime.fromisoformat(f"{day}T{hhmm}:00").replace(tzinfo=timezone.utc)


@pytest.fixture
def store():
    return InMemoryEntryStore()


@pytest.fixture
def service(store):
    return TimeAccountingService(store)


@pytest.fixture
def clock():
    # Monday
    return FakeClock(at("2024-03-04", "09:00"))


@pytest.fixture
def client(clock):
    reset_stores()
    reset_time_service()
    svc = TimeAccountingService(get_entry_store(), tz="UTC", clock=clock)
    app.dependency_overrides[get_time_service] = lambda: svc
    # Entering the client runs startup, which seeds the default users
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    reset_stores()
    reset_time_service()


def login(client: TestClient, username: str, password: str) -> dict:
    r = client.post("/api/v1/auth/login", json={"username": username, "password": password})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['token']}"}


@pytest.fixture
def admin_headers(client):
    return login(client, "admin", "admin123")


@pytest.fixture
def john_headers(client):
    return login(client, "john", "password123")


@pytest.fixture
def jane_headers(client):
    return login(client, "jane", "password123")
