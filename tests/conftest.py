"""
Pytest configuration for pagefeed tests

Fixtures for an isolated in-memory store with a controllable clock, and an
API client wired to that store.
"""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from pagefeed.api.app import create_app
from pagefeed.observability import telemetry
from pagefeed.storage.backend import InMemoryBackend
from pagefeed.storage.models import PageRecord
from pagefeed.storage.page_store import PageStore
from pagefeed.utils.timestamps import STORE_TZ

ADMIN_KEY = "test-admin-key"
TENANT = "tenant-1"
PROJECT = "test-project"

_CHANNEL_ENV = (
    "ADMIN_API_KEY",
    "DISCORD_WEBHOOK_URL",
    "API_KEY",
    "API_KEY_SECRET",
    "ACCESS_TOKEN",
    "ACCESS_TOKEN_SECRET",
    "PAGEFEED_REQUIRE_REGISTRATION",
)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **delta: float) -> datetime:
        self.current += timedelta(**delta)
        return self.current


def _make_record(name: str, authors: list[str] | None = None, project: str = PROJECT) -> PageRecord:
    return PageRecord(
        tenant_id=TENANT,
        project_name=project,
        name=name,
        link=f"https://scrapbox.io/{project}/{name}",
        authors=authors or [],
    )


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Start every test with no channel credentials and fresh counters."""
    for name in _CHANNEL_ENV:
        monkeypatch.delenv(name, raising=False)
    telemetry.reset()
    yield
    telemetry.reset()


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 12, 20, 15, 0, 0, tzinfo=STORE_TZ))


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def store(backend, clock):
    return PageStore(backend, clock=clock)


@pytest.fixture
def client(store, monkeypatch):
    monkeypatch.setenv("ADMIN_API_KEY", ADMIN_KEY)
    return TestClient(create_app(store=store))


@pytest.fixture
def webhook_id(client):
    """A webhook id registered through the admin endpoint."""
    response = client.post("/api/admin/webhooks", json={"apiKey": ADMIN_KEY})
    assert response.status_code == 201
    return response.json()["webhookId"]


@pytest.fixture
def make_record():
    """Factory for page records of TENANT (tenant-1) in test-project."""
    return _make_record
