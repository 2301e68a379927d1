"""Shared test fixtures."""

import os

# Settings are read at import time; these must be set before any src import.
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("ADMIN_USER_IDS", "admin-1")
os.environ.setdefault("SETTLEMENT_ENABLED", "false")

from datetime import UTC, datetime  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.main import app  # noqa: E402
from tests.fakes import (  # noqa: E402
    FakeAccountRepository,
    FakeClock,
    FakeRaceRepository,
    FakeSettlementRepository,
    FakeWagerRepository,
    InMemoryStore,
)


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints (lifespan not run)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 6, 1, 12, 0, tzinfo=UTC))


@pytest.fixture
def store(clock: FakeClock) -> InMemoryStore:
    return InMemoryStore(clock=clock)


@pytest.fixture
def repos(store: InMemoryStore) -> dict[str, object]:
    return {
        "accounts": FakeAccountRepository(store),
        "races": FakeRaceRepository(store),
        "wagers": FakeWagerRepository(store),
        "settlement": FakeSettlementRepository(store),
    }
