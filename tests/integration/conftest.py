"""Integration-test fixtures (requires running PG + Redis with migrations applied).

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool and Redis pool remain valid across the session.
The whole directory is skipped when PostgreSQL is unreachable.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.wg_common.database import ping_database


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client — keeps the engine pool alive."""
    try:
        await ping_database()
    except Exception as exc:  # noqa: BLE001
        pytest.skip(f"PostgreSQL unavailable: {exc}")
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
