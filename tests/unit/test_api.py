"""HTTP surface: envelope, auth, admin gate, error mapping.

Routers keep a module-level service; these tests swap in services backed by
the in-memory store and override the DB session dependency.
"""

from collections.abc import AsyncGenerator
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from fastapi import Depends
from httpx import AsyncClient

from src.main import app
from src.wg_account.api import router as account_router
from src.wg_account.application.service import AccountApplicationService
from src.wg_admin.api import router as admin_router
from src.wg_admin.application.service import AdminService
from src.wg_common.database import get_db_session
from src.wg_common.errors import RateLimitError
from src.wg_gateway.auth.dependencies import get_current_user_id
from src.wg_gateway.middleware import rate_limit
from src.wg_gateway.middleware.rate_limit import enforce_wager_rate_limit
from src.wg_race.api import router as race_router
from src.wg_race.application.service import RaceApplicationService
from src.wg_race.domain.models import CandidateResult, RaceResult
from src.wg_settlement.application.engine import SettlementEngine
from src.wg_wager.api import router as wager_router
from src.wg_wager.application.service import WagerApplicationService
from tests.fakes import RACE_ID, FakeClock, InMemoryStore, fund, make_token, seed_race

USER = {"Authorization": f"Bearer {make_token('user-1')}"}
ADMIN = {"Authorization": f"Bearer {make_token('admin-1')}"}


async def _no_rate_limit(user_id: str = Depends(get_current_user_id)) -> str:
    return user_id


@pytest.fixture
def feed() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
async def wired(
    store: InMemoryStore,
    repos: dict,
    clock: FakeClock,
    feed: AsyncMock,
    monkeypatch: pytest.MonkeyPatch,
) -> SettlementEngine:
    seed_race(store, clock() + timedelta(hours=2))

    async def session_override() -> AsyncGenerator[object, None]:
        async with store.session() as db:
            yield db

    app.dependency_overrides[get_db_session] = session_override
    app.dependency_overrides[enforce_wager_rate_limit] = _no_rate_limit

    accounts = AccountApplicationService(repos["accounts"])
    engine = SettlementEngine(
        session_factory=store.session,
        repo=repos["settlement"],
        account_repo=repos["accounts"],
        sleep=AsyncMock(),
    )
    monkeypatch.setattr(account_router, "_service", accounts)
    monkeypatch.setattr(
        wager_router,
        "_service",
        WagerApplicationService(repos["wagers"], repos["accounts"], repos["races"], clock=clock),
    )
    monkeypatch.setattr(race_router, "_service", RaceApplicationService(repos["races"]))
    monkeypatch.setattr(
        admin_router, "_service", AdminService(engine=engine, feed=feed, accounts=accounts)
    )
    return engine


PARLAY = {
    "race_id": RACE_ID,
    "market": {"type": "PARLAY", "legs": [{"position": 1, "candidate_id": "1", "stake": 100}]},
}


async def test_health(client: AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


class TestAuth:
    async def test_missing_token(self, client: AsyncClient, wired: SettlementEngine) -> None:
        resp = await client.get("/api/v1/account/balance")
        assert resp.status_code == 401
        assert resp.headers["www-authenticate"] == "Bearer"

    async def test_bad_signature(self, client: AsyncClient, wired: SettlementEngine) -> None:
        headers = {"Authorization": f"Bearer {make_token('user-1', secret='forged')}"}
        resp = await client.get("/api/v1/account/balance", headers=headers)
        assert resp.status_code == 401

    async def test_admin_route_rejects_regular_user(
        self, client: AsyncClient, wired: SettlementEngine
    ) -> None:
        resp = await client.get("/api/v1/admin/reconcile", headers=USER)
        assert resp.status_code == 403
        assert resp.json()["code"] == 1002


class TestWagerFlow:
    async def test_grant_place_cancel(
        self, client: AsyncClient, wired: SettlementEngine, store: InMemoryStore
    ) -> None:
        resp = await client.post(
            "/api/v1/admin/accounts/user-1/grant",
            json={"amount": 1000, "reason": "Season start"},
            headers=ADMIN,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["balance"] == 1000

        resp = await client.post("/api/v1/wagers", json=PARLAY, headers=USER)
        body = resp.json()
        assert resp.status_code == 200
        assert body["code"] == 0
        assert body["request_id"].startswith("req_")
        assert resp.headers["x-request-id"] == body["request_id"]
        assert body["data"]["server_odds"] == [1.3]
        wager_id = body["data"]["wager_id"]

        resp = await client.get("/api/v1/wagers", params={"race_id": RACE_ID}, headers=USER)
        assert [w["id"] for w in resp.json()["data"]["items"]] == [wager_id]

        resp = await client.post(f"/api/v1/wagers/{wager_id}/cancel", headers=USER)
        assert resp.json()["data"]["refund_amount"] == 100

        resp = await client.get("/api/v1/account/balance", headers=USER)
        assert resp.json()["data"]["balance"] == 1000

        resp = await client.get("/api/v1/account/ledger", params={"limit": 2}, headers=USER)
        ledger = resp.json()["data"]
        assert [e["entry_type"] for e in ledger["items"]] == ["WAGER_REFUND", "WAGER_STAKE"]
        assert ledger["has_more"] is True

    async def test_app_error_envelope(
        self, client: AsyncClient, wired: SettlementEngine, store: InMemoryStore
    ) -> None:
        resp = await client.post("/api/v1/wagers", json=PARLAY, headers=USER)
        body = resp.json()
        assert resp.status_code == 422
        assert body["code"] == 2001
        assert body["data"] is None

    async def test_unknown_market_type_rejected(
        self, client: AsyncClient, wired: SettlementEngine
    ) -> None:
        payload = {"race_id": RACE_ID, "market": {"type": "EXACTA", "stake": 10}}
        resp = await client.post("/api/v1/wagers", json=payload, headers=USER)
        assert resp.status_code == 422

    async def test_live_odds(self, client: AsyncClient, wired: SettlementEngine) -> None:
        resp = await client.get(f"/api/v1/races/{RACE_ID}/odds", headers=USER)
        assert resp.status_code == 200
        assert resp.json()["data"]["total_stake"] == 0

        resp = await client.get("/api/v1/races/2026_99/odds", headers=USER)
        assert resp.status_code == 404
        assert resp.json()["code"] == 3001

    async def test_non_finite_client_odds_in_envelope(
        self, client: AsyncClient, wired: SettlementEngine, store: InMemoryStore
    ) -> None:
        await fund(store, "user-1", 1000)
        raw = (
            '{"race_id": "' + RACE_ID + '", "market": {"type": "PARLAY", "legs": '
            '[{"position": 1, "candidate_id": "1", "stake": 100, "client_odds": NaN}]}}'
        )
        resp = await client.post(
            "/api/v1/wagers",
            content=raw,
            headers={**USER, "Content-Type": "application/json"},
        )
        body = resp.json()
        assert resp.status_code == 422
        assert body["code"] == 4001
        assert store.wagers == {}

    async def test_leaderboard(
        self, client: AsyncClient, wired: SettlementEngine, store: InMemoryStore
    ) -> None:
        await fund(store, "user-1", 1000)
        resp = await client.post("/api/v1/wagers", json=PARLAY, headers=USER)
        wager = store.wagers[resp.json()["data"]["wager_id"]]
        wager.status, wager.payout = "WON", 130

        resp = await client.get(
            "/api/v1/leaderboard", params={"sort": "win_rate"}, headers=USER
        )
        data = resp.json()["data"]
        assert resp.status_code == 200
        assert data["sort"] == "win_rate"
        assert data["items"][0]["user_id"] == "user-1"
        assert data["me"]["net_profit"] == 30

        resp = await client.get("/api/v1/leaderboard", params={"limit": 0}, headers=USER)
        assert resp.status_code == 422


class TestAdminSettlement:
    async def test_manual_round_settlement(
        self,
        client: AsyncClient,
        wired: SettlementEngine,
        store: InMemoryStore,
        feed: AsyncMock,
    ) -> None:
        await fund(store, "user-1", 500)
        await client.post("/api/v1/wagers", json=PARLAY, headers=USER)
        feed.fetch_race_result.return_value = RaceResult(
            2026, 7, "Test Grand Prix", [CandidateResult("1", "1", "Finished")]
        )
        await wired.load_completed()

        resp = await client.post("/api/v1/admin/races/2026/7/settle", headers=ADMIN)

        data = resp.json()["data"]
        assert data["outcome"] == "COMPLETE"
        assert data["settled"] == 1
        assert store.balance("user-1") == 500 - 100 + 130

        resp = await client.post("/api/v1/admin/settlement/run", headers=ADMIN)
        assert resp.json()["data"]["outcome"] == "ALREADY_SETTLED"

    async def test_unloaded_state_is_503(
        self, client: AsyncClient, wired: SettlementEngine, feed: AsyncMock
    ) -> None:
        feed.fetch_race_result.return_value = RaceResult(2026, 7, "Test Grand Prix", [])
        resp = await client.post("/api/v1/admin/settlement/run", headers=ADMIN)
        assert resp.status_code == 503
        assert resp.json()["code"] == 5002

    async def test_reconcile(self, client: AsyncClient, wired: SettlementEngine) -> None:
        resp = await client.get("/api/v1/admin/reconcile", headers=ADMIN)
        assert resp.json()["data"] == {"ok": True, "discrepancies": []}


class TestRateLimit:
    async def test_limit_exceeded(self, monkeypatch: pytest.MonkeyPatch) -> None:
        redis = AsyncMock()
        redis.incr.return_value = 1000
        monkeypatch.setattr(rate_limit, "get_redis", AsyncMock(return_value=redis))

        with pytest.raises(RateLimitError):
            await enforce_wager_rate_limit("user-1")
        redis.expire.assert_not_called()

    async def test_first_hit_sets_window(self, monkeypatch: pytest.MonkeyPatch) -> None:
        redis = AsyncMock()
        redis.incr.return_value = 1
        monkeypatch.setattr(rate_limit, "get_redis", AsyncMock(return_value=redis))

        assert await enforce_wager_rate_limit("user-1") == "user-1"
        redis.expire.assert_awaited_once_with("ratelimit:user-1:wager", 60)
