"""Unit tests for the raw-SQL repositories with a mocked AsyncSession."""

import json
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.wg_account.infrastructure.persistence import AccountRepository
from src.wg_common.enums import LeaderboardSort
from src.wg_common.errors import InsufficientBalanceError, InternalError
from src.wg_settlement.domain.models import SettlementRecord
from src.wg_settlement.infrastructure.persistence import SettlementRepository
from src.wg_wager.domain.models import Wager
from src.wg_wager.infrastructure.persistence import WagerRepository, load_json, row_to_wager


def _result(rows: list[Any] | None = None, one: Any = None) -> MagicMock:
    result = MagicMock()
    result.fetchone.return_value = one
    result.fetchall.return_value = rows or []
    return result


def _account_row(balance: int = 900, earned: int = 1000) -> MagicMock:
    row = MagicMock()
    row.user_id = "user-1"
    row.balance = balance
    row.lifetime_earned = earned
    row.version = 3
    row.created_at = datetime.now(UTC)
    row.updated_at = datetime.now(UTC)
    return row


def _ledger_row(amount: int, balance_after: int, entry_type: str = "GRANT") -> MagicMock:
    row = MagicMock()
    row.id = 11
    row.user_id = "user-1"
    row.entry_type = entry_type
    row.amount = amount
    row.balance_after = balance_after
    row.reference_type = "WAGER"
    row.reference_id = "wg1"
    row.description = "x"
    row.created_at = datetime.now(UTC)
    return row


def _wager_row(**kwargs: Any) -> MagicMock:
    row = MagicMock()
    row.id = kwargs.get("id", "wg1")
    row.user_id = kwargs.get("user_id", "user-1")
    row.race_id = kwargs.get("race_id", "2026_07")
    row.market_type = kwargs.get("market_type", "HEAD_TO_HEAD")
    row.market = kwargs.get(
        "market",
        '{"candidate_a": "1", "candidate_b": "44", "rank_a": 1, "rank_b": 2, "pick": "1"}',
    )
    row.stake = kwargs.get("stake", 100)
    row.odds = kwargs.get("odds", 172)
    row.client_odds = kwargs.get("client_odds")
    row.potential_payout = kwargs.get("potential_payout", 172)
    row.status = kwargs.get("status", "PENDING")
    row.payout = kwargs.get("payout", 0)
    row.settlement = kwargs.get("settlement")
    row.created_at = kwargs.get("created_at", datetime.now(UTC))
    row.settled_at = kwargs.get("settled_at")
    return row


class TestAccountRepository:
    async def test_debit_appends_negative_entry(self) -> None:
        db = AsyncMock()
        db.execute.side_effect = [
            _result(one=_account_row(balance=900)),
            _result(one=_ledger_row(-100, 900, "WAGER_STAKE")),
        ]

        account, entry = await AccountRepository().debit(
            db, "user-1", 100, "WAGER_STAKE", "WAGER", "wg1", "stake"
        )

        assert account.balance == 900
        assert entry.amount == -100
        ledger_params = db.execute.call_args_list[1].args[1]
        assert ledger_params["amount"] == -100
        assert ledger_params["balance_after"] == 900

    async def test_debit_guard_failure_is_insufficient_balance(self) -> None:
        db = AsyncMock()
        db.execute.side_effect = [
            _result(one=None),  # guarded UPDATE matched nothing
            _result(one=_account_row(balance=40)),
        ]

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await AccountRepository().debit(db, "user-1", 100, "WAGER_STAKE", None, None, "x")
        assert "available 40" in exc_info.value.message

    async def test_credit_counts_earnings_only_for_payouts(self) -> None:
        db = AsyncMock()
        db.execute.side_effect = [
            _result(one=_account_row(balance=1000)),
            _result(one=_ledger_row(100, 1000, "WAGER_REFUND")),
        ]

        await AccountRepository().credit(db, "user-1", 100, "WAGER_REFUND", "WAGER", "wg1", "x")

        assert db.execute.call_args_list[0].args[1]["earned"] == 0

    async def test_non_positive_amount_rejected(self) -> None:
        with pytest.raises(InternalError):
            await AccountRepository().credit(AsyncMock(), "user-1", 0, "GRANT", None, None, "x")

    async def test_description_truncated(self) -> None:
        db = AsyncMock()
        db.execute.side_effect = [
            _result(one=_account_row()),
            _result(one=_ledger_row(5, 905)),
        ]

        await AccountRepository().credit(db, "user-1", 5, "GRANT", None, None, "d" * 500)

        assert len(db.execute.call_args_list[1].args[1]["description"]) == 200


class TestWagerRepository:
    async def test_insert_conflict_returns_false(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _result(one=None)
        wager = Wager("wg1", "user-1", "2026_07", "PARLAY", {"legs": []}, 10, 13)

        assert await WagerRepository().insert(db, wager) is False
        params = db.execute.call_args.args[1]
        assert json.loads(params["market"]) == {"legs": []}

    async def test_insert_sets_created_at(self) -> None:
        created = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)
        row = MagicMock()
        row.created_at = created
        db = AsyncMock()
        db.execute.return_value = _result(one=row)
        wager = Wager("wg1", "user-1", "2026_07", "PARLAY", {"legs": []}, 10, 13)

        assert await WagerRepository().insert(db, wager) is True
        assert wager.created_at == created

    async def test_list_maps_rows(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _result(rows=[_wager_row(), _wager_row(id="wg0")])

        wagers = await WagerRepository().list_by_user(db, "user-1", None, 100)

        assert [w.id for w in wagers] == ["wg1", "wg0"]
        assert wagers[0].head_to_head().pick == "1"

    def test_row_to_wager_accepts_decoded_json(self) -> None:
        wager = row_to_wager(_wager_row(market={"legs": []}, client_odds="1.7"))
        assert wager.market == {"legs": []}
        assert wager.client_odds == 1.7

    def test_load_json(self) -> None:
        assert load_json(None) is None
        assert load_json('{"a": 1}') == {"a": 1}

    @pytest.mark.parametrize("sort", list(LeaderboardSort))
    async def test_leaderboard_orders_by_requested_metric(self, sort: LeaderboardSort) -> None:
        row = MagicMock()
        row.rank, row.user_id = 1, "user-1"
        row.total_bets, row.won_bets, row.total_staked, row.total_won = 4, 3, 400, 520
        db = AsyncMock()
        db.execute.return_value = _result(rows=[row])

        entries = await WagerRepository().leaderboard(db, sort, 50)

        sql = str(db.execute.call_args.args[0])
        assert f"ORDER BY {sort.value} DESC" in sql
        assert db.execute.call_args.args[1] == {"limit": 50}
        assert (entries[0].net_profit, entries[0].win_rate) == (120, 75)

    async def test_leaderboard_entry_missing_user(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _result(one=None)

        entry = await WagerRepository().leaderboard_entry(
            db, LeaderboardSort.NET_PROFIT, "user-9"
        )

        assert entry is None
        assert db.execute.call_args.args[1] == {"user_id": "user-9"}


class TestSettlementRepository:
    async def test_apply_returns_owner(self) -> None:
        row = MagicMock()
        row.user_id = "user-1"
        db = AsyncMock()
        db.execute.return_value = _result(one=row)

        owner = await SettlementRepository().apply_resolution(
            db, "wg1", "WON", 130, {"legs": []}
        )

        assert owner == "user-1"
        assert json.loads(db.execute.call_args.args[1]["detail"]) == {"legs": []}

    async def test_apply_on_settled_wager_returns_none(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _result(one=None)
        assert await SettlementRepository().apply_resolution(db, "wg1", "WON", 1, {}) is None

    async def test_tally_keys(self) -> None:
        rows = []
        for market_type, status, n in [("PARLAY", "WON", 2), ("HEAD_TO_HEAD", "VOID", 1)]:
            row = MagicMock()
            row.market_type, row.status, row.n = market_type, status, n
            rows.append(row)
        db = AsyncMock()
        db.execute.return_value = _result(rows=rows)

        assert await SettlementRepository().tally(db, "2026_07") == {
            "PARLAY_WON": 2,
            "HEAD_TO_HEAD_VOID": 1,
        }

    async def test_insert_record_maps_counts_to_columns(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _result(one=None)
        record = SettlementRecord("2026_07", 2026, 7, "Test GP", {"HEAD_TO_HEAD_LOST": 4})

        assert await SettlementRepository().insert_record(db, record) is False
        params = db.execute.call_args.args[1]
        assert params["h2h_lost"] == 4
        assert params["parlay_won"] == 0

    async def test_list_unsettled_rounds(self) -> None:
        row = MagicMock()
        row.race_id, row.season, row.round = "2026_06", 2026, 6
        db = AsyncMock()
        db.execute.return_value = _result(rows=[row])

        assert await SettlementRepository().list_unsettled_rounds(db) == [("2026_06", 2026, 6)]
        sql = str(db.execute.call_args.args[0])
        assert "status = 'PENDING'" in sql
        assert "NOT EXISTS" in sql
