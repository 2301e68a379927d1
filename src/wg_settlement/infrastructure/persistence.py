"""SettlementRepository — wager status transitions and the durable marker.

apply_resolution's ``AND status = 'PENDING'`` is what makes settlement
idempotent: a wager that was already settled (earlier pass, retried batch)
or cancelled returns no row and is skipped, so it can never be paid twice.
"""

import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_settlement.domain.models import SettlementRecord
from src.wg_wager.domain.models import Wager
from src.wg_wager.infrastructure.persistence import row_to_wager

_LIST_PENDING_SQL = text("""
    SELECT id, user_id, race_id, market_type, market, stake, odds, client_odds,
           potential_payout, status, payout, settlement, created_at, settled_at
    FROM wagers
    WHERE race_id = :race_id AND status = 'PENDING'
    ORDER BY id
""")

_APPLY_RESOLUTION_SQL = text("""
    UPDATE wagers
    SET status = :status,
        payout = :payout,
        settlement = CAST(:detail AS JSONB),
        settled_at = NOW()
    WHERE id = :id AND status = 'PENDING'
    RETURNING user_id
""")

_COUNT_PENDING_SQL = text("""
    SELECT COUNT(*) FROM wagers WHERE race_id = :race_id AND status = 'PENDING'
""")

_TALLY_SQL = text("""
    SELECT market_type, status, COUNT(*) AS n
    FROM wagers
    WHERE race_id = :race_id
    GROUP BY market_type, status
""")

_INSERT_RECORD_SQL = text("""
    INSERT INTO settlement_records
        (race_id, season, round, race_name,
         parlay_won, parlay_lost, parlay_void,
         h2h_won, h2h_lost, h2h_void)
    VALUES
        (:race_id, :season, :round, :race_name,
         :parlay_won, :parlay_lost, :parlay_void,
         :h2h_won, :h2h_lost, :h2h_void)
    ON CONFLICT (race_id) DO NOTHING
    RETURNING race_id
""")

_RECORD_EXISTS_SQL = text("SELECT 1 FROM settlement_records WHERE race_id = :race_id")

_LIST_COMPLETED_SQL = text("SELECT race_id FROM settlement_records")

_LIST_UNSETTLED_SQL = text("""
    SELECT r.id AS race_id, r.season, r.round
    FROM races r
    WHERE r.start_time <= NOW()
      AND EXISTS (
          SELECT 1 FROM wagers w WHERE w.race_id = r.id AND w.status = 'PENDING'
      )
      AND NOT EXISTS (
          SELECT 1 FROM settlement_records s WHERE s.race_id = r.id
      )
    ORDER BY r.season, r.round
""")

# counts key -> settlement_records column
_COUNT_COLUMNS = {
    "PARLAY_WON": "parlay_won",
    "PARLAY_LOST": "parlay_lost",
    "PARLAY_VOID": "parlay_void",
    "HEAD_TO_HEAD_WON": "h2h_won",
    "HEAD_TO_HEAD_LOST": "h2h_lost",
    "HEAD_TO_HEAD_VOID": "h2h_void",
}


class SettlementRepository:
    async def list_pending(self, db: AsyncSession, race_id: str) -> list[Wager]:
        rows = (await db.execute(_LIST_PENDING_SQL, {"race_id": race_id})).fetchall()
        return [row_to_wager(row) for row in rows]

    async def apply_resolution(
        self,
        db: AsyncSession,
        wager_id: str,
        status: str,
        payout: int,
        detail: dict[str, Any],
    ) -> str | None:
        row = (
            await db.execute(
                _APPLY_RESOLUTION_SQL,
                {"id": wager_id, "status": status, "payout": payout, "detail": json.dumps(detail)},
            )
        ).fetchone()
        return row.user_id if row else None

    async def count_pending(self, db: AsyncSession, race_id: str) -> int:
        return int((await db.execute(_COUNT_PENDING_SQL, {"race_id": race_id})).scalar_one())

    async def tally(self, db: AsyncSession, race_id: str) -> dict[str, int]:
        rows = (await db.execute(_TALLY_SQL, {"race_id": race_id})).fetchall()
        return {f"{r.market_type}_{r.status}": int(r.n) for r in rows}

    async def insert_record(self, db: AsyncSession, record: SettlementRecord) -> bool:
        params: dict[str, Any] = {
            "race_id": record.race_id,
            "season": record.season,
            "round": record.round,
            "race_name": record.race_name,
        }
        for key, column in _COUNT_COLUMNS.items():
            params[column] = record.counts.get(key, 0)
        row = (await db.execute(_INSERT_RECORD_SQL, params)).fetchone()
        return row is not None

    async def record_exists(self, db: AsyncSession, race_id: str) -> bool:
        row = (await db.execute(_RECORD_EXISTS_SQL, {"race_id": race_id})).fetchone()
        return row is not None

    async def list_completed_race_ids(self, db: AsyncSession) -> set[str]:
        rows = (await db.execute(_LIST_COMPLETED_SQL)).fetchall()
        return {row.race_id for row in rows}

    async def list_unsettled_rounds(self, db: AsyncSession) -> list[tuple[str, int, int]]:
        rows = (await db.execute(_LIST_UNSETTLED_SQL)).fetchall()
        return [(row.race_id, int(row.season), int(row.round)) for row in rows]
