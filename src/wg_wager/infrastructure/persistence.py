"""WagerRepository — raw SQL wager store.

At most one PARLAY wager per (user_id, race_id) is enforced by the partial
unique index ``uq_wagers_parlay_user_race``; insert() uses ON CONFLICT DO
NOTHING so a duplicate shows up as "no row returned" inside the caller's
transaction instead of an IntegrityError that poisons the session.
"""

import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_common.enums import LeaderboardSort
from src.wg_wager.domain.models import LeaderboardEntry, Wager

_SELECT_COLUMNS = """
    id, user_id, race_id, market_type, market, stake, odds, client_odds,
    potential_payout, status, payout, settlement, created_at, settled_at
"""

_INSERT_WAGER_SQL = text("""
    INSERT INTO wagers (id, user_id, race_id, market_type, market, stake,
        odds, client_odds, potential_payout, status)
    VALUES (:id, :user_id, :race_id, :market_type, CAST(:market AS JSONB), :stake,
        :odds, :client_odds, :potential_payout, 'PENDING')
    ON CONFLICT DO NOTHING
    RETURNING id, created_at
""")

_GET_FOR_UPDATE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM wagers WHERE id = :id
    FOR UPDATE
""")

_DELETE_PENDING_SQL = text("""
    DELETE FROM wagers WHERE id = :id AND status = 'PENDING'
    RETURNING id
""")

_LIST_BY_USER_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM wagers
    WHERE user_id = :user_id
      AND (CAST(:race_id AS TEXT) IS NULL OR race_id = CAST(:race_id AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")


# win_rate here must equal LeaderboardEntry.win_rate (whole percent, half up).
_LEADERBOARD_CTE = """
    WITH stats AS (
        SELECT user_id,
               COUNT(*) AS total_bets,
               COUNT(*) FILTER (WHERE status = 'WON') AS won_bets,
               SUM(stake) AS total_staked,
               COALESCE(SUM(payout) FILTER (WHERE status = 'WON'), 0) AS total_won
        FROM wagers
        WHERE status IN ('WON', 'LOST')
        GROUP BY user_id
    ),
    ranked AS (
        SELECT s.*,
               RANK() OVER (ORDER BY {metric} DESC) AS rank
        FROM (
            SELECT stats.*,
                   total_won - total_staked AS net_profit,
                   CAST(ROUND(won_bets * 100.0 / total_bets) AS INTEGER) AS win_rate
            FROM stats
        ) s
    )
"""

_LEADERBOARD_TOP_SQL = {
    sort: text(
        _LEADERBOARD_CTE.format(metric=sort.value)
        + "SELECT * FROM ranked ORDER BY rank, user_id LIMIT :limit"
    )
    for sort in LeaderboardSort
}

_LEADERBOARD_USER_SQL = {
    sort: text(
        _LEADERBOARD_CTE.format(metric=sort.value)
        + "SELECT * FROM ranked WHERE user_id = :user_id"
    )
    for sort in LeaderboardSort
}


def load_json(value: Any) -> dict[str, Any] | None:
    """JSONB may arrive decoded or as text depending on the driver codec."""
    if value is None or isinstance(value, dict):
        return value
    return json.loads(value)


def row_to_wager(row: Any) -> Wager:
    return Wager(
        id=row.id,
        user_id=row.user_id,
        race_id=row.race_id,
        market_type=row.market_type,
        market=load_json(row.market) or {},
        stake=row.stake,
        odds=row.odds,
        client_odds=float(row.client_odds) if row.client_odds is not None else None,
        potential_payout=row.potential_payout,
        status=row.status,
        payout=row.payout,
        settlement=load_json(row.settlement),
        created_at=row.created_at,
        settled_at=row.settled_at,
    )


class WagerRepository:
    async def insert(self, db: AsyncSession, wager: Wager) -> bool:
        result = await db.execute(
            _INSERT_WAGER_SQL,
            {
                "id": wager.id,
                "user_id": wager.user_id,
                "race_id": wager.race_id,
                "market_type": wager.market_type,
                "market": json.dumps(wager.market),
                "stake": wager.stake,
                "odds": wager.odds,
                "client_odds": wager.client_odds,
                "potential_payout": wager.potential_payout,
            },
        )
        row = result.fetchone()
        if row is None:
            return False
        wager.created_at = row.created_at
        return True

    async def get_for_update(self, db: AsyncSession, wager_id: str) -> Wager | None:
        row = (await db.execute(_GET_FOR_UPDATE_SQL, {"id": wager_id})).fetchone()
        return row_to_wager(row) if row else None

    async def delete(self, db: AsyncSession, wager_id: str) -> bool:
        row = (await db.execute(_DELETE_PENDING_SQL, {"id": wager_id})).fetchone()
        return row is not None

    async def list_by_user(
        self, db: AsyncSession, user_id: str, race_id: str | None, limit: int
    ) -> list[Wager]:
        rows = (
            await db.execute(
                _LIST_BY_USER_SQL, {"user_id": user_id, "race_id": race_id, "limit": limit}
            )
        ).fetchall()
        return [row_to_wager(row) for row in rows]

    async def leaderboard(
        self, db: AsyncSession, sort: LeaderboardSort, limit: int
    ) -> list[LeaderboardEntry]:
        rows = (await db.execute(_LEADERBOARD_TOP_SQL[sort], {"limit": limit})).fetchall()
        return [_row_to_entry(row) for row in rows]

    async def leaderboard_entry(
        self, db: AsyncSession, sort: LeaderboardSort, user_id: str
    ) -> LeaderboardEntry | None:
        row = (
            await db.execute(_LEADERBOARD_USER_SQL[sort], {"user_id": user_id})
        ).fetchone()
        return _row_to_entry(row) if row else None


def _row_to_entry(row: Any) -> LeaderboardEntry:
    return LeaderboardEntry(
        rank=int(row.rank),
        user_id=row.user_id,
        total_bets=int(row.total_bets),
        won_bets=int(row.won_bets),
        total_staked=int(row.total_staked),
        total_won=int(row.total_won),
    )
