"""RaceRepository — calendar, candidate standings and the parlay stake pool.

Races and candidates are written only by the feed sync jobs and read by the
wager and settlement paths. Upserts are idempotent, so a sync can be re-run
at any time.
"""

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_race.domain.models import Candidate, Race

_GET_RACE_SQL = text("""
    SELECT id, season, round, name, start_time
    FROM races
    WHERE id = :race_id
""")

_UPSERT_RACE_SQL = text("""
    INSERT INTO races (id, season, round, name, start_time)
    VALUES (:id, :season, :round, :name, :start_time)
    ON CONFLICT (id) DO UPDATE
    SET name = EXCLUDED.name,
        start_time = EXCLUDED.start_time,
        updated_at = NOW()
""")

_GET_CANDIDATES_SQL = text("""
    SELECT id, name, team, season_rank
    FROM candidates
    WHERE id IN :ids
""").bindparams(bindparam("ids", expanding=True))

_LIST_CANDIDATES_SQL = text("""
    SELECT id, name, team, season_rank
    FROM candidates
    ORDER BY season_rank NULLS LAST, id
""")

_UPSERT_CANDIDATE_SQL = text("""
    INSERT INTO candidates (id, name, team, season_rank)
    VALUES (:id, :name, :team, :season_rank)
    ON CONFLICT (id) DO UPDATE
    SET name = EXCLUDED.name,
        team = EXCLUDED.team,
        season_rank = EXCLUDED.season_rank,
        updated_at = NOW()
""")

# One row per (position, candidate) outcome across all pending parlay legs.
_PARLAY_POOL_SQL = text("""
    SELECT CAST(leg->>'position' AS INTEGER) AS position,
           leg->>'candidate_id' AS candidate_id,
           SUM(CAST(leg->>'stake' AS BIGINT)) AS stake
    FROM wagers w
    CROSS JOIN LATERAL jsonb_array_elements(w.market->'legs') AS leg
    WHERE w.race_id = :race_id
      AND w.market_type = 'PARLAY'
      AND w.status = 'PENDING'
    GROUP BY 1, 2
""")


def _row_to_race(row: object) -> Race:
    return Race(
        id=row.id,  # type: ignore[attr-defined]
        season=row.season,  # type: ignore[attr-defined]
        round=row.round,  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        start_time=row.start_time,  # type: ignore[attr-defined]
    )


def _row_to_candidate(row: object) -> Candidate:
    return Candidate(
        id=row.id,  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        team=row.team,  # type: ignore[attr-defined]
        season_rank=row.season_rank,  # type: ignore[attr-defined]
    )


class RaceRepository:
    async def get_race(self, db: AsyncSession, race_id: str) -> Race | None:
        row = (await db.execute(_GET_RACE_SQL, {"race_id": race_id})).fetchone()
        return _row_to_race(row) if row else None

    async def upsert_races(self, db: AsyncSession, races: list[Race]) -> int:
        for race in races:
            await db.execute(
                _UPSERT_RACE_SQL,
                {
                    "id": race.id,
                    "season": race.season,
                    "round": race.round,
                    "name": race.name,
                    "start_time": race.start_time,
                },
            )
        return len(races)

    async def get_candidates(
        self, db: AsyncSession, candidate_ids: list[str]
    ) -> dict[str, Candidate]:
        if not candidate_ids:
            return {}
        rows = (
            await db.execute(_GET_CANDIDATES_SQL, {"ids": list(set(candidate_ids))})
        ).fetchall()
        return {row.id: _row_to_candidate(row) for row in rows}

    async def list_candidates(self, db: AsyncSession) -> list[Candidate]:
        rows = (await db.execute(_LIST_CANDIDATES_SQL)).fetchall()
        return [_row_to_candidate(row) for row in rows]

    async def upsert_candidates(self, db: AsyncSession, candidates: list[Candidate]) -> int:
        for c in candidates:
            await db.execute(
                _UPSERT_CANDIDATE_SQL,
                {"id": c.id, "name": c.name, "team": c.team, "season_rank": c.season_rank},
            )
        return len(candidates)

    async def parlay_pool(
        self, db: AsyncSession, race_id: str
    ) -> tuple[int, dict[tuple[int, str], int]]:
        """Return (total pending parlay stake, stake per (position, candidate))."""
        rows = (await db.execute(_PARLAY_POOL_SQL, {"race_id": race_id})).fetchall()
        per_outcome = {(row.position, row.candidate_id): int(row.stake) for row in rows}
        return sum(per_outcome.values()), per_outcome
