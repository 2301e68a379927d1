"""RaceApplicationService — feed syncs and the live parlay odds board.

The syncs own their transaction (commit on success, rollback on failure).
live_odds is read-only.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_common.errors import RaceNotFoundError
from src.wg_common.units import odds_to_display, odds_to_float
from src.wg_odds.domain.odds import normalize_rank, pool_odds
from src.wg_race.application.schemas import LiveOddsResponse, OutcomeOdds
from src.wg_race.domain.models import Candidate
from src.wg_race.domain.repository import RaceRepositoryProtocol, ResultFeedProtocol
from src.wg_race.infrastructure.persistence import RaceRepository
from src.wg_wager.domain.constants import PARLAY_POSITIONS

logger = logging.getLogger("wg.race")


class RaceApplicationService:
    def __init__(self, repo: RaceRepositoryProtocol | None = None) -> None:
        self._repo: RaceRepositoryProtocol = repo or RaceRepository()

    async def sync_calendar(
        self, db: AsyncSession, feed: ResultFeedProtocol, season: int | str = "current"
    ) -> int:
        races = await feed.fetch_calendar(season)
        try:
            count = await self._repo.upsert_races(db, races)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Calendar sync: %d races upserted for season %s", count, season)
        return count

    async def sync_standings(
        self, db: AsyncSession, feed: ResultFeedProtocol, season: int | str = "current"
    ) -> int:
        standings = await feed.fetch_driver_standings(season)
        candidates = [
            Candidate(id=s.candidate_id, name=s.name, team=s.team, season_rank=s.rank)
            for s in standings
        ]
        try:
            count = await self._repo.upsert_candidates(db, candidates)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Standings sync: %d candidates upserted for season %s", count, season)
        return count

    async def live_odds(self, db: AsyncSession, race_id: str) -> LiveOddsResponse:
        """Pari-mutuel odds for every (position, candidate) outcome of a race."""
        race = await self._repo.get_race(db, race_id)
        if race is None:
            raise RaceNotFoundError(race_id)

        candidates = await self._repo.list_candidates(db)
        total, per_outcome = await self._repo.parlay_pool(db, race_id)

        outcomes: list[OutcomeOdds] = []
        for position in sorted(PARLAY_POSITIONS):
            for c in candidates:
                stake = per_outcome.get((position, c.id), 0)
                odds = pool_odds(stake, total, c.season_rank)
                outcomes.append(
                    OutcomeOdds(
                        position=position,
                        candidate_id=c.id,
                        name=c.name,
                        rank=normalize_rank(c.season_rank),
                        stake=stake,
                        odds=odds_to_float(odds),
                        odds_display=odds_to_display(odds),
                    )
                )
        return LiveOddsResponse(race_id=race_id, total_stake=total, outcomes=outcomes)
