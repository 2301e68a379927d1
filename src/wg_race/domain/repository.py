"""Repository and feed Protocols for the race module."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_race.domain.models import Candidate, Race, RaceResult, StandingEntry


class RaceRepositoryProtocol(Protocol):
    async def get_race(self, db: AsyncSession, race_id: str) -> Race | None: ...

    async def upsert_races(self, db: AsyncSession, races: list[Race]) -> int: ...

    async def get_candidates(
        self, db: AsyncSession, candidate_ids: list[str]
    ) -> dict[str, Candidate]: ...

    async def upsert_candidates(self, db: AsyncSession, candidates: list[Candidate]) -> int: ...

    async def list_candidates(self, db: AsyncSession) -> list[Candidate]: ...

    async def parlay_pool(
        self, db: AsyncSession, race_id: str
    ) -> tuple[int, dict[tuple[int, str], int]]: ...


class ResultFeedProtocol(Protocol):
    async def fetch_race_result(
        self, season: int | str = "current", round_: int | str = "last"
    ) -> RaceResult | None: ...

    async def fetch_driver_standings(
        self, season: int | str = "current"
    ) -> list[StandingEntry]: ...

    async def fetch_calendar(self, season: int | str = "current") -> list[Race]: ...
