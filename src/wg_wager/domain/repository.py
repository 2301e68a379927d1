"""Wager store Protocol."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_common.enums import LeaderboardSort
from src.wg_wager.domain.models import LeaderboardEntry, Wager


class WagerRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, wager: Wager) -> bool:
        """Persist a PENDING wager. False when it would duplicate a parlay."""
        ...

    async def get_for_update(self, db: AsyncSession, wager_id: str) -> Wager | None: ...

    async def delete(self, db: AsyncSession, wager_id: str) -> bool: ...

    async def list_by_user(
        self, db: AsyncSession, user_id: str, race_id: str | None, limit: int
    ) -> list[Wager]: ...

    async def leaderboard(
        self, db: AsyncSession, sort: LeaderboardSort, limit: int
    ) -> list[LeaderboardEntry]:
        """Top users by ``sort``, ties share a rank and are ordered by user id."""
        ...

    async def leaderboard_entry(
        self, db: AsyncSession, sort: LeaderboardSort, user_id: str
    ) -> LeaderboardEntry | None: ...
