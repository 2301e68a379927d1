"""Settlement store Protocol."""

from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_settlement.domain.models import SettlementRecord
from src.wg_wager.domain.models import Wager


class SettlementRepositoryProtocol(Protocol):
    async def list_pending(self, db: AsyncSession, race_id: str) -> list[Wager]: ...

    async def apply_resolution(
        self,
        db: AsyncSession,
        wager_id: str,
        status: str,
        payout: int,
        detail: dict[str, Any],
    ) -> str | None:
        """Move a PENDING wager to its terminal status. Returns the owner, or
        None when the wager is gone or no longer PENDING."""
        ...

    async def count_pending(self, db: AsyncSession, race_id: str) -> int: ...

    async def tally(self, db: AsyncSession, race_id: str) -> dict[str, int]: ...

    async def insert_record(self, db: AsyncSession, record: SettlementRecord) -> bool: ...

    async def record_exists(self, db: AsyncSession, race_id: str) -> bool: ...

    async def list_completed_race_ids(self, db: AsyncSession) -> set[str]: ...

    async def list_unsettled_rounds(self, db: AsyncSession) -> list[tuple[str, int, int]]:
        """(race_id, season, round) of started races that still hold PENDING
        wagers and have no settlement record, oldest first."""
        ...
