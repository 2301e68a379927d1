"""Admin application service — manual settlement triggers, grants, reconciliation."""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_account.application.schemas import GrantResponse, ReconcileResponse
from src.wg_account.application.service import AccountApplicationService
from src.wg_race.domain.repository import ResultFeedProtocol
from src.wg_race.infrastructure.result_feed import get_result_feed
from src.wg_settlement.application.engine import SettlementEngine, get_settlement_engine
from src.wg_settlement.domain.models import SettlementReport


def report_to_dict(report: SettlementReport) -> dict[str, Any]:
    return {
        "race_id": report.race_id,
        "outcome": report.outcome.value,
        "settled": report.settled,
        "voided": report.voided,
        "skipped": report.skipped,
        "failed_batches": report.failed_batches,
        "remaining": report.remaining,
    }


class AdminService:
    def __init__(
        self,
        engine: SettlementEngine | None = None,
        feed: ResultFeedProtocol | None = None,
        accounts: AccountApplicationService | None = None,
    ) -> None:
        self._engine = engine
        self._feed = feed
        self._accounts = accounts or AccountApplicationService()

    @property
    def engine(self) -> SettlementEngine:
        return self._engine or get_settlement_engine()

    @property
    def feed(self) -> ResultFeedProtocol:
        return self._feed or get_result_feed()

    async def run_settlement(self) -> dict[str, Any]:
        """Out-of-band re-check of the latest published result."""
        report = await self.engine.run_once(self.feed)
        return report_to_dict(report)

    async def settle_round(self, season: int, round_: int) -> dict[str, Any]:
        report = await self.engine.settle_round(self.feed, season, round_)
        return report_to_dict(report)

    async def grant(
        self, db: AsyncSession, user_id: str, amount: int, reason: str
    ) -> GrantResponse:
        return await self._accounts.grant(db, user_id, amount, reason)

    async def reconcile(self, db: AsyncSession) -> ReconcileResponse:
        return await self._accounts.reconcile(db)
