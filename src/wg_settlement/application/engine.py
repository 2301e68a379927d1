"""SettlementEngine — resolves every pending wager of a race exactly once.

Pass structure for one race:
  1. gate: race already in settlement_records -> ALREADY_SETTLED
  2. fetch PENDING wagers, split into batches of SETTLEMENT_BATCH_SIZE
  3. each batch is its own transaction (wager UPDATE + ledger credit per
     wager), retried up to SETTLEMENT_BATCH_MAX_RETRIES times with a
     growing delay; a batch that keeps failing stays PENDING
  4. zero-pending check; only then INSERT the settlement record

The completed-race set in memory is a cache of settlement_records. It must
be loaded from the database before the first pass, and settle_race refuses
to run until it has been.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from config.settings import settings
from src.wg_account.domain.repository import AccountRepositoryProtocol
from src.wg_account.infrastructure.persistence import AccountRepository
from src.wg_common.database import SessionFactory, async_session_factory
from src.wg_common.enums import PassOutcome, WagerStatus
from src.wg_common.errors import SettlementStateUnavailableError
from src.wg_race.domain.models import RaceResult
from src.wg_race.domain.repository import ResultFeedProtocol
from src.wg_settlement.domain.classification import RaceClassification, classify_results
from src.wg_settlement.domain.models import SettlementRecord, SettlementReport
from src.wg_settlement.domain.repository import SettlementRepositoryProtocol
from src.wg_settlement.domain.resolution import resolve
from src.wg_settlement.infrastructure.persistence import SettlementRepository
from src.wg_wager.domain.models import Wager

logger = logging.getLogger("wg.settlement")


class SettlementEngine:
    def __init__(
        self,
        session_factory: SessionFactory = async_session_factory,
        repo: SettlementRepositoryProtocol | None = None,
        account_repo: AccountRepositoryProtocol | None = None,
        batch_size: int | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._session_factory = session_factory
        self._repo: SettlementRepositoryProtocol = repo or SettlementRepository()
        self._accounts: AccountRepositoryProtocol = account_repo or AccountRepository()
        self._batch_size = batch_size or settings.SETTLEMENT_BATCH_SIZE
        self._max_retries = (
            max_retries if max_retries is not None else settings.SETTLEMENT_BATCH_MAX_RETRIES
        )
        self._retry_delay = (
            retry_delay if retry_delay is not None else settings.SETTLEMENT_RETRY_DELAY_SECONDS
        )
        self._sleep = sleep
        self._completed: set[str] = set()
        self._loaded = False
        self._lock = asyncio.Lock()

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def load_completed(self) -> int:
        """Reload the completed-race cache. Errors propagate; the cache stays unloaded."""
        async with self._session_factory() as db:
            completed = await self._repo.list_completed_race_ids(db)
        self._completed = set(completed)
        self._loaded = True
        logger.info("Loaded %d completed settlements", len(self._completed))
        return len(self._completed)

    async def is_settled(self, race_id: str) -> bool:
        if not self._loaded:
            raise SettlementStateUnavailableError()
        if race_id in self._completed:
            return True
        async with self._session_factory() as db:
            exists = await self._repo.record_exists(db, race_id)
        if exists:
            self._completed.add(race_id)
        return exists

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def run_once(self, feed: ResultFeedProtocol) -> SettlementReport:
        """Check the latest published result and settle it if needed."""
        result = await feed.fetch_race_result("current", "last")
        if result is None:
            logger.info("No race result published yet")
            return SettlementReport(race_id=None, outcome=PassOutcome.NO_RESULTS)
        return await self.settle_race(result)

    async def run_cycle(self, feed: ResultFeedProtocol) -> list[SettlementReport]:
        """Latest result first, then every earlier started race left unsettled.

        A race that fails is reported INCOMPLETE and the cycle moves on, so
        one bad round never blocks the others.
        """
        reports = [await self._guarded(race_id=None, call=self.run_once(feed))]
        done = {r.race_id for r in reports if r.race_id is not None}

        async with self._session_factory() as db:
            unsettled = await self._repo.list_unsettled_rounds(db)
        for race_id, season, round_ in unsettled:
            if race_id in done:
                continue
            logger.info("Retrying unsettled race %s", race_id)
            reports.append(
                await self._guarded(race_id, self.settle_round(feed, season, round_))
            )
        return reports

    async def _guarded(
        self, race_id: str | None, call: Awaitable[SettlementReport]
    ) -> SettlementReport:
        try:
            return await call
        except SettlementStateUnavailableError:
            raise
        except Exception:
            logger.exception("Settlement of %s failed", race_id or "latest result")
            return SettlementReport(race_id=race_id, outcome=PassOutcome.INCOMPLETE)

    async def settle_round(
        self, feed: ResultFeedProtocol, season: int, round_: int
    ) -> SettlementReport:
        result = await feed.fetch_race_result(season, round_)
        if result is None:
            logger.info("No result for %d round %d", season, round_)
            return SettlementReport(race_id=None, outcome=PassOutcome.NO_RESULTS)
        return await self.settle_race(result)

    async def settle_race(self, result: RaceResult) -> SettlementReport:
        if not self._loaded:
            raise SettlementStateUnavailableError()
        # One pass at a time per process; the SQL guards cover other processes.
        async with self._lock:
            return await self._settle_race(result)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _settle_race(self, result: RaceResult) -> SettlementReport:
        race_id = result.race_id
        if await self.is_settled(race_id):
            logger.info("Race %s already settled, skipping", race_id)
            return SettlementReport(race_id=race_id, outcome=PassOutcome.ALREADY_SETTLED)

        classification = classify_results(result)
        async with self._session_factory() as db:
            pending = await self._repo.list_pending(db, race_id)
        logger.info("Settling %s (%s): %d pending wagers", race_id, result.name, len(pending))

        report = SettlementReport(race_id=race_id, outcome=PassOutcome.INCOMPLETE)
        for start in range(0, len(pending), self._batch_size):
            batch = pending[start : start + self._batch_size]
            batch_no = start // self._batch_size + 1
            if not await self._apply_batch_with_retry(batch, batch_no, classification, report):
                report.failed_batches += 1

        async with self._session_factory() as db:
            try:
                report.remaining = await self._repo.count_pending(db, race_id)
                if report.remaining:
                    await db.rollback()
                    logger.warning(
                        "Race %s left %d wagers pending (%d failed batches); will retry",
                        race_id, report.remaining, report.failed_batches,
                    )
                    return report
                counts = await self._repo.tally(db, race_id)
                record = SettlementRecord(
                    race_id=race_id,
                    season=result.season,
                    round=result.round,
                    race_name=result.name,
                    counts=counts,
                )
                inserted = await self._repo.insert_record(db, record)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        self._completed.add(race_id)
        report.outcome = PassOutcome.COMPLETE
        if inserted:
            logger.info(
                "Race %s settled: %d wagers resolved (%d void, %d skipped), counts=%s",
                race_id, report.settled, report.voided, report.skipped, counts,
            )
        else:
            logger.info("Race %s settlement record already written elsewhere", race_id)
        return report

    async def _apply_batch_with_retry(
        self,
        batch: list[Wager],
        batch_no: int,
        classification: RaceClassification,
        report: SettlementReport,
    ) -> bool:
        for attempt in range(1, self._max_retries + 1):
            try:
                settled, voided, skipped = await self._apply_batch(batch, classification)
            except Exception:
                logger.exception(
                    "Race %s batch %d attempt %d/%d failed",
                    classification.race_id, batch_no, attempt, self._max_retries,
                )
                if attempt < self._max_retries:
                    await self._sleep(self._retry_delay * attempt)
                continue
            report.settled += settled
            report.voided += voided
            report.skipped += skipped
            return True
        logger.error(
            "Race %s batch %d left pending after %d attempts (%d wagers)",
            classification.race_id, batch_no, self._max_retries, len(batch),
        )
        return False

    async def _apply_batch(
        self, batch: list[Wager], classification: RaceClassification
    ) -> tuple[int, int, int]:
        settled = voided = skipped = 0
        async with self._session_factory() as db:
            try:
                for wager in batch:
                    resolution = resolve(wager, classification)
                    owner = await self._repo.apply_resolution(
                        db, wager.id, resolution.status, resolution.credit, resolution.detail
                    )
                    if owner is None:
                        skipped += 1
                        continue
                    entry_type = resolution.entry_type
                    if entry_type is not None:
                        await self._accounts.credit(
                            db,
                            owner,
                            resolution.credit,
                            entry_type,
                            "WAGER",
                            wager.id,
                            f"{wager.market_type} {resolution.status.lower()} on {wager.race_id}",
                        )
                    settled += 1
                    if resolution.status == WagerStatus.VOID:
                        voided += 1
                        logger.warning(
                            "Wager %s voided: %s",
                            wager.id, resolution.detail.get("void_reason"),
                        )
                    if resolution.odds_mismatch:
                        logger.warning(
                            "Wager %s by %s was placed with client odds far from server odds",
                            wager.id, owner,
                        )
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        return settled, voided, skipped


_engine: SettlementEngine | None = None


def get_settlement_engine() -> SettlementEngine:
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = SettlementEngine()
    return _engine
