"""Automatic settlement as a Celery beat task.

Beat fires ``settle_races_task`` at the retry interval. A "next due"
timestamp in Redis stretches that to the normal interval after a clean
cycle. A cycle that fails, or leaves wagers pending, is due again at the
next beat. A Redis lock stops two workers running a cycle at once.

Every cycle:
  1. refresh the calendar and standings (failures logged, never fatal)
  2. load the completed-race cache from settlement_records
  3. settle the latest result, then every earlier started race that still
     holds PENDING wagers
  4. pick the next due time from the outcome
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

import redis.asyncio as aioredis

from config.settings import settings
from src.worker import celery_app
from src.wg_common.database import SessionFactory, task_session_factory
from src.wg_race.application.service import RaceApplicationService
from src.wg_race.domain.repository import ResultFeedProtocol
from src.wg_race.infrastructure.result_feed import ErgastResultFeed
from src.wg_settlement.application.engine import SettlementEngine

logger = logging.getLogger("wg.settlement")

NEXT_DUE_KEY = "wg:settlement:next_due"
MODE_KEY = "wg:settlement:mode"
LOCK_KEY = "wg:settlement:lock"


class SettlementCadence:
    """Redis-held schedule state shared by every worker."""

    def __init__(
        self,
        redis: aioredis.Redis,
        normal_interval: float | None = None,
        retry_interval: float | None = None,
        lock_ttl: int | None = None,
    ) -> None:
        self._redis = redis
        self._normal_interval = (
            normal_interval
            if normal_interval is not None
            else settings.SETTLEMENT_NORMAL_INTERVAL_SECONDS
        )
        self._retry_interval = (
            retry_interval
            if retry_interval is not None
            else settings.SETTLEMENT_RETRY_INTERVAL_SECONDS
        )
        self._lock_ttl = (
            lock_ttl if lock_ttl is not None else settings.SETTLEMENT_TASK_TIME_LIMIT_SECONDS
        )

    async def is_due(self, now: float) -> bool:
        raw = await self._redis.get(NEXT_DUE_KEY)
        return raw is None or now >= float(raw)

    async def acquire(self) -> bool:
        return bool(await self._redis.set(LOCK_KEY, "1", nx=True, ex=self._lock_ttl))

    async def release(self) -> None:
        await self._redis.delete(LOCK_KEY)

    async def schedule_next(self, now: float, clean: bool) -> float:
        """Store the next due time and return the interval chosen."""
        mode = "normal" if clean else "retry"
        interval = self._normal_interval if clean else self._retry_interval
        previous = await self._redis.get(MODE_KEY)
        if mode == "retry" and previous != "retry":
            logger.warning("Switching to retry interval (%.0fs)", interval)
        elif mode == "normal" and previous == "retry":
            logger.info("Clean cycle; back to normal interval (%.0fs)", interval)
        await self._redis.set(NEXT_DUE_KEY, now + interval)
        await self._redis.set(MODE_KEY, mode)
        return interval


async def run_settlement_cycle(
    engine: SettlementEngine,
    feed: ResultFeedProtocol,
    cadence: SettlementCadence,
    before_pass: Callable[[], Awaitable[None]] | None = None,
    clock: Callable[[], float] = time.time,
) -> dict[str, Any]:
    """One gated cycle. Exceptions are logged and turned into a retry schedule."""
    now = clock()
    if not await cadence.is_due(now):
        return {"status": "not_due"}
    if not await cadence.acquire():
        logger.info("Settlement cycle already running on another worker")
        return {"status": "locked"}

    try:
        if before_pass is not None:
            try:
                await before_pass()
            except Exception:
                logger.warning("Pre-cycle sync failed; settling with stored data", exc_info=True)

        try:
            if not engine.loaded:
                await engine.load_completed()
            reports = await engine.run_cycle(feed)
        except Exception:
            logger.exception("Settlement cycle failed")
            interval = await cadence.schedule_next(now, clean=False)
            return {"status": "failed", "next_in": interval}

        clean = all(report.clean for report in reports)
        interval = await cadence.schedule_next(now, clean=clean)
        return {
            "status": "clean" if clean else "incomplete",
            "races": {
                report.race_id or "latest": report.outcome.value for report in reports
            },
            "next_in": interval,
        }
    finally:
        await cadence.release()


async def sync_race_data(session_factory: SessionFactory, feed: ResultFeedProtocol) -> None:
    """Refresh calendar and standings from the feed. Failures are logged per step."""
    races = RaceApplicationService()
    async with session_factory() as db:
        try:
            await races.sync_calendar(db, feed)
        except Exception:
            logger.warning("Calendar sync failed", exc_info=True)
        try:
            await races.sync_standings(db, feed)
        except Exception:
            logger.warning("Standings sync failed", exc_info=True)


async def _settle_races() -> dict[str, Any]:
    redis_client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    feed = ErgastResultFeed()
    try:
        async with task_session_factory() as session_factory:
            return await run_settlement_cycle(
                SettlementEngine(session_factory=session_factory),
                feed,
                SettlementCadence(redis_client),
                before_pass=lambda: sync_race_data(session_factory, feed),
            )
    finally:
        await feed.aclose()
        await redis_client.aclose()


@celery_app.task(name="src.wg_settlement.application.tasks.settle_races_task")
def settle_races_task() -> dict[str, Any]:
    """Scheduled: every SETTLEMENT_RETRY_INTERVAL_SECONDS, gated by the next-due time."""
    if not settings.SETTLEMENT_ENABLED:
        logger.info("Automatic settlement disabled by configuration")
        return {"status": "disabled"}
    return asyncio.run(_settle_races())
