"""Ergast-compatible result feed client.

Read-only access to three documents:
- ``/{season}/{round}/results.json``   race classification
- ``/{season}/driverStandings.json``   championship order (candidate ranks)
- ``/{season}.json``                   calendar

Every call carries a timeout and a bounded retry count. Exhausted retries,
non-retryable HTTP errors and unparsable bodies all surface as
UpstreamUnavailableError; callers defer to their next cycle.
"""

import asyncio
import logging
from datetime import datetime, time
from typing import Any

import httpx

from config.settings import settings
from src.wg_common.datetime_utils import ensure_utc
from src.wg_common.errors import UpstreamUnavailableError
from src.wg_race.domain.models import (
    CandidateResult,
    Race,
    RaceResult,
    StandingEntry,
    build_race_id,
)

logger = logging.getLogger("wg.feed")

_RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


class ErgastResultFeed:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float = 1.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = (base_url or settings.RESULT_FEED_BASE_URL).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.RESULT_FEED_TIMEOUT_SECONDS
        self._max_retries = (
            max_retries if max_retries is not None else settings.RESULT_FEED_MAX_RETRIES
        )
        self._backoff_seconds = backoff_seconds
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _get_json(self, path: str) -> dict[str, Any]:
        url = f"{self._base_url}/{path}"
        last_error = "unknown"

        for attempt in range(self._max_retries + 1):
            try:
                client = await self._get_client()
                response = await client.get(url, timeout=self._timeout)
                if response.status_code in _RETRYABLE_STATUS:
                    last_error = f"HTTP {response.status_code}"
                elif response.status_code >= 400:
                    raise UpstreamUnavailableError(f"{url} returned HTTP {response.status_code}")
                else:
                    data = response.json()
                    if not isinstance(data, dict) or "MRData" not in data:
                        raise UpstreamUnavailableError(f"{url} returned an unexpected body")
                    return data["MRData"]
            except httpx.TimeoutException:
                last_error = "timeout"
            except httpx.TransportError as exc:
                last_error = f"transport error: {exc}"
            except ValueError:
                raise UpstreamUnavailableError(f"{url} returned invalid JSON") from None

            if attempt < self._max_retries:
                wait_time = self._backoff_seconds * 2**attempt
                logger.warning(
                    "Feed request %s failed (%s), retry %d/%d in %.1fs",
                    path, last_error, attempt + 1, self._max_retries, wait_time,
                )
                await asyncio.sleep(wait_time)

        logger.error("Feed request %s failed after %d attempts: %s",
                     path, self._max_retries + 1, last_error)
        raise UpstreamUnavailableError(f"{url}: {last_error}")

    async def fetch_race_result(
        self, season: int | str = "current", round_: int | str = "last"
    ) -> RaceResult | None:
        """Classification of one race, or None when no result is published yet."""
        data = await self._get_json(f"{season}/{round_}/results.json")
        races = data.get("RaceTable", {}).get("Races") or []
        if not races:
            return None
        race = races[0]
        results = [_parse_result(item) for item in race.get("Results") or []]
        if not results:
            return None
        try:
            season_no = int(race["season"])
            round_no = int(race["round"])
        except (KeyError, TypeError, ValueError):
            raise UpstreamUnavailableError(
                f"results for {season}/{round_} carry no usable season/round"
            ) from None
        return RaceResult(
            season=season_no,
            round=round_no,
            name=race.get("raceName", ""),
            results=results,
        )

    async def fetch_driver_standings(self, season: int | str = "current") -> list[StandingEntry]:
        data = await self._get_json(f"{season}/driverStandings.json")
        lists = data.get("StandingsTable", {}).get("StandingsLists") or []
        if not lists:
            return []
        entries: list[StandingEntry] = []
        for item in lists[0].get("DriverStandings") or []:
            driver = item.get("Driver") or {}
            candidate_id = _candidate_id(driver, None)
            if candidate_id is None:
                continue
            try:
                rank = int(item.get("position"))
            except (TypeError, ValueError):
                continue
            constructors = item.get("Constructors") or []
            entries.append(
                StandingEntry(
                    candidate_id=candidate_id,
                    rank=rank,
                    name=_driver_name(driver),
                    team=constructors[0].get("name") if constructors else None,
                )
            )
        return entries

    async def fetch_calendar(self, season: int | str = "current") -> list[Race]:
        data = await self._get_json(f"{season}.json")
        races: list[Race] = []
        for item in data.get("RaceTable", {}).get("Races") or []:
            try:
                season_no = int(item["season"])
                round_no = int(item["round"])
                start = _parse_start(item["date"], item.get("time"))
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed calendar entry: %s", item.get("raceName"))
                continue
            races.append(
                Race(
                    id=build_race_id(season_no, round_no),
                    season=season_no,
                    round=round_no,
                    name=item.get("raceName", ""),
                    start_time=start,
                )
            )
        return races


def _candidate_id(driver: dict[str, Any], fallback_number: str | None) -> str | None:
    number = driver.get("permanentNumber") or fallback_number
    return str(number) if number else None


def _driver_name(driver: dict[str, Any]) -> str:
    return f"{driver.get('givenName', '')} {driver.get('familyName', '')}".strip()


def _parse_result(item: dict[str, Any]) -> CandidateResult:
    driver = item.get("Driver") or {}
    return CandidateResult(
        candidate_id=_candidate_id(driver, item.get("number")) or "",
        position=item.get("position"),
        status=item.get("status"),
        name=_driver_name(driver) or None,
    )


def _parse_start(date_text: str, time_text: str | None) -> datetime:
    """'2026-03-08' + '04:00:00Z' -> aware UTC datetime. No time means midnight UTC."""
    day = datetime.fromisoformat(date_text).date()
    clock = time.fromisoformat(time_text.replace("Z", "+00:00")) if time_text else time(0, 0)
    return ensure_utc(datetime.combine(day, clock))


_feed: ErgastResultFeed | None = None


def get_result_feed() -> ErgastResultFeed:
    global _feed  # noqa: PLW0603
    if _feed is None:
        _feed = ErgastResultFeed()
    return _feed
