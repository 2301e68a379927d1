"""Placement and cancellation checks.

Each check raises the matching AppError subclass or returns None. They run
before anything touches the ledger, except check_cancel_allowed which runs
against the row-locked wager inside the cancel transaction.
"""

import math
from datetime import datetime

from src.wg_common.datetime_utils import ensure_utc
from src.wg_common.errors import (
    AlreadySettledError,
    BettingClosedError,
    CancelWindowExpiredError,
    StakeLimitExceededError,
    WagerValidationError,
)
from src.wg_common.units import odds_to_display, odds_to_float
from src.wg_race.domain.models import Race
from src.wg_wager.domain.constants import (
    BETTING_CUTOFF,
    CANCEL_WINDOW,
    HEAVY_FAVORITE_MAX_STAKE,
    HEAVY_FAVORITE_ODDS,
    MAX_CLIENT_ODDS,
    MAX_PARLAY_LEGS,
    MAX_PARLAY_TOTAL,
    MAX_STAKE,
    MIN_STAKE,
    PARLAY_POSITIONS,
)
from src.wg_wager.domain.models import Wager


def check_betting_open(race: Race, now: datetime) -> None:
    if ensure_utc(now) >= ensure_utc(race.start_time) - BETTING_CUTOFF:
        raise BettingClosedError(race.id)


def check_stake(stake: int) -> None:
    """Raise WagerValidationError if stake is not in [MIN_STAKE, MAX_STAKE]."""
    if not (MIN_STAKE <= stake <= MAX_STAKE):
        raise WagerValidationError(f"stake {stake} must be in [{MIN_STAKE}, {MAX_STAKE}]")


def check_parlay_legs(legs: list[tuple[int, str, int]]) -> None:
    """legs: (position, candidate_id, stake) per leg."""
    if not (1 <= len(legs) <= MAX_PARLAY_LEGS):
        raise WagerValidationError(f"a parlay needs 1 to {MAX_PARLAY_LEGS} legs")

    positions = [p for p, _, _ in legs]
    candidates = [c for _, c, _ in legs]
    for position in positions:
        if position not in PARLAY_POSITIONS:
            raise WagerValidationError(f"position {position} is not a podium position")
    if len(set(positions)) != len(positions):
        raise WagerValidationError("each podium position may be picked once")
    if len(set(candidates)) != len(candidates):
        raise WagerValidationError("a candidate cannot fill two podium positions")

    for _, _, stake in legs:
        check_stake(stake)
    total = sum(stake for _, _, stake in legs)
    if total > MAX_PARLAY_TOTAL:
        raise WagerValidationError(f"total stake {total} exceeds {MAX_PARLAY_TOTAL}")


def check_head_to_head_pair(candidate_a: str, candidate_b: str, pick: str) -> None:
    if candidate_a == candidate_b:
        raise WagerValidationError("a head-to-head needs two different candidates")
    if pick not in (candidate_a, candidate_b):
        raise WagerValidationError(f"pick {pick} is not part of the pairing")


def check_heavy_favorite(odds: int, stake: int) -> None:
    if odds < HEAVY_FAVORITE_ODDS and stake > HEAVY_FAVORITE_MAX_STAKE:
        raise StakeLimitExceededError(odds_to_display(odds), HEAVY_FAVORITE_MAX_STAKE)


def check_cancel_allowed(wager: Wager, race: Race, now: datetime) -> None:
    if not wager.is_pending:
        raise AlreadySettledError(wager.id, wager.status)
    now = ensure_utc(now)
    if wager.created_at is not None and now - ensure_utc(wager.created_at) >= CANCEL_WINDOW:
        raise CancelWindowExpiredError(wager.id, int(CANCEL_WINDOW.total_seconds() // 60))
    if now >= ensure_utc(race.start_time):
        raise BettingClosedError(race.id)


def odds_mismatch(client_odds: float | None, server_odds: int, threshold: int) -> bool:
    """True when a client hint differs from the server price by more than threshold/100."""
    if client_odds is None:
        return False
    return abs(client_odds - odds_to_float(server_odds)) * 100 > threshold


def check_client_odds(client_odds: float | None) -> None:
    """A hint is optional, but when sent it must be finite decimal odds in (0, MAX_CLIENT_ODDS]."""
    if client_odds is None:
        return
    if not math.isfinite(client_odds) or not (0 < client_odds <= MAX_CLIENT_ODDS):
        raise WagerValidationError(
            f"client_odds {client_odds!r} must be a number in (0, {MAX_CLIENT_ODDS:g}]"
        )
