"""Odds engine — pure functions, no I/O.

Three prices:
  rank_odds        ordinal strength -> baseline price (parlay legs)
  pool_odds        pari-mutuel price from pending stakes, falls back to rank_odds
  head_to_head_odds logistic win probability of a pairing -> margin-adjusted prices

All return odds in hundredths, clamped to the market's bounds.
"""

import math
from dataclasses import dataclass

from src.wg_common.units import clamp, odds_from_float
from src.wg_odds.domain.constants import (
    FIELD_SIZE,
    H2H_HOUSE_EDGE_BPS,
    H2H_MAX_ODDS,
    H2H_MIN_ODDS,
    H2H_ODDS_DECIMALS,
    H2H_SENSITIVITY,
    PARLAY_HOUSE_EDGE_BPS,
    PARLAY_MAX_ODDS,
    PARLAY_MIN_ODDS,
    PARLAY_ODDS_DECIMALS,
    RANK_BASE_ODDS,
    RANK_GROWTH,
)


@dataclass(frozen=True)
class HeadToHeadOdds:
    odds_a: int
    odds_b: int

    def for_side(self, pick_is_a: bool) -> int:
        return self.odds_a if pick_is_a else self.odds_b


def normalize_rank(rank: int | None) -> int:
    """Missing or out-of-range ranks are clamped into [1, FIELD_SIZE]."""
    if rank is None:
        return FIELD_SIZE
    return clamp(int(rank), 1, FIELD_SIZE)


def rank_odds(
    rank: int | None,
    min_odds: int = PARLAY_MIN_ODDS,
    max_odds: int = PARLAY_MAX_ODDS,
    decimals: int = PARLAY_ODDS_DECIMALS,
) -> int:
    """Baseline price for a candidate of the given rank. Non-decreasing in rank."""
    r = normalize_rank(rank)
    raw = RANK_BASE_ODDS * (1 + RANK_GROWTH) ** (r - 1)
    return clamp(odds_from_float(raw, decimals), min_odds, max_odds)


def pool_odds(
    outcome_stake: int,
    total_stake: int,
    rank: int | None,
    house_edge_bps: int = PARLAY_HOUSE_EDGE_BPS,
) -> int:
    """Pari-mutuel price: payout pool / stake on this exact outcome.

    With no stake on the outcome the rank baseline is returned.
    """
    if outcome_stake <= 0 or total_stake <= 0:
        return rank_odds(rank)
    payout_pool = total_stake * (10_000 - house_edge_bps) / 10_000
    raw = payout_pool / outcome_stake
    return clamp(odds_from_float(raw, PARLAY_ODDS_DECIMALS), PARLAY_MIN_ODDS, PARLAY_MAX_ODDS)


def _win_probability(rank_self: int, rank_other: int) -> float:
    return 1.0 / (1.0 + math.exp(H2H_SENSITIVITY * (rank_self - rank_other)))


def head_to_head_odds(rank_a: int | None, rank_b: int | None) -> HeadToHeadOdds:
    """Prices for both sides of a pairing.

    Each side's probability is computed from its own perspective rather than
    as 1 - p(other), so head_to_head_odds(a, b).odds_a == head_to_head_odds(b, a).odds_b
    holds exactly, not just up to float error.
    """
    ra, rb = normalize_rank(rank_a), normalize_rank(rank_b)
    margin = 1 + H2H_HOUSE_EDGE_BPS / 10_000

    def price(prob: float) -> int:
        raw = 1.0 / (prob * margin)
        return clamp(odds_from_float(raw, H2H_ODDS_DECIMALS), H2H_MIN_ODDS, H2H_MAX_ODDS)

    return HeadToHeadOdds(
        odds_a=price(_win_probability(ra, rb)),
        odds_b=price(_win_probability(rb, ra)),
    )
