"""Per-wager resolution — pure functions, no I/O.

Payouts are always recomputed from the rank snapshot stored on the wager;
the odds the client saw are copied into the audit detail and nothing else.
Anything that cannot be resolved safely raises DataIntegrityFallback, which
resolve() turns into a VOID with a full refund.
"""

from dataclasses import dataclass, field
from typing import Any

from src.wg_common.enums import LedgerEntryType, MarketType, WagerStatus
from src.wg_common.errors import DataIntegrityFallback
from src.wg_common.units import apply_odds, odds_to_float
from src.wg_odds.domain.constants import H2H_ODDS_MISMATCH_ALERT, PARLAY_ODDS_MISMATCH_ALERT
from src.wg_odds.domain.odds import head_to_head_odds, rank_odds
from src.wg_settlement.domain.classification import RaceClassification
from src.wg_wager.domain.models import Wager
from src.wg_wager.domain.rules import odds_mismatch


@dataclass
class Resolution:
    status: str  # WON / LOST / VOID
    credit: int  # winnings for WON, refund for VOID, 0 for LOST
    detail: dict[str, Any] = field(default_factory=dict)

    @property
    def entry_type(self) -> str | None:
        if self.credit <= 0:
            return None
        if self.status == WagerStatus.WON:
            return LedgerEntryType.SETTLEMENT_PAYOUT.value
        return LedgerEntryType.SETTLEMENT_VOID.value

    @property
    def odds_mismatch(self) -> bool:
        return bool(self.detail.get("odds_mismatch"))


def void(wager: Wager, reason: str) -> Resolution:
    return Resolution(WagerStatus.VOID.value, wager.stake, {"void_reason": reason})


def resolve_head_to_head(wager: Wager, classification: RaceClassification) -> Resolution:
    try:
        market = wager.head_to_head()
    except (KeyError, TypeError, ValueError) as exc:
        raise DataIntegrityFallback(f"malformed head-to-head snapshot: {exc}") from None

    a = classification.outcome_for(market.candidate_a)
    b = classification.outcome_for(market.candidate_b)

    if not a.finished and not b.finished:
        return void(wager, "both candidates did not finish")
    if not b.finished:
        winner = market.candidate_a
    elif not a.finished:
        winner = market.candidate_b
    else:
        if a.position is None or b.position is None:
            raise DataIntegrityFallback("finishing position missing")
        if a.position == b.position:
            raise DataIntegrityFallback(f"both candidates classified P{a.position}")
        winner = market.candidate_a if a.position < b.position else market.candidate_b

    odds = head_to_head_odds(market.rank_a, market.rank_b).for_side(market.pick_is_a)
    won = winner == market.pick
    detail = {
        "winner": winner,
        "server_odds": odds_to_float(odds),
        "client_odds": wager.client_odds,
        "odds_mismatch": odds_mismatch(wager.client_odds, odds, H2H_ODDS_MISMATCH_ALERT),
    }
    if won:
        return Resolution(WagerStatus.WON.value, apply_odds(wager.stake, odds), detail)
    return Resolution(WagerStatus.LOST.value, 0, detail)


def resolve_parlay(wager: Wager, classification: RaceClassification) -> Resolution:
    try:
        legs = wager.parlay_legs()
    except (KeyError, TypeError, ValueError) as exc:
        raise DataIntegrityFallback(f"malformed parlay snapshot: {exc}") from None
    if not legs:
        raise DataIntegrityFallback("parlay without legs")

    total = 0
    leg_details: list[dict[str, Any]] = []
    mismatch = False
    for leg in legs:
        outcome = classification.outcome_for(leg.candidate_id)
        won = outcome.finished and outcome.position == leg.position
        odds = rank_odds(leg.rank_at_bet)
        payout = apply_odds(leg.stake, odds) if won else 0
        total += payout
        mismatch = mismatch or odds_mismatch(leg.client_odds, odds, PARLAY_ODDS_MISMATCH_ALERT)
        leg_details.append(
            {
                "position": leg.position,
                "candidate_id": leg.candidate_id,
                "won": won,
                "server_odds": odds_to_float(odds),
                "client_odds": leg.client_odds,
                "payout": payout,
            }
        )

    any_won = any(d["won"] for d in leg_details)
    detail = {"legs": leg_details, "odds_mismatch": mismatch}
    return Resolution(
        WagerStatus.WON.value if any_won else WagerStatus.LOST.value, total, detail
    )


def resolve(wager: Wager, classification: RaceClassification) -> Resolution:
    try:
        if wager.market_type == MarketType.HEAD_TO_HEAD:
            return resolve_head_to_head(wager, classification)
        if wager.market_type == MarketType.PARLAY:
            return resolve_parlay(wager, classification)
        raise DataIntegrityFallback(f"unknown market type {wager.market_type}")
    except DataIntegrityFallback as exc:
        return void(wager, exc.reason)
