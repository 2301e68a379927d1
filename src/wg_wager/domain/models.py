"""Wager domain model — pure dataclasses, no SQLAlchemy dependency.

The ``market`` snapshot is stored as JSON. ParlayLeg and HeadToHeadMarket
are its typed views; ``from_dict`` raises KeyError/TypeError/ValueError on a
malformed snapshot, which settlement turns into a void.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any


@dataclass
class ParlayLeg:
    position: int  # predicted finishing position, 1-3
    candidate_id: str
    stake: int
    rank_at_bet: int
    odds: int  # server odds at placement, hundredths
    client_odds: float | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ParlayLeg":
        client = data.get("client_odds")
        return cls(
            position=int(data["position"]),
            candidate_id=str(data["candidate_id"]),
            stake=int(data["stake"]),
            rank_at_bet=int(data["rank_at_bet"]),
            odds=int(data["odds"]),
            client_odds=float(client) if client is not None else None,
        )


@dataclass
class HeadToHeadMarket:
    candidate_a: str
    candidate_b: str
    rank_a: int
    rank_b: int
    pick: str  # candidate id of the predicted winner

    @property
    def pick_is_a(self) -> bool:
        return self.pick == self.candidate_a

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HeadToHeadMarket":
        market = cls(
            candidate_a=str(data["candidate_a"]),
            candidate_b=str(data["candidate_b"]),
            rank_a=int(data["rank_a"]),
            rank_b=int(data["rank_b"]),
            pick=str(data["pick"]),
        )
        if market.pick not in (market.candidate_a, market.candidate_b):
            raise ValueError(f"pick {market.pick} is not part of the pairing")
        return market


@dataclass
class Wager:
    id: str
    user_id: str
    race_id: str
    market_type: str  # PARLAY / HEAD_TO_HEAD
    market: dict[str, Any]
    stake: int  # total stake, all legs
    potential_payout: int
    odds: int | None = None  # head-to-head server odds at placement
    client_odds: float | None = None  # head-to-head client hint
    status: str = "PENDING"
    payout: int = 0
    settlement: dict[str, Any] | None = None
    created_at: datetime | None = None
    settled_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == "PENDING"

    def parlay_legs(self) -> list[ParlayLeg]:
        return [ParlayLeg.from_dict(leg) for leg in self.market["legs"]]

    def head_to_head(self) -> HeadToHeadMarket:
        return HeadToHeadMarket.from_dict(self.market)


@dataclass
class LeaderboardEntry:
    """One user's record over decided (WON/LOST) wagers. VOID refunds do not count."""

    rank: int
    user_id: str
    total_bets: int
    won_bets: int
    total_staked: int
    total_won: int

    @property
    def net_profit(self) -> int:
        return self.total_won - self.total_staked

    @property
    def win_rate(self) -> int:
        """Whole percent of decided wagers won, rounded half up."""
        if self.total_bets == 0:
            return 0
        return (self.won_bets * 200 + self.total_bets) // (self.total_bets * 2)


def parlay_market(legs: list[ParlayLeg]) -> dict[str, Any]:
    return {"legs": [asdict(leg) for leg in legs]}


def head_to_head_market(market: HeadToHeadMarket) -> dict[str, Any]:
    return asdict(market)
