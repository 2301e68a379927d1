"""Pydantic schemas for wg_wager API.

Stake bounds and market shape are checked by domain rules so that failures
come back in the ApiResponse envelope with a wager error code.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


class ParlayLegIn(BaseModel):
    position: int
    candidate_id: str = Field(..., min_length=1, max_length=8)
    stake: int
    client_odds: float | None = Field(None, description="Odds shown to the user; advisory only")


class ParlayMarketIn(BaseModel):
    type: Literal["PARLAY"]
    legs: list[ParlayLegIn]


class HeadToHeadMarketIn(BaseModel):
    type: Literal["HEAD_TO_HEAD"]
    candidate_a: str = Field(..., min_length=1, max_length=8)
    candidate_b: str = Field(..., min_length=1, max_length=8)
    pick: str = Field(..., min_length=1, max_length=8)
    stake: int
    client_odds: float | None = Field(None, description="Odds shown to the user; advisory only")


class PlaceWagerRequest(BaseModel):
    race_id: str = Field(..., min_length=1, max_length=16)
    market: Annotated[ParlayMarketIn | HeadToHeadMarketIn, Field(discriminator="type")]


class PlaceWagerResponse(BaseModel):
    wager_id: str
    race_id: str
    market_type: str
    stake: int
    server_odds: list[float]  # one per parlay leg, or the head-to-head pick
    potential_payout: int
    balance: int
    status: str


class CancelWagerResponse(BaseModel):
    wager_id: str
    refund_amount: int
    balance: int


class WagerItem(BaseModel):
    id: str
    race_id: str
    market_type: str
    market: dict[str, Any]
    stake: int
    odds: float | None
    potential_payout: int
    status: str
    payout: int
    settlement: dict[str, Any] | None
    created_at: str | None
    settled_at: str | None


class WagerListResponse(BaseModel):
    items: list[WagerItem]


class LeaderboardEntryOut(BaseModel):
    rank: int
    user_id: str
    total_bets: int
    won_bets: int
    total_staked: int
    total_won: int
    net_profit: int
    win_rate: int  # whole percent


class LeaderboardResponse(BaseModel):
    sort: str
    items: list[LeaderboardEntryOut]
    me: LeaderboardEntryOut | None  # caller's own standing, even outside the top
