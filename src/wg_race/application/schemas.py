"""Pydantic schemas for wg_race API."""

from pydantic import BaseModel


class OutcomeOdds(BaseModel):
    position: int
    candidate_id: str
    name: str
    rank: int
    stake: int
    odds: float
    odds_display: str


class LiveOddsResponse(BaseModel):
    race_id: str
    total_stake: int
    outcomes: list[OutcomeOdds]
