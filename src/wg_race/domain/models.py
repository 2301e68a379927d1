"""Race-side domain objects — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Race:
    id: str  # "{season}_{round:02d}"
    season: int
    round: int
    name: str
    start_time: datetime


@dataclass
class Candidate:
    id: str  # permanent car number as text
    name: str
    team: str | None = None
    season_rank: int | None = None


@dataclass
class CandidateResult:
    """One line of a race classification as reported by the feed."""

    candidate_id: str
    position: str | None  # raw text; may be missing or non-numeric
    status: str | None
    name: str | None = None


@dataclass
class RaceResult:
    season: int
    round: int
    name: str
    results: list[CandidateResult] = field(default_factory=list)

    @property
    def race_id(self) -> str:
        return build_race_id(self.season, self.round)


@dataclass
class StandingEntry:
    candidate_id: str
    rank: int
    name: str
    team: str | None = None


def build_race_id(season: int, round_: int) -> str:
    """>>> build_race_id(2026, 5)
    '2026_05'
    """
    return f"{season}_{round_:02d}"
