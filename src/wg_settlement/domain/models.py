"""Settlement records and pass reports."""

from dataclasses import dataclass, field
from datetime import datetime

from src.wg_common.enums import PassOutcome


@dataclass
class SettlementRecord:
    """Durable marker: every wager of the race has reached a terminal status."""

    race_id: str
    season: int
    round: int
    race_name: str
    counts: dict[str, int] = field(default_factory=dict)  # "PARLAY_WON" -> n, ...
    completed_at: datetime | None = None


@dataclass
class SettlementReport:
    race_id: str | None
    outcome: PassOutcome
    settled: int = 0
    voided: int = 0
    skipped: int = 0  # no longer PENDING when the batch reached them
    failed_batches: int = 0
    remaining: int = 0

    @property
    def clean(self) -> bool:
        return self.outcome != PassOutcome.INCOMPLETE
