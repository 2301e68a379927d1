"""Finish classification of a race result.

A candidate counts as finished only for an explicit finish status:
``Finished``, ``+N Lap`` / ``+N Laps`` or ``Lapped``. Retirements,
disqualifications, no-shows, a blank status or no result line at all are
did-not-finish.
"""

import re
from dataclasses import dataclass, field

from src.wg_common.enums import FinishClass
from src.wg_race.domain.models import RaceResult

_FINISHED_STATUS = re.compile(r"^(finished|\+\d+ laps?|lapped)$", re.IGNORECASE)


@dataclass(frozen=True)
class CandidateOutcome:
    candidate_id: str
    finish: FinishClass
    position: int | None = None

    @property
    def finished(self) -> bool:
        return self.finish == FinishClass.FINISHED


@dataclass
class RaceClassification:
    race_id: str
    outcomes: dict[str, CandidateOutcome] = field(default_factory=dict)

    def outcome_for(self, candidate_id: str) -> CandidateOutcome:
        return self.outcomes.get(
            candidate_id, CandidateOutcome(candidate_id, FinishClass.DID_NOT_FINISH)
        )


def classify_status(status: str | None) -> FinishClass:
    """
    >>> classify_status("+1 Lap")
    <FinishClass.FINISHED: 'FINISHED'>
    >>> classify_status("Retired")
    <FinishClass.DID_NOT_FINISH: 'DID_NOT_FINISH'>
    """
    if status and _FINISHED_STATUS.match(status.strip()):
        return FinishClass.FINISHED
    return FinishClass.DID_NOT_FINISH


def _parse_position(raw: str | None) -> int | None:
    if raw is None:
        return None
    text = str(raw).strip()
    if not text.isdigit() or int(text) < 1:
        return None
    return int(text)


def classify_results(result: RaceResult) -> RaceClassification:
    classification = RaceClassification(race_id=result.race_id)
    for line in result.results:
        if not line.candidate_id:
            continue
        finish = classify_status(line.status)
        position = _parse_position(line.position) if finish == FinishClass.FINISHED else None
        classification.outcomes[line.candidate_id] = CandidateOutcome(
            candidate_id=line.candidate_id, finish=finish, position=position
        )
    return classification
