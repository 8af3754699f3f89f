# pointpoll/services/results_service.py
"""
Poll results aggregation.

aggregate() is a pure function of a poll's choices and its vote rows: it
ranks choices by total points and measures agreement with a normalized
Herfindahl index. get_poll_results() only loads the rows and delegates.
"""
import math
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Sequence, Union

from sqlalchemy.orm import Session

from pointpoll.core.exceptions import PollNotFoundError
from pointpoll.models.choice import Choice
from pointpoll.models.poll import Poll
from pointpoll.services import vote_service

SINGLE_CHOICE_CONSENSUS = 100

# (threshold, label), checked top down
CONSENSUS_BANDS = (
    (80, "Very High Consensus"),
    (60, "High Consensus"),
    (40, "Moderate Consensus"),
    (20, "Low Consensus"),
)
LOWEST_CONSENSUS_LABEL = "Very Low Consensus"


@dataclass
class ChoiceResult:
    id: str
    choice_text: str
    total_points: int = 0
    vote_count: int = 0
    rank: int = 0

    @property
    def average_points(self) -> float:
        if self.vote_count == 0:
            return 0.0
        return self.total_points / self.vote_count


@dataclass
class PollResults:
    choices: List[ChoiceResult] = field(default_factory=list)
    total_voters: int = 0
    grand_total: int = 0
    consensus_score: int = 0

    @property
    def consensus_label(self) -> str:
        return consensus_label(self.consensus_score)


def consensus_label(score: int) -> str:
    """Informational band for a 0-100 consensus score"""
    for threshold, label in CONSENSUS_BANDS:
        if score >= threshold:
            return label
    return LOWEST_CONSENSUS_LABEL


def herfindahl_index(totals: Sequence[int]) -> float:
    """Sum of squared shares. 1.0 when one choice has everything, 1/n on an even split."""
    grand_total = sum(totals)
    if grand_total == 0:
        return 0.0
    return sum((t / grand_total) ** 2 for t in totals)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def consensus_score(totals: Sequence[int], single_choice_score: int = SINGLE_CHOICE_CONSENSUS) -> int:
    """
    Rescale the Herfindahl index from [1/n, 1] onto [0, 100].

    No points yet -> 0. With no choices there is nothing to agree on -> 0.
    With one choice 1 - 1/n is zero, so the score is single_choice_score.
    """
    n = len(totals)
    if n == 0 or sum(totals) == 0:
        return 0
    if n == 1:
        return single_choice_score

    h = herfindahl_index(totals)
    normalized = ((h - 1 / n) / (1 - 1 / n)) * 100
    return min(100, max(0, _round_half_up(normalized)))


def _field(row: Union[Mapping, object], name: str):
    if isinstance(row, Mapping):
        return row[name]
    return getattr(row, name)


def aggregate(
    choices: Iterable,
    votes: Iterable,
    single_choice_score: int = SINGLE_CHOICE_CONSENSUS
) -> PollResults:
    """
    Aggregate a poll's votes.

    ``choices`` are Choice rows or ``{"id", "choice_text"}`` mappings in
    creation order; ``votes`` are Vote rows or ``{"choice_id", "points",
    "user_id"}`` mappings. Choices are ranked by total points, descending;
    the sort is stable so ties keep creation order. Votes for a choice not
    in ``choices`` count towards total_voters only.
    """
    results = [
        ChoiceResult(id=_field(c, "id"), choice_text=_field(c, "choice_text"))
        for c in choices
    ]
    by_id = {r.id: r for r in results}

    voters = set()
    for vote in votes:
        voters.add(_field(vote, "user_id"))
        result = by_id.get(_field(vote, "choice_id"))
        if result is None:
            continue
        result.total_points += _field(vote, "points")
        result.vote_count += 1

    ranked = sorted(results, key=lambda r: r.total_points, reverse=True)
    for index, result in enumerate(ranked, start=1):
        result.rank = index

    totals = [r.total_points for r in ranked]

    return PollResults(
        choices=ranked,
        total_voters=len(voters),
        grand_total=sum(totals),
        consensus_score=consensus_score(totals, single_choice_score)
    )


def get_poll_results(db: Session, poll_id: str, single_choice_score: int = SINGLE_CHOICE_CONSENSUS) -> PollResults:
    """Load a poll's choices and every vote row, then aggregate"""
    poll = db.query(Poll).filter(Poll.id == poll_id).first()
    if not poll:
        raise PollNotFoundError()

    choices = db.query(Choice)\
        .filter(Choice.poll_id == poll_id)\
        .order_by(Choice.position)\
        .all()
    votes = vote_service.get_poll_votes(db, poll_id)

    return aggregate(choices, votes, single_choice_score)
