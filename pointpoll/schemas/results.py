# pointpoll/schemas/results.py
from pydantic import BaseModel
from typing import List

from pointpoll.services.results_service import PollResults

class ChoiceResultResponse(BaseModel):
    """One ranked row of the results table"""
    rank: int
    id: str
    choice_text: str
    total_points: int
    vote_count: int
    average_points: float

class PollResultsResponse(BaseModel):
    """Aggregated poll results"""
    poll_id: str
    title: str
    total_voters: int
    grand_total: int
    consensus_score: int
    consensus_label: str
    choices: List[ChoiceResultResponse]

    @classmethod
    def build(cls, poll_id: str, title: str, results: PollResults) -> "PollResultsResponse":
        return cls(
            poll_id=poll_id,
            title=title,
            total_voters=results.total_voters,
            grand_total=results.grand_total,
            consensus_score=results.consensus_score,
            consensus_label=results.consensus_label,
            choices=[
                ChoiceResultResponse(
                    rank=c.rank,
                    id=c.id,
                    choice_text=c.choice_text,
                    total_points=c.total_points,
                    vote_count=c.vote_count,
                    average_points=round(c.average_points, 2)
                )
                for c in results.choices
            ]
        )
