# pointpoll/schemas/vote.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

from pointpoll.schemas.poll import ChoiceResponse

class BallotResponse(BaseModel):
    """Everything a client needs to start allocating"""
    poll_id: str
    title: str
    description: Optional[str] = None
    budget: int
    completion_policy: str
    choices: List[ChoiceResponse]
    has_voted: bool

class VoteSubmitRequest(BaseModel):
    """choice id -> points; zero entries are allowed and dropped"""
    allocations: dict[str, int] = Field(..., min_length=1)

class AllocationItem(BaseModel):
    choice_id: str
    choice_text: str
    points: int

class VoterAllocationResponse(BaseModel):
    """The current voter's allocation on a poll"""
    poll_id: str
    allocations: List[AllocationItem]
    total_points: int

class VoteHistoryItem(BaseModel):
    id: str
    title: str
    last_voted_at: Optional[datetime] = None
    total_points: int

class VoteHistoryResponse(BaseModel):
    items: List[VoteHistoryItem]
    total: int
