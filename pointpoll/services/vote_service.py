# pointpoll/services/vote_service.py
from typing import Dict, List, Mapping
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from pointpoll.core.exceptions import (
    AlreadyVotedError,
    EmptyAllocationError,
    InvalidAllocationError,
    InvalidChoiceError,
    NotFullyAllocatedError,
    PersistenceFailureError,
    PollNotFoundError,
)
from pointpoll.core.logger import logger
from pointpoll.models.ballot import Ballot
from pointpoll.models.choice import Choice
from pointpoll.models.poll import Poll
from pointpoll.models.vote import Vote
from pointpoll.services.allocation_service import BUDGET, FULL, CompletionPolicy
from pointpoll.services.notification_service import broadcaster

def has_voted(db: Session, poll_id: str, voter_id: str) -> bool:
    """Whether the voter already has a ballot for the poll"""
    return db.query(Ballot.id)\
        .filter(Ballot.poll_id == poll_id, Ballot.user_id == voter_id)\
        .first() is not None

def _check_finalized(allocation: Mapping[str, int], budget: int, policy: CompletionPolicy) -> None:
    """A finalized allocation: positive entries only, total within the completion policy"""
    if any(points <= 0 for points in allocation.values()):
        raise InvalidAllocationError("Only choices with positive points can be submitted")

    allocated = sum(allocation.values())
    if allocated == 0:
        raise EmptyAllocationError()
    if allocated > budget:
        raise InvalidAllocationError(f"Allocation exceeds the budget of {budget} points")
    if policy == FULL and allocated != budget:
        raise NotFullyAllocatedError(remaining=budget - allocated)

def submit_allocation(
    db: Session,
    poll_id: str,
    voter_id: str,
    allocation: Mapping[str, int],
    budget: int = BUDGET,
    policy: CompletionPolicy = FULL
) -> List[Vote]:
    """
    Persist a finalized allocation as the voter's vote set.

    A Ballot row plus one Vote row per choice, written in a single commit:
    either every row lands or none does. The ballot's unique (poll, voter)
    key is what keeps racing submissions from the same voter apart.
    """
    poll = db.query(Poll).filter(Poll.id == poll_id).first()
    if not poll:
        raise PollNotFoundError()

    choice_ids = {c.id for c in poll.choices}
    unknown = [choice_id for choice_id in allocation if choice_id not in choice_ids]
    if unknown:
        raise InvalidChoiceError(f"Choice {unknown[0]} does not belong to this poll")

    _check_finalized(allocation, budget, policy)

    if has_voted(db, poll_id, voter_id):
        logger.info(f"Duplicate vote rejected: poll={poll_id} voter={voter_id}")
        raise AlreadyVotedError()

    ballot = Ballot(poll_id=poll_id, user_id=voter_id)
    votes = [
        Vote(ballot=ballot, poll_id=poll_id, user_id=voter_id, choice_id=choice_id, points=points)
        for choice_id, points in allocation.items()
    ]

    try:
        db.add(ballot)
        db.add_all(votes)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        # another submission from this voter committed first
        if has_voted(db, poll_id, voter_id):
            logger.info(f"Duplicate vote rejected on commit: poll={poll_id} voter={voter_id}")
            raise AlreadyVotedError() from e
        logger.error(f"Vote rejected by the database: poll={poll_id} voter={voter_id} - {e}")
        raise PersistenceFailureError() from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Vote persistence failed: poll={poll_id} voter={voter_id} - {e}")
        raise PersistenceFailureError() from e

    logger.info(f"Vote recorded: poll={poll_id} voter={voter_id} choices={len(votes)}")
    broadcaster.publish(poll_id)

    return votes

def get_poll_votes(db: Session, poll_id: str) -> List[dict]:
    """Every {choice_id, points, user_id} row of a poll, unpaginated"""
    try:
        rows = db.query(Vote.choice_id, Vote.points, Vote.user_id)\
            .filter(Vote.poll_id == poll_id)\
            .all()
    except SQLAlchemyError as e:
        logger.error(f"Vote retrieval failed: poll={poll_id} - {e}")
        raise PersistenceFailureError("Could not load votes") from e

    return [
        {"choice_id": row.choice_id, "points": row.points, "user_id": row.user_id}
        for row in rows
    ]

def get_voter_allocations(db: Session, poll_id: str, voter_id: str) -> Dict:
    """The voter's own allocation for a poll, biggest first"""
    rows = db.query(Vote, Choice)\
        .join(Choice, Vote.choice_id == Choice.id)\
        .filter(Vote.poll_id == poll_id, Vote.user_id == voter_id)\
        .all()

    allocations = [
        {"choice_id": choice.id, "choice_text": choice.choice_text, "points": vote.points}
        for vote, choice in rows
    ]
    allocations.sort(key=lambda item: item["points"], reverse=True)

    return {
        "poll_id": poll_id,
        "allocations": allocations,
        "total_points": sum(item["points"] for item in allocations)
    }

def get_vote_history(db: Session, voter_id: str, limit: int | None = None) -> List[dict]:
    """Polls the voter has voted on, most recent first"""
    query = db.query(
            Poll.id,
            Poll.title,
            func.max(Vote.created_at).label("last_voted_at"),
            func.sum(Vote.points).label("total_points")
        )\
        .join(Vote, Vote.poll_id == Poll.id)\
        .filter(Vote.user_id == voter_id)\
        .group_by(Poll.id, Poll.title)\
        .order_by(func.max(Vote.created_at).desc(), Poll.title)

    if limit:
        query = query.limit(limit)

    return [
        {
            "id": row.id,
            "title": row.title,
            "last_voted_at": row.last_voted_at,
            "total_points": int(row.total_points or 0)
        }
        for row in query.all()
    ]
