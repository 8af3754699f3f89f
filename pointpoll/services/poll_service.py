# pointpoll/services/poll_service.py
from typing import Dict, List
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from pointpoll.core.exceptions import InvalidChoiceError, PollNotFoundError
from pointpoll.models.choice import Choice
from pointpoll.models.poll import Poll
from pointpoll.models.user import User
from pointpoll.models.vote import Vote

def create_poll(
    db: Session,
    owner: User,
    title: str,
    description: str | None,
    choice_texts: List[str]
) -> Poll:
    """Create a poll and its choices in creation order"""
    poll = Poll(
        user_id=owner.id,
        title=title.strip(),
        description=(description or "").strip() or None
    )
    poll.choices = [
        Choice(choice_text=text.strip(), position=index)
        for index, text in enumerate(choice_texts)
    ]
    db.add(poll)
    db.commit()
    db.refresh(poll)

    return poll

def get_poll(db: Session, poll_id: str) -> Poll:
    poll = db.query(Poll)\
        .options(joinedload(Poll.choices), joinedload(Poll.owner))\
        .filter(Poll.id == poll_id)\
        .first()
    if not poll:
        raise PollNotFoundError()
    return poll

def update_poll(
    db: Session,
    poll: Poll,
    title: str | None = None,
    description: str | None = None,
    choice_texts: Dict[str, str] | None = None
) -> Poll:
    """Edit title, description and choice text. Choices are never added or removed here."""
    if title is not None:
        poll.title = title.strip()
    if description is not None:
        poll.description = description.strip() or None

    if choice_texts:
        choices_by_id = {c.id: c for c in poll.choices}
        for choice_id, text in choice_texts.items():
            choice = choices_by_id.get(choice_id)
            if choice is None:
                raise InvalidChoiceError(f"Choice {choice_id} does not belong to this poll")
            choice.choice_text = text.strip()

    db.commit()
    db.refresh(poll)

    return poll

def delete_poll(db: Session, poll: Poll) -> None:
    """Delete a poll; choices and votes go with it"""
    db.delete(poll)
    db.commit()

def get_vote_counts(db: Session, poll_ids: List[str]) -> Dict[str, int]:
    """Number of vote rows per poll"""
    if not poll_ids:
        return {}
    rows = db.query(Vote.poll_id, func.count(Vote.id))\
        .filter(Vote.poll_id.in_(poll_ids))\
        .group_by(Vote.poll_id)\
        .all()
    return {poll_id: count for poll_id, count in rows}

def get_voted_poll_ids(db: Session, voter_id: str) -> set:
    rows = db.query(Vote.poll_id)\
        .filter(Vote.user_id == voter_id)\
        .distinct()\
        .all()
    return {row[0] for row in rows}

def list_polls(
    db: Session,
    voter_id: str,
    query: str | None = None,
    vote_filter: str = "all",
    sort: str = "recent"
) -> List[dict]:
    """
    Poll listing with search, voted filter and sort.

    Search matches title, description or owner name. "trending" orders by
    vote row count; ties and "recent" order by creation time, newest first.
    """
    q = db.query(Poll)\
        .join(User, Poll.user_id == User.id)\
        .options(joinedload(Poll.owner))

    if query:
        pattern = f"%{query.strip().lower()}%"
        q = q.filter(or_(
            func.lower(Poll.title).like(pattern),
            func.lower(func.coalesce(Poll.description, "")).like(pattern),
            func.lower(func.coalesce(User.full_name, "")).like(pattern)
        ))

    polls = q.order_by(Poll.created_at.desc()).all()

    voted_ids = get_voted_poll_ids(db, voter_id)
    if vote_filter == "voted":
        polls = [p for p in polls if p.id in voted_ids]
    elif vote_filter == "not-voted":
        polls = [p for p in polls if p.id not in voted_ids]

    vote_counts = get_vote_counts(db, [p.id for p in polls])

    items = [
        {
            "id": poll.id,
            "title": poll.title,
            "description": poll.description,
            "user_id": poll.user_id,
            "owner_name": poll.owner.full_name if poll.owner else None,
            "created_at": poll.created_at,
            "vote_count": vote_counts.get(poll.id, 0),
            "has_voted": poll.id in voted_ids
        }
        for poll in polls
    ]

    if sort == "trending":
        items.sort(key=lambda item: item["vote_count"], reverse=True)

    return items

def list_owner_polls(db: Session, owner_id: str) -> List[Poll]:
    """The owner's polls, newest first"""
    return db.query(Poll)\
        .filter(Poll.user_id == owner_id)\
        .order_by(Poll.created_at.desc())\
        .all()
