# pointpoll/api/routes/polls.py
from typing import List, Literal
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from pointpoll.database import get_db
from pointpoll.models.user import User
from pointpoll.models.poll import Poll
from pointpoll.schemas.poll import PollCreate, PollUpdate, PollResponse, PollListResponse, PollSummary
from pointpoll.api.deps import get_current_user
from pointpoll.core.logger import logger
from pointpoll.services import poll_service
from pointpoll.services.notification_service import broadcaster

router = APIRouter(prefix="/api/v1/polls", tags=["polls"])

def _check_owner(poll: Poll, user: User) -> None:
    if poll.user_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the poll owner can do this"
        )

@router.get("", response_model=PollListResponse)
def list_polls(
    q: str | None = None,
    filter: Literal["all", "voted", "not-voted"] = "all",
    sort: Literal["recent", "trending"] = "recent",
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Poll list with search, voted filter and sort"""
    items = poll_service.list_polls(db, current_user.id, query=q, vote_filter=filter, sort=sort)

    total = len(items)
    offset = (page - 1) * limit

    return PollListResponse(
        polls=[PollSummary(**item) for item in items[offset:offset + limit]],
        total=total,
        page=page,
        pages=(total + limit - 1) // limit
    )

@router.get("/mine", response_model=List[PollResponse])
def list_my_polls(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Polls created by the current user"""
    return poll_service.list_owner_polls(db, current_user.id)

@router.post("", response_model=PollResponse, status_code=status.HTTP_201_CREATED)
def create_poll(
    data: PollCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a poll"""
    poll = poll_service.create_poll(db, current_user, data.title, data.description, data.choices)
    logger.info(f"Poll created: {poll.id} by {current_user.id} ({len(poll.choices)} choices)")
    return poll

@router.get("/{poll_id}", response_model=PollResponse)
def get_poll(
    poll_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Poll detail"""
    return poll_service.get_poll(db, poll_id)

@router.patch("/{poll_id}", response_model=PollResponse)
def update_poll(
    poll_id: str,
    data: PollUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Edit a poll"""
    poll = poll_service.get_poll(db, poll_id)
    _check_owner(poll, current_user)

    poll = poll_service.update_poll(
        db,
        poll,
        title=data.title,
        description=data.description,
        choice_texts=data.choices
    )
    # choice text shows up in live results
    broadcaster.publish(poll_id)

    return poll

@router.delete("/{poll_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_poll(
    poll_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a poll"""
    poll = poll_service.get_poll(db, poll_id)
    _check_owner(poll, current_user)

    poll_service.delete_poll(db, poll)
    broadcaster.publish(poll_id)
    logger.info(f"Poll deleted: {poll_id} by {current_user.id}")

    return Response(status_code=status.HTTP_204_NO_CONTENT)
