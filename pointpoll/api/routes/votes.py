# pointpoll/api/routes/votes.py
import asyncio
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from starlette.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from pointpoll.database import get_db
from pointpoll.models.user import User
from pointpoll.models.poll import Poll
from pointpoll.schemas.vote import (
    BallotResponse,
    VoteSubmitRequest,
    VoterAllocationResponse,
    VoteHistoryResponse,
    VoteHistoryItem
)
from pointpoll.schemas.poll import ChoiceResponse
from pointpoll.schemas.results import PollResultsResponse
from pointpoll.api.deps import get_current_user
from pointpoll.config import settings
from pointpoll.core.exceptions import PollNotFoundError
from pointpoll.core.logger import logger
from pointpoll.services import allocation_service, poll_service, results_service, vote_service
from pointpoll.services.notification_service import broadcaster

router = APIRouter(prefix="/api/v1", tags=["votes"])

@router.get("/polls/{poll_id}/ballot", response_model=BallotResponse)
def get_ballot(
    poll_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Choices and budget to start allocating"""
    poll = poll_service.get_poll(db, poll_id)

    return BallotResponse(
        poll_id=poll.id,
        title=poll.title,
        description=poll.description,
        budget=settings.vote_budget,
        completion_policy=settings.completion_policy,
        choices=[ChoiceResponse.model_validate(c) for c in poll.choices],
        has_voted=vote_service.has_voted(db, poll.id, current_user.id)
    )

@router.post("/polls/{poll_id}/votes", response_model=VoterAllocationResponse, status_code=status.HTTP_201_CREATED)
def submit_vote(
    poll_id: str,
    data: VoteSubmitRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Submit a point allocation"""
    poll = poll_service.get_poll(db, poll_id)

    # replay the ballot through the engine, then finalize
    state = allocation_service.allocation_from_request(
        [c.id for c in poll.choices],
        data.allocations,
        settings.vote_budget
    )
    allocation = allocation_service.finalize(state, settings.completion_policy)

    vote_service.submit_allocation(
        db,
        poll.id,
        current_user.id,
        allocation,
        budget=settings.vote_budget,
        policy=settings.completion_policy
    )

    return vote_service.get_voter_allocations(db, poll.id, current_user.id)

@router.get("/polls/{poll_id}/votes/me", response_model=VoterAllocationResponse)
def get_my_allocations(
    poll_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """The current user's allocation on a poll"""
    poll_service.get_poll(db, poll_id)
    return vote_service.get_voter_allocations(db, poll_id, current_user.id)

@router.get("/polls/{poll_id}/results", response_model=PollResultsResponse)
def get_results(
    poll_id: str,
    db: Session = Depends(get_db)
):
    """Aggregated results (no auth)"""
    poll = poll_service.get_poll(db, poll_id)
    results = results_service.get_poll_results(db, poll.id, settings.single_choice_consensus)
    return PollResultsResponse.build(poll.id, poll.title, results)

@router.get("/votes/history", response_model=VoteHistoryResponse)
def get_vote_history(
    limit: int | None = Query(None, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Polls the current user has voted on"""
    items = vote_service.get_vote_history(db, current_user.id, limit)
    return VoteHistoryResponse(
        items=[VoteHistoryItem(**item) for item in items],
        total=len(items)
    )

def _results_payload(db: Session, poll_id: str) -> dict:
    poll = db.query(Poll).filter(Poll.id == poll_id).first()
    if not poll:
        raise PollNotFoundError()
    results = results_service.get_poll_results(db, poll_id, settings.single_choice_consensus)
    payload = PollResultsResponse.build(poll.id, poll.title, results).model_dump()
    # end the read transaction so the next read sees new votes
    db.rollback()
    return payload

@router.websocket("/polls/{poll_id}/results/ws")
async def results_socket(
    websocket: WebSocket,
    poll_id: str,
    db: Session = Depends(get_db)
):
    """Push fresh results whenever votes for the poll change"""
    await websocket.accept()

    try:
        payload = await run_in_threadpool(_results_payload, db, poll_id)
    except PollNotFoundError as e:
        await websocket.send_json({"event": "error", "detail": e.message})
        await websocket.close(code=4404)
        return

    queue = broadcaster.subscribe(poll_id)
    logger.debug(f"Results subscriber joined poll {poll_id}")

    try:
        await websocket.send_json({"event": "results", "results": payload})

        while True:
            receiver = asyncio.ensure_future(websocket.receive())
            waiter = asyncio.ensure_future(queue.get())
            done, pending = await asyncio.wait({receiver, waiter}, return_when=asyncio.FIRST_COMPLETED)
            for task in pending:
                task.cancel()

            if receiver in done and receiver.result()["type"] == "websocket.disconnect":
                break

            if waiter in done:
                # a burst of votes needs only one re-aggregation
                broadcaster.drain(queue)
                payload = await run_in_threadpool(_results_payload, db, poll_id)
                await websocket.send_json({"event": "results", "results": payload})

    except WebSocketDisconnect:
        logger.debug(f"Results subscriber disconnected from poll {poll_id}")
    except PollNotFoundError as e:
        # poll deleted while watching
        await websocket.send_json({"event": "error", "detail": e.message})
        await websocket.close(code=4404)
    finally:
        broadcaster.unsubscribe(poll_id, queue)
        logger.debug(f"Results subscriber left poll {poll_id}")
