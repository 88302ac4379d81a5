"""Vote routes for themes and recommendations."""
from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse

from card_recommender.database.engine import get_db
from card_recommender.engine import service
from card_recommender.engine.errors import (
    DuplicateVoteError,
    InvalidVoteError,
    VoteTargetNotFoundError,
)
from card_recommender.web.schemas import VoteRequest, VoteResponse, VoteStateResponse

router = APIRouter()


@router.post("/api/votes", response_model=VoteResponse)
def cast_vote(request: VoteRequest):
    """Record an up/down vote; a repeat vote is rejected with 409."""
    with get_db() as db:
        try:
            result = service.vote(
                db, request.user_id, request.target_type, request.target_id, request.direction
            )
        except InvalidVoteError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        except VoteTargetNotFoundError:
            raise HTTPException(status_code=404, detail="Vote target not found")
        except DuplicateVoteError as exc:
            return JSONResponse(
                status_code=409,
                content={
                    "detail": "You have already voted on this item",
                    "confidence": exc.current_confidence,
                },
            )

        return VoteResponse(
            target_type=result.target_type,
            target_id=result.target_id,
            direction=result.direction,
            confidence=result.confidence,
            upvotes=result.upvotes,
            downvotes=result.downvotes,
        )


@router.get("/api/votes/state", response_model=VoteStateResponse)
def get_vote_state(
    user_id: str = Query(...),
    target_type: str = Query(...),
    target_id: int = Query(...),
) -> VoteStateResponse:
    """Return the user's existing vote on a target, if any."""
    with get_db() as db:
        try:
            direction = service.vote_state(db, user_id, target_type, target_id)
        except InvalidVoteError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return VoteStateResponse(
            user_id=user_id,
            target_type=target_type,
            target_id=target_id,
            direction=direction,
        )
