"""Up/down votes on theme assignments and recommendations."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Union

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from card_recommender.database.models import CardRecommendation, CardTheme, UserVote
from card_recommender.engine.errors import (
    DuplicateVoteError,
    InvalidVoteError,
    VoteTargetNotFoundError,
)
from card_recommender.engine.observability import log_event

logger = logging.getLogger(__name__)

VOTE_DIRECTIONS = ("up", "down")
MIN_ADJUSTED = 10
MAX_ADJUSTED = 100

VoteTarget = Union[CardTheme, CardRecommendation]


@dataclass(frozen=True)
class _TargetSpec:
    model: type
    base_field: str
    value_field: str


TARGETS = {
    "theme": _TargetSpec(CardTheme, "base_confidence", "confidence"),
    "recommendation": _TargetSpec(CardRecommendation, "base_score", "score"),
}


@dataclass(frozen=True)
class VoteResult:
    target_type: str
    target_id: int
    direction: str
    confidence: int
    upvotes: int
    downvotes: int


def adjusted_confidence(base: int, upvotes: int, downvotes: int) -> int:
    """Scale ``base`` by 0.7-1.3 depending on the share of upvotes.

    An even split leaves the base unchanged. The result stays within 10-100.
    """
    total = upvotes + downvotes
    if total <= 0:
        return base
    ratio = upvotes / total
    value = math.floor(base * (0.7 + 0.6 * ratio) + 0.5)
    return max(MIN_ADJUSTED, min(MAX_ADJUSTED, value))


def _target_spec(target_type: str) -> _TargetSpec:
    spec = TARGETS.get(target_type)
    if spec is None:
        raise InvalidVoteError(f"Unknown vote target type: {target_type}")
    return spec


def _load_target(session: Session, target_type: str, target_id: int) -> VoteTarget:
    spec = _target_spec(target_type)
    target = session.get(spec.model, target_id)
    if target is None:
        raise VoteTargetNotFoundError(target_type, target_id)
    return target


def vote_state(session: Session, user_id: str, target_type: str, target_id: int) -> Optional[str]:
    """Direction of the user's existing vote on a target, or None."""
    _target_spec(target_type)
    existing = (
        session.query(UserVote)
        .filter(
            UserVote.user_id == user_id,
            UserVote.target_type == target_type,
            UserVote.target_id == target_id,
        )
        .first()
    )
    return existing.direction if existing else None


def record_vote(
    session: Session,
    user_id: str,
    target_type: str,
    target_id: int,
    direction: str,
) -> VoteResult:
    """Record one vote and recompute the target's confidence.

    A second vote by the same user on the same target raises
    ``DuplicateVoteError`` and changes nothing. The unique constraint on
    ``user_votes`` backs the pre-check when two requests race.
    """
    direction = (direction or "").lower()
    if direction not in VOTE_DIRECTIONS:
        raise InvalidVoteError(f"Vote direction must be 'up' or 'down', got {direction!r}")
    if not user_id:
        raise InvalidVoteError("A user id is required to vote")

    spec = _target_spec(target_type)
    target = _load_target(session, target_type, target_id)

    if vote_state(session, user_id, target_type, target_id) is not None:
        raise DuplicateVoteError(
            user_id, target_type, target_id, current_confidence=getattr(target, spec.value_field)
        )

    try:
        with session.begin_nested():
            session.add(
                UserVote(
                    user_id=user_id,
                    target_type=target_type,
                    target_id=target_id,
                    direction=direction,
                )
            )
    except IntegrityError:
        session.refresh(target)
        raise DuplicateVoteError(
            user_id, target_type, target_id, current_confidence=getattr(target, spec.value_field)
        )

    model = spec.model
    counter = model.upvotes if direction == "up" else model.downvotes
    session.execute(
        update(model)
        .where(model.id == target_id)
        .values({counter.key: counter + 1, model.vote_count.key: model.vote_count + 1})
    )
    session.refresh(target)

    new_value = adjusted_confidence(
        getattr(target, spec.base_field), target.upvotes, target.downvotes
    )
    setattr(target, spec.value_field, new_value)
    session.flush()

    log_event(
        "vote_recorded",
        {
            "target_type": target_type,
            "target_id": target_id,
            "direction": direction,
            "confidence": new_value,
            "upvotes": target.upvotes,
            "downvotes": target.downvotes,
        },
    )
    return VoteResult(
        target_type=target_type,
        target_id=target_id,
        direction=direction,
        confidence=new_value,
        upvotes=target.upvotes,
        downvotes=target.downvotes,
    )


def delete_votes_for(session: Session, target_type: str, target_ids: list[int]) -> int:
    if not target_ids:
        return 0
    removed = (
        session.query(UserVote)
        .filter(UserVote.target_type == target_type, UserVote.target_id.in_(target_ids))
        .delete()
    )
    logger.info("Removed %s %s votes", removed, target_type)
    return removed
