"""Engine exception types."""
from __future__ import annotations

from typing import Optional


class EngineError(Exception):
    """Base class for recommendation engine errors."""


class CardNotFoundError(EngineError):
    def __init__(self, card_id: str) -> None:
        super().__init__(f"Card not found: {card_id}")
        self.card_id = card_id


class VoteTargetNotFoundError(EngineError):
    def __init__(self, target_type: str, target_id: int) -> None:
        super().__init__(f"Vote target not found: {target_type}:{target_id}")
        self.target_type = target_type
        self.target_id = target_id


class DuplicateVoteError(EngineError):
    """Raised when a user already voted on a target.

    The target is left untouched; ``current_confidence`` reports its value so
    callers can show the existing state.
    """

    def __init__(
        self,
        user_id: str,
        target_type: str,
        target_id: int,
        current_confidence: Optional[int] = None,
    ) -> None:
        super().__init__(f"User {user_id} already voted on {target_type}:{target_id}")
        self.user_id = user_id
        self.target_type = target_type
        self.target_id = target_id
        self.current_confidence = current_confidence


class InvalidVoteError(EngineError, ValueError):
    """Unknown vote direction or target type."""
