"""Pydantic schemas for the web API."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class CardResult(BaseModel):
    """API response for a single card."""

    id: str
    name: str
    type_line: str
    mana_cost: Optional[str]
    cmc: float
    oracle_text: Optional[str]
    colors: list[str]
    color_identity: list[str]
    power: Optional[str]
    toughness: Optional[str]
    rarity: Optional[str]
    set_code: Optional[str]
    set_name: Optional[str]
    price_usd: Optional[float]
    legalities: dict[str, str]


class SearchResponse(BaseModel):
    """API response for card search."""

    cards: list[CardResult]
    has_more: bool
    total_count: int
    page: int


class RecommendationResult(BaseModel):
    """A scored recommendation that can be voted on."""

    recommendation_id: int
    card: CardResult
    score: int
    reason: str
    upvotes: int
    downvotes: int


class ThemeSuggestionResult(BaseModel):
    """A theme assignment for a card."""

    assignment_id: int
    theme_name: str
    description: str
    confidence: int
    upvotes: int
    downvotes: int


class ThemeCardResult(BaseModel):
    card: CardResult
    confidence: int


class ThemeSynergyResult(BaseModel):
    """A card sharing one or more themes with the source card."""

    card: CardResult
    shared_themes: list[str]
    score: int


class VoteRequest(BaseModel):
    """Request body for a vote."""

    user_id: str
    target_type: str
    target_id: int
    direction: str


class VoteResponse(BaseModel):
    target_type: str
    target_id: int
    direction: str
    confidence: int
    upvotes: int
    downvotes: int


class VoteStateResponse(BaseModel):
    user_id: str
    target_type: str
    target_id: int
    direction: Optional[str]


class AdminResult(BaseModel):
    removed: int
