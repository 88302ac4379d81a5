"""Theme suggestion routes."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from card_recommender.database.engine import get_db
from card_recommender.engine import service
from card_recommender.engine.errors import CardNotFoundError
from card_recommender.engine.filters import parse_filter_json
from card_recommender.engine.text_generation import default_generator
from card_recommender.web.schemas import ThemeCardResult, ThemeSuggestionResult, ThemeSynergyResult
from card_recommender.web.serializers import (
    theme_card_result,
    theme_suggestion_result,
    theme_synergy_result,
)

router = APIRouter()


@router.get(
    "/api/cards/{card_id}/theme-suggestions", response_model=list[ThemeSuggestionResult]
)
def theme_suggestions(
    card_id: str,
    filters: Optional[str] = Query(None, description="JSON object of filter fields"),
) -> list[ThemeSuggestionResult]:
    """Return the themes a card belongs to, classifying it on first request."""
    with get_db() as db:
        try:
            suggestions = service.theme_suggestions(
                db, card_id, parse_filter_json(filters), generator=default_generator()
            )
        except CardNotFoundError:
            raise HTTPException(status_code=404, detail="Card not found")
        return [theme_suggestion_result(suggestion) for suggestion in suggestions]


@router.get(
    "/api/cards/{card_id}/themes/{theme_name}/cards", response_model=list[ThemeCardResult]
)
def theme_cards(
    card_id: str,
    theme_name: str,
    filters: Optional[str] = Query(None, description="JSON object of filter fields"),
) -> list[ThemeCardResult]:
    """Return other cards sharing a theme with this card."""
    with get_db() as db:
        try:
            cards = service.theme_cards(db, card_id, theme_name, parse_filter_json(filters))
        except CardNotFoundError:
            raise HTTPException(status_code=404, detail="Card not found")
        return [theme_card_result(theme_card) for theme_card in cards]


@router.get("/api/cards/{card_id}/theme-synergies", response_model=list[ThemeSynergyResult])
def theme_synergies(
    card_id: str,
    filters: Optional[str] = Query(None, description="JSON object of filter fields"),
) -> list[ThemeSynergyResult]:
    """Return cards ranked by how many of this card's themes they share."""
    with get_db() as db:
        try:
            synergies = service.theme_synergies(
                db, card_id, parse_filter_json(filters), generator=default_generator()
            )
        except CardNotFoundError:
            raise HTTPException(status_code=404, detail="Card not found")
        return [theme_synergy_result(synergy) for synergy in synergies]
