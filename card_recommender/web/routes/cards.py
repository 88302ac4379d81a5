"""Card search, lookup and recommendation routes."""
from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, HTTPException, Query

from card_recommender.database.engine import get_db
from card_recommender.engine import service
from card_recommender.engine.errors import CardNotFoundError
from card_recommender.engine.filters import parse_filter_json
from card_recommender.web.schemas import CardResult, RecommendationResult, SearchResponse
from card_recommender.web.serializers import card_result, recommendation_result

router = APIRouter()


@router.get("/api/cards/search", response_model=SearchResponse)
def search_cards(
    filters: Optional[str] = Query(None, description="JSON object of filter fields"),
    page: int = Query(1, ge=1),
) -> SearchResponse:
    """Search the catalog with the shared card filters."""
    with get_db() as db:
        result = service.search(db, parse_filter_json(filters), page)
        return SearchResponse(
            cards=[card_result(card) for card in result.cards],
            has_more=result.has_more,
            total_count=result.total_count,
            page=result.page,
        )


@router.get("/api/cards/random", response_model=CardResult)
def random_card() -> CardResult:
    with get_db() as db:
        card = service.random_card(db)
        if not card:
            raise HTTPException(status_code=404, detail="No cards available")
        return card_result(card)


@router.get("/api/cards/{card_id}", response_model=CardResult)
def get_card(card_id: str) -> CardResult:
    with get_db() as db:
        try:
            card = service.get_card(db, card_id)
        except CardNotFoundError:
            raise HTTPException(status_code=404, detail="Card not found")
        return card_result(card)


@router.get("/api/cards/{card_id}/recommendations", response_model=list[RecommendationResult])
def card_recommendations(
    card_id: str,
    type: Literal["synergy", "functional_similarity"] = Query("synergy"),
    limit: int = Query(12, ge=1, le=100),
    filters: Optional[str] = Query(None, description="JSON object of filter fields"),
) -> list[RecommendationResult]:
    """Return synergy or functional-similarity recommendations for a card."""
    with get_db() as db:
        try:
            items = service.recommendations(db, card_id, type, limit, parse_filter_json(filters))
        except CardNotFoundError:
            raise HTTPException(status_code=404, detail="Card not found")
        return [recommendation_result(item) for item in items]
