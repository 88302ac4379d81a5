"""Shared serialization helpers for API routes."""
from __future__ import annotations

from card_recommender.database.models import Card
from card_recommender.engine.service import RecommendationItem, ThemeSuggestion
from card_recommender.engine.themes import ThemeCard, ThemeSynergy
from card_recommender.web.schemas import (
    CardResult,
    RecommendationResult,
    ThemeCardResult,
    ThemeSuggestionResult,
    ThemeSynergyResult,
)


def card_result(card: Card) -> CardResult:
    return CardResult(
        id=card.id,
        name=card.name,
        type_line=card.type_line,
        mana_cost=card.mana_cost,
        cmc=card.cmc or 0.0,
        oracle_text=card.oracle_text,
        colors=card.colors or [],
        color_identity=card.color_identity or [],
        power=card.power,
        toughness=card.toughness,
        rarity=card.rarity,
        set_code=card.set_code,
        set_name=card.set_name,
        price_usd=card.price_usd,
        legalities=card.legalities or {},
    )


def recommendation_result(item: RecommendationItem) -> RecommendationResult:
    return RecommendationResult(
        recommendation_id=item.recommendation_id,
        card=card_result(item.card),
        score=item.score,
        reason=item.reason,
        upvotes=item.upvotes,
        downvotes=item.downvotes,
    )


def theme_suggestion_result(suggestion: ThemeSuggestion) -> ThemeSuggestionResult:
    return ThemeSuggestionResult(
        assignment_id=suggestion.assignment_id,
        theme_name=suggestion.theme_name,
        description=suggestion.description,
        confidence=suggestion.confidence,
        upvotes=suggestion.upvotes,
        downvotes=suggestion.downvotes,
    )


def theme_card_result(theme_card: ThemeCard) -> ThemeCardResult:
    return ThemeCardResult(card=card_result(theme_card.card), confidence=theme_card.confidence)


def theme_synergy_result(synergy: ThemeSynergy) -> ThemeSynergyResult:
    return ThemeSynergyResult(
        card=card_result(synergy.card),
        shared_themes=list(synergy.shared_themes),
        score=synergy.score,
    )
