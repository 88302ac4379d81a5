"""Engine entry points used by the web API and the CLI."""
from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from card_recommender.config import settings
from card_recommender.database.models import Card, CardRecommendation, CardTheme
from card_recommender.database.repository import (
    SEARCH_CACHE_KIND,
    CardRepository,
    card_from_payload,
    card_to_payload,
)
from card_recommender.engine import votes
from card_recommender.engine.errors import CardNotFoundError
from card_recommender.engine.filters import (
    has_active_filters,
    matches,
    matches_query_text,
    normalize_filters,
    query_text,
)
from card_recommender.engine.observability import log_event
from card_recommender.engine.profile import CardProfile, ScoredCard
from card_recommender.engine.rules_config import RuleWeights, load_rule_weights
from card_recommender.engine.similarity import find_similar
from card_recommender.engine.synergy import find_synergy
from card_recommender.engine.text_generation import TextGenerator, default_generator
from card_recommender.engine.theme_catalog import describe_theme
from card_recommender.engine.themes import (
    ThemeCard,
    ThemeSynergy,
    cards_for_theme,
    cards_sharing_themes,
    get_or_classify_themes,
)

logger = logging.getLogger(__name__)

SYNERGY = "synergy"
FUNCTIONAL_SIMILARITY = "functional_similarity"
RECOMMENDATION_TYPES = (SYNERGY, FUNCTIONAL_SIMILARITY)


@dataclass
class SearchPage:
    cards: list[Card]
    has_more: bool
    total_count: int
    page: int


@dataclass
class RecommendationItem:
    recommendation_id: int
    card: Card
    score: int
    reason: str
    upvotes: int = 0
    downvotes: int = 0


@dataclass
class ThemeSuggestion:
    assignment_id: int
    theme_name: str
    description: str
    confidence: int
    upvotes: int = 0
    downvotes: int = 0


def get_card(session: Session, card_id: str) -> Card:
    card = CardRepository(session).get_card(card_id)
    if card is None:
        raise CardNotFoundError(card_id)
    return card


def random_card(session: Session) -> Optional[Card]:
    return CardRepository(session).get_random_card()


def search_cache_key(filters: Any, page: int) -> str:
    canonical = json.dumps(
        {"filters": normalize_filters(filters), "page": page}, sort_keys=True, default=str
    )
    return f"search:{hashlib.md5(canonical.encode('utf-8')).hexdigest()}"


def search(session: Session, filters: Any = None, page: int = 1) -> SearchPage:
    """Filter the catalog with the shared predicate and return one page."""
    page = max(1, int(page or 1))
    repository = CardRepository(session)
    key = search_cache_key(filters, page)

    cached = repository.cache_get(key)
    if isinstance(cached, dict):
        return SearchPage(
            cards=[card_from_payload(payload) for payload in cached.get("cards", [])],
            has_more=bool(cached.get("has_more")),
            total_count=int(cached.get("total_count", 0)),
            page=page,
        )

    text = query_text(filters)
    matching = [
        card
        for card in repository.scan_cards()
        if matches(card, filters) and matches_query_text(card, text)
    ]
    size = settings.search_page_size
    start = (page - 1) * size
    cards = matching[start : start + size]
    result = SearchPage(
        cards=cards,
        has_more=start + size < len(matching),
        total_count=len(matching),
        page=page,
    )

    repository.cache_put(
        key,
        {
            "cards": [card_to_payload(card) for card in cards],
            "has_more": result.has_more,
            "total_count": result.total_count,
        },
        settings.search_cache_ttl_seconds(),
        kind=SEARCH_CACHE_KIND,
    )
    return result


def _score_candidates(
    source: Card,
    pool: list[Card],
    recommendation_type: str,
    weights: RuleWeights,
) -> list[ScoredCard]:
    source_profile = CardProfile.from_card(source)
    candidates = [CardProfile.from_card(card) for card in pool]
    if recommendation_type == SYNERGY:
        return find_synergy(source_profile, candidates, weights)
    return find_similar(source_profile, candidates, weights)


def _store_recommendations(
    session: Session,
    source_card_id: str,
    recommendation_type: str,
    scored: list[ScoredCard],
) -> None:
    existing = {
        row.recommended_card_id: row
        for row in session.query(CardRecommendation).filter(
            CardRecommendation.source_card_id == source_card_id,
            CardRecommendation.recommendation_type == recommendation_type,
        )
    }

    # Rows no longer scored (below threshold or out of the top-N) go, with their votes
    scored_ids = {item.card_id for item in scored}
    dropped = [row for card_id, row in existing.items() if card_id not in scored_ids]
    if dropped:
        votes.delete_votes_for(session, "recommendation", [row.id for row in dropped])
        for row in dropped:
            session.delete(row)
        logger.debug(
            "Dropped %s stale %s recommendations for %s",
            len(dropped),
            recommendation_type,
            source_card_id,
        )

    for item in scored:
        row = existing.get(item.card_id)
        if row is not None:
            row.reason = item.reason
            row.base_score = item.score
            row.score = votes.adjusted_confidence(item.score, row.upvotes, row.downvotes)
            continue
        try:
            with session.begin_nested():
                session.add(
                    CardRecommendation(
                        source_card_id=source_card_id,
                        recommended_card_id=item.card_id,
                        recommendation_type=recommendation_type,
                        base_score=item.score,
                        score=item.score,
                        reason=item.reason,
                    )
                )
        except IntegrityError:
            logger.debug("Recommendation %s -> %s already stored", source_card_id, item.card_id)
    session.flush()


def recommendations(
    session: Session,
    card_id: str,
    recommendation_type: str = SYNERGY,
    limit: Optional[int] = None,
    filters: Any = None,
    weights: Optional[RuleWeights] = None,
) -> list[RecommendationItem]:
    """Score the candidate pool, persist the results and return the filtered top list."""
    if recommendation_type not in RECOMMENDATION_TYPES:
        raise ValueError(f"Unknown recommendation type: {recommendation_type}")

    repository = CardRepository(session)
    source = get_card(session, card_id)
    pool = repository.scan_cards(exclude_id=card_id, limit=settings.candidate_pool_size)
    scored = _score_candidates(source, pool, recommendation_type, weights or load_rule_weights())
    _store_recommendations(session, card_id, recommendation_type, scored)

    rows = (
        session.query(CardRecommendation)
        .filter(
            CardRecommendation.source_card_id == card_id,
            CardRecommendation.recommendation_type == recommendation_type,
        )
        .order_by(CardRecommendation.score.desc(), CardRecommendation.recommended_card_id)
        .all()
    )

    limit = settings.recommendation_top_n if limit is None else limit
    items: list[RecommendationItem] = []
    for row in rows:
        card = repository.get_card(row.recommended_card_id)
        if card is None:
            continue
        if not matches(card, filters):
            continue
        items.append(
            RecommendationItem(
                recommendation_id=row.id,
                card=card,
                score=row.score,
                reason=row.reason,
                upvotes=row.upvotes,
                downvotes=row.downvotes,
            )
        )
        if len(items) >= limit:
            break

    log_event(
        "recommendations_scored",
        {
            "card_id": card_id,
            "type": recommendation_type,
            "pool_size": len(pool),
            "scored": len(scored),
            "returned": len(items),
        },
    )
    return items


def theme_suggestions(
    session: Session,
    card_id: str,
    filters: Any = None,
    generator: Optional[TextGenerator] = None,
) -> list[ThemeSuggestion]:
    """Themes for a card; with active filters, only themes that still have cards."""
    card = get_card(session, card_id)
    assignments = get_or_classify_themes(session, card, generator or default_generator())

    if has_active_filters(filters):
        assignments = [
            assignment
            for assignment in assignments
            if cards_for_theme(session, assignment.theme_name, card_id, filters, limit=1)
        ]

    return [
        ThemeSuggestion(
            assignment_id=assignment.id,
            theme_name=assignment.theme_name,
            description=describe_theme(assignment.theme_name),
            confidence=assignment.confidence,
            upvotes=assignment.upvotes,
            downvotes=assignment.downvotes,
        )
        for assignment in assignments
    ]


def theme_cards(
    session: Session,
    card_id: str,
    theme_name: str,
    filters: Any = None,
) -> list[ThemeCard]:
    get_card(session, card_id)
    return cards_for_theme(session, theme_name, card_id, filters)


def theme_synergies(
    session: Session,
    card_id: str,
    filters: Any = None,
    generator: Optional[TextGenerator] = None,
    limit: Optional[int] = None,
) -> list[ThemeSynergy]:
    """Other cards ranked by how many of this card's themes they share."""
    card = get_card(session, card_id)
    source_themes = get_or_classify_themes(session, card, generator or default_generator())
    if not source_themes:
        return []
    return cards_sharing_themes(session, source_themes, card_id, filters, limit=limit)


def vote(
    session: Session,
    user_id: str,
    target_type: str,
    target_id: int,
    direction: str,
) -> votes.VoteResult:
    return votes.record_vote(session, user_id, target_type, target_id, direction)


def vote_state(session: Session, user_id: str, target_type: str, target_id: int) -> Optional[str]:
    return votes.vote_state(session, user_id, target_type, target_id)


def reset_themes(session: Session, card_id: Optional[str] = None) -> int:
    """Delete theme assignments (all, or one card's) along with their votes."""
    query = session.query(CardTheme)
    if card_id is not None:
        query = query.filter(CardTheme.card_id == card_id)
    assignment_ids = [row.id for row in query.with_entities(CardTheme.id).all()]
    if not assignment_ids:
        return 0

    votes.delete_votes_for(session, "theme", assignment_ids)
    removed = (
        session.query(CardTheme)
        .filter(CardTheme.id.in_(assignment_ids))
        .delete()
    )
    session.flush()
    logger.info("Reset %s theme assignments%s", removed, f" for card {card_id}" if card_id else "")
    return removed


def cleanup_cache(session: Session) -> int:
    return CardRepository(session).cleanup_expired_cache()
