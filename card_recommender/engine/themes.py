"""Theme classification through a text generator, plus theme card lookups."""
from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from card_recommender.config import settings
from card_recommender.database.models import Card, CardTheme, LLMRun
from card_recommender.database.repository import CardRepository
from card_recommender.engine.filters import matches
from card_recommender.engine.observability import timed
from card_recommender.engine.theme_catalog import ThemeDefinition, find_theme, theme_names
from card_recommender.engine.text_generation import TextGenerator

logger = logging.getLogger(__name__)

MAX_THEMES = 3
MIN_CONFIDENCE = 25
MAX_CONFIDENCE = 100

_THEME_LINE = re.compile(r"^(?P<name>.+?)\s*:\s*(?P<confidence>\d{1,3})\s*%")
_LIST_MARKER = re.compile(r"^\s*(?:[-*•]+|\d+[.)])\s*")
_MARKDOWN = re.compile(r"[*_`#]+")

# Generation calls are slow and may hang; they run here so callers can time out
_GENERATION_EXECUTOR = ThreadPoolExecutor(max_workers=4, thread_name_prefix="theme-generation")


@dataclass(frozen=True)
class ThemeProposal:
    theme: ThemeDefinition
    confidence: int


@dataclass(frozen=True)
class ThemeCard:
    card: Card
    confidence: int


def build_theme_prompt(card: Card) -> str:
    """Prompt asking for catalog themes as ``Theme: NN%`` lines."""
    return (
        "Analyze this Magic: The Gathering card and identify which themes it fits "
        "from this EXACT list:\n\n"
        f"{', '.join(theme_names())}\n\n"
        "Card Details:\n"
        f"Name: {card.name}\n"
        f"Type: {card.type_line}\n"
        f"Mana Cost: {card.mana_cost or 'None'}\n"
        f"Oracle Text: {card.oracle_text or 'No text'}\n\n"
        "Pick the themes that best apply to this card (at most 3) and give each a "
        "confidence percentage (1-100).\n"
        "Respond in this exact format, one theme per line:\n"
        "Theme1: 85%\n"
        "Theme2: 70%\n\n"
        "Only use themes from the provided list. Each theme must be spelled exactly as shown."
    )


def _clean_line(line: str) -> str:
    line = _LIST_MARKER.sub("", line)
    return _MARKDOWN.sub("", line).strip()


def parse_theme_response(text: Optional[str]) -> list[ThemeProposal]:
    """Parse ``ThemeName: NN%`` lines into at most three catalog themes.

    Lines naming a theme outside the catalog, or with a confidence outside
    25-100, are dropped. Repeated themes keep their first confidence.
    Results are ordered by confidence, highest first.
    """
    if not text:
        return []

    proposals: dict[str, ThemeProposal] = {}
    for raw_line in text.splitlines():
        line = _clean_line(raw_line)
        match = _THEME_LINE.match(line)
        if not match:
            continue
        theme = find_theme(match.group("name").strip().strip("\"'"))
        if theme is None:
            logger.debug("Ignoring theme outside catalog: %s", match.group("name"))
            continue
        confidence = int(match.group("confidence"))
        if confidence < MIN_CONFIDENCE or confidence > MAX_CONFIDENCE:
            continue
        if theme.name in proposals:
            continue
        proposals[theme.name] = ThemeProposal(theme=theme, confidence=confidence)

    ranked = sorted(proposals.values(), key=lambda item: (-item.confidence, item.theme.name))
    return ranked[:MAX_THEMES]


def _generator_model(generator: Any) -> str:
    return str(getattr(generator, "model", None) or type(generator).__name__)


def _log_llm_run(
    session: Session,
    card_id: str,
    model: str,
    prompt: str,
    response: Optional[str],
    success: bool,
    duration_ms: int,
) -> None:
    session.add(
        LLMRun(
            card_id=card_id,
            model=model,
            prompt=prompt,
            response=response,
            success=success,
            duration_ms=duration_ms,
        )
    )
    session.flush()


def classify_card(
    card: Card,
    generator: TextGenerator,
    session: Optional[Session] = None,
    timeout: Optional[float] = None,
) -> list[ThemeProposal]:
    """Ask the generator for themes; any failure or timeout yields ``[]``."""
    prompt = build_theme_prompt(card)
    wait = settings.theme_timeout_s if timeout is None else timeout
    response: Optional[str] = None
    success = False

    with timed() as timing:
        future = _GENERATION_EXECUTOR.submit(generator.generate, prompt)
        try:
            response = future.result(timeout=wait)
            success = response is not None
        except FutureTimeoutError:
            future.cancel()
            logger.warning("Theme generation timed out after %.1fs for card %s", wait, card.id)
        except Exception:
            logger.warning("Theme generation failed for card %s", card.id, exc_info=True)

    if session is not None:
        _log_llm_run(
            session,
            card_id=str(card.id),
            model=_generator_model(generator),
            prompt=prompt,
            response=response,
            success=success,
            duration_ms=timing["duration_ms"],
        )

    proposals = parse_theme_response(response)
    if success and not proposals:
        logger.info("Theme generation for card %s returned no usable themes", card.id)
    return proposals


def stored_themes(session: Session, card_id: str) -> list[CardTheme]:
    return (
        session.query(CardTheme)
        .filter(CardTheme.card_id == card_id)
        .order_by(CardTheme.confidence.desc(), CardTheme.theme_name)
        .all()
    )


def get_or_classify_themes(
    session: Session,
    card: Card,
    generator: TextGenerator,
) -> list[CardTheme]:
    """Stored assignments for a card, classifying it on first request.

    An empty classification stores nothing, so the next request retries.
    """
    existing = stored_themes(session, card.id)
    if existing:
        return existing

    for proposal in classify_card(card, generator, session=session):
        try:
            with session.begin_nested():
                session.add(
                    CardTheme(
                        card_id=card.id,
                        theme_name=proposal.theme.name,
                        theme_category=proposal.theme.category,
                        base_confidence=proposal.confidence,
                        confidence=proposal.confidence,
                    )
                )
        except IntegrityError:
            logger.debug("Theme %s already stored for card %s", proposal.theme.name, card.id)

    return stored_themes(session, card.id)


def cards_for_theme(
    session: Session,
    theme_name: str,
    excluding_card_id: Optional[str],
    filters: Any = None,
    limit: Optional[int] = None,
    min_confidence: Optional[int] = None,
) -> list[ThemeCard]:
    """Cards assigned to a theme, best first, that resolve and pass the filters."""
    theme = find_theme(theme_name)
    if theme is None:
        return []

    limit = settings.theme_card_limit if limit is None else limit
    cutoff = settings.theme_card_min_confidence if min_confidence is None else min_confidence

    query = session.query(CardTheme).filter(
        CardTheme.theme_name == theme.name,
        CardTheme.confidence >= cutoff,
    )
    if excluding_card_id is not None:
        query = query.filter(CardTheme.card_id != excluding_card_id)
    assignments = query.order_by(CardTheme.confidence.desc(), CardTheme.card_id).all()

    repository = CardRepository(session)
    results: list[ThemeCard] = []
    for assignment in assignments:
        card = repository.get_card(assignment.card_id)
        if card is None:
            logger.debug("Skipping stale theme assignment for card %s", assignment.card_id)
            continue
        if not matches(card, filters):
            continue
        results.append(ThemeCard(card=card, confidence=assignment.confidence))
        if len(results) >= limit:
            break
    return results


@dataclass(frozen=True)
class ThemeSynergy:
    card: Card
    shared_themes: tuple[str, ...]
    score: int


def cards_sharing_themes(
    session: Session,
    source_themes: list[CardTheme],
    excluding_card_id: str,
    filters: Any = None,
    limit: Optional[int] = None,
    min_confidence: Optional[int] = None,
) -> list[ThemeSynergy]:
    """Cards ranked by how many of the source card's themes they share.

    Ties go to the higher summed confidence, then the card id. Each result
    must resolve and pass the filters.
    """
    wanted = [assignment.theme_name for assignment in source_themes]
    if not wanted:
        return []

    limit = settings.theme_card_limit if limit is None else limit
    cutoff = settings.theme_card_min_confidence if min_confidence is None else min_confidence

    rows = (
        session.query(CardTheme)
        .filter(
            CardTheme.theme_name.in_(wanted),
            CardTheme.card_id != excluding_card_id,
            CardTheme.confidence >= cutoff,
        )
        .all()
    )

    shared: dict[str, list[CardTheme]] = {}
    for row in rows:
        shared.setdefault(row.card_id, []).append(row)

    ranked = sorted(
        shared.items(),
        key=lambda item: (-len(item[1]), -sum(row.confidence for row in item[1]), item[0]),
    )

    repository = CardRepository(session)
    results: list[ThemeSynergy] = []
    for card_id, assignments in ranked:
        card = repository.get_card(card_id)
        if card is None:
            logger.debug("Skipping stale theme assignment for card %s", card_id)
            continue
        if not matches(card, filters):
            continue
        ordered = sorted(assignments, key=lambda row: (-row.confidence, row.theme_name))
        results.append(
            ThemeSynergy(
                card=card,
                shared_themes=tuple(row.theme_name for row in ordered),
                score=sum(row.confidence for row in assignments),
            )
        )
        if len(results) >= limit:
            break
    return results
