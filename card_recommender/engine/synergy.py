"""Enabler/payoff synergy scoring between a source card and candidates."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from card_recommender.engine.profile import CardProfile, ScoredCard, rank_candidates
from card_recommender.engine.rules_config import DEFAULT_WEIGHTS, RuleWeights

logger = logging.getLogger(__name__)

SYNERGY_THRESHOLD = 20
MAX_SCORE = 100

Patterns = tuple[tuple[str, ...], ...]


@dataclass(frozen=True)
class SynergyRule:
    """One enabler -> payoff relationship.

    Each pattern group is a tuple of substrings that must all appear; a side
    matches when any of its groups does. An empty candidate side matches
    every candidate, leaving the other candidate constraints to decide.
    """

    name: str
    weight: int
    reason: str
    source: Patterns
    candidate: Patterns = ()
    candidate_types: tuple[str, ...] = ()
    candidate_min_mv: Optional[float] = None

    def applies(self, source: CardProfile, candidate: CardProfile) -> bool:
        if not _any_group(source.text, self.source):
            return False
        if self.candidate and not _any_group(candidate.text, self.candidate):
            return False
        if self.candidate_types and not any(t in candidate.type_lower for t in self.candidate_types):
            return False
        if self.candidate_min_mv is not None and candidate.cmc < self.candidate_min_mv:
            return False
        return True


def _any_group(text: str, groups: Patterns) -> bool:
    return any(all(fragment in text for fragment in group) for group in groups)


SYNERGY_RULES: tuple[SynergyRule, ...] = (
    SynergyRule(
        name="token_generator_consumer",
        weight=35,
        reason="token generator-consumer",
        source=(("create", "token"),),
        candidate=(("sacrifice",), ("token", "get")),
    ),
    SynergyRule(
        name="mill_graveyard",
        weight=30,
        reason="mill enabler-graveyard payoff",
        source=(("mill",),),
        candidate=(("graveyard",),),
    ),
    SynergyRule(
        name="ramp_expensive_spell",
        weight=25,
        reason="ramp enables expensive spell",
        source=(("add", "mana"), ("add {",)),
        candidate_min_mv=6,
    ),
    SynergyRule(
        name="artifact_metalcraft",
        weight=30,
        reason="artifact enabler-metalcraft payoff",
        source=(("artifact",),),
        candidate=(("metalcraft",), ("artifact", "control")),
    ),
    SynergyRule(
        name="etb_bounce",
        weight=25,
        reason="ETB trigger-bounce engine",
        source=(("enters the battlefield",), ("when", "enters")),
        candidate=(("return", "hand"),),
    ),
    SynergyRule(
        name="draw_hand_size",
        weight=20,
        reason="card draw-hand size payoff",
        source=(("draw",),),
        candidate=(("hand size",), ("cards in hand",)),
    ),
    SynergyRule(
        name="equipment_creature",
        weight=30,
        reason="equipment-creature synergy",
        source=(("equipment",),),
        candidate=(("equipped",), ("hexproof",), ("protection",)),
        candidate_types=("creature",),
    ),
)

TRIBAL_WEIGHT = 20
COMBO_WEIGHT = 40

_IRREGULAR_PLURALS = {
    "dwarf": "dwarves",
    "elf": "elves",
    "wolf": "wolves",
    "werewolf": "werewolves",
    "fungus": "fungi",
    "octopus": "octopuses",
    "mouse": "mice",
    "ox": "oxen",
    "sphinx": "sphinxes",
}

_TRIBAL_TYPE_MARKERS = ("creature", "tribal", "kindred")

_UNTAP = re.compile(r"\buntap\b")
_TAP = re.compile(r"\{t\}|\btap\b")
_COPY = re.compile(r"\bcopy\b")
_ADD_MANA = re.compile(r"\badd\b.*(\bmana\b|\{[wubrgc0-9]\})")


def _plural(creature_type: str) -> str:
    if creature_type in _IRREGULAR_PLURALS:
        return _IRREGULAR_PLURALS[creature_type]
    if creature_type.endswith(("s", "x", "ch", "sh")):
        return f"{creature_type}es"
    return f"{creature_type}s"


def _tribal_types(card: CardProfile) -> tuple[str, ...]:
    if not any(marker in card.type_lower for marker in _TRIBAL_TYPE_MARKERS):
        return ()
    return card.subtypes


def shared_tribal_type(source: CardProfile, candidate: CardProfile) -> Optional[str]:
    """First creature type both cards share that either card's text calls out."""
    candidate_types = set(_tribal_types(candidate))
    for creature_type in _tribal_types(source):
        if creature_type not in candidate_types:
            continue
        pattern = re.compile(rf"\b({creature_type}|{_plural(creature_type)})\b")
        if pattern.search(source.oracle_lower) or pattern.search(candidate.oracle_lower):
            return creature_type
    return None


def detect_combo(first: CardProfile, second: CardProfile) -> bool:
    """Untap/tap pairs, or mana production paired with untap or copy effects."""
    text1 = first.oracle_lower
    text2 = second.oracle_lower
    if not text1 or not text2:
        return False

    if (_UNTAP.search(text1) and _TAP.search(text2)) or (_TAP.search(text1) and _UNTAP.search(text2)):
        return True

    if _ADD_MANA.search(text1) and (_UNTAP.search(text2) or _COPY.search(text2)):
        return True
    if _ADD_MANA.search(text2) and (_UNTAP.search(text1) or _COPY.search(text1)):
        return True
    return False


def score_synergy(
    source: CardProfile,
    candidate: CardProfile,
    weights: RuleWeights = DEFAULT_WEIGHTS,
) -> Optional[ScoredCard]:
    """Score one pair; returns None below the inclusion threshold."""
    score = 0
    reasons: list[str] = []

    for rule in SYNERGY_RULES:
        if rule.applies(source, candidate):
            score += weights.weight("synergy", rule.name, rule.weight)
            reasons.append(rule.reason)

    creature_type = shared_tribal_type(source, candidate)
    if creature_type:
        score += weights.weight("synergy", "tribal", TRIBAL_WEIGHT)
        reasons.append(f"{creature_type} tribal synergy")

    if detect_combo(source, candidate):
        # A combo stands on its own; other hits only matter if they beat it
        score = max(weights.weight("synergy", "combo", COMBO_WEIGHT), score)
        reasons.insert(0, "combo synergy")

    # Overrides may raise the inclusion threshold but never lower it
    threshold = max(SYNERGY_THRESHOLD, weights.weight("synergy", "threshold", SYNERGY_THRESHOLD))
    if score < threshold:
        return None
    return ScoredCard(card_id=candidate.id, score=min(score, MAX_SCORE), reason=", ".join(reasons))


def find_synergy(
    source: CardProfile,
    candidates: Iterable[CardProfile],
    weights: RuleWeights = DEFAULT_WEIGHTS,
    top_n: Optional[int] = None,
    max_workers: Optional[int] = None,
) -> list[ScoredCard]:
    results = rank_candidates(
        source,
        candidates,
        lambda src, candidate: score_synergy(src, candidate, weights),
        top_n=top_n,
        max_workers=max_workers,
    )
    logger.debug("Synergy for %s: %s matches", source.id, len(results))
    return results
