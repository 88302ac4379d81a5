"""Functional similarity scoring (cards that can substitute for each other)."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from card_recommender.engine.profile import CardProfile, ScoredCard, rank_candidates
from card_recommender.engine.rules_config import DEFAULT_WEIGHTS, RuleWeights

logger = logging.getLogger(__name__)

SIMILARITY_THRESHOLD = 25
MAX_SCORE = 100


@dataclass(frozen=True)
class FunctionPattern:
    name: str
    pattern: re.Pattern[str]
    weight: int
    reason: str


FUNCTION_PATTERNS: tuple[FunctionPattern, ...] = (
    FunctionPattern("counterspell", re.compile(r"counter target spell"), 45, "counterspell"),
    FunctionPattern("creature_removal", re.compile(r"destroy target creature"), 40, "creature removal"),
    FunctionPattern("card_draw", re.compile(r"draw.*card"), 35, "card draw"),
    FunctionPattern("direct_damage", re.compile(r"deal.*damage"), 30, "direct damage"),
    FunctionPattern("lifegain", re.compile(r"gain.*life"), 25, "lifegain"),
    FunctionPattern("tutoring", re.compile(r"search.*library"), 35, "tutoring"),
    FunctionPattern("recursion", re.compile(r"return.*graveyard"), 40, "recursion"),
    FunctionPattern("exile_removal", re.compile(r"exile target"), 35, "exile removal"),
)

# Secondary signal weights
SIMILAR_COST = 20
COMPARABLE_COST = 10
SAME_TYPE = 15
SIMILAR_STATS = 20
SAME_COLORS = 15
SIMILAR_COLORS = 8
SHARED_KEYWORD = 8

EVERGREEN_KEYWORDS = (
    "flying",
    "trample",
    "lifelink",
    "deathtouch",
    "vigilance",
    "haste",
    "reach",
    "first strike",
    "double strike",
    "hexproof",
    "indestructible",
    "flash",
    "defender",
)

_KEYWORD_PATTERNS = {
    keyword: re.compile(rf"\b{re.escape(keyword)}\b") for keyword in EVERGREEN_KEYWORDS
}


def shared_function(source: CardProfile, candidate: CardProfile) -> Optional[FunctionPattern]:
    """The first function pattern present in both cards' oracle text."""
    source_text = source.oracle_lower
    candidate_text = candidate.oracle_lower
    if not source_text or not candidate_text:
        return None
    for function in FUNCTION_PATTERNS:
        if function.pattern.search(source_text) and function.pattern.search(candidate_text):
            return function
    return None


def extract_keywords(text: str) -> list[str]:
    return [keyword for keyword, pattern in _KEYWORD_PATTERNS.items() if pattern.search(text)]


def _stat(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    match = re.match(r"\s*(-?\d+)", value)
    return int(match.group(1)) if match else None


def _color_overlap(source: CardProfile, candidate: CardProfile) -> Optional[float]:
    source_colors = set(source.color_identity)
    candidate_colors = set(candidate.color_identity)
    total = max(len(source_colors), len(candidate_colors))
    if total == 0:
        return None
    return len(source_colors & candidate_colors) / total


def score_similarity(
    source: CardProfile,
    candidate: CardProfile,
    weights: RuleWeights = DEFAULT_WEIGHTS,
) -> Optional[ScoredCard]:
    """Score one pair; returns None below the inclusion threshold."""

    def weight(name: str, default: int) -> int:
        return weights.weight("similarity", name, default)

    score = 0
    reasons: list[str] = []

    # Only one primary function counts per pair
    function = shared_function(source, candidate)
    if function:
        score += weight(function.name, function.weight)
        reasons.append(function.reason)

    cmc_diff = abs(source.cmc - candidate.cmc)
    if cmc_diff <= 1:
        score += weight("similar_cost", SIMILAR_COST)
        reasons.append("similar cost")
    elif cmc_diff <= 2:
        score += weight("comparable_cost", COMPARABLE_COST)
        reasons.append("comparable cost")

    source_type = source.primary_type
    if source_type and source_type == candidate.primary_type:
        score += weight("same_type", SAME_TYPE)
        reasons.append("same type")
        if source_type == "creature":
            power_a, power_b = _stat(source.power), _stat(candidate.power)
            tough_a, tough_b = _stat(source.toughness), _stat(candidate.toughness)
            if None not in (power_a, power_b, tough_a, tough_b):
                if abs(power_a - power_b) <= 1 and abs(tough_a - tough_b) <= 1:
                    score += weight("similar_stats", SIMILAR_STATS)
                    reasons.append("similar stats")

    overlap = _color_overlap(source, candidate)
    if overlap is not None:
        if overlap >= 0.8:
            score += weight("same_colors", SAME_COLORS)
            reasons.append("same colors")
        elif overlap >= 0.5:
            score += weight("similar_colors", SIMILAR_COLORS)
            reasons.append("similar colors")

    candidate_keywords = set(extract_keywords(candidate.oracle_lower))
    shared = [kw for kw in extract_keywords(source.oracle_lower) if kw in candidate_keywords]
    if shared:
        score += weight("shared_keyword", SHARED_KEYWORD) * len(shared)
        reasons.append(f"shared abilities: {', '.join(shared)}")

    threshold = max(SIMILARITY_THRESHOLD, weight("threshold", SIMILARITY_THRESHOLD))
    if score < threshold:
        return None
    return ScoredCard(card_id=candidate.id, score=min(score, MAX_SCORE), reason=", ".join(reasons))


def find_similar(
    source: CardProfile,
    candidates: Iterable[CardProfile],
    weights: RuleWeights = DEFAULT_WEIGHTS,
    top_n: Optional[int] = None,
    max_workers: Optional[int] = None,
) -> list[ScoredCard]:
    results = rank_candidates(
        source,
        candidates,
        lambda src, candidate: score_similarity(src, candidate, weights),
        top_n=top_n,
        max_workers=max_workers,
    )
    logger.debug("Similarity for %s: %s matches", source.id, len(results))
    return results
