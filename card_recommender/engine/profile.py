"""Immutable card snapshots and the shared candidate ranking loop."""
from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from card_recommender.config import settings

_SUBTYPE_SPLIT = re.compile(r"\s+[—–-]+\s+")


@dataclass(frozen=True)
class CardProfile:
    """Read-only view of a card that is safe to share across worker threads."""

    id: str
    name: str
    type_line: str = ""
    oracle_text: Optional[str] = None
    colors: tuple[str, ...] = ()
    color_identity: tuple[str, ...] = ()
    cmc: float = 0.0
    power: Optional[str] = None
    toughness: Optional[str] = None
    rarity: Optional[str] = None
    set_code: Optional[str] = None
    legalities: dict[str, str] = field(default_factory=dict, compare=False, hash=False)

    @classmethod
    def from_card(cls, card: Any) -> "CardProfile":
        return cls(
            id=str(card.id),
            name=card.name,
            type_line=card.type_line or "",
            oracle_text=card.oracle_text,
            colors=tuple(card.colors or ()),
            color_identity=tuple(card.color_identity or ()),
            cmc=float(card.cmc or 0),
            power=card.power,
            toughness=card.toughness,
            rarity=card.rarity,
            set_code=card.set_code,
            legalities=dict(card.legalities or {}),
        )

    @property
    def oracle_lower(self) -> str:
        return (self.oracle_text or "").lower()

    @property
    def type_lower(self) -> str:
        return self.type_line.lower()

    @property
    def text(self) -> str:
        """Lower-cased oracle text followed by the type line."""
        return f"{self.oracle_lower}\n{self.type_lower}"

    @property
    def primary_type(self) -> str:
        """Main card type, preferring creature for multi-typed cards."""
        supertypes = _SUBTYPE_SPLIT.split(self.type_lower, maxsplit=1)[0].split()
        if "creature" in supertypes:
            return "creature"
        for token in reversed(supertypes):
            if token not in {"legendary", "basic", "snow", "world", "tribal", "kindred"}:
                return token
        return supertypes[0] if supertypes else ""

    @property
    def subtypes(self) -> tuple[str, ...]:
        parts = _SUBTYPE_SPLIT.split(self.type_lower, maxsplit=1)
        if len(parts) < 2:
            return ()
        # Double-faced cards carry "//" between faces
        return tuple(word for word in parts[1].split("//")[0].split() if word.isalpha())


@dataclass(frozen=True)
class ScoredCard:
    card_id: str
    score: int
    reason: str


PairScorer = Callable[[CardProfile, CardProfile], Optional[ScoredCard]]


def rank_candidates(
    source: CardProfile,
    candidates: Iterable[CardProfile],
    scorer: PairScorer,
    top_n: Optional[int] = None,
    max_workers: Optional[int] = None,
) -> list[ScoredCard]:
    """Score every candidate concurrently and return the best, highest first.

    Ties are ordered by card id so repeated runs give identical lists.
    """
    pool = [candidate for candidate in candidates if candidate.id != source.id]
    if not pool:
        return []

    workers = max(1, int(max_workers or settings.scoring_workers))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        results = list(executor.map(lambda candidate: scorer(source, candidate), pool))

    scored = [result for result in results if result is not None]
    scored.sort(key=lambda item: (-item.score, item.card_id))
    limit = settings.recommendation_top_n if top_n is None else top_n
    return scored[:limit]
