"""Card repository and cache store backed by the relational database."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from card_recommender.config import settings
from card_recommender.database.models import CacheEntry, Card

logger = logging.getLogger(__name__)

CARD_CACHE_KIND = "card"
SEARCH_CACHE_KIND = "search"

_CARD_FIELDS = (
    "id",
    "name",
    "type_line",
    "oracle_text",
    "colors",
    "color_identity",
    "mana_cost",
    "cmc",
    "power",
    "toughness",
    "rarity",
    "set_code",
    "set_name",
    "price_usd",
    "legalities",
)


def card_to_payload(card: Card) -> dict[str, Any]:
    return {field: getattr(card, field) for field in _CARD_FIELDS}


def card_from_payload(payload: dict[str, Any]) -> Card:
    """Build a transient Card from a cached payload (never added to a session)."""
    return Card(**{field: payload.get(field) for field in _CARD_FIELDS})


def card_cache_key(card_id: str) -> str:
    return f"card:{card_id}"


def _is_expired(entry: CacheEntry, now: datetime) -> bool:
    return entry.last_updated + timedelta(seconds=entry.ttl_seconds) <= now


class CardRepository:
    """Point lookups, random sampling and bulk scans over the card store.

    Card lookups read through the cache: a fresh ``card:<id>`` entry is served
    as-is, an expired one is treated as absent and refreshed from the table.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_card(self, card_id: str) -> Optional[Card]:
        cached = self.cache_get(card_cache_key(card_id))
        if isinstance(cached, dict):
            return card_from_payload(cached)

        card = self.session.get(Card, card_id)
        if card is None:
            return None
        self.cache_put(
            card_cache_key(card_id),
            card_to_payload(card),
            settings.card_cache_ttl_seconds(),
            kind=CARD_CACHE_KIND,
        )
        return card

    def get_random_card(self) -> Optional[Card]:
        return self.session.query(Card).order_by(func.random()).first()

    def scan_cards(self, exclude_id: Optional[str] = None, limit: Optional[int] = None) -> list[Card]:
        """Return cards ordered by id, optionally skipping one card."""
        query = self.session.query(Card)
        if exclude_id is not None:
            query = query.filter(Card.id != exclude_id)
        query = query.order_by(Card.id)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def cache_get(self, key: str, now: Optional[datetime] = None) -> Any:
        now = now or datetime.utcnow()
        entry = self.session.query(CacheEntry).filter(CacheEntry.key == key).first()
        if entry is None:
            return None
        if _is_expired(entry, now):
            logger.debug("Cache entry expired: %s", key)
            return None
        entry.access_count = (entry.access_count or 0) + 1
        self.session.flush()
        return entry.payload

    def cache_put(
        self,
        key: str,
        payload: Any,
        ttl_seconds: int,
        kind: str = SEARCH_CACHE_KIND,
        now: Optional[datetime] = None,
    ) -> None:
        """Insert a cache entry, or overwrite the existing one (last writer wins)."""
        now = now or datetime.utcnow()
        entry = self.session.query(CacheEntry).filter(CacheEntry.key == key).first()
        if entry is None:
            try:
                with self.session.begin_nested():
                    self.session.add(
                        CacheEntry(
                            key=key,
                            kind=kind,
                            payload=payload,
                            ttl_seconds=ttl_seconds,
                            last_updated=now,
                            access_count=0,
                        )
                    )
                return
            except IntegrityError:
                logger.debug("Cache insert raced on %s, updating instead", key)
                entry = self.session.query(CacheEntry).filter(CacheEntry.key == key).one()

        entry.kind = kind
        entry.payload = payload
        entry.ttl_seconds = ttl_seconds
        entry.last_updated = now
        self.session.flush()

    def cleanup_expired_cache(self, now: Optional[datetime] = None) -> int:
        """Delete expired search entries and stale, rarely used entries.

        Card entries survive their TTL until the retention horizon so that
        popular cards stay warm for recommendations.
        """
        now = now or datetime.utcnow()
        retention_cutoff = now - timedelta(days=settings.cache_retention_days)

        removed = 0
        for entry in self.session.query(CacheEntry).all():
            expired_search = entry.kind == SEARCH_CACHE_KIND and _is_expired(entry, now)
            stale = entry.last_updated < retention_cutoff and (entry.access_count or 0) < 2
            if expired_search or stale:
                self.session.delete(entry)
                removed += 1
        self.session.flush()
        logger.info("Cache cleanup removed %s entries", removed)
        return removed
