"""Database models using SQLAlchemy ORM."""
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String, Text
from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class Card(Base):
    """Card model representing a Magic: The Gathering card."""

    __tablename__ = "cards"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    type_line: Mapped[str] = mapped_column(String(255), nullable=False)
    oracle_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Colors and identity
    colors: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)
    color_identity: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    # Mana cost
    mana_cost: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    cmc: Mapped[float] = mapped_column(Float, nullable=False, default=0.0, index=True)

    # Creature stats are strings ("*", "1+*")
    power: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    toughness: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    rarity: Mapped[Optional[str]] = mapped_column(String(20), nullable=True, index=True)
    set_code: Mapped[Optional[str]] = mapped_column(String(10), nullable=True, index=True)
    set_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Pricing (USD)
    price_usd: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Legalities (e.g., {"commander": "legal", "vintage": "banned"})
    legalities: Mapped[dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<Card(name='{self.name}', cmc={self.cmc})>"


class CacheEntry(Base):
    """Cached payload keyed by card id or search hash."""

    __tablename__ = "cache_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    kind: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    payload: Mapped[Any] = mapped_column(JSON, nullable=False)
    ttl_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    access_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<CacheEntry(key='{self.key}', kind={self.kind})>"


class CardRecommendation(Base):
    """Scored recommendation from one card to another.

    Card ids are plain references, a deleted card leaves stale rows that are
    dropped when they fail to resolve.
    """

    __tablename__ = "card_recommendations"
    __table_args__ = (
        UniqueConstraint(
            "source_card_id",
            "recommended_card_id",
            "recommendation_type",
            name="uq_card_recommendation",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    source_card_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    recommended_card_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    recommendation_type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    base_score: Mapped[int] = mapped_column(Integer, nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    upvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    downvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    vote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return (
            f"<CardRecommendation(source={self.source_card_id}, "
            f"recommended={self.recommended_card_id}, type={self.recommendation_type}, "
            f"score={self.score})>"
        )


class CardTheme(Base):
    """Theme assignment for a card with vote-adjusted confidence."""

    __tablename__ = "card_themes"
    __table_args__ = (UniqueConstraint("card_id", "theme_name", name="uq_card_theme"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    card_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    theme_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    theme_category: Mapped[str] = mapped_column(String(50), nullable=False)
    base_confidence: Mapped[int] = mapped_column(Integer, nullable=False)
    confidence: Mapped[int] = mapped_column(Integer, nullable=False)
    upvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    downvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    vote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    last_updated: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return (
            f"<CardTheme(card_id={self.card_id}, theme='{self.theme_name}', "
            f"confidence={self.confidence})>"
        )


class UserVote(Base):
    """A single up/down vote by a user on a theme or recommendation."""

    __tablename__ = "user_votes"
    __table_args__ = (
        UniqueConstraint("user_id", "target_type", "target_id", name="uq_user_vote_target"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    target_type: Mapped[str] = mapped_column(String(20), nullable=False)
    target_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    direction: Mapped[str] = mapped_column(String(4), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return (
            f"<UserVote(user_id={self.user_id}, target={self.target_type}:{self.target_id}, "
            f"direction={self.direction})>"
        )


class LLMRun(Base):
    """LLM run record for theme classification requests."""

    __tablename__ = "llm_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    card_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    model: Mapped[str] = mapped_column(String(100), nullable=False)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    response: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    success: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    duration_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<LLMRun(card_id={self.card_id}, success={self.success})>"
