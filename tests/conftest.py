"""Shared fixtures: in-memory database, card factory and stub text generators."""
from __future__ import annotations

import os
import time
from typing import Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")

from card_recommender.database.models import Base, Card


class StubGenerator:
    """Deterministic generator returning a canned response."""

    model = "stub"

    def __init__(self, response: Optional[str]) -> None:
        self.response = response
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> Optional[str]:
        self.prompts.append(prompt)
        return self.response


class FailingGenerator:
    model = "failing"

    def generate(self, prompt: str) -> Optional[str]:
        raise RuntimeError("generation backend unavailable")


class SlowGenerator:
    model = "slow"

    def __init__(self, delay: float) -> None:
        self.delay = delay

    def generate(self, prompt: str) -> Optional[str]:
        time.sleep(self.delay)
        return "Aggro: 90%"


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    SessionLocal = sessionmaker(bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def make_card(db_session):
    def _make_card(
        card_id: str,
        name: Optional[str] = None,
        *,
        type_line: str = "Creature — Human",
        oracle_text: Optional[str] = None,
        colors: Optional[list[str]] = None,
        color_identity: Optional[list[str]] = None,
        cmc: float = 3.0,
        power: Optional[str] = None,
        toughness: Optional[str] = None,
        rarity: str = "common",
        set_code: str = "tst",
        legalities: Optional[dict[str, str]] = None,
        mana_cost: Optional[str] = None,
    ) -> Card:
        identity = color_identity if color_identity is not None else []
        card = Card(
            id=card_id,
            name=name or card_id.replace("-", " ").title(),
            type_line=type_line,
            oracle_text=oracle_text,
            colors=colors if colors is not None else list(identity),
            color_identity=identity,
            mana_cost=mana_cost,
            cmc=cmc,
            power=power,
            toughness=toughness,
            rarity=rarity,
            set_code=set_code,
            set_name="Test Set",
            legalities=legalities if legalities is not None else {"commander": "legal"},
        )
        db_session.add(card)
        db_session.commit()
        return card

    return _make_card
