"""Integration tests for web API routes."""
from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from card_recommender.database.models import CardTheme
from card_recommender.engine.text_generation import NullTextGenerator
from card_recommender.web import app as web_app
from card_recommender.web.routes import admin, cards, themes, votes
from conftest import StubGenerator


@pytest.fixture
def get_db_override(db_session):
    @contextmanager
    def _get_db() -> Generator:
        try:
            yield db_session
            db_session.commit()
        except Exception:
            db_session.rollback()
            raise

    return _get_db


@pytest.fixture
def generator():
    return StubGenerator("Token Generation: 85%\nSacrifice Value: 70%")


@pytest.fixture
def client(monkeypatch, get_db_override, generator):
    monkeypatch.setattr(cards, "get_db", get_db_override)
    monkeypatch.setattr(themes, "get_db", get_db_override)
    monkeypatch.setattr(votes, "get_db", get_db_override)
    monkeypatch.setattr(admin, "get_db", get_db_override)
    monkeypatch.setattr(themes, "default_generator", lambda: generator)

    return TestClient(web_app.app)


def test_health_check(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_get_card_and_missing_card(client, make_card):
    make_card("elf-1", "Llanowar Elves", type_line="Creature — Elf Druid", color_identity=["G"])

    response = client.get("/api/cards/elf-1")
    assert response.status_code == 200
    payload = response.json()
    assert payload["name"] == "Llanowar Elves"
    assert payload["color_identity"] == ["G"]

    assert client.get("/api/cards/unknown").status_code == 404


def test_random_card(client, make_card):
    assert client.get("/api/cards/random").status_code == 404
    make_card("only-card")
    response = client.get("/api/cards/random")
    assert response.status_code == 200
    assert response.json()["id"] == "only-card"


def test_search_with_filters(client, make_card):
    make_card("green", color_identity=["G"])
    make_card("red", color_identity=["R"])

    response = client.get(
        "/api/cards/search", params={"filters": json.dumps({"colorIdentity": ["G"]})}
    )
    assert response.status_code == 200
    payload = response.json()
    assert [card["id"] for card in payload["cards"]] == ["green"]
    assert payload["total_count"] == 1
    assert payload["has_more"] is False
    assert payload["page"] == 1


def test_search_ignores_invalid_filter_json(client, make_card):
    make_card("any-card")
    response = client.get("/api/cards/search", params={"filters": "{not json"})
    assert response.status_code == 200
    assert response.json()["total_count"] == 1


def test_recommendations_and_vote_flow(client, make_card):
    make_card("tokens", oracle_text="Create two 1/1 Soldier creature tokens.", type_line="Sorcery")
    make_card("altar", oracle_text="Sacrifice a creature: Scry 1.", type_line="Artifact")

    response = client.get("/api/cards/tokens/recommendations", params={"type": "synergy"})
    assert response.status_code == 200
    items = response.json()
    assert [item["card"]["id"] for item in items] == ["altar"]
    base_score = items[0]["score"]

    vote = {
        "user_id": "alice",
        "target_type": "recommendation",
        "target_id": items[0]["recommendation_id"],
        "direction": "up",
    }
    response = client.post("/api/votes", json=vote)
    assert response.status_code == 200
    assert response.json()["confidence"] > base_score

    repeat = client.post("/api/votes", json={**vote, "direction": "down"})
    assert repeat.status_code == 409
    assert repeat.json()["confidence"] == response.json()["confidence"]

    state = client.get(
        "/api/votes/state",
        params={
            "user_id": "alice",
            "target_type": "recommendation",
            "target_id": items[0]["recommendation_id"],
        },
    )
    assert state.json()["direction"] == "up"


def test_recommendations_reject_unknown_type_and_card(client, make_card):
    make_card("some-card")
    assert (
        client.get("/api/cards/some-card/recommendations", params={"type": "popular"}).status_code
        == 422
    )
    assert client.get("/api/cards/missing/recommendations").status_code == 404


def test_theme_suggestions_and_theme_cards(client, make_card, db_session, generator):
    make_card("maker", oracle_text="Create a 1/1 Goblin token.")
    make_card("other-maker")
    db_session.add(
        CardTheme(
            card_id="other-maker",
            theme_name="Token Generation",
            theme_category="creature",
            base_confidence=75,
            confidence=75,
        )
    )
    db_session.commit()

    response = client.get("/api/cards/maker/theme-suggestions")
    assert response.status_code == 200
    suggestions = response.json()
    assert [s["theme_name"] for s in suggestions] == ["Token Generation", "Sacrifice Value"]
    assert suggestions[0]["confidence"] == 85
    assert suggestions[0]["description"].startswith("Token Generation:")
    assert len(generator.prompts) == 1

    response = client.get("/api/cards/maker/themes/Token Generation/cards")
    assert response.status_code == 200
    assert [item["card"]["id"] for item in response.json()] == ["other-maker"]


def test_theme_synergies(client, make_card, db_session):
    make_card("maker", oracle_text="Create a 1/1 Goblin token.", color_identity=["R"])
    make_card("red-maker", color_identity=["R"])
    make_card("black-outlet", color_identity=["B"])
    for card_id, theme, confidence in (
        ("red-maker", "Token Generation", 75),
        ("black-outlet", "Token Generation", 60),
        ("black-outlet", "Sacrifice Value", 90),
    ):
        db_session.add(
            CardTheme(
                card_id=card_id,
                theme_name=theme,
                theme_category="creature",
                base_confidence=confidence,
                confidence=confidence,
            )
        )
    db_session.commit()

    response = client.get("/api/cards/maker/theme-synergies")
    assert response.status_code == 200
    body = response.json()
    assert [item["card"]["id"] for item in body] == ["black-outlet", "red-maker"]
    assert body[0]["shared_themes"] == ["Sacrifice Value", "Token Generation"]
    assert body[0]["score"] == 150

    filters = json.dumps({"colorIdentity": ["R"]})
    response = client.get("/api/cards/maker/theme-synergies", params={"filters": filters})
    assert [item["card"]["id"] for item in response.json()] == ["red-maker"]

    assert client.get("/api/cards/missing/theme-synergies").status_code == 404


def test_theme_suggestions_without_generator(client, make_card, monkeypatch):
    monkeypatch.setattr(themes, "default_generator", NullTextGenerator)
    make_card("plain-card")
    response = client.get("/api/cards/plain-card/theme-suggestions")
    assert response.status_code == 200
    assert response.json() == []


def test_vote_errors(client, make_card):
    make_card("voted")
    client.get("/api/cards/voted/theme-suggestions")

    bad_direction = client.post(
        "/api/votes",
        json={"user_id": "alice", "target_type": "theme", "target_id": 1, "direction": "left"},
    )
    assert bad_direction.status_code == 400

    missing = client.post(
        "/api/votes",
        json={"user_id": "alice", "target_type": "theme", "target_id": 999, "direction": "up"},
    )
    assert missing.status_code == 404

    bad_state = client.get(
        "/api/votes/state", params={"user_id": "alice", "target_type": "deck", "target_id": 1}
    )
    assert bad_state.status_code == 400


def test_admin_reset_and_cache_cleanup(client, make_card, db_session):
    make_card("reset-card")
    client.get("/api/cards/reset-card/theme-suggestions")
    assert db_session.query(CardTheme).count() == 2

    response = client.post("/api/admin/themes/reset", params={"card_id": "reset-card"})
    assert response.status_code == 200
    assert response.json() == {"removed": 2}

    response = client.post("/api/admin/cache/cleanup")
    assert response.status_code == 200
    assert response.json()["removed"] >= 0
