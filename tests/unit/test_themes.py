"""Tests for theme classification, storage and theme card lookups."""
from card_recommender.database.models import CardTheme, LLMRun
from card_recommender.engine.themes import (
    MAX_THEMES,
    build_theme_prompt,
    cards_for_theme,
    cards_sharing_themes,
    classify_card,
    get_or_classify_themes,
    parse_theme_response,
    stored_themes,
)
from conftest import FailingGenerator, SlowGenerator, StubGenerator


def test_parse_well_formed_response() -> None:
    proposals = parse_theme_response("Token Generation: 85%\nSacrifice Value: 70%")
    assert [(p.theme.name, p.confidence) for p in proposals] == [
        ("Token Generation", 85),
        ("Sacrifice Value", 70),
    ]


def test_parse_strips_bullets_and_markdown() -> None:
    text = "Here you go:\n- **Ramp**: 90%\n2. *Landfall*: 60%\n• Elves: 55 %"
    proposals = parse_theme_response(text)
    assert [p.theme.name for p in proposals] == ["Ramp", "Landfall", "Elves"]


def test_parse_drops_unknown_and_out_of_range() -> None:
    text = "Made Up Theme: 90%\nAggro: 10%\nControl: 150%\nBurn: 40%"
    proposals = parse_theme_response(text)
    assert [(p.theme.name, p.confidence) for p in proposals] == [("Burn", 40)]


def test_parse_keeps_first_duplicate_and_caps_at_three() -> None:
    text = "Aggro: 50%\naggro: 95%\nBurn: 60%\nTempo: 70%\nVoltron: 80%"
    proposals = parse_theme_response(text)
    assert len(proposals) == MAX_THEMES
    assert [(p.theme.name, p.confidence) for p in proposals] == [
        ("Voltron", 80),
        ("Tempo", 70),
        ("Burn", 60),
    ]


def test_parse_empty_response() -> None:
    assert parse_theme_response(None) == []
    assert parse_theme_response("") == []
    assert parse_theme_response("I cannot help with that.") == []


def test_prompt_lists_catalog_and_card(make_card) -> None:
    card = make_card("prompt-card", "Goblin Instigator", oracle_text="Create a 1/1 Goblin token.")
    prompt = build_theme_prompt(card)
    assert "Goblin Instigator" in prompt
    assert "Create a 1/1 Goblin token." in prompt
    assert "Token Generation" in prompt
    assert "Theme1: 85%" in prompt


def test_classify_logs_llm_run(db_session, make_card) -> None:
    card = make_card("classify-card")
    generator = StubGenerator("Aggro: 80%")
    proposals = classify_card(card, generator, session=db_session)
    assert [p.theme.name for p in proposals] == ["Aggro"]
    assert len(generator.prompts) == 1

    run = db_session.query(LLMRun).one()
    assert run.card_id == "classify-card"
    assert run.model == "stub"
    assert run.success is True
    assert run.response == "Aggro: 80%"
    assert isinstance(run.duration_ms, int)


def test_classify_failure_returns_empty(db_session, make_card) -> None:
    card = make_card("failing-card")
    assert classify_card(card, FailingGenerator(), session=db_session) == []
    run = db_session.query(LLMRun).one()
    assert run.success is False
    assert run.response is None


def test_classify_timeout_returns_empty(make_card) -> None:
    card = make_card("slow-card")
    assert classify_card(card, SlowGenerator(0.5), timeout=0.05) == []


def test_classify_none_response_returns_empty(make_card) -> None:
    card = make_card("silent-card")
    assert classify_card(card, StubGenerator(None)) == []


def test_get_or_classify_stores_once(db_session, make_card) -> None:
    card = make_card("themed-card")
    generator = StubGenerator("Token Generation: 85%\nAristocrats: 60%")

    first = get_or_classify_themes(db_session, card, generator)
    assert [(row.theme_name, row.confidence) for row in first] == [
        ("Token Generation", 85),
        ("Aristocrats", 60),
    ]
    assert first[0].base_confidence == 85
    assert first[0].theme_category == "creature"

    second = get_or_classify_themes(db_session, card, generator)
    assert [row.id for row in second] == [row.id for row in first]
    assert len(generator.prompts) == 1


def test_empty_classification_is_not_stored(db_session, make_card) -> None:
    card = make_card("retry-card")
    assert get_or_classify_themes(db_session, card, FailingGenerator()) == []
    assert stored_themes(db_session, card.id) == []

    generator = StubGenerator("Ramp: 75%")
    themes = get_or_classify_themes(db_session, card, generator)
    assert [row.theme_name for row in themes] == ["Ramp"]


def _assign(db_session, card_id: str, theme: str, confidence: int, category: str = "core") -> None:
    db_session.add(
        CardTheme(
            card_id=card_id,
            theme_name=theme,
            theme_category=category,
            base_confidence=confidence,
            confidence=confidence,
        )
    )
    db_session.commit()


def test_cards_for_theme_orders_and_excludes_source(db_session, make_card) -> None:
    for card_id in ("src", "b-card", "a-card", "c-card"):
        make_card(card_id)
    _assign(db_session, "src", "Aggro", 90)
    _assign(db_session, "b-card", "Aggro", 70)
    _assign(db_session, "a-card", "Aggro", 70)
    _assign(db_session, "c-card", "Aggro", 95)

    results = cards_for_theme(db_session, "aggro", "src")
    assert [(item.card.id, item.confidence) for item in results] == [
        ("c-card", 95),
        ("a-card", 70),
        ("b-card", 70),
    ]


def test_cards_for_theme_applies_cutoff_limit_and_filters(db_session, make_card) -> None:
    make_card("red-card", color_identity=["R"])
    make_card("blue-card", color_identity=["U"])
    make_card("weak-card", color_identity=["R"])
    _assign(db_session, "red-card", "Burn", 80)
    _assign(db_session, "blue-card", "Burn", 85)
    _assign(db_session, "weak-card", "Burn", 20)

    results = cards_for_theme(db_session, "Burn", None, {"colorIdentity": ["R"]})
    assert [item.card.id for item in results] == ["red-card"]

    limited = cards_for_theme(db_session, "Burn", None, limit=1)
    assert [item.card.id for item in limited] == ["blue-card"]


def test_cards_for_theme_skips_stale_and_unknown(db_session, make_card) -> None:
    make_card("live-card")
    _assign(db_session, "live-card", "Mill", 60)
    _assign(db_session, "deleted-card", "Mill", 90)

    results = cards_for_theme(db_session, "Mill", None)
    assert [item.card.id for item in results] == ["live-card"]
    assert cards_for_theme(db_session, "Nonexistent Theme", None) == []


def test_cards_sharing_themes_rank_skip_and_cut(db_session, make_card) -> None:
    for card_id in ("src", "pair", "single", "faint"):
        make_card(card_id)
    _assign(db_session, "src", "Aggro", 90)
    _assign(db_session, "src", "Burn", 80)
    _assign(db_session, "pair", "Aggro", 40)
    _assign(db_session, "pair", "Burn", 45)
    _assign(db_session, "single", "Burn", 99)
    _assign(db_session, "faint", "Aggro", 10)
    _assign(db_session, "gone", "Aggro", 90)
    _assign(db_session, "single", "Mill", 90)

    source_themes = stored_themes(db_session, "src")
    results = cards_sharing_themes(db_session, source_themes, "src")
    assert [(item.card.id, item.shared_themes, item.score) for item in results] == [
        ("pair", ("Burn", "Aggro"), 85),
        ("single", ("Burn",), 99),
    ]

    assert [item.card.id for item in cards_sharing_themes(db_session, source_themes, "src", limit=1)] == ["pair"]
    assert cards_sharing_themes(db_session, [], "src") == []
