"""Tests for the shared card filter predicate."""
from card_recommender.database.models import Card
from card_recommender.engine.filters import (
    has_active_filters,
    matches,
    matches_query_text,
    normalize_filters,
    parse_filter_json,
    query_text,
)
from card_recommender.engine.profile import CardProfile


def _card(**overrides) -> Card:
    data = {
        "id": "card-1",
        "name": "Llanowar Elves",
        "type_line": "Creature — Elf Druid",
        "oracle_text": "{T}: Add {G}.",
        "colors": ["G"],
        "color_identity": ["G"],
        "cmc": 1.0,
        "power": "1",
        "toughness": "1",
        "rarity": "common",
        "set_code": "dom",
        "legalities": {"commander": "legal", "standard": "not_legal"},
    }
    data.update(overrides)
    return Card(**data)


def test_no_filters_match_everything() -> None:
    card = _card()
    assert matches(card, None)
    assert matches(card, {})


def test_colors_accept_codes_and_names_case_insensitively() -> None:
    card = _card()
    assert matches(card, {"colors": ["g"]})
    assert matches(card, {"colors": ["Green"]})
    assert matches(card, {"colors": ["U", "G"]})
    assert not matches(card, {"colors": ["R"]})


def test_colors_consider_color_identity() -> None:
    card = _card(colors=[], color_identity=["U"])
    assert matches(card, {"colors": ["U"]})


def test_color_identity_requires_subset() -> None:
    card = _card(colors=["U", "G"], color_identity=["U", "G"])
    assert matches(card, {"colorIdentity": ["U", "G", "B"]})
    assert not matches(card, {"colorIdentity": ["G"]})


def test_colorless_card_fits_any_identity() -> None:
    card = _card(colors=[], color_identity=[])
    assert matches(card, {"color_identity": ["R"]})


def test_query_identity_constraint() -> None:
    card = _card(color_identity=["U", "G"])
    assert matches(card, {"query": "id<=UG"})
    assert not matches(card, {"query": "elves id<=G"})


def test_types_are_or_combined_substrings() -> None:
    card = _card()
    assert matches(card, {"types": ["Instant", "creature"]})
    assert not matches(card, {"types": ["Artifact"]})
    assert matches(card, {"type": "creature", "subtype": "druid"})
    assert not matches(card, {"subtype": "goblin"})


def test_mana_value_bounds_are_inclusive() -> None:
    card = _card(cmc=3.0)
    assert matches(card, {"minMv": 3, "maxMv": 3})
    assert not matches(card, {"minMv": 4})
    assert not matches(card, {"maxMv": 2})
    assert matches(card, {"cmc": 3})


def test_format_requires_legal_and_all_disables() -> None:
    card = _card()
    assert matches(card, {"format": "commander"})
    assert not matches(card, {"format": "standard"})
    assert not matches(card, {"format": "modern"})
    assert matches(card, {"format": "all"})


def test_rarity_set_and_stats() -> None:
    card = _card()
    assert matches(card, {"rarities": ["common", "uncommon"]})
    assert not matches(card, {"rarities": ["mythic"]})
    assert matches(card, {"rarity": "all"})
    assert not matches(card, {"rarity": "rare"})
    assert matches(card, {"set": "DOM"})
    assert not matches(card, {"set": "m21"})
    assert matches(card, {"power": 1, "toughness": 1})
    assert not matches(card, {"power": 2})


def test_oracle_text_substring() -> None:
    card = _card()
    assert matches(card, {"oracleText": "add {g}"})
    assert not matches(card, {"oracleText": "draw"})


def test_malformed_fields_fail_open() -> None:
    card = _card()
    assert matches(card, {"minMv": "lots"})
    assert matches(card, {"power": "strong"})
    assert matches(card, {"colors": 42})
    assert matches(card, "not a mapping")


def test_malformed_field_does_not_disable_other_fields() -> None:
    card = _card()
    assert not matches(card, {"minMv": "lots", "colors": ["R"]})


def test_predicate_accepts_card_profiles() -> None:
    profile = CardProfile.from_card(_card(color_identity=["B", "G"]))
    assert not matches(profile, {"colorIdentity": ["G"]})
    assert matches(profile, {"colorIdentity": ["B", "G"]})


def test_normalize_filters_maps_aliases_and_drops_empty_values() -> None:
    normalized = normalize_filters({"minMv": 2, "colors": [], "oracleText": "", "set": None})
    assert normalized == {"min_mv": 2}


def test_has_active_filters() -> None:
    assert not has_active_filters(None)
    assert not has_active_filters({"format": "all", "colors": []})
    assert has_active_filters({"colorIdentity": ["G"]})


def test_query_text_strips_identity_tokens() -> None:
    assert query_text({"query": "elves id<=G"}) == "elves"
    assert query_text({"query": 5}) == ""


def test_matches_query_text_checks_name_type_and_text() -> None:
    card = _card()
    assert matches_query_text(card, "llanowar")
    assert matches_query_text(card, "druid add")
    assert not matches_query_text(card, "goblin")
    assert matches_query_text(card, "")


def test_parse_filter_json() -> None:
    assert parse_filter_json('{"colors": ["G"]}') == {"colors": ["G"]}
    assert parse_filter_json("{not json") is None
    assert parse_filter_json("[1, 2]") is None
    assert parse_filter_json(None) is None
