"""Shared card filter predicate used by search, recommendations and themes."""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Mapping, Optional

logger = logging.getLogger(__name__)

_IDENTITY_QUERY = re.compile(r"id<=([WUBRG]+)", re.IGNORECASE)

# camelCase keys accepted from API clients
_ALIASES = {
    "colorIdentity": "color_identity",
    "minMv": "min_mv",
    "maxMv": "max_mv",
    "oracleText": "oracle_text",
}

_COLOR_NAMES = {
    "white": "W",
    "blue": "U",
    "black": "B",
    "red": "R",
    "green": "G",
    "colorless": "C",
}


def normalize_filters(filters: Any) -> dict[str, Any]:
    """Return filters as a snake_case dict, dropping empty values.

    Accepts a mapping or a pydantic model. Anything else is treated as no
    filter at all.
    """
    if filters is None:
        return {}
    if hasattr(filters, "model_dump"):
        filters = filters.model_dump(exclude_none=True)
    if not isinstance(filters, Mapping):
        logger.debug("Ignoring non-mapping filter spec: %r", filters)
        return {}

    normalized: dict[str, Any] = {}
    for key, value in filters.items():
        if value is None or value == "" or value == []:
            continue
        normalized[_ALIASES.get(key, key)] = value
    return normalized


def has_active_filters(filters: Any) -> bool:
    normalized = normalize_filters(filters)
    return any(value != "all" for value in normalized.values())


def _color_code(value: str) -> str:
    text = str(value).strip()
    return _COLOR_NAMES.get(text.lower(), text.upper())


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    if isinstance(value, str):
        return [part for part in re.split(r"[,\s]+", value) if part]
    raise TypeError(f"expected a list, got {type(value).__name__}")


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    match = re.match(r"\s*(-?\d+)", str(value))
    return int(match.group(1)) if match else None


def _check_query(card: Any, value: Any) -> bool:
    match = _IDENTITY_QUERY.search(str(value))
    if not match:
        return True
    allowed = set(match.group(1).upper())
    return set(card.color_identity or []).issubset(allowed)


def _check_colors(card: Any, value: Any) -> bool:
    wanted = {_color_code(color) for color in _as_list(value)}
    if not wanted:
        return True
    card_colors = {_color_code(color) for color in (card.colors or [])}
    card_colors |= {_color_code(color) for color in (card.color_identity or [])}
    return bool(wanted & card_colors)


def _check_color_identity(card: Any, value: Any) -> bool:
    allowed = {_color_code(color) for color in _as_list(value)}
    if not allowed:
        return True
    identity = {_color_code(color) for color in (card.color_identity or [])}
    return identity.issubset(allowed)


def _check_types(card: Any, value: Any) -> bool:
    wanted = [str(item).lower() for item in _as_list(value)]
    if not wanted:
        return True
    type_line = (card.type_line or "").lower()
    return any(item in type_line for item in wanted)


def _check_type_substring(card: Any, value: Any) -> bool:
    return str(value).lower() in (card.type_line or "").lower()


def _check_min_mv(card: Any, value: Any) -> bool:
    return float(card.cmc or 0) >= float(value)


def _check_max_mv(card: Any, value: Any) -> bool:
    return float(card.cmc or 0) <= float(value)


def _check_cmc(card: Any, value: Any) -> bool:
    return float(card.cmc or 0) == float(value)


def _check_format(card: Any, value: Any) -> bool:
    fmt = str(value).lower()
    if fmt == "all":
        return True
    return (card.legalities or {}).get(fmt) == "legal"


def _check_rarities(card: Any, value: Any) -> bool:
    wanted = {str(item).lower() for item in _as_list(value)}
    if not wanted:
        return True
    return (card.rarity or "").lower() in wanted


def _check_rarity(card: Any, value: Any) -> bool:
    rarity = str(value).lower()
    if rarity == "all":
        return True
    return (card.rarity or "").lower() == rarity


def _check_set(card: Any, value: Any) -> bool:
    return (card.set_code or "").lower() == str(value).lower()


def _check_power(card: Any, value: Any) -> bool:
    return _parse_int(card.power) == int(value)


def _check_toughness(card: Any, value: Any) -> bool:
    return _parse_int(card.toughness) == int(value)


def _check_oracle_text(card: Any, value: Any) -> bool:
    return str(value).lower() in (card.oracle_text or "").lower()


FILTER_RULES: tuple[tuple[str, Callable[[Any, Any], bool]], ...] = (
    ("query", _check_query),
    ("colors", _check_colors),
    ("color_identity", _check_color_identity),
    ("types", _check_types),
    ("type", _check_type_substring),
    ("subtype", _check_type_substring),
    ("min_mv", _check_min_mv),
    ("max_mv", _check_max_mv),
    ("cmc", _check_cmc),
    ("format", _check_format),
    ("rarities", _check_rarities),
    ("rarity", _check_rarity),
    ("set", _check_set),
    ("power", _check_power),
    ("toughness", _check_toughness),
    ("oracle_text", _check_oracle_text),
)


def matches(card: Any, filters: Any) -> bool:
    """Return True when ``card`` satisfies every active filter field.

    Never raises. A field that cannot be interpreted is skipped, so the card
    is included rather than dropped.
    """
    spec = normalize_filters(filters)
    if not spec:
        return True

    for name, rule in FILTER_RULES:
        if name not in spec:
            continue
        try:
            if not rule(card, spec[name]):
                return False
        except (TypeError, ValueError, AttributeError) as exc:
            logger.debug("Ignoring malformed filter %s=%r: %s", name, spec[name], exc)
    return True


def query_text(filters: Any) -> str:
    """Free-text part of the search query, with ``id<=`` tokens removed."""
    spec = normalize_filters(filters)
    raw = spec.get("query")
    if not isinstance(raw, str):
        return ""
    return _IDENTITY_QUERY.sub("", raw).strip()


def matches_query_text(card: Any, text: str) -> bool:
    if not text:
        return True
    haystack = " ".join(
        part for part in (card.name, card.type_line, card.oracle_text) if part
    ).lower()
    return all(term in haystack for term in text.lower().split())


def parse_filter_json(raw: Optional[str]) -> Optional[dict[str, Any]]:
    """Decode a JSON filter object; invalid JSON means no filter."""
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring invalid filters JSON: %s", raw)
        return None
    if not isinstance(data, dict):
        logger.warning("Ignoring non-object filters: %s", raw)
        return None
    return data
