"""Rule weight overrides loaded from YAML."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from card_recommender.config import settings

logger = logging.getLogger(__name__)

SECTIONS = ("synergy", "similarity")


@dataclass(frozen=True)
class RuleWeights:
    """Per-rule weight overrides; rules fall back to their built-in weight."""

    synergy: Mapping[str, int] = field(default_factory=dict)
    similarity: Mapping[str, int] = field(default_factory=dict)

    def weight(self, section: str, name: str, default: int) -> int:
        overrides = getattr(self, section, None) or {}
        return int(overrides.get(name, default))


DEFAULT_WEIGHTS = RuleWeights()


def _deep_merge(base: dict[str, Any], incoming: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in incoming.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _parse_section(data: Any, section: str) -> dict[str, int]:
    if not isinstance(data, dict):
        return {}
    weights: dict[str, int] = {}
    for name, value in data.items():
        try:
            weights[str(name)] = int(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring non-numeric %s weight %s=%r", section, name, value)
    return weights


def load_rule_weights(
    config_path: Optional[Path] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> RuleWeights:
    import yaml

    path = config_path or settings.rules_config_path
    data: dict[str, Any] = {}

    if path and Path(path).exists():
        try:
            with Path(path).open("r", encoding="utf-8") as handle:
                loaded = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            logger.warning("Could not parse rule weights at %s: %s", path, exc)
            loaded = {}
        if isinstance(loaded, dict):
            data = loaded

    if overrides:
        data = _deep_merge(data, overrides)

    if not data:
        return DEFAULT_WEIGHTS

    return RuleWeights(**{section: _parse_section(data.get(section), section) for section in SECTIONS})
