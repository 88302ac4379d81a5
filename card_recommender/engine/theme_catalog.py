"""Closed catalog of strategy themes a card can be classified into."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ThemeDefinition:
    name: str
    category: str


CATEGORY_DESCRIPTIONS = {
    "core": "a core deck archetype that defines how the deck wins",
    "resource": "a resource strategy built around mana, cards or denial",
    "creature": "a creature strategy that gets value from the battlefield",
    "tribal": "a tribal strategy rewarding a shared creature type",
    "graveyard": "a graveyard strategy that uses the graveyard as a resource",
    "spell": "a spell strategy built on instants and sorceries",
    "artifact": "an artifact strategy that leans on artifacts for value",
    "enchantment": "an enchantment strategy built around enchantments",
    "land": "a land strategy that gets value from lands",
    "win_condition": "a way the deck closes out the game",
    "control": "a control element that answers opposing threats",
    "value_engine": "a value engine that finds or draws the right cards",
    "color_identity": "a color identity plan shaping the mana base",
    "synergy_mechanic": "a synergy mechanic that multiplies other effects",
    "multiplayer": "a multiplayer plan for games with several opponents",
}


def _group(category: str, *names: str) -> tuple[ThemeDefinition, ...]:
    return tuple(ThemeDefinition(name=name, category=category) for name in names)


THEME_CATALOG: tuple[ThemeDefinition, ...] = (
    *_group(
        "core",
        "Aggro", "Control", "Midrange", "Combo", "Ramp", "Tempo",
        "Prison", "Stax", "Burn", "Mill", "Reanimator", "Voltron",
    ),
    *_group(
        "resource",
        "Mana Acceleration", "Mana Denial", "Card Advantage", "Hand Disruption",
        "Resource Denial", "Treasure Tokens", "Energy Counters", "Storm",
        "Cascade", "Madness", "Wheel Effects",
    ),
    *_group(
        "creature",
        "Token Generation", "Sacrifice Value", "Aristocrats", "ETB Effects",
        "LTB Effects", "Combat Tricks", "Evasion", "Deathtouch Synergy",
        "Lifegain Synergy", "Counter Manipulation", "+1/+1 Counters",
        "Creature Stealing", "Mass Pump", "Equipment Focus",
    ),
    *_group(
        "tribal",
        "Angels", "Dragons", "Elves", "Goblins", "Zombies", "Vampires", "Humans",
        "Spirits", "Beasts", "Merfolk", "Slivers", "Elementals", "Wizards", "Warriors",
    ),
    *_group(
        "graveyard",
        "Graveyard Recursion", "Self-Mill", "Flashback", "Escape", "Delve",
        "Threshold", "Dredge", "Living Death",
    ),
    *_group(
        "spell",
        "Spellslinger", "Instant Speed", "Counterspells", "Spell Copy", "X-Spells",
        "Cantrips", "Mass Removal", "Targeted Removal", "Protection Spells",
        "Ritual Effects", "Extra Turns",
    ),
    *_group(
        "artifact",
        "Artifacts", "Artifact Ramp", "Artifact Sacrifice", "Modular", "Affinity",
        "Improvise", "Vehicles", "Equipment Tutors", "Scrap Mastery",
    ),
    *_group(
        "enchantment",
        "Enchantment Pillowfort", "Aura Voltron", "Constellation",
        "Enchantment Ramp", "Curse Strategy", "Enchantment Recursion",
    ),
    *_group(
        "land",
        "Landfall", "Land Destruction", "Land Recursion", "Basic Land Focus",
        "Nonbasic Lands", "Land Animation", "Domain", "Threshold Lands",
    ),
    *_group(
        "win_condition",
        "Alternate Win Conditions", "Laboratory Maniac", "Infect", "Commander Damage",
        "Poison Counters", "Mill Victory", "Lifegain Victory", "Token Swarm",
        "Combo Finish", "Beatdown", "Superfriends",
    ),
    *_group(
        "control",
        "Board Wipes", "Spot Removal", "Tap Down", "Bounce Effects", "Exile Effects",
        "Phase Out", "Fog Effects", "Damage Prevention",
    ),
    *_group(
        "value_engine",
        "Draw Engines", "Scry Effects", "Top Deck Manipulation", "Library Tutors",
        "Graveyard Tutors", "Creature Tutors", "Spell Tutors", "Artifact Tutors",
        "Land Tutors", "Enchantment Tutors",
    ),
    *_group(
        "color_identity",
        "Mono Color", "Two Color", "Three Color", "Four Color", "Five Color",
        "Colorless", "Hybrid Mana", "Devotion",
    ),
    *_group(
        "synergy_mechanic",
        "Proliferate", "Doubling Effects", "Copy Effects", "Clones", "Flicker",
        "Blink", "Morph", "Manifest", "Transform", "Meld", "Mutate", "Adventure",
        "Cycling",
    ),
    *_group(
        "multiplayer",
        "Group Hug", "Group Slug", "Politics", "Threat Assessment", "Pillow Fort",
        "Kingmaker", "Table Balance",
    ),
)

_BY_NAME = {theme.name.lower(): theme for theme in THEME_CATALOG}

if len(_BY_NAME) != len(THEME_CATALOG):
    raise RuntimeError("Theme catalog contains duplicate names")


def theme_names() -> list[str]:
    return [theme.name for theme in THEME_CATALOG]


def find_theme(name: Optional[str]) -> Optional[ThemeDefinition]:
    """Case-insensitive exact lookup."""
    if not name:
        return None
    return _BY_NAME.get(name.strip().lower())


def describe_theme(name: str) -> str:
    theme = find_theme(name)
    if theme is None:
        return name
    return f"{theme.name}: {CATEGORY_DESCRIPTIONS[theme.category]}."
