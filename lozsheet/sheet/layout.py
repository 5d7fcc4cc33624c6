"""
Sheet layout: every named field the sheet owns, declared once.

Field order matters only for display; restore order is handled by the
engine's two-pass protocol, not by position in this list.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple

from lozsheet.config import PORTRAIT_FIELD
from lozsheet.models.fields import FieldKind, FieldSpec

ABILITIES: Tuple[str, ...] = ("courage", "agility", "wisdom", "wit", "power", "spirit")

# skill slug -> (label, linked ability)
SKILLS: Dict[str, Tuple[str, str]] = {
    "intimidation": ("Intimidation", "courage"),
    "resolve": ("Resolve", "courage"),
    "acrobatics": ("Acrobatics", "agility"),
    "sleight_of_hand": ("Sleight of Hand", "agility"),
    "stealth": ("Stealth", "agility"),
    "insight": ("Insight", "wisdom"),
    "medicine": ("Medicine", "wisdom"),
    "perception": ("Perception", "wisdom"),
    "survival": ("Survival", "wisdom"),
    "crafting": ("Crafting", "wit"),
    "investigation": ("Investigation", "wit"),
    "lore": ("Lore", "wit"),
    "athletics": ("Athletics", "power"),
    "might": ("Might", "power"),
    "arcana": ("Arcana", "spirit"),
    "performance": ("Performance", "spirit"),
    "persuasion": ("Persuasion", "spirit"),
}

PROFICIENCY_FIELD = "prof_bonus"

HP_FIELD = "hp"
HP_MAX_FIELD = "hp_max"
HP_TEMP_FIELD = "hp_temp"

COLLECTION_FIELDS: Tuple[str, ...] = ("spells", "actions", "inventory", "features")


@dataclass(frozen=True)
class PoolFields:
    """Field names backing one ringed resource pool."""
    key: str
    current: str
    max: str
    temp: str

    @property
    def withheld(self) -> Tuple[str, str]:
        """Fields that must wait for max before being restored."""
        return (self.current, self.temp)


POOLS: Dict[str, PoolFields] = {
    "stamina": PoolFields("stamina", "stamina", "stamina_max", "stamina_temp"),
    "mana": PoolFields("mana", "mana", "mana_max", "mana_temp"),
}


def score_field(ability: str) -> str:
    return f"score_{ability}"


def modifier_field(ability: str) -> str:
    return f"mod_{ability}"


def proficiency_field(skill: str) -> str:
    return f"prof_{skill}"


def skill_field(skill: str) -> str:
    return f"skill_{skill}"


def withheld_resource_fields() -> List[str]:
    names: List[str] = []
    for pool in POOLS.values():
        names.extend(pool.withheld)
    return names


def build_field_specs() -> List[FieldSpec]:
    specs: List[FieldSpec] = []

    def add(name, kind=FieldKind.TEXT, label="", group="General", derived=False):
        specs.append(
            FieldSpec(name=name, kind=kind, label=label or name, group=group, derived=derived)
        )

    for name in ("name", "race", "background", "level"):
        add(name, label=name.title(), group="Identity")
    add(PORTRAIT_FIELD, label="Portrait", group="Identity")

    for ability in ABILITIES:
        add(score_field(ability), FieldKind.NUMBER, ability.title(), "Abilities")
        add(modifier_field(ability), FieldKind.TEXT, f"{ability.title()} Mod", "Abilities", True)

    add(PROFICIENCY_FIELD, FieldKind.NUMBER, "Proficiency Bonus", "Skills")
    for skill, (label, _ability) in SKILLS.items():
        add(proficiency_field(skill), FieldKind.BOOLEAN, f"{label} Proficient", "Skills")
        add(skill_field(skill), FieldKind.TEXT, label, "Skills", True)

    add(HP_FIELD, FieldKind.NUMBER, "Hearts", "Vitals")
    add(HP_MAX_FIELD, FieldKind.NUMBER, "Max Hearts", "Vitals")
    add(HP_TEMP_FIELD, FieldKind.NUMBER, "Temp Hearts", "Vitals")

    for pool in POOLS.values():
        title = pool.key.title()
        add(pool.current, FieldKind.RANGE, title, "Vitals")
        add(pool.max, FieldKind.NUMBER, f"Max {title}", "Vitals")
        add(pool.temp, FieldKind.RANGE, f"Temp {title}", "Vitals")

    for name in COLLECTION_FIELDS:
        add(name, label=name.title(), group="Collections")

    add("notes", label="Notes", group="Notes")
    return specs
