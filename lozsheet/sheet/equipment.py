"""
Equip classification for inventory items.

A free-form `equipType` tag maps to one of six equip categories. The
category decides which optional attributes matter for an item and which
controlled vocabulary of properties is offered for it.
"""

from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Tuple

from lozsheet.prefabs.validators import validate_tags


class EquipCategory(str, Enum):
    WEAPON = "weapon"
    AMMO = "ammo"
    ARMOR = "armor"
    SHIELD = "shield"
    FOCUS = "focus"
    GEAR = "gear"


EQUIP_TYPES: Dict[EquipCategory, FrozenSet[str]] = {
    EquipCategory.WEAPON: frozenset({
        "weapon", "melee weapon", "ranged weapon", "sword", "longsword",
        "shortsword", "greatsword", "dagger", "knife", "axe", "greataxe",
        "spear", "halberd", "hammer", "mace", "club", "staff", "whip",
        "bow", "longbow", "shortbow", "crossbow", "slingshot", "sling",
        "boomerang", "hookshot",
    }),
    EquipCategory.AMMO: frozenset({
        "ammo", "ammunition", "arrow", "arrows", "bolt", "bolts", "bomb",
        "bombs", "bullet", "bullets", "seed", "seeds", "deku seeds",
    }),
    EquipCategory.ARMOR: frozenset({
        "armor", "armour", "light armor", "medium armor", "heavy armor",
        "tunic", "clothing", "robe", "mail", "chainmail", "helmet", "helm",
        "boots", "gauntlets", "greaves",
    }),
    EquipCategory.SHIELD: frozenset({
        "shield", "buckler", "tower shield", "kite shield",
    }),
    EquipCategory.FOCUS: frozenset({
        "focus", "arcane focus", "holy symbol", "wand", "rod", "orb",
        "tome", "instrument", "ocarina", "harp", "medallion",
    }),
    EquipCategory.GEAR: frozenset({
        "gear", "adventuring gear", "tool", "tools", "kit", "consumable",
        "potion", "food", "trinket", "key item", "misc", "other",
    }),
}

# Attributes that are meaningful (shown, edited) for each category.
RELEVANT_ATTRIBUTES: Dict[EquipCategory, Tuple[str, ...]] = {
    EquipCategory.WEAPON: ("damage", "range", "properties"),
    EquipCategory.AMMO: ("damage", "range", "properties"),
    EquipCategory.ARMOR: ("armorClass", "properties"),
    EquipCategory.SHIELD: ("armorClass", "properties"),
    EquipCategory.FOCUS: ("range", "properties"),
    EquipCategory.GEAR: (),
}

PROPERTY_VOCABULARY: Dict[EquipCategory, Tuple[str, ...]] = {
    EquipCategory.WEAPON: (
        "Ammunition", "Finesse", "Heavy", "Light", "Loading", "Reach",
        "Thrown", "Two-Handed", "Versatile", "Magical",
    ),
    EquipCategory.AMMO: ("Magical", "Explosive", "Elemental", "Silvered"),
    EquipCategory.ARMOR: ("Stealth Disadvantage", "Heavy", "Magical", "Resistance"),
    EquipCategory.SHIELD: ("Heavy", "Magical", "Reflective"),
    EquipCategory.FOCUS: ("Arcane", "Divine", "Nature", "Magical"),
    EquipCategory.GEAR: (),
}

_LOOKUP: Dict[str, EquipCategory] = {
    tag: category for category, tags in EQUIP_TYPES.items() for tag in tags
}


def classify_equip_type(equip_type) -> EquipCategory:
    """Map a free-form equip type to its category; unknown or blank -> gear."""
    if equip_type is None:
        return EquipCategory.GEAR
    key = " ".join(str(equip_type).strip().lower().split())
    return _LOOKUP.get(key, EquipCategory.GEAR)


def relevant_attributes(equip_type) -> Tuple[str, ...]:
    return RELEVANT_ATTRIBUTES[classify_equip_type(equip_type)]


def property_options(equip_type) -> Tuple[str, ...]:
    return PROPERTY_VOCABULARY[classify_equip_type(equip_type)]


def all_property_terms() -> List[str]:
    terms: List[str] = []
    for vocab in PROPERTY_VOCABULARY.values():
        for term in vocab:
            if term not in terms:
                terms.append(term)
    return terms


def normalize_properties(value, equip_type=None) -> str:
    """
    Canonical comma list of properties for an item.

    Known terms take their vocabulary spelling (the item's own category
    first, then any category); unknown terms are kept as typed.
    """
    vocabulary: Iterable[str] = list(property_options(equip_type)) + all_property_terms()
    return validate_tags(value, vocabulary)
