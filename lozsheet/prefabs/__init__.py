"""
Prefabs Package
===============
Coercion building blocks for character sheet fields.

Each prefab bundles:
- Coercion rule (text / number / checkbox / bounded range)
- Default value for a blank field
- Widget hint (rendering)

Also includes the pure arithmetic used by the derived-stats engine.
"""

from lozsheet.prefabs.registry import (
    Prefab,
    PREFABS,
    get_prefab,
    validate_value,
)

from lozsheet.prefabs.validators import (
    is_blank,
    coerce_int,
    coerce_number,
    coerce_bool,
    coerce_text,
    clean_text,
    clamp,
    clamp_ratio,
    ability_modifier,
    format_bonus,
    validate_compound,
    validate_pool,
    pool_ratios,
    validate_tags,
)

__all__ = [
    # Registry
    "Prefab",
    "PREFABS",
    "get_prefab",
    "validate_value",

    # Validators
    "is_blank",
    "coerce_int",
    "coerce_number",
    "coerce_bool",
    "coerce_text",
    "clean_text",
    "clamp",
    "clamp_ratio",
    "ability_modifier",
    "format_bonus",
    "validate_compound",
    "validate_pool",
    "pool_ratios",
    "validate_tags",
]
