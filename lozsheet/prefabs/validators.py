"""
Prefab Validators
=================
Pure functions that coerce and correct sheet values.
Each function takes raw input (whatever a widget, a save file or an
import handed over) and returns a corrected value.
No exceptions raised - always return a sensible default on bad input.
"""

import math
import re
from typing import Any, Dict, Iterable, List, Optional

_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")

TRUTHY_STRINGS = ("1", "true", "yes", "on")

DEFAULT_ABILITY_SCORE = 10


# =============================================================================
# SCALAR COERCION
# =============================================================================


def is_blank(value: Any) -> bool:
    """True for None and whitespace-only strings."""
    return value is None or (isinstance(value, str) and not value.strip())


def coerce_int(value: Any) -> int:
    """
    Leading-integer parse with a 0 fallback.

    Mirrors the sheet's historical parseInt behaviour:
    "12" -> 12, " -3 " -> -3, "12abc" -> 12, "abc" -> 0, "" -> 0.
    Floats are truncated toward zero; NaN/inf and unconvertibly long
    digit runs become 0.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        return int(value)

    match = _INT_PREFIX.match(str(value))
    if not match:
        return 0
    try:
        return int(match.group(1))
    except ValueError:
        # Past the interpreter's digit limit; treated like an infinite parse.
        return 0


def coerce_number(value: Any) -> Optional[int]:
    """Numeric coercion that keeps blanks blank (None)."""
    if is_blank(value):
        return None
    return coerce_int(value)


def coerce_bool(value: Any) -> bool:
    """
    Checkbox coercion.
    "1"/"true"/"yes"/"on" (any case) -> True, anything else -> False.
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in TRUTHY_STRINGS


def coerce_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def clean_text(value: Any) -> str:
    """Text coercion plus trimming, used for entity attributes."""
    return coerce_text(value).strip()


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def clamp_ratio(value: float) -> float:
    return max(0.0, min(1.0, value))


# =============================================================================
# DERIVED VALUES
# =============================================================================


def ability_modifier(score: Any) -> int:
    """floor((score - 10) / 2); a blank score counts as 10."""
    if is_blank(score):
        return 0
    return (coerce_int(score) - DEFAULT_ABILITY_SCORE) // 2


def format_bonus(value: int) -> str:
    """Signed display: 3 -> '+3', 0 -> '+0', -1 -> '-1'."""
    return f"+{value}" if value >= 0 else str(value)


def validate_compound(value: Any, config: Optional[Dict[str, Any]] = None) -> Dict[str, int]:
    """
    Validate a compound value (score + derived modifier).

    Returns:
        {"score": int, "mod": int}
    """
    config = config or {}
    default_score = config.get("default", DEFAULT_ABILITY_SCORE)

    if isinstance(value, dict):
        value = value.get("score", value.get("value"))

    score = default_score if is_blank(value) else coerce_int(value)
    return {"score": score, "mod": (score - DEFAULT_ABILITY_SCORE) // 2}


# =============================================================================
# RESOURCE VALIDATORS
# =============================================================================


def validate_pool(current: Any, maximum: Any, temp: Any) -> Dict[str, Any]:
    """
    Validate a ringed resource pool (stamina, mana).

    Each ring holds half of max. Temporary points are only allowed once
    the pool is full, and never exceed one ring.

    Returns:
        {"current", "max", "temp", "ring_cap", "temp_allowed"}
    """
    max_val = max(0, coerce_int(maximum))
    ring_cap = max(0, math.floor(max_val * 0.5))

    cur = clamp(coerce_int(current), 0, max_val)

    temp_allowed = max_val > 0 and cur >= max_val
    tmp = clamp(coerce_int(temp), 0, ring_cap) if temp_allowed else 0

    return {
        "current": cur,
        "max": max_val,
        "temp": tmp,
        "ring_cap": ring_cap,
        "temp_allowed": temp_allowed,
    }


def pool_ratios(current: int, temp: int, ring_cap: int) -> Dict[str, float]:
    """First half-ring, second half-ring and temp ring fill fractions."""
    if ring_cap <= 0:
        return {"p1": 0.0, "p2": 0.0, "t": 0.0}
    return {
        "p1": clamp_ratio(current / ring_cap),
        "p2": clamp_ratio((current - ring_cap) / ring_cap),
        "t": clamp_ratio(temp / ring_cap),
    }


# =============================================================================
# CONTAINER VALIDATORS
# =============================================================================


def validate_tags(value: Any, vocabulary: Iterable[str] = ()) -> str:
    """
    Canonicalize a comma list: trimmed, de-duplicated case-insensitively,
    first occurrence wins, known vocabulary spelling preferred.

    Accepts a comma string or a list; returns "A, B, C".
    """
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        parts = [coerce_text(item) for item in value if item is not None]
    else:
        parts = coerce_text(value).split(",")

    canonical = {term.lower(): term for term in vocabulary}
    seen = set()
    result: List[str] = []
    for part in parts:
        tag = part.strip()
        if not tag:
            continue
        key = tag.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(canonical.get(key, tag))
    return ", ".join(result)
