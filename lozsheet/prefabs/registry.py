"""
Prefab Registry
===============
Maps each field kind to its coercion rule and the value a blank field holds.
The FieldStore routes every assignment through here, so kind-specific
behaviour (checkbox truthiness, range clamping) lives in one place.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict

from lozsheet.models.fields import FieldKind, SheetField
from lozsheet.prefabs.validators import (
    clamp,
    coerce_bool,
    coerce_int,
    coerce_number,
    coerce_text,
)


def _validate_text(value: Any, field: SheetField) -> str:
    return coerce_text(value)


def _validate_number(value: Any, field: SheetField):
    return coerce_number(value)


def _validate_bool(value: Any, field: SheetField) -> bool:
    return coerce_bool(value)


def _validate_range(value: Any, field: SheetField) -> int:
    # Silent clamp against the bounds in force *now*; callers restoring
    # saved values must establish the max first.
    upper = field.max if field.max is not None else coerce_int(value)
    return clamp(coerce_int(value), field.min, max(field.min, upper))


@dataclass
class Prefab:
    """
    A prefab bundles coercion and the blank default for a field kind.

    Attributes:
        kind: The field kind it serves
        validate: Function (value, field) -> corrected value
        default: Value a blank field holds
    """
    kind: FieldKind
    validate: Callable[[Any, SheetField], Any]
    default: Any


PREFABS: Dict[FieldKind, Prefab] = {
    FieldKind.TEXT: Prefab(
        kind=FieldKind.TEXT,
        validate=_validate_text,
        default="",
    ),
    FieldKind.NUMBER: Prefab(
        kind=FieldKind.NUMBER,
        validate=_validate_number,
        default=None,
    ),
    FieldKind.BOOLEAN: Prefab(
        kind=FieldKind.BOOLEAN,
        validate=_validate_bool,
        default=False,
    ),
    FieldKind.RANGE: Prefab(
        kind=FieldKind.RANGE,
        validate=_validate_range,
        default=0,
    ),
}


def get_prefab(kind: FieldKind) -> Prefab:
    return PREFABS[FieldKind(kind)]


def validate_value(field: SheetField, value: Any) -> Any:
    """Coerce `value` for assignment into `field`."""
    if value is None:
        return get_prefab(field.kind).default
    return get_prefab(field.kind).validate(value, field)
