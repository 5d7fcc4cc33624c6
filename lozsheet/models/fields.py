from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class FieldKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    RANGE = "range"


class FieldSpec(BaseModel):
    """Static declaration of one sheet field."""

    name: str = Field(..., description="Unique field name, e.g. 'stamina_max'.")
    kind: FieldKind = FieldKind.TEXT
    label: str = ""
    group: str = Field("General", description="Section header for display.")
    derived: bool = Field(
        False, description="Engine-written; user edits are overwritten on recompute."
    )


class SheetField(BaseModel):
    """
    Live value of a field for the page session.

    Range fields carry mutable bounds: assignments are clamped to the
    bounds in force at assignment time, exactly like a native range input.
    """

    name: str
    kind: FieldKind
    value: Any = None
    min: int = 0
    max: Optional[int] = None
    disabled: bool = False
