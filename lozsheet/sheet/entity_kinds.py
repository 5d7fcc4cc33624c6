"""
Per-collection entity definitions: model, canonicalization, legacy line
parsing and view filters. A ListEntityManager is parameterized by one of
these.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Type

from pydantic import ValidationError as PydanticValidationError

from lozsheet.errors import ValidationError
from lozsheet.models.entities import Action, Feature, InventoryItem, SheetEntity, Spell

logger = logging.getLogger(__name__)

EntityFilter = Callable[[SheetEntity], bool]

_LEGACY_SPELL_SEPARATOR = re.compile(r"\s+—\s+")


def _legacy_lines(raw: str) -> List[str]:
    return [line.strip() for line in re.split(r"\r?\n", raw or "") if line.strip()]


def legacy_names(raw: str) -> List[Dict[str, Any]]:
    """One bare-name record per non-blank line."""
    return [{"name": line} for line in _legacy_lines(raw)]


def legacy_spells(raw: str) -> List[Dict[str, Any]]:
    """
    Old spell lists were typed as `Name — Time — Range — Effect`.
    A line without separators keeps its whole text as name and effect.
    """
    records = []
    for line in _legacy_lines(raw):
        parts = _LEGACY_SPELL_SEPARATOR.split(line)
        name = parts[0] if parts else ""
        records.append({
            "name": name,
            "time": parts[1] if len(parts) > 1 else "",
            "range": parts[2] if len(parts) > 2 else "",
            "effect": parts[3] if len(parts) > 3 else ("" if len(parts) > 1 else line),
        })
    return records


def _action_kind_is(kind: str) -> EntityFilter:
    return lambda entity: str(getattr(entity, "kind", "")).lower() == kind


ACTION_FILTERS: Dict[str, EntityFilter] = {
    "attack": _action_kind_is("attack"),
    "action": _action_kind_is("action"),
    "bonus": _action_kind_is("bonus action"),
    "reaction": _action_kind_is("reaction"),
    "other": _action_kind_is("other"),
}


@dataclass
class EntityKind:
    key: str
    model: Type[SheetEntity]
    legacy_parse: Callable[[str], List[Dict[str, Any]]] = legacy_names
    filters: Dict[str, EntityFilter] = field(default_factory=dict)
    empty_message: str = "No entries yet."

    def build(self, raw: Dict[str, Any]) -> SheetEntity:
        """Validated construction; raises ValidationError when the name is blank."""
        try:
            return self.model.model_validate(raw or {})
        except PydanticValidationError as e:
            messages = [err.get("msg", "") for err in e.errors()]
            failed_field = "name"
            for err in e.errors():
                loc = err.get("loc") or ()
                if loc:
                    failed_field = str(loc[0])
                    break
            raise ValidationError(
                "Name is required." if failed_field == "name" else "; ".join(messages),
                field=failed_field,
            ) from e

    def coerce(self, raw: Any) -> SheetEntity:
        """
        Lenient construction for records already in storage: anything that
        fails validation is still listed rather than dropped.
        """
        if isinstance(raw, str):
            raw = {"name": raw}
        if not isinstance(raw, dict):
            raw = {"name": str(raw)}
        try:
            return self.build(raw)
        except ValidationError as e:
            logger.warning(f"Stored {self.key} entry failed validation ({e}); listing as-is")
            return self.model.model_construct(**raw)

    def normalize(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        return self.build(raw).to_record()

    def builder_keys(self) -> List[str]:
        """Attribute names a builder form exposes, in stored spelling."""
        keys = []
        for name, info in self.model.model_fields.items():
            keys.append(info.alias or name)
        return keys

    def resolve_filter(self, name: Optional[str]) -> Optional[EntityFilter]:
        if not name or name == "all":
            return None
        return self.filters.get(name)


SPELLS = EntityKind(
    key="spells",
    model=Spell,
    legacy_parse=legacy_spells,
    empty_message="No spells added yet. Use the builder above, then + Add.",
)

ACTIONS = EntityKind(
    key="actions",
    model=Action,
    filters=ACTION_FILTERS,
    empty_message="No actions yet. Use the builder above, then + Add.",
)

INVENTORY = EntityKind(
    key="inventory",
    model=InventoryItem,
    empty_message="No items yet. Use the builder above, then + Add.",
)

FEATURES = EntityKind(
    key="features",
    model=Feature,
    empty_message="No features yet. Use the builder above, then + Add.",
)

ENTITY_KINDS: Dict[str, EntityKind] = {
    kind.key: kind for kind in (SPELLS, ACTIONS, INVENTORY, FEATURES)
}
