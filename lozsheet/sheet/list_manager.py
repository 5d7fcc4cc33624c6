import json
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from lozsheet.errors import ParseError, ValidationError
from lozsheet.models.entities import SheetEntity
from lozsheet.services.status_notifier import StatusNotifier
from lozsheet.sheet.entity_kinds import EntityFilter, EntityKind
from lozsheet.sheet.equipment import classify_equip_type, relevant_attributes
from lozsheet.sheet.field_store import FieldStore

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[str], None]
ConfirmCallback = Callable[[str], bool]


def _always_confirm(message: str) -> bool:
    return True


class ListEntityManager:
    """
    CRUD over a collection of typed records serialized into one text field.

    State machine: Idle (editing_index is None) <-> Editing(index).
    Every structural operation reports back through `on_change` so the
    owner can refresh views and schedule a save; callers never have to.
    """

    def __init__(
        self,
        store: FieldStore,
        kind: EntityKind,
        *,
        notifier: Optional[StatusNotifier] = None,
        confirm: Optional[ConfirmCallback] = None,
        on_change: Optional[ChangeCallback] = None,
    ):
        self.store = store
        self.kind = kind
        self.field_name = kind.key
        self.notifier = notifier or StatusNotifier()
        self.confirm = confirm or _always_confirm
        self.on_change = on_change
        self.editing_index: Optional[int] = None
        self.builder: Dict[str, Any] = self._blank_builder()

    # =========================================================================
    # READ
    # =========================================================================

    def _parse_json(self, raw: str) -> List[Any]:
        try:
            parsed = json.loads(raw)
        except ValueError as e:
            raise ParseError(f"{self.field_name} is not JSON: {e}") from e
        if not isinstance(parsed, list):
            raise ParseError(f"{self.field_name} JSON is not an array")
        return parsed

    def records(self) -> List[Dict[str, Any]]:
        """Stored records as plain dicts, recovering legacy free-text saves."""
        raw = self.store.get_text(self.field_name).strip()
        if not raw:
            return []
        try:
            parsed = self._parse_json(raw)
        except ParseError as e:
            logger.debug(f"Falling back to legacy line parse: {e}")
            return self.kind.legacy_parse(raw)

        result = []
        for item in parsed:
            if isinstance(item, dict):
                result.append(item)
            elif item is not None:
                result.append({"name": str(item)})
        return result

    def list(self) -> List[SheetEntity]:
        return [self.kind.coerce(record) for record in self.records()]

    def __len__(self) -> int:
        return len(self.records())

    def filter(self, predicate: Union[EntityFilter, str, None]) -> List[Tuple[int, SheetEntity]]:
        """
        Pure view selection; indices refer to the backing collection.
        `predicate` is a callable or the name of one of the kind's filters.
        """
        if isinstance(predicate, str) or predicate is None:
            predicate = self.kind.resolve_filter(predicate)
        entries = list(enumerate(self.list()))
        if predicate is None:
            return entries
        return [(idx, entity) for idx, entity in entries if predicate(entity)]

    def view(self, predicate: Union[EntityFilter, str, None] = None) -> Dict[str, Any]:
        """Entries to display plus the placeholder message when there are none."""
        if not self.records():
            return {"entries": [], "message": self.kind.empty_message}
        entries = self.filter(predicate)
        if not entries:
            return {"entries": [], "message": "No entries match this filter."}
        return {"entries": entries, "message": None}

    # =========================================================================
    # WRITE
    # =========================================================================

    def _write(self, records: List[Dict[str, Any]]) -> None:
        text = json.dumps(records, indent=2, ensure_ascii=False)
        self.store.set_value(self.field_name, text, notify=False)

    def _changed(self) -> None:
        if self.on_change:
            self.on_change(self.field_name)

    def _blank_builder(self) -> Dict[str, Any]:
        return {key: "" for key in self.kind.builder_keys()}

    def _canonical_keys(self, candidate: Dict[str, Any]) -> Dict[str, Any]:
        """Accept python attribute names (to_hit) as well as stored ones (toHit)."""
        result = dict(candidate)
        for name, info in self.kind.model.model_fields.items():
            if info.alias and name in result:
                value = result.pop(name)
                result.setdefault(info.alias, value)
        return result

    def _check_index(self, index: int, records: List[Dict[str, Any]]) -> None:
        if not isinstance(index, int) or index < 0 or index >= len(records):
            raise IndexError(f"No {self.field_name} entry at index {index}")

    def add(self, candidate: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Normalize and append. A blank name rejects the add with no state change."""
        candidate = self._canonical_keys(candidate if candidate is not None else self.builder)
        try:
            record = self.kind.normalize(candidate)
        except ValidationError as e:
            self.notifier.status(str(e), "error")
            return {"success": False, "error": str(e), "focus": e.field}

        records = self.records()
        records.append(record)
        self._write(records)
        self._finish_edit()
        self.notifier.status("Added.")
        self._changed()
        return {"success": True, "message": "Added.", "index": len(records) - 1}

    def edit(self, index: int) -> Dict[str, Any]:
        """Enter Editing(index) and load the entry into the builder. Stored data is untouched."""
        records = self.records()
        try:
            self._check_index(index, records)
        except IndexError as e:
            self.notifier.status(str(e), "error")
            return {"success": False, "error": str(e)}

        entity = self.kind.coerce(records[index])
        record = entity.model_dump(by_alias=True)
        self.editing_index = index
        self.builder = {key: record.get(key, "") for key in self.kind.builder_keys()}
        self.notifier.status("Editing entry.")
        self._changed()
        return {"success": True, "message": "Editing entry.", "builder": dict(self.builder)}

    def save(self, candidate: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Merge the builder's attributes onto the stored record being edited.
        Attributes the builder does not know about are kept.
        """
        if self.editing_index is None:
            return {"success": False, "error": "Not editing an entry."}

        candidate = self._canonical_keys(candidate if candidate is not None else self.builder)
        records = self.records()
        try:
            self._check_index(self.editing_index, records)
        except IndexError as e:
            self._finish_edit()
            self.notifier.status(str(e), "error")
            return {"success": False, "error": str(e)}

        stored = records[self.editing_index]
        try:
            record = self.kind.normalize({**stored, **candidate})
        except ValidationError as e:
            self.notifier.status(str(e), "error")
            return {"success": False, "error": str(e), "focus": e.field}

        index = self.editing_index
        records[index] = record
        self._write(records)
        self._finish_edit()
        self.notifier.status("Updated.")
        self._changed()
        return {"success": True, "message": "Updated.", "index": index}

    def submit(self, candidate: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """The add/save control: saves while editing, adds otherwise."""
        if self.editing_index is None:
            return self.add(candidate)
        return self.save(candidate)

    def delete(self, index: int) -> Dict[str, Any]:
        records = self.records()
        try:
            self._check_index(index, records)
        except IndexError as e:
            self.notifier.status(str(e), "error")
            return {"success": False, "error": str(e)}

        if not self.confirm("Remove this entry?"):
            return {"success": False, "cancelled": True}

        del records[index]
        self._write(records)
        if self.editing_index is not None:
            if self.editing_index == index:
                self._finish_edit()
            elif self.editing_index > index:
                self.editing_index -= 1
        self.notifier.status("Removed.")
        self._changed()
        return {"success": True, "message": "Removed."}

    def cancel_edit(self) -> None:
        self._finish_edit()

    def sync(self) -> None:
        """Backing text was replaced wholesale (load/import/reset): leave edit mode."""
        self.editing_index = None

    def _finish_edit(self) -> None:
        self.editing_index = None
        self.builder = self._blank_builder()

    @property
    def is_editing(self) -> bool:
        return self.editing_index is not None


class InventoryManager(ListEntityManager):
    """Inventory adds equip handling on top of the generic collection."""

    def toggle_equipped(self, index: int) -> Dict[str, Any]:
        records = self.records()
        try:
            self._check_index(index, records)
        except IndexError as e:
            self.notifier.status(str(e), "error")
            return {"success": False, "error": str(e)}

        item = self.kind.coerce(records[index])
        if not getattr(item, "equippable", False):
            message = f"{item.name or 'This item'} cannot be equipped."
            self.notifier.status(message, "error")
            return {"success": False, "error": message}

        equipped = not item.equipped
        try:
            records[index] = self.kind.normalize({**records[index], "equipped": equipped})
        except ValidationError as e:
            self.notifier.status(str(e), "error")
            return {"success": False, "error": str(e), "focus": e.field}
        self._write(records)
        message = "Equipped." if equipped else "Unequipped."
        self.notifier.status(message)
        self._changed()
        return {"success": True, "message": message, "equipped": equipped}

    def equipped_summary(self) -> Dict[str, List[SheetEntity]]:
        """Equipped items grouped by equip category (category value -> items)."""
        summary: Dict[str, List[SheetEntity]] = {}
        for item in self.list():
            if not getattr(item, "equipped", False):
                continue
            category = classify_equip_type(getattr(item, "equip_type", ""))
            summary.setdefault(category.value, []).append(item)
        return summary

    def equipped_details(self) -> Dict[str, List[Tuple[str, Dict[str, str]]]]:
        """
        Like `equipped_summary`, but each item is paired with the filled-in
        attributes its equip category shows (damage, armorClass, ...).
        """
        details: Dict[str, List[Tuple[str, Dict[str, str]]]] = {}
        for category, items in self.equipped_summary().items():
            for item in items:
                record = item.to_record()
                shown = {
                    attr: str(record[attr])
                    for attr in relevant_attributes(getattr(item, "equip_type", ""))
                    if record.get(attr)
                }
                details.setdefault(category, []).append((item.name or "", shown))
        return details
