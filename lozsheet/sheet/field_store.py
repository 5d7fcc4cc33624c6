import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from lozsheet.models.fields import FieldKind, FieldSpec, SheetField
from lozsheet.prefabs import coerce_bool, coerce_int, get_prefab, is_blank, validate_value

logger = logging.getLogger(__name__)

FieldListener = Callable[[str], None]


class FieldStore:
    """
    Owns every named scalar field of the sheet.

    User-facing writes go through `set_value`, which coerces by kind and
    notifies subscribers. Engine and restore writes pass `notify=False`
    so recomputes never re-enter the change pipeline.
    """

    def __init__(self, specs: Iterable[FieldSpec]):
        self._specs: Dict[str, FieldSpec] = {}
        self._fields: Dict[str, SheetField] = {}
        self._listeners: List[FieldListener] = []

        for spec in specs:
            if spec.name in self._specs:
                raise ValueError(f"Duplicate field name: {spec.name}")
            self._specs[spec.name] = spec
            field = SheetField(name=spec.name, kind=spec.kind)
            if spec.kind == FieldKind.RANGE:
                # Bounds are unknown until the engine's first recompute.
                field.max = 0
            field.value = get_prefab(spec.kind).default
            self._fields[spec.name] = field

    # --- Enumeration ---

    def list_fields(self) -> List[SheetField]:
        return list(self._fields.values())

    def names(self) -> List[str]:
        return list(self._fields.keys())

    def has(self, name: str) -> bool:
        return name in self._fields

    def spec(self, name: str) -> FieldSpec:
        return self._specs[name]

    def get(self, name: str) -> SheetField:
        try:
            return self._fields[name]
        except KeyError:
            raise KeyError(f"Unknown sheet field: {name}") from None

    # --- Typed accessors ---

    def get_value(self, name: str) -> Any:
        return self.get(name).value

    def get_int(self, name: str) -> int:
        return coerce_int(self.get(name).value)

    def get_bool(self, name: str) -> bool:
        return coerce_bool(self.get(name).value)

    def get_text(self, name: str) -> str:
        value = self.get(name).value
        return "" if value is None else str(value)

    def is_blank(self, name: str) -> bool:
        return is_blank(self.get(name).value)

    # --- Mutation ---

    def set_value(self, name: str, value: Any, *, notify: bool = True) -> Any:
        """Coerce and assign. Returns the value actually stored."""
        field = self.get(name)
        field.value = validate_value(field, value)
        if notify:
            self._emit(name)
        return field.value

    def set_bounds(
        self,
        name: str,
        *,
        maximum: Optional[int] = None,
        minimum: Optional[int] = None,
        disabled: Optional[bool] = None,
    ) -> SheetField:
        """Update a range field's live bounds; the current value is re-clamped."""
        field = self.get(name)
        if field.kind != FieldKind.RANGE:
            raise TypeError(f"Field {name} is not a range field")
        if minimum is not None:
            field.min = minimum
        if maximum is not None:
            field.max = maximum
        if disabled is not None:
            field.disabled = disabled
        field.value = validate_value(field, field.value)
        return field

    # --- Whole-sheet access ---

    def read_sheet(self) -> Dict[str, Any]:
        """Snapshot of every field as JSON scalars (blank numbers become "")."""
        data: Dict[str, Any] = {}
        for name, field in self._fields.items():
            value = field.value
            if field.kind == FieldKind.NUMBER and value is None:
                value = ""
            data[name] = value
        return data

    def write_sheet(self, data: Dict[str, Any], *, skip: Iterable[str] = ()) -> None:
        """
        Assign every field from `data`; fields missing from `data` are reset
        to blank. Fields named in `skip` are left untouched. No notifications.
        """
        skipped = set(skip)
        data = data or {}
        for name in self._fields:
            if name in skipped:
                continue
            self.set_value(name, data.get(name), notify=False)

    # --- Observers ---

    def subscribe(self, listener: FieldListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: FieldListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, name: str) -> None:
        logger.debug(f"Field changed: {name}")
        for listener in list(self._listeners):
            listener(name)
