from lozsheet.models.fields import FieldKind, FieldSpec, SheetField
from lozsheet.models.entities import Action, Feature, InventoryItem, SheetEntity, Spell
from lozsheet.models.snapshot import PersistedRecord, SheetSnapshot
from lozsheet.models.derived import AbilityReading, HeartsReading, PoolReading, SkillReading

__all__ = [
    "FieldKind",
    "FieldSpec",
    "SheetField",
    "SheetEntity",
    "Spell",
    "Action",
    "InventoryItem",
    "Feature",
    "SheetSnapshot",
    "PersistedRecord",
    "PoolReading",
    "HeartsReading",
    "SkillReading",
    "AbilityReading",
]
