from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from lozsheet.config import EXPORT_VERSION


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class SheetSnapshot(BaseModel):
    """Canonical export/import payload."""

    model_config = ConfigDict(populate_by_name=True)

    version: int = EXPORT_VERSION
    exported_at: Optional[str] = Field(None, alias="exportedAt")
    sheet: Dict[str, Any] = Field(default_factory=dict)

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class PersistedRecord(BaseModel):
    """Primary autosave record. The portrait is stored under its own key."""

    model_config = ConfigDict(populate_by_name=True)

    saved_at: str = Field(default_factory=utc_now_iso, alias="savedAt")
    data: Dict[str, Any] = Field(default_factory=dict)

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
