"""Export/import codec for sheet snapshot files."""

import json
import logging
import re
from typing import Any, Dict, Optional

from lozsheet.config import EXPORT_EXTENSION, EXPORT_FALLBACK_NAME, EXPORT_VERSION
from lozsheet.errors import ImportFormatError
from lozsheet.models.snapshot import SheetSnapshot, utc_now_iso

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]+')


def build_snapshot(sheet: Dict[str, Any], exported_at: Optional[str] = None) -> SheetSnapshot:
    return SheetSnapshot(
        version=EXPORT_VERSION,
        exported_at=exported_at or utc_now_iso(),
        sheet=dict(sheet),
    )


def dump_snapshot(snapshot: SheetSnapshot) -> str:
    """Pretty-printed JSON text for download or preview."""
    return json.dumps(snapshot.to_json_dict(), indent=2, ensure_ascii=False)


def export_filename(character_name: Any) -> str:
    """'Link' -> 'Link.json'; blank or unusable names -> 'character.json'."""
    name = "" if character_name is None else str(character_name)
    name = _UNSAFE_FILENAME_CHARS.sub("_", name).strip().strip(".")
    return f"{name or EXPORT_FALLBACK_NAME}{EXPORT_EXTENSION}"


def has_export_extension(filename: str) -> bool:
    return str(filename or "").lower().endswith(EXPORT_EXTENSION)


def parse_import(filename: str, text: str) -> Dict[str, Any]:
    """
    Validate an import file and return the character field map.

    Accepts `{"sheet": {...}}`, `{"data": {...}}` or a bare field map.
    Raises ImportFormatError for a wrong extension, invalid JSON or a
    payload that does not resolve to an object.
    """
    if not has_export_extension(filename):
        raise ImportFormatError(f"Please choose a {EXPORT_EXTENSION} file.")

    try:
        parsed = json.loads(text)
    except (ValueError, TypeError) as e:
        logger.debug(f"Import of {filename} is not JSON: {e}")
        raise ImportFormatError("Invalid JSON.") from e

    incoming = parsed
    if isinstance(parsed, dict):
        if parsed.get("sheet") is not None:
            incoming = parsed["sheet"]
        elif parsed.get("data") is not None:
            incoming = parsed["data"]

    if not isinstance(incoming, dict):
        raise ImportFormatError("JSON format not recognized.")
    return incoming
