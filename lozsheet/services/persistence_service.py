"""
Persistence controller: autosave, manual save/load, export/import, reset
and portrait updates.

Storage layout:
    STORAGE_KEY          -> {"savedAt": iso, "data": {field: scalar}}  (no portrait)
    PORTRAIT_STORAGE_KEY -> raw portrait data URL (absent = no portrait)

Storage failures never escape this class and never roll back in-memory
state; they surface as rate-limited notices instead.
"""

import json
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from lozsheet.config import (
    EXPORT_VERSION,
    PORTRAIT_FIELD,
    PORTRAIT_STORAGE_KEY,
    STORAGE_KEY,
)
from lozsheet.database.repositories import StorageRepository
from lozsheet.errors import CorruptedSaveError, ImportFormatError, StorageQuotaError
from lozsheet.models.snapshot import PersistedRecord
from lozsheet.services.autosave import AUTOSAVE_DELAY_SECONDS, Debouncer, TimerFactory, _thread_timer
from lozsheet.services.portrait_service import ImageIngestor, NotAnImageError, PortraitIngestor
from lozsheet.services.snapshot_io import (
    build_snapshot,
    dump_snapshot,
    export_filename,
    has_export_extension,
    parse_import,
)
from lozsheet.services.status_notifier import StatusNotifier
from lozsheet.sheet.derived_stats import DerivedStatsEngine
from lozsheet.sheet.field_store import FieldStore

logger = logging.getLogger(__name__)

PRIMARY_FAILURE = "primary"
PORTRAIT_FAILURE = "portrait"

PRIMARY_FAILURE_MESSAGE = (
    "Autosave failed: local storage is full. Your edits are kept for now; export to be safe."
)
PORTRAIT_FAILURE_MESSAGE = (
    "Portrait too large to save locally. The rest of the sheet was saved."
)

RESET_PROMPT = "Reset all fields? (This also replaces your autosaved copy.)"


class PersistenceController:
    def __init__(
        self,
        store: FieldStore,
        engine: DerivedStatsEngine,
        storage: StorageRepository,
        notifier: StatusNotifier,
        *,
        confirm: Optional[Callable[[str], bool]] = None,
        ingestor: Optional[ImageIngestor] = None,
        autosave_delay: float = AUTOSAVE_DELAY_SECONDS,
        timer_factory: TimerFactory = _thread_timer,
    ):
        self.store = store
        self.engine = engine
        self.storage = storage
        self.notifier = notifier
        self.confirm = confirm or (lambda message: True)
        self.ingestor = ingestor or PortraitIngestor()
        self.debouncer = Debouncer(self._autosave, autosave_delay, timer_factory)
        self.write_count = 0
        self._io_lock = threading.RLock()
        self._restored_listeners: List[Callable[[], None]] = []

    def subscribe_restored(self, listener: Callable[[], None]) -> None:
        """Called after the whole sheet was replaced (load, import, reset)."""
        if listener not in self._restored_listeners:
            self._restored_listeners.append(listener)

    # =========================================================================
    # SAVE
    # =========================================================================

    def schedule_save(self) -> None:
        self.debouncer.schedule()

    def flush(self) -> bool:
        return self.debouncer.flush()

    def _autosave(self) -> None:
        self.save_now(announce=False)

    def save_now(self, announce: bool = True) -> Dict[str, Any]:
        """
        Synchronous write of the current sheet, bypassing the debounce.
        The portrait goes to its own key so a huge image cannot block the
        primary record.
        """
        self.debouncer.cancel()
        with self._io_lock:
            return self._save(announce)

    def _save(self, announce: bool) -> Dict[str, Any]:
        data = self.store.read_sheet()
        portrait = data.pop(PORTRAIT_FIELD, "") or ""
        record = PersistedRecord(data=data)
        self.write_count += 1

        primary_ok = self._write(
            PRIMARY_FAILURE,
            PRIMARY_FAILURE_MESSAGE,
            lambda: self.storage.set_item(STORAGE_KEY, json.dumps(record.to_json_dict())),
        )
        if portrait:
            portrait_ok = self._write(
                PORTRAIT_FAILURE,
                PORTRAIT_FAILURE_MESSAGE,
                lambda: self.storage.set_item(PORTRAIT_STORAGE_KEY, portrait),
            )
        else:
            portrait_ok = self._write(
                PORTRAIT_FAILURE,
                PORTRAIT_FAILURE_MESSAGE,
                lambda: self.storage.remove_item(PORTRAIT_STORAGE_KEY),
            )

        if announce and primary_ok:
            self.notifier.status("Saved.")
        logger.debug(f"Saved sheet (primary={primary_ok}, portrait={portrait_ok})")
        return {"success": primary_ok and portrait_ok, "primary": primary_ok, "portrait": portrait_ok}

    def _write(self, failure_class: str, message: str, operation: Callable[[], None]) -> bool:
        try:
            operation()
            return True
        except StorageQuotaError as e:
            logger.warning(f"Storage write refused ({failure_class}): {e}")
        except sqlite3.Error as e:
            logger.error(f"Storage write failed ({failure_class}): {e}")
        self.notifier.notify_failure(failure_class, message)
        return False

    # =========================================================================
    # LOAD
    # =========================================================================

    def read_saved(self) -> Optional[Dict[str, Any]]:
        """
        The last persisted field map with the portrait merged back in,
        or None when nothing was saved. Raises CorruptedSaveError.
        """
        try:
            raw = self.storage.get_item(STORAGE_KEY)
            portrait = self.storage.get_item(PORTRAIT_STORAGE_KEY)
        except sqlite3.Error as e:
            raise CorruptedSaveError(f"Cannot read saved data: {e}") from e

        if raw is None:
            return None
        try:
            record = PersistedRecord.model_validate(json.loads(raw))
        except (ValueError, PydanticValidationError) as e:
            raise CorruptedSaveError(f"Saved record is unreadable: {e}") from e

        data = dict(record.data)
        if portrait:
            data[PORTRAIT_FIELD] = portrait
        return data

    def load(self, announce: bool = True) -> Dict[str, Any]:
        try:
            data = self.read_saved()
        except CorruptedSaveError as e:
            logger.error(str(e))
            self.notifier.status("Save data corrupted.", "error")
            return {"success": False, "error": "Save data corrupted."}

        if data is None:
            if announce:
                self.notifier.status("Nothing saved yet.")
            return {"success": False, "reason": "empty"}

        self.debouncer.cancel()
        self._apply(data)
        if announce:
            self.notifier.status("Loaded.")
        return {"success": True}

    def load_at_startup(self) -> Dict[str, Any]:
        """Silent restore of the last autosave; a missing save is not an error."""
        return self.load(announce=False)

    def _apply(self, data: Dict[str, Any]) -> None:
        self.engine.restore(data)
        for listener in list(self._restored_listeners):
            listener()

    # =========================================================================
    # EXPORT / IMPORT
    # =========================================================================

    def export_preview(self) -> str:
        """Live preview of the export payload (no timestamp)."""
        payload = {"version": EXPORT_VERSION, "sheet": self.store.read_sheet()}
        return json.dumps(payload, indent=2, ensure_ascii=False)

    def export_snapshot(self) -> Tuple[str, str]:
        """(file name, pretty JSON text) for the current sheet, portrait included."""
        sheet = self.store.read_sheet()
        text = dump_snapshot(build_snapshot(sheet))
        return export_filename(sheet.get("name")), text

    def export_to(self, directory: Union[str, Path]) -> Dict[str, Any]:
        filename, text = self.export_snapshot()
        path = Path(directory) / filename
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            logger.error(f"Export to {path} failed: {e}")
            self.notifier.status("Export failed.", "error")
            return {"success": False, "error": str(e)}
        self.notifier.status("Exported JSON.")
        return {"success": True, "path": str(path)}

    def import_text(self, filename: str, text: str) -> Dict[str, Any]:
        """
        Replace the sheet with an imported snapshot, then persist at once so
        the autosave store matches what was imported.
        """
        try:
            incoming = parse_import(filename, text)
        except ImportFormatError as e:
            self.notifier.status(str(e), "error")
            return {"success": False, "error": str(e)}

        self.debouncer.cancel()
        self._apply(incoming)
        self.notifier.status("Imported.")
        saved = self.save_now(announce=False)
        return {"success": True, "saved": saved["success"]}

    def import_file(self, path: Union[str, Path]) -> Dict[str, Any]:
        path = Path(path)
        if not has_export_extension(path.name):
            # Reject before touching the file at all.
            return self.import_text(path.name, "")
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            self.notifier.status("Invalid JSON.", "error")
            return {"success": False, "error": "Invalid JSON."}
        except OSError as e:
            logger.error(f"Cannot read import file {path}: {e}")
            self.notifier.status("Could not read file.", "error")
            return {"success": False, "error": str(e)}
        return self.import_text(path.name, text)

    # =========================================================================
    # RESET / PORTRAIT
    # =========================================================================

    def reset(self) -> Dict[str, Any]:
        if not self.confirm(RESET_PROMPT):
            return {"success": False, "cancelled": True}
        self.debouncer.cancel()
        self._apply({})
        self.notifier.status("Reset.")
        self.save_now(announce=False)
        return {"success": True}

    def update_portrait(self, source: Union[str, Path]) -> Dict[str, Any]:
        try:
            data_url = self.ingestor.ingest(source)
        except NotAnImageError:
            self.notifier.status("Please choose an image.", "error")
            return {"success": False, "error": "Please choose an image."}
        except OSError as e:
            logger.error(f"Portrait read failed for {source}: {e}")
            self.notifier.status("Failed to load image.", "error")
            return {"success": False, "error": "Failed to load image."}

        if not data_url:
            self.notifier.status("Failed to load image.", "error")
            return {"success": False, "error": "Failed to load image."}

        self.store.set_value(PORTRAIT_FIELD, data_url, notify=False)
        self.notifier.status("Portrait updated.")
        saved = self.save_now(announce=False)
        return {"success": True, "saved": saved["success"]}
