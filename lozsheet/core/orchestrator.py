"""
Top-level wiring of the sheet state engine.

Components are built bottom-up (store -> engine -> notifier -> managers
-> persistence) and connected through observer registration, so no
component ever holds a placeholder for something built later.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from lozsheet.config import SheetConfig
from lozsheet.database.db_manager import DBManager
from lozsheet.services.autosave import TimerFactory, _thread_timer
from lozsheet.services.persistence_service import PersistenceController
from lozsheet.services.portrait_service import ImageIngestor
from lozsheet.services.status_notifier import StatusNotifier
from lozsheet.sheet.derived_stats import DerivedStatsEngine
from lozsheet.sheet.entity_kinds import ENTITY_KINDS, INVENTORY
from lozsheet.sheet.field_store import FieldStore
from lozsheet.sheet.layout import COLLECTION_FIELDS, build_field_specs
from lozsheet.sheet.list_manager import InventoryManager, ListEntityManager

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[str], bool]


@dataclass
class SheetState:
    """Everything one open sheet owns, passed around explicitly."""
    store: FieldStore
    engine: DerivedStatsEngine
    notifier: StatusNotifier
    persistence: PersistenceController
    managers: Dict[str, ListEntityManager] = field(default_factory=dict)
    action_filter: str = "all"


class SheetOrchestrator:
    def __init__(
        self,
        config: Optional[SheetConfig] = None,
        *,
        db: Optional[DBManager] = None,
        confirm: Optional[ConfirmCallback] = None,
        timer_factory: TimerFactory = _thread_timer,
        clock: Optional[Callable[[], float]] = None,
        ingestor: Optional[ImageIngestor] = None,
    ):
        self.config = config or SheetConfig()
        self._owns_db = db is None
        if db is None:
            db = DBManager(self.config.db_path, storage_quota=self.config.storage_quota)
        if db.conn is None:
            db.open()
        db.create_tables()
        self.db = db

        store = FieldStore(build_field_specs())
        engine = DerivedStatsEngine(store)
        notifier = StatusNotifier(
            notice_interval=self.config.notice_interval,
            clock=clock or time.monotonic,
        )

        persistence = PersistenceController(
            store,
            engine,
            db.storage,
            notifier,
            confirm=confirm,
            ingestor=ingestor,
            autosave_delay=self.config.autosave_delay,
            timer_factory=timer_factory,
        )

        managers: Dict[str, ListEntityManager] = {}
        for key in COLLECTION_FIELDS:
            manager_cls = InventoryManager if key == INVENTORY.key else ListEntityManager
            managers[key] = manager_cls(
                store,
                ENTITY_KINDS[key],
                notifier=notifier,
                confirm=confirm,
                on_change=self._on_entities_changed,
            )

        self.state = SheetState(
            store=store,
            engine=engine,
            notifier=notifier,
            persistence=persistence,
            managers=managers,
        )

        store.subscribe(self._on_field_changed)
        persistence.subscribe_restored(self._on_sheet_restored)

        # Establish range bounds before anything is restored into them.
        engine.recompute_all()

    # --- Shortcuts ---

    @property
    def store(self) -> FieldStore:
        return self.state.store

    @property
    def engine(self) -> DerivedStatsEngine:
        return self.state.engine

    @property
    def notifier(self) -> StatusNotifier:
        return self.state.notifier

    @property
    def persistence(self) -> PersistenceController:
        return self.state.persistence

    def manager(self, key: str) -> ListEntityManager:
        try:
            return self.state.managers[key]
        except KeyError:
            raise KeyError(f"Unknown collection: {key}") from None

    # --- Lifecycle ---

    def start(self) -> Dict[str, Any]:
        outcome = self.persistence.load_at_startup()
        logger.info(f"Sheet ready (restored={outcome.get('success', False)})")
        return outcome

    def close(self) -> None:
        """Write any pending autosave, then release storage."""
        self.persistence.flush()
        if self._owns_db:
            self.db.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # --- Change pipeline ---

    def _on_field_changed(self, name: str) -> None:
        self.engine.on_field_changed(name)
        if name in self.state.managers:
            # The raw collection text was replaced by hand.
            self.state.managers[name].sync()
        self.persistence.schedule_save()

    def _on_entities_changed(self, field_name: str) -> None:
        logger.debug(f"{field_name} collection changed")
        self.persistence.schedule_save()

    def _on_sheet_restored(self) -> None:
        for manager in self.state.managers.values():
            manager.sync()

    # --- User operations ---

    def set_field(self, name: str, value: Any) -> Dict[str, Any]:
        if not self.store.has(name):
            message = f"Unknown field: {name}"
            self.notifier.status(message, "error")
            return {"success": False, "error": message}
        if self.store.spec(name).derived:
            message = f"{name} is calculated and cannot be edited."
            self.notifier.status(message, "error")
            return {"success": False, "error": message}
        if self.store.get(name).disabled:
            message = f"{name} is unavailable right now."
            self.notifier.status(message, "error")
            return {"success": False, "error": message}
        stored = self.store.set_value(name, value)
        # Pool recompute may clamp the value further.
        return {"success": True, "value": self.store.get_value(name), "assigned": stored}

    def set_action_filter(self, name: Optional[str]) -> str:
        """Unknown filter names fall back to showing everything."""
        actions = self.manager("actions")
        if not name or actions.kind.resolve_filter(name) is None:
            name = "all"
        self.state.action_filter = name
        return name

    def visible_actions(self) -> Dict[str, Any]:
        return self.manager("actions").view(self.state.action_filter)

    def summary(self) -> Dict[str, Any]:
        """Everything a read-only display of the sheet needs."""
        engine = self.engine
        return {
            "identity": {
                key: self.store.get_text(key) for key in ("name", "race", "background", "level")
            },
            "abilities": engine.header_abilities(),
            "skills": list(engine.skills),
            "pools": {key: engine.pools[key] for key in sorted(engine.pools)},
            "hearts": engine.hearts,
            "collections": {key: len(m) for key, m in self.state.managers.items()},
            "equipped": self.manager(INVENTORY.key).equipped_summary(),
            "equipped_details": self.manager(INVENTORY.key).equipped_details(),
        }
