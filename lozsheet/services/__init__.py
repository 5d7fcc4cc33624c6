from .autosave import AUTOSAVE_DELAY_SECONDS, Debouncer
from .persistence_service import PersistenceController
from .portrait_service import NotAnImageError, PortraitIngestor
from .status_notifier import StatusNotifier

__all__ = [
    "AUTOSAVE_DELAY_SECONDS",
    "Debouncer",
    "NotAnImageError",
    "PersistenceController",
    "PortraitIngestor",
    "StatusNotifier",
]
