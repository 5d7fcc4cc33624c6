"""
Runtime configuration.

Values come from environment variables (a `.env` file is loaded by the
entry point through python-dotenv). Fixed storage/export constants live
here too so every layer agrees on keys and formats.
"""

import logging
import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# --- Fixed constants ---
STORAGE_KEY = "lozrp.sheet.v1"
PORTRAIT_STORAGE_KEY = f"{STORAGE_KEY}.portrait"
PORTRAIT_FIELD = "profile_image"

EXPORT_VERSION = 1
EXPORT_EXTENSION = ".json"
EXPORT_FALLBACK_NAME = "character"

PORTRAIT_MAX_DIMENSION = 420
PORTRAIT_QUALITY = 0.78

STATUS_CLEAR_SECONDS = 2.5


class SheetConfig(BaseModel):
    db_path: str = Field("lozsheet.db", description="sqlite file backing local storage.")
    autosave_delay: float = Field(0.25, ge=0, description="Debounce quiet interval, seconds.")
    notice_interval: float = Field(
        2.5, ge=0, description="Minimum seconds between failure notices of one class."
    )
    storage_quota: int = Field(
        5_000_000, gt=0, description="Total characters storage accepts across all keys."
    )
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SheetConfig":
        """Build a config from LOZSHEET_* variables; bad values fall back to defaults."""
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            db_path=env.get("LOZSHEET_DB_PATH") or defaults.db_path,
            autosave_delay=_read_number(
                env, "LOZSHEET_AUTOSAVE_DELAY", defaults.autosave_delay, float
            ),
            notice_interval=_read_number(
                env, "LOZSHEET_NOTICE_INTERVAL", defaults.notice_interval, float
            ),
            storage_quota=_read_number(
                env, "LOZSHEET_STORAGE_QUOTA", defaults.storage_quota, int
            ),
            log_level=env.get("LOZSHEET_LOG_LEVEL") or defaults.log_level,
        )


def _read_number(env: Mapping[str, str], key: str, default, cast):
    raw = env.get(key)
    if raw is None or not str(raw).strip():
        return default
    try:
        value = cast(str(raw).strip())
    except ValueError:
        logger.warning(f"Ignoring {key}={raw!r}: not a valid number, using {default}")
        return default
    if value < 0 or (cast is int and value == 0):
        logger.warning(f"Ignoring {key}={raw!r}: out of range, using {default}")
        return default
    return value
