import logging
from typing import Union


class EmojiFormatter(logging.Formatter):
    """
    Log formatter that prefixes each record with an emoji for its level,
    so autosave noise and storage failures are easy to tell apart.
    """

    LEVEL_EMOJIS = {
        logging.DEBUG: "🐛",
        logging.INFO: "✅",
        logging.WARNING: "⚠️",
        logging.ERROR: "❌",
        logging.CRITICAL: "🔥",
    }

    def format(self, record):
        s = super().format(record)
        emoji = self.LEVEL_EMOJIS.get(record.levelno, "")
        return f"{emoji} {s}" if emoji else s


def resolve_level(level: Union[str, int, None]) -> int:
    """Turn 'debug' / 'INFO' / 10 into a logging level, defaulting to INFO."""
    if isinstance(level, int):
        return level
    if not level:
        return logging.INFO
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: Union[str, int, None] = "INFO"):
    """
    Configures the root logger with the EmojiFormatter.
    Call once at the application's entry point.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(resolve_level(level))

    console_handler = logging.StreamHandler()
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    console_handler.setFormatter(EmojiFormatter(log_format))

    # Avoid duplicate output when called twice (tests, CLI re-entry)
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    root_logger.addHandler(console_handler)
