"""Error taxonomy for the sheet engine.

None of these are fatal. Components raise them internally and the
operation boundary (list managers, persistence controller) converts them
into a status notice plus an outcome dict.
"""


class SheetError(Exception):
    """Base class for every recoverable sheet error."""


class ParseError(SheetError, ValueError):
    """A list-entity blob is not a JSON array. Recovered via legacy parsing."""


class ValidationError(SheetError, ValueError):
    """A candidate entity is missing its required name."""

    def __init__(self, message: str, field: str = "name"):
        super().__init__(message)
        self.field = field


class ImportFormatError(SheetError, ValueError):
    """Wrong extension, invalid JSON, or a payload that is not an object."""


class StorageQuotaError(SheetError, OSError):
    """A storage write was refused (quota exceeded or disk full)."""


class CorruptedSaveError(SheetError, ValueError):
    """A persisted record exists but cannot be parsed."""


__all__ = [
    "SheetError",
    "ParseError",
    "ValidationError",
    "ImportFormatError",
    "StorageQuotaError",
    "CorruptedSaveError",
]
