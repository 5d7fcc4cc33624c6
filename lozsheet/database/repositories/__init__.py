from .base_repository import BaseRepository
from .storage_repository import StorageRepository

__all__ = [
    "BaseRepository",
    "StorageRepository",
]
