"""
Database repositories package.
"""

from .base import BaseRepository
from .upload_data_repository import SQLUploadDataRepository

__all__ = [
    "BaseRepository",
    "SQLUploadDataRepository",
]
