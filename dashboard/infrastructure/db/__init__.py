from .connection import (
    DatabaseManager,
    get_session_dependency,
    database_manager
)

from .repositories.base import BaseRepository
from .repositories.upload_data_repository import SQLUploadDataRepository
from .models.base import BaseModel, TimestampMixin
from .models.upload_data import UploadData

__all__ = [
    # Connection
    "DatabaseManager",
    "get_session_dependency",
    "database_manager",

    # Repository
    "BaseRepository",
    "SQLUploadDataRepository",

    # Models
    "BaseModel",
    "TimestampMixin",
    "UploadData",
]
