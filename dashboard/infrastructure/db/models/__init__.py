"""
Database models package.
"""

from .base import BaseModel, TimestampMixin, BaseModelWithTimestamp
from .upload_data import UploadData

__all__ = [
    "BaseModel",
    "BaseModelWithTimestamp",
    "TimestampMixin",
    "UploadData",
]
