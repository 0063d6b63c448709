"""
Services module for the upload backend.
Contains the ingestion pipeline and the query/export layer.
"""

from .base import BaseService
from .batch_accumulator import BatchAccumulator
from .dedup_flusher import DedupFlusher, FlushResult
from .ingestion_service import IngestionService, IngestionResult
from .upload_data_service import UploadDataService

__all__ = [
    "BaseService",
    "BatchAccumulator",
    "DedupFlusher",
    "FlushResult",
    "IngestionService",
    "IngestionResult",
    "UploadDataService",
]
