"""
Ingestion orchestrator: reader -> normalizer -> accumulator -> flusher.
"""

import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, BinaryIO, Dict, Optional, Union

from dashboard.core.exceptions import IngestionError, ParseError
from dashboard.domain.repositories.upload_data_repo import UploadDataStore
from dashboard.processors import BaseProcessor, get_processor
from dashboard.services.base import BaseService
from dashboard.services.batch_accumulator import BatchAccumulator
from dashboard.services.dedup_flusher import DedupFlusher, FlushResult
from dashboard.transformers.row_normalizer import normalize_row
from dashboard.utils.file_utils import get_file_extension, remove_file

Source = Union[str, os.PathLike, BinaryIO]


@dataclass
class IngestionResult:
    inserted_count: int = 0
    message: str = ""
    rows_read: int = 0
    batches: int = 0
    skipped_duplicates: int = 0
    failed: int = 0

    def add(self, flush: FlushResult) -> None:
        self.batches += 1
        self.inserted_count += flush.inserted
        self.skipped_duplicates += flush.skipped_duplicates
        self.failed += flush.failed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "insertedCount": self.inserted_count,
            "message": self.message,
            "rowsRead": self.rows_read,
            "batches": self.batches,
            "skippedDuplicates": self.skipped_duplicates,
            "failed": self.failed,
        }


class IngestionService(BaseService):
    """
    Runs one upload through the pipeline as a single sequential job.

    Records are pulled from the reader one at a time. When the batch is
    full the reader is simply not advanced until the flush has completed,
    so at most one batch is held in memory.
    """

    def __init__(
        self,
        store: UploadDataStore,
        batch_size: int = 1000,
        processor_options: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(store)
        if batch_size < 1:
            raise ValueError(f"Batch size must be at least 1, got {batch_size}")
        self.batch_size = batch_size
        self.processor_options = processor_options or {}

    def get_service_name(self) -> str:
        return "IngestionService"

    async def ingest(self, source: Source, extension: Optional[str] = None) -> IngestionResult:
        """
        Parse an upload and store its rows.

        Args:
            source: Path of a file on disk (deleted afterwards) or an open binary stream
            extension: File extension; taken from the path when omitted

        Returns:
            Inserted count across all batches and a status message

        Raises:
            UnsupportedFormatError: Extension has no reader; nothing is written
            ParseError: The file could not be read; earlier batches stay stored
        """
        file_path = Path(source) if isinstance(source, (str, os.PathLike)) else None
        if extension is None and file_path is not None:
            extension = get_file_extension(file_path.name)

        started = datetime.utcnow()
        try:
            processor = get_processor(extension, **self.processor_options)
            self.log_operation("ingest", {
                "source": str(file_path) if file_path else "<stream>",
                "format": processor.file_format.value,
                "batch_size": self.batch_size,
            })

            if file_path is None:
                result = await self._run(processor, source)
            else:
                try:
                    stream = open(file_path, "rb")
                except OSError as e:
                    raise ParseError(f"Cannot open upload: {str(e)}", file_format=processor.file_format.value) from e
                with stream:
                    result = await self._run(processor, stream)

        except IngestionError as e:
            self.logger.error(f"Ingestion aborted: {e.message}")
            raise

        finally:
            if file_path is not None:
                remove_file(file_path)

        elapsed = (datetime.utcnow() - started).total_seconds()
        result.message = "Imported successfully"
        self.logger.info(
            f"Ingestion completed in {elapsed:.2f}s: inserted={result.inserted_count} rows={result.rows_read} "
            f"batches={result.batches} duplicates={result.skipped_duplicates} failed={result.failed}",
            extra={"extra_fields": result.to_dict()},
        )
        return result

    async def _run(self, processor: BaseProcessor, stream: BinaryIO) -> IngestionResult:
        result = IngestionResult()
        accumulator: BatchAccumulator = BatchAccumulator(self.batch_size)
        flusher = DedupFlusher(self.store)

        records = processor.iter_records(stream)
        try:
            for raw in records:
                result.rows_read += 1
                if accumulator.add(normalize_row(raw)):
                    # The reader stays suspended until this batch is written
                    result.add(await flusher.flush(accumulator.drain()))
        finally:
            records.close()

        if len(accumulator):
            result.add(await flusher.flush(accumulator.drain()))

        return result
