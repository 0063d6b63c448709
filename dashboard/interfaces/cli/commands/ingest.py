"""
Command to ingest a CSV or spreadsheet file from disk
"""

import asyncio
from pathlib import Path

from dashboard.core.config import get_settings
from dashboard.core.exceptions import AppException
from dashboard.infrastructure.db.connection import database_manager
from dashboard.infrastructure.db.repositories.upload_data_repository import SQLUploadDataRepository
from dashboard.services.ingestion_service import IngestionService
from dashboard.utils.file_utils import get_file_extension

from .base import BaseCommand


class Command(BaseCommand):
    description = "Ingest a CSV/XLS/XLSX file into the upload data store"

    def add_arguments(self, parser):
        parser.add_argument('path', help='File to ingest')
        parser.add_argument(
            '--batch-size',
            type=int,
            default=None,
            help='Records per write batch (default: from settings)'
        )
        parser.add_argument(
            '--delete-source',
            action='store_true',
            help='Delete the file once ingestion finishes, as the upload endpoint does'
        )

    def handle(self, **kwargs) -> int:
        path = Path(kwargs['path'])
        batch_size = kwargs.get('batch_size') or get_settings().ingestion.batch_size

        if not path.is_file():
            self.print_error(f"File not found: {path}")
            return 1

        self.print_info(f"Ingesting {path} (batch size {batch_size})...")

        try:
            database_manager.connect()
            with database_manager.get_session() as session:
                service = IngestionService(SQLUploadDataRepository(session), batch_size=batch_size)
                if kwargs.get('delete_source'):
                    result = asyncio.run(service.ingest(path))
                else:
                    with open(path, "rb") as stream:
                        result = asyncio.run(service.ingest(stream, extension=get_file_extension(path.name)))

        except AppException as e:
            self.print_error(e.message)
            return 1

        except OSError as e:
            self.print_error(f"Cannot read {path}: {e}")
            return 1

        finally:
            database_manager.disconnect()

        self.print_success(
            f"{result.message}: {result.inserted_count} inserted, "
            f"{result.skipped_duplicates} duplicates skipped, {result.failed} failed"
        )
        return 0
