"""
Command to export stored upload rows as CSV or XLSX
"""

import asyncio
from pathlib import Path

from dashboard.core.enums import ExportFormat
from dashboard.core.exceptions import AppException
from dashboard.infrastructure.db.connection import database_manager
from dashboard.infrastructure.db.repositories.upload_data_repository import SQLUploadDataRepository
from dashboard.schemas.upload import UploadDataFilter
from dashboard.services.upload_data_service import UploadDataService

from .base import BaseCommand


class Command(BaseCommand):
    description = "Export stored upload rows to a CSV or XLSX file"

    def add_arguments(self, parser):
        parser.add_argument('format', choices=[fmt.value for fmt in ExportFormat], help='Output format')
        parser.add_argument('output', help='Output file path')
        parser.add_argument('--category', help='Exact category')
        parser.add_argument('--status', help='Exact status')
        parser.add_argument('--start-date', help='createdAt lower bound (inclusive)')
        parser.add_argument('--end-date', help='createdAt upper bound, whole day included')
        parser.add_argument('-q', '--search', help='Search on ticketRefId and description')

    def handle(self, **kwargs) -> int:
        output = Path(kwargs['output'])
        filters = UploadDataFilter(
            category=kwargs.get('category'),
            status=kwargs.get('status'),
            start_date=kwargs.get('start_date'),
            end_date=kwargs.get('end_date'),
            q=kwargs.get('search'),
        )

        try:
            database_manager.connect()
            output.parent.mkdir(parents=True, exist_ok=True)
            with database_manager.get_session() as session, open(output, "wb") as sink:
                service = UploadDataService(SQLUploadDataRepository(session))
                written = asyncio.run(service.stream_export(kwargs['format'], filters, sink))

        except AppException as e:
            self.print_error(e.message)
            return 1

        finally:
            database_manager.disconnect()

        self.print_success(f"Exported {written} rows to {output}")
        return 0
