"""
Read side of the upload data: filtered pagination and streaming export.
"""

import io
from datetime import date, datetime, time
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, Union

import openpyxl
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
import pandas as pd
from sqlalchemy.exc import SQLAlchemyError

from dashboard.core.config import get_settings
from dashboard.core.enums import ExportFormat
from dashboard.core.exceptions import DatabaseError, ValidationException
from dashboard.domain.repositories.upload_data_repo import RecordQuery, UploadDataStore
from dashboard.schemas.upload import UploadDataFilter
from dashboard.services.base import BaseService
from dashboard.utils.date_utils import end_of_day, format_iso, parse_datetime

DERIVED_COLUMNS = ["category", "status", "createdAt"]
EXPORT_SHEET_TITLE = "Export"
XLSX_NATIVE_TYPES = (int, float, bool, datetime, date, time)


class UploadDataService(BaseService):
    """Filtered fetch and CSV/XLSX export over stored upload rows."""

    def __init__(self, store: UploadDataStore, chunk_size: Optional[int] = None):
        super().__init__(store)
        settings = get_settings()
        self.chunk_size = chunk_size or settings.ingestion.export_chunk_size
        self.default_page_size = settings.default_page_size
        self.max_page_size = settings.max_page_size

    def get_service_name(self) -> str:
        return "UploadDataService"

    def build_query(self, filters: Optional[Union[UploadDataFilter, Dict[str, Any]]]) -> RecordQuery:
        """
        Translate request filters into a store query.

        ``end_date`` covers its whole day: 2024-01-01 matches anything up
        to 2024-01-01T23:59:59.999999.

        Raises:
            ValidationException: If a date filter cannot be parsed
        """
        if filters is None:
            filters = UploadDataFilter()
        elif isinstance(filters, dict):
            filters = UploadDataFilter(**filters)

        query = RecordQuery(
            category=filters.category or None,
            status=filters.status or None,
            search=filters.q.strip() if filters.q and filters.q.strip() else None,
        )

        if filters.start_date:
            query.created_from = self._parse_filter_date("startDate", filters.start_date)
        if filters.end_date:
            query.created_to = end_of_day(self._parse_filter_date("endDate", filters.end_date))

        return query

    @staticmethod
    def _parse_filter_date(field: str, value: str):
        parsed = parse_datetime(value)
        if parsed is None:
            raise ValidationException(f"Invalid date for {field}: {value}", field=field, value=value)
        return parsed

    async def fetch(
        self,
        filters: Optional[Union[UploadDataFilter, Dict[str, Any]]] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Return ``{items, total, page, limit}`` for one page of matching rows."""
        query = self.build_query(filters)
        page = page if page and page > 0 else 1
        limit = limit if limit and limit > 0 else self.default_page_size
        limit = min(limit, self.max_page_size)

        self.log_operation("fetch", {"page": page, "limit": limit})
        items, total = await self.store.find(query, skip=(page - 1) * limit, limit=limit)
        return {"items": items, "total": total, "page": page, "limit": limit}

    async def stream_export(
        self,
        export_format: Union[ExportFormat, str],
        filters: Optional[Union[UploadDataFilter, Dict[str, Any]]],
        sink: BinaryIO,
    ) -> int:
        """
        Write matching rows to ``sink`` as CSV or XLSX, header first.

        Returns:
            Number of data rows written
        """
        try:
            export_format = ExportFormat(str(getattr(export_format, "value", export_format)).lower())
        except ValueError:
            raise ValidationException(
                f"Unsupported export format: {export_format}",
                field="format",
                value=str(export_format),
            )

        query = self.build_query(filters)
        self.log_operation("stream_export", {"format": export_format.value})

        rows = (self._export_row(record, export_format) for record in self.store.iter_matching(query, self.chunk_size))
        if export_format == ExportFormat.CSV:
            written = self._write_csv(rows, sink)
        else:
            written = self._write_xlsx(rows, sink)

        self.logger.info(f"Exported {written} rows as {export_format.value}")
        return written

    @staticmethod
    def _export_row(record: Dict[str, Any], export_format: ExportFormat) -> Dict[str, Any]:
        row = dict(record.get("payload") or {})
        row["category"] = record.get("category")
        row["status"] = record.get("status")
        created_at = record.get("created_at")
        row["createdAt"] = format_iso(created_at) if export_format == ExportFormat.CSV else created_at
        return row

    def _chunks(self, rows: Iterator[Dict[str, Any]]) -> Iterator[List[Dict[str, Any]]]:
        """Group rows into lists of ``chunk_size``; store errors end the export early."""
        chunk: List[Dict[str, Any]] = []
        try:
            for row in rows:
                chunk.append(row)
                if len(chunk) >= self.chunk_size:
                    yield chunk
                    chunk = []
        except (DatabaseError, SQLAlchemyError) as e:
            self.logger.error(f"Error while streaming export: {str(e)}")
        if chunk:
            yield chunk

    def _write_csv(self, rows: Iterator[Dict[str, Any]], sink: BinaryIO) -> int:
        text_sink = io.TextIOWrapper(sink, encoding="utf-8", newline="", write_through=True)
        header: Optional[List[str]] = None
        written = 0

        try:
            for chunk in self._chunks(rows):
                if header is None:
                    header = list(chunk[0].keys())
                    include_header = True
                else:
                    include_header = False

                frame = pd.DataFrame(chunk, columns=header, dtype=object)
                frame.to_csv(text_sink, header=include_header, index=False, na_rep="")
                written += len(chunk)

            if header is None:
                pd.DataFrame(columns=DERIVED_COLUMNS).to_csv(text_sink, index=False)
        finally:
            text_sink.flush()
            text_sink.detach()

        return written

    def _write_xlsx(self, rows: Iterator[Dict[str, Any]], sink: BinaryIO) -> int:
        workbook = openpyxl.Workbook(write_only=True)
        worksheet = workbook.create_sheet(EXPORT_SHEET_TITLE)
        header: Optional[List[str]] = None
        written = 0

        for chunk in self._chunks(rows):
            for row in chunk:
                if header is None:
                    header = list(row.keys())
                    worksheet.append([self._xlsx_cell(column) for column in header])
                worksheet.append([self._xlsx_cell(row.get(column)) for column in header])
                written += 1

        if header is None:
            worksheet.append(DERIVED_COLUMNS)

        workbook.save(sink)
        return written

    @staticmethod
    def _xlsx_cell(value: Any) -> Any:
        if value is None or isinstance(value, XLSX_NATIVE_TYPES):
            return value
        # Worksheet XML cannot carry most control characters
        return ILLEGAL_CHARACTERS_RE.sub("", str(value))
