# ==============================================
# dashboard/processors/base_processor.py
# ==============================================
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, BinaryIO, Iterable, Iterator, List, Optional, Sequence

from dashboard.core.enums import FileFormat
from dashboard.domain.entities.upload_entity import RawRecord
from dashboard.utils.logger import get_logger

logger = get_logger(__name__)


def synthetic_column(position: int) -> str:
    """Column name used for unnamed header cells and cells beyond the header."""
    return f"col_{position}"


class BaseProcessor(ABC):
    """
    Abstract base class for upload readers.

    A reader turns a binary stream into a lazy, forward-only sequence of
    RawRecord dictionaries. Nothing is read until the caller pulls the next
    record, so the consumer controls how far ahead parsing runs.
    """

    file_format: FileFormat

    def __init__(self, **kwargs):
        self.logger = logger
        self.rows_read = 0
        self.rows_skipped = 0

    @abstractmethod
    def _iter_sheets(self, stream: BinaryIO) -> Iterator[Iterable[Sequence[Any]]]:
        """
        Yield one row iterator per sheet; rows are positional cell sequences, header row included

        Raises:
            ParseError: If the stream cannot be interpreted as rows
        """
        pass

    def iter_records(self, stream: BinaryIO) -> Iterator[RawRecord]:
        """
        Read the stream row by row and yield one RawRecord per data row

        Args:
            stream: Binary file-like object positioned at the start of the upload

        Yields:
            Mapping of header name to cell value
        """
        for rows in self._iter_sheets(stream):
            yield from self._rows_to_records(rows)

    def _rows_to_records(self, rows: Iterable[Sequence[Any]]) -> Iterator[RawRecord]:
        """Zip data rows against the first non-blank row, which becomes the header."""
        headers: Optional[List[str]] = None

        for row_number, row in enumerate(rows, 1):
            cells = [self._clean_cell(value) for value in row]

            if all(value is None for value in cells):
                continue

            if headers is None:
                headers = self._build_headers(cells)
                self.logger.debug(f"Header detected on row {row_number}: {headers}")
                continue

            self.rows_read += 1
            yield self._zip_row(headers, cells)

    def _build_headers(self, cells: List[Any]) -> List[str]:
        # Spreadsheets pad rows to the sheet width; trailing empty header cells name nothing
        while cells and cells[-1] is None:
            cells = cells[:-1]

        headers: List[str] = []
        for position, value in enumerate(cells):
            if value is None:
                name = synthetic_column(position)
            elif isinstance(value, datetime):
                name = value.isoformat()
            else:
                name = str(value).strip()

            if name in headers:
                renamed = f"{name}_{position}"
                if renamed in headers:
                    renamed = synthetic_column(position)
                self.logger.warning(f"Duplicate header '{name}' at column {position} renamed to '{renamed}'")
                name = renamed

            headers.append(name)
        return headers

    def _zip_row(self, headers: List[str], cells: List[Any]) -> RawRecord:
        record: RawRecord = {}
        for position, header in enumerate(headers):
            record[header] = cells[position] if position < len(cells) else None

        for position in range(len(headers), len(cells)):
            if cells[position] is not None:
                record[synthetic_column(position)] = cells[position]

        return record

    @staticmethod
    def _clean_cell(value: Any) -> Any:
        """Strip strings and turn empty strings into None; other types pass through."""
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value
