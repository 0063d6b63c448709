# ==============================================
# dashboard/processors/excel_processor.py
# ==============================================
import shutil
import tempfile
import zipfile
from typing import Any, BinaryIO, Iterator, List, Optional, Sequence
from xml.etree.ElementTree import ParseError as XMLParseError

import openpyxl
import xlrd
from xlrd.compdoc import CompDocError
from openpyxl.utils.exceptions import InvalidFileException

from .base_processor import BaseProcessor
from dashboard.core.enums import FileFormat
from dashboard.core.exceptions import ParseError
from dashboard.utils.logger import get_logger

logger = get_logger(__name__)

OLE2_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

WORKBOOK_ERRORS = (zipfile.BadZipFile, InvalidFileException, KeyError, XMLParseError, OSError, ValueError)


class ExcelProcessor(BaseProcessor):
    """
    Excel reader supporting XLSX (streamed with openpyxl in read-only mode)
    and legacy XLS (xlrd). Every worksheet is read in order and detects its
    own header row.
    """

    file_format = FileFormat.SPREADSHEET

    def __init__(self, **kwargs):
        """
        Initialize Excel processor

        Args:
            **kwargs: Additional configuration options
        """
        super().__init__(**kwargs)

        # Excel-specific configuration
        self.sheet_names: Optional[List[str]] = kwargs.get('sheet_names', None)  # All sheets if None
        self.ignore_hidden_sheets = kwargs.get('ignore_hidden_sheets', False)
        self.spool_max_size = kwargs.get('spool_max_size', 8 * 1024 * 1024)

    def _iter_sheets(self, stream: BinaryIO) -> Iterator[Iterator[Sequence[Any]]]:
        stream = self._ensure_seekable(stream)
        try:
            start = stream.tell()
            signature = stream.read(len(OLE2_SIGNATURE))
            stream.seek(start)
        except (OSError, ValueError) as e:
            raise ParseError(f"Failed to read spreadsheet stream: {str(e)}", file_format=self.file_format.value) from e

        if signature == OLE2_SIGNATURE:
            yield from self._iter_xls_sheets(stream)
        else:
            yield from self._iter_xlsx_sheets(stream)

    def _ensure_seekable(self, stream: BinaryIO) -> BinaryIO:
        """Zip archives need random access; spool forward-only streams to a temp file."""
        try:
            if stream.seekable():
                return stream

            spooled = tempfile.SpooledTemporaryFile(max_size=self.spool_max_size)
            try:
                shutil.copyfileobj(stream, spooled)
                spooled.seek(0)
            except BaseException:
                spooled.close()
                raise
            return spooled
        except (OSError, ValueError) as e:
            raise ParseError(f"Failed to read spreadsheet stream: {str(e)}", file_format=self.file_format.value) from e

    def _wanted(self, sheet_name: str, hidden: bool = False) -> bool:
        if self.sheet_names and sheet_name not in self.sheet_names:
            return False
        if hidden and self.ignore_hidden_sheets:
            self.logger.info(f"Skipping hidden sheet '{sheet_name}'")
            return False
        return True

    def _iter_xlsx_sheets(self, stream: BinaryIO) -> Iterator[Iterator[Sequence[Any]]]:
        """
        Open an XLSX workbook in read-only mode and yield a row iterator per worksheet

        Args:
            stream: Seekable binary stream

        Yields:
            Lazy row iterators
        """
        try:
            workbook = openpyxl.load_workbook(stream, read_only=True, data_only=True)
        except WORKBOOK_ERRORS as e:
            raise ParseError(f"Cannot open Excel file: {str(e)}", file_format=self.file_format.value) from e

        try:
            for worksheet in workbook.worksheets:
                hidden = getattr(worksheet, 'sheet_state', 'visible') != 'visible'
                if not self._wanted(worksheet.title, hidden):
                    continue
                self.logger.info(f"Reading sheet '{worksheet.title}'")
                yield self._xlsx_rows(worksheet)
        finally:
            workbook.close()

    def _xlsx_rows(self, worksheet) -> Iterator[Sequence[Any]]:
        try:
            for row in worksheet.iter_rows(values_only=True):
                yield row
        except WORKBOOK_ERRORS as e:
            raise ParseError(
                f"Failed to read sheet '{worksheet.title}': {str(e)}",
                file_format=self.file_format.value,
                details={"sheet": worksheet.title},
            ) from e

    def _iter_xls_sheets(self, stream: BinaryIO) -> Iterator[Iterator[Sequence[Any]]]:
        """
        Open a legacy XLS workbook. xlrd parses the whole compound document,
        sheets are loaded on demand and released after reading.
        """
        try:
            workbook = xlrd.open_workbook(file_contents=stream.read(), on_demand=True)
        except (xlrd.XLRDError, CompDocError, *WORKBOOK_ERRORS) as e:
            raise ParseError(f"Cannot open Excel file: {str(e)}", file_format=self.file_format.value) from e

        try:
            for sheet_name in workbook.sheet_names():
                if not self._wanted(sheet_name):
                    continue
                self.logger.info(f"Reading sheet '{sheet_name}'")
                yield self._xls_rows(workbook, sheet_name)
        finally:
            workbook.release_resources()

    def _xls_rows(self, workbook, sheet_name: str) -> Iterator[Sequence[Any]]:
        try:
            sheet = workbook.sheet_by_name(sheet_name)
            for row_index in range(sheet.nrows):
                yield [self._xls_cell_value(cell, workbook.datemode) for cell in sheet.row(row_index)]
            workbook.unload_sheet(sheet_name)
        except (xlrd.XLRDError, CompDocError) as e:
            raise ParseError(
                f"Failed to read sheet '{sheet_name}': {str(e)}",
                file_format=self.file_format.value,
                details={"sheet": sheet_name},
            ) from e

    @staticmethod
    def _xls_cell_value(cell, datemode: int) -> Any:
        if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR):
            return None
        if cell.ctype == xlrd.XL_CELL_DATE:
            try:
                return xlrd.xldate.xldate_as_datetime(cell.value, datemode)
            except (xlrd.xldate.XLDateError, ValueError, OverflowError):
                return cell.value
        if cell.ctype == xlrd.XL_CELL_BOOLEAN:
            return bool(cell.value)
        return cell.value
