# ==============================================
# dashboard/processors/csv_processor.py
# ==============================================
import csv
import io
import chardet
from typing import Any, BinaryIO, Iterator, Sequence, Tuple

from .base_processor import BaseProcessor
from dashboard.core.enums import FileFormat
from dashboard.core.exceptions import ParseError
from dashboard.utils.logger import get_logger

logger = get_logger(__name__)

# Leading bytes of formats that are never delimited text
BINARY_SIGNATURES = (
    b"PK\x03\x04",                          # zip (xlsx, docx, ...)
    b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1",    # OLE2 (xls, doc)
    b"%PDF",
)
UTF16_BOMS = (b"\xff\xfe", b"\xfe\xff")


class CSVProcessor(BaseProcessor):
    """
    Streaming CSV reader with automatic encoding detection
    and delimiter detection
    """

    file_format = FileFormat.CSV

    def __init__(self, **kwargs):
        """
        Initialize CSV processor

        Args:
            **kwargs: Additional configuration options
        """
        super().__init__(**kwargs)

        # CSV-specific configuration
        self.delimiter = kwargs.get('delimiter', None)  # Auto-detect if None
        self.encoding = kwargs.get('encoding', None)    # Auto-detect if None
        self.quote_char = kwargs.get('quote_char', '"')
        self.sample_size = kwargs.get('sample_size', 10000)
        self.sniff_lines = kwargs.get('sniff_lines', 5)

        # Common delimiters to try for auto-detection
        self.delimiter_candidates = [',', ';', '\t', '|']

    def _iter_sheets(self, stream: BinaryIO) -> Iterator[Iterator[Sequence[Any]]]:
        yield self._read_rows(stream)

    def _read_rows(self, stream: BinaryIO) -> Iterator[Sequence[Any]]:
        """
        Read CSV rows one at a time from the binary stream

        Args:
            stream: Binary upload stream

        Yields:
            List of cell strings per line
        """
        buffered, sample = self._peek(stream)
        self._check_not_binary(sample)

        encoding = self._detect_encoding(sample)
        delimiter = self._detect_delimiter(sample, encoding)

        text_stream = io.TextIOWrapper(buffered, encoding=encoding, newline='')
        reader = csv.reader(text_stream, delimiter=delimiter, quotechar=self.quote_char, skipinitialspace=True)

        try:
            while True:
                try:
                    row = next(reader)
                except StopIteration:
                    break
                except csv.Error as e:
                    # Malformed line: the reader resets its state on the next call
                    self.rows_skipped += 1
                    self.logger.warning(f"Skipping malformed CSV line {reader.line_num}: {str(e)}")
                    continue
                yield row
        except UnicodeDecodeError as e:
            raise ParseError(
                f"Failed to decode CSV as {encoding}: {str(e)}",
                file_format=self.file_format.value,
                details={"line": reader.line_num},
            ) from e
        except (OSError, ValueError) as e:
            raise ParseError(
                f"Failed to read CSV stream: {str(e)}",
                file_format=self.file_format.value,
                details={"line": reader.line_num},
            ) from e
        finally:
            # Leave the caller's stream open; it owns the handle
            try:
                text_stream.detach()
            except ValueError:
                self.logger.debug("CSV stream already closed")

    def _peek(self, stream: BinaryIO) -> Tuple[BinaryIO, bytes]:
        """Return a readable stream positioned at the start plus a leading sample."""
        try:
            if stream.seekable():
                start = stream.tell()
                sample = stream.read(self.sample_size)
                stream.seek(start)
                return stream, sample

            buffered = stream if isinstance(stream, io.BufferedReader) else io.BufferedReader(stream, buffer_size=self.sample_size)
            return buffered, buffered.peek(self.sample_size)[:self.sample_size]
        except (OSError, ValueError) as e:
            raise ParseError(f"Failed to read CSV stream: {str(e)}", file_format=self.file_format.value) from e

    def _check_not_binary(self, sample: bytes) -> None:
        if sample.startswith(UTF16_BOMS):
            return
        if sample.startswith(BINARY_SIGNATURES) or b"\x00" in sample:
            raise ParseError(
                "File content is binary, not delimited text",
                file_format=self.file_format.value,
            )

    def _detect_encoding(self, sample: bytes) -> str:
        """
        Auto-detect file encoding

        Args:
            sample: Leading bytes of the file

        Returns:
            Detected encoding string
        """
        if self.encoding:
            return self.encoding

        if not sample:
            return 'utf-8-sig'

        detected = chardet.detect(sample)
        encoding = detected.get('encoding') or 'utf-8'
        confidence = detected.get('confidence') or 0

        # utf-8-sig also strips a BOM; plain ascii is a subset
        if confidence < 0.7 or encoding.lower() in ('ascii', 'utf-8', 'utf-8-sig'):
            encoding = 'utf-8-sig'

        self.logger.info(f"Detected encoding: {encoding} (confidence: {confidence})")
        return encoding

    def _detect_delimiter(self, sample: bytes, encoding: str) -> str:
        """
        Auto-detect CSV delimiter

        Args:
            sample: Leading bytes of the file
            encoding: File encoding

        Returns:
            Detected delimiter character
        """
        if self.delimiter:
            return self.delimiter

        sample_text = sample.decode(encoding, errors='ignore')
        # Only complete lines; the sample may cut the last one
        sample_lines = sample_text.splitlines()[:self.sniff_lines]
        sample_text = '\n'.join(sample_lines)

        if not sample_text.strip():
            return ','

        sniffer = csv.Sniffer()
        try:
            dialect = sniffer.sniff(sample_text, delimiters=''.join(self.delimiter_candidates))
            self.logger.info(f"CSV Sniffer detected delimiter: {self.get_delimiter_name(dialect.delimiter)}")
            return dialect.delimiter
        except csv.Error:
            pass

        # Fallback: count occurrences of each delimiter
        delimiter_counts = {}
        for delimiter in self.delimiter_candidates:
            count = sample_text.count(delimiter)
            if count > 0:
                delimiter_counts[delimiter] = count

        if delimiter_counts:
            detected_delimiter = max(delimiter_counts, key=delimiter_counts.get)
            self.logger.info(f"Delimiter detection by count: '{detected_delimiter}'")
            return detected_delimiter

        self.logger.warning("Could not detect delimiter, using comma")
        return ','

    @staticmethod
    def get_delimiter_name(delimiter: str) -> str:
        """Get human-readable name for delimiter"""
        delimiter_names = {
            ',': 'comma',
            ';': 'semicolon',
            '\t': 'tab',
            '|': 'pipe',
        }
        return delimiter_names.get(delimiter, f"'{delimiter}'")
