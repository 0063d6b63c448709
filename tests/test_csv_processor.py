"""
Tests for the streaming CSV reader.
"""

import io

import pytest

from dashboard.core.exceptions import ParseError
from dashboard.processors import CSVProcessor
from tests.helpers import csv_bytes


class NonSeekableStream(io.RawIOBase):
    """Forward-only byte stream, like a socket or a pipe."""

    def __init__(self, data: bytes):
        self._source = io.BytesIO(data)

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def readinto(self, buffer) -> int:
        chunk = self._source.read(len(buffer))
        buffer[:len(chunk)] = chunk
        return len(chunk)


def read_all(data: bytes, **options):
    return list(CSVProcessor(**options).iter_records(io.BytesIO(data)))


class TestCSVRecords:

    def test_rows_are_zipped_against_header(self):
        records = read_all(csv_bytes(
            "Ticket Ref ID,Category,Status",
            "TKT-1,Billing,Open",
            "TKT-2,Network,Closed",
        ))

        assert records == [
            {"Ticket Ref ID": "TKT-1", "Category": "Billing", "Status": "Open"},
            {"Ticket Ref ID": "TKT-2", "Category": "Network", "Status": "Closed"},
        ]

    def test_semicolon_delimiter_is_detected(self):
        records = read_all(csv_bytes(
            "ticketRefId;category;description",
            "A-1;Hardware;Screen broken",
            "A-2;Software;Crash on start",
            "A-3;Hardware;Keyboard",
        ))

        assert len(records) == 3
        assert records[0] == {"ticketRefId": "A-1", "category": "Hardware", "description": "Screen broken"}

    def test_leading_blank_lines_are_skipped_before_header(self):
        records = read_all(csv_bytes("", ",,", "id,status", "1,Open"))

        assert records == [{"id": "1", "status": "Open"}]

    def test_blank_data_rows_are_skipped(self):
        records = read_all(csv_bytes("id,status", "1,Open", ",", "", "2,Closed"))

        assert [record["id"] for record in records] == ["1", "2"]

    def test_short_and_long_rows(self):
        records = read_all(csv_bytes("a,b", "1", "1,2,3"))

        assert records[0] == {"a": "1", "b": None}
        assert records[1] == {"a": "1", "b": "2", "col_2": "3"}

    def test_unnamed_header_cells_get_positional_names(self):
        records = read_all(csv_bytes(",name", "7,Widget"))

        assert records == [{"col_0": "7", "name": "Widget"}]

    def test_repeated_header_names_keep_every_value(self):
        records = read_all(csv_bytes("note,note,status", "first,second,Open"))

        assert records == [{"note": "first", "note_1": "second", "status": "Open"}]

    def test_empty_cells_become_none(self):
        records = read_all(csv_bytes("id,status", "1,  "))

        assert records == [{"id": "1", "status": None}]

    def test_utf8_bom_is_stripped_from_header(self):
        records = read_all(b"\xef\xbb\xbf" + csv_bytes("ticketRefId,status", "K-1,Open"))

        assert list(records[0]) == ["ticketRefId", "status"]

    def test_quoted_delimiters(self):
        records = read_all(csv_bytes('id,description', '1,"Printer, 2nd floor"'))

        assert records[0]["description"] == "Printer, 2nd floor"

    def test_forward_only_stream(self):
        stream = NonSeekableStream(csv_bytes("id,status", "1,Open", "2,Closed"))
        records = list(CSVProcessor().iter_records(stream))

        assert len(records) == 2

    def test_empty_file_yields_nothing(self):
        assert read_all(b"") == []

    def test_records_are_produced_lazily(self):
        processor = CSVProcessor()
        records = processor.iter_records(io.BytesIO(csv_bytes("id", "1", "2", "3")))

        assert next(records) == {"id": "1"}
        assert processor.rows_read == 1

    def test_caller_stream_stays_open(self):
        stream = io.BytesIO(csv_bytes("id", "1"))
        list(CSVProcessor().iter_records(stream))

        assert not stream.closed


class TestCSVParseErrors:

    @pytest.mark.parametrize("payload", [
        b"PK\x03\x04\x14\x00\x00\x00rest-of-zip",
        b"%PDF-1.7\n%binary",
        b"id,name\n1,\x00\x00\x00",
    ])
    def test_binary_content_is_rejected(self, payload):
        with pytest.raises(ParseError) as exc_info:
            read_all(payload)

        assert exc_info.value.details["format"] == "csv"

    def test_explicit_encoding_mismatch_is_a_parse_error(self):
        with pytest.raises(ParseError):
            read_all("id,name\n1,Zoë\n".encode("latin-1"), encoding="utf-8", delimiter=",")


def test_delimiter_names():
    assert CSVProcessor.get_delimiter_name(";") == "semicolon"
    assert CSVProcessor.get_delimiter_name("\t") == "tab"
