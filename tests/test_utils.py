import io
import json
import logging
from datetime import date, datetime, timezone

import pytest

from dashboard.core.exceptions import ValidationException
from dashboard.core.logging import ContextFilter, JSONFormatter
from dashboard.utils.date_utils import end_of_day, format_iso, parse_datetime
from dashboard.utils.file_utils import (
    generate_upload_filename,
    get_file_extension,
    remove_file,
    save_upload_stream,
)


class TestDates:

    @pytest.mark.parametrize("value, expected", [
        ("2024-01-05", datetime(2024, 1, 5)),
        (date(2024, 1, 5), datetime(2024, 1, 5)),
        (datetime(2024, 1, 5, 12, tzinfo=timezone.utc), datetime(2024, 1, 5, 12)),
        ("", None),
        (None, None),
        (True, None),
        ("garbage", None),
    ])
    def test_parse_datetime(self, value, expected):
        assert parse_datetime(value) == expected

    def test_end_of_day(self):
        assert end_of_day(datetime(2024, 1, 1, 8)) == datetime(2024, 1, 1, 23, 59, 59, 999999)

    def test_format_iso(self):
        assert format_iso(datetime(2024, 1, 1, 23, 59, 59, 999000)) == "2024-01-01T23:59:59.999Z"
        assert format_iso(None) == ""


class TestUploadFiles:

    def test_extension_is_lower_case(self):
        assert get_file_extension("Report.XLSX") == ".xlsx"
        assert get_file_extension(None) == ""

    def test_saved_under_timestamped_name(self, tmp_path):
        path = save_upload_stream(io.BytesIO(b"id\n1\n"), tmp_path / "uploads", "data.csv")

        assert path.parent == tmp_path / "uploads"
        assert path.suffix == ".csv"
        timestamp, suffix = path.stem.split("_")
        assert timestamp.isdigit()
        assert len(suffix) == 32
        assert path.read_bytes() == b"id\n1\n"

    def test_same_millisecond_uploads_get_distinct_names(self, monkeypatch):
        monkeypatch.setattr("dashboard.utils.file_utils.time.time", lambda: 1718000000.0)

        first = generate_upload_filename("a.csv")
        second = generate_upload_filename("b.csv")

        assert first != second
        assert first.startswith("1718000000000_")

    def test_too_large_upload_leaves_nothing_behind(self, tmp_path):
        with pytest.raises(ValidationException):
            save_upload_stream(io.BytesIO(b"x" * 100), tmp_path, "big.csv", max_size=10)

        assert list(tmp_path.iterdir()) == []

    def test_remove_missing_file_is_not_an_error(self, tmp_path):
        assert remove_file(tmp_path / "gone.csv") is True


class TestJSONLogging:

    def test_context_and_extra_fields_are_merged(self):
        record = logging.LogRecord("dashboard.test", logging.INFO, __file__, 1, "Ingestion finished", None, None)
        record.extra_fields = {"inserted": 2}
        ContextFilter({"service": "dashboard", "version": "0.1.0"}).filter(record)

        entry = json.loads(JSONFormatter().format(record))

        assert entry["message"] == "Ingestion finished"
        assert entry["service"] == "dashboard"
        assert entry["version"] == "0.1.0"
        assert entry["inserted"] == 2
