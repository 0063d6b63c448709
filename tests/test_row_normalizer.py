"""
Tests for mapping raw rows onto canonical records.
"""

from datetime import datetime

import pytest

from dashboard.transformers.row_normalizer import first_present, normalize_row


class TestNormalizeRow:

    def test_business_key_from_alias_is_written_into_payload(self):
        record = normalize_row({"Ticket Ref ID": "TKT-1", "Category": "Billing", "Status": "Open"})

        assert record.ticket_ref_id == "TKT-1"
        assert record.payload["ticketRefId"] == "TKT-1"
        assert record.payload["Ticket Ref ID"] == "TKT-1"
        assert record.category == "Billing"
        assert record.status == "Open"

    def test_original_columns_are_preserved(self):
        raw = {"description": "Printer jam", "priority": 3, "category_name": "Hardware"}
        record = normalize_row(raw)

        assert record.payload == raw
        assert record.category == "Hardware"
        assert record.ticket_ref_id is None
        assert "ticketRefId" not in record.payload

    def test_alias_priority_and_blank_values(self):
        record = normalize_row({"category": "  ", "Category": "Network", "status": None, "Status": "Closed"})

        assert record.category == "Network"
        assert record.status == "Closed"

    def test_spreadsheet_floats_become_integer_keys(self):
        record = normalize_row({"ticketRefId": 1042.0})

        assert record.ticket_ref_id == "1042"

    @pytest.mark.parametrize("column", ["createdAt", "created_at", "Created Date", "created"])
    def test_created_at_aliases(self, column):
        record = normalize_row({column: "2024-03-05 10:15:00"})

        assert record.created_at == datetime(2024, 3, 5, 10, 15)

    def test_unparseable_date_is_dropped(self):
        record = normalize_row({"createdAt": "not a date"})

        assert record.created_at is None
        assert record.payload["createdAt"] == "not a date"

    @pytest.mark.parametrize("value, expected", [
        ("10:30", datetime(1970, 1, 1, 10, 30)),
        ("2024", datetime(2024, 1, 1)),
        ("March 2024", datetime(2024, 3, 1)),
    ])
    def test_partial_dates_do_not_depend_on_today(self, value, expected):
        assert normalize_row({"createdAt": value}).created_at == expected

    def test_aware_datetimes_are_stored_as_utc(self):
        record = normalize_row({"createdAt": "2024-01-01T10:00:00+02:00"})

        assert record.created_at == datetime(2024, 1, 1, 8, 0)

    def test_normalizing_twice_gives_the_same_record(self):
        first = normalize_row({"ticket_ref_id": "A-7", "Status": "Open", "created": "2024-02-02"})
        second = normalize_row(first.payload)

        assert second == first

    def test_input_row_is_not_mutated(self):
        raw = {"TicketRefId": "X"}
        normalize_row(raw)

        assert raw == {"TicketRefId": "X"}


def test_first_present_skips_missing_and_empty():
    assert first_present({"b": "", "c": "value"}, ("a", "b", "c")) == "value"
    assert first_present({}, ("a",)) is None
