"""
Tests for the ingest and export management commands.
"""

import csv

import pytest

from dashboard.infrastructure.db.connection import DatabaseManager
from dashboard.interfaces.cli import main as cli
from dashboard.interfaces.cli.commands import export as export_command
from dashboard.interfaces.cli.commands import ingest as ingest_command
from tests.helpers import csv_bytes


@pytest.fixture
def file_database(tmp_path, monkeypatch):
    manager = DatabaseManager(f"sqlite:///{tmp_path / 'cli.db'}", echo=False)
    monkeypatch.setattr(ingest_command, "database_manager", manager)
    monkeypatch.setattr(export_command, "database_manager", manager)
    yield manager
    manager.disconnect()


def test_commands_are_discovered():
    assert set(cli.CLIManager().available_commands) == {"ingest", "export"}


def test_ingest_then_export(file_database, tmp_path):
    source = tmp_path / "tickets.csv"
    source.write_bytes(csv_bytes("ticketRefId,category", "A,Billing", "B,Network", "A,Billing"))
    output = tmp_path / "out" / "billing.csv"

    assert cli.main(["ingest", str(source), "--batch-size", "2"]) == 0
    assert source.exists()
    assert cli.main(["export", "csv", str(output), "--category", "Billing"]) == 0

    with open(output, newline="", encoding="utf-8") as handle:
        rows = list(csv.reader(handle))
    assert rows == [["ticketRefId", "category", "status", "createdAt"], ["A", "Billing", "", ""]]


def test_ingest_can_delete_source(file_database, tmp_path):
    source = tmp_path / "tickets.csv"
    source.write_bytes(csv_bytes("ticketRefId", "A"))

    assert cli.main(["ingest", str(source), "--delete-source"]) == 0
    assert not source.exists()


def test_ingest_unsupported_file(file_database, tmp_path):
    source = tmp_path / "notes.txt"
    source.write_text("hello")

    assert cli.main(["ingest", str(source)]) == 1


def test_missing_file(file_database, tmp_path):
    assert cli.main(["ingest", str(tmp_path / "absent.csv")]) == 1


def test_unknown_command():
    assert cli.main(["frobnicate"]) == 1
