"""
HTTP round trips through the uploads router with an in-memory SQLite session.
"""

import csv
import io

import openpyxl
import pytest
from fastapi.testclient import TestClient

from dashboard.core.config import get_settings
from dashboard.infrastructure.db.connection import get_session_dependency
from dashboard.main import create_application
from tests.helpers import csv_bytes

TICKETS_CSV = csv_bytes(
    "Ticket Ref ID,Category,Status,Created Date,description",
    "TKT-1,Billing,Open,2024-01-01 23:59:59.999,Late invoice",
    "TKT-2,Network,Closed,2024-01-02 08:00,VPN down",
    "TKT-1,Billing,Open,2024-01-01 23:59:59.999,Late invoice",
)


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(get_settings().ingestion, "upload_dir", str(tmp_path))
    return tmp_path


@pytest.fixture
def client(session, upload_dir):
    app = create_application()

    def override_session():
        yield session

    app.dependency_overrides[get_session_dependency] = override_session
    return TestClient(app)


def upload(client, name, content, content_type="text/csv"):
    return client.post("/uploads/file", files={"file": (name, content, content_type)})


class TestUploadFile:

    def test_csv_upload_reports_inserted_rows(self, client, upload_dir):
        response = upload(client, "tickets.csv", TICKETS_CSV)

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["inserted"] == 2
        assert body["message"] == "Imported successfully"
        assert list(upload_dir.iterdir()) == []

    def test_xlsx_upload(self, client):
        workbook = openpyxl.Workbook()
        worksheet = workbook.active
        worksheet.append([None, None])
        worksheet.append(["ticketRefId", "status"])
        worksheet.append(["X-1", "Open"])
        buffer = io.BytesIO()
        workbook.save(buffer)

        response = upload(
            client,
            "sheet.xlsx",
            buffer.getvalue(),
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )

        assert response.status_code == 200
        assert response.json()["inserted"] == 1

    def test_disallowed_extension(self, client, upload_dir):
        response = upload(client, "report.pdf", b"%PDF-1.4", "application/pdf")

        assert response.status_code == 400
        assert list(upload_dir.iterdir()) == []

    def test_binary_csv_is_a_parse_error(self, client, upload_dir):
        response = upload(client, "fake.csv", b"PK\x03\x04zipzipzip")

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "PARSE_ERROR"
        assert list(upload_dir.iterdir()) == []

    def test_oversized_upload(self, client, monkeypatch):
        monkeypatch.setattr(get_settings().ingestion, "max_upload_size", 10)

        response = upload(client, "tickets.csv", TICKETS_CSV)

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestListAndExport:

    @pytest.fixture(autouse=True)
    def seeded(self, client):
        assert upload(client, "tickets.csv", TICKETS_CSV).status_code == 200

    def test_list_with_filters(self, client):
        response = client.get("/uploads/", params={"category": "Billing", "endDate": "2024-01-01"})

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["page"] == 1
        assert body["items"][0]["ticket_ref_id"] == "TKT-1"
        assert body["items"][0]["payload"]["description"] == "Late invoice"

    def test_list_pagination(self, client):
        body = client.get("/uploads/", params={"page": 2, "limit": 1}).json()

        assert body["total"] == 2
        assert body["limit"] == 1
        assert len(body["items"]) == 1

    def test_invalid_date_filter(self, client):
        response = client.get("/uploads/", params={"startDate": "soon"})

        assert response.status_code == 422
        assert response.json()["error"]["details"]["field"] == "startDate"

    def test_csv_export(self, client):
        response = client.get("/uploads/export", params={"format": "csv", "q": "vpn"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="export.csv"' in response.headers["content-disposition"]
        rows = list(csv.reader(io.StringIO(response.text)))
        assert rows[0][-3:] == ["category", "status", "createdAt"]
        assert rows[1][0] == "TKT-2"
        assert rows[1][-1] == "2024-01-02T08:00:00.000Z"

    def test_xlsx_export(self, client):
        response = client.get("/uploads/export", params={"format": "xlsx"})

        assert response.status_code == 200
        workbook = openpyxl.load_workbook(io.BytesIO(response.content))
        assert len(list(workbook["Export"].iter_rows())) == 3

    def test_unknown_export_format(self, client):
        response = client.get("/uploads/export", params={"format": "pdf"})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_health_reports_database_state(db_manager, monkeypatch):
    monkeypatch.setattr("dashboard.main.database_manager", db_manager)
    client = TestClient(create_application())

    body = client.get("/health").json()

    assert body["status"] == "healthy"
    assert body["database"] == "healthy"
