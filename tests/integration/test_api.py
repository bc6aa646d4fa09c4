import pytest
from fastapi.testclient import TestClient

from kmrl_docs.api.dependencies import get_orchestrator
from kmrl_docs.api.main import app
from kmrl_docs.api.routes.ingestion import _to_raw_file
from kmrl_docs.core.config import Settings
from kmrl_docs.ingestion.connectors import DocumentConnectors
from kmrl_docs.ingestion.extractors import ContentMetadataExtractor
from kmrl_docs.ingestion.pipeline import IngestionOrchestrator
from kmrl_docs.ingestion.store import DocumentStore, MemoryStoreBackend
from kmrl_docs.ingestion.validator import MAX_FILE_SIZE_BYTES, FileValidator

NOTES = b"Maintenance Schedule\nDate: 2024-03-15\nRolling stock maintenance and the spares budget.\n"


class StubConnector:
    connector_id = "hr-portal"

    async def fetch_documents(self):
        return [
            {
                "id": "ext-42",
                "title": "Leave Policy",
                "department": "HR",
                "date": "2024-03-01",
                "tags": ["policy"],
                "source": "HR Portal",
                "filePath": "https://hr.example.com/docs/ext-42",
            }
        ]


class StubUpload:
    def __init__(self, filename, content_type, content, size):
        self.filename = filename
        self.content_type = content_type
        self.size = size
        self.content = content
        self.reads = 0

    async def read(self):
        self.reads += 1
        return self.content


@pytest.fixture
def orchestrator():
    return IngestionOrchestrator(
        store=DocumentStore(MemoryStoreBackend()),
        extractor=ContentMetadataExtractor(),
        connectors=DocumentConnectors([StubConnector()]),
        settings=Settings(),
    )


@pytest.fixture
def client(orchestrator):
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_stage_then_submit_upload(client):
    files = [
        ("files", ("notes.txt", NOTES, "text/plain")),
        ("files", ("bundle.zip", b"PK\x03\x04", "application/zip")),
    ]

    staged = client.post("/api/v1/uploads", files=files, data={"last_modified_ms": "1710460800000"})

    assert staged.status_code == 200
    body = staged.json()
    assert body["files"] == [
        {
            "name": "notes.txt",
            "mime_type": "text/plain",
            "size_bytes": len(NOTES),
            "size_label": f"{len(NOTES)} Bytes",
            "icon": "fas fa-file-alt",
        }
    ]
    assert body["rejections"][0]["file_name"] == "bundle.zip"
    assert body["metadata"]["notes.txt"]["title"] == "Maintenance Schedule"
    assert body["metadata"]["notes.txt"]["department"] == "Engineering"
    assert body["summary"]["date_range"] == {"earliest": "2024-03-15", "latest": "2024-03-15"}
    assert body["defaults"] == {"title": "Maintenance Schedule", "tags": "maintenance, schedule, budget"}

    form = {
        "title": "Depot Maintenance Schedule",
        "category": "technical",
        "tags": "maintenance, depot",
        "access_level": "internal",
    }
    created = client.post(f"/api/v1/uploads/{body['session_id']}/documents", json=form)

    assert created.status_code == 201
    record = created.json()
    assert record["status"] == "pending"
    assert record["uploaded_by"] == "Unknown"
    assert record["files"][0]["storage_path"] == "assets/notes.txt"
    assert record["files"][0]["last_modified_ms"] == 1710460800000

    listing = client.get("/api/v1/documents").json()
    assert listing["total"] == 1
    assert listing["documents"][0]["id"] == record["id"]

    again = client.post(f"/api/v1/uploads/{body['session_id']}/documents", json=form)
    assert again.status_code == 404
    assert again.json()["code"] == "upload_session_not_found"


def test_stage_rejects_batch_without_supported_files(client):
    response = client.post("/api/v1/uploads", files=[("files", ("bundle.zip", b"PK", "application/zip"))])

    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "no_valid_files"
    assert body["detail"] == "No valid files selected. Please choose supported file types."
    assert body["rejections"][0]["reason"] == "unsupported_type"


def test_discard_upload(client):
    staged = client.post("/api/v1/uploads", files=[("files", ("notes.txt", NOTES, "text/plain"))]).json()

    assert client.delete(f"/api/v1/uploads/{staged['session_id']}").status_code == 204
    assert client.delete(f"/api/v1/uploads/{staged['session_id']}").status_code == 404


def test_direct_upload_reports_missing_category(client):
    response = client.post(
        "/api/v1/documents",
        files=[("files", ("notes.txt", NOTES, "text/plain"))],
        data={"title": "Schedule", "access_level": "internal"},
    )

    assert response.status_code == 422
    assert response.json() == {
        "detail": "Please select a category",
        "code": "form_validation_error",
        "field": "category",
    }
    assert client.get("/api/v1/documents").json()["total"] == 0


def test_direct_upload_creates_record(client):
    response = client.post(
        "/api/v1/documents",
        files=[("files", ("notes.txt", NOTES, "text/plain"))],
        data={
            "title": "Schedule",
            "category": "technical",
            "tags": "budget, Q1, finance, ",
            "access_level": "internal",
            "uploaded_by": "Anita",
        },
    )

    assert response.status_code == 201
    assert response.json()["tags"] == ["budget", "Q1", "finance"]
    assert response.json()["uploaded_by"] == "Anita"


def test_connector_sync_and_status(client):
    response = client.post("/api/v1/connectors/hr-portal/sync")

    assert response.status_code == 200
    body = response.json()
    assert body["ingested"] == 1
    assert body["documents"][0]["category"] == "hr"
    assert body["documents"][0]["status"] == "approved"

    statuses = client.get("/api/v1/connectors").json()
    assert statuses[0]["connector_id"] == "hr-portal"
    assert statuses[0]["documents_ingested"] == 1


def test_unknown_connector(client):
    response = client.post("/api/v1/connectors/jira/sync")

    assert response.status_code == 404
    assert response.json()["code"] == "connector_not_found"


def test_metrics_endpoint(client):
    client.get("/health")

    response = client.get("/metrics/")

    assert response.status_code == 200
    assert "kmrl_http_requests_total" in response.text


@pytest.mark.asyncio
async def test_oversized_upload_is_not_read():
    upload = StubUpload("scan.pdf", "application/pdf", b"", MAX_FILE_SIZE_BYTES + 1)

    raw_file = await _to_raw_file(upload, FileValidator(), 0)

    assert upload.reads == 0
    assert raw_file.content is None
    assert raw_file.size_bytes == MAX_FILE_SIZE_BYTES + 1
    assert FileValidator().check(raw_file).reason.value == "too_large"


@pytest.mark.asyncio
@pytest.mark.parametrize("size", [len(NOTES), None])
async def test_accepted_upload_is_read_once(size):
    upload = StubUpload("notes.txt", "text/plain", NOTES, size)

    raw_file = await _to_raw_file(upload, FileValidator(), 0)

    assert upload.reads == 1
    assert raw_file.content == NOTES
    assert raw_file.size_bytes == len(NOTES)
