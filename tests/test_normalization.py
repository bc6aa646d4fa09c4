from datetime import datetime, timezone

import pytest

from kmrl_docs.core.exceptions import NormalizationError
from kmrl_docs.ingestion.normalization import category_for_department, normalize_connector_document
from kmrl_docs.models import DocumentStatus

NOW = datetime(2024, 3, 20, 9, 30, tzinfo=timezone.utc)


def make_payload(**overrides):
    payload = {
        "id": "ext-42",
        "title": "Leave Policy 2024",
        "department": "HR",
        "date": "2024-03-01",
        "tags": ["policy", "leave"],
        "source": "SharePoint",
        "filePath": "https://sharepoint.example.com/hr/leave-policy.pdf",
    }
    payload.update(overrides)
    return payload


@pytest.mark.parametrize(
    ("department", "category"),
    [
        ("Engineering", "technical"),
        ("HR", "hr"),
        ("Finance", "financial"),
        ("Operations", "operations"),
        ("Legal", "legal"),
        ("Procurement", "technical"),
        ("", "technical"),
    ],
)
def test_category_for_department(department, category):
    assert category_for_department(department) == category


def test_normalize_builds_approved_record():
    payload = make_payload()

    record = normalize_connector_document(payload, now=NOW)

    assert record.id == "ext-42"
    assert record.category == "hr"
    assert record.description == "Document ingested from SharePoint"
    assert record.access_level == "internal"
    assert record.status is DocumentStatus.APPROVED
    assert record.uploaded_by == "SharePoint Connector"
    assert record.uploaded_at == NOW
    assert record.source == "SharePoint"
    assert record.connector_data == payload
    assert record.extracted_metadata is None

    (entry,) = record.files
    assert entry.name == "Leave Policy 2024.txt"
    assert entry.size_bytes == 1024
    assert entry.mime_type == "text/plain"
    assert entry.storage_path == payload["filePath"]
    assert entry.last_modified_ms == 1709251200000
    assert entry.metadata.extracted_department == "HR"
    assert entry.metadata.extracted_tags == ["policy", "leave"]


def test_normalize_tolerates_missing_optional_fields():
    payload = make_payload(department=None, tags=None)
    del payload["filePath"]

    record = normalize_connector_document(payload, now=NOW)

    assert record.category == "technical"
    assert record.tags == []
    assert record.files[0].storage_path == ""


def test_normalize_accepts_timestamps():
    record = normalize_connector_document(make_payload(date="2024-03-01T05:30:00Z"), now=NOW)

    assert record.files[0].last_modified_ms == 1709271000000


@pytest.mark.parametrize(
    ("payload", "error_code"),
    [
        (make_payload(title=""), "invalid_payload"),
        ({"id": "ext-1"}, "invalid_payload"),
        (["not", "an", "object"], "invalid_payload"),
        (make_payload(date="yesterday"), "invalid_date"),
    ],
)
def test_normalize_rejects_malformed_documents(payload, error_code):
    with pytest.raises(NormalizationError) as excinfo:
        normalize_connector_document(payload, now=NOW)

    assert excinfo.value.error_code == error_code
