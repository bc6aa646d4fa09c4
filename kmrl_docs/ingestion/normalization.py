"""Turn connector payloads into document records."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from pydantic import ValidationError as ModelValidationError

from kmrl_docs.core.exceptions import NormalizationError
from kmrl_docs.models import (
    ConnectorDocument,
    DocumentRecord,
    DocumentStatus,
    ExtractedFileMetadata,
    FileEntry,
)

DEPARTMENT_CATEGORIES = {
    "Engineering": "technical",
    "HR": "hr",
    "Finance": "financial",
    "Operations": "operations",
    "Legal": "legal",
}
DEFAULT_CATEGORY = "technical"

CONNECTOR_ACCESS_LEVEL = "internal"
SYNTHETIC_FILE_SIZE = 1024
SYNTHETIC_FILE_TYPE = "text/plain"


def category_for_department(department: str) -> str:
    return DEPARTMENT_CATEGORIES.get(department, DEFAULT_CATEGORY)


def _epoch_ms(value: str) -> int:
    moment = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)


def normalize_connector_document(
    payload: Mapping[str, Any],
    *,
    now: Optional[datetime] = None,
) -> DocumentRecord:
    """Build an approved `DocumentRecord` carrying the connector's own id."""

    if not isinstance(payload, Mapping):
        raise NormalizationError("invalid_payload", f"Connector document must be an object, got {type(payload).__name__}")

    try:
        document = ConnectorDocument.model_validate(payload)
    except ModelValidationError as exc:
        raise NormalizationError(
            "invalid_payload",
            "Connector document does not match the expected shape",
            {"id": payload.get("id"), "errors": exc.errors(include_url=False)},
        ) from exc

    try:
        last_modified_ms = _epoch_ms(document.date)
    except ValueError as exc:
        raise NormalizationError(
            "invalid_date",
            f"Connector document {document.id} has an unparseable date",
            {"id": document.id, "date": document.date},
        ) from exc

    tags = [tag for tag in document.tags if tag and tag.strip()]

    return DocumentRecord(
        id=document.id,
        title=document.title,
        category=category_for_department(document.department),
        description=f"Document ingested from {document.source}",
        tags=tags,
        access_level=CONNECTOR_ACCESS_LEVEL,
        files=[
            FileEntry(
                name=f"{document.title}.txt",
                size_bytes=SYNTHETIC_FILE_SIZE,
                mime_type=SYNTHETIC_FILE_TYPE,
                last_modified_ms=last_modified_ms,
                storage_path=document.file_path,
                metadata=ExtractedFileMetadata(
                    extracted_title=document.title,
                    extracted_date=document.date,
                    extracted_department=document.department,
                    extracted_tags=tags,
                ),
            )
        ],
        uploaded_by=f"{document.source} Connector",
        uploaded_at=now or datetime.now(timezone.utc),
        status=DocumentStatus.APPROVED,
        downloads=0,
        views=0,
        source=document.source,
        connector_data=dict(payload),
    )
