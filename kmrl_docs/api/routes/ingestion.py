"""FastAPI routes for manual uploads, connector syncs and the document list."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from pydantic import BaseModel, Field

from kmrl_docs.api.dependencies import get_orchestrator
from kmrl_docs.ingestion.pipeline import IngestionOrchestrator, UploadBatch
from kmrl_docs.ingestion.validator import FileValidator
from kmrl_docs.models import DocumentForm, DocumentRecord, FileMetadata, MetadataSummary, RawFile
from kmrl_docs.utils.files import file_icon, format_file_size

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["ingestion"])

DEFAULT_UPLOAD_TYPE = "application/octet-stream"


# Response Models


class StagedFileResponse(BaseModel):
    """An accepted file as shown in the upload preview."""

    name: str
    mime_type: str
    size_bytes: int
    size_label: str = Field(..., description="Human readable size, e.g. '1.5 MB'")
    icon: str = Field(..., description="Icon class for the file type")


class FileRejectionResponse(BaseModel):
    file_name: str
    reason: str
    message: str


class FormDefaultsResponse(BaseModel):
    title: str = ""
    tags: str = ""


class UploadSessionResponse(BaseModel):
    """Staged batch awaiting confirmation."""

    session_id: str = Field(..., description="Upload session identifier")
    files: List[StagedFileResponse]
    rejections: List[FileRejectionResponse] = Field(default_factory=list)
    metadata: Dict[str, FileMetadata] = Field(default_factory=dict, description="Per-file metadata by file name")
    summary: MetadataSummary
    defaults: FormDefaultsResponse


class DocumentListResponse(BaseModel):
    documents: List[DocumentRecord]
    total: int


class ConnectorSyncResponse(BaseModel):
    connector_id: str
    ingested: int
    documents: List[DocumentRecord]


class ConnectorStatusResponse(BaseModel):
    connector_id: str
    last_synced_at: Optional[datetime] = None
    documents_ingested: int = 0
    documents_skipped: int = 0
    last_error: Optional[str] = None


# Helpers


async def _to_raw_file(
    upload: UploadFile,
    validator: FileValidator,
    last_modified_ms: Optional[int] = None,
) -> RawFile:
    raw_file = RawFile(
        name=upload.filename or "upload",
        mime_type=upload.content_type or DEFAULT_UPLOAD_TYPE,
        size_bytes=upload.size or 0,
        last_modified_ms=last_modified_ms if last_modified_ms is not None else int(time.time() * 1000),
    )
    # Files the validator will reject are not read into memory.
    if upload.size is not None and validator.check(raw_file) is not None:
        return raw_file

    content = await upload.read()
    return raw_file.model_copy(update={"size_bytes": len(content), "content": content})


def _session_response(batch: UploadBatch) -> UploadSessionResponse:
    return UploadSessionResponse(
        session_id=batch.session_id,
        files=[
            StagedFileResponse(
                name=file.name,
                mime_type=file.mime_type,
                size_bytes=file.size_bytes,
                size_label=format_file_size(file.size_bytes),
                icon=file_icon(file.mime_type),
            )
            for file in batch.accepted
        ],
        rejections=[FileRejectionResponse(**rejection.as_dict()) for rejection in batch.rejections],
        metadata=batch.metadata,
        summary=batch.summary,
        defaults=FormDefaultsResponse(title=batch.defaults.title, tags=batch.defaults.tags),
    )


# Endpoints


@router.post("/uploads", response_model=UploadSessionResponse)
async def stage_upload(
    files: List[UploadFile] = File(..., description="Files to stage"),
    last_modified_ms: Optional[int] = Form(None, description="Last modification time applied to every file"),
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
) -> UploadSessionResponse:
    """
    Validate and extract a batch of files without storing anything.

    The returned session id is used to confirm the batch with the document
    form, or to discard it.
    """

    raw_files = [await _to_raw_file(upload, orchestrator.validator, last_modified_ms) for upload in files]
    batch = await orchestrator.stage_files(raw_files)
    return _session_response(batch)


@router.post("/uploads/{session_id}/documents", response_model=DocumentRecord, status_code=status.HTTP_201_CREATED)
async def submit_upload(
    session_id: str,
    form: DocumentForm,
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
) -> DocumentRecord:
    """Store a staged batch as one document."""

    return await orchestrator.submit(session_id, form)


@router.delete("/uploads/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def discard_upload(
    session_id: str,
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
) -> Response:
    orchestrator.discard(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/documents", response_model=DocumentRecord, status_code=status.HTTP_201_CREATED)
async def upload_document(
    files: List[UploadFile] = File(...),
    title: str = Form(""),
    category: str = Form(""),
    description: str = Form(""),
    tags: str = Form(""),
    access_level: str = Form(""),
    uploaded_by: Optional[str] = Form(None),
    last_modified_ms: Optional[int] = Form(None),
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
) -> DocumentRecord:
    """Validate, extract and store a batch in a single request."""

    form = DocumentForm(
        title=title,
        category=category,
        description=description,
        tags=tags,
        access_level=access_level,
        uploaded_by=uploaded_by,
    )
    raw_files = [await _to_raw_file(upload, orchestrator.validator, last_modified_ms) for upload in files]
    return await orchestrator.ingest_manual(raw_files, form)


@router.get("/documents", response_model=DocumentListResponse)
async def list_documents(orchestrator: IngestionOrchestrator = Depends(get_orchestrator)) -> DocumentListResponse:
    documents = await orchestrator.list_documents()
    return DocumentListResponse(documents=documents, total=len(documents))


@router.post("/connectors/{connector_id}/sync", response_model=ConnectorSyncResponse)
async def sync_connector(
    connector_id: str,
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
) -> ConnectorSyncResponse:
    """Pull a connector and upsert every document it returns."""

    records = await orchestrator.ingest_from_connector(connector_id)
    return ConnectorSyncResponse(connector_id=connector_id, ingested=len(records), documents=records)


@router.get("/connectors", response_model=List[ConnectorStatusResponse])
async def connector_statuses(
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
) -> List[ConnectorStatusResponse]:
    return [
        ConnectorStatusResponse(
            connector_id=sync.connector_id,
            last_synced_at=sync.last_synced_at,
            documents_ingested=sync.documents_ingested,
            documents_skipped=sync.documents_skipped,
            last_error=sync.last_error,
        )
        for sync in orchestrator.connector_statuses()
    ]
