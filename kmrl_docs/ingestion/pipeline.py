"""Ingestion orchestration for manual uploads and connector syncs."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Mapping, Optional

from opentelemetry import trace

from kmrl_docs.core.config import Settings, settings as default_settings
from kmrl_docs.core.exceptions import (
    ConnectorError,
    ConnectorNotFoundError,
    FormValidationError,
    NoValidFilesError,
    NormalizationError,
    StoreError,
    UploadSessionNotFoundError,
)
from kmrl_docs.ingestion.aggregator import summarize
from kmrl_docs.ingestion.connectors import ConnectorSource
from kmrl_docs.ingestion.extractors import (
    MetadataExtractor,
    MetadataExtractorAdapter,
    ProgressCallback,
    default_title,
)
from kmrl_docs.ingestion.normalization import normalize_connector_document
from kmrl_docs.ingestion.store import DocumentStore
from kmrl_docs.ingestion.validator import FileRejection, FileValidator
from kmrl_docs.models import (
    DocumentForm,
    DocumentRecord,
    DocumentStatus,
    ExtractedFileMetadata,
    FileEntry,
    FileMetadata,
    MetadataSummary,
    RawFile,
)
from kmrl_docs.utils.audit import AuditLogger, audit_logger
from kmrl_docs.utils.monitoring import connector_syncs_total, documents_upserted_total

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


@dataclass
class FormDefaults:
    title: str = ""
    tags: str = ""


@dataclass
class UploadBatch:
    """A validated and extracted batch waiting for the user to confirm it."""

    session_id: str
    accepted: List[RawFile]
    rejections: List[FileRejection]
    metadata: Dict[str, FileMetadata]
    summary: MetadataSummary
    defaults: FormDefaults = field(default_factory=FormDefaults)


@dataclass
class ConnectorSyncStatus:
    connector_id: str
    last_synced_at: Optional[datetime] = None
    documents_ingested: int = 0
    documents_skipped: int = 0
    last_error: Optional[str] = None


class IngestionOrchestrator:
    """Sequence validation, extraction, aggregation and store writes.

    The orchestrator owns the staged upload sessions and the connector sync
    statuses; nothing else writes to them.
    """

    def __init__(
        self,
        store: DocumentStore,
        extractor: Optional[MetadataExtractor],
        connectors: ConnectorSource,
        *,
        validator: Optional[FileValidator] = None,
        settings: Optional[Settings] = None,
        audit: Optional[AuditLogger] = None,
    ) -> None:
        self.store = store
        self.extraction = MetadataExtractorAdapter(extractor)
        self.connectors = connectors
        self.validator = validator or FileValidator()
        self.settings = settings or default_settings
        self.audit = audit or audit_logger
        self._sessions: Dict[str, UploadBatch] = {}
        self._connector_status: Dict[str, ConnectorSyncStatus] = {}

    # Manual uploads

    async def stage_files(self, files: Iterable[RawFile], progress: Optional[ProgressCallback] = None) -> UploadBatch:
        """Validate and extract a batch, keeping it until the user confirms."""

        with tracer.start_as_current_span("ingestion.stage_files"):
            batch = await self._prepare(files, progress)
        self._sessions[batch.session_id] = batch
        logger.info("Staged upload %s with %s file(s)", batch.session_id, len(batch.accepted))
        return batch

    def get_session(self, session_id: str) -> UploadBatch:
        batch = self._sessions.get(session_id)
        if batch is None:
            raise UploadSessionNotFoundError(f"Upload session {session_id} not found")
        return batch

    def discard(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is None:
            raise UploadSessionNotFoundError(f"Upload session {session_id} not found")
        logger.info("Discarded upload %s", session_id)

    async def submit(self, session_id: str, form: DocumentForm) -> DocumentRecord:
        """Store a staged batch with the user-confirmed form fields."""

        batch = self.get_session(session_id)
        self.validate_form(form)
        with tracer.start_as_current_span("ingestion.submit") as span:
            span.set_attribute("upload.files", len(batch.accepted))
            record = await self._store_manual(batch, form)
        self._sessions.pop(session_id, None)
        return record

    async def ingest_manual(
        self,
        files: Iterable[RawFile],
        form: DocumentForm,
        progress: Optional[ProgressCallback] = None,
    ) -> DocumentRecord:
        """Validate, extract and store a batch in one call."""

        self.validate_form(form)
        with tracer.start_as_current_span("ingestion.ingest_manual") as span:
            batch = await self._prepare(files, progress)
            span.set_attribute("upload.files", len(batch.accepted))
            return await self._store_manual(batch, form)

    @staticmethod
    def validate_form(form: DocumentForm) -> None:
        if not form.title.strip():
            raise FormValidationError("title", "Document title is required")
        if not form.category.strip():
            raise FormValidationError("category", "Please select a category")
        if not form.access_level.strip():
            raise FormValidationError("access_level", "Please select an access level")

    async def _prepare(self, files: Iterable[RawFile], progress: Optional[ProgressCallback]) -> UploadBatch:
        result = self.validator.screen(files)
        if not result.accepted:
            raise NoValidFilesError(result.rejections)

        metadata = await self.extraction.extract_all(result.accepted, progress=progress)
        return UploadBatch(
            session_id=uuid.uuid4().hex,
            accepted=result.accepted,
            rejections=result.rejections,
            metadata=dict(metadata),
            summary=summarize(metadata),
            defaults=self._form_defaults(result.accepted, metadata),
        )

    @staticmethod
    def _form_defaults(files: List[RawFile], metadata: Mapping[str, FileMetadata]) -> FormDefaults:
        if len(files) != 1:
            return FormDefaults()
        file = files[0]
        extracted = metadata.get(file.name)
        if extracted is None:
            return FormDefaults(title=default_title(file.name))
        return FormDefaults(title=extracted.title or default_title(file.name), tags=", ".join(extracted.tags))

    async def _store_manual(self, batch: UploadBatch, form: DocumentForm) -> DocumentRecord:
        record = await self.build_manual_record(batch, form)
        replaced = await self.store.upsert(record)
        self._record_write(record, replaced=replaced, origin="manual")
        return record

    async def build_manual_record(self, batch: UploadBatch, form: DocumentForm) -> DocumentRecord:
        document_id = await self.store.new_id()
        try:
            return DocumentRecord(
                id=document_id,
                title=form.title.strip(),
                category=form.category,
                description=form.description,
                tags=form.tag_list(),
                access_level=form.access_level,
                files=[self._file_entry(file, batch.metadata.get(file.name)) for file in batch.accepted],
                uploaded_by=(form.uploaded_by or "").strip() or self.settings.DEFAULT_UPLOADER,
                uploaded_at=datetime.now(timezone.utc),
                status=DocumentStatus.PENDING,
                downloads=0,
                views=0,
                extracted_metadata=batch.summary,
            )
        except Exception:
            self.store.release_id(document_id)
            raise

    def _file_entry(self, file: RawFile, metadata: Optional[FileMetadata]) -> FileEntry:
        metadata = metadata or FileMetadata()
        return FileEntry(
            name=file.name,
            size_bytes=file.size_bytes,
            mime_type=file.mime_type,
            last_modified_ms=file.last_modified_ms,
            storage_path=f"{self.settings.UPLOAD_STORAGE_PREFIX}/{file.name}",
            metadata=ExtractedFileMetadata(
                extracted_title=metadata.title or "",
                extracted_date=metadata.date or "",
                extracted_department=metadata.department or "",
                extracted_tags=list(metadata.tags),
            ),
        )

    # Connector ingestion

    async def ingest_from_connector(self, connector_id: str) -> List[DocumentRecord]:
        """Pull a connector and upsert every document it returns.

        A failed pull fails the call before anything is written; a document
        that cannot be normalized is skipped.
        """

        with tracer.start_as_current_span("ingestion.connector_sync") as span:
            span.set_attribute("connector.id", connector_id)
            try:
                documents = await self.connectors.ingest_documents(connector_id)
            except ConnectorNotFoundError:
                raise
            except Exception as exc:
                logger.error("Error syncing %s: %s", connector_id, exc)
                self._sync_status(connector_id).last_error = str(exc)
                connector_syncs_total.labels(connector=connector_id, outcome="failed").inc()
                raise ConnectorError(f"Failed to sync {connector_id}: {exc}") from exc

            status = self._sync_status(connector_id)
            now = datetime.now(timezone.utc)
            records: List[DocumentRecord] = []
            skipped = 0

            for payload in documents:
                try:
                    record = normalize_connector_document(payload, now=now)
                except NormalizationError as exc:
                    logger.warning("Skipping document from %s: %s", connector_id, exc)
                    skipped += 1
                    continue
                try:
                    replaced = await self.store.upsert(record)
                except StoreError as exc:
                    status.last_error = exc.message
                    connector_syncs_total.labels(connector=connector_id, outcome="failed").inc()
                    raise
                self._record_write(record, replaced=replaced, origin="connector")
                records.append(record)

            span.set_attribute("connector.documents", len(records))
            status.last_synced_at = now
            status.documents_ingested = len(records)
            status.documents_skipped = skipped
            status.last_error = None
            connector_syncs_total.labels(connector=connector_id, outcome="succeeded").inc()

        logger.info("Successfully ingested %s document(s) from %s", len(records), connector_id)
        return records

    def connector_statuses(self) -> List[ConnectorSyncStatus]:
        return list(self._connector_status.values())

    def _sync_status(self, connector_id: str) -> ConnectorSyncStatus:
        return self._connector_status.setdefault(connector_id, ConnectorSyncStatus(connector_id=connector_id))

    # Reads

    async def list_documents(self) -> List[DocumentRecord]:
        return await self.store.list_all()

    def _record_write(self, record: DocumentRecord, *, replaced: bool, origin: str) -> None:
        documents_upserted_total.labels(origin=origin, outcome="updated" if replaced else "created").inc()
        self.audit.document_written(record, replaced=replaced, origin=origin)
