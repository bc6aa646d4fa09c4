"""Document data model definitions."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _distinct(values: List[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for value in values:
        seen.setdefault(value, None)
    return list(seen)


class DocumentStatus(str, Enum):
    """Review status of a stored document."""

    PENDING = "pending"
    APPROVED = "approved"


class RawFile(BaseModel):
    """A file handed to the pipeline by the caller."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="File name including extension")
    mime_type: str = Field(..., description="Declared MIME type")
    size_bytes: int = Field(..., ge=0, description="File size in bytes")
    last_modified_ms: int = Field(..., description="Last modification time, epoch milliseconds")
    content: Optional[bytes] = Field(None, repr=False, exclude=True, description="File bytes, if read")


class FileMetadata(BaseModel):
    """Descriptive metadata derived for a single file."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    date: Optional[str] = Field(None, description="ISO-8601 calendar date")
    department: str = ""
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def _collapse_tags(cls, value: Any) -> List[str]:
        if value is None:
            return []
        return _distinct([str(tag) for tag in value])


class DateRange(BaseModel):
    earliest: Optional[str] = None
    latest: Optional[str] = None


class MetadataSummary(BaseModel):
    """Batch-level view over the metadata of every staged file."""

    total_files: int = 0
    departments_detected: List[str] = Field(default_factory=list)
    all_tags: List[str] = Field(default_factory=list)
    date_range: DateRange = Field(default_factory=DateRange)


class ExtractedFileMetadata(BaseModel):
    extracted_title: str = ""
    extracted_date: str = ""
    extracted_department: str = ""
    extracted_tags: List[str] = Field(default_factory=list)


class FileEntry(BaseModel):
    """A file as recorded inside a stored document."""

    name: str
    size_bytes: int = Field(..., ge=0)
    mime_type: str
    last_modified_ms: int
    storage_path: str
    metadata: ExtractedFileMetadata = Field(default_factory=ExtractedFileMetadata)


class DocumentRecord(BaseModel):
    """The persisted unit of the document store."""

    id: str = Field(..., min_length=1)
    title: str
    category: str
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    access_level: str
    files: List[FileEntry] = Field(default_factory=list)
    uploaded_by: str
    uploaded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    status: DocumentStatus = DocumentStatus.PENDING
    downloads: int = Field(0, ge=0)
    views: int = Field(0, ge=0)
    extracted_metadata: Optional[MetadataSummary] = None
    source: Optional[str] = Field(None, description="Connector source name for ingested documents")
    connector_data: Optional[Dict[str, Any]] = Field(None, description="Raw connector payload")

    @field_validator("tags")
    @classmethod
    def _drop_blank_tags(cls, value: List[str]) -> List[str]:
        return [tag.strip() for tag in value if tag and tag.strip()]


class DocumentForm(BaseModel):
    """Fields the user confirms before a manual upload is stored."""

    title: str = ""
    category: str = ""
    description: str = ""
    tags: str = Field("", description="Comma separated tags")
    access_level: str = ""
    uploaded_by: Optional[str] = None

    def tag_list(self) -> List[str]:
        return [tag.strip() for tag in self.tags.split(",") if tag.strip()]


class ConnectorDocument(BaseModel):
    """Shape of a document returned by a connector source."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    department: str = ""
    date: str
    tags: List[str] = Field(default_factory=list)
    source: str = Field(..., min_length=1)
    file_path: str = Field("", alias="filePath")

    @field_validator("department", mode="before")
    @classmethod
    def _none_department(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("tags", mode="before")
    @classmethod
    def _none_tags(cls, value: Any) -> Any:
        return [] if value is None else value
