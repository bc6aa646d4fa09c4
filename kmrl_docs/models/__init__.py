from .document import (
    ConnectorDocument,
    DateRange,
    DocumentForm,
    DocumentRecord,
    DocumentStatus,
    ExtractedFileMetadata,
    FileEntry,
    FileMetadata,
    MetadataSummary,
    RawFile,
)

__all__ = [
    "ConnectorDocument",
    "DateRange",
    "DocumentForm",
    "DocumentRecord",
    "DocumentStatus",
    "ExtractedFileMetadata",
    "FileEntry",
    "FileMetadata",
    "MetadataSummary",
    "RawFile",
]
