"""Upload validation: MIME allow-list and size ceiling."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

from kmrl_docs.models import RawFile
from kmrl_docs.utils.monitoring import files_rejected_total

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-powerpoint",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        "text/plain",
        "image/jpeg",
        "image/png",
        "image/gif",
    }
)

MAX_FILE_SIZE_BYTES = 50 * 1024 * 1024


class RejectionReason(str, Enum):
    UNSUPPORTED_TYPE = "unsupported_type"
    TOO_LARGE = "too_large"


@dataclass(frozen=True)
class FileRejection:
    file_name: str
    reason: RejectionReason
    message: str

    def as_dict(self) -> Dict[str, str]:
        return {"file_name": self.file_name, "reason": self.reason.value, "message": self.message}


@dataclass
class FileValidationResult:
    accepted: List[RawFile] = field(default_factory=list)
    rejections: List[FileRejection] = field(default_factory=list)


class FileValidator:
    """Filter a raw batch down to files the store accepts."""

    def __init__(
        self,
        allowed_types: Iterable[str] = ALLOWED_MIME_TYPES,
        max_size_bytes: int = MAX_FILE_SIZE_BYTES,
    ) -> None:
        self.allowed_types = frozenset(allowed_types)
        self.max_size_bytes = max_size_bytes

    def check(self, file: RawFile) -> Optional[FileRejection]:
        # Type is checked before size, so a file failing both reports the type.
        if file.mime_type not in self.allowed_types:
            return FileRejection(
                file_name=file.name,
                reason=RejectionReason.UNSUPPORTED_TYPE,
                message=f"File type not supported: {file.name}",
            )
        if file.size_bytes > self.max_size_bytes:
            limit_mb = self.max_size_bytes // (1024 * 1024)
            return FileRejection(
                file_name=file.name,
                reason=RejectionReason.TOO_LARGE,
                message=f"File too large: {file.name} (max {limit_mb}MB)",
            )
        return None

    def screen(self, files: Iterable[RawFile]) -> FileValidationResult:
        result = FileValidationResult()
        for file in files:
            rejection = self.check(file)
            if rejection is None:
                result.accepted.append(file)
                continue
            logger.warning("Rejected upload %s: %s", file.name, rejection.reason.value)
            files_rejected_total.labels(reason=rejection.reason.value).inc()
            result.rejections.append(rejection)
        return result

    def validate(
        self,
        files: Iterable[RawFile],
        on_reject: Optional[Callable[[FileRejection], None]] = None,
    ) -> List[RawFile]:
        """Return the accepted files in input order, reporting each rejection."""

        result = self.screen(files)
        if on_reject is not None:
            for rejection in result.rejections:
                on_reject(rejection)
        return result.accepted
