"""Custom exception hierarchy for the document intake service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from fastapi import status


class ApplicationError(Exception):
    """Base application error with HTTP semantics."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "application_error"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.message = message
        self.details = details or {}


class NotFoundError(ApplicationError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ValidationError(ApplicationError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "validation_error"


class FormValidationError(ValidationError):
    """A required form field is missing or blank."""

    code = "form_validation_error"

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message, details={"field": field})
        self.field = field


class NoValidFilesError(ValidationError):
    """Every file in the submitted batch was rejected."""

    code = "no_valid_files"

    def __init__(self, rejections: List[Any]) -> None:
        super().__init__(
            "No valid files selected. Please choose supported file types.",
            details={"rejections": [rejection.as_dict() for rejection in rejections]},
        )
        self.rejections = rejections


class UploadSessionNotFoundError(NotFoundError):
    code = "upload_session_not_found"


class ConnectorNotFoundError(NotFoundError):
    code = "connector_not_found"


class ConnectorError(ApplicationError):
    """The connector pull failed; nothing from it was ingested."""

    status_code = status.HTTP_502_BAD_GATEWAY
    code = "connector_failure"


class StoreError(ApplicationError):
    """The document store could not be read or written."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "store_failure"


@dataclass
class IngestionError(Exception):
    """Base class for item-scoped failures that the pipeline absorbs."""

    error_code: str
    message: str
    details: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        base = f"[{self.error_code}] {self.message}"
        if self.details:
            return f"{base} :: {self.details}"
        return base


class ExtractionError(IngestionError):
    """Raised when metadata cannot be extracted from a single file."""


class NormalizationError(IngestionError):
    """Raised when a connector document cannot be turned into a record."""
