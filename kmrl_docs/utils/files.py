"""Display helpers for uploaded files."""

from __future__ import annotations

import math

FILE_ICONS = {
    "application/pdf": "fas fa-file-pdf text-danger",
    "application/msword": "fas fa-file-word text-primary",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "fas fa-file-word text-primary",
    "application/vnd.ms-excel": "fas fa-file-excel text-success",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "fas fa-file-excel text-success",
    "application/vnd.ms-powerpoint": "fas fa-file-powerpoint text-warning",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": "fas fa-file-powerpoint text-warning",
    "text/plain": "fas fa-file-alt",
    "image/jpeg": "fas fa-file-image text-info",
    "image/png": "fas fa-file-image text-info",
    "image/gif": "fas fa-file-image text-info",
}
DEFAULT_FILE_ICON = "fas fa-file"

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def file_icon(mime_type: str) -> str:
    return FILE_ICONS.get(mime_type, DEFAULT_FILE_ICON)


def format_file_size(size_bytes: int) -> str:
    """Render a byte count as e.g. ``"1.5 MB"`` (two decimals, trailing zeros dropped)."""

    if size_bytes <= 0:
        return "0 Bytes"
    exponent = 0
    while size_bytes >= math.pow(1024, exponent + 1) and exponent < len(_SIZE_UNITS) - 1:
        exponent += 1
    value = round(size_bytes / math.pow(1024, exponent), 2)
    return f"{value:g} {_SIZE_UNITS[exponent]}"
