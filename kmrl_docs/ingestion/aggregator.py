"""Batch-level summary over per-file metadata."""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional

from kmrl_docs.models import DateRange, FileMetadata, MetadataSummary


def _field(metadata: Any, name: str) -> Any:
    if isinstance(metadata, Mapping):
        return metadata.get(name)
    return getattr(metadata, name, None)


def _append_new(target: List[str], values: Iterable[str]) -> None:
    for value in values:
        if value not in target:
            target.append(value)


def summarize(metadata_by_file: Mapping[str, FileMetadata | Mapping[str, Any]]) -> MetadataSummary:
    """Fold per-file metadata into a `MetadataSummary`.

    Departments and tags keep first-seen order. ISO-8601 dates are fixed width
    and zero padded, so string comparison gives chronological order.
    """

    departments: List[str] = []
    tags: List[str] = []
    earliest: Optional[str] = None
    latest: Optional[str] = None

    for metadata in metadata_by_file.values():
        department = _field(metadata, "department")
        if department:
            _append_new(departments, [department])

        _append_new(tags, _field(metadata, "tags") or [])

        date = _field(metadata, "date")
        if date:
            if earliest is None or date < earliest:
                earliest = date
            if latest is None or date > latest:
                latest = date

    return MetadataSummary(
        total_files=len(metadata_by_file),
        departments_detected=departments,
        all_tags=tags,
        date_range=DateRange(earliest=earliest, latest=latest),
    )
