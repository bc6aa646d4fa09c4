"""Metadata extraction for uploaded files.

The pipeline only talks to `MetadataExtractorAdapter`. The adapter wraps an
optional `MetadataExtractor` capability and guarantees one `FileMetadata` per
file: when the capability is missing, or raises for a given file, that file
gets `default_metadata` built from its name and modification time.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from datetime import date, datetime, timezone
from typing import Callable, Dict, Iterable, List, MutableMapping, Optional, Protocol

from kmrl_docs.core.config import Settings
from kmrl_docs.core.exceptions import ExtractionError
from kmrl_docs.ingestion.parsers import DocumentParser
from kmrl_docs.models import FileMetadata, RawFile
from kmrl_docs.utils.monitoring import metadata_fallbacks_total

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]

DEPARTMENT_KEYWORDS: Dict[str, tuple[str, ...]] = {
    "Engineering": ("engineering", "maintenance", "rolling stock", "signalling", "track", "technical"),
    "HR": ("human resources", "hr", "recruitment", "payroll", "employee", "leave policy"),
    "Finance": ("finance", "financial", "budget", "invoice", "payment", "expenditure"),
    "Operations": ("operations", "timetable", "station", "passenger", "service schedule"),
    "Legal": ("legal", "contract", "agreement", "compliance", "regulation"),
}

TAG_VOCABULARY: tuple[str, ...] = (
    "maintenance",
    "safety",
    "budget",
    "contract",
    "schedule",
    "inspection",
    "training",
    "policy",
    "report",
    "compliance",
    "procurement",
    "audit",
    "incident",
    "tender",
    "circular",
    "meeting",
)

MAX_TAGS = 10
MAX_TITLE_LENGTH = 120

_DATE_PATTERN = re.compile(
    r"\b(?:(?P<iso_y>\d{4})-(?P<iso_m>\d{2})-(?P<iso_d>\d{2})"
    r"|(?P<dmy_d>\d{1,2})[/.-](?P<dmy_m>\d{1,2})[/.-](?P<dmy_y>\d{4}))\b"
)


def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE)


_DEPARTMENT_PATTERNS = {
    department: [_keyword_pattern(keyword) for keyword in keywords]
    for department, keywords in DEPARTMENT_KEYWORDS.items()
}
_TAG_PATTERNS = [(tag, _keyword_pattern(tag)) for tag in TAG_VOCABULARY]


def default_title(file_name: str) -> str:
    """File name without its trailing extension, or the whole name."""

    cut = file_name.rfind(".")
    if cut == -1:
        return file_name
    return file_name[:cut] or file_name


def modified_date(file: RawFile) -> Optional[str]:
    """UTC calendar date of the file's modification time, or None when out of range."""

    try:
        moment = datetime.fromtimestamp(file.last_modified_ms / 1000, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        logger.warning("Ignoring out-of-range modification time for %s: %s", file.name, file.last_modified_ms)
        return None
    return moment.date().isoformat()


def default_metadata(file: RawFile) -> FileMetadata:
    return FileMetadata(title=default_title(file.name), date=modified_date(file), department="", tags=[])


class MetadataExtractor(Protocol):
    async def extract(self, file: RawFile) -> FileMetadata: ...


class NullMetadataExtractor:
    """Extractor variant that only ever produces default metadata."""

    async def extract(self, file: RawFile) -> FileMetadata:
        return default_metadata(file)


class ContentMetadataExtractor:
    """Derive title, date, department and tags from a file's text."""

    def __init__(self, parser: Optional[DocumentParser] = None) -> None:
        self.parser = parser or DocumentParser()

    async def extract(self, file: RawFile) -> FileMetadata:
        if file.content is None:
            raise ExtractionError("no_content", f"No content available for {file.name}")

        text = await self.parser.parse(file.content, file.mime_type)

        return FileMetadata(
            title=self._detect_title(text) or default_title(file.name),
            date=self._detect_date(text) or modified_date(file),
            department=self._detect_department(text),
            tags=self._detect_tags(text),
        )

    def _detect_title(self, text: str) -> Optional[str]:
        for line in text.splitlines():
            candidate = " ".join(line.split())
            if not candidate:
                continue
            if len(candidate) <= MAX_TITLE_LENGTH and any(char.isalpha() for char in candidate):
                return candidate
            return None
        return None

    def _detect_date(self, text: str) -> Optional[str]:
        for match in _DATE_PATTERN.finditer(text):
            if match.group("iso_y"):
                parts = (match.group("iso_y"), match.group("iso_m"), match.group("iso_d"))
            else:
                parts = (match.group("dmy_y"), match.group("dmy_m"), match.group("dmy_d"))
            try:
                return date(*(int(part) for part in parts)).isoformat()
            except ValueError:
                continue
        return None

    def _detect_department(self, text: str) -> str:
        scores: Counter[str] = Counter()
        for department, patterns in _DEPARTMENT_PATTERNS.items():
            hits = sum(len(pattern.findall(text)) for pattern in patterns)
            if hits:
                scores[department] = hits
        if not scores:
            return ""
        best = max(scores.values())
        # Ties resolve to the first department in table order.
        return next(department for department in DEPARTMENT_KEYWORDS if scores.get(department) == best)

    def _detect_tags(self, text: str) -> List[str]:
        positions = []
        for tag, pattern in _TAG_PATTERNS:
            match = pattern.search(text)
            if match:
                positions.append((match.start(), tag))
        return [tag for _, tag in sorted(positions)[:MAX_TAGS]]


class MetadataExtractorAdapter:
    """Run the extractor capability over a batch with per-file fallback."""

    def __init__(self, extractor: Optional[MetadataExtractor]) -> None:
        self.extractor = extractor

    @property
    def available(self) -> bool:
        return self.extractor is not None

    async def extract_all(
        self,
        files: Iterable[RawFile],
        into: Optional[MutableMapping[str, FileMetadata]] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> MutableMapping[str, FileMetadata]:
        """Return one metadata entry per file name, in input order."""

        files = list(files)
        results: MutableMapping[str, FileMetadata] = into if into is not None else {}
        total = len(files)

        if self.extractor is None:
            logger.warning("Metadata extractor not available, using basic metadata")

        for index, file in enumerate(files, start=1):
            # Re-inserting moves the name to the end so the map follows input order.
            results.pop(file.name, None)
            results[file.name] = await self._extract_one(file)
            if progress is not None:
                progress(file.name, index, total)

        return results

    async def _extract_one(self, file: RawFile) -> FileMetadata:
        if self.extractor is None:
            metadata_fallbacks_total.labels(reason="unavailable").inc()
            return default_metadata(file)
        try:
            return await self.extractor.extract(file)
        except Exception as exc:
            logger.error("Error extracting metadata for %s: %s", file.name, exc)
            metadata_fallbacks_total.labels(reason="failed").inc()
            return default_metadata(file)


def load_metadata_extractor(settings: Settings) -> MetadataExtractor:
    """Select the extractor variant once at startup."""

    if not settings.ENABLE_METADATA_EXTRACTION:
        logger.info("Metadata extraction disabled; uploads will use default metadata")
        return NullMetadataExtractor()
    return ContentMetadataExtractor()
