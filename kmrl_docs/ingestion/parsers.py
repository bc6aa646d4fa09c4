"""Text extraction used by the content metadata extractor."""

from __future__ import annotations

import asyncio
import io
import logging
from typing import Callable, Dict

import openpyxl
import pdfplumber
from docx import Document as DocxDocument
from pptx import Presentation

logger = logging.getLogger(__name__)

WORD_TYPES = {
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/msword",
}
PRESENTATION_TYPES = {
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "application/vnd.ms-powerpoint",
}
SPREADSHEET_TYPES = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel",
}


def _pdf_text(content: bytes) -> str:
    with pdfplumber.open(io.BytesIO(content)) as pdf:
        pages = [page.extract_text() or "" for page in pdf.pages]
    return "\n\n".join(page.strip() for page in pages if page)


def _word_text(content: bytes) -> str:
    document = DocxDocument(io.BytesIO(content))
    return "\n".join(paragraph.text.strip() for paragraph in document.paragraphs if paragraph.text.strip())


def _presentation_text(content: bytes) -> str:
    slides = []
    for slide in Presentation(io.BytesIO(content)).slides:
        segments = [shape.text.strip() for shape in slide.shapes if getattr(shape, "text", "")]
        if segments:
            slides.append("\n".join(segments))
    return "\n\n".join(slides)


def _spreadsheet_text(content: bytes) -> str:
    workbook = openpyxl.load_workbook(filename=io.BytesIO(content), data_only=True, read_only=True)
    sheets = []
    for sheet in workbook.worksheets:
        rows = [
            ", ".join("" if cell is None else str(cell) for cell in row).strip(", ")
            for row in sheet.iter_rows(values_only=True)
        ]
        if rows:
            sheets.append(f"Sheet: {sheet.title}\n" + "\n".join(rows))
    return "\n\n".join(sheets)


_READERS: Dict[str, Callable[[bytes], str]] = {
    "application/pdf": _pdf_text,
    **{mime_type: _word_text for mime_type in WORD_TYPES},
    **{mime_type: _presentation_text for mime_type in PRESENTATION_TYPES},
    **{mime_type: _spreadsheet_text for mime_type in SPREADSHEET_TYPES},
}


class DocumentParser:
    """Turn uploaded bytes into plain text.

    Images produce no text. Legacy binary Office formats (``.doc``, ``.xls``,
    ``.ppt``) are not readable by the OOXML libraries; they raise and the
    extractor adapter falls back to default metadata.
    """

    async def parse(self, content: bytes, mime_type: str) -> str:
        mime_type = (mime_type or "").lower()

        if mime_type.startswith("image/"):
            text = ""
        elif mime_type in _READERS:
            text = await asyncio.to_thread(_READERS[mime_type], content)
        else:
            text = content.decode("utf-8", errors="ignore")

        logger.debug("Read %s characters from %s bytes of %s", len(text), len(content), mime_type)
        return text
