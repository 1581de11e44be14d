"""Text extraction from resume and posting files (PDF, DOCX, plain text)."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

import docx
from pydantic import BaseModel
from pypdf import PdfReader

from ..core.exceptions import DocumentError

logger = logging.getLogger(__name__)

TEXT_SUFFIXES = (".txt", ".md", "")
SUPPORTED_FORMATS = "PDF, DOCX, TXT"

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_BLANK_LINES = re.compile(r"\n{3,}")


class DocumentText(BaseModel):
    text: str
    word_count: int
    page_count: Optional[int] = None


def clean_text(text: str) -> str:
    """Drop control characters and runs of blank lines."""
    text = _CONTROL_CHARS.sub("", text.replace("\r\n", "\n"))
    text = "\n".join(line.rstrip() for line in text.split("\n"))
    return _BLANK_LINES.sub("\n\n", text).strip()


def _pdf_text(path: Path) -> tuple[str, int]:
    reader = PdfReader(path)
    parts = []
    for page in reader.pages:
        page_text = page.extract_text()
        if page_text:
            parts.append(page_text)
    return "\n\n".join(parts), len(reader.pages)


def _docx_text(path: Path) -> str:
    document = docx.Document(str(path))
    lines = [p.text for p in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            lines.append(" | ".join(cell.text.strip() for cell in row.cells))
    return "\n".join(lines)


def extract_document_text(path: Path | str) -> DocumentText:
    """Read a PDF, DOCX or plain-text file, choosing the reader by suffix.

    Raises:
        DocumentError: unsupported suffix, unreadable file, or no text found
            (a scanned PDF has no text layer).
    """
    path = Path(path)
    suffix = path.suffix.lower()
    page_count = None

    if suffix == ".pdf":
        try:
            raw, page_count = _pdf_text(path)
        except Exception as e:
            logger.error("PDF text extraction failed for %s: %s", path.name, e)
            raise DocumentError(f"Failed to extract text from PDF file: {path.name}") from e
    elif suffix == ".docx":
        try:
            raw = _docx_text(path)
        except Exception as e:
            logger.error("DOCX text extraction failed for %s: %s", path.name, e)
            raise DocumentError(f"Failed to extract text from DOCX file: {path.name}") from e
    elif suffix in TEXT_SUFFIXES:
        try:
            raw = path.read_text(encoding="utf-8-sig")
        except UnicodeDecodeError as e:
            raise DocumentError(f"Failed to extract text from text file: {path.name} is not UTF-8") from e
    else:
        raise DocumentError(f"Unsupported file type '{suffix}'. Supported formats: {SUPPORTED_FORMATS}")

    text = clean_text(raw)
    if not text:
        raise DocumentError(f"No text could be extracted from {path.name}")

    result = DocumentText(text=text, word_count=len(text.split()), page_count=page_count)
    logger.info(
        "Extracted %d words from %s%s",
        result.word_count, path.name, f" ({page_count} pages)" if page_count else "",
    )
    return result
