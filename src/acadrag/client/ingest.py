"""Extraction of course documents from PDF and text files."""

import hashlib
import logging
from pathlib import Path
from typing import Any

import fitz  # PyMuPDF

from acadrag.service.database.models import SourceDocument

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".pdf", ".txt", ".md"}


def extract_text_from_pdf(pdf_path: Path) -> tuple[str, dict[str, Any]]:
    """Extract all text from a PDF file.

    Args:
        pdf_path: Path to the PDF file

    Returns:
        Concatenated text from all pages and the PDF's embedded metadata
    """
    doc = fitz.open(pdf_path)
    try:
        text = "".join(page.get_text() for page in doc)
        pdf_metadata = dict(doc.metadata or {})
    finally:
        doc.close()
    return text, pdf_metadata


def document_id_for(path: Path) -> str:
    """Stable id derived from the file name, so re-ingesting replaces chunks."""
    digest = hashlib.sha1(path.name.encode("utf-8")).hexdigest()[:12]
    return f"{path.stem}-{digest}"


def extract_document_from_file(path: Path, metadata: dict[str, Any] | None = None) -> SourceDocument:
    """Read a PDF, text or markdown file into a SourceDocument.

    Args:
        path: File to read
        metadata: Course metadata (course_code, course_title, professor,
            topic, level, document_type, title)

    Returns:
        SourceDocument: The document with its full text

    Raises:
        ValueError: If the file type is not supported
    """
    metadata = metadata or {}
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        raise ValueError(f"Unsupported file type: {path.suffix}")

    logger.info(f"Extracting text from {path.name}...")
    pdf_metadata: dict[str, Any] = {}
    if suffix == ".pdf":
        text, pdf_metadata = extract_text_from_pdf(path)
    else:
        text = path.read_text(encoding="utf-8")
    logger.info(f"  Extracted {len(text)} characters")

    return SourceDocument(
        id=metadata.get("document_id") or document_id_for(path),
        title=metadata.get("title") or pdf_metadata.get("title") or path.stem,
        content=text,
        course_code=metadata.get("course_code") or "",
        course_title=metadata.get("course_title") or "",
        professor=metadata.get("professor") or pdf_metadata.get("author") or "",
        topic=metadata.get("topic") or "",
        level=metadata.get("level") or "",
        document_type=metadata.get("document_type") or "notes",
    )
