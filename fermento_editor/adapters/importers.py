"""Manuscript import: DOCX and PDF uploads to editor text.

WHY: Authors hand in manuscripts as Word documents or PDFs. The editor
works on HTML paragraphs, so an upload has to be turned into something
the browser can load and the typography rules can run over.

HOW: import_document() dispatches on the file extension.
  .docx → python-docx, one escaped <p> per non-empty paragraph, bold and
          italic runs kept as <strong>/<em>
  .pdf  → PyMuPDF (fitz), the plain text of every page joined by newlines

RULES:
- Extension matching is case-insensitive
- Unsupported extensions raise UnsupportedFormatError (a ValueError)
- Parser failures raise DocumentImportError with the original cause chained
- Empty DOCX paragraphs are dropped; PDF text is returned as extracted
"""

from __future__ import annotations

import html
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List

import fitz
from docx import Document

from fermento_editor.config import SUPPORTED_UPLOAD_FORMATS

logger = logging.getLogger(__name__)


class UnsupportedFormatError(ValueError):
    """Raised for uploads whose extension has no importer."""

    def __init__(self, extension: str) -> None:
        self.extension = extension
        super().__init__(
            "Unsupported file type '{}'. Supported formats: {}".format(
                extension or "(none)", ", ".join(sorted(SUPPORTED_UPLOAD_FORMATS))
            )
        )


class DocumentImportError(Exception):
    """Raised when a supported file cannot be parsed."""


@dataclass
class ImportedDocument:
    """Result of one import.

    kind is "docx" (text holds HTML paragraphs) or "pdf" (plain text).
    """

    kind: str
    text: str


def _run_to_html(run) -> str:  # noqa: ANN001
    text = html.escape(run.text, quote=False)
    if not text:
        return ""
    if run.italic:
        text = "<em>{}</em>".format(text)
    if run.bold:
        text = "<strong>{}</strong>".format(text)
    return text


def docx_to_html(content: bytes) -> str:
    """Convert DOCX bytes to HTML paragraphs joined by newlines."""
    document = Document(io.BytesIO(content))
    paragraphs: List[str] = []
    for paragraph in document.paragraphs:
        if not paragraph.text.strip():
            continue
        inner = "".join(_run_to_html(run) for run in paragraph.runs)
        paragraphs.append("<p>{}</p>".format(inner.strip()))
    return "\n".join(paragraphs)


def pdf_to_text(content: bytes) -> str:
    """Extract the plain text of every page of a PDF."""
    doc = fitz.open(stream=content, filetype="pdf")
    try:
        pages = [page.get_text() for page in doc]
    finally:
        doc.close()
    return "\n".join(page.rstrip("\n") for page in pages)


_IMPORTERS = {
    ".docx": ("docx", docx_to_html),
    ".pdf": ("pdf", pdf_to_text),
}


def import_document(filename: str, content: bytes) -> ImportedDocument:
    """Import an uploaded manuscript.

    Args:
        filename: The client-side file name; only its extension is used.
        content: Raw file bytes.

    Returns:
        An ImportedDocument with the kind and the extracted text.
    """
    ext = Path(filename).suffix.lower()
    if ext not in SUPPORTED_UPLOAD_FORMATS or ext not in _IMPORTERS:
        raise UnsupportedFormatError(ext)

    kind, convert = _IMPORTERS[ext]
    try:
        text = convert(content)
    except Exception as exc:
        raise DocumentImportError(
            "Could not read {} file '{}': {}".format(kind.upper(), filename, exc)
        ) from exc

    logger.info("Imported %s (%s, %d chars)", filename, kind, len(text))
    return ImportedDocument(kind=kind, text=text)
