"""Adapters between the editor's HTML and external document formats.

WHY: Manuscripts arrive as DOCX or PDF and leave as DOCX, while the editor
itself only knows HTML paragraphs. Adapters bridge these representations
so the HTTP layer never touches python-docx or PyMuPDF directly.

HOW: importers.py reads uploads (DOCX → HTML, PDF → text), docx_export.py
writes HTML back out as a Word document.

RULES:
- Adapters take and return bytes/str only; no file system access
- Each adapter lives in its own module under this package
"""

from fermento_editor.adapters.docx_export import html_to_docx
from fermento_editor.adapters.importers import (
    DocumentImportError,
    ImportedDocument,
    UnsupportedFormatError,
    import_document,
)

__all__ = [
    "DocumentImportError",
    "ImportedDocument",
    "UnsupportedFormatError",
    "html_to_docx",
    "import_document",
]
