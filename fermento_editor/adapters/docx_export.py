"""HTML to DOCX export.

WHY: Editors deliver the edited manuscript (and manuscript evaluations)
as Word files. The browser holds the document as HTML paragraphs, so the
export walks that HTML and rebuilds it with python-docx.

HOW: _DocxBuilder is an html.parser.HTMLParser that opens a python-docx
paragraph for every block tag and adds a run for every text chunk,
carrying the bold/italic state of the enclosing inline tags.

RULES:
- Block tags: p (Normal), h1-h3 (Heading 1-3)
- Inline tags: strong/b → bold, em/i → italic, br → line break
- Unknown tags are ignored but their text is kept
- Text outside any block tag gets its own Normal paragraph
- Whitespace inside a paragraph collapses as in a browser
- Entities are decoded by the parser
"""

from __future__ import annotations

import io
import re
from html.parser import HTMLParser
from typing import Optional

from docx import Document
from docx.shared import Pt

from fermento_editor.config import DOCX_FONT_NAME, DOCX_FONT_SIZE_PT

_BLOCK_STYLES = {
    "p": "Normal",
    "h1": "Heading 1",
    "h2": "Heading 2",
    "h3": "Heading 3",
}
_BOLD_TAGS = frozenset({"strong", "b"})
_ITALIC_TAGS = frozenset({"em", "i"})

_WHITESPACE_RE = re.compile(r"\s+")


class _DocxBuilder(HTMLParser):
    """Feeds parsed HTML into a python-docx Document."""

    def __init__(self, document) -> None:  # noqa: ANN001
        super().__init__(convert_charrefs=True)
        self.document = document
        self._paragraph = None
        self._at_line_start = True
        self._bold = 0
        self._italic = 0

    def _open_paragraph(self, style: str) -> None:
        self._paragraph = self.document.add_paragraph(style=style)
        self._at_line_start = True

    def handle_starttag(self, tag, attrs):  # noqa: ANN001
        if tag in _BLOCK_STYLES:
            self._open_paragraph(_BLOCK_STYLES[tag])
        elif tag == "br":
            if self._paragraph is None:
                self._open_paragraph("Normal")
            self._paragraph.add_run().add_break()
            self._at_line_start = True
        elif tag in _BOLD_TAGS:
            self._bold += 1
        elif tag in _ITALIC_TAGS:
            self._italic += 1

    def handle_startendtag(self, tag, attrs):  # noqa: ANN001
        if tag == "br":
            self.handle_starttag(tag, attrs)

    def handle_endtag(self, tag):  # noqa: ANN001
        if tag in _BLOCK_STYLES:
            self._paragraph = None
        elif tag in _BOLD_TAGS:
            self._bold = max(0, self._bold - 1)
        elif tag in _ITALIC_TAGS:
            self._italic = max(0, self._italic - 1)

    def handle_data(self, data):  # noqa: ANN001
        text = _WHITESPACE_RE.sub(" ", data)
        if self._paragraph is None:
            if not text.strip():
                return
            self._open_paragraph("Normal")
        if self._at_line_start:
            text = text.lstrip()
        if not text:
            return
        run = self._paragraph.add_run(text)
        run.bold = bool(self._bold) or None
        run.italic = bool(self._italic) or None
        self._at_line_start = False


def html_to_docx(
    html: str,
    font_name: Optional[str] = None,
    font_size_pt: Optional[float] = None,
) -> bytes:
    """Render HTML paragraphs as a DOCX file.

    Args:
        html: Editor HTML (<p>, <h1>-<h3>, <br>, <strong>, <em>, ...).
        font_name: Body font; defaults to DOCX_FONT_NAME.
        font_size_pt: Body font size in points; defaults to DOCX_FONT_SIZE_PT.

    Returns:
        The .docx file content.
    """
    document = Document()
    normal = document.styles["Normal"]
    normal.font.name = font_name or DOCX_FONT_NAME
    normal.font.size = Pt(font_size_pt or DOCX_FONT_SIZE_PT)

    builder = _DocxBuilder(document)
    builder.feed(html or "")
    builder.close()

    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()
