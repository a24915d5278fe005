"""Paragraph-scoped document model and HTML text helpers.

WHY: The typography rules must never let a pattern run from one
paragraph into the next, and must leave paragraphs they do not
understand untouched. Delimiting the document into discrete units first
bounds every regex to a single paragraph and turns the "already
canonical, do not touch" guard into a plain per-unit check.

HOW: split_blocks() cuts an HTML string into Block units (each either a
complete ``<p>…</p>`` element or the text between two paragraphs)
using a non-greedy, tag-scoped pattern. join_blocks() concatenates them
back. The remaining helpers convert between plain text and the simple
paragraph HTML the editor exchanges with the browser and the model.

RULES:
- join_blocks(split_blocks(html)) == html for every string
- A paragraph block starts with a bare ``<p>`` and ends at the first ``</p>``
- A ``<p …>`` element with attributes is its own block, flagged
  is_attributed_paragraph; no rule rewrites it
- Paragraph matching is case-insensitive
- A paragraph containing « or » is canonical and must not be rewritten
"""

from __future__ import annotations

import html as html_lib
import re
from dataclasses import dataclass

GUILLEMETS = ("«", "»")

_ANY_PARAGRAPH_RE = re.compile(r"<p\b[^>]*>.*?</p>", re.IGNORECASE | re.DOTALL)
_BARE_P_OPEN_RE = re.compile(r"<p>", re.IGNORECASE)
_BLANK_LINE_RE = re.compile(r"\r?\n\s*\r?\n")
_LINE_BREAK_RE = re.compile(r"\r?\n")
_BR_TAG_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_CLOSE_P_RE = re.compile(r"</p>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_CODE_FENCE_RE = re.compile(r"^```[A-Za-z]*\s*|\s*```\s*$")
_OPEN_P_TAG_RE = re.compile(r"^<p\b[^>]*>", re.IGNORECASE)
_TRAILING_CLOSE_P_RE = re.compile(r"</p>\s*$", re.IGNORECASE)


@dataclass
class Block:
    """One unit of a document.

    Attributes:
        text: The exact source text of the unit.
        is_paragraph: True for a complete ``<p>…</p>`` element, False for
                      the text between paragraphs (whitespace, other
                      markup, or a whole plain-text document).
        is_attributed_paragraph: True for a ``<p class=…>``-style element.
                      It is neither a paragraph unit nor plain text, so
                      rules pass it through unchanged.
    """

    text: str
    is_paragraph: bool
    is_attributed_paragraph: bool = False


def split_blocks(html: str) -> list[Block]:
    """Split an HTML string into paragraph and inter-paragraph blocks.

    Empty inter-paragraph spans are not emitted, so two adjacent
    paragraphs produce exactly two blocks.
    """
    blocks: list[Block] = []
    position = 0
    for match in _ANY_PARAGRAPH_RE.finditer(html):
        if match.start() > position:
            blocks.append(Block(html[position:match.start()], is_paragraph=False))
        element = match.group(0)
        bare = _BARE_P_OPEN_RE.match(element) is not None
        blocks.append(Block(element, is_paragraph=bare, is_attributed_paragraph=not bare))
        position = match.end()
    if position < len(html):
        blocks.append(Block(html[position:], is_paragraph=False))
    return blocks


def join_blocks(blocks: list[Block]) -> str:
    return "".join(block.text for block in blocks)


def is_canonical(text: str) -> bool:
    """True if the text already uses guillemet quoting."""
    return any(mark in text for mark in GUILLEMETS)


def looks_like_html(text: str) -> bool:
    return bool(text) and re.search(r"<p\b", text, re.IGNORECASE) is not None


def text_to_html(text: str) -> str:
    """Wrap plain text into ``<p>`` paragraphs.

    WHY: Model output and pasted text arrive as plain text with blank
    lines between paragraphs, while the typography rules and the DOCX
    export work on paragraph HTML.

    RULES:
    - Input that already contains a ``<p`` tag is returned unchanged
    - Paragraphs are separated by blank lines; empty ones are dropped
    - Paragraph text is HTML-escaped
    - Single newlines inside a paragraph become ``<br/>``
    - Paragraphs are joined with a newline
    """
    if not text or looks_like_html(text):
        return text
    paragraphs = [part.strip() for part in _BLANK_LINE_RE.split(text)]
    wrapped = []
    for paragraph in paragraphs:
        if not paragraph:
            continue
        lines = [html_lib.escape(line.strip()) for line in _LINE_BREAK_RE.split(paragraph)]
        wrapped.append("<p>{}</p>".format("<br/>".join(lines)))
    return "\n".join(wrapped)


def extract_paragraphs(html: str) -> list[str]:
    """Return every ``<p …>…</p>`` element of the document, in order."""
    if not html:
        return []
    return _ANY_PARAGRAPH_RE.findall(html)


def strip_tags(html: str) -> str:
    """Reduce paragraph HTML to plain text.

    Line-break tags and paragraph ends become newlines, every other tag
    is dropped, entities are decoded and non-breaking spaces become
    regular spaces.
    """
    if not html:
        return ""
    text = _BR_TAG_RE.sub("\n", html)
    text = _CLOSE_P_RE.sub("\n", text)
    text = _TAG_RE.sub("", text)
    text = html_lib.unescape(text).replace("\u00a0", " ")
    return text.strip()


def normalize_ai_paragraph(text: str) -> str:
    """Coerce a model reply into exactly one ``<p>…</p>`` element.

    Markdown code fences around the reply are dropped; the first paragraph
    element wins, and a reply without one is wrapped whole.
    """
    cleaned = _CODE_FENCE_RE.sub("", (text or "").strip()).strip()
    match = _ANY_PARAGRAPH_RE.search(cleaned)
    if match:
        return match.group(0).strip()
    return "<p>{}</p>".format(cleaned)


def split_into_blocks(text: str, max_chars: int = 15000) -> list[str]:
    """Cut long text into blocks of at most ``max_chars`` characters.

    WHY: A full manuscript does not fit into a single model request.

    HOW: While the remainder is too long, walk back from ``max_chars`` to
    the nearest space and cut there (hard cut at ``max_chars`` when the
    window has no space). Each block is trimmed.

    RULES:
    - Blank input returns an empty list
    - Text already within the limit returns a single block
    - Concatenating the blocks with spaces restores every word
    """
    if max_chars <= 0:
        raise ValueError("max_chars must be positive")
    blocks: list[str] = []
    remaining = text or ""
    if not remaining.strip():
        return blocks

    while len(remaining) > max_chars:
        cutoff = remaining.rfind(" ", 0, max_chars + 1)
        if cutoff <= 0:
            cutoff = max_chars
        block = remaining[:cutoff].strip()
        if block:
            blocks.append(block)
        remaining = remaining[cutoff:].strip()

    if remaining:
        blocks.append(remaining)
    return blocks


def split_paragraph_on_breaks(paragraph: str) -> list[str]:
    """Split one ``<p>`` element into one ``<p>`` per ``<br>``-separated line.

    A paragraph without line-break tags is returned as the only element.
    """
    inner = _TRAILING_CLOSE_P_RE.sub("", _OPEN_P_TAG_RE.sub("", paragraph))
    if not _BR_TAG_RE.search(inner):
        return [paragraph]
    return ["<p>{}</p>".format(part) for part in _BR_TAG_RE.split(inner)]
