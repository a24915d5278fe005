"""Paragraph-preserving AI editing of DOCX-derived HTML.

WHY: When a manuscript comes from a Word file, the editor must get back
exactly the same paragraphs in the same order, each one edited. A single
"edit this document" prompt lets the model merge, split or drop
paragraphs. Editing paragraph by paragraph keeps the structure, and
batching keeps the number of requests reasonable.

HOW: Four steps:
  1. Normalize: every <p> is split on <br> into one <p> per line.
  2. Filter: empty paragraphs become <p></p>, chapter titles
     ("Capitolo ...") are kept as plain text; neither is sent to the model.
  3. Batch: editable paragraphs are grouped (at most BATCH_MAX_PARAGRAPHS
     paragraphs and BATCH_MAX_CHARS characters per batch) and each batch
     asks for a JSON array with one <p> per input paragraph. A reply of
     the wrong shape is retried once with a stricter prompt, then the
     batch falls back to one request per paragraph.
  4. Reassemble: outputs are put back at their original positions.

RULES:
- The output has exactly one <p> per normalized input paragraph, in order
- Every model reply is coerced to one <p> with normalize_ai_paragraph()
- Batches run sequentially (one request in flight at a time)
- Model errors propagate (LLMAPIError, EmptyCompletionError, httpx errors)
"""

from __future__ import annotations

import html as html_lib
import json
import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from fermento_editor.api.client import LLMClient
from fermento_editor.api.prompts import (
    build_paragraph_batch_messages,
    build_single_paragraph_messages,
)
from fermento_editor.core.document import (
    extract_paragraphs,
    normalize_ai_paragraph,
    split_paragraph_on_breaks,
    strip_tags,
    text_to_html,
)

logger = logging.getLogger(__name__)

BATCH_MAX_PARAGRAPHS = 10
BATCH_MAX_CHARS = 9000

EMPTY_PARAGRAPH = "<p></p>"

_CHAPTER_TITLE_RE = re.compile(r"^capitolo\b", re.IGNORECASE)
_JSON_FENCE_RE = re.compile(r"^```(?:json)?\s*|```\s*$", re.IGNORECASE)


@dataclass
class ParagraphEditResult:
    """Edited HTML plus counters for the client's progress display."""

    html: str
    paragraphs_original: int
    paragraphs_normalized: int
    batches: int

    def meta(self) -> Dict[str, int]:
        return {
            "paragraphsOriginal": self.paragraphs_original,
            "paragraphsNormalized": self.paragraphs_normalized,
            "batches": self.batches,
        }


def is_chapter_title(paragraph: str) -> bool:
    return bool(_CHAPTER_TITLE_RE.match(strip_tags(paragraph)))


def plan_batches(
    items: List[Tuple[int, str]],
    max_paragraphs: int = BATCH_MAX_PARAGRAPHS,
    max_chars: int = BATCH_MAX_CHARS,
) -> List[List[Tuple[int, str]]]:
    """Group (index, paragraph) pairs into request-sized batches.

    A paragraph longer than max_chars still gets a batch of its own.
    """
    batches: List[List[Tuple[int, str]]] = []
    current: List[Tuple[int, str]] = []
    current_chars = 0
    for item in items:
        length = len(item[1])
        if current and (len(current) >= max_paragraphs or current_chars + length > max_chars):
            batches.append(current)
            current = []
            current_chars = 0
        current.append(item)
        current_chars += length
    if current:
        batches.append(current)
    return batches


def parse_paragraph_array(reply: str, expected: int) -> Optional[List[str]]:
    """Parse a batch reply; None unless it is a JSON array of ``expected`` items."""
    cleaned = _JSON_FENCE_RE.sub("", reply.strip()).strip()
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, list) or len(parsed) != expected:
        return None
    return ["" if item is None else str(item) for item in parsed]


async def _edit_batch(client: LLMClient, batch: List[Tuple[int, str]]) -> List[str]:
    paragraphs = [paragraph for _, paragraph in batch]

    for retry in (False, True):
        reply = await client.complete(
            build_paragraph_batch_messages(paragraphs, retry=retry),
            temperature=0,
        )
        edited = parse_paragraph_array(reply, len(paragraphs))
        if edited is not None:
            return [normalize_ai_paragraph(item) for item in edited]
        logger.warning("Batch reply did not contain %d paragraphs (retry=%s)",
                       len(paragraphs), retry)

    logger.warning("Falling back to single-paragraph edits for %d paragraphs", len(paragraphs))
    result = []
    for paragraph in paragraphs:
        reply = await client.complete(build_single_paragraph_messages(paragraph), temperature=0)
        result.append(normalize_ai_paragraph(reply))
    return result


async def edit_paragraphs(client: LLMClient, document: str) -> ParagraphEditResult:
    """Edit every paragraph of a document without changing its structure.

    Args:
        client: An entered LLMClient.
        document: Paragraph HTML; plain text is wrapped with text_to_html().

    Returns:
        The edited HTML (one <p> per line, newline-joined) and counters.
    """
    original = extract_paragraphs(text_to_html(document))
    normalized: List[str] = []
    for paragraph in original:
        normalized.extend(split_paragraph_on_breaks(paragraph))

    outputs: List[Optional[str]] = [None] * len(normalized)
    editable: List[Tuple[int, str]] = []
    for index, paragraph in enumerate(normalized):
        text = strip_tags(paragraph)
        if not text:
            outputs[index] = EMPTY_PARAGRAPH
        elif is_chapter_title(paragraph):
            outputs[index] = "<p>{}</p>".format(html_lib.escape(text, quote=False))
        else:
            editable.append((index, paragraph))

    batches = plan_batches(editable)
    logger.info("Paragraph editing: %d paragraphs (%d normalized), %d batches",
                len(original), len(normalized), len(batches))

    for number, batch in enumerate(batches, start=1):
        logger.info("Batch %d/%d (%d paragraphs)", number, len(batches), len(batch))
        edited = await _edit_batch(client, batch)
        for (index, _), paragraph in zip(batch, edited):
            outputs[index] = paragraph

    html = "\n".join(p if p is not None else EMPTY_PARAGRAPH for p in outputs).strip()
    return ParagraphEditResult(
        html=html,
        paragraphs_original=len(original),
        paragraphs_normalized=len(normalized),
        batches=len(batches),
    )
