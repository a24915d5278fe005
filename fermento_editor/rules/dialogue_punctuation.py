"""Dash-prefixed dialogue rewritten into guillemet quoting.

WHY: Authors, OCR and models mix three dash characters to mark dialogue
("-Ciao.", "–Ciao.", "—Ciao. - disse lui."). The house style quotes
every line of dialogue with guillemets: «Ciao.» disse lui. This rule
converts the unambiguous cases and leaves everything else alone.

HOW: Each paragraph first loses a stray ".-" artifact before ``</p>``.
It is then offered to an ordered list of named shapes; every shape
either declines (None) or returns the rewritten paragraph, and the first
rewrite wins:
  1. attributed dialogue: ``<p>-Speech. - said he.</p>`` → ``<p>«Speech.» said he.</p>``
  2. pure dialogue:       ``<p>—Speech.</p>``            → ``<p>«Speech.»</p>``

RULES:
- Hyphen-minus, en dash and em dash open and close dialogue alike
- The speech of an attributed line ends at the FIRST terminal
  punctuation followed by a dash and a space
- Terminal punctuation moves inside the closing guillemet
- Empty speech, empty attribution or existing guillemets: no rewrite
- The pure-dialogue shape declines anything that still carries an
  attribution boundary, so an attributed line is never wrapped whole
- Leading whitespace after ``<p>`` is preserved, no dash survives a rewrite
"""

from __future__ import annotations

import re
from typing import Callable, List, Optional, Tuple

from fermento_editor.core.document import is_canonical
from fermento_editor.rules.base import BaseRule

_FLAGS = re.IGNORECASE | re.DOTALL

_TRAILING_ARTIFACT_RE = re.compile(r"\.\s*-\s*(</p>)\Z", _FLAGS)

_ATTRIBUTED_RE = re.compile(
    r"(<p>)(\s*)[-–—]\s*(.*?)([.!?…])\s*[-–—]\s+(?=\S)(.*)(</p>)", _FLAGS
)

_PURE_RE = re.compile(r"(<p>)(\s*)[-–—]\s*(?!</p>)(.*)(</p>)", _FLAGS)

# Terminal punctuation (or the very start) followed by a spaced dash and text.
_ATTRIBUTION_BOUNDARY_RE = re.compile(r"(^|[.!?…])\s*[-–—]\s+\S")


def strip_trailing_artifact(paragraph: str) -> str:
    """``<p>Maddie.-</p>`` → ``<p>Maddie.</p>``."""
    return _TRAILING_ARTIFACT_RE.sub(r".\1", paragraph)


def match_attributed_dialogue(paragraph: str) -> Optional[str]:
    """Rewrite a dash-opened line followed by a dash-introduced attribution."""
    match = _ATTRIBUTED_RE.fullmatch(paragraph)
    if match is None:
        return None

    open_tag, lead, speech, punct, attribution, close_tag = match.groups()
    speech = speech.strip()
    attribution = attribution.strip()
    if not speech or not attribution or is_canonical(speech):
        return None

    return "{}{}«{}{}» {}{}".format(open_tag, lead, speech, punct, attribution, close_tag)


def match_pure_dialogue(paragraph: str) -> Optional[str]:
    """Rewrite a paragraph that is one dash-opened line of speech."""
    match = _PURE_RE.fullmatch(paragraph)
    if match is None:
        return None

    open_tag, lead, body, close_tag = match.groups()
    body = body.strip()
    if not body or is_canonical(body):
        return None
    if _ATTRIBUTION_BOUNDARY_RE.search(body):
        return None

    return "{}{}«{}»{}".format(open_tag, lead, body, close_tag)


DIALOGUE_SHAPES: List[Tuple[str, Callable[[str], Optional[str]]]] = [
    ("attributed_dialogue", match_attributed_dialogue),
    ("pure_dialogue", match_pure_dialogue),
]
"""Paragraph shapes in priority order; the first non-None rewrite wins."""


class DialoguePunctuationRule(BaseRule):
    """Convert dash-marked dialogue paragraphs to guillemet quoting."""

    key = "dialogue_punctuation"
    description = (
        "Rewrites paragraphs opened by -, – or — as «…» dialogue, moving a "
        "dash-introduced attribution after the closing guillemet."
    )

    @property
    def name(self) -> str:
        return "Dialogue guillemets"

    def rewrite_paragraph(self, paragraph: str) -> str:
        paragraph = strip_trailing_artifact(paragraph)
        for _shape_name, shape in DIALOGUE_SHAPES:
            rewritten = shape(paragraph)
            if rewritten is not None:
                return rewritten
        return paragraph


def canonicalize_dialogue_punctuation(html: Optional[str]) -> Optional[str]:
    """Apply the dialogue canonicalization rule to a whole document."""
    return DialoguePunctuationRule().apply(html)
