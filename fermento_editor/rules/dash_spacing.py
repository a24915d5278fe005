"""Spacing around the hyphens that open and close a line of dialogue.

WHY: Manuscripts and model output write dialogue with a bare hyphen
glued to the words around it ("-Ehi", "davvero?- le chiese"). Before any
further normalization the hyphen needs one space on the side facing the
spoken text, so that the dialogue markers are unambiguous.

HOW: Three substitutions run in a fixed order over each unit:
  1. opening: ``<p>-Ehi`` → ``<p>- Ehi`` (also after a line break)
  2. closing: ``?- le`` / ``? -le`` → ``? - le`` after . ! ? …
  3. cleanup: ``" -  "`` → ``" - "``

RULES:
- Only hyphen-minus is handled; en and em dash are left as they are
- The characters themselves never change, only the spaces around them
- Line breaks are ``\\n``, ``\\r`` and ``<br>``/``<br/>`` tags
- Text between paragraphs (plain-text documents) is spaced as well
- Re-running the rule on its own output changes nothing
"""

from __future__ import annotations

import re
from typing import Optional

from fermento_editor.rules.base import BaseRule

_OPENING_AFTER_TAG_RE = re.compile(r"(<p>\s*)-(?=\S)", re.IGNORECASE)
_OPENING_AFTER_BREAK_RE = re.compile(r"(\n|\r|<br\s*/?>)-(?=\S)", re.IGNORECASE)
_CLOSING_RE = re.compile(r"([.!?…])\s*-\s*(?=\S)")
_DOUBLE_SPACE = " -  "


def _space_dashes(text: str) -> str:
    text = _OPENING_AFTER_TAG_RE.sub(r"\1- ", text)
    text = _OPENING_AFTER_BREAK_RE.sub(r"\1- ", text)
    text = _CLOSING_RE.sub(r"\1 - ", text)
    return text.replace(_DOUBLE_SPACE, " - ")


class DashSpacingRule(BaseRule):
    """Insert or correct the spaces around dialogue hyphens."""

    key = "dash_spacing"
    description = (
        "Puts one space after an opening dialogue hyphen and one space on "
        "each side of a hyphen that follows terminal punctuation."
    )
    rewrites_plain_text = True

    @property
    def name(self) -> str:
        return "Dialogue dash spacing"

    def rewrite_paragraph(self, paragraph: str) -> str:
        return _space_dashes(paragraph)

    def rewrite_text(self, text: str) -> str:
        return _space_dashes(text)


def normalize_dash_spacing(html: Optional[str]) -> Optional[str]:
    """Apply the dash-spacing rule to a whole document."""
    return DashSpacingRule().apply(html)
