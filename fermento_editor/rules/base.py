"""Abstract base typography rule.

WHY: Every typography rule consumes the same paragraph HTML and must obey
the same safety contract: never touch an already-canonical paragraph,
never let a match leak from one paragraph into the next, and never fail.
This base class enforces that contract once, so each rule only describes
how it rewrites a single paragraph.

HOW: BaseRule.apply() splits the document into blocks, skips paragraphs
that already contain guillemets, hands every other paragraph to
``rewrite_paragraph()`` and (for rules that opt in) the text between
paragraphs to ``rewrite_text()``, then rejoins the blocks.

RULES:
- Subclasses MUST implement ``name`` and ``rewrite_paragraph()``
- ``key`` is the registry identifier (snake_case)
- ``apply()`` returns None/empty input unchanged and never raises
- A paragraph containing « or » is passed through byte-for-byte
- Text outside paragraphs is only rewritten when ``rewrites_plain_text``
- ``<p …>`` elements with attributes are never rewritten
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from fermento_editor.core.document import is_canonical, join_blocks, split_blocks


class BaseRule(ABC):
    """Abstract base for all typography rules.

    To add a new rule:
    1. Create a new file in rules/
    2. Subclass BaseRule, set ``key`` and ``description``
    3. Implement ``name`` and ``rewrite_paragraph()``
    4. Register it in the RULES dict in rules/__init__.py
    """

    key: str = ""
    description: str = ""
    rewrites_plain_text: bool = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable rule name, e.g. 'Dialogue dash spacing'."""

    @abstractmethod
    def rewrite_paragraph(self, paragraph: str) -> str:
        """Rewrite one complete ``<p>…</p>`` element.

        Args:
            paragraph: A paragraph block that contains no guillemet.

        Returns:
            The rewritten paragraph, or the input itself when nothing
            matches.
        """

    def rewrite_text(self, text: str) -> str:
        """Rewrite text found outside any paragraph (identity by default)."""
        return text

    def apply(self, html: Optional[str]) -> Optional[str]:
        """Apply the rule to every eligible block of the document."""
        if not html:
            return html

        blocks = split_blocks(html)
        for block in blocks:
            if block.is_paragraph:
                if not is_canonical(block.text):
                    block.text = self.rewrite_paragraph(block.text)
            elif self.rewrites_plain_text and not block.is_attributed_paragraph:
                block.text = self.rewrite_text(block.text)
        return join_blocks(blocks)
