"""Typography rule registry.

WHY: The pipeline, the CLI and the HTTP API need a single lookup to find
a rule by key. A central dict makes it trivial to add new rules: create
the rule class, import it here, add one line.

HOW: RULES maps string keys to rule *classes* (not instances). Callers
instantiate as needed: ``rule = RULES["dash_spacing"]()``.

RULES:
- Keys are snake_case identifiers (used in config, CLI flags, API bodies)
- Values are BaseRule subclasses whose ``key`` equals the dict key
- Every rule listed here must be importable without side effects
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fermento_editor.rules.dash_spacing import DashSpacingRule, normalize_dash_spacing
from fermento_editor.rules.dialogue_punctuation import (
    DialoguePunctuationRule,
    canonicalize_dialogue_punctuation,
)

if TYPE_CHECKING:
    from fermento_editor.rules.base import BaseRule

RULES: dict[str, type[BaseRule]] = {
    DashSpacingRule.key: DashSpacingRule,
    DialoguePunctuationRule.key: DialoguePunctuationRule,
}

__all__ = [
    "RULES",
    "DashSpacingRule",
    "DialoguePunctuationRule",
    "canonicalize_dialogue_punctuation",
    "normalize_dash_spacing",
]
