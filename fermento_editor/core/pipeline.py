"""Ordered typography pipeline over paragraph HTML.

WHY: Callers (the export endpoint, the formatting endpoint, the CLI)
want "make this HTML typographically clean" without knowing which rules
exist or in which order they must run. The order matters: dialogue is
spaced before it is canonicalized, and new rules will be slotted into
the same list.

HOW: TypographyPipeline resolves a list of rule keys against the RULES
registry once, at construction, and then feeds each rule the previous
rule's output. apply_typography() is the one-call convenience wrapper
that uses the configured default order.

RULES:
- Rules run strictly in the order given, each consuming the previous output
- Unknown rule keys raise ValueError when the pipeline is built
- None/empty input is returned unchanged
- The pipeline holds no per-call state; one instance may be shared
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from fermento_editor.config import DEFAULT_RULE_ORDER
from fermento_editor.rules import RULES
from fermento_editor.rules.base import BaseRule

logger = logging.getLogger(__name__)


class TypographyPipeline:
    """Apply a configured, ordered list of typography rules."""

    def __init__(self, rule_keys: Optional[Sequence[str]] = None) -> None:
        keys = list(DEFAULT_RULE_ORDER if rule_keys is None else rule_keys)
        unknown = [key for key in keys if key not in RULES]
        if unknown:
            raise ValueError(
                "Unknown typography rule '{}'. Available: {}".format(
                    unknown[0], ", ".join(sorted(RULES))
                )
            )
        self._rules: List[BaseRule] = [RULES[key]() for key in keys]

    @property
    def rule_keys(self) -> List[str]:
        return [rule.key for rule in self._rules]

    def apply(self, html: Optional[str]) -> Optional[str]:
        if not html:
            return html

        out = html
        for rule in self._rules:
            result = rule.apply(out)
            if result != out:
                logger.debug("Rule %s rewrote the document (%d -> %d chars)",
                             rule.key, len(out), len(result))
            out = result
        return out


def apply_typography(
    html: Optional[str],
    rules: Optional[Sequence[str]] = None,
) -> Optional[str]:
    """Run the typography pipeline over a document.

    Args:
        html: Paragraph HTML (or plain text). None/empty is returned as is.
        rules: Rule keys in application order. Defaults to the configured
               DEFAULT_RULE_ORDER.

    Returns:
        The transformed document.
    """
    return TypographyPipeline(rules).apply(html)
