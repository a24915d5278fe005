"""Light punctuation cleanup for model replies.

WHY: Chat models return text with the small spacing slips of machine
output: a space before a question mark, "!!", "?.", quotes padded on the
inside. These are fixed deterministically before the reply is shown in
the editor, so the user never has to correct them by hand.

HOW: A fixed sequence of regex substitutions over the whole reply.

RULES:
- No space before . , ; : ! ?
- No space inside typographic quotes: after « “ and before » ”
- "?." / "!..." lose the periods; runs of ! and ? keep only the last mark
- One space after a closing » or ” that runs into a word
- A straight quote glued between two letters gets a space before it
- Runs of spaces collapse to one; newlines are kept
"""

from __future__ import annotations

import re
from typing import Callable, List, Optional, Tuple, Union

_LETTER = "A-Za-zÀ-ÿ"

_FIXES: List[Tuple["re.Pattern[str]", Union[str, Callable[["re.Match[str]"], str]]]] = [
    (re.compile(r"\s+([.,;:!?])"), r"\1"),
    (re.compile(r"([«“])\s+"), r"\1"),
    (re.compile(r"\s+([»”])"), r"\1"),
    (re.compile(r"\"\""), "\""),
    (re.compile(r"([!?])\.+"), r"\1"),
    (re.compile(r"[!?]{2,}"), lambda m: m.group(0)[-1]),
    (re.compile(r"([»”])(?=\w)"), r"\1 "),
    (re.compile(r" {2,}"), " "),
    (re.compile(r"([{0}])\"(?=[{0}])".format(_LETTER)), r'\1 "'),
]


def clean_ai_text(text: Optional[str]) -> Optional[str]:
    """Apply the punctuation fixes to a model reply (None/empty unchanged)."""
    if not text:
        return text
    for pattern, replacement in _FIXES:
        text = pattern.sub(replacement, text)
    return text
