"""Chat-completions response dataclasses.

WHY: The provider returns nested JSON (choices → message → content).
A typed dataclass makes the one field the editor needs explicit and keeps
the dict digging in a single place.

HOW: ChatCompletion.from_dict() parses a raw response body. Fields that
providers omit (usage, finish_reason) are Optional.

RULES:
- content is the first choice's message content, stripped ("" if absent)
- A response without choices parses to an empty content, never raises
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ChatCompletion:
    """The parts of a chat-completions response the editor uses."""

    content: str
    model: str | None = None
    finish_reason: str | None = None
    total_tokens: int | None = None

    @classmethod
    def from_dict(cls, data: dict) -> ChatCompletion:
        choices = data.get("choices") or []
        first = choices[0] if choices else {}
        message = first.get("message") or {}
        usage = data.get("usage") or {}
        return cls(
            content=(message.get("content") or "").strip(),
            model=data.get("model"),
            finish_reason=first.get("finish_reason"),
            total_tokens=usage.get("total_tokens"),
        )
