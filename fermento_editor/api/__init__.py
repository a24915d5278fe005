"""LLM API package: prompts and an async chat-completions client.

WHY: The editor's AI operations all reduce to "send these instructions
and this text, get text back". This package keeps the provider protocol
and the editorial prompts away from the HTTP handlers.

HOW: prompts.py turns a mode into chat messages, client.py sends them
with httpx.AsyncClient, models.py parses the response.

RULES:
- All provider HTTP calls go through LLMClient (no direct httpx usage elsewhere)
- Authentication is via Bearer token from config
"""

from fermento_editor.api.client import EmptyCompletionError, LLMAPIError, LLMClient
from fermento_editor.api.prompts import AI_MODES, UnknownModeError, build_messages

__all__ = [
    "AI_MODES",
    "EmptyCompletionError",
    "LLMAPIError",
    "LLMClient",
    "UnknownModeError",
    "build_messages",
]
