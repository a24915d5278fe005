"""Async HTTP client for an OpenAI-compatible chat-completions API.

WHY: Every AI operation of the editor (proofreading, editing,
translation, manuscript evaluation, full-book editing) is one chat
completion. This module keeps authentication, timeouts and error
wrapping in one class so the request handlers only deal with text.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. LLMClient is an async
context manager: enter it to get an authenticated client, exit to close
the connection pool. complete() POSTs /chat/completions and returns the
stripped text of the first choice.

RULES:
- Always use the async context manager (async with LLMClient() as client:)
- api_key defaults to load_api_key() from .env
- base_url and model default to the values in config
- Non-2xx responses raise LLMAPIError with status code and body
- A reply without text raises EmptyCompletionError
- Network errors propagate as httpx exceptions
"""

from __future__ import annotations

import logging

import httpx

from fermento_editor.api.models import ChatCompletion
from fermento_editor.config import (
    OPENAI_BASE_URL,
    OPENAI_MODEL,
    OPENAI_TIMEOUT_S,
    load_api_key,
)

logger = logging.getLogger(__name__)


class LLMAPIError(Exception):
    """Raised when the provider returns an error response.

    RULES:
    - Always include status_code and message
    - message is the response body text or a summary
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"LLM API error {status_code}: {message}")


class EmptyCompletionError(Exception):
    """Raised when a completion succeeds but carries no text."""


class LLMClient:
    """Async client for chat completions.

    RULES:
    - Use as: async with LLMClient() as client: ...
    - transport is for tests (httpx.MockTransport); leave None in production
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key or load_api_key()
        self._base_url = (base_url or OPENAI_BASE_URL).rstrip("/")
        self._model = model or OPENAI_MODEL
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> LLMClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Authorization": f"Bearer {self._api_key}"},
            timeout=httpx.Timeout(OPENAI_TIMEOUT_S, connect=30.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "LLMClient must be used as an async context manager: "
                "async with LLMClient() as client: ..."
            )
        return self._client

    async def complete(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        temperature: float | None = None,
    ) -> str:
        """Run one chat completion and return the reply text.

        Args:
            messages: Chat messages, e.g. from prompts.build_messages().
            model: Overrides the client's default model for this call.
            temperature: Sampling temperature; omitted from the request
                         when None so the provider default applies.

        Returns:
            The first choice's message content, stripped.
        """
        client = self._ensure_client()
        body: dict = {
            "model": model or self._model,
            "messages": messages,
        }
        if temperature is not None:
            body["temperature"] = temperature

        resp = await client.post("/chat/completions", json=body)
        if resp.status_code != 200:
            raise LLMAPIError(resp.status_code, resp.text)

        completion = ChatCompletion.from_dict(resp.json())
        logger.info(
            "Completion from %s (%s tokens, finish=%s)",
            completion.model or body["model"],
            completion.total_tokens,
            completion.finish_reason,
        )
        if not completion.content:
            raise EmptyCompletionError("The model returned no text.")
        return completion.content
