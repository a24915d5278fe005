"""Shared test fixtures for the fermento_editor test suite.

WHY: Several test modules need the same stand-in for the language
model and small DOCX/PDF files built in memory. Centralizing them here
avoids duplication between the adapter tests and the HTTP tests.

HOW: Plain pytest fixtures. FakeLLMClient mimics LLMClient's async
context manager protocol and records every call; the llm fixture patches
it into the server module. The docx_factory, pdf_factory and docx_reader
fixtures build and read real documents with python-docx and PyMuPDF.

RULES:
- No test ever reaches the network
- FakeLLMClient replies are consumed in order; the last one repeats
- A reply that is an Exception instance is raised instead of returned
"""

from __future__ import annotations

import io
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
from unittest.mock import patch

import fitz
import pytest
from docx import Document

# ---------------------------------------------------------------------------
# Language model stand-in
# ---------------------------------------------------------------------------

Reply = Union[str, Exception]


class FakeLLMClient:
    """Drop-in replacement for the LLMClient class.

    Calling the instance (as the server calls the class) records the
    constructor kwargs and returns the instance itself, which is then used
    as the async context manager.
    """

    def __init__(self, replies: Optional[Sequence[Reply]] = None) -> None:
        self.replies: List[Reply] = list(replies or ["ok"])
        self.init_kwargs: List[Dict[str, Any]] = []
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, **kwargs: Any) -> FakeLLMClient:
        self.init_kwargs.append(kwargs)
        return self

    async def __aenter__(self) -> FakeLLMClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        return None

    async def complete(self, messages, model=None, temperature=None) -> str:  # noqa: ANN001
        self.calls.append({"messages": messages, "model": model, "temperature": temperature})
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply

    def user_messages(self) -> List[str]:
        return [call["messages"][-1]["content"] for call in self.calls]


@pytest.fixture
def fake_llm():
    """A FakeLLMClient not yet patched anywhere."""
    return FakeLLMClient()


@pytest.fixture
def llm(fake_llm):
    """Patch the server's LLMClient with a FakeLLMClient."""
    with patch("fermento_editor.server.app.LLMClient", new=fake_llm):
        yield fake_llm


# ---------------------------------------------------------------------------
# Document builders
# ---------------------------------------------------------------------------

Run = Tuple[str, bool, bool]


def make_docx(paragraphs: Sequence[Union[str, Sequence[Run]]]) -> bytes:
    """Build a DOCX file; each paragraph is a string or a list of (text, bold, italic) runs."""
    document = Document()
    for paragraph in paragraphs:
        p = document.add_paragraph()
        if isinstance(paragraph, str):
            if paragraph:
                p.add_run(paragraph)
            continue
        for text, bold, italic in paragraph:
            run = p.add_run(text)
            run.bold = bold or None
            run.italic = italic or None
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def make_pdf(pages: Sequence[str]) -> bytes:
    """Build a PDF file with one line of ASCII text per page."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


def read_docx(content: bytes):
    """Open DOCX bytes with python-docx."""
    return Document(io.BytesIO(content))


@pytest.fixture
def docx_factory():
    return make_docx


@pytest.fixture
def pdf_factory():
    return make_pdf


@pytest.fixture
def docx_reader():
    return read_docx
