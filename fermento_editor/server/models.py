"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation. The browser
client was written against camelCase JSON (projectTitle, blocksCount,
evaluationText), so the wire names are camelCase while the Python
attributes stay snake_case.

HOW: Every model derives from _ApiModel, whose alias generator produces
the camelCase wire names. populate_by_name lets handlers and tests build
models with the Python names. FastAPI serializes responses by alias.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Wire names are camelCase; Python names are snake_case
- Fields the handler validates itself (blank text, unknown mode) are
  Optional here so that the handler can answer with a clear 400
- Response models never expose internal implementation details
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class _ApiModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


# ---------------------------------------------------------------------------
# Typography
# ---------------------------------------------------------------------------


class TypographyRequest(_ApiModel):
    """HTML to run through the typography pipeline.

    RULES:
    - rules, when given, is the exact ordered list of rule keys to apply
    - full=true selects the full canonicalization preset (ignored if rules given)
    - neither → the configured default order
    """

    html: str = Field(description="Editor HTML (paragraphs as <p>...</p>).")
    rules: Optional[List[str]] = Field(
        default=None,
        description="Ordered rule keys to apply, e.g. ['dash_spacing'].",
    )
    full: bool = Field(
        default=False,
        description="Apply dash spacing and guillemet canonicalization.",
    )

    model_config = {"json_schema_extra": {
        "examples": [
            {"html": "<p>-Ciao.-disse lui</p>", "full": True},
        ]
    }}


class TypographyResponse(_ApiModel):
    """Normalized HTML and the rules that produced it."""

    html: str = Field(description="The normalized HTML.")
    rules: List[str] = Field(description="Rule keys applied, in order.")


class RuleInfo(_ApiModel):
    """Description of a registered typography rule."""

    key: str = Field(description="Rule identifier used in API requests.")
    name: str = Field(description="Human-readable rule name.")
    description: str = Field(description="What the rule rewrites.")


# ---------------------------------------------------------------------------
# AI operations
# ---------------------------------------------------------------------------


class AIRequest(_ApiModel):
    """One AI operation over a piece of text.

    RULES:
    - The text is taken from the first non-blank of text, inputText, html, inputHtml
    """

    text: Optional[str] = Field(default=None, description="Text to work on.")
    input_text: Optional[str] = Field(default=None, description="Alternative name for text.")
    html: Optional[str] = Field(default=None, description="Editor HTML, used when text is blank.")
    input_html: Optional[str] = Field(default=None, description="Alternative name for html.")
    mode: Optional[str] = Field(
        default=None,
        description="AI mode, e.g. 'correzione', 'editing-moderato', 'valutazione-manoscritto'.",
    )
    project_title: str = Field(default="", description="Manuscript title (evaluation only).")
    project_author: str = Field(default="", description="Manuscript author (evaluation only).")

    def effective_text(self) -> str:
        for candidate in (self.text, self.input_text, self.html, self.input_html):
            if candidate and candidate.strip():
                return candidate
        return ""


class AIResponse(_ApiModel):
    """Result of an AI operation, after the typographic clean-up."""

    success: bool = Field(description="Always true on a 200 response.")
    result: str = Field(description="The model output.")
    meta: Optional[Dict[str, int]] = Field(
        default=None,
        description="Paragraph counters, only for paragraph-preserving editing.",
    )


class FullBookRequest(_ApiModel):
    """A whole manuscript to edit block by block."""

    text: Optional[str] = Field(default=None, description="Full manuscript HTML or text.")
    mode: Optional[str] = Field(
        default=None,
        description="Editing level: 'leggero', 'moderato' or 'profondo'.",
    )


class FullBookResponse(_ApiModel):
    """Per-block and joined results of a full-book edit."""

    ok: bool = Field(description="Always true on a 200 response.")
    blocks_count: int = Field(description="Number of blocks the text was split into.")
    edited_blocks: List[str] = Field(description="Edited blocks, in order.")
    full_edited_text: str = Field(description="Edited blocks joined with blank lines.")


# ---------------------------------------------------------------------------
# Import / export
# ---------------------------------------------------------------------------


class ImportResponse(_ApiModel):
    """Text extracted from an uploaded manuscript."""

    success: bool = Field(description="Always true on a 200 response.")
    type: str = Field(description="'docx' (text is HTML) or 'pdf' (text is plain).")
    text: str = Field(description="Extracted content.")


class ExportRequest(_ApiModel):
    """HTML to export as DOCX."""

    html: Optional[str] = Field(default=None, description="Editor HTML to export.")
    typography: bool = Field(
        default=True,
        description="Run the default typography pipeline before exporting.",
    )


# ---------------------------------------------------------------------------
# Evaluations
# ---------------------------------------------------------------------------


class EvaluationCreateRequest(_ApiModel):
    """A manuscript evaluation to store."""

    project_id: Optional[str] = Field(default=None, description="Owning project ID.")
    file_name: Optional[str] = Field(default=None, description="Evaluated manuscript file name.")
    title: Optional[str] = Field(default=None, description="Display title.")
    author: str = Field(default="", description="Manuscript author.")
    evaluation_text: Optional[str] = Field(default=None, description="The evaluation text.")
    meta: Optional[Dict[str, Any]] = Field(default=None, description="Free-form client data.")


class EvaluationRecord(_ApiModel):
    """A stored evaluation."""

    id: str = Field(description="Evaluation identifier.")
    project_id: Optional[str] = Field(default=None, description="Owning project ID.")
    file_name: Optional[str] = Field(default=None, description="Evaluated manuscript file name.")
    title: str = Field(description="Display title.")
    author: str = Field(default="", description="Manuscript author.")
    evaluation_text: str = Field(description="The evaluation text.")
    meta: Dict[str, Any] = Field(default_factory=dict, description="Free-form client data.")
    created_at: str = Field(description="Creation time, ISO-8601 UTC.")


class EvaluationCreatedResponse(_ApiModel):
    success: bool = Field(description="Always true on a 200 response.")
    evaluation: EvaluationRecord = Field(description="The stored evaluation.")


class EvaluationListResponse(_ApiModel):
    success: bool = Field(description="Always true on a 200 response.")
    evaluations: List[EvaluationRecord] = Field(description="Stored evaluations, oldest first.")


class EvaluationResponse(_ApiModel):
    success: bool = Field(description="Always true on a 200 response.")
    evaluation: EvaluationRecord = Field(description="The requested evaluation.")


class SuccessResponse(_ApiModel):
    success: bool = Field(description="Always true on a 200 response.")


# ---------------------------------------------------------------------------
# Common
# ---------------------------------------------------------------------------


class ErrorResponse(_ApiModel):
    """Standard error response body.

    WHY: All error responses use the same schema for consistent
    client-side error handling.

    RULES:
    - detail is always a human-readable error message
    """

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(_ApiModel):
    """Health check response."""

    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
