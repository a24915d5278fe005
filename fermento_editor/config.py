"""Configuration constants, typography defaults, and .env loading.

WHY: Centralizes all configurable values so they are easy to find,
update, and override. The default typography rule order, the LLM
endpoint, the evaluations file location and upload limits are plain
data, not buried in logic, so they can be changed without touching
the rules or the server.

HOW: python-dotenv loads the .env file on import. Constants are defined
as module-level values read from the environment with fallbacks. The
load_api_key() function provides a clear error when the key is missing.

RULES:
- Every default can be overridden via an environment variable
- DEFAULT_RULE_ORDER is a comma-separated list of registered rule keys
- API key is loaded from .env via python-dotenv, never hardcoded
- Nothing here imports from the rest of the package
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (where the server is started from)
load_dotenv()


def _split_keys(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


# ---------------------------------------------------------------------------
# Typography pipeline
# ---------------------------------------------------------------------------

DEFAULT_RULE_ORDER: list[str] = _split_keys(
    os.getenv("FERMENTO_TYPOGRAPHY_RULES", "dash_spacing")
)
"""Rule keys applied by apply_typography() when the caller names none."""

FULL_RULE_ORDER: list[str] = ["dash_spacing", "dialogue_punctuation"]
"""Spacing first, then guillemet canonicalization of the spaced dialogue."""

# ---------------------------------------------------------------------------
# LLM provider (OpenAI-compatible chat completions)
# ---------------------------------------------------------------------------

OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_EDITING_MODEL = os.getenv("OPENAI_EDITING_MODEL", "gpt-4.1-mini")
OPENAI_TIMEOUT_S = float(os.getenv("OPENAI_TIMEOUT_S", "300"))

FULL_BOOK_BLOCK_CHARS = int(os.getenv("FERMENTO_BLOCK_CHARS", "15000"))
"""Maximum characters per block sent to the model in full-book editing."""

# ---------------------------------------------------------------------------
# Storage, uploads and export
# ---------------------------------------------------------------------------

EVALUATIONS_PATH = Path(
    os.getenv("FERMENTO_EVALUATIONS_PATH", "data/evaluations.json")
)

SUPPORTED_UPLOAD_FORMATS: set[str] = {".docx", ".pdf"}
"""Manuscript file extensions accepted by the import endpoint (lowercase, with dot)."""

MAX_UPLOAD_BYTES = int(float(os.getenv("FERMENTO_MAX_UPLOAD_MB", "10")) * 1024 * 1024)

DOCX_FONT_NAME = "Times New Roman"
DOCX_FONT_SIZE_PT = 12
DOCX_MEDIA_TYPE = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)

# ---------------------------------------------------------------------------
# HTTP server
# ---------------------------------------------------------------------------

SERVER_HOST = os.getenv("HOST", "0.0.0.0")
SERVER_PORT = int(os.getenv("PORT", "3001"))

CORS_ORIGINS: list[str] = _split_keys(os.getenv("FERMENTO_CORS_ORIGINS", "*"))
"""Browser origins allowed to call the API (the editor UI runs elsewhere)."""


def load_api_key() -> str:
    """Load the OpenAI API key from the environment.

    WHY: The key is required for every AI call. Loading it from the
    environment (via .env) keeps it out of source code.

    RULES:
    - Raises ValueError if the key is missing or empty
    - Never returns a default/placeholder value
    """
    key = os.getenv("OPENAI_API_KEY", "").strip()
    if not key:
        raise ValueError(
            "OpenAI API key not configured. "
            "Add OPENAI_API_KEY to the .env file in the app folder."
        )
    return key
