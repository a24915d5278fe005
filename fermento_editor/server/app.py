"""FastAPI application for the Fermento manuscript editor backend.

WHY: The browser editor needs a small HTTP backend to reach the language
model (with the key kept server-side), to read uploaded manuscripts, to
produce Word files, to keep manuscript evaluations, and to run the
deterministic typography pipeline. FastAPI provides request validation,
automatic OpenAPI documentation and async handlers for the model calls.

HOW: A single FastAPI app exposes the endpoints grouped by tags:
  typography   POST /api/typography, GET /api/typography/rules
  ai           POST /api/ai, POST /api/edit-full-book
  documents    POST /api/import (+ /api/upload, /api/import-docx aliases),
               POST /api/export-docx
  evaluations  CRUD under /api/evaluations, plus a DOCX export
  health       GET /health
Model calls go through LLMClient; uploads through adapters.importers;
exports through adapters.docx_export; evaluations through EvaluationStore.

RULES:
- Error responses use a consistent ErrorResponse schema ({"detail": ...})
- Request validation failures answer 400, not FastAPI's default 422
- Upstream model failures (HTTP errors, empty replies) answer 502
- A missing API key answers 500 with the configuration message
- An unknown configured typography rule answers 500 and stops run_api()
- File and DOCX endpoints are plain def so FastAPI runs them in its threadpool
- The evaluation store is a module-level singleton (tests replace it)
- JSON bodies use the camelCase names of the browser client
"""

from __future__ import annotations

import logging
import re
from typing import Annotated, List, Optional

import httpx
from fastapi import FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from fermento_editor import __version__
from fermento_editor.adapters import (
    DocumentImportError,
    UnsupportedFormatError,
    html_to_docx,
    import_document,
)
from fermento_editor.api.client import EmptyCompletionError, LLMAPIError, LLMClient
from fermento_editor.api.paragraph_editing import edit_paragraphs
from fermento_editor.api.prompts import (
    UnknownModeError,
    build_block_editing_messages,
    build_messages,
    is_paragraph_editing_mode,
)
from fermento_editor.config import (
    CORS_ORIGINS,
    DOCX_MEDIA_TYPE,
    EVALUATIONS_PATH,
    FULL_BOOK_BLOCK_CHARS,
    FULL_RULE_ORDER,
    MAX_UPLOAD_BYTES,
    OPENAI_EDITING_MODEL,
    SERVER_HOST,
    SERVER_PORT,
)
from fermento_editor.core.cleanup import clean_ai_text
from fermento_editor.core.document import looks_like_html, split_into_blocks, text_to_html
from fermento_editor.core.pipeline import TypographyPipeline, apply_typography
from fermento_editor.rules import RULES
from fermento_editor.server.evaluations import Evaluation, EvaluationStore
from fermento_editor.server.models import (
    AIRequest,
    AIResponse,
    ErrorResponse,
    EvaluationCreatedResponse,
    EvaluationCreateRequest,
    EvaluationListResponse,
    EvaluationRecord,
    EvaluationResponse,
    ExportRequest,
    FullBookRequest,
    FullBookResponse,
    HealthResponse,
    ImportResponse,
    RuleInfo,
    SuccessResponse,
    TypographyRequest,
    TypographyResponse,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App and store setup
# ---------------------------------------------------------------------------

evaluation_store = EvaluationStore(EVALUATIONS_PATH)

EXPORT_FILENAME = "fermento-document.docx"

_UPSTREAM_ERRORS = (LLMAPIError, EmptyCompletionError, httpx.HTTPError)

app = FastAPI(
    title="Fermento Editor API",
    description=(
        "Backend of the Fermento manuscript editor: AI-assisted proofreading, "
        "editing, translation and evaluation, DOCX/PDF import, DOCX export, "
        "stored evaluations, and deterministic dialogue typography."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Answer malformed requests with 400 and a one-line detail."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        detail = "{}: {}".format(location, first.get("msg")) if location else str(first.get("msg"))
    else:
        detail = "Invalid request"
    return JSONResponse(status_code=400, content={"detail": detail})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _evaluation_to_record(evaluation: Evaluation) -> EvaluationRecord:
    """Convert an internal Evaluation dataclass to its response model."""
    return EvaluationRecord(
        id=evaluation.id,
        project_id=evaluation.project_id,
        file_name=evaluation.file_name,
        title=evaluation.title,
        author=evaluation.author,
        evaluation_text=evaluation.evaluation_text,
        meta=evaluation.meta,
        created_at=evaluation.created_at,
    )


def _get_evaluation_or_404(evaluation_id: str) -> Evaluation:
    evaluation = evaluation_store.get(evaluation_id)
    if evaluation is None:
        raise HTTPException(
            status_code=404,
            detail="Evaluation not found: {}".format(evaluation_id),
        )
    return evaluation


def _docx_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type=DOCX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="{}"'.format(filename)},
    )


def _safe_filename(title: str, fallback: str = "valutazione") -> str:
    """Reduce a title to a short ASCII file name stem."""
    stem = re.sub(r"[^a-zA-Z0-9\-_ ]", "", title or "")[:50].strip()
    return stem or fallback


def _upstream_failure(exc: Exception) -> HTTPException:
    logger.exception("Language model request failed")
    return HTTPException(status_code=502, detail="Language model request failed: {}".format(exc))


def _configuration_failure(exc: ValueError) -> HTTPException:
    logger.error("Configuration error: %s", exc)
    return HTTPException(status_code=500, detail=str(exc))


# ---------------------------------------------------------------------------
# Endpoints: Typography
# ---------------------------------------------------------------------------


@app.post(
    "/api/typography",
    response_model=TypographyResponse,
    tags=["typography"],
    summary="Normalize dialogue typography",
    description=(
        "Run the typography pipeline over editor HTML. Without 'rules' the "
        "configured default order is used; 'full' selects dash spacing "
        "followed by guillemet canonicalization."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Unknown rule key or invalid body"},
    },
)
async def run_typography(body: TypographyRequest) -> TypographyResponse:
    rule_keys = body.rules
    if rule_keys is None and body.full:
        rule_keys = FULL_RULE_ORDER

    try:
        pipeline = TypographyPipeline(rule_keys)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    return TypographyResponse(html=pipeline.apply(body.html), rules=pipeline.rule_keys)


@app.get(
    "/api/typography/rules",
    response_model=List[RuleInfo],
    tags=["typography"],
    summary="List typography rules",
    description="Returns every registered typography rule with its key, name and description.",
)
async def list_rules() -> List[RuleInfo]:
    result = []
    for key, rule_cls in sorted(RULES.items()):
        rule = rule_cls()
        result.append(RuleInfo(key=key, name=rule.name, description=rule.description))
    return result


# ---------------------------------------------------------------------------
# Endpoints: AI
# ---------------------------------------------------------------------------


@app.post(
    "/api/ai",
    response_model=AIResponse,
    tags=["ai"],
    summary="Run one AI operation",
    description=(
        "Proofread, edit, translate or evaluate a text with the language "
        "model. The reply goes through the light typographic clean-up "
        "before it is returned. Mode 'editing-originale' edits HTML "
        "paragraph by paragraph and keeps the paragraph structure."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Missing text or unknown mode"},
        502: {"model": ErrorResponse, "description": "Language model failure"},
    },
)
async def run_ai(body: AIRequest) -> AIResponse:
    text = body.effective_text()
    if not body.mode:
        raise HTTPException(status_code=400, detail="Parametro mode mancante.")
    if not text:
        raise HTTPException(status_code=400, detail="Parametro text mancante o vuoto.")

    logger.info("AI request: mode=%s, %d chars", body.mode, len(text))

    if is_paragraph_editing_mode(body.mode):
        try:
            async with LLMClient() as client:
                edited = await edit_paragraphs(client, text)
        except _UPSTREAM_ERRORS as exc:
            raise _upstream_failure(exc)
        except ValueError as exc:
            raise _configuration_failure(exc)
        return AIResponse(success=True, result=edited.html, meta=edited.meta())

    try:
        messages = build_messages(
            body.mode,
            text,
            project_title=body.project_title,
            project_author=body.project_author,
        )
    except UnknownModeError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    try:
        async with LLMClient() as client:
            reply = await client.complete(messages, temperature=0)
    except _UPSTREAM_ERRORS as exc:
        raise _upstream_failure(exc)
    except ValueError as exc:
        raise _configuration_failure(exc)

    return AIResponse(success=True, result=clean_ai_text(reply))


@app.post(
    "/api/edit-full-book",
    response_model=FullBookResponse,
    tags=["ai"],
    summary="Edit a whole manuscript",
    description=(
        "Split the manuscript into blocks on word boundaries, edit each "
        "block with the language model in order, and return both the "
        "individual blocks and the joined text."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Missing text or editing level"},
        502: {"model": ErrorResponse, "description": "Language model failure"},
    },
)
async def edit_full_book(body: FullBookRequest) -> FullBookResponse:
    if not body.text:
        raise HTTPException(status_code=400, detail="Testo mancante o non valido.")
    if not body.mode:
        raise HTTPException(
            status_code=400,
            detail="Mode mancante (leggero/moderato/profondo).",
        )

    blocks = split_into_blocks(body.text, FULL_BOOK_BLOCK_CHARS)
    logger.info("Full-book edit: mode=%s, %d chars, %d blocks",
                body.mode, len(body.text), len(blocks))

    edited_blocks: List[str] = []
    try:
        async with LLMClient(model=OPENAI_EDITING_MODEL) as client:
            for index, block in enumerate(blocks, start=1):
                logger.info("Editing block %d/%d (%d chars)", index, len(blocks), len(block))
                messages = build_block_editing_messages(block, body.mode)
                edited_blocks.append(await client.complete(messages))
    except _UPSTREAM_ERRORS as exc:
        raise _upstream_failure(exc)
    except ValueError as exc:
        raise _configuration_failure(exc)

    return FullBookResponse(
        ok=True,
        blocks_count=len(blocks),
        edited_blocks=edited_blocks,
        full_edited_text="\n\n".join(edited_blocks),
    )


# ---------------------------------------------------------------------------
# Endpoints: Documents
# ---------------------------------------------------------------------------


@app.post(
    "/api/import",
    response_model=ImportResponse,
    tags=["documents"],
    summary="Import a manuscript",
    description=(
        "Upload a .docx or .pdf manuscript. DOCX files come back as HTML "
        "paragraphs, PDF files as plain text."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Missing or unsupported file"},
        413: {"model": ErrorResponse, "description": "File too large"},
        500: {"model": ErrorResponse, "description": "File could not be parsed"},
    },
)
@app.post("/api/upload", response_model=ImportResponse, include_in_schema=False)
@app.post("/api/import-docx", response_model=ImportResponse, include_in_schema=False)
async def import_manuscript(
    file: Annotated[
        UploadFile,
        File(description="Manuscript file (.docx or .pdf)"),
    ],
) -> ImportResponse:
    filename = file.filename or ""
    content = await file.read()

    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=413,
            detail="File too large ({} bytes, max {}).".format(len(content), MAX_UPLOAD_BYTES),
        )

    try:
        document = import_document(filename, content)
    except UnsupportedFormatError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except DocumentImportError as exc:
        logger.exception("Import failed for %s", filename)
        raise HTTPException(status_code=500, detail=str(exc))

    return ImportResponse(success=True, type=document.kind, text=document.text)


@app.post(
    "/api/export-docx",
    tags=["documents"],
    summary="Export HTML as DOCX",
    description=(
        "Convert editor HTML to a Word document. The default typography "
        "pipeline runs first unless 'typography' is false."
    ),
    responses={
        200: {
            "content": {DOCX_MEDIA_TYPE: {}},
            "description": "The DOCX file as an attachment.",
        },
        400: {"model": ErrorResponse, "description": "Missing html"},
    },
)
def export_docx(body: ExportRequest) -> Response:
    if not body.html:
        raise HTTPException(status_code=400, detail="html mancante nel body")

    html = body.html
    if body.typography:
        try:
            html = apply_typography(body.html)
        except ValueError as exc:
            raise _configuration_failure(exc)
    return _docx_response(html_to_docx(html), EXPORT_FILENAME)


# ---------------------------------------------------------------------------
# Endpoints: Evaluations
# ---------------------------------------------------------------------------


@app.post(
    "/api/evaluations",
    response_model=EvaluationCreatedResponse,
    tags=["evaluations"],
    summary="Store a manuscript evaluation",
    responses={
        400: {"model": ErrorResponse, "description": "Missing evaluation text"},
    },
)
def create_evaluation(body: EvaluationCreateRequest) -> EvaluationCreatedResponse:
    if not body.evaluation_text:
        raise HTTPException(status_code=400, detail="evaluationText is required")

    evaluation = evaluation_store.create(
        evaluation_text=body.evaluation_text,
        project_id=body.project_id,
        file_name=body.file_name,
        title=body.title,
        author=body.author,
        meta=body.meta,
    )
    return EvaluationCreatedResponse(success=True, evaluation=_evaluation_to_record(evaluation))


@app.get(
    "/api/evaluations",
    response_model=EvaluationListResponse,
    tags=["evaluations"],
    summary="List stored evaluations",
    description=(
        "Returns all evaluations. With projectId, returns the evaluations of "
        "that project plus those saved without a project."
    ),
)
def list_evaluations(
    project_id: Annotated[
        Optional[str],
        Query(alias="projectId", description="Only this project (plus unassigned evaluations)."),
    ] = None,
) -> EvaluationListResponse:
    evaluations = evaluation_store.list(project_id=project_id)
    return EvaluationListResponse(
        success=True,
        evaluations=[_evaluation_to_record(e) for e in evaluations],
    )


@app.get(
    "/api/evaluations/{evaluation_id}",
    response_model=EvaluationResponse,
    tags=["evaluations"],
    summary="Get one evaluation",
    responses={
        404: {"model": ErrorResponse, "description": "Evaluation not found"},
    },
)
def get_evaluation(evaluation_id: str) -> EvaluationResponse:
    evaluation = _get_evaluation_or_404(evaluation_id)
    return EvaluationResponse(success=True, evaluation=_evaluation_to_record(evaluation))


@app.get(
    "/api/evaluations/{evaluation_id}/docx",
    tags=["evaluations"],
    summary="Export an evaluation as DOCX",
    responses={
        200: {
            "content": {DOCX_MEDIA_TYPE: {}},
            "description": "The evaluation as a Word document.",
        },
        404: {"model": ErrorResponse, "description": "Evaluation not found"},
    },
)
def export_evaluation_docx(evaluation_id: str) -> Response:
    evaluation = _get_evaluation_or_404(evaluation_id)

    html = evaluation.evaluation_text
    if not looks_like_html(html):
        html = text_to_html(html)

    filename = "{}.docx".format(_safe_filename(evaluation.title))
    return _docx_response(html_to_docx(html), filename)


@app.delete(
    "/api/evaluations/{evaluation_id}",
    response_model=SuccessResponse,
    tags=["evaluations"],
    summary="Delete an evaluation",
    responses={
        404: {"model": ErrorResponse, "description": "Evaluation not found"},
    },
)
def delete_evaluation(evaluation_id: str) -> SuccessResponse:
    if not evaluation_store.delete(evaluation_id):
        raise HTTPException(
            status_code=404,
            detail="Evaluation not found: {}".format(evaluation_id),
        )
    return SuccessResponse(success=True)


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness check for load balancers and orchestrators.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api():
    """Entry point for the fermento-api console script."""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    # Fails on an unknown key in the configured default rule order.
    pipeline = TypographyPipeline()
    logger.info("Typography rules: %s", ", ".join(pipeline.rule_keys))
    logger.info("Evaluations file: %s", EVALUATIONS_PATH)
    uvicorn.run(app, host=SERVER_HOST, port=SERVER_PORT)
