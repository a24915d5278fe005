"""Tests for the FastAPI editor backend.

WHY: Validates every endpoint the browser editor calls: happy paths,
the camelCase wire format, and the error codes the client relies on
(400 bad request, 404 not found, 413 too large, 500 configuration or
unreadable file, 502 model failure).

HOW: Each test class exercises one endpoint group through the FastAPI
TestClient. The language model is replaced by the FakeLLMClient from
conftest (llm fixture) and the evaluation store by a fresh store under
tmp_path, so no test touches the network or the real data file.

RULES:
- All tests use the FastAPI TestClient (synchronous)
- The language model is never called (LLMClient is patched)
- Each test gets an empty evaluation store
"""

from __future__ import annotations

import inspect
import json
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from fermento_editor import __version__
from fermento_editor.api.client import EmptyCompletionError, LLMAPIError
from fermento_editor.config import DOCX_MEDIA_TYPE, OPENAI_EDITING_MODEL
from fermento_editor.server.app import (
    app,
    create_evaluation,
    delete_evaluation,
    export_docx,
    export_evaluation_docx,
    get_evaluation,
    list_evaluations,
    run_api,
)
from fermento_editor.server.evaluations import EvaluationStore

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def store(tmp_path):
    """Replace the evaluation store with an empty one for each test."""
    fresh = EvaluationStore(tmp_path / "evaluations.json")
    with patch("fermento_editor.server.app.evaluation_store", new=fresh):
        yield fresh


@pytest.fixture
def client():
    return TestClient(app)


def _docx_upload(content, name="romanzo.docx"):
    return {"file": (name, content, DOCX_MEDIA_TYPE)}


# ---------------------------------------------------------------------------
# Typography
# ---------------------------------------------------------------------------


class TestTypography:

    def test_default_rules(self, client):
        resp = client.post("/api/typography", json={"html": "<p>-Ciao.-disse lui</p>"})
        assert resp.status_code == 200
        assert resp.json() == {"html": "<p>- Ciao. - disse lui</p>", "rules": ["dash_spacing"]}

    def test_full(self, client):
        resp = client.post("/api/typography", json={"html": "<p>-Ciao.-disse lui</p>", "full": True})
        assert resp.json() == {
            "html": "<p>«Ciao.» disse lui</p>",
            "rules": ["dash_spacing", "dialogue_punctuation"],
        }

    def test_explicit_rules_win_over_full(self, client):
        resp = client.post(
            "/api/typography",
            json={"html": "<p>Maddie.-</p>", "rules": ["dialogue_punctuation"], "full": True},
        )
        assert resp.json() == {"html": "<p>Maddie.</p>", "rules": ["dialogue_punctuation"]}

    def test_unknown_rule(self, client):
        resp = client.post("/api/typography", json={"html": "<p>x</p>", "rules": ["bogus"]})
        assert resp.status_code == 400
        assert "Unknown typography rule 'bogus'" in resp.json()["detail"]

    def test_missing_html(self, client):
        resp = client.post("/api/typography", json={})
        assert resp.status_code == 400
        assert resp.json()["detail"].startswith("html:")

    def test_list_rules(self, client):
        resp = client.get("/api/typography/rules")
        assert resp.status_code == 200
        rules = resp.json()
        assert [r["key"] for r in rules] == ["dash_spacing", "dialogue_punctuation"]
        assert all(r["name"] and r["description"] for r in rules)


# ---------------------------------------------------------------------------
# AI
# ---------------------------------------------------------------------------


class TestAI:

    def test_reply_is_cleaned(self, client, llm):
        llm.replies = ["Davvero ?"]
        resp = client.post("/api/ai", json={"mode": "correzione", "text": "davvero ?"})
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "result": "Davvero?", "meta": None}
        assert llm.calls[0]["temperature"] == 0
        assert llm.user_messages() == ["davvero ?"]

    @pytest.mark.parametrize("field", ["inputText", "html", "inputHtml"])
    def test_text_aliases(self, client, llm, field):
        resp = client.post("/api/ai", json={"mode": "correzione", field: "ciao"})
        assert resp.status_code == 200
        assert llm.user_messages() == ["ciao"]

    def test_blank_text_falls_back_to_html(self, client, llm):
        client.post("/api/ai", json={"mode": "correzione", "text": "  ", "html": "<p>x</p>"})
        assert llm.user_messages() == ["<p>x</p>"]

    def test_evaluation_metadata(self, client, llm):
        client.post("/api/ai", json={
            "mode": "valutazione-manoscritto",
            "text": "C'era una volta.",
            "projectTitle": "Il Lago",
            "projectAuthor": "A. Rossi",
        })
        assert llm.user_messages() == ["Titolo: Il Lago\nAutore: A. Rossi\n\nC'era una volta."]

    def test_missing_mode(self, client, llm):
        resp = client.post("/api/ai", json={"text": "x"})
        assert resp.status_code == 400
        assert "mode" in resp.json()["detail"]
        assert llm.calls == []

    def test_missing_text(self, client, llm):
        resp = client.post("/api/ai", json={"mode": "correzione", "text": "   "})
        assert resp.status_code == 400
        assert "text" in resp.json()["detail"]

    def test_unknown_mode(self, client, llm):
        resp = client.post("/api/ai", json={"mode": "riassunto", "text": "x"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Modalità sconosciuta: riassunto"
        assert llm.calls == []

    def test_paragraph_editing_mode(self, client, llm):
        llm.replies = [json.dumps(["<p>A.</p>", "<p>B.</p>"])]
        resp = client.post("/api/ai", json={"mode": "editing", "html": "<p>a</p><p>b</p>"})
        assert resp.status_code == 200
        assert resp.json() == {
            "success": True,
            "result": "<p>A.</p>\n<p>B.</p>",
            "meta": {"paragraphsOriginal": 2, "paragraphsNormalized": 2, "batches": 1},
        }

    @pytest.mark.parametrize("error", [
        LLMAPIError(429, "rate limited"),
        EmptyCompletionError("The model returned no text."),
    ])
    def test_model_failure_is_502(self, client, llm, error):
        llm.replies = [error]
        resp = client.post("/api/ai", json={"mode": "correzione", "text": "x"})
        assert resp.status_code == 502
        assert resp.json()["detail"].startswith("Language model request failed")

    def test_missing_api_key_is_500(self, client):
        with patch(
            "fermento_editor.server.app.LLMClient",
            side_effect=ValueError("OpenAI API key not configured."),
        ):
            resp = client.post("/api/ai", json={"mode": "correzione", "text": "x"})
        assert resp.status_code == 500
        assert resp.json() == {"detail": "OpenAI API key not configured."}


class TestFullBook:

    def test_blocks_are_edited_in_order(self, client, llm):
        llm.replies = ["A", "B", "C"]
        with patch("fermento_editor.server.app.FULL_BOOK_BLOCK_CHARS", 20):
            resp = client.post("/api/edit-full-book", json={
                "text": "uno due tre quattro cinque sei sette otto",
                "mode": "moderato",
            })
        assert resp.status_code == 200
        assert resp.json() == {
            "ok": True,
            "blocksCount": 3,
            "editedBlocks": ["A", "B", "C"],
            "fullEditedText": "A\n\nB\n\nC",
        }
        assert llm.init_kwargs == [{"model": OPENAI_EDITING_MODEL}]
        users = llm.user_messages()
        assert "MODERATO" in users[0]
        assert [u.rsplit("\n\n", 1)[1] for u in users] == [
            "uno due tre quattro", "cinque sei sette", "otto",
        ]

    def test_missing_text(self, client, llm):
        resp = client.post("/api/edit-full-book", json={"mode": "leggero"})
        assert resp.status_code == 400

    def test_missing_mode(self, client, llm):
        resp = client.post("/api/edit-full-book", json={"text": "uno"})
        assert resp.status_code == 400
        assert "leggero/moderato/profondo" in resp.json()["detail"]

    def test_model_failure(self, client, llm):
        llm.replies = [LLMAPIError(500, "boom")]
        resp = client.post("/api/edit-full-book", json={"text": "uno", "mode": "leggero"})
        assert resp.status_code == 502


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class TestImport:

    @pytest.mark.parametrize("path", ["/api/import", "/api/upload", "/api/import-docx"])
    def test_docx(self, client, docx_factory, path):
        content = docx_factory([[("-Ciao", False, False), (" disse", False, True)]])
        resp = client.post(path, files=_docx_upload(content))
        assert resp.status_code == 200
        assert resp.json() == {
            "success": True,
            "type": "docx",
            "text": "<p>-Ciao<em> disse</em></p>",
        }

    def test_pdf(self, client, pdf_factory):
        resp = client.post(
            "/api/import",
            files={"file": ("libro.pdf", pdf_factory(["Testo"]), "application/pdf")},
        )
        assert resp.status_code == 200
        assert resp.json()["type"] == "pdf"
        assert resp.json()["text"].strip() == "Testo"

    def test_unsupported(self, client):
        resp = client.post("/api/import", files={"file": ("note.txt", b"ciao", "text/plain")})
        assert resp.status_code == 400
        assert "Unsupported file type '.txt'" in resp.json()["detail"]

    def test_missing_file(self, client):
        resp = client.post("/api/import")
        assert resp.status_code == 400

    def test_unreadable_file(self, client):
        resp = client.post("/api/import", files=_docx_upload(b"non un docx"))
        assert resp.status_code == 500
        assert "Could not read DOCX file" in resp.json()["detail"]

    def test_too_large(self, client, docx_factory):
        with patch("fermento_editor.server.app.MAX_UPLOAD_BYTES", 10):
            resp = client.post("/api/import", files=_docx_upload(docx_factory(["x"])))
        assert resp.status_code == 413


class TestExport:

    def test_export_applies_default_typography(self, client, docx_reader):
        resp = client.post("/api/export-docx", json={"html": "<p>-Ehi</p><p><strong>Fine</strong></p>"})
        assert resp.status_code == 200
        assert resp.headers["content-type"] == DOCX_MEDIA_TYPE
        assert resp.headers["content-disposition"] == 'attachment; filename="fermento-document.docx"'
        paragraphs = docx_reader(resp.content).paragraphs
        assert [p.text for p in paragraphs] == ["- Ehi", "Fine"]
        assert paragraphs[1].runs[0].bold is True

    def test_typography_can_be_disabled(self, client, docx_reader):
        resp = client.post("/api/export-docx", json={"html": "<p>-Ehi</p>", "typography": False})
        assert [p.text for p in docx_reader(resp.content).paragraphs] == ["-Ehi"]

    def test_missing_html(self, client):
        resp = client.post("/api/export-docx", json={})
        assert resp.status_code == 400
        assert resp.json() == {"detail": "html mancante nel body"}

    def test_unknown_configured_rule_is_500(self, client):
        with patch("fermento_editor.core.pipeline.DEFAULT_RULE_ORDER", ["bogus"]):
            resp = client.post("/api/export-docx", json={"html": "<p>-Ehi</p>"})
        assert resp.status_code == 500
        assert "Unknown typography rule 'bogus'" in resp.json()["detail"]

    def test_unknown_configured_rule_stops_startup(self):
        with patch("fermento_editor.core.pipeline.DEFAULT_RULE_ORDER", ["bogus"]), \
                patch("uvicorn.run") as run:
            with pytest.raises(ValueError, match="bogus"):
                run_api()
        run.assert_not_called()


# ---------------------------------------------------------------------------
# Evaluations
# ---------------------------------------------------------------------------


class TestEvaluations:

    def _create(self, client, **fields):
        body = {"evaluationText": "Buon ritmo.\n\nFinale debole."}
        body.update(fields)
        resp = client.post("/api/evaluations", json=body)
        assert resp.status_code == 200
        return resp.json()["evaluation"]

    def test_create(self, client):
        resp = client.post("/api/evaluations", json={
            "projectId": "p1",
            "fileName": "romanzo.docx",
            "title": "Il Lago",
            "author": "A. Rossi",
            "evaluationText": "Buono.",
            "meta": {"words": 1200},
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        evaluation = data["evaluation"]
        assert evaluation["projectId"] == "p1"
        assert evaluation["fileName"] == "romanzo.docx"
        assert evaluation["title"] == "Il Lago"
        assert evaluation["author"] == "A. Rossi"
        assert evaluation["evaluationText"] == "Buono."
        assert evaluation["meta"] == {"words": 1200}
        assert evaluation["id"]
        assert evaluation["createdAt"]

    def test_create_without_text(self, client):
        resp = client.post("/api/evaluations", json={"title": "x"})
        assert resp.status_code == 400
        assert resp.json() == {"detail": "evaluationText is required"}

    def test_list_filters_by_project(self, client):
        self._create(client, projectId="p1", title="uno")
        self._create(client, projectId="p2", title="due")
        self._create(client, title="libera")

        resp = client.get("/api/evaluations", params={"projectId": "p1"})
        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert [e["title"] for e in resp.json()["evaluations"]] == ["uno", "libera"]

        everything = client.get("/api/evaluations").json()["evaluations"]
        assert [e["title"] for e in everything] == ["uno", "due", "libera"]

    def test_get(self, client):
        created = self._create(client, title="uno")
        resp = client.get("/api/evaluations/{}".format(created["id"]))
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "evaluation": created}

    def test_get_unknown(self, client):
        resp = client.get("/api/evaluations/nope")
        assert resp.status_code == 404
        assert resp.json() == {"detail": "Evaluation not found: nope"}

    def test_docx(self, client, docx_reader):
        created = self._create(client, title="Il Lago: parte 1!")
        resp = client.get("/api/evaluations/{}/docx".format(created["id"]))
        assert resp.status_code == 200
        assert resp.headers["content-disposition"] == 'attachment; filename="Il Lago parte 1.docx"'
        paragraphs = docx_reader(resp.content).paragraphs
        assert [p.text for p in paragraphs] == ["Buon ritmo.", "Finale debole."]

    def test_docx_filename_fallback(self, client):
        created = self._create(client, title="???")
        resp = client.get("/api/evaluations/{}/docx".format(created["id"]))
        assert resp.headers["content-disposition"] == 'attachment; filename="valutazione.docx"'

    def test_docx_of_html_evaluation(self, client, docx_reader):
        created = self._create(client, evaluationText="<h2>Sintesi</h2><p>Bene.</p>")
        resp = client.get("/api/evaluations/{}/docx".format(created["id"]))
        paragraphs = docx_reader(resp.content).paragraphs
        assert [(p.style.name, p.text) for p in paragraphs] == [
            ("Heading 2", "Sintesi"), ("Normal", "Bene."),
        ]

    def test_docx_unknown(self, client):
        assert client.get("/api/evaluations/nope/docx").status_code == 404

    def test_delete(self, client, store):
        created = self._create(client)
        resp = client.delete("/api/evaluations/{}".format(created["id"]))
        assert resp.status_code == 200
        assert resp.json() == {"success": True}
        assert store.list() == []
        assert client.delete("/api/evaluations/{}".format(created["id"])).status_code == 404

    @pytest.mark.parametrize("endpoint", [
        create_evaluation,
        list_evaluations,
        get_evaluation,
        export_evaluation_docx,
        delete_evaluation,
        export_docx,
    ])
    def test_file_endpoints_run_in_the_threadpool(self, endpoint):
        assert inspect.iscoroutinefunction(endpoint) is False


# ---------------------------------------------------------------------------
# Health and CORS
# ---------------------------------------------------------------------------


class TestHealth:

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "version": __version__}

    def test_cors_header(self, client):
        resp = client.get("/health", headers={"Origin": "https://editor.example"})
        assert resp.headers["access-control-allow-origin"] == "*"
