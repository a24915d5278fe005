"""JSON-file store for manuscript evaluations.

WHY: A manuscript evaluation is an expensive model call whose result the
editor wants to keep, list per project and re-export later. The volume is
small (tens of records per project) so a single JSON file is enough, and
it survives server restarts unlike the in-process state.

HOW: Two components work together:
  Evaluation       dataclass holding one record
  EvaluationStore  thread-safe store that reads the whole file, applies a
                   change and writes it back under a threading.Lock

RULES:
- All reads and writes of the file happen while holding self._lock
- A missing file reads as an empty list; the parent dir is created on write
- An unreadable or malformed file is logged and reads as an empty list
- Writes go to a sibling .tmp file that os.replace() moves into place
- JSON is written UTF-8 with 2-space indent and non-ASCII preserved
- Record IDs are millisecond timestamps as strings, bumped until unique
- get() returns None for unknown IDs (no exceptions)
- New records are appended; list() returns them in insertion order
"""

from __future__ import annotations

import json
import logging
import os
import threading
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

UNTITLED_EVALUATION = "Valutazione senza titolo"


@dataclass
class Evaluation:
    """One stored manuscript evaluation.

    RULES:
    - id: millisecond timestamp string, unique within the store
    - project_id: the editor project the evaluation belongs to, or None
    - title: explicit title, else file_name, else UNTITLED_EVALUATION
    - author: manuscript author as given by the client
    - evaluation_text: the evaluation as returned by the model
    - meta: free-form client data, stored as given
    - created_at: ISO-8601 UTC timestamp
    """

    id: str
    project_id: Optional[str]
    file_name: Optional[str]
    title: str
    evaluation_text: str
    created_at: str
    author: str = ""
    meta: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Evaluation:
        return cls(
            id=str(data["id"]),
            project_id=data.get("project_id"),
            file_name=data.get("file_name"),
            title=data.get("title") or UNTITLED_EVALUATION,
            evaluation_text=data.get("evaluation_text", ""),
            created_at=data.get("created_at", ""),
            author=data.get("author") or "",
            meta=data.get("meta") or {},
        )


class EvaluationStore:
    """Thread-safe JSON-file store for evaluations.

    WHY: Concurrent requests (the browser saves while another tab lists)
    must not interleave read-modify-write cycles on the same file.

    HOW: Every public method takes self._lock, loads the file, and for
    mutations writes the full list back before releasing the lock.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    # -- file access (callers hold the lock) ------------------------------

    def _load(self) -> List[Evaluation]:
        if not self.path.exists():
            return []
        try:
            raw = self.path.read_text(encoding="utf-8")
            items = json.loads(raw) if raw.strip() else []
        except (json.JSONDecodeError, OSError):
            logger.exception("Could not read evaluations file %s", self.path)
            return []
        if not isinstance(items, list):
            logger.error("Evaluations file %s does not hold a list, ignoring it", self.path)
            return []
        return [Evaluation.from_dict(item) for item in items]

    def _save(self, evaluations: List[Evaluation]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [asdict(evaluation) for evaluation in evaluations]
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(
            json.dumps(payload, indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        os.replace(tmp_path, self.path)

    @staticmethod
    def _next_id(existing: List[Evaluation]) -> str:
        taken = {evaluation.id for evaluation in existing}
        candidate = int(time.time() * 1000)
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)

    # -- public API -------------------------------------------------------

    def create(
        self,
        evaluation_text: str,
        project_id: Optional[str] = None,
        file_name: Optional[str] = None,
        title: Optional[str] = None,
        author: str = "",
        meta: Optional[Dict[str, Any]] = None,
    ) -> Evaluation:
        """Store a new evaluation and return it.

        RULES:
        - evaluation_text must be non-empty (ValueError otherwise)
        - title falls back to file_name, then to UNTITLED_EVALUATION
        """
        if not evaluation_text:
            raise ValueError("evaluation_text is required")

        with self._lock:
            evaluations = self._load()
            evaluation = Evaluation(
                id=self._next_id(evaluations),
                project_id=project_id,
                file_name=file_name,
                title=title or file_name or UNTITLED_EVALUATION,
                evaluation_text=evaluation_text,
                created_at=datetime.now(timezone.utc).isoformat(),
                author=author or "",
                meta=dict(meta or {}),
            )
            evaluations.append(evaluation)
            self._save(evaluations)

        logger.info("Saved evaluation %s (%s)", evaluation.id, evaluation.title)
        return evaluation

    def list(self, project_id: Optional[str] = None) -> List[Evaluation]:
        """Return all evaluations, or those visible from one project.

        Evaluations saved without a project are visible from every project.
        """
        with self._lock:
            evaluations = self._load()
        if not project_id:
            return evaluations
        return [
            e for e in evaluations
            if e.project_id is None or e.project_id == project_id
        ]

    def get(self, evaluation_id: str) -> Optional[Evaluation]:
        """Return one evaluation, or None if the ID is unknown."""
        with self._lock:
            evaluations = self._load()
        for evaluation in evaluations:
            if evaluation.id == evaluation_id:
                return evaluation
        return None

    def delete(self, evaluation_id: str) -> bool:
        """Delete one evaluation. Returns False if the ID is unknown."""
        with self._lock:
            evaluations = self._load()
            remaining = [e for e in evaluations if e.id != evaluation_id]
            if len(remaining) == len(evaluations):
                return False
            self._save(remaining)

        logger.info("Deleted evaluation %s", evaluation_id)
        return True
