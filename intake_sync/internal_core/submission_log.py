from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from threading import RLock
from typing import Any, Dict, List, Optional

from .contracts import Submission


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_submission_id() -> str:
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex}"


def _submitted_at_key(submission: Submission) -> float:
    try:
        return datetime.fromisoformat(submission.submitted_at).timestamp()
    except ValueError:
        return 0.0


class InMemorySubmissionLog:
    """Finalized submissions for the lifetime of the process.

    Storage order is insertion order, newest first. Only ``reviewed`` is ever
    mutated after an entry is appended.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._entries: List[Dict[str, Any]] = []
        self._by_id: Dict[str, Dict[str, Any]] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def append(self, session_id: Optional[str], data: Any) -> Submission:
        entry = {
            "id": new_submission_id(),
            "session_id": session_id or None,
            "data": data,
            "submitted_at": _utc_now_iso(),
            "reviewed": False,
        }
        with self._lock:
            while entry["id"] in self._by_id:
                entry["id"] = new_submission_id()
            self._entries.insert(0, entry)
            self._by_id[entry["id"]] = entry
            return self._to_model(entry)

    def get(self, submission_id: str) -> Optional[Submission]:
        with self._lock:
            entry = self._by_id.get(submission_id)
            if entry is None:
                return None
            return self._to_model(entry)

    def toggle_reviewed(self, submission_id: str) -> Optional[Submission]:
        with self._lock:
            entry = self._by_id.get(submission_id)
            if entry is None:
                return None
            entry["reviewed"] = not entry["reviewed"]
            return self._to_model(entry)

    def list_newest_first(self) -> List[Submission]:
        with self._lock:
            return [self._to_model(entry) for entry in self._entries]

    def list_by_submitted_at(self) -> List[Submission]:
        # Insertion order and timestamp order can diverge; display order is
        # always derived from submittedAt.
        return sorted(self.list_newest_first(), key=_submitted_at_key, reverse=True)

    @staticmethod
    def _to_model(entry: Dict[str, Any]) -> Submission:
        return Submission(
            id=entry["id"],
            session_id=entry["session_id"],
            data=entry["data"],
            submitted_at=entry["submitted_at"],
            reviewed=entry["reviewed"],
        )
