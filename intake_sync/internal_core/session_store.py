from __future__ import annotations

from datetime import datetime, timezone
from threading import RLock
from typing import Any, Dict, List, Optional

from .contracts import DraftSession


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemorySessionStore:
    """Live drafts keyed by client-generated session id.

    One entry per patient device with an open, unsubmitted form. Entries are
    created by a draft change or an explicit join and removed only by
    ``remove`` (submission acceptance). Drafts are opaque and last-write-wins.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._sessions: Dict[str, Dict[str, Any]] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    def ensure_session(self, session_id: str) -> DraftSession:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = {"session_id": session_id, "draft": None, "last_updated": None}
                self._sessions[session_id] = session
            return self._to_model(session)

    def upsert_draft(self, session_id: str, draft: Any) -> DraftSession:
        with self._lock:
            session = self._sessions.setdefault(
                session_id,
                {"session_id": session_id, "draft": None, "last_updated": None},
            )
            session["draft"] = draft
            session["last_updated"] = _utc_now_iso()
            return self._to_model(session)

    def get_session(self, session_id: str) -> Optional[DraftSession]:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            return self._to_model(session)

    def remove(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def list_sessions(self) -> List[DraftSession]:
        with self._lock:
            return [self._to_model(session) for session in self._sessions.values()]

    @staticmethod
    def _to_model(session: Dict[str, Any]) -> DraftSession:
        return DraftSession(
            session_id=session["session_id"],
            draft=session["draft"],
            last_updated=session["last_updated"],
        )
