from __future__ import annotations

import secrets
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from intake_sync.realtime import protocol

Emit = Callable[[str, Any], None]

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"
TYPING_WINDOW_SEC = 2.0


def _to_base36(value: int) -> str:
    if value <= 0:
        return "0"
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_session_id() -> str:
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(7))
    return f"s-{_to_base36(millis)}-{suffix}"


def _submitted_at_sort_key(item: Dict[str, Any]) -> float:
    raw = item.get("submittedAt")
    if not isinstance(raw, str) or not raw:
        return 0.0
    try:
        return datetime.fromisoformat(raw).timestamp()
    except ValueError:
        return 0.0


class PatientSyncAdapter:
    """Patient device side of the protocol.

    Holds one session id per registration attempt, in memory only. A new
    adapter (page reload) starts a new session.
    """

    def __init__(
        self,
        emit: Emit,
        *,
        session_id_factory: Callable[[], str] = generate_session_id,
    ) -> None:
        self._emit = emit
        self._session_id_factory = session_id_factory
        self.session_id = session_id_factory()
        self.draft: Any = None
        self.confirmed_submissions: List[Dict[str, Any]] = []
        self._pending_submit_ids: set[str] = set()

    def mount(self) -> None:
        self._emit(protocol.PATIENT_SESSION, {"sessionId": self.session_id})

    def change(self, data: Any) -> None:
        self.draft = data
        self._emit(protocol.INPUT_CHANGE, {"sessionId": self.session_id, "data": data})

    def submit(self, data: Any) -> str:
        old_session_id = self.session_id
        self._emit(protocol.FORM_SUBMIT, {"sessionId": old_session_id, "data": data})
        self._pending_submit_ids.add(old_session_id)
        self._emit(protocol.LEAVE_SESSION, {"sessionId": old_session_id})
        self.session_id = self._session_id_factory()
        self.draft = None
        self._emit(protocol.PATIENT_SESSION, {"sessionId": self.session_id})
        return old_session_id

    def unmount(self) -> None:
        self._emit(protocol.LEAVE_SESSION, {"sessionId": self.session_id})

    def receive(self, event: str, payload: Any) -> None:
        if event == protocol.UPDATE_DASHBOARD:
            # Drafts of other sessions are fanned out to every tab.
            if protocol.session_id_from(payload) == self.session_id:
                self.draft = payload.get("data")
            return
        if event == protocol.NEW_SUBMISSION and isinstance(payload, dict):
            session_id = payload.get("sessionId")
            if session_id in self._pending_submit_ids:
                self._pending_submit_ids.discard(session_id)
                self.confirmed_submissions.append(payload)

    @property
    def awaiting_confirmation(self) -> bool:
        return bool(self._pending_submit_ids)


class StaffSyncAdapter:
    """Staff dashboard view of drafts and submissions, fed only by server events."""

    def __init__(self, emit: Emit, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._emit = emit
        self._clock = clock
        self.drafts: Dict[str, Any] = {}
        self.last_active: Dict[str, float] = {}
        self.submissions: List[Dict[str, Any]] = []

    def receive(self, event: str, payload: Any) -> None:
        if event == protocol.INITIAL_SUBMISSIONS:
            self.submissions = [dict(item) for item in (payload or []) if isinstance(item, dict)]
        elif event == protocol.ACTIVE_SESSIONS:
            self._apply_active_sessions(payload)
        elif event == protocol.UPDATE_DASHBOARD:
            self._apply_draft(payload)
        elif event == protocol.NEW_SUBMISSION:
            self._apply_new_submission(payload)
        elif event == protocol.REVIEW_UPDATED:
            self._apply_review(payload)

    def toggle_review(self, submission_id: str) -> None:
        self._emit(protocol.MARK_REVIEWED, submission_id)

    def sorted_submissions(self) -> List[Dict[str, Any]]:
        return sorted(self.submissions, key=_submitted_at_sort_key, reverse=True)

    def sorted_sessions(self) -> List[str]:
        return sorted(self.drafts, key=lambda sid: self.last_active.get(sid, 0.0), reverse=True)

    def is_typing(self, session_id: str) -> bool:
        last = self.last_active.get(session_id)
        if last is None:
            return False
        return self._clock() - last < TYPING_WINDOW_SEC

    def counts(self) -> Dict[str, int]:
        return {"drafts": len(self.drafts), "submissions": len(self.submissions)}

    def find_submission(self, submission_id: str) -> Optional[Dict[str, Any]]:
        for item in self.submissions:
            if item.get("id") == submission_id:
                return item
        return None

    def _apply_active_sessions(self, payload: Any) -> None:
        if not isinstance(payload, list):
            return
        now = self._clock()
        drafts: Dict[str, Any] = {}
        for item in payload:
            session_id = protocol.session_id_from(item)
            # Joined sessions with no input yet are not shown.
            if session_id and item.get("draft"):
                drafts[session_id] = item["draft"]
                self.last_active.setdefault(session_id, now)
        self.drafts = drafts

    def _apply_draft(self, payload: Any) -> None:
        session_id = protocol.session_id_from(payload)
        if not session_id:
            return
        self.drafts[session_id] = payload.get("data")
        self.last_active[session_id] = self._clock()

    def _apply_new_submission(self, payload: Any) -> None:
        if not isinstance(payload, dict):
            return
        self.submissions.insert(0, dict(payload))
        session_id = payload.get("sessionId")
        if session_id:
            self.drafts.pop(session_id, None)
            self.last_active.pop(session_id, None)

    def _apply_review(self, payload: Any) -> None:
        if not isinstance(payload, dict):
            return
        item = self.find_submission(str(payload.get("id", "")))
        if item is not None:
            item["reviewed"] = bool(payload.get("reviewed"))
