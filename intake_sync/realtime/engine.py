from __future__ import annotations

"""
Realtime synchronization engine for intake drafts and submissions.

Design intent:
- Exclusively own the session store and submission log.
- Handle every inbound event to completion with no await points, so store
  mutations and the broadcasts they trigger are never interleaved.
- Degrade every bad input to "no state change, no broadcast".
"""

from typing import Any, Callable, Dict, List, Optional

from intake_sync.internal_core.audit import log_event
from intake_sync.internal_core.contracts import DraftSession, ReviewUpdate, Submission, SyncCounts
from intake_sync.internal_core.session_store import InMemorySessionStore
from intake_sync.internal_core.submission_log import InMemorySubmissionLog
from intake_sync.realtime import protocol
from intake_sync.realtime.connections import Connection, ConnectionRegistry


class SyncEngine:
    def __init__(
        self,
        registry: Optional[ConnectionRegistry] = None,
        *,
        sessions: Optional[InMemorySessionStore] = None,
        submissions: Optional[InMemorySubmissionLog] = None,
        legacy_drafts_enabled: bool = True,
    ) -> None:
        self.registry = registry if registry is not None else ConnectionRegistry()
        self._sessions = sessions if sessions is not None else InMemorySessionStore()
        self._submissions = submissions if submissions is not None else InMemorySubmissionLog()
        self._legacy_drafts_enabled = legacy_drafts_enabled
        self._handlers: Dict[str, Callable[[Connection, Any], None]] = {
            protocol.INPUT_CHANGE: self._on_input_change,
            protocol.PATIENT_SESSION: self._on_patient_session,
            protocol.LEAVE_SESSION: self._on_leave_session,
            protocol.FORM_SUBMIT: self._on_form_submit,
            protocol.MARK_REVIEWED: self._on_mark_reviewed,
        }

    # -- connection lifecycle -------------------------------------------------

    def connect(self, conn: Connection) -> None:
        # Registration and snapshot happen in one step: a broadcast can land
        # either fully before (reflected in the snapshot) or fully after.
        self.registry.add(conn)
        self.registry.send(conn, protocol.INITIAL_SUBMISSIONS, self.snapshot_submissions())
        self.registry.send(conn, protocol.ACTIVE_SESSIONS, self.snapshot_sessions())
        log_event("CLIENT_CONNECTED", "connect", connection_id=conn.connection_id)

    def disconnect(self, conn: Connection) -> None:
        self.registry.remove(conn)
        conn.close()
        log_event("CLIENT_DISCONNECTED", "disconnect", connection_id=conn.connection_id)

    # -- inbound routing ------------------------------------------------------

    def dispatch(self, conn: Connection, event: str, payload: Any) -> None:
        handler = self._handlers.get(event)
        if handler is None:
            log_event("INPUT_IGNORED", "unknown_event", event, connection_id=conn.connection_id)
            return
        handler(conn, payload)

    def _on_input_change(self, conn: Connection, payload: Any) -> None:
        session_id, data = protocol.split_draft_payload(payload)
        if session_id:
            self.handle_draft_change(session_id, data)
        else:
            self.handle_legacy_draft(payload, origin=conn)

    def _on_patient_session(self, conn: Connection, payload: Any) -> None:
        self.handle_join(protocol.session_id_from(payload), conn)

    def _on_leave_session(self, conn: Connection, payload: Any) -> None:
        self.handle_leave(protocol.session_id_from(payload), conn)

    def _on_form_submit(self, conn: Connection, payload: Any) -> None:
        session_id, data = protocol.split_submit_payload(payload)
        self.handle_submit(session_id, data)

    def _on_mark_reviewed(self, conn: Connection, payload: Any) -> None:
        self.handle_toggle_review(protocol.review_target_from(payload))

    # -- operations -----------------------------------------------------------

    def handle_draft_change(self, session_id: str, data: Any) -> None:
        if not session_id:
            log_event("INPUT_IGNORED", "draft_missing_session_id")
            return
        self._sessions.upsert_draft(session_id, data)
        self.registry.broadcast(protocol.UPDATE_DASHBOARD, {"sessionId": session_id, "data": data})
        log_event("DRAFT_UPDATED", "draft_upsert", session_id=session_id)

    def handle_legacy_draft(self, payload: Any, *, origin: Optional[Connection] = None) -> None:
        origin_id = origin.connection_id if origin is not None else None
        if not self._legacy_drafts_enabled:
            log_event("INPUT_IGNORED", "legacy_draft_disabled", connection_id=origin_id)
            return
        if payload is None:
            log_event("INPUT_IGNORED", "legacy_draft_empty", connection_id=origin_id)
            return
        self.registry.broadcast(protocol.UPDATE_DASHBOARD, payload, exclude=origin)
        log_event("LEGACY_DRAFT_RELAYED", "legacy_broadcast", connection_id=origin_id)

    def handle_join(self, session_id: str, conn: Connection) -> None:
        if not session_id:
            log_event("INPUT_IGNORED", "join_missing_session_id", connection_id=conn.connection_id)
            return
        self.registry.join_channel(conn, protocol.session_channel(session_id))
        session = self._sessions.ensure_session(session_id)
        if session.draft:
            self.registry.send(
                conn,
                protocol.UPDATE_DASHBOARD,
                {"sessionId": session_id, "data": session.draft},
            )
        log_event("SESSION_JOINED", "join", session_id=session_id, connection_id=conn.connection_id)

    def handle_leave(self, session_id: str, conn: Connection) -> None:
        if not session_id:
            log_event("INPUT_IGNORED", "leave_missing_session_id", connection_id=conn.connection_id)
            return
        # Abandoned drafts stay visible to staff; only channel membership ends.
        self.registry.leave_channel(conn, protocol.session_channel(session_id))
        log_event("SESSION_LEFT", "leave", session_id=session_id, connection_id=conn.connection_id)

    def handle_submit(self, session_id: Optional[str], data: Any) -> Submission:
        submission = self._submissions.append(session_id, data)
        if session_id:
            self._sessions.remove(session_id)
        self.registry.broadcast(protocol.NEW_SUBMISSION, submission.to_wire())
        log_event(
            "SUBMISSION_ACCEPTED",
            "submit",
            f"submission_id={submission.id}",
            session_id=session_id,
        )
        return submission

    def handle_toggle_review(self, submission_id: str) -> Optional[Submission]:
        if not submission_id:
            log_event("INPUT_IGNORED", "review_missing_id")
            return None
        submission = self._submissions.toggle_reviewed(submission_id)
        if submission is None:
            log_event("UNKNOWN_SUBMISSION", "review_unknown_id", f"submission_id={submission_id}")
            return None
        update = ReviewUpdate(id=submission.id, reviewed=submission.reviewed)
        self.registry.broadcast(protocol.REVIEW_UPDATED, update.model_dump())
        log_event("REVIEW_TOGGLED", "review", f"submission_id={submission.id} reviewed={submission.reviewed}")
        return submission

    # -- read views -----------------------------------------------------------

    def snapshot_submissions(self) -> List[dict[str, Any]]:
        return [item.to_wire() for item in self._submissions.list_newest_first()]

    def snapshot_sessions(self) -> List[dict[str, Any]]:
        return [item.to_snapshot_entry() for item in self._sessions.list_sessions()]

    def get_session(self, session_id: str) -> Optional[DraftSession]:
        return self._sessions.get_session(session_id)

    def get_submission(self, submission_id: str) -> Optional[Submission]:
        return self._submissions.get(submission_id)

    def list_submissions(self) -> List[Submission]:
        return self._submissions.list_by_submitted_at()

    def counts(self) -> SyncCounts:
        return SyncCounts(
            drafts=len(self._sessions),
            submissions=len(self._submissions),
            connections=len(self.registry),
        )
