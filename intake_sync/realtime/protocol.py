from __future__ import annotations

"""
Wire protocol for the intake sync socket.

Design intent:
- Every frame is a JSON text envelope {"event": <name>, "data": <payload>}.
- Keep draft and submission payloads opaque; only routing keys are read.
- Malformed frames decode to None instead of raising.
"""

import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

# server -> client
INITIAL_SUBMISSIONS = "initial-submissions"
ACTIVE_SESSIONS = "active-sessions"
UPDATE_DASHBOARD = "update-dashboard"
NEW_SUBMISSION = "new-submission"
REVIEW_UPDATED = "review-updated"

# client -> server
PATIENT_SESSION = "patient-session"
LEAVE_SESSION = "leave-session"
INPUT_CHANGE = "input-change"
FORM_SUBMIT = "form-submit"
MARK_REVIEWED = "mark-reviewed"

SESSION_CHANNEL_PREFIX = "session:"


class WireMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    event: str
    data: Any = None


def session_channel(session_id: str) -> str:
    return f"{SESSION_CHANNEL_PREFIX}{session_id}"


def encode_message(event: str, payload: Any) -> dict[str, Any]:
    return {"event": event, "data": payload}


def decode_message(raw: str | bytes) -> Optional[WireMessage]:
    try:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        parsed = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if not isinstance(parsed, dict):
        return None
    try:
        message = WireMessage.model_validate(parsed)
    except ValidationError:
        return None
    if not message.event.strip():
        return None
    return message


def session_id_from(payload: Any) -> str:
    if not isinstance(payload, dict):
        return ""
    raw = payload.get("sessionId")
    if not isinstance(raw, str) or not raw.strip():
        return ""
    return raw


def split_draft_payload(payload: Any) -> tuple[str, Any]:
    """Return (session_id, data); an empty session id marks a legacy payload."""
    session_id = session_id_from(payload)
    if not session_id:
        return "", payload
    return session_id, payload.get("data")


def split_submit_payload(payload: Any) -> tuple[Optional[str], Any]:
    session_id = session_id_from(payload) or None
    if isinstance(payload, dict) and "data" in payload:
        return session_id, payload["data"]
    # Pre-session clients submit the bare form values.
    return session_id, payload


def review_target_from(payload: Any) -> str:
    if isinstance(payload, str) and payload.strip():
        return payload
    return ""
