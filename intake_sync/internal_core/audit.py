from __future__ import annotations

import datetime as _dt
import logging
from typing import Optional

from .contracts import AuditEvent, AuditEventType

logger = logging.getLogger(__name__)

_DEBUG_TYPES = {"INPUT_IGNORED", "DRAFT_UPDATED", "LEGACY_DRAFT_RELAYED"}
_WARNING_TYPES = {"SEND_FAILED"}


def _ts_iso() -> str:
    return _dt.datetime.now(_dt.timezone.utc).isoformat()


def _sanitize_detail(detail: str) -> str:
    # IMPORTANT: Never include draft or submission field values in detail.
    # Intake payloads carry patient identifiers.
    detail = (detail or "").replace("\n", " ").strip()
    if len(detail) > 200:
        detail = detail[:200] + "..."
    return detail


def _level_for(event_type: AuditEventType) -> int:
    if event_type in _WARNING_TYPES:
        return logging.WARNING
    if event_type in _DEBUG_TYPES:
        return logging.DEBUG
    return logging.INFO


def log_event(
    event_type: AuditEventType,
    code: str,
    detail: str = "",
    *,
    session_id: Optional[str] = None,
    connection_id: Optional[str] = None,
) -> AuditEvent:
    event = AuditEvent(
        ts_iso=_ts_iso(),
        type=event_type,
        code=code,
        detail=_sanitize_detail(detail),
        session_id=session_id,
        connection_id=connection_id,
    )
    logger.log(_level_for(event_type), "audit %s", event.model_dump_json(exclude_none=True))
    return event
