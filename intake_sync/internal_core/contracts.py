from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class DraftSession(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    session_id: str = Field(alias="sessionId")
    draft: Any = None
    last_updated: Optional[str] = Field(default=None, alias="lastUpdated")

    def to_snapshot_entry(self) -> dict[str, Any]:
        return {"sessionId": self.session_id, "draft": self.draft}


class Submission(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    id: str
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    data: Any = None
    submitted_at: str = Field(alias="submittedAt")
    reviewed: bool = False

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class ReviewUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    reviewed: bool


class SyncCounts(BaseModel):
    model_config = ConfigDict(extra="forbid")

    drafts: int = 0
    submissions: int = 0
    connections: int = 0


AuditEventType = Literal[
    "CLIENT_CONNECTED",
    "CLIENT_DISCONNECTED",
    "SESSION_JOINED",
    "SESSION_LEFT",
    "DRAFT_UPDATED",
    "LEGACY_DRAFT_RELAYED",
    "SUBMISSION_ACCEPTED",
    "REVIEW_TOGGLED",
    "UNKNOWN_SUBMISSION",
    "INPUT_IGNORED",
    "SEND_FAILED",
]


class AuditEvent(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ts_iso: str
    type: AuditEventType
    code: str
    detail: str
    session_id: Optional[str] = None
    connection_id: Optional[str] = None
