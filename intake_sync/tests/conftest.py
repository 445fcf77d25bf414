from typing import Any

import pytest

from intake_sync.realtime.connections import Connection, ConnectionRegistry
from intake_sync.realtime.engine import SyncEngine


class RecordingConnection(Connection):
    def __init__(self, connection_id: str | None = None, *, fail: bool = False) -> None:
        super().__init__(connection_id)
        self.fail = fail
        self.messages: list[dict[str, Any]] = []

    def _deliver(self, message: dict[str, Any]) -> None:
        if self.fail:
            raise OSError("peer went away")
        self.messages.append(message)

    def events(self) -> list[str]:
        return [item["event"] for item in self.messages]

    def of(self, event: str) -> list[Any]:
        return [item["data"] for item in self.messages if item["event"] == event]

    def clear(self) -> None:
        self.messages = []


@pytest.fixture
def make_conn():
    def _make(connection_id: str | None = None, *, fail: bool = False) -> RecordingConnection:
        return RecordingConnection(connection_id, fail=fail)

    return _make


@pytest.fixture
def engine() -> SyncEngine:
    return SyncEngine(ConnectionRegistry())
