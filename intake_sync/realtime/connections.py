from __future__ import annotations

"""
Track live client connections and the channels each belongs to.

Design intent:
- Own the set of connection handles; engine state never lives here.
- Broadcast by explicit iteration with per-target failure isolation.
- Sends are fire-and-forget so engine handlers never await the transport.
"""

import asyncio
import uuid
from collections import defaultdict
from threading import RLock
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Set

from intake_sync.internal_core.audit import log_event
from intake_sync.realtime.protocol import encode_message


class ConnectionClosedError(RuntimeError):
    pass


class Connection:
    """Base connection handle. Subclasses decide how a message is delivered."""

    def __init__(self, connection_id: Optional[str] = None) -> None:
        self.connection_id = connection_id or uuid.uuid4().hex
        self.channels: Set[str] = set()
        self.closed = False

    def send(self, event: str, payload: Any) -> None:
        if self.closed:
            raise ConnectionClosedError(f"Connection {self.connection_id} is closed")
        self._deliver(encode_message(event, payload))

    def close(self) -> None:
        self.closed = True

    def _deliver(self, message: dict[str, Any]) -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.connection_id!r})"


class QueuedConnection(Connection):
    """Buffer outbound messages and drain them to the transport in order."""

    def __init__(self, connection_id: Optional[str] = None) -> None:
        super().__init__(connection_id)
        self._queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        try:
            self._loop: Optional[asyncio.AbstractEventLoop] = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None

    def _deliver(self, message: dict[str, Any]) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if self._loop is None or running is self._loop:
            self._queue.put_nowait(message)
            return
        # asyncio.Queue is not thread-safe; hand off to the owning loop.
        self._loop.call_soon_threadsafe(self._queue.put_nowait, message)

    async def pump(self, send: Callable[[dict[str, Any]], Awaitable[None]]) -> None:
        while not self.closed:
            message = await self._queue.get()
            try:
                await send(message)
            except Exception as exc:
                self.close()
                log_event(
                    "SEND_FAILED",
                    "transport_send_failed",
                    f"{type(exc).__name__}: {exc}",
                    connection_id=self.connection_id,
                )
                return


class ConnectionRegistry:
    def __init__(self) -> None:
        self._lock = RLock()
        self._connections: Dict[str, Connection] = {}
        self._channels: Dict[str, Set[str]] = defaultdict(set)

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    def __contains__(self, conn: object) -> bool:
        if not isinstance(conn, Connection):
            return False
        with self._lock:
            return conn.connection_id in self._connections

    def add(self, conn: Connection) -> None:
        with self._lock:
            self._connections[conn.connection_id] = conn

    def remove(self, conn: Connection) -> None:
        with self._lock:
            self._connections.pop(conn.connection_id, None)
            for key in list(conn.channels):
                self._drop_membership(conn, key)
            conn.channels.clear()

    def join_channel(self, conn: Connection, channel_key: str) -> None:
        with self._lock:
            conn.channels.add(channel_key)
            self._channels[channel_key].add(conn.connection_id)

    def leave_channel(self, conn: Connection, channel_key: str) -> None:
        with self._lock:
            self._drop_membership(conn, channel_key)
            conn.channels.discard(channel_key)

    def members(self, channel_key: str) -> List[Connection]:
        with self._lock:
            ids = self._channels.get(channel_key, set())
            return [self._connections[cid] for cid in ids if cid in self._connections]

    def connections(self) -> List[Connection]:
        with self._lock:
            return list(self._connections.values())

    def send(self, conn: Connection, event: str, payload: Any) -> bool:
        try:
            conn.send(event, payload)
        except Exception as exc:
            self._handle_send_failure(conn, event, exc)
            return False
        return True

    def broadcast(self, event: str, payload: Any, *, exclude: Optional[Connection] = None) -> int:
        delivered = 0
        for conn in self._targets(exclude):
            if self.send(conn, event, payload):
                delivered += 1
        return delivered

    def _targets(self, exclude: Optional[Connection]) -> Iterable[Connection]:
        targets = self.connections()
        if exclude is None:
            return targets
        return [conn for conn in targets if conn.connection_id != exclude.connection_id]

    def _drop_membership(self, conn: Connection, channel_key: str) -> None:
        members = self._channels.get(channel_key)
        if not members:
            return
        members.discard(conn.connection_id)
        if not members:
            self._channels.pop(channel_key, None)

    def _handle_send_failure(self, conn: Connection, event: str, exc: Exception) -> None:
        log_event(
            "SEND_FAILED",
            event,
            f"{type(exc).__name__}: {exc}",
            connection_id=conn.connection_id,
        )
        self.remove(conn)
