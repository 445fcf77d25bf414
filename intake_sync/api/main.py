from __future__ import annotations

"""
Realtime API surface for the intake sync service.

Design intent:
- Keep socket handling thin; every state decision lives in SyncEngine.
- One long-lived WebSocket per client, all events multiplexed on one path.
- Never surface errors to clients; log them server-side instead.
"""

import asyncio
import contextlib
import logging

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from intake_sync.internal_core.audit import log_event
from intake_sync.internal_core.config import SyncConfig, load_config
from intake_sync.internal_core.contracts import SyncCounts
from intake_sync.realtime.connections import ConnectionRegistry, QueuedConnection
from intake_sync.realtime.engine import SyncEngine
from intake_sync.realtime.protocol import decode_message

config: SyncConfig = load_config()

app = FastAPI(title="intake sync service")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(config.INTAKE_CORS_ORIGINS),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def build_engine(cfg: SyncConfig) -> SyncEngine:
    return SyncEngine(
        ConnectionRegistry(),
        legacy_drafts_enabled=cfg.INTAKE_LEGACY_DRAFTS_ENABLED,
    )


def _get_sync_engine() -> SyncEngine:
    existing = getattr(app.state, "sync_engine", None)
    if isinstance(existing, SyncEngine):
        return existing
    created = build_engine(config)
    setattr(app.state, "sync_engine", created)
    return created


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/sync/status", response_model=SyncCounts)
async def sync_status() -> SyncCounts:
    return _get_sync_engine().counts()


@app.websocket(config.INTAKE_SOCKET_PATH)
async def intake_socket(websocket: WebSocket) -> None:
    await websocket.accept()
    engine = _get_sync_engine()
    conn = QueuedConnection()
    pump = asyncio.create_task(conn.pump(websocket.send_json))
    engine.connect(conn)

    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", 1000))
            raw = frame.get("text")
            if raw is None:
                raw = frame.get("bytes")
            message = decode_message(raw) if raw is not None else None
            if message is None:
                log_event("INPUT_IGNORED", "invalid_frame", connection_id=conn.connection_id)
                continue
            try:
                engine.dispatch(conn, message.event, message.data)
            except Exception:
                logger.exception("Error processing %s from %s", message.event, conn.connection_id)
    except WebSocketDisconnect:
        pass
    finally:
        engine.disconnect(conn)
        pump.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await pump
