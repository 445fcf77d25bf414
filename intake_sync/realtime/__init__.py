"""
Realtime synchronization boundary for the intake service.

Design intent:
- Keep session drafts and submissions consistent across every observer.
- Keep transport specifics (WebSocket framing, send buffering) out of the engine.
- Stay single-process and in-memory; nothing here survives a restart.
"""
