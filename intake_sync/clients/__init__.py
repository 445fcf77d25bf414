"""
Client-side sync adapters for patient and staff devices.

Design intent:
- Mirror the wire protocol from the client's side, independent of transport.
- Keep a stable per-device session id for one registration attempt.
- Re-derive display order locally instead of trusting arrival order.
"""
