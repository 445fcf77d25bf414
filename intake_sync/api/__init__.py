"""
API boundary for the intake sync service.

Design intent:
- Expose the realtime socket plus small health/status endpoints.
- Keep synchronization decisions in realtime/, not in handlers.
"""
