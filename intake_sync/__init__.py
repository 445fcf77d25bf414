"""
Intake sync service package.

Design intent:
- Let staff watch patient intake drafts and submissions live, without polling.
- Keep the synchronization core (realtime/, internal_core/) independent of the
  form UI, field validation, and static asset serving.
"""
