from .config import SyncConfig, load_config
from .session_store import InMemorySessionStore
from .submission_log import InMemorySubmissionLog

__all__ = ["SyncConfig", "load_config", "InMemorySessionStore", "InMemorySubmissionLog"]
