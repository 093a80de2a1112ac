"""Client-side workflow store with in-memory (demo) and HTTP backends."""

from .errors import RecordNotFound, StoreError
from .memory import MemoryBackend
from .remote import HttpBackend
from .workflow_store import WorkflowStore

__all__ = [
    "RecordNotFound",
    "StoreError",
    "MemoryBackend",
    "HttpBackend",
    "WorkflowStore",
]
