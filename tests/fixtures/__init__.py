"""Test fixtures package."""

from .mock_task_store import MockTaskStore
from .mock_vikunja_client import MockVikunjaClient
from .vault_notes import task_note, write_note

__all__ = [
    "MockTaskStore",
    "MockVikunjaClient",
    "task_note",
    "write_note",
]
