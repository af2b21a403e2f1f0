"""Domain interfaces package."""

from .relation_resolver import IRelationResolver
from .task_store import ChangeListener, ITaskStore
from .vikunja_client import IVikunjaClient

__all__ = [
    "ChangeListener",
    "IRelationResolver",
    "ITaskStore",
    "IVikunjaClient",
]
