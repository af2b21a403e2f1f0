"""Domain layer: task entities and the interfaces of the sync collaborators."""

from .entities.task import (
    ChangeKind,
    LocalTask,
    MutationOrigin,
    Reminder,
    ReminderType,
    TaskChangeEvent,
)
from .interfaces.relation_resolver import IRelationResolver
from .interfaces.task_store import ITaskStore
from .interfaces.vikunja_client import IVikunjaClient

__all__ = [
    # Entities
    "ChangeKind",
    # Interfaces
    "IRelationResolver",
    "ITaskStore",
    "IVikunjaClient",
    "LocalTask",
    "MutationOrigin",
    "Reminder",
    "ReminderType",
    "TaskChangeEvent",
]
