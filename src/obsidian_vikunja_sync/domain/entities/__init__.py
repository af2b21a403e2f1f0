"""Domain entities."""

from .task import (
    ChangeKind,
    LocalTask,
    MutationOrigin,
    Reminder,
    ReminderType,
    TaskChangeEvent,
)

__all__ = [
    "ChangeKind",
    "LocalTask",
    "MutationOrigin",
    "Reminder",
    "ReminderType",
    "TaskChangeEvent",
]
