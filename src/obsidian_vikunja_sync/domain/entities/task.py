"""Domain entities for task notes and their change notifications."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


class MutationOrigin(str, Enum):
    """Who performed a write to the local store.

    Only LOCAL_EDIT changes feed the push path; writes made by the sync
    engine itself carry SYNC_PULL or SYNC_PUSH so their notifications are
    recognised and dropped.
    """

    LOCAL_EDIT = "local_edit"
    SYNC_PULL = "sync_pull"
    SYNC_PUSH = "sync_push"

    @property
    def is_sync(self) -> bool:
        return self is not MutationOrigin.LOCAL_EDIT


class ReminderType(str, Enum):
    RELATIVE = "relative"
    ABSOLUTE = "absolute"


@dataclass(frozen=True)
class Reminder:
    """A task reminder, either relative to a task date or at a fixed time.

    Relative reminders carry ``related_to`` ("due" or "scheduled") and an
    ISO-8601 duration ``offset`` such as ``-PT15M``. Absolute reminders carry
    ``absolute_time`` as an ISO datetime string.
    """

    id: str
    type: ReminderType
    related_to: str | None = None
    offset: str | None = None
    absolute_time: str | None = None
    description: str | None = None

    def to_frontmatter(self) -> dict[str, str]:
        data: dict[str, str] = {"id": self.id, "type": self.type.value}
        if self.type is ReminderType.RELATIVE:
            data["relatedTo"] = self.related_to or "due"
            data["offset"] = self.offset or "PT0M"
        else:
            data["absoluteTime"] = self.absolute_time or ""
        if self.description:
            data["description"] = self.description
        return data


@dataclass
class LocalTask:
    """A task note in the vault.

    ``path`` is the vault-relative POSIX path and the unique local identifier.
    ``external_id`` is the Vikunja task id once the note is linked.
    """

    path: str
    title: str
    status: str = "open"
    priority: str = "none"
    due: date | None = None
    scheduled: date | None = None
    recurrence: str | None = None
    tags: list[str] = field(default_factory=list)
    projects: list[str] = field(default_factory=list)
    reminders: list[Reminder] = field(default_factory=list)
    external_id: int | None = None
    last_sync: int | None = None
    ignore: bool = False
    body: str = ""

    @property
    def is_linked(self) -> bool:
        return self.external_id is not None


class ChangeKind(str, Enum):
    CHANGED = "changed"
    MODIFIED = "modified"


@dataclass(frozen=True)
class TaskChangeEvent:
    """Notification emitted by the local store.

    CHANGED events report a new or edited task record and carry its parsed
    value: notes created by the store and user edits of task notes picked
    up by the vault watcher. MODIFIED events report file-level writes and
    carry only the path.
    """

    path: str
    kind: ChangeKind
    origin: MutationOrigin
    task: LocalTask | None = None
