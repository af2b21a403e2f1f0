"""Interface for the local task note store."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from ..entities.task import LocalTask, MutationOrigin, TaskChangeEvent

ChangeListener = Callable[[TaskChangeEvent], None]


class ITaskStore(ABC):
    """Interface for reading and writing task notes.

    Paths are vault-relative POSIX strings. Every write takes the
    ``origin`` of the mutation and every resulting change notification
    carries it, so listeners can tell user edits from writes performed by
    the sync engine.
    """

    @abstractmethod
    async def list_task_paths(self) -> list[str]:
        """Enumerate every task-bearing note."""

    @abstractmethod
    async def get_task(self, path: str) -> LocalTask | None:
        """Read a task note.

        Returns:
            The task, or None if the note does not exist or is not a task
        """

    @abstractmethod
    async def read_body(self, path: str) -> str:
        """Read the current body (text after the frontmatter) of a note."""

    @abstractmethod
    async def update_fields(
        self, path: str, updates: dict[str, Any], *, origin: MutationOrigin
    ) -> None:
        """Write frontmatter fields in one transaction.

        Args:
            path: Note path
            updates: Frontmatter keys to new values; None removes the key
            origin: Who performs the write
        """

    @abstractmethod
    async def write_body(self, path: str, body: str, *, origin: MutationOrigin) -> None:
        """Overwrite the body of a note, keeping its frontmatter."""

    @abstractmethod
    async def create_task(self, task: LocalTask, *, origin: MutationOrigin) -> str:
        """Create a new task note.

        The store picks the final path; ``task.path`` is updated to it.

        Returns:
            The path of the created note
        """

    @abstractmethod
    async def find_by_external_id(self, external_id: int) -> LocalTask | None:
        """Find the task linked to a Vikunja task id."""

    @abstractmethod
    async def resolve_link(self, link: str, source_path: str) -> str | None:
        """Resolve a project link written in ``source_path`` to a note path."""

    @abstractmethod
    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a change listener.

        Returns:
            A callable that removes the listener
        """
