"""Interface for mapping Vikunja parent relations to project links."""

from abc import ABC, abstractmethod

from ...vikunja.models import VikunjaTask
from ..entities.task import LocalTask


class IRelationResolver(ABC):
    """Strategy for reconciling parent/child relations.

    Pull side: ``defer`` queues a record whose remote counterpart has a
    parent during the first pass of a cycle; ``apply_deferred`` resolves the
    queue once every fetched record exists locally.

    Push side: ``push_parent_relation`` mirrors a note's project link to a
    Vikunja parent-task relation.
    """

    @abstractmethod
    def reset(self) -> None:
        """Forget queued records; called at the start of each pull cycle."""

    @abstractmethod
    def defer(self, path: str, remote: VikunjaTask) -> None:
        """Queue a record for relation resolution after the first pass."""

    @abstractmethod
    async def apply_deferred(self) -> int:
        """Resolve every queued record.

        Returns:
            Number of notes whose project links were written
        """

    @abstractmethod
    async def resolve_parent_link(self, remote: VikunjaTask) -> list[str] | None:
        """Map the first remote parent to a single-element project link list.

        Returns:
            The link list, or None when there is no parent or the parent
            has no local counterpart yet
        """

    @abstractmethod
    async def push_parent_relation(self, task: LocalTask, remote_id: int) -> bool:
        """Create the parent relation for a pushed task.

        Returns:
            True if a relation exists afterwards
        """
