"""Interface for the Vikunja REST API."""

from abc import ABC, abstractmethod
from typing import Any

from ...vikunja.models import VikunjaLabel, VikunjaTask


class IVikunjaClient(ABC):
    """Interface for the remote task service.

    Every method is a suspension point. Transport failures and non-2xx
    answers raise VikunjaConnectError.
    """

    @abstractmethod
    async def validate_connection(self) -> bool:
        """Check connectivity and credentials via ``GET /user``.

        Returns:
            True if the API accepted the token, False otherwise
        """

    @abstractmethod
    async def create_task(self, project_id: int, payload: dict[str, Any]) -> VikunjaTask:
        """Create a task in a project (``PUT /projects/{id}/tasks``)."""

    @abstractmethod
    async def update_task(self, task_id: int, payload: dict[str, Any]) -> VikunjaTask:
        """Update a task (``POST /tasks/{id}``)."""

    @abstractmethod
    async def delete_task(self, task_id: int) -> None:
        """Delete a task (``DELETE /tasks/{id}``)."""

    @abstractmethod
    async def get_task(self, task_id: int) -> VikunjaTask:
        """Fetch a single task (``GET /tasks/{id}``)."""

    @abstractmethod
    async def get_tasks(
        self,
        project_id: int,
        *,
        sort_by: list[str] | None = None,
        order_by: list[str] | None = None,
        filter_by: list[str] | None = None,
        filter_value: list[str] | None = None,
        page: int | None = None,
        per_page: int | None = None,
    ) -> list[VikunjaTask]:
        """List tasks of a project, one page at a time."""

    @abstractmethod
    async def get_labels(self, page: int = 1, per_page: int = 50) -> list[VikunjaLabel]:
        """List one page of labels visible to the user."""

    @abstractmethod
    async def get_all_labels(self) -> list[VikunjaLabel]:
        """List every label visible to the user."""

    @abstractmethod
    async def create_label(self, title: str) -> VikunjaLabel:
        """Create a label (``PUT /labels``)."""

    @abstractmethod
    async def update_task_labels(self, task_id: int, labels: list[VikunjaLabel]) -> None:
        """Replace the label set of a task (``POST /tasks/{id}/labels/bulk``)."""

    @abstractmethod
    async def create_parent_relation(self, task_id: int, parent_id: int) -> None:
        """Make ``task_id`` a subtask of ``parent_id``.

        Raises:
            RelationAlreadyExistsError: If the relation already exists
        """

    @abstractmethod
    async def aclose(self) -> None:
        """Close the underlying HTTP session."""
