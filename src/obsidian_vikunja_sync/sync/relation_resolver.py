"""Two-pass resolution of Vikunja parent relations."""

from __future__ import annotations

from obsidian_vikunja_sync.domain.entities.task import LocalTask, MutationOrigin
from obsidian_vikunja_sync.domain.interfaces.relation_resolver import IRelationResolver
from obsidian_vikunja_sync.domain.interfaces.task_store import ITaskStore
from obsidian_vikunja_sync.domain.interfaces.vikunja_client import IVikunjaClient
from obsidian_vikunja_sync.exceptions import (
    ObsidianVikunjaSyncError,
    RelationAlreadyExistsError,
)
from obsidian_vikunja_sync.obsidian.links import format_wikilink
from obsidian_vikunja_sync.utils.logging import get_logger
from obsidian_vikunja_sync.vikunja.models import VikunjaTask

logger = get_logger(__name__)


class TwoPassRelationResolver(IRelationResolver):
    """Resolves relations after the whole fetched batch exists locally.

    Only the first parent of a remote task is considered. A parent without
    a local counterpart leaves the child's links untouched; the next cycle
    retries.
    """

    def __init__(self, store: ITaskStore, client: IVikunjaClient):
        self.store = store
        self.client = client
        self._deferred: dict[str, VikunjaTask] = {}

    @property
    def pending(self) -> int:
        return len(self._deferred)

    def reset(self) -> None:
        self._deferred.clear()

    def defer(self, path: str, remote: VikunjaTask) -> None:
        self._deferred[path] = remote

    async def _find_parent(self, remote: VikunjaTask) -> LocalTask | None:
        parent_ids = remote.parent_task_ids
        if not parent_ids:
            return None
        if len(parent_ids) > 1:
            logger.debug(
                "extra_parents_ignored",
                vikunja_id=remote.id,
                parent_ids=parent_ids,
            )
        return await self.store.find_by_external_id(parent_ids[0])

    async def resolve_parent_link(self, remote: VikunjaTask) -> list[str] | None:
        parent = await self._find_parent(remote)
        if parent is None:
            return None
        return [format_wikilink(parent.path)]

    async def apply_deferred(self) -> int:
        deferred, self._deferred = self._deferred, {}
        written = 0
        for path, remote in deferred.items():
            try:
                if await self._apply_one(path, remote):
                    written += 1
            except ObsidianVikunjaSyncError as e:
                logger.warning(
                    "relation_resolve_failed",
                    path=path,
                    vikunja_id=remote.id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
        return written

    async def _apply_one(self, path: str, remote: VikunjaTask) -> bool:
        parent = await self._find_parent(remote)
        if parent is None:
            logger.debug(
                "parent_not_local_yet",
                path=path,
                vikunja_id=remote.id,
                parent_ids=remote.parent_task_ids,
            )
            return False

        task = await self.store.get_task(path)
        if task is None:
            return False

        for link in task.projects:
            if await self.store.resolve_link(link, path) == parent.path:
                return False

        link = format_wikilink(parent.path)
        await self.store.update_fields(
            path, {"projects": [link]}, origin=MutationOrigin.SYNC_PULL
        )
        logger.debug("project_link_written", path=path, parent=parent.path)
        return True

    async def push_parent_relation(self, task: LocalTask, remote_id: int) -> bool:
        try:
            parent_id = await self._first_linked_project(task)
            if parent_id is None or parent_id == remote_id:
                return False
            await self.client.create_parent_relation(remote_id, parent_id)
        except RelationAlreadyExistsError:
            logger.debug("parent_relation_exists", path=task.path, vikunja_id=remote_id)
            return True
        except ObsidianVikunjaSyncError as e:
            logger.warning(
                "parent_relation_failed",
                path=task.path,
                vikunja_id=remote_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        logger.debug(
            "parent_relation_created",
            path=task.path,
            vikunja_id=remote_id,
            parent_id=parent_id,
        )
        return True

    async def _first_linked_project(self, task: LocalTask) -> int | None:
        for link in task.projects:
            target = await self.store.resolve_link(link, task.path)
            if target is None:
                continue
            candidate = await self.store.get_task(target)
            if candidate is not None and candidate.external_id is not None:
                return candidate.external_id
        return None
