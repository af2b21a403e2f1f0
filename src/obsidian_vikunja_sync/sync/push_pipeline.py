"""Push path: one local task change becomes one or more Vikunja calls."""

from __future__ import annotations

import asyncio
import time
from enum import Enum

from obsidian_vikunja_sync.config_settings import Config
from obsidian_vikunja_sync.domain.entities.task import LocalTask, MutationOrigin
from obsidian_vikunja_sync.domain.interfaces.relation_resolver import IRelationResolver
from obsidian_vikunja_sync.domain.interfaces.task_store import ITaskStore
from obsidian_vikunja_sync.domain.interfaces.vikunja_client import IVikunjaClient
from obsidian_vikunja_sync.error_codes import ErrorCode
from obsidian_vikunja_sync.exceptions import (
    MissingDefaultProjectError,
    ObsidianVikunjaSyncError,
    SyncError,
)
from obsidian_vikunja_sync.obsidian.body_converter import markdown_to_html
from obsidian_vikunja_sync.obsidian.frontmatter import LAST_SYNC_FIELD, VIKUNJA_ID_FIELD
from obsidian_vikunja_sync.sync.field_translator import (
    is_done,
    tags_to_label_titles,
    task_to_payload,
)
from obsidian_vikunja_sync.utils.logging import get_logger
from obsidian_vikunja_sync.vikunja.models import VikunjaLabel

logger = get_logger(__name__)


class PushOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


def _now_ms() -> int:
    return int(time.time() * 1000)


class PushPipeline:
    """Pushes a single task note to Vikunja.

    Errors never escape ``push``: they are logged with the note path and
    reported as ``PushOutcome.FAILED`` so a caller processing many notes
    carries on with the next one.

    At most one create per note is in flight. A push of the same unlinked
    note arriving meanwhile waits for it and then updates the new task.
    """

    def __init__(
        self,
        config: Config,
        store: ITaskStore,
        client: IVikunjaClient,
        resolver: IRelationResolver,
    ):
        self.config = config
        self.store = store
        self.client = client
        self.resolver = resolver
        self._creating: dict[str, asyncio.Event] = {}

    async def push(self, path: str, task: LocalTask | None = None) -> PushOutcome:
        """Push one task note.

        Args:
            path: Note path
            task: Structured value carried by a change notification; read
                from the store when omitted

        Returns:
            What happened to the note
        """
        try:
            return await self._push(path, task)
        except MissingDefaultProjectError as e:
            logger.warning("vikunja_default_project_missing", path=path, error=str(e))
            return PushOutcome.SKIPPED
        except ObsidianVikunjaSyncError as e:
            logger.warning(
                "push_failed",
                path=path,
                error=str(e),
                error_type=type(e).__name__,
                error_code=e.error_code,
            )
            return PushOutcome.FAILED
        except Exception as e:
            err = SyncError(
                f"Unexpected error pushing {path}: {e}",
                error_code=ErrorCode.SYN_PUSH_FAILED.value,
                context={"path": path},
            )
            logger.exception("push_unexpected_error", **err.to_dict())
            return PushOutcome.FAILED

    async def _push(self, path: str, task: LocalTask | None) -> PushOutcome:
        if task is None:
            task = await self.store.get_task(path)
            if task is None:
                logger.debug("push_skipped_not_a_task", path=path)
                return PushOutcome.SKIPPED

        if task.ignore:
            logger.debug("push_skipped_ignored", path=path)
            return PushOutcome.SKIPPED

        # The carried value may predate the latest body edit
        body = await self.store.read_body(path)
        payload = task_to_payload(task, markdown_to_html(body), self.config.done_status)

        pending = self._creating.get(path)
        if pending is not None and task.external_id is None:
            logger.debug("push_waiting_for_create", path=path)
            await pending.wait()
            current = await self.store.get_task(path)
            if current is not None:
                task.external_id = current.external_id

        if task.external_id is None:
            return await self._create(task, payload)
        return await self._update(task, task.external_id, payload)

    async def _create(self, task: LocalTask, payload: dict) -> PushOutcome:
        if not self.config.sync_on_task_create:
            logger.debug("push_create_disabled", path=task.path)
            return PushOutcome.SKIPPED

        project_id = self.config.default_project_id
        if project_id is None:
            msg = f"No default Vikunja project configured, not creating '{task.title}'"
            raise MissingDefaultProjectError(
                msg,
                suggestion="Set DEFAULT_PROJECT_ID to the id of a Vikunja project",
                error_code=ErrorCode.CFG_NO_DEFAULT_PROJECT.value,
                context={"path": task.path},
            )

        created = asyncio.Event()
        self._creating[task.path] = created
        try:
            remote = await self.client.create_task(project_id, payload)
            await self.store.update_fields(
                task.path,
                {VIKUNJA_ID_FIELD: remote.id, LAST_SYNC_FIELD: _now_ms()},
                origin=MutationOrigin.SYNC_PUSH,
            )
        finally:
            del self._creating[task.path]
            created.set()
        task.external_id = remote.id
        logger.info(
            "vikunja_task_created",
            path=task.path,
            title=task.title,
            vikunja_id=remote.id,
            project_id=project_id,
        )

        await self._follow_up(task, remote.id)
        return PushOutcome.CREATED

    async def _update(self, task: LocalTask, remote_id: int, payload: dict) -> PushOutcome:
        completed = is_done(task.status, self.config.done_status)
        if not (
            self.config.sync_on_task_update
            or (completed and self.config.sync_on_task_complete)
        ):
            logger.debug("push_update_disabled", path=task.path, completed=completed)
            return PushOutcome.SKIPPED

        await self.client.update_task(remote_id, payload)
        logger.debug("vikunja_task_updated", path=task.path, vikunja_id=remote_id)

        await self._follow_up(task, remote_id)
        return PushOutcome.UPDATED

    async def _follow_up(self, task: LocalTask, remote_id: int) -> None:
        try:
            await self.sync_labels(task, remote_id)
        except ObsidianVikunjaSyncError as e:
            logger.warning(
                "label_sync_failed",
                path=task.path,
                vikunja_id=remote_id,
                error=str(e),
                error_type=type(e).__name__,
            )
        await self.resolver.push_parent_relation(task, remote_id)

    async def sync_labels(self, task: LocalTask, remote_id: int) -> list[VikunjaLabel]:
        """Make the task's label set equal to its tags (minus the task tag).

        Labels are matched by title, case-insensitively; missing ones are
        created. The task's label set is then replaced as a whole.
        """
        titles = tags_to_label_titles(task.tags, self.config.task_tag)
        existing = {label.title.lower(): label for label in await self.client.get_all_labels()}

        labels: list[VikunjaLabel] = []
        for title in titles:
            label = existing.get(title.lower())
            if label is None:
                label = await self.client.create_label(title)
                existing[title.lower()] = label
                logger.debug("vikunja_label_created", title=title, label_id=label.id)
            labels.append(label)

        await self.client.update_task_labels(remote_id, labels)
        return labels
