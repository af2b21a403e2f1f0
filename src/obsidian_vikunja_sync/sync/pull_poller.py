"""Pull path: reconcile a fetched batch of Vikunja tasks into the vault."""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

from obsidian_vikunja_sync.config_settings import Config
from obsidian_vikunja_sync.domain.entities.task import LocalTask, MutationOrigin
from obsidian_vikunja_sync.domain.interfaces.relation_resolver import IRelationResolver
from obsidian_vikunja_sync.domain.interfaces.task_store import ITaskStore
from obsidian_vikunja_sync.domain.interfaces.vikunja_client import IVikunjaClient
from obsidian_vikunja_sync.error_codes import ErrorCode
from obsidian_vikunja_sync.exceptions import ObsidianVikunjaSyncError, SyncError
from obsidian_vikunja_sync.obsidian.body_converter import bodies_equal, html_to_markdown
from obsidian_vikunja_sync.obsidian.frontmatter import LAST_SYNC_FIELD
from obsidian_vikunja_sync.sync.field_translator import (
    is_done,
    label_titles_to_tags,
    labels_match_tags,
    merge_remote_reminders,
    priority_to_remote,
    recurrence_to_remote,
    remote_reminders_equal,
    remote_to_date,
    remote_to_local_task,
    remote_to_priority,
    remote_to_recurrence,
)
from obsidian_vikunja_sync.utils.logging import get_logger
from obsidian_vikunja_sync.vikunja.models import VikunjaTask

logger = get_logger(__name__)


class PollerState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    PASS1 = "pass1"
    PASS2 = "pass2"


class ReconcileResult(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"


@dataclass
class PullSummary:
    """Counters for one pull cycle."""

    fetched: int = 0
    updated: int = 0
    created: int = 0
    unchanged: int = 0
    skipped: int = 0
    failed: int = 0
    relinked: int = 0


def _now_ms() -> int:
    return int(time.time() * 1000)


class PullPoller:
    """Runs pull cycles: fetch, pass 1 (fields), pass 2 (relations).

    A cycle requested while another one is still running is dropped, not
    queued. Failures are contained per fetched task; a failed fetch ends
    the cycle without touching the vault.
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
        self.state = PollerState.IDLE
        self.last_summary: PullSummary | None = None

    @property
    def busy(self) -> bool:
        return self.state is not PollerState.IDLE

    async def run_cycle(self) -> PullSummary | None:
        """Run one pull cycle.

        Returns:
            The cycle's counters, or None if the cycle did not run
        """
        if self.busy:
            logger.debug("pull_tick_skipped", state=self.state.value)
            return None

        project_id = self.config.default_project_id
        if project_id is None:
            logger.warning(
                "config_warning",
                reason="default_project_id is not set, nothing to pull",
            )
            return None

        summary = PullSummary()
        self.state = PollerState.FETCHING
        try:
            self.resolver.reset()
            logger.debug("pull_cycle_started", project_id=project_id)
            try:
                remote_tasks = await self._fetch(project_id)
            except ObsidianVikunjaSyncError as e:
                logger.warning(
                    "pull_fetch_failed",
                    project_id=project_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return None
            summary.fetched = len(remote_tasks)

            self.state = PollerState.PASS1
            for remote in remote_tasks:
                result = await self._reconcile_safely(remote)
                if result is None:
                    summary.failed += 1
                else:
                    setattr(summary, result.value, getattr(summary, result.value) + 1)

            self.state = PollerState.PASS2
            summary.relinked = await self.resolver.apply_deferred()
        finally:
            self.state = PollerState.IDLE

        self.last_summary = summary
        logger.info("pull_cycle_completed", project_id=project_id, **asdict(summary))
        return summary

    async def _fetch(self, project_id: int) -> list[VikunjaTask]:
        page_size = self.config.pull_page_size
        tasks: list[VikunjaTask] = []
        seen: set[int] = set()
        for page in range(1, self.config.pull_max_pages + 1):
            batch = await self.client.get_tasks(
                project_id,
                sort_by=["updated"],
                order_by=["desc"],
                page=page,
                per_page=page_size,
            )
            for remote in batch:
                # Pages can shift while the fetch is in progress
                if remote.id not in seen:
                    seen.add(remote.id)
                    tasks.append(remote)
            if len(batch) < page_size:
                break
        return tasks

    async def _reconcile_safely(self, remote: VikunjaTask) -> ReconcileResult | None:
        try:
            return await self.reconcile(remote)
        except ObsidianVikunjaSyncError as e:
            logger.warning(
                "pull_reconcile_failed",
                vikunja_id=remote.id,
                error=str(e),
                error_type=type(e).__name__,
                error_code=e.error_code,
            )
        except Exception as e:
            err = SyncError(
                f"Unexpected error reconciling Vikunja task {remote.id}: {e}",
                error_code=ErrorCode.SYN_PULL_FAILED.value,
                context={"vikunja_id": remote.id},
            )
            logger.exception("pull_reconcile_unexpected_error", **err.to_dict())
        return None

    async def reconcile(self, remote: VikunjaTask) -> ReconcileResult:
        """Reconcile one remote task into the vault (first pass only)."""
        local = await self.store.find_by_external_id(remote.id)
        if local is None:
            if not self.config.enable_two_way_sync:
                return ReconcileResult.SKIPPED
            path = await self._create_local(remote)
            if remote.parent_task_ids:
                self.resolver.defer(path, remote)
            return ReconcileResult.CREATED

        if local.ignore:
            logger.debug("pull_skipped_ignored", path=local.path, vikunja_id=remote.id)
            return ReconcileResult.SKIPPED

        updates = self.diff_fields(local, remote)
        changed = bool(updates)
        updates[LAST_SYNC_FIELD] = _now_ms()
        await self.store.update_fields(local.path, updates, origin=MutationOrigin.SYNC_PULL)
        if changed:
            logger.debug(
                "local_task_updated",
                path=local.path,
                vikunja_id=remote.id,
                fields=sorted(k for k in updates if k != LAST_SYNC_FIELD),
            )

        body_changed = await self._reconcile_body(local.path, remote)

        if remote.parent_task_ids:
            self.resolver.defer(local.path, remote)

        if changed or body_changed:
            return ReconcileResult.UPDATED
        return ReconcileResult.UNCHANGED

    def diff_fields(self, local: LocalTask, remote: VikunjaTask) -> dict[str, Any]:
        """Frontmatter updates that bring ``local`` in line with ``remote``.

        Lossy fields are compared after translating the local value forward,
        and rewritten only when the translated-back remote value differs
        from what the note holds.
        """
        config = self.config
        updates: dict[str, Any] = {}

        if remote.title and remote.title != local.title:
            updates["title"] = remote.title

        local_done = is_done(local.status, config.done_status)
        if remote.done and not local_done:
            updates["status"] = config.done_status
        elif not remote.done and local_done:
            updates["status"] = config.open_status

        if priority_to_remote(local.priority) != remote.priority:
            priority = remote_to_priority(remote.priority)
            if priority != local.priority:
                updates["priority"] = priority

        for key, current, remote_value in (
            ("due", local.due, remote.due_date),
            ("scheduled", local.scheduled, remote.start_date),
        ):
            new = remote_to_date(remote_value)
            if new != current:
                updates[key] = new.isoformat() if new else None

        forward = recurrence_to_remote(local.recurrence)
        current_freq = remote_to_recurrence(*forward) if forward else None
        remote_freq = remote_to_recurrence(remote.repeat_after, remote.repeat_mode)
        if remote_freq != current_freq:
            updates["recurrence"] = remote_freq

        if not labels_match_tags(remote.label_titles, local.tags, config.task_tag):
            updates["tags"] = label_titles_to_tags(remote.label_titles, config.task_tag)

        if not remote_reminders_equal(local.reminders, remote.reminders):
            reminders = merge_remote_reminders(local.reminders, remote.reminders)
            updates["reminders"] = [r.to_frontmatter() for r in reminders] or None

        return updates

    async def _reconcile_body(self, path: str, remote: VikunjaTask) -> bool:
        new_body = html_to_markdown(remote.description)
        current = await self.store.read_body(path)
        if bodies_equal(current, new_body):
            return False
        await self.store.write_body(path, new_body, origin=MutationOrigin.SYNC_PULL)
        logger.debug("local_body_updated", path=path, vikunja_id=remote.id)
        return True

    async def _create_local(self, remote: VikunjaTask) -> str:
        task = remote_to_local_task(
            remote,
            "",
            html_to_markdown(remote.description),
            task_tag=self.config.task_tag,
            done_status=self.config.done_status,
            open_status=self.config.open_status,
            synced_at=_now_ms(),
        )
        path = await self.store.create_task(task, origin=MutationOrigin.SYNC_PULL)
        logger.info("local_task_created", path=path, vikunja_id=remote.id, title=remote.title)
        return path
