"""Wires local change notifications and the poll timer to the sync paths."""

from __future__ import annotations

import asyncio
from typing import Any

from obsidian_vikunja_sync.config_settings import Config
from obsidian_vikunja_sync.domain.entities.task import (
    ChangeKind,
    LocalTask,
    TaskChangeEvent,
)
from obsidian_vikunja_sync.domain.interfaces.relation_resolver import IRelationResolver
from obsidian_vikunja_sync.domain.interfaces.task_store import ITaskStore
from obsidian_vikunja_sync.domain.interfaces.vikunja_client import IVikunjaClient
from obsidian_vikunja_sync.sync.debounce import KeyedDebouncer
from obsidian_vikunja_sync.sync.pull_poller import PullPoller, PullSummary
from obsidian_vikunja_sync.sync.push_pipeline import PushOutcome, PushPipeline
from obsidian_vikunja_sync.sync.relation_resolver import TwoPassRelationResolver
from obsidian_vikunja_sync.utils.logging import get_logger

logger = get_logger(__name__)


class SyncCoordinator:
    """Owns the debounce table and the poll timer.

    Only notifications whose origin is a local edit reach the push path;
    writes performed by the pull path or by id stamping after a create are
    tagged with a sync origin and dropped here. A burst of edits to one note
    collapses into a single push once the note has been quiet for
    ``push_debounce_seconds``.

    The poll timer fires every ``sync_interval_minutes``; each tick starts a
    pull cycle, and a tick arriving while a cycle still runs is dropped by
    the poller.
    """

    def __init__(
        self,
        config: Config,
        store: ITaskStore,
        client: IVikunjaClient,
        *,
        resolver: IRelationResolver | None = None,
        push_pipeline: PushPipeline | None = None,
        pull_poller: PullPoller | None = None,
    ):
        self.config = config
        self.store = store
        self.client = client
        self.resolver = resolver or TwoPassRelationResolver(store, client)
        self.push_pipeline = push_pipeline or PushPipeline(
            config, store, client, self.resolver
        )
        self.pull_poller = pull_poller or PullPoller(config, store, client, self.resolver)
        self.debouncer: KeyedDebouncer[str, LocalTask | None] = KeyedDebouncer(
            config.push_debounce_seconds, self._push_debounced
        )

        self._explicit: set[str] = set()
        self._unsubscribe: Any = None
        self._poll_handle: asyncio.TimerHandle | None = None
        self._poll_tasks: set[asyncio.Task[PullSummary | None]] = set()
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    # Lifecycle

    def start(self) -> None:
        if self._started:
            return
        self._unsubscribe = self.store.subscribe(self.on_task_change)
        self._started = True
        self.update_sync_interval()
        logger.info(
            "sync_coordinator_started",
            enabled=self.config.vikunja_enabled,
            polling=self.config.polling_enabled,
            debounce_seconds=self.config.push_debounce_seconds,
        )

    async def stop(self) -> None:
        if not self._started:
            return
        self._started = False
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._cancel_poll_timer()

        discarded = self.debouncer.cancel_all()
        self._explicit.clear()
        await self.debouncer.drain()
        if self._poll_tasks:
            await asyncio.gather(*list(self._poll_tasks), return_exceptions=True)
        logger.info("sync_coordinator_stopped", discarded_pushes=discarded)

    # Push side

    def on_task_change(self, event: TaskChangeEvent) -> None:
        """Store listener feeding local edits into the debounce table."""
        if not self.config.vikunja_enabled:
            return
        if event.origin.is_sync:
            logger.debug("change_suppressed", path=event.path, origin=event.origin.value)
            return

        if event.kind is ChangeKind.CHANGED:
            self._explicit.add(event.path)
        self.debouncer.schedule(event.path, event.task)

    async def _push_debounced(self, path: str, task: LocalTask | None) -> PushOutcome:
        explicit = path in self._explicit
        self._explicit.discard(path)

        if task is None:
            task = await self.store.get_task(path)
            if task is None:
                return PushOutcome.SKIPPED
        # File-level modifications only matter for notes already in Vikunja
        if not explicit and not task.is_linked:
            logger.debug("modified_unlinked_ignored", path=path)
            return PushOutcome.SKIPPED

        return await self.push_pipeline.push(path, task)

    async def push_now(self, path: str) -> PushOutcome:
        """Push a note immediately, discarding any pending debounced push."""
        self.debouncer.cancel(path)
        self._explicit.discard(path)
        return await self.push_pipeline.push(path)

    # Pull side

    def update_sync_interval(self, interval_minutes: float | None = None) -> None:
        """Tear down the poll timer and recreate it from the current config."""
        if interval_minutes is not None:
            self.config.sync_interval_minutes = interval_minutes
        self._cancel_poll_timer()

        if not self._started or not self.config.polling_enabled:
            return
        self._schedule_poll()
        logger.info(
            "poll_timer_started",
            interval_minutes=self.config.sync_interval_minutes,
        )

    def set_sync_enabled(self, enabled: bool, two_way: bool | None = None) -> None:
        self.config.vikunja_enabled = enabled
        if two_way is not None:
            self.config.enable_two_way_sync = two_way
        if not enabled:
            self.debouncer.cancel_all()
            self._explicit.clear()
        self.update_sync_interval()

    def _schedule_poll(self) -> None:
        loop = asyncio.get_running_loop()
        self._poll_handle = loop.call_later(
            self.config.sync_interval_seconds, self._on_poll_tick
        )

    def _cancel_poll_timer(self) -> None:
        if self._poll_handle is not None:
            self._poll_handle.cancel()
            self._poll_handle = None

    def _on_poll_tick(self) -> None:
        self._schedule_poll()
        task = asyncio.get_running_loop().create_task(self.pull_poller.run_cycle())
        self._poll_tasks.add(task)
        task.add_done_callback(self._poll_tasks.discard)

    async def pull_now(self) -> PullSummary | None:
        return await self.pull_poller.run_cycle()

    # Introspection

    def stats(self) -> dict[str, Any]:
        return {
            "started": self._started,
            "pending_pushes": sorted(self.debouncer.pending()),
            "poll_timer_active": self._poll_handle is not None,
            "poller_state": self.pull_poller.state.value,
            "last_pull": (
                vars(self.pull_poller.last_summary)
                if self.pull_poller.last_summary
                else None
            ),
        }
