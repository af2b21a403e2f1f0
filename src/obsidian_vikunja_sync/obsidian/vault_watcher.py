"""Polling watcher reporting out-of-band edits to task notes."""

from __future__ import annotations

import asyncio
import contextlib

from obsidian_vikunja_sync.obsidian.vault_store import (
    Fingerprint,
    VaultTaskStore,
    iter_markdown_files,
)
from obsidian_vikunja_sync.utils.logging import get_logger

logger = get_logger(__name__)


class VaultWatcher:
    """Compares markdown file stamps on an interval.

    Files whose (mtime, size) changed since the previous scan are reported
    to the store, which attributes the change and notifies its listeners.
    The first scan only records the baseline.
    """

    def __init__(self, store: VaultTaskStore, interval: float = 1.0):
        self.store = store
        self.interval = interval
        self._snapshot: dict[str, Fingerprint] = {}
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _take_snapshot(self) -> dict[str, Fingerprint]:
        snapshot: dict[str, Fingerprint] = {}
        vault_path = self.store.vault_path
        for md_file in iter_markdown_files(vault_path):
            try:
                stat = md_file.stat()
            except OSError:
                continue
            snapshot[md_file.relative_to(vault_path).as_posix()] = (
                stat.st_mtime_ns,
                stat.st_size,
            )
        return snapshot

    def prime(self) -> None:
        """Record the current state without reporting anything."""
        self._snapshot = self._take_snapshot()

    def scan(self) -> int:
        """Report changes since the previous scan.

        Returns:
            Number of changed, created or removed files
        """
        current = self._take_snapshot()
        changes = 0

        for path, fingerprint in current.items():
            if self._snapshot.get(path) != fingerprint:
                changes += 1
                self.store.handle_file_change(path)

        for path in self._snapshot.keys() - current.keys():
            changes += 1
            self.store.handle_file_removed(path)

        self._snapshot = current
        return changes

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.scan()
            except OSError as e:
                logger.warning("vault_scan_failed", error=str(e))

    def start(self) -> None:
        if self.running:
            return
        self.prime()
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug("vault_watcher_started", interval=self.interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.debug("vault_watcher_stopped")
