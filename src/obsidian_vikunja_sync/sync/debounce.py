"""Keyed debouncing on the asyncio event loop."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from obsidian_vikunja_sync.utils.logging import get_logger

logger = get_logger(__name__)

K = TypeVar("K")
V = TypeVar("V")


class KeyedDebouncer(Generic[K, V]):
    """Collapses bursts of calls per key into one delayed callback.

    ``schedule(key, value)`` cancels the key's pending timer, if any, and
    starts a new one carrying the latest value. When a timer expires the
    callback runs with that value as an asyncio task. Timers of other keys
    are never affected. A cancelled timer is discarded, never run early.
    """

    def __init__(self, delay: float, callback: Callable[[K, V], Awaitable[object]]):
        self.delay = delay
        self.callback = callback
        self._timers: dict[K, asyncio.TimerHandle] = {}
        self._running: set[asyncio.Task[object]] = set()

    def schedule(self, key: K, value: V) -> None:
        loop = asyncio.get_running_loop()
        previous = self._timers.pop(key, None)
        if previous is not None:
            previous.cancel()
            logger.debug("debounce_restarted", key=str(key))
        self._timers[key] = loop.call_later(self.delay, self._fire, key, value)

    def _fire(self, key: K, value: V) -> None:
        self._timers.pop(key, None)
        task = asyncio.get_running_loop().create_task(self._run(key, value))
        self._running.add(task)
        task.add_done_callback(self._running.discard)

    async def _run(self, key: K, value: V) -> None:
        try:
            await self.callback(key, value)
        except Exception as e:
            logger.exception("debounced_callback_failed", key=str(key), error=str(e))

    def cancel(self, key: K) -> bool:
        handle = self._timers.pop(key, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def cancel_all(self) -> int:
        count = len(self._timers)
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        return count

    def pending(self) -> list[K]:
        return list(self._timers)

    async def drain(self) -> None:
        """Wait for callbacks that already started."""
        while self._running:
            await asyncio.gather(*list(self._running), return_exceptions=True)
