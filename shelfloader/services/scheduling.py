"""One-shot delayed tasks keyed by name."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from dataclasses import dataclass
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

DeferredCallback = Callable[[], Awaitable[None]]


@dataclass(slots=True)
class _Deferred:
    callback: DeferredCallback
    timer: asyncio.Task[None]


class DeferredTasks:
    """Runs a callback once after a delay, at most one pending per key.

    A pending entry can be cancelled, or expedited when whatever it was
    waiting on becomes available before the delay expires.
    """

    def __init__(self) -> None:
        self._pending: dict[str, _Deferred] = {}
        self._running: set[asyncio.Task[None]] = set()

    def pending(self, key: str) -> bool:
        return key in self._pending

    def schedule(self, key: str, delay: float, callback: DeferredCallback) -> bool:
        """Run ``callback`` after ``delay`` seconds unless one is already queued."""

        if key in self._pending:
            return False

        async def _timer() -> None:
            await asyncio.sleep(delay)
            entry = self._pending.pop(key, None)
            if entry is not None:
                await self._invoke(key, entry.callback)

        timer = self._track(asyncio.create_task(_timer()))
        self._pending[key] = _Deferred(callback, timer)
        logger.debug("Deferred %s by %.2fs", key, delay)
        return True

    def cancel(self, key: str) -> bool:
        entry = self._pending.pop(key, None)
        if entry is None:
            return False
        entry.timer.cancel()
        return True

    def expedite(self, key: str) -> bool:
        """Cancel the timer for ``key`` and run its callback now."""

        entry = self._pending.pop(key, None)
        if entry is None:
            return False
        entry.timer.cancel()
        self._track(asyncio.create_task(self._invoke(key, entry.callback)))
        return True

    def expedite_matching(self, prefix: str) -> int:
        keys = [key for key in self._pending if key.startswith(prefix)]
        for key in keys:
            self.expedite(key)
        return len(keys)

    async def join(self) -> None:
        """Wait until every scheduled and expedited callback has finished."""

        while self._running:
            await asyncio.gather(*list(self._running), return_exceptions=True)

    async def cancel_all(self) -> None:
        self._pending.clear()
        tasks = list(self._running)
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task
        self._running.clear()

    def _track(self, task: asyncio.Task[None]) -> asyncio.Task[None]:
        self._running.add(task)
        task.add_done_callback(self._running.discard)
        return task

    async def _invoke(self, key: str, callback: DeferredCallback) -> None:
        try:
            await callback()
        except asyncio.CancelledError:
            raise
        except Exception:  # pragma: no cover - background safety net
            logger.exception("Deferred task %s failed", key)
