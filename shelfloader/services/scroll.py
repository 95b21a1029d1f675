"""Decides when a horizontally scrolled shelf needs its next page."""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Callable

from ..utils import page_count, scroll_ratio
from .orchestrator import FetchOrchestrator
from .store import CategoryStore

logger = logging.getLogger(__name__)


class ScrollDecision(str, Enum):
    """Outcome of evaluating a scroll event."""

    THROTTLED = "throttled"
    LOADING = "loading"
    NOT_NEAR_END = "not_near_end"
    EXHAUSTED = "exhausted"
    AWAITING_FIRST_PAGE = "awaiting_first_page"
    PAGE_LIMIT = "page_limit"
    TRIGGERED = "triggered"


class ScrollLoadTrigger:
    """Requests the next page when a shelf's viewport nears its end."""

    def __init__(
        self,
        store: CategoryStore,
        orchestrator: FetchOrchestrator,
        *,
        throttle_seconds: float = 0.5,
        threshold: float = 0.8,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._store = store
        self._orchestrator = orchestrator
        self._throttle = throttle_seconds
        self._threshold = threshold
        self._clock = clock
        self._last_evaluated: dict[str, float] = {}
        self._tasks: dict[str, asyncio.Task[bool]] = {}

    def on_scroll(
        self,
        key: str,
        scroll_left: float,
        scroll_width: float,
        client_width: float,
    ) -> ScrollDecision:
        """Evaluate a scroll event and schedule a load when warranted.

        Must be called from within the running event loop.
        """

        now = self._clock()
        last = self._last_evaluated.get(key)
        if last is not None and now - last < self._throttle:
            return ScrollDecision.THROTTLED
        self._last_evaluated[key] = now

        snapshot = self._store.snapshot(key)
        pending = self._tasks.get(key)
        if snapshot.is_loading or (pending is not None and not pending.done()):
            return ScrollDecision.LOADING

        if scroll_ratio(scroll_left, scroll_width, client_width) < self._threshold:
            return ScrollDecision.NOT_NEAR_END

        loaded = len(snapshot.items)
        if loaded >= snapshot.total_count:
            return ScrollDecision.EXHAUSTED
        if loaded < snapshot.page_size:
            return ScrollDecision.AWAITING_FIRST_PAGE
        if snapshot.current_page >= page_count(snapshot.total_count, snapshot.page_size):
            return ScrollDecision.PAGE_LIMIT

        next_page = snapshot.current_page + 1
        logger.debug(
            "Scroll near end of %s (%s/%s items); loading page %s",
            key,
            loaded,
            snapshot.total_count,
            next_page,
        )
        task = asyncio.create_task(
            self._orchestrator.load_page(key, next_page, append=True)
        )
        self._tasks[key] = task
        task.add_done_callback(lambda done, key=key: self._forget(key, done))
        return ScrollDecision.TRIGGERED

    def reset(self, key: str | None = None) -> None:
        """Forget throttle timestamps for ``key``, or for every shelf."""

        if key is None:
            self._last_evaluated.clear()
        else:
            self._last_evaluated.pop(key, None)

    def _forget(self, key: str, task: asyncio.Task[bool]) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]

    async def drain(self) -> None:
        """Wait for loads scheduled by scroll events to finish."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    async def stop(self) -> None:
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
