"""Staggered first-page population of every shelf."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Sequence

from ..errors import CatalogUnavailable
from ..models import Genre
from ..shelves import ShelfDefinition, partition_batches
from .genres import GenreCatalog
from .orchestrator import FetchOrchestrator
from .scheduling import DeferredTasks

logger = logging.getLogger(__name__)

GENRE_BOOTSTRAP_KEY = "bootstrap:genres"


class StaggeredBootstrapLoader:
    """Schedules page-one loads in time-delayed batches.

    Fixed shelves go out immediately. Genre shelves wait for the genre
    catalog; when it is still pending, they are deferred once by
    ``genre_retry_delay`` seconds, or released as soon as the catalog is
    ready, whichever comes first.
    """

    def __init__(
        self,
        orchestrator: FetchOrchestrator,
        catalog: GenreCatalog,
        *,
        batch_delays: Sequence[float] = (0.0, 0.5, 1.0),
        batch_size: int = 2,
        genre_retry_delay: float = 1.0,
        deferred: DeferredTasks | None = None,
    ):
        self._orchestrator = orchestrator
        self._catalog = catalog
        self._batch_delays = tuple(batch_delays)
        self._batch_size = batch_size
        self._genre_retry_delay = genre_retry_delay
        self._deferred = deferred or DeferredTasks()
        self._tasks: set[asyncio.Task[None]] = set()
        self._genre_shelves: tuple[ShelfDefinition, ...] = ()
        self._genres_scheduled = False
        self._started = False

    @property
    def genres_scheduled(self) -> bool:
        return self._genres_scheduled

    def start(self, definitions: Iterable[ShelfDefinition]) -> None:
        """Schedule first-page loads for ``definitions``. Runs once."""

        if self._started:
            logger.debug("Bootstrap already started; ignoring")
            return
        self._started = True

        definitions = tuple(definitions)
        for definition in definitions:
            self._orchestrator.register(definition)
        fixed = tuple(d for d in definitions if not d.is_genre)
        self._genre_shelves = tuple(d for d in definitions if d.is_genre)

        if fixed:
            self._spawn(self._run_batch(0.0, fixed))
        if not self._genre_shelves:
            return

        if self._catalog.is_loaded:
            self._schedule_genre_batches()
            return

        logger.info(
            "Genre catalog not ready; deferring %s genre shelves by %.1fs",
            len(self._genre_shelves),
            self._genre_retry_delay,
        )
        self._deferred.schedule(
            GENRE_BOOTSTRAP_KEY, self._genre_retry_delay, self._release_genre_shelves
        )
        self._catalog.add_ready_listener(self._on_catalog_ready)
        if not self._catalog.is_pending:
            self._spawn(self._prime_catalog())

    async def wait(self) -> None:
        """Wait until every scheduled batch, including deferred ones, has run."""

        while True:
            await self._deferred.join()
            if not self._tasks:
                break
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def stop(self) -> None:
        self._deferred.cancel(GENRE_BOOTSTRAP_KEY)
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    def _on_catalog_ready(self, _: Sequence[Genre]) -> None:
        if self._deferred.expedite(GENRE_BOOTSTRAP_KEY):
            logger.info("Genre catalog ready; releasing deferred genre shelves")

    async def _release_genre_shelves(self) -> None:
        if not self._catalog.is_loaded:
            logger.warning(
                "Genre catalog still unavailable; loading genre shelves with fallback"
            )
        self._schedule_genre_batches()

    def _schedule_genre_batches(self) -> None:
        if self._genres_scheduled:
            return
        self._genres_scheduled = True
        for delay, batch in partition_batches(
            self._genre_shelves, self._batch_delays, self._batch_size
        ):
            self._spawn(self._run_batch(delay, batch))

    async def _prime_catalog(self) -> None:
        try:
            await self._catalog.load()
        except CatalogUnavailable:
            # The deferred release still fires and shelves fall back.
            pass

    async def _run_batch(self, delay: float, batch: Sequence[ShelfDefinition]) -> None:
        if delay > 0:
            await asyncio.sleep(delay)
        logger.debug("Bootstrapping %s", ", ".join(d.key for d in batch))
        await asyncio.gather(
            *(
                self._orchestrator.load_page(definition.key, 1, append=False)
                for definition in batch
            )
        )

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
