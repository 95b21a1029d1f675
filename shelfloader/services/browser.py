"""Screen-level controller tying the loader components together."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import Callable

from ..config import Settings
from ..errors import CatalogUnavailable
from ..shelves import ShelfDefinition
from .bootstrap import StaggeredBootstrapLoader
from .content_api import ContentApiClient
from .genres import GenreCatalog
from .orchestrator import FetchOrchestrator
from .scheduling import DeferredTasks
from .scroll import ScrollDecision, ScrollLoadTrigger
from .store import CategorySnapshot, CategoryStore

logger = logging.getLogger(__name__)


class ShelfBrowser:
    """Owns the shelves of one browsing screen for the life of a session."""

    def __init__(
        self,
        settings: Settings,
        api: ContentApiClient,
        *,
        definitions: tuple[ShelfDefinition, ...] | None = None,
        clock: Callable[[], float] | None = None,
    ):
        self._settings = settings
        self._definitions = definitions or settings.shelf_definitions
        self._definition_map = {d.key: d for d in self._definitions}
        self._deferred = DeferredTasks()
        self.store = CategoryStore(settings.page_size)
        self.catalog = GenreCatalog(api.fetch_genres)
        self.orchestrator = FetchOrchestrator(
            self.store,
            api,
            self.catalog,
            timeout=settings.fetch_timeout_seconds,
            genre_retry_delay=settings.genre_retry_delay,
            deferred=self._deferred,
        )
        scroll_kwargs = {} if clock is None else {"clock": clock}
        self.scroll_trigger = ScrollLoadTrigger(
            self.store,
            self.orchestrator,
            throttle_seconds=settings.scroll_throttle_seconds,
            threshold=settings.scroll_threshold,
            **scroll_kwargs,
        )
        self.bootstrap = StaggeredBootstrapLoader(
            self.orchestrator,
            self.catalog,
            batch_delays=settings.bootstrap_batch_delays,
            batch_size=settings.bootstrap_batch_size,
            genre_retry_delay=settings.genre_retry_delay,
            deferred=self._deferred,
        )
        self._catalog_task: asyncio.Task[None] | None = None

    @property
    def definitions(self) -> tuple[ShelfDefinition, ...]:
        return self._definitions

    async def start(self) -> None:
        """Kick off the genre catalog and the staggered bootstrap."""

        if self._catalog_task is None:
            self._catalog_task = asyncio.create_task(self._load_catalog())
            # Let the catalog request go out before the bootstrap checks on it.
            await asyncio.sleep(0)
        self.bootstrap.start(self._definitions)

    async def wait_until_idle(self) -> None:
        """Wait for bootstrap, retries, and scroll-triggered loads to settle."""

        await self.bootstrap.wait()
        await self.scroll_trigger.drain()

    async def stop(self) -> None:
        """Cancel outstanding work and drop every shelf."""

        await self.bootstrap.stop()
        await self.scroll_trigger.stop()
        await self.orchestrator.stop()
        if self._catalog_task is not None:
            self._catalog_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._catalog_task
            self._catalog_task = None
        await self.catalog.close()
        self.store.clear()

    def snapshot(self, key: str) -> CategorySnapshot:
        self._definition(key)
        return self.store.snapshot(key)

    def snapshots(self) -> list[CategorySnapshot]:
        return [
            self.store.snapshot(definition.key)
            for definition in self._definitions
            if definition.key in self.store
        ]

    async def open_shelf(self, key: str) -> CategorySnapshot:
        """Ensure a shelf exists and has its first page, as on navigation."""

        definition = self._definition(key)
        if key not in self.store:
            self.orchestrator.register(definition)
        snapshot = self.store.snapshot(key)
        if not snapshot.items and not snapshot.is_loading:
            await self.orchestrator.load_page(key, 1, append=False)
        return self.store.snapshot(key)

    def scroll(
        self, key: str, scroll_left: float, scroll_width: float, client_width: float
    ) -> ScrollDecision:
        self._definition(key)
        if key not in self.store:
            self.orchestrator.register(self._definition_map[key])
        return self.scroll_trigger.on_scroll(key, scroll_left, scroll_width, client_width)

    async def go_to_page(self, key: str, page: int) -> CategorySnapshot:
        """Replace a shelf's items with ``page``, as the Next/Previous buttons do."""

        definition = self._definition(key)
        if key not in self.store:
            self.orchestrator.register(definition)
        snapshot = self.store.snapshot(key)
        if page < 1:
            raise ValueError("Page numbers start at 1")
        if snapshot.total_count and page > snapshot.total_pages:
            raise ValueError(
                f"Page {page} is out of range for {key} ({snapshot.total_pages} pages)"
            )
        await self.orchestrator.load_page(key, page, append=False)
        return self.store.snapshot(key)

    async def next_page(self, key: str) -> CategorySnapshot:
        return await self.go_to_page(key, self.snapshot(key).current_page + 1)

    async def previous_page(self, key: str) -> CategorySnapshot:
        return await self.go_to_page(key, self.snapshot(key).current_page - 1)

    async def retry(self, key: str) -> CategorySnapshot:
        """Re-issue the load that last failed for ``key``.

        Without a recorded failure an empty shelf loads page 1 and a populated
        one appends the next page.
        """

        snapshot = self.snapshot(key)
        if snapshot.is_loading:
            return snapshot
        if snapshot.failed_page is not None:
            await self.orchestrator.load_page(
                key, snapshot.failed_page, append=snapshot.failed_append
            )
        elif not snapshot.items:
            await self.orchestrator.load_page(key, 1, append=False)
        elif snapshot.has_more:
            await self.orchestrator.load_page(key, snapshot.current_page + 1, append=True)
        return self.store.snapshot(key)

    async def _load_catalog(self) -> None:
        try:
            await self.catalog.load()
        except CatalogUnavailable:
            logger.warning("Starting without a genre catalog; genre shelves will fall back")

    def _definition(self, key: str) -> ShelfDefinition:
        try:
            return self._definition_map[key]
        except KeyError:
            raise KeyError(f"Unknown shelf {key}") from None
