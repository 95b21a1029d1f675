"""Issues paged fetches for shelves and merges them into the store."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from ..errors import CatalogUnavailable, FetchFailed, GenreNotResolved
from ..models import Genre, ItemPage
from ..shelves import POPULAR_SOURCE, ShelfDefinition
from .content_api import ContentApiClient
from .genres import GenreCatalog, GenreResolver
from .scheduling import DeferredTasks
from .store import CategoryStore

logger = logging.getLogger(__name__)

GENRE_RETRY_PREFIX = "genre-retry:"


@dataclass(slots=True)
class _FetchResult:
    data: ItemPage
    page: int
    append: bool
    fallback: bool = False
    retry: bool = False


class FetchOrchestrator:
    """Loads one page for one shelf at a time per key.

    The store's loading flag is the only gate: a second ``load_page`` for a
    key that is still in flight returns without issuing a request.
    """

    def __init__(
        self,
        store: CategoryStore,
        api: ContentApiClient,
        catalog: GenreCatalog,
        definitions: Iterable[ShelfDefinition] = (),
        *,
        timeout: float = 15.0,
        genre_retry_delay: float = 1.0,
        deferred: DeferredTasks | None = None,
    ):
        self._store = store
        self._api = api
        self._catalog = catalog
        self._timeout = timeout
        self._genre_retry_delay = genre_retry_delay
        self._deferred = deferred or DeferredTasks()
        self._definitions: dict[str, ShelfDefinition] = {}
        self._resolver: GenreResolver | None = None
        self._retried: set[str] = set()
        for definition in definitions:
            self.register(definition)
        catalog.add_ready_listener(self._on_catalog_ready)

    def register(self, definition: ShelfDefinition) -> None:
        """Make a shelf known to the orchestrator and create its category."""

        self._definitions[definition.key] = definition
        self._store.ensure(definition, self._api.page_size)

    def definition(self, key: str) -> ShelfDefinition:
        try:
            return self._definitions[key]
        except KeyError:
            raise KeyError(f"Unknown shelf {key}") from None

    @property
    def definitions(self) -> tuple[ShelfDefinition, ...]:
        return tuple(self._definitions.values())

    async def load_page(self, key: str, page: int, append: bool) -> bool:
        """Fetch ``page`` for ``key`` and merge it into the store.

        Returns False when the call was a no-op because a load for the key is
        already in flight. Fetch failures are recorded on the category and
        never raised.
        """

        return await self._load(key, page, append)

    async def _load(
        self, key: str, page: int, append: bool, *, genre_retry: bool = False
    ) -> bool:
        definition = self.definition(key)
        if page < 1:
            raise ValueError("Page numbers start at 1")
        was_fallback = self._store.snapshot(key).fallback
        if not self._store.begin_load(key):
            logger.debug("Skipping %s page %s: already loading", key, page)
            return False
        if genre_retry:
            self._retried.add(key)

        try:
            result = await asyncio.wait_for(
                self._fetch(definition, page, append, was_fallback),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Loading %s page %s timed out after %.1fs", key, page, self._timeout)
            self._store.fail_load(
                key,
                FetchFailed(f"Timed out loading page {page} of {definition.title}"),
                page=page,
                append=append,
            )
            return True
        except FetchFailed as exc:
            logger.warning("Loading %s page %s failed: %s", key, page, exc)
            self._store.fail_load(key, exc, page=page, append=append)
            return True
        except asyncio.CancelledError:
            self._store.fail_load(key, "Load cancelled", page=page, append=append)
            raise
        except Exception as exc:
            logger.exception("Unexpected error loading %s page %s", key, page)
            self._store.fail_load(key, exc, page=page, append=append)
            return True

        snapshot = self._store.commit_page(
            key,
            result.data.items,
            result.data.total,
            result.append,
            page=result.page,
            fallback=result.fallback,
        )
        logger.debug(
            "Committed %s page %s: %s/%s items",
            key,
            result.page,
            len(snapshot.items),
            snapshot.total_count,
        )
        if result.retry:
            self._schedule_genre_retry(key)
        return True

    async def stop(self) -> None:
        await self._deferred.cancel_all()

    async def _fetch(
        self,
        definition: ShelfDefinition,
        page: int,
        append: bool,
        was_fallback: bool,
    ) -> _FetchResult:
        if not definition.is_genre:
            data = await self._api.fetch_category_page(definition.source, page)
            return _FetchResult(data, page, append)

        try:
            genres = await self._catalog.load()
        except CatalogUnavailable as exc:
            logger.warning(
                "Genre catalog unavailable for %s (%s); showing popular content",
                definition.key,
                exc,
            )
            data = await self._api.fetch_category_page(POPULAR_SOURCE, page)
            return _FetchResult(data, page, append, fallback=True, retry=True)

        genre = self._resolve(definition.source, genres)
        if genre is None:
            logger.warning(
                "%s for shelf %s; showing popular content",
                GenreNotResolved(definition.source),
                definition.key,
            )
            data = await self._api.fetch_category_page(POPULAR_SOURCE, page)
            return _FetchResult(data, page, append, fallback=True)

        if was_fallback and append:
            # The shelf holds popular items; start over with real genre data.
            page, append = 1, False
        data = await self._api.fetch_genre_page(genre.id, page)
        return _FetchResult(data, page, append)

    def _resolve(self, label: str, genres: Sequence[Genre]) -> Genre | None:
        if self._resolver is None:
            self._resolver = GenreResolver(genres)
        return self._resolver.resolve(label)

    def _schedule_genre_retry(self, key: str) -> None:
        if key in self._retried:
            logger.info("Shelf %s stays on popular content; retry already used", key)
            return

        async def _retry() -> None:
            if not self._store.snapshot(key).fallback:
                return
            logger.info("Retrying genre shelf %s", key)
            if await self._load(key, 1, append=False, genre_retry=True):
                return
            # Shelf was busy; the retry only counts once it issues a load.
            self._deferred.schedule(
                GENRE_RETRY_PREFIX + key, self._genre_retry_delay, _retry
            )

        self._deferred.schedule(GENRE_RETRY_PREFIX + key, self._genre_retry_delay, _retry)

    def _on_catalog_ready(self, genres: Sequence[Genre]) -> None:
        self._resolver = GenreResolver(genres)
        expedited = self._deferred.expedite_matching(GENRE_RETRY_PREFIX)
        if expedited:
            logger.info("Genre catalog ready; retrying %s shelves now", expedited)
