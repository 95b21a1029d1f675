"""Genre catalog loading and label resolution."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Sequence

from ..errors import CatalogUnavailable
from ..models import Genre

logger = logging.getLogger(__name__)

ReadyListener = Callable[[Sequence[Genre]], None]

# Short labels used by shelves and URLs that never substring-match the
# backend's long genre names.
GENRE_ALIASES: dict[str, str] = {
    "sci-fi": "science fiction",
    "scifi": "science fiction",
    "sf": "science fiction",
    "rom-com": "romance",
    "romcom": "romance",
    "doc": "documentary",
    "docs": "documentary",
}


class GenreCatalog:
    """Loads the genre list once and shares it for the session."""

    def __init__(self, fetcher: Callable[[], Awaitable[list[Genre]]]):
        self._fetcher = fetcher
        self._genres: tuple[Genre, ...] | None = None
        self._task: asyncio.Task[tuple[Genre, ...]] | None = None
        self._listeners: list[ReadyListener] = []

    @property
    def genres(self) -> tuple[Genre, ...]:
        return self._genres or ()

    @property
    def is_loaded(self) -> bool:
        return self._genres is not None

    @property
    def is_pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def add_ready_listener(self, listener: ReadyListener) -> None:
        """Register a callback invoked once the genre list is available."""

        if self._genres is not None:
            listener(self._genres)
            return
        self._listeners.append(listener)

    async def load(self) -> tuple[Genre, ...]:
        """Return the genre list, fetching it on first use.

        Concurrent callers await the same request. A failed load raises
        :class:`CatalogUnavailable` and leaves the catalog ready for another
        attempt.
        """

        if self._genres is not None:
            return self._genres
        if self._task is None:
            self._task = asyncio.create_task(self._fetch())
            self._task.add_done_callback(self._on_fetch_done)
        # Shield so a cancelled waiter does not abort the shared request.
        return await asyncio.shield(self._task)

    async def _fetch(self) -> tuple[Genre, ...]:
        try:
            genres = await self._fetcher()
        except CatalogUnavailable:
            raise
        except Exception as exc:
            raise CatalogUnavailable(str(exc) or exc.__class__.__name__) from exc
        return tuple(genres)

    def _on_fetch_done(self, task: asyncio.Task[tuple[Genre, ...]]) -> None:
        self._task = None
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Genre catalog unavailable: %s", exc)
            return
        self._genres = task.result()
        logger.info("Loaded %s genres", len(self._genres))
        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            try:
                listener(self._genres)
            except Exception:  # pragma: no cover - listener safety net
                logger.exception("Genre ready listener failed")

    async def close(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except (asyncio.CancelledError, CatalogUnavailable):
                pass
        self._listeners.clear()


class GenreResolver:
    """Maps a human category label to the best matching genre."""

    def __init__(self, genres: Sequence[Genre], aliases: dict[str, str] | None = None):
        self._genres = tuple(genres)
        self._aliases = GENRE_ALIASES if aliases is None else aliases

    def resolve(self, label: str) -> Genre | None:
        needle = (label or "").strip().casefold()
        if not needle:
            return None

        for genre in self._genres:
            if genre.name.casefold() == needle:
                return genre

        alias = self._aliases.get(needle)
        if alias:
            for genre in self._genres:
                if genre.name.casefold() == alias:
                    return genre

        candidates = [
            (index, genre)
            for index, genre in enumerate(self._genres)
            if self._overlaps(needle, genre.name.casefold())
        ]
        if not candidates:
            return None

        # Genres carrying an external id are backed by real content; after
        # that the more specific (longer) name wins, then catalog order.
        _, best = min(
            candidates,
            key=lambda pair: (
                pair[1].external_id is None,
                -len(pair[1].name),
                pair[0],
            ),
        )
        return best

    @staticmethod
    def _overlaps(needle: str, name: str) -> bool:
        if not name:
            return False
        return needle in name or name in needle
