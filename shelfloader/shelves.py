"""Shelf definitions for the browsing screens."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Literal, Sequence


ContentType = Literal["movie", "series"]
ShelfKind = Literal["fixed", "genre"]

POPULAR_SOURCE = "popular"


@dataclass(frozen=True)
class ShelfDefinition:
    """Describes a horizontally scrolling row shown on a browsing screen.

    ``source`` is the fixed endpoint key for fixed shelves and the human genre
    label for genre-derived shelves.
    """

    key: str
    title: str
    kind: ShelfKind
    source: str

    @property
    def is_genre(self) -> bool:
        return self.kind == "genre"


def _fixed(key: str, title: str, source: str) -> ShelfDefinition:
    return ShelfDefinition(key=key, title=title, kind="fixed", source=source)


def _genre(key: str, label: str) -> ShelfDefinition:
    return ShelfDefinition(key=key, title=label, kind="genre", source=label)


GENRE_SHELVES: tuple[ShelfDefinition, ...] = (
    _genre("action", "Action"),
    _genre("comedy", "Comedy"),
    _genre("drama", "Drama"),
    _genre("horror", "Horror"),
    _genre("romance", "Romance"),
    _genre("sci-fi", "Science Fiction"),
    _genre("thriller", "Thriller"),
)


MOVIE_SHELVES: tuple[ShelfDefinition, ...] = (
    _fixed("trending", "Trending Now", "trending"),
    _fixed("popular", "Popular Movies", POPULAR_SOURCE),
    _fixed("top-rated", "Top Rated", "topRated"),
    _fixed("upcoming", "Coming Soon", "upcoming"),
    *GENRE_SHELVES,
)


SERIES_SHELVES: tuple[ShelfDefinition, ...] = (
    _fixed("trending", "Trending Shows", "trending"),
    _fixed("popular", "Popular Shows", POPULAR_SOURCE),
    _fixed("top-rated", "Top Rated Shows", "topRated"),
    *GENRE_SHELVES,
)


def shelves_for(content_type: ContentType) -> tuple[ShelfDefinition, ...]:
    """Return the shelf table for a media kind."""

    return MOVIE_SHELVES if content_type == "movie" else SERIES_SHELVES


def partition_batches(
    definitions: Iterable[ShelfDefinition],
    delays: Sequence[float],
    batch_size: int,
) -> list[tuple[float, tuple[ShelfDefinition, ...]]]:
    """Split shelves into time-delayed batches.

    Each delay receives ``batch_size`` shelves in order; the final delay takes
    whatever remains. Empty batches are dropped.
    """

    pending = list(definitions)
    if not pending:
        return []
    if not delays:
        return [(0.0, tuple(pending))]

    batches: list[tuple[float, tuple[ShelfDefinition, ...]]] = []
    for index, delay in enumerate(delays):
        if index == len(delays) - 1:
            chunk, pending = pending, []
        else:
            chunk, pending = pending[:batch_size], pending[batch_size:]
        if chunk:
            batches.append((float(delay), tuple(chunk)))
        if not pending:
            break
    return batches
