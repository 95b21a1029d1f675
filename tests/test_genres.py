"""Tests for genre catalog loading and label resolution."""

from __future__ import annotations

import asyncio

import pytest

from shelfloader.errors import CatalogUnavailable
from shelfloader.models import Genre
from shelfloader.services.genres import GenreCatalog, GenreResolver


def _genre(genre_id: str, name: str, external_id: int | None = None) -> Genre:
    return Genre(id=genre_id, name=name, external_id=external_id)


def test_exact_match_wins_over_external_id() -> None:
    resolver = GenreResolver(
        [_genre("1", "Action & Adventure", 10759), _genre("2", "Action")]
    )

    assert resolver.resolve("action").id == "2"


def test_sci_fi_label_prefers_science_fiction() -> None:
    resolver = GenreResolver([_genre("sf", "Science Fiction", 878), _genre("f", "Fiction")])

    assert resolver.resolve("Sci-Fi").name == "Science Fiction"


def test_substring_candidates_prefer_external_id() -> None:
    resolver = GenreResolver([_genre("f", "Fiction"), _genre("sf", "Science Fiction", 878)])

    assert resolver.resolve("Science Fiction Movies").id == "sf"
    assert resolver.resolve("fict").id == "sf"


def test_longer_name_breaks_ties_between_backed_genres() -> None:
    resolver = GenreResolver(
        [_genre("a", "War", 10752), _genre("b", "War & Politics", 10768)]
    )

    assert resolver.resolve("Politics War & Politics Stories").id == "b"


def test_catalog_order_breaks_remaining_ties() -> None:
    resolver = GenreResolver([_genre("x", "Kids"), _genre("y", "Kids")])

    assert resolver.resolve("kids movies").id == "x"


def test_unmatched_label_returns_none() -> None:
    resolver = GenreResolver([_genre("1", "Drama")])

    assert resolver.resolve("Western") is None
    assert resolver.resolve("   ") is None


@pytest.mark.anyio("asyncio")
async def test_concurrent_loads_share_one_request() -> None:
    calls = 0
    release = asyncio.Event()

    async def fetcher() -> list[Genre]:
        nonlocal calls
        calls += 1
        await release.wait()
        return [_genre("1", "Drama")]

    catalog = GenreCatalog(fetcher)
    waiters = [asyncio.create_task(catalog.load()) for _ in range(5)]
    await asyncio.sleep(0)
    assert catalog.is_pending
    release.set()
    results = await asyncio.gather(*waiters)

    assert calls == 1
    assert all(result == results[0] for result in results)
    assert catalog.is_loaded
    assert await catalog.load() == results[0]
    assert calls == 1


@pytest.mark.anyio("asyncio")
async def test_failed_load_can_be_retried() -> None:
    attempts = 0

    async def fetcher() -> list[Genre]:
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise RuntimeError("boom")
        return [_genre("1", "Drama")]

    catalog = GenreCatalog(fetcher)
    with pytest.raises(CatalogUnavailable):
        await catalog.load()
    assert not catalog.is_loaded
    assert not catalog.is_pending

    genres = await catalog.load()

    assert [genre.name for genre in genres] == ["Drama"]
    assert attempts == 2


@pytest.mark.anyio("asyncio")
async def test_ready_listeners_fire_once_loaded() -> None:
    seen: list[int] = []

    async def fetcher() -> list[Genre]:
        return [_genre("1", "Drama"), _genre("2", "Comedy")]

    catalog = GenreCatalog(fetcher)
    catalog.add_ready_listener(lambda genres: seen.append(len(genres)))
    await catalog.load()
    catalog.add_ready_listener(lambda genres: seen.append(-len(genres)))

    assert seen == [2, -2]


@pytest.mark.anyio("asyncio")
async def test_cancelled_waiter_does_not_abort_shared_request() -> None:
    release = asyncio.Event()

    async def fetcher() -> list[Genre]:
        await release.wait()
        return [_genre("1", "Drama")]

    catalog = GenreCatalog(fetcher)
    impatient = asyncio.create_task(catalog.load())
    patient = asyncio.create_task(catalog.load())
    await asyncio.sleep(0)
    impatient.cancel()
    release.set()

    genres = await patient

    assert genres[0].name == "Drama"
    assert impatient.cancelled()
