"""Pytest configuration and test helpers."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any

import httpx
import pytest


# Ensure the application package is importable when running tests without an
# editable install.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from shelfloader.config import Settings  # noqa: E402


BASE_URL = "https://api.example.com"


def make_items(prefix: str, count: int, *, start: int = 1) -> list[dict[str, Any]]:
    """Return backend-shaped item documents."""

    return [
        {
            "_id": f"{prefix}-{index}",
            "title": f"{prefix.title()} {index}",
            "releaseDate": "2024-01-01",
            "voteAverage": 7.5,
            "posterPath": f"/{prefix}-{index}.jpg",
            "genres": [],
        }
        for index in range(start, start + count)
    ]


def build_settings(**overrides: Any) -> Settings:
    """Return a settings object with fast timings suitable for tests."""

    base: dict[str, Any] = {
        "CONTENT_API_URL": BASE_URL,
        "BOOTSTRAP_BATCH_DELAYS": "0,0.01,0.02",
        "GENRE_RETRY_DELAY": 0.05,
        "FETCH_TIMEOUT": 2,
    }
    base.update(overrides)
    return Settings(_env_file=None, **base)  # type: ignore[arg-type]


class FakeBackend:
    """In-memory content API served through ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.categories: dict[str, list[dict[str, Any]]] = {}
        self.genre_items: dict[str, list[dict[str, Any]]] = {}
        self.genres: list[dict[str, Any]] = []
        self.requests: list[httpx.Request] = []
        self.failures: dict[tuple[str, int], int] = {}
        self.genre_failures = 0
        self.gates: dict[str, asyncio.Event] = {}
        self.overrides: dict[tuple[str, int], httpx.Response] = {}

    def add_category(self, source: str, total: int) -> None:
        self.categories[source] = make_items(source, total)

    def add_genre(
        self,
        genre_id: str,
        name: str,
        *,
        tmdb_id: int | None = None,
        total: int = 0,
    ) -> None:
        genre: dict[str, Any] = {"_id": genre_id, "name": name}
        if tmdb_id is not None:
            genre["tmdbId"] = tmdb_id
        self.genres.append(genre)
        self.genre_items[genre_id] = make_items(genre_id, total)

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]

    def gate(self, path: str) -> asyncio.Event:
        """Hold requests to ``path`` until the returned event is set."""

        event = asyncio.Event()
        self.gates[path] = event
        return event

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        gate = self.gates.get(path)
        if gate is not None:
            await gate.wait()

        if path == "/genres":
            if self.genre_failures:
                self.genre_failures -= 1
                return httpx.Response(503, json={"message": "unavailable"})
            return httpx.Response(200, json=self.genres)

        params = request.url.params
        page = int(params.get("page", "1"))
        limit = int(params.get("limit", "20"))
        override = self.overrides.pop((path, page), None)
        if override is not None:
            return override
        status = self.failures.pop((path, page), None)
        if status is not None:
            return httpx.Response(status, json={"message": "error"})

        if path.startswith("/categories/"):
            pool = self.categories.get(path.rsplit("/", 1)[-1])
            if pool is None:
                return httpx.Response(404, json={"message": "not found"})
        elif path == "/items":
            pool = self.genre_items.get(params.get("genre", ""), [])
        else:
            return httpx.Response(404, json={"message": "not found"})

        start = (page - 1) * limit
        return httpx.Response(
            200, json={"items": pool[start : start + limit], "total": len(pool)}
        )

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.MockTransport(self.handler), base_url=BASE_URL
        )


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_settings():
    return build_settings
