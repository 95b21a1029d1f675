"""Client for the content backend's JSON endpoints."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from ..config import Settings
from ..errors import CatalogUnavailable, FetchFailed
from ..models import Genre, ItemPage

logger = logging.getLogger(__name__)

_GENRE_LIST = TypeAdapter(list[Genre])


class ContentApiClient:
    """Thin wrapper around the category, genre, and item listing endpoints."""

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        genres_client: httpx.AsyncClient | None = None,
    ):
        self._settings = settings
        self._client = http_client
        self._genres_client = genres_client or http_client

    @property
    def page_size(self) -> int:
        return self._settings.page_size

    async def fetch_genres(self) -> list[Genre]:
        """Return the full genre taxonomy."""

        try:
            response = await self._genres_client.get("/genres")
        except httpx.HTTPError as exc:
            raise CatalogUnavailable(f"Genre request failed: {exc}") from exc
        if response.status_code >= 400:
            raise CatalogUnavailable(
                f"Genre request returned HTTP {response.status_code}"
            )
        try:
            data = response.json()
            return _GENRE_LIST.validate_python(data)
        except (ValueError, ValidationError) as exc:
            raise CatalogUnavailable("Genre response was malformed") from exc

    async def fetch_category_page(self, source: str, page: int) -> ItemPage:
        """Fetch one page of a fixed category such as ``trending``."""

        return await self._fetch_page(f"/categories/{source}", {"page": page})

    async def fetch_genre_page(self, genre_id: str, page: int) -> ItemPage:
        """Fetch one page of items filtered by genre."""

        return await self._fetch_page("/items", {"genre": genre_id, "page": page})

    async def _fetch_page(self, path: str, params: dict[str, Any]) -> ItemPage:
        params = {**params, "limit": self._settings.page_size}
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as exc:
            logger.warning("Request to %s failed: %s", path, exc)
            raise FetchFailed(f"{exc.__class__.__name__} while fetching {path}") from exc

        if response.status_code >= 400:
            logger.warning(
                "Request to %s returned %s: %s",
                path,
                response.status_code,
                response.text[:200],
            )
            raise FetchFailed(
                f"{path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            logger.warning("Unexpected non-JSON response from %s", path)
            raise FetchFailed(f"{path} returned a non-JSON body") from exc
        if not isinstance(data, dict):
            raise FetchFailed(f"{path} returned an unexpected payload")
        try:
            return ItemPage.model_validate(data)
        except ValidationError as exc:
            logger.warning("Malformed page payload from %s: %s", path, exc.errors()[:3])
            raise FetchFailed(f"{path} returned a malformed page") from exc
