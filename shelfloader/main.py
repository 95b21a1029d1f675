"""FastAPI surface exposing shelf state to the browsing UI."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import AliasChoices, BaseModel, Field

from .config import settings
from .services.browser import ShelfBrowser
from .services.content_api import ContentApiClient

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app: FastAPI


class ScrollEvent(BaseModel):
    """Scroll geometry reported by a shelf element."""

    scroll_left: float = Field(
        ge=0, validation_alias=AliasChoices("scrollLeft", "scroll_left")
    )
    scroll_width: float = Field(
        ge=0, validation_alias=AliasChoices("scrollWidth", "scroll_width")
    )
    client_width: float = Field(
        ge=0, validation_alias=AliasChoices("clientWidth", "client_width")
    )


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    content_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=str(settings.content_api_url),
            timeout=httpx.Timeout(20.0, connect=10.0),
        )
    )
    genres_client = None
    if settings.genres_api_url is not None:
        genres_client = await exit_stack.enter_async_context(
            httpx.AsyncClient(
                base_url=str(settings.genres_api_url),
                timeout=httpx.Timeout(15.0, connect=5.0),
            )
        )

    api = ContentApiClient(settings, content_client, genres_client)
    browser = ShelfBrowser(settings, api)
    fastapi_app.state.shelf_browser = browser
    await browser.start()
    logger.info(
        "Serving %s %s shelves from %s",
        len(browser.definitions),
        settings.media_kind,
        settings.content_api_url,
    )

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await browser.stop()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Incremental shelf loading for media browsing screens",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_shelf_browser(fastapi_app: FastAPI) -> ShelfBrowser:
    browser = getattr(fastapi_app.state, "shelf_browser", None)
    if not isinstance(browser, ShelfBrowser):
        raise RuntimeError("Shelf browser not initialised")
    return browser


def register_routes(fastapi_app: FastAPI) -> None:
    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/shelves")
    async def list_shelves() -> list[dict[str, Any]]:
        browser = get_shelf_browser(fastapi_app)
        return [snapshot.to_payload() for snapshot in browser.snapshots()]

    @fastapi_app.get("/shelves/{key}")
    async def shelf_detail(key: str) -> dict[str, Any]:
        browser = get_shelf_browser(fastapi_app)
        try:
            return browser.snapshot(key).to_payload()
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    @fastapi_app.post("/shelves/{key}/open")
    async def open_shelf(key: str) -> dict[str, Any]:
        browser = get_shelf_browser(fastapi_app)
        try:
            snapshot = await browser.open_shelf(key)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return snapshot.to_payload()

    @fastapi_app.post("/shelves/{key}/scroll")
    async def scroll_shelf(key: str, event: ScrollEvent) -> dict[str, str]:
        browser = get_shelf_browser(fastapi_app)
        try:
            decision = browser.scroll(
                key, event.scroll_left, event.scroll_width, event.client_width
            )
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return {"decision": decision.value}

    @fastapi_app.post("/shelves/{key}/page/{page}")
    async def jump_to_page(key: str, page: int) -> dict[str, Any]:
        browser = get_shelf_browser(fastapi_app)
        try:
            snapshot = await browser.go_to_page(key, page)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return snapshot.to_payload()

    @fastapi_app.post("/shelves/{key}/retry")
    async def retry_shelf(key: str) -> dict[str, Any]:
        browser = get_shelf_browser(fastapi_app)
        try:
            snapshot = await browser.retry(key)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return snapshot.to_payload()


app = create_app()
