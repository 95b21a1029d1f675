"""Serve the shelf API with uvicorn: ``python -m shelfloader`` or ``shelfloader``."""

from __future__ import annotations

import logging

import uvicorn

from .config import settings

logger = logging.getLogger(__name__)


def main() -> None:
    """Serve the configured media kind's shelves, reloading in development."""

    logging.basicConfig(level=logging.INFO)
    logger.info(
        "Starting %s for %s shelves backed by %s",
        settings.app_name,
        settings.media_kind,
        settings.content_api_url,
    )
    uvicorn.run(
        "shelfloader.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )


if __name__ == "__main__":  # pragma: no cover - runtime entrypoint
    main()
