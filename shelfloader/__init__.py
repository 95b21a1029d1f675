"""Shelf loader: pages trending, popular, top-rated, upcoming and genre rows.

The FastAPI app and the ``ShelfBrowser`` facade are imported lazily so that
importing the engine does not read settings or build the app.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

_LAZY_EXPORTS = {
    "app": "shelfloader.main",
    "create_app": "shelfloader.main",
    "ShelfBrowser": "shelfloader.services.browser",
}

__all__ = sorted(_LAZY_EXPORTS)


def __getattr__(name: str) -> Any:
    module_name = _LAZY_EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module 'shelfloader' has no attribute {name}")
    return getattr(import_module(module_name), name)
