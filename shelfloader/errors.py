"""Errors raised inside the shelf loading engine.

None of these escape to callers of the browser facade; they end up as a
category's ``last_error`` or as a fallback fetch.
"""

from __future__ import annotations


class ShelfLoaderError(Exception):
    """Base class for recoverable loader failures."""


class CatalogUnavailable(ShelfLoaderError):
    """The genre list could not be loaded."""


class FetchFailed(ShelfLoaderError):
    """A page request errored, timed out, or returned an unusable body."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GenreNotResolved(ShelfLoaderError):
    """A genre shelf label matched no known genre."""

    def __init__(self, label: str):
        super().__init__(f"No genre matches label {label!r}")
