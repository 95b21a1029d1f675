"""Utility helpers for the shelf loader."""

from __future__ import annotations

import math
import re
import unicodedata


CAMEL_BOUNDARY_RE = re.compile(r"([a-z0-9])([A-Z])")


def slugify(value: str, *, fallback: str = "shelf") -> str:
    """Return a URL-friendly slug, splitting camelCase words."""

    value = unicodedata.normalize("NFKD", value)
    value = value.encode("ascii", "ignore").decode("ascii")
    value = CAMEL_BOUNDARY_RE.sub(r"\1-\2", value)
    value = re.sub(r"[^a-zA-Z0-9]+", "-", value)
    value = value.strip("-")
    value = re.sub(r"-+", "-", value)
    return value.lower() or fallback


def page_count(total: int, page_size: int) -> int:
    """Return how many pages of ``page_size`` cover ``total`` items."""

    if total <= 0 or page_size <= 0:
        return 0
    return math.ceil(total / page_size)


def scroll_ratio(scroll_left: float, scroll_width: float, client_width: float) -> float:
    """Return how far the viewport's trailing edge sits along the content."""

    if scroll_width <= 0:
        return 0.0
    return (scroll_left + client_width) / scroll_width
