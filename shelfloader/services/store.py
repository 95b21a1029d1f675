"""Per-category pagination state."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from ..models import ContentItem
from ..shelves import ShelfDefinition
from ..utils import page_count

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


@dataclass(slots=True)
class Category:
    """Mutable pagination record for one shelf. Only the store touches it."""

    key: str
    display_name: str
    page_size: int = DEFAULT_PAGE_SIZE
    current_page: int = 1
    total_count: int = 0
    items: list[ContentItem] = field(default_factory=list)
    item_ids: set[str] = field(default_factory=set)
    is_loading: bool = False
    last_error: str | None = None
    error_status: int | None = None
    failed_page: int | None = None
    failed_append: bool = False
    fallback: bool = False


@dataclass(frozen=True, slots=True)
class CategorySnapshot:
    """Immutable view of a category for rendering."""

    key: str
    display_name: str
    page_size: int
    current_page: int
    total_count: int
    items: tuple[ContentItem, ...]
    is_loading: bool
    last_error: str | None
    error_status: int | None
    failed_page: int | None
    failed_append: bool
    fallback: bool

    @property
    def total_pages(self) -> int:
        return page_count(self.total_count, self.page_size)

    @property
    def has_more(self) -> bool:
        return len(self.items) < self.total_count

    def to_payload(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "displayName": self.display_name,
            "pageSize": self.page_size,
            "currentPage": self.current_page,
            "totalCount": self.total_count,
            "totalPages": self.total_pages,
            "isLoading": self.is_loading,
            "lastError": self.last_error,
            "errorStatus": self.error_status,
            "failedPage": self.failed_page,
            "fallback": self.fallback,
            "items": [item.to_payload() for item in self.items],
        }


class CategoryStore:
    """Keyed table of category records.

    ``begin_load``, ``commit_page`` and ``fail_load`` are the only mutations;
    they run synchronously on the event loop so each check-and-set is atomic.
    """

    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE):
        self._page_size = page_size
        self._categories: dict[str, Category] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._categories

    def __len__(self) -> int:
        return len(self._categories)

    def ensure(
        self, definition: ShelfDefinition, page_size: int | None = None
    ) -> CategorySnapshot:
        """Create the category for ``definition`` if it does not exist yet."""

        if definition.key not in self._categories:
            self._categories[definition.key] = Category(
                key=definition.key,
                display_name=definition.title,
                page_size=page_size or self._page_size,
            )
            logger.debug("Created category %s", definition.key)
        return self.snapshot(definition.key)

    def begin_load(self, key: str) -> bool:
        """Mark ``key`` as loading; False if a load is already in flight."""

        category = self._get(key)
        if category.is_loading:
            return False
        category.is_loading = True
        return True

    def commit_page(
        self,
        key: str,
        items: Iterable[ContentItem],
        total: int,
        append: bool,
        *,
        page: int,
        fallback: bool = False,
    ) -> CategorySnapshot:
        """Merge a fetched page into the category.

        Appends skip ids the category already holds; a non-append commit
        replaces the items wholesale and may move the page backwards.
        """

        if page < 1:
            raise ValueError("Page numbers start at 1")
        if total < 0:
            raise ValueError("Total count cannot be negative")

        category = self._get(key)
        if append:
            merged = list(category.items)
            seen = set(category.item_ids)
            next_page = max(category.current_page, page)
        else:
            merged = []
            seen = set()
            next_page = page

        skipped = 0
        for item in items:
            if item.id in seen:
                skipped += 1
                continue
            seen.add(item.id)
            merged.append(item)
        if skipped:
            logger.debug("Dropped %s duplicate items from %s page %s", skipped, key, page)

        if len(merged) > total:
            logger.warning(
                "Category %s received %s items but backend reports %s; truncating",
                key,
                len(merged),
                total,
            )
            merged = merged[:total]
            seen = {item.id for item in merged}

        category.items = merged
        category.item_ids = seen
        category.total_count = total
        category.current_page = next_page
        category.is_loading = False
        category.last_error = None
        category.error_status = None
        category.failed_page = None
        category.failed_append = False
        category.fallback = fallback
        return self.snapshot(key)

    def fail_load(
        self,
        key: str,
        error: BaseException | str,
        *,
        page: int | None = None,
        append: bool = False,
    ) -> CategorySnapshot:
        """Record a failed load; items and page are left as they were.

        ``page`` and ``append`` describe the request that failed so it can be
        replayed later.
        """

        category = self._get(key)
        category.is_loading = False
        category.last_error = str(error) or error.__class__.__name__
        category.error_status = getattr(error, "status_code", None)
        category.failed_page = page
        category.failed_append = append if page is not None else False
        return self.snapshot(key)

    def snapshot(self, key: str) -> CategorySnapshot:
        category = self._get(key)
        return CategorySnapshot(
            key=category.key,
            display_name=category.display_name,
            page_size=category.page_size,
            current_page=category.current_page,
            total_count=category.total_count,
            items=tuple(category.items),
            is_loading=category.is_loading,
            last_error=category.last_error,
            error_status=category.error_status,
            failed_page=category.failed_page,
            failed_append=category.failed_append,
            fallback=category.fallback,
        )

    def snapshots(self) -> list[CategorySnapshot]:
        return [self.snapshot(key) for key in self._categories]

    def clear(self) -> None:
        self._categories.clear()

    def _get(self, key: str) -> Category:
        try:
            return self._categories[key]
        except KeyError:
            raise KeyError(f"Unknown category {key}") from None
