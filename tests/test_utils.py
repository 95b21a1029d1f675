import pytest

from shelfloader.utils import page_count, scroll_ratio, slugify


def test_slugify_basic():
    assert slugify("Science Fiction!") == "science-fiction"


def test_slugify_splits_camel_case():
    assert slugify("topRated") == "top-rated"


def test_slugify_fallback():
    assert slugify("???") == "shelf"
    assert slugify("", fallback="") == ""


@pytest.mark.parametrize(
    ("total", "size", "expected"),
    [(0, 20, 0), (1, 20, 1), (20, 20, 1), (57, 20, 3), (60, 20, 3), (5, 0, 0)],
)
def test_page_count(total, size, expected):
    assert page_count(total, size) == expected


def test_scroll_ratio_handles_empty_content():
    assert scroll_ratio(0, 0, 500) == 0.0
    assert scroll_ratio(300, 1000, 500) == pytest.approx(0.8)
