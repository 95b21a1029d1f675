"""Configuration settings behaviour tests."""

from __future__ import annotations

import pytest

from shelfloader.config import DEFAULT_BATCH_DELAYS, Settings


def test_defaults_match_browsing_screen_timings() -> None:
    settings = Settings(_env_file=None)

    assert settings.page_size == 20
    assert settings.scroll_throttle_ms == 500
    assert settings.scroll_throttle_seconds == pytest.approx(0.5)
    assert settings.scroll_threshold == pytest.approx(0.8)
    assert settings.bootstrap_batch_delays == DEFAULT_BATCH_DELAYS
    assert settings.genre_retry_delay == pytest.approx(1.0)
    assert settings.media_kind == "movie"


def test_shelf_keys_subset_selection() -> None:
    """Shelf keys accept labels and camelCase sources alike."""

    settings = Settings(_env_file=None, SHELF_KEYS="Trending, topRated,Sci-Fi,trending")

    assert settings.shelf_keys == ("trending", "top-rated", "sci-fi")
    assert [definition.key for definition in settings.shelf_definitions] == [
        "trending",
        "top-rated",
        "sci-fi",
    ]


def test_blank_shelf_keys_select_every_shelf() -> None:
    settings = Settings(_env_file=None, SHELF_KEYS="")

    keys = [definition.key for definition in settings.shelf_definitions]
    assert keys[:4] == ["trending", "popular", "top-rated", "upcoming"]
    assert "thriller" in keys


def test_unknown_shelf_keys_raise() -> None:
    with pytest.raises(ValueError, match="Unknown shelf keys configured"):
        Settings(_env_file=None, SHELF_KEYS="does-not-exist")


def test_series_screens_have_no_upcoming_shelf() -> None:
    with pytest.raises(ValueError, match="upcoming"):
        Settings(_env_file=None, MEDIA_KIND="series", SHELF_KEYS="upcoming")


def test_batch_delays_parse_and_sort() -> None:
    settings = Settings(_env_file=None, BOOTSTRAP_BATCH_DELAYS="1, 0, 0.25")

    assert settings.bootstrap_batch_delays == (0.0, 0.25, 1.0)


def test_negative_batch_delays_rejected() -> None:
    with pytest.raises(ValueError, match="must not be negative"):
        Settings(_env_file=None, BOOTSTRAP_BATCH_DELAYS="0,-1")


def test_shelf_keys_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SHELF_KEYS", "popular,action")
    monkeypatch.setenv("PAGE_SIZE", "10")

    settings = Settings(_env_file=None)

    assert settings.shelf_keys == ("popular", "action")
    assert settings.page_size == 10
