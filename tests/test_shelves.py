from shelfloader.shelves import (
    GENRE_SHELVES,
    MOVIE_SHELVES,
    SERIES_SHELVES,
    partition_batches,
    shelves_for,
)


def test_genre_shelves_split_two_two_remainder():
    batches = partition_batches(GENRE_SHELVES, (0.0, 0.5, 1.0), 2)

    assert [delay for delay, _ in batches] == [0.0, 0.5, 1.0]
    assert [[d.key for d in batch] for _, batch in batches] == [
        ["action", "comedy"],
        ["drama", "horror"],
        ["romance", "sci-fi", "thriller"],
    ]


def test_partition_drops_unused_delays():
    batches = partition_batches(GENRE_SHELVES[:3], (0.0, 0.5, 1.0), 2)

    assert [(delay, len(batch)) for delay, batch in batches] == [(0.0, 2), (0.5, 1)]


def test_partition_without_delays_is_one_batch():
    batches = partition_batches(GENRE_SHELVES, (), 2)

    assert len(batches) == 1
    assert batches[0][1] == GENRE_SHELVES


def test_partition_of_nothing():
    assert partition_batches([], (0.0,), 2) == []


def test_shelf_tables_per_media_kind():
    assert shelves_for("movie") is MOVIE_SHELVES
    assert shelves_for("series") is SERIES_SHELVES
    sci_fi = next(d for d in MOVIE_SHELVES if d.key == "sci-fi")
    assert sci_fi.is_genre
    assert sci_fi.source == "Science Fiction"
    top_rated = next(d for d in SERIES_SHELVES if d.key == "top-rated")
    assert top_rated.source == "topRated"
    assert not top_rated.is_genre
