from __future__ import annotations

import math

import pandas as pd
import pytest

from genre_families.config import NormalizeConfig
from genre_families.preprocess.genres import GenreFamily
from genre_families.preprocess.tracks import (
    TRACK_COLUMNS,
    normalize_duration_ms,
    normalize_row,
    normalize_tracks,
    parse_explicit,
    parse_number,
    parse_release_year,
)


def _row(**overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "track_popularity": "71",
        "artist_popularity": "80",
        "artist_followers": "1,234,567",
        "album_release_date": "2001-05-03",
        "artist_genres": "['dance pop', 'pop']",
        "danceability": "0.61",
        "energy": "0.72",
        "valence": "0.4",
        "tempo": "118.0",
        "duration": "215000",
        "explicit": "False",
        "artist_name": " Some Artist ",
        "track_name": "Some Track",
    }
    row.update(overrides)
    return row


def test_parse_number_handles_thousands_separators_and_garbage() -> None:
    assert parse_number("1,234") == 1234.0
    assert parse_number(" 7.5 ") == 7.5
    assert parse_number(12) == 12.0
    assert math.isnan(parse_number(""))
    assert math.isnan(parse_number("abc"))
    assert math.isnan(parse_number("inf"))
    assert math.isnan(parse_number(None))
    assert math.isnan(parse_number(True))


def test_normalize_duration_ms_converts_minutes_and_rejects_invalid() -> None:
    assert normalize_duration_ms("215000") == 215000.0
    assert normalize_duration_ms("3.5") == pytest.approx(210000.0)
    assert math.isnan(normalize_duration_ms("0"))
    assert math.isnan(normalize_duration_ms("-4"))
    assert math.isnan(normalize_duration_ms("n/a"))
    # 0.01 minutes is 600 ms, below the plausibility floor.
    assert math.isnan(normalize_duration_ms("0.01"))


def test_normalize_duration_ms_respects_configured_threshold() -> None:
    cfg = NormalizeConfig(minutes_threshold=10.0, min_duration_ms=100.0)
    assert normalize_duration_ms("500", cfg) == 500.0
    assert normalize_duration_ms("4", cfg) == pytest.approx(240000.0)
    # Without a lowered floor, 500 ms is rejected as implausible.
    assert math.isnan(normalize_duration_ms("500", NormalizeConfig(minutes_threshold=10.0)))


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2001-05-03", 2001),
        ("1999", 1999),
        ("1987/11", 1987),
        ("2020.0", 2020),
        (" 1999 ", 1999),
        ("2004-02-29T10:00:00", 2004),
        ("1995-13-45", None),
        ("2003-02-29", None),
        ("June 5, 2001", 2001),
        (2005.0, 2005),
        ("1850-01-01", None),
        ("2031-01-01", None),
        ("", None),
        ("not a date", None),
        (None, None),
    ],
)
def test_parse_release_year(raw: object, expected: int | None) -> None:
    assert parse_release_year(raw) == expected


def test_parse_explicit() -> None:
    assert parse_explicit("TRUE") is True
    assert parse_explicit("1") is True
    assert parse_explicit("yes") is True
    assert parse_explicit(True) is True
    assert parse_explicit("no") is False
    assert parse_explicit("") is False
    assert parse_explicit(None) is False


def test_normalize_row_builds_track_record() -> None:
    record = normalize_row(_row())

    assert record.track_popularity == 71.0
    assert record.artist_followers == 1234567.0
    assert record.release_year == 2001
    assert record.has_known_year
    assert record.genre_family == GenreFamily.POP
    assert record.raw_genres == ("dance pop", "pop")
    assert record.duration_ms == 215000.0
    assert record.explicit is False
    assert record.artist_name == "Some Artist"


def test_normalize_row_never_raises_on_malformed_fields() -> None:
    record = normalize_row(
        _row(
            track_popularity="popular",
            album_release_date="someday",
            artist_genres="",
            duration="",
            artist_name=None,
        )
    )

    assert math.isnan(record.track_popularity)
    assert record.release_year is None
    assert not record.has_known_year
    assert record.genre_family == GenreFamily.OTHER
    assert math.isnan(record.duration_ms)
    assert record.artist_name == ""


def test_normalize_row_uses_fallback_genres_for_empty_field() -> None:
    record = normalize_row(_row(artist_genres="[]"), fallback={"some artist": "trap"})

    assert record.genre_family == GenreFamily.HIP_HOP_RAP
    assert record.raw_genres == ("trap",)


def test_normalize_tracks_returns_track_frame() -> None:
    rows = pd.DataFrame(
        [
            _row(),
            _row(album_release_date="", artist_genres="country", track_popularity="12"),
        ]
    )

    tracks = normalize_tracks(rows)

    assert list(tracks.columns) == TRACK_COLUMNS
    assert tracks["release_year"].tolist()[0] == 2001.0
    assert math.isnan(tracks["release_year"].tolist()[1])
    assert tracks["genre_family"].tolist() == [
        GenreFamily.POP.value,
        GenreFamily.COUNTRY_FOLK.value,
    ]
    assert tracks["raw_genres"].tolist() == ["dance pop, pop", "country"]
    assert tracks["track_popularity"].dtype == "float64"
