from __future__ import annotations

import csv
from pathlib import Path

import pandas as pd
import pytest

from genre_families.preprocess.genres import GenreFamily
from genre_families.preprocess.tracks import TRACK_COLUMNS

POP = GenreFamily.POP.value
ROCK = GenreFamily.ROCK_ALTERNATIVE.value


def _track(**values: object) -> dict[str, object]:
    row: dict[str, object] = {column: float("nan") for column in TRACK_COLUMNS}
    row.update(raw_genres="", explicit=False, track_name="track")
    row.update(values)
    return row


@pytest.fixture
def dashboard_tracks() -> pd.DataFrame:
    """60 Pop tracks on y = 0.5x + 10 and 55 Rock tracks on y = 80 - 0.5x.

    Pop years cycle over 2000-2004 (12 per year), Rock over 2000-2002
    (19, 18, 18). The first three Pop tracks belong to "Some Artist". One
    extra row has no year and no popularity.
    """
    rows = []
    for i in range(60):
        rows.append(
            _track(
                track_popularity=0.5 * i + 10.0,
                artist_popularity=float(i),
                artist_followers=100.0 * (i + 1),
                release_year=float(2000 + i % 5),
                genre_family=POP,
                artist_name="Some Artist" if i < 3 else f"Pop Artist {i}",
            )
        )
    for i in range(55):
        rows.append(
            _track(
                track_popularity=80.0 - 0.5 * i,
                artist_popularity=float(i),
                artist_followers=100.0 * (i + 1),
                release_year=float(2000 + i % 3),
                genre_family=ROCK,
                artist_name=f"Rock Artist {i}",
            )
        )
    rows.append(
        _track(
            artist_popularity=10.0,
            artist_followers=500.0,
            genre_family=POP,
            artist_name="Unknown",
        )
    )
    return pd.DataFrame(rows, columns=TRACK_COLUMNS)


TRACK_CSV_HEADER = [
    "track_name",
    "artist_name",
    "artist_popularity",
    "artist_followers",
    "album_release_date",
    "artist_genres",
    "track_popularity",
    "danceability",
    "energy",
    "valence",
    "tempo",
    "track_duration_ms",
    "explicit",
]


@pytest.fixture
def tracks_csv(tmp_path: Path) -> Path:
    """Raw export: 60 Pop tracks over 1990-1999, 55 Rock over 1995-1999, one undated row.

    Odd Pop rows store their duration in minutes and followers use thousands
    separators. The undated row has an empty genre list.
    """
    path = tmp_path / "tracks.csv"
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(TRACK_CSV_HEADER)
        for i in range(60):
            writer.writerow(
                [
                    f"Pop Song {i}",
                    "Some Artist" if i < 3 else f"Pop Artist {i}",
                    i,
                    f"{(i + 1) * 1000:,}",
                    f"{1990 + i % 10}-06-01",
                    "['dance pop', 'pop']",
                    0.5 * i + 10,
                    0.7,
                    0.8,
                    0.5,
                    120,
                    3.5 if i % 2 else 210000,
                    "true" if i % 4 == 0 else "false",
                ]
            )
        for i in range(55):
            writer.writerow(
                [
                    f"Rock Song {i}",
                    f"Rock Artist {i}",
                    i,
                    (i + 1) * 500,
                    str(1995 + i % 5),
                    "['grunge', 'alternative rock']",
                    80 - 0.5 * i,
                    0.4,
                    0.9,
                    0.3,
                    140,
                    240000,
                    "false",
                ]
            )
        writer.writerow(
            ["Mystery", "Fallback Artist", 30, 100, "not a date", "[]", 40]
            + [""] * 6
        )
    return path
