from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from genre_families.config import ColumnsConfig


@dataclass(frozen=True)
class CanonicalColumns:
    track_popularity: str = "track_popularity"
    artist_popularity: str = "artist_popularity"
    artist_followers: str = "artist_followers"
    album_release_date: str = "album_release_date"
    artist_genres: str = "artist_genres"
    danceability: str = "danceability"
    energy: str = "energy"
    valence: str = "valence"
    tempo: str = "tempo"
    duration: str = "duration"
    explicit: str = "explicit"
    artist_name: str = "artist_name"
    track_name: str = "track_name"


# Columns whose absence makes the table unusable; the rest become NaN.
REQUIRED_SOURCE_FIELDS = ("track_popularity", "album_release_date", "artist_genres", "artist_name")


def normalize_columns(df: pd.DataFrame, columns: ColumnsConfig) -> pd.DataFrame:
    """Rename source columns to canonical names used by the normalizer."""
    canonical = CanonicalColumns()
    rename_map: dict[str, str] = {}
    for field_name in ColumnsConfig.model_fields:
        source = getattr(columns, field_name)
        rename_map[source] = getattr(canonical, field_name)

    # Older exports name the duration column `duration_ms`.
    if columns.duration not in df.columns and "duration_ms" in df.columns:
        rename_map["duration_ms"] = canonical.duration

    missing = [
        getattr(columns, field_name)
        for field_name in REQUIRED_SOURCE_FIELDS
        if getattr(columns, field_name) not in df.columns
    ]
    if missing:
        missing_str = ", ".join(missing)
        raise ValueError(f"Missing required columns in CSV: {missing_str}")

    renamed = df.rename(columns=rename_map)
    for field_name in ColumnsConfig.model_fields:
        target = getattr(canonical, field_name)
        if target not in renamed.columns:
            renamed[target] = ""
    return renamed
