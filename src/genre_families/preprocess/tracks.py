from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from datetime import date

import numpy as np
import pandas as pd

from genre_families.config import NormalizeConfig
from genre_families.preprocess.genres import (
    GenreFamily,
    classify_genres,
    resolve_raw_genres,
    split_genre_tokens,
)

LOGGER = logging.getLogger(__name__)

# Year, optional month and day; anything after a "T" or space is a time part.
ISO_DATE_RE = re.compile(r"^(\d{4})(?:[-/](\d{1,2})(?:[-/](\d{1,2}))?)?(?:[T\s].*)?$")
TRUTHY_STRINGS = frozenset({"true", "t", "1", "yes", "y"})

TRACK_COLUMNS = [
    "track_popularity",
    "artist_popularity",
    "artist_followers",
    "release_year",
    "genre_family",
    "raw_genres",
    "danceability",
    "energy",
    "valence",
    "tempo",
    "duration_ms",
    "explicit",
    "artist_name",
    "track_name",
]


@dataclass(frozen=True)
class TrackRecord:
    track_popularity: float
    artist_popularity: float
    artist_followers: float
    release_year: int | None
    genre_family: GenreFamily
    raw_genres: tuple[str, ...] = field(default_factory=tuple)
    danceability: float = math.nan
    energy: float = math.nan
    valence: float = math.nan
    tempo: float = math.nan
    duration_ms: float = math.nan
    explicit: bool = False
    artist_name: str = ""
    track_name: str = ""

    @property
    def has_known_year(self) -> bool:
        return self.release_year is not None


def parse_number(value: object) -> float:
    if value is None or isinstance(value, bool):
        return math.nan
    if isinstance(value, str):
        value = value.strip().replace(",", "")
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return math.nan
    return number if math.isfinite(number) else math.nan


def normalize_duration_ms(value: object, config: NormalizeConfig | None = None) -> float:
    """Return a duration in milliseconds; values under the threshold are minutes."""
    cfg = config or NormalizeConfig()
    duration = parse_number(value)
    if math.isnan(duration) or duration <= 0:
        return math.nan
    if duration < cfg.minutes_threshold:
        duration = duration * 60_000.0
    if duration < cfg.min_duration_ms:
        return math.nan
    return duration


def _iso_date_year(match: re.Match[str]) -> float:
    year = int(match.group(1))
    month = int(match.group(2) or 1)
    day = int(match.group(3) or 1)
    try:
        date(year, month, day)
    except ValueError:
        return math.nan
    return float(year)


def parse_release_year(value: object, config: NormalizeConfig | None = None) -> int | None:
    cfg = config or NormalizeConfig()
    year: float = math.nan
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        year = float(value)
    elif value is not None:
        text = str(value).strip()
        match = ISO_DATE_RE.match(text)
        if match:
            year = _iso_date_year(match)
        elif text:
            year = parse_number(text)
            if math.isnan(year):
                parsed = pd.to_datetime(text, errors="coerce")
                if not pd.isna(parsed):
                    year = float(parsed.year)

    if not math.isfinite(year):
        return None
    year_int = int(year)
    if year_int < cfg.min_year or year_int > cfg.max_year:
        return None
    return year_int


def parse_explicit(value: object) -> bool:
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if value is None:
        return False
    return str(value).strip().lower() in TRUTHY_STRINGS


def _clean_name(value: object) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    return str(value).strip()


def normalize_row(
    row: Mapping[str, object],
    fallback: Mapping[str, str] | None = None,
    config: NormalizeConfig | None = None,
) -> TrackRecord:
    """Map one canonical-column row to a TrackRecord without raising."""
    cfg = config or NormalizeConfig()
    artist_name = _clean_name(row.get("artist_name"))
    raw_genres = resolve_raw_genres(row.get("artist_genres"), artist_name, fallback)

    return TrackRecord(
        track_popularity=parse_number(row.get("track_popularity")),
        artist_popularity=parse_number(row.get("artist_popularity")),
        artist_followers=parse_number(row.get("artist_followers")),
        release_year=parse_release_year(row.get("album_release_date"), cfg),
        genre_family=classify_genres(raw_genres),
        raw_genres=tuple(split_genre_tokens(raw_genres)),
        danceability=parse_number(row.get("danceability")),
        energy=parse_number(row.get("energy")),
        valence=parse_number(row.get("valence")),
        tempo=parse_number(row.get("tempo")),
        duration_ms=normalize_duration_ms(row.get("duration"), cfg),
        explicit=parse_explicit(row.get("explicit")),
        artist_name=artist_name,
        track_name=_clean_name(row.get("track_name")),
    )


def records_to_frame(records: list[TrackRecord]) -> pd.DataFrame:
    rows = []
    for record in records:
        row = asdict(record)
        row["genre_family"] = record.genre_family.value
        row["raw_genres"] = ", ".join(record.raw_genres)
        rows.append(row)

    frame = pd.DataFrame(rows, columns=TRACK_COLUMNS)
    frame["release_year"] = pd.to_numeric(frame["release_year"], errors="coerce").astype("float64")
    for column in (
        "track_popularity",
        "artist_popularity",
        "artist_followers",
        "danceability",
        "energy",
        "valence",
        "tempo",
        "duration_ms",
    ):
        frame[column] = pd.to_numeric(frame[column], errors="coerce").astype("float64")
    frame["explicit"] = frame["explicit"].astype(bool)
    return frame


def normalize_tracks(
    df: pd.DataFrame,
    fallback: Mapping[str, str] | None = None,
    config: NormalizeConfig | None = None,
) -> pd.DataFrame:
    """Normalize every canonical-column row; malformed rows stay in with NaN fields."""
    cfg = config or NormalizeConfig()
    records = [
        normalize_row(row, fallback=fallback, config=cfg)
        for row in df.to_dict(orient="records")
    ]
    frame = records_to_frame(records)

    if "artist_genres" in df.columns and fallback:
        primary = df["artist_genres"].map(lambda value: resolve_raw_genres(value))
        n_fallback = int(((primary == "") & (frame["raw_genres"] != "")).sum())
    else:
        n_fallback = 0
    LOGGER.info(
        "Normalized %d tracks: unknown_year=%d invalid_duration=%d fallback_genres=%d other=%d",
        len(frame),
        int(frame["release_year"].isna().sum()),
        int(frame["duration_ms"].isna().sum()),
        n_fallback,
        int((frame["genre_family"] == GenreFamily.OTHER.value).sum()),
    )
    return frame
