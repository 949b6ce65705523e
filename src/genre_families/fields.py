from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum

import numpy as np
import pandas as pd


class NumericField(str, Enum):
    ARTIST_FOLLOWERS = "artist_followers"
    ARTIST_POPULARITY = "artist_popularity"
    TRACK_POPULARITY = "track_popularity"
    RELEASE_YEAR = "release_year"
    DANCEABILITY = "danceability"
    ENERGY = "energy"
    VALENCE = "valence"
    TEMPO = "tempo"
    DURATION_MS = "duration_ms"

    @property
    def label(self) -> str:
        return FIELD_LABELS[self]

    def values(self, tracks: pd.DataFrame) -> np.ndarray:
        """Float view of this field over the tracks frame; sentinels stay NaN."""
        return pd.to_numeric(tracks[self.value], errors="coerce").to_numpy(dtype=float)


FIELD_LABELS: dict[NumericField, str] = {
    NumericField.ARTIST_FOLLOWERS: "Artist Followers",
    NumericField.ARTIST_POPULARITY: "Artist Popularity",
    NumericField.TRACK_POPULARITY: "Track Popularity",
    NumericField.RELEASE_YEAR: "Release Year",
    NumericField.DANCEABILITY: "Danceability",
    NumericField.ENERGY: "Energy",
    NumericField.VALENCE: "Valence",
    NumericField.TEMPO: "Tempo",
    NumericField.DURATION_MS: "Duration",
}

# Fields offered in the scatter axis selectors.
AXIS_FIELDS: tuple[NumericField, ...] = (
    NumericField.ARTIST_FOLLOWERS,
    NumericField.ARTIST_POPULARITY,
    NumericField.TRACK_POPULARITY,
    NumericField.RELEASE_YEAR,
)


@dataclass(frozen=True)
class AxisSelection:
    x: NumericField = NumericField.ARTIST_POPULARITY
    y: NumericField = NumericField.TRACK_POPULARITY
    size: NumericField = NumericField.ARTIST_FOLLOWERS

    def __post_init__(self) -> None:
        if len({self.x, self.y, self.size}) != 3:
            raise ValueError("x, y and size fields must be distinct")

    def _with(self, slot: str, field: NumericField | str) -> AxisSelection:
        requested = NumericField(field)
        if requested == getattr(self, slot):
            return self
        if requested in {self.x, self.y, self.size}:
            return self
        return replace(self, **{slot: requested})

    def with_x(self, field: NumericField | str) -> AxisSelection:
        return self._with("x", field)

    def with_y(self, field: NumericField | str) -> AxisSelection:
        return self._with("y", field)

    def with_size(self, field: NumericField | str) -> AxisSelection:
        return self._with("size", field)


def round_half_up(value: float) -> int:
    """Nearest integer with halves rounded up, unlike ``round``'s half-to-even."""
    return math.floor(float(value) + 0.5)


def format_duration(ms: float) -> str:
    if ms is None or not math.isfinite(ms) or ms <= 0:
        return "N/A"
    total_seconds = int(ms // 1000)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


def format_field_value(value: float, field: NumericField) -> str:
    if value is None or not math.isfinite(value):
        return "N/A"
    if field is NumericField.DURATION_MS:
        return format_duration(value)
    if field in (
        NumericField.RELEASE_YEAR,
        NumericField.ARTIST_POPULARITY,
        NumericField.TRACK_POPULARITY,
    ):
        return str(round_half_up(value))
    if field is NumericField.ARTIST_FOLLOWERS:
        return f"{round_half_up(value):,}"
    return f"{value:.2f}"
