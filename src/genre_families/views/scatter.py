from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from genre_families.config import AppConfig, RegressionConfig
from genre_families.fields import (
    AxisSelection,
    NumericField,
    format_duration,
    format_field_value,
)
from genre_families.preprocess.genres import FAMILY_PRECEDENCE, GenreFamily
from genre_families.regression import RegressionResult, fit_groups, fit_selection

SELECTED_OPACITY = 1.0
HIDDEN_OPACITY = 0.0
FADED_OPACITY = 0.12
BASE_OPACITY = 0.28

Segment = tuple[tuple[float, float], tuple[float, float]]


def normalize_artist(name: object) -> str:
    if name is None or (isinstance(name, float) and math.isnan(name)):
        return ""
    return str(name).strip().lower()


@dataclass(frozen=True)
class RadiusScale:
    """Square-root scale from a size field onto point radii."""

    domain: tuple[float, float] = (1.0, 2.0)
    range: tuple[float, float] = (2.0, 10.0)

    def __call__(self, values: np.ndarray | float) -> np.ndarray:
        raw = np.asarray(values, dtype=float)
        d0, d1 = self.domain
        r0, r1 = self.range
        # Missing or non-positive sizes draw at the smallest radius.
        clipped = np.clip(np.where(np.isfinite(raw) & (raw > 0), raw, d0), d0, d1)
        t = (np.sqrt(clipped) - math.sqrt(d0)) / (math.sqrt(d1) - math.sqrt(d0))
        return r0 + t * (r1 - r0)


def build_radius_scale(
    sizes: np.ndarray,
    radius_range: tuple[float, float] = (2.0, 10.0),
) -> RadiusScale:
    values = np.asarray(sizes, dtype=float)
    values = values[np.isfinite(values) & (values > 0)]
    lo = float(values.min()) if values.size else 1.0
    hi = float(values.max()) if values.size else 2.0
    domain = (max(1.0, lo), max(2.0, hi))
    if domain[0] >= domain[1]:
        domain = (domain[0], domain[0] + 1.0)
    return RadiusScale(domain=domain, range=(float(radius_range[0]), float(radius_range[1])))


def point_opacity(
    is_selected: np.ndarray,
    is_enabled: np.ndarray,
    has_selection: bool,
    show_points: bool,
) -> np.ndarray:
    base = FADED_OPACITY if has_selection else BASE_OPACITY
    opacity = np.full(is_selected.shape, base if show_points else HIDDEN_OPACITY, dtype=float)
    opacity[~is_enabled] = HIDDEN_OPACITY
    opacity[is_selected] = SELECTED_OPACITY
    return opacity


def _text(value: object) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    return str(value)


def _as_float(value: object) -> float:
    number = pd.to_numeric(value, errors="coerce")
    return math.nan if pd.isna(number) else float(number)


def track_tooltip(row: Mapping[str, object], max_subgenres: int = 6) -> str:
    """Hover text for one track, one ``label: value`` line per field."""
    subgenres = [token.strip() for token in _text(row.get("raw_genres")).split(",")]
    subgenres = [token for token in subgenres if token][:max_subgenres]
    lines = [
        f"Track: {_text(row.get('track_name'))}",
        f"Artist: {_text(row.get('artist_name'))}",
        f"Duration: {format_duration(_as_float(row.get('duration_ms')))}",
        f"Release Year: "
        f"{format_field_value(_as_float(row.get('release_year')), NumericField.RELEASE_YEAR)}",
        f"Genre Family: {_text(row.get('genre_family'))}",
        f"Subgenres: {', '.join(subgenres) if subgenres else 'None'}",
    ]
    for field_name in (
        NumericField.TRACK_POPULARITY,
        NumericField.ARTIST_POPULARITY,
        NumericField.ARTIST_FOLLOWERS,
    ):
        value = format_field_value(_as_float(row.get(field_name.value)), field_name)
        lines.append(f"{field_name.label}: {value}")
    return "\n".join(lines)


def _extent(values: np.ndarray) -> tuple[float, float]:
    if values.size == 0:
        return 0.0, 1.0
    return float(values.min()), float(values.max())


@dataclass(frozen=True)
class ScatterFrame:
    axes: AxisSelection
    points: pd.DataFrame
    x_domain: tuple[float, float]
    y_domain: tuple[float, float]
    family_lines: dict[GenreFamily, RegressionResult] = field(default_factory=dict)
    selection_line: RegressionResult | None = None
    selected_artist: str | None = None

    def family_segment(self, family: GenreFamily) -> Segment:
        result = self.family_lines[family]
        return result.line(result.x_min, result.x_max)

    def selection_segment(self) -> Segment | None:
        if self.selection_line is None:
            return None
        return self.selection_line.line(*self.x_domain)


class ScatterView:
    """Points, radius scale and trend lines for one axis selection."""

    def __init__(
        self,
        tracks: pd.DataFrame,
        axes: AxisSelection | None = None,
        regression: RegressionConfig | None = None,
        radius_range: tuple[float, float] = (2.0, 10.0),
        auto_y: bool = True,
    ) -> None:
        self.tracks = tracks
        self.regression = regression or RegressionConfig()
        self.radius_range = radius_range
        self.auto_y = auto_y
        self.set_axes(axes or AxisSelection())

    @classmethod
    def from_tracks(cls, tracks: pd.DataFrame, config: AppConfig) -> ScatterView:
        axes = AxisSelection(
            x=config.scatter.x_field,
            y=config.scatter.y_field,
            size=config.scatter.size_field,
        )
        return cls(
            tracks,
            axes=axes,
            regression=config.regression,
            radius_range=(config.scatter.radius_min, config.scatter.radius_max),
        )

    def set_axes(self, axes: AxisSelection) -> None:
        self.axes = axes
        xs = axes.x.values(self.tracks)
        ys = axes.y.values(self.tracks)
        valid = np.isfinite(xs) & np.isfinite(ys)
        self.valid = self.tracks.loc[valid].reset_index(drop=True)
        self._xs = xs[valid]
        self._ys = ys[valid]
        self._sizes = axes.size.values(self.valid)
        self._families = self.valid["genre_family"].astype(str).to_numpy()
        self._artists = np.array([normalize_artist(name) for name in self.valid["artist_name"]])
        self.base_x_domain = _extent(self._xs)
        self.base_y_domain = _extent(self._ys)
        self.radius_scale = build_radius_scale(
            axes.size.values(self.tracks), radius_range=self.radius_range
        )

    def selection_mask(self, artist: str | None) -> np.ndarray:
        key = normalize_artist(artist)
        if not key:
            return np.zeros(len(self.valid), dtype=bool)
        return self._artists == key

    def selection_tooltips(self, artist: str | None) -> list[str]:
        selected = self.valid.loc[self.selection_mask(artist)]
        return [track_tooltip(row) for row in selected.to_dict(orient="records")]

    def auto_y_domain(self, x0: float, x1: float) -> tuple[float, float] | None:
        lo, hi = sorted((float(x0), float(x1)))
        in_window = (self._xs >= lo) & (self._xs <= hi)
        if not in_window.any():
            return None
        visible = self._ys[in_window]
        return float(max(0, math.floor(visible.min()))), float(math.ceil(visible.max()))

    def frame(
        self,
        x0: float,
        x1: float,
        enabled: Iterable[GenreFamily | str] = FAMILY_PRECEDENCE,
        selected_artist: str | None = None,
        show_points: bool = True,
        show_lines: bool = True,
    ) -> ScatterFrame | None:
        """Geometry for the x window ``[x0, x1]``; ``None`` when no point falls inside."""
        lo, hi = sorted((float(x0), float(x1)))
        y_domain = self.auto_y_domain(lo, hi)
        if y_domain is None:
            return None
        if not self.auto_y:
            y_domain = self.base_y_domain

        enabled_labels = {GenreFamily.parse(family).value for family in enabled}
        is_enabled = np.isin(self._families, list(enabled_labels))
        is_selected = self.selection_mask(selected_artist)
        has_selection = bool(normalize_artist(selected_artist))

        points = pd.DataFrame(
            {
                "x": self._xs,
                "y": self._ys,
                "size": self._sizes,
                "radius": self.radius_scale(self._sizes),
                "opacity": point_opacity(is_selected, is_enabled, has_selection, show_points),
                "is_selected": is_selected,
                "genre_family": self._families,
                "artist_name": self.valid["artist_name"].to_numpy(),
                "track_name": self.valid["track_name"].to_numpy(),
            }
        )

        x_range = (lo, hi) if self.regression.fit_visible_only else None
        family_lines: dict[GenreFamily, RegressionResult] = {}
        if show_lines:
            fitted = fit_groups(
                self.valid,
                self.axes.x,
                self.axes.y,
                min_samples=self.regression.min_group_samples,
                x_range=x_range,
                groups=[f.value for f in FAMILY_PRECEDENCE if f.value in enabled_labels],
            )
            family_lines = {GenreFamily(label): result for label, result in fitted.items()}

        selection_line = None
        if has_selection:
            selection_line = fit_selection(
                self.valid,
                is_selected,
                self.axes.x,
                self.axes.y,
                group=normalize_artist(selected_artist),
                min_samples=self.regression.min_selection_samples,
                x_range=x_range,
            )

        return ScatterFrame(
            axes=self.axes,
            points=points,
            x_domain=(lo, hi),
            y_domain=y_domain,
            family_lines=family_lines,
            selection_line=selection_line,
            selected_artist=selected_artist,
        )
