from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
import pandas as pd

from genre_families.fields import NumericField

DEFAULT_MIN_GROUP_SAMPLES = 50
DEFAULT_MIN_SELECTION_SAMPLES = 2


@dataclass(frozen=True)
class RegressionResult:
    group: str
    slope: float
    intercept: float
    n: int
    x_min: float = math.nan
    x_max: float = math.nan
    is_degenerate: bool = False

    def predict(self, x: float) -> float:
        return self.slope * x + self.intercept

    def line(self, x0: float, x1: float) -> tuple[tuple[float, float], tuple[float, float]]:
        return (x0, self.predict(x0)), (x1, self.predict(x1))

    def meets(self, min_samples: int) -> bool:
        return not self.is_degenerate and self.n >= max(2, int(min_samples))


def _to_float_array(values: pd.Series | np.ndarray) -> np.ndarray:
    if isinstance(values, pd.Series):
        return pd.to_numeric(values, errors="coerce").to_numpy(dtype=float)
    return np.asarray(values, dtype=float)


def fit_line(
    x: pd.Series | np.ndarray,
    y: pd.Series | np.ndarray,
    group: str = "",
) -> RegressionResult:
    """Ordinary least squares over the finite (x, y) pairs."""
    xs = _to_float_array(x)
    ys = _to_float_array(y)
    valid = np.isfinite(xs) & np.isfinite(ys)
    xs = xs[valid]
    ys = ys[valid]
    n = int(xs.size)

    if n == 0:
        return RegressionResult(group=group, slope=0.0, intercept=math.nan, n=0, is_degenerate=True)

    mean_x = float(xs.mean())
    mean_y = float(ys.mean())
    x_min = float(xs.min())
    x_max = float(xs.max())
    if n < 2:
        return RegressionResult(
            group=group,
            slope=0.0,
            intercept=mean_y,
            n=n,
            x_min=x_min,
            x_max=x_max,
            is_degenerate=True,
        )

    dx = xs - mean_x
    denominator = float(np.sum(dx * dx))
    if denominator == 0.0:
        return RegressionResult(
            group=group,
            slope=0.0,
            intercept=mean_y,
            n=n,
            x_min=x_min,
            x_max=x_max,
            is_degenerate=True,
        )

    slope = float(np.sum(dx * (ys - mean_y))) / denominator
    return RegressionResult(
        group=group,
        slope=slope,
        intercept=mean_y - slope * mean_x,
        n=n,
        x_min=x_min,
        x_max=x_max,
    )


def _x_window_mask(xs: np.ndarray, x_range: tuple[float, float] | None) -> np.ndarray:
    if x_range is None:
        return np.ones(xs.shape, dtype=bool)
    lo, hi = sorted((float(x_range[0]), float(x_range[1])))
    return (xs >= lo) & (xs <= hi)


def fit_groups(
    tracks: pd.DataFrame,
    x_field: NumericField,
    y_field: NumericField,
    group_column: str = "genre_family",
    min_samples: int = DEFAULT_MIN_GROUP_SAMPLES,
    x_range: tuple[float, float] | None = None,
    groups: list[str] | None = None,
) -> dict[str, RegressionResult]:
    """Fit one line per group; groups below ``min_samples`` valid pairs are left out."""
    if tracks.empty:
        return {}
    xs = x_field.values(tracks)
    ys = y_field.values(tracks)
    in_window = _x_window_mask(xs, x_range)
    labels = tracks[group_column].astype(str).to_numpy()
    wanted = groups if groups is not None else list(dict.fromkeys(labels.tolist()))

    results: dict[str, RegressionResult] = {}
    for group in wanted:
        mask = in_window & (labels == group)
        result = fit_line(xs[mask], ys[mask], group=group)
        if result.meets(min_samples):
            results[group] = result
    return results


def fit_selection(
    tracks: pd.DataFrame,
    selection: np.ndarray | pd.Series,
    x_field: NumericField,
    y_field: NumericField,
    group: str = "selection",
    min_samples: int = DEFAULT_MIN_SELECTION_SAMPLES,
    x_range: tuple[float, float] | None = None,
) -> RegressionResult | None:
    """Fit the rows picked by ``selection``; ``None`` when too few valid pairs remain."""
    if tracks.empty:
        return None
    xs = x_field.values(tracks)
    ys = y_field.values(tracks)
    mask = np.asarray(selection, dtype=bool) & _x_window_mask(xs, x_range)
    result = fit_line(xs[mask], ys[mask], group=group)
    return result if result.meets(min_samples) else None
