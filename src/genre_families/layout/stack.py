from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Literal

import numpy as np
import pandas as pd

from genre_families.preprocess.genres import FAMILY_PRECEDENCE, GenreFamily

StackOffset = Literal["zero", "wiggle"]
StackOrder = Literal["none", "inside_out"]


@dataclass(frozen=True, eq=False)
class StackedLayer:
    """Bands of one family: ``low[j] <= high[j]`` at ``years[j]``."""

    family: GenreFamily
    years: np.ndarray
    low: np.ndarray
    high: np.ndarray

    @property
    def heights(self) -> np.ndarray:
        return self.high - self.low

    def bands(self) -> list[tuple[int, float, float]]:
        return [
            (int(year), float(low), float(high))
            for year, low, high in zip(self.years, self.low, self.high)
        ]

    def band_at(self, year: int) -> tuple[float, float]:
        index = int(np.searchsorted(self.years, year))
        if index >= self.years.size or int(self.years[index]) != int(year):
            raise KeyError(f"No band for year {year}")
        return float(self.low[index]), float(self.high[index])

    def window(self, t0: float, t1: float) -> StackedLayer:
        mask = (self.years >= t0) & (self.years <= t1)
        return StackedLayer(
            family=self.family,
            years=self.years[mask],
            low=self.low[mask],
            high=self.high[mask],
        )

    def equals(self, other: StackedLayer) -> bool:
        return (
            self.family == other.family
            and np.array_equal(self.years, other.years)
            and np.array_equal(self.low, other.low)
            and np.array_equal(self.high, other.high)
        )


@dataclass(frozen=True, eq=False)
class StackedLayout:
    years: np.ndarray
    layers: tuple[StackedLayer, ...]
    stack_order: tuple[GenreFamily, ...]
    offset: StackOffset
    disabled: frozenset[GenreFamily] = frozenset()

    @property
    def families(self) -> tuple[GenreFamily, ...]:
        return tuple(layer.family for layer in self.layers)

    @property
    def enabled(self) -> tuple[GenreFamily, ...]:
        return tuple(family for family in self.families if family not in self.disabled)

    def layer(self, family: GenreFamily | str) -> StackedLayer:
        key = GenreFamily.parse(family)
        for layer in self.layers:
            if layer.family == key:
                return layer
        raise KeyError(f"Unknown family {key.value!r}")

    def totals(self) -> np.ndarray:
        """Per-year sum of enabled band heights."""
        total = np.zeros(self.years.size, dtype=float)
        for layer in self.layers:
            if layer.family not in self.disabled:
                total = total + layer.heights
        return total

    def extent(self) -> tuple[int, int] | None:
        if self.years.size == 0:
            return None
        return vertical_domain(self, float(self.years[0]), float(self.years[-1]))

    def window(self, t0: float, t1: float) -> tuple[StackedLayer, ...]:
        return tuple(layer.window(t0, t1) for layer in self.layers)

    def equals(self, other: StackedLayout) -> bool:
        return (
            np.array_equal(self.years, other.years)
            and self.stack_order == other.stack_order
            and self.disabled == other.disabled
            and len(self.layers) == len(other.layers)
            and all(mine.equals(theirs) for mine, theirs in zip(self.layers, other.layers))
        )


def _peak_index(values: np.ndarray) -> int:
    # First index of the maximum, matching a strict ">" scan.
    return int(np.argmax(values)) if values.size else 0


def inside_out_order(values: np.ndarray) -> list[int]:
    """Order rows by peak year, alternately filling the top and bottom of the stack."""
    n_series = values.shape[0]
    sums = values.sum(axis=1)
    by_appearance = sorted(range(n_series), key=lambda i: _peak_index(values[i]))

    top = 0.0
    bottom = 0.0
    tops: list[int] = []
    bottoms: list[int] = []
    for i in by_appearance:
        if top < bottom:
            top += float(sums[i])
            tops.append(i)
        else:
            bottom += float(sums[i])
            bottoms.append(i)
    return list(reversed(bottoms)) + tops


def wiggle_baseline(values: np.ndarray) -> np.ndarray:
    """Streamgraph baseline minimising weighted slope change between years.

    ``values`` is (series, years) in stacking order. The recurrence is the
    one introduced by Byron & Wattenberg and used by d3's wiggle offset.
    """
    n_years = values.shape[1]
    baseline = np.zeros(n_years, dtype=float)
    if n_years < 2 or values.shape[0] == 0:
        return baseline

    current = values[:, 1:]
    delta = current - values[:, :-1]
    below = np.cumsum(delta, axis=0) - delta
    weighted = ((delta / 2.0) + below) * current
    s1 = current.sum(axis=0)
    s2 = weighted.sum(axis=0)
    step = np.zeros_like(s1)
    nonzero = s1 != 0
    step[nonzero] = -s2[nonzero] / s1[nonzero]
    baseline[1:] = np.cumsum(step)
    return baseline


def stack_layers(
    buckets: pd.DataFrame,
    families: Sequence[GenreFamily | str] = FAMILY_PRECEDENCE,
    offset: StackOffset = "zero",
    order: StackOrder = "none",
) -> StackedLayout:
    """Stack dense year buckets into one band sequence per family."""
    keys = tuple(GenreFamily.parse(family) for family in families)
    labels = [family.value for family in keys]
    missing = [label for label in labels if label not in buckets.columns]
    if missing:
        raise ValueError(f"Bucket table missing family columns: {', '.join(missing)}")

    years = buckets.index.to_numpy(dtype=np.int64)
    values = buckets[labels].to_numpy(dtype=float).T
    values = np.where(np.isfinite(values), values, 0.0)

    if order == "inside_out":
        order_index = inside_out_order(values)
    elif order == "none":
        order_index = list(range(len(keys)))
    else:
        raise ValueError(f"Unsupported stack order: {order}")

    ordered = values[order_index]
    if offset == "wiggle":
        baseline = wiggle_baseline(ordered)
    elif offset == "zero":
        baseline = np.zeros(years.size, dtype=float)
    else:
        raise ValueError(f"Unsupported stack offset: {offset}")

    lows = baseline + np.cumsum(ordered, axis=0) - ordered
    highs = lows + ordered

    by_family: dict[int, StackedLayer] = {}
    for position, series_index in enumerate(order_index):
        by_family[series_index] = StackedLayer(
            family=keys[series_index],
            years=years,
            low=lows[position],
            high=highs[position],
        )

    return StackedLayout(
        years=years,
        layers=tuple(by_family[i] for i in range(len(keys))),
        stack_order=tuple(keys[i] for i in order_index),
        offset=offset,
    )


def collapse(
    layout: StackedLayout,
    disabled: Iterable[GenreFamily | str],
) -> StackedLayout:
    """Zero out disabled families and close the gaps they leave.

    Always derived from the layout passed in, which should be the canonical
    (uncollapsed) stack; the result never feeds another collapse.
    """
    hidden = frozenset(GenreFamily.parse(family) for family in disabled)
    if layout.disabled:
        raise ValueError("collapse expects the canonical layout, not a collapsed one")
    if not hidden:
        return layout

    removed_below = np.zeros(layout.years.size, dtype=float)
    collapsed: dict[GenreFamily, StackedLayer] = {}
    for family in layout.stack_order:
        layer = layout.layer(family)
        low = layer.low - removed_below
        if family in hidden:
            collapsed[family] = StackedLayer(family=family, years=layer.years, low=low, high=low)
            removed_below = removed_below + layer.heights
        else:
            collapsed[family] = StackedLayer(
                family=family,
                years=layer.years,
                low=low,
                high=layer.high - removed_below,
            )

    return StackedLayout(
        years=layout.years,
        layers=tuple(collapsed[layer.family] for layer in layout.layers),
        stack_order=layout.stack_order,
        offset=layout.offset,
        disabled=hidden & frozenset(layout.families),
    )


def visible_extent(
    layout: StackedLayout,
    t0: float,
    t1: float,
    enabled: Iterable[GenreFamily | str] | None = None,
) -> tuple[float, float] | None:
    """Raw min and max of the enabled bands whose year lies in ``[t0, t1]``."""
    lo, hi = sorted((float(t0), float(t1)))
    if enabled is None:
        allowed = frozenset(layout.enabled)
    else:
        allowed = frozenset(GenreFamily.parse(family) for family in enabled)

    year_mask = (layout.years >= lo) & (layout.years <= hi)
    if not year_mask.any():
        return None

    lows = [layer.low[year_mask] for layer in layout.layers if layer.family in allowed]
    highs = [layer.high[year_mask] for layer in layout.layers if layer.family in allowed]
    if not lows:
        return None
    return float(np.min(np.concatenate(lows))), float(np.max(np.concatenate(highs)))


def vertical_domain(
    layout: StackedLayout,
    t0: float,
    t1: float,
    enabled: Iterable[GenreFamily | str] | None = None,
) -> tuple[int, int] | None:
    """Integer bounds of the enabled bands whose year lies in ``[t0, t1]``."""
    extent = visible_extent(layout, t0, t1, enabled)
    if extent is None:
        return None
    return math.floor(extent[0]), math.ceil(extent[1])
