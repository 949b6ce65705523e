from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import pandas as pd

from genre_families.config import AppConfig
from genre_families.features.aggregates import build_year_buckets
from genre_families.layout.stack import (
    StackedLayer,
    StackedLayout,
    StackOffset,
    StackOrder,
    collapse,
    stack_layers,
    vertical_domain,
    visible_extent,
)
from genre_families.preprocess.genres import FAMILY_PRECEDENCE, GenreFamily

ENABLED_OPACITY = 0.9
DISABLED_OPACITY = 0.1


def suggested_tick_count(span: float) -> int:
    span = abs(float(span))
    if span < 10:
        return 6
    if span < 50:
        return 7
    return 8


@dataclass(frozen=True)
class StreamFrame:
    layers: tuple[StackedLayer, ...]
    stack_order: tuple[GenreFamily, ...]
    enabled: frozenset[GenreFamily]
    x_domain: tuple[float, float]
    y_domain: tuple[int, int]
    tick_count: int
    magnitude_scaling: bool

    def opacity(self, family: GenreFamily) -> float:
        return ENABLED_OPACITY if family in self.enabled else DISABLED_OPACITY


class StreamView:
    """Stacked-area view over yearly family counts.

    The canonical layout is stacked once. Toggling families collapses from it,
    and each frame restricts the collapsed bands to the visible years.
    """

    def __init__(
        self,
        buckets: pd.DataFrame,
        families: Sequence[GenreFamily | str] = FAMILY_PRECEDENCE,
        offset: StackOffset = "wiggle",
        order: StackOrder = "none",
        magnitude_scaling: bool = True,
    ) -> None:
        self.buckets = buckets
        self.canonical: StackedLayout = stack_layers(
            buckets, families=families, offset=offset, order=order
        )
        self.magnitude_scaling = magnitude_scaling
        self._enabled = frozenset(self.canonical.families)
        self._layout = self.canonical

    @classmethod
    def from_tracks(cls, tracks: pd.DataFrame, config: AppConfig) -> StreamView:
        buckets = build_year_buckets(
            tracks,
            start_year=config.temporal.start_year,
            end_year=config.temporal.end_year,
        )
        return cls(
            buckets,
            offset=config.stack.offset,
            order=config.stack.order,
            magnitude_scaling=config.stack.magnitude_scaling,
        )

    @property
    def layout(self) -> StackedLayout:
        return self._layout

    @property
    def enabled(self) -> frozenset[GenreFamily]:
        return self._enabled

    def full_range(self) -> tuple[float, float] | None:
        years = self.canonical.years
        if years.size == 0:
            return None
        return float(years[0]), float(years[-1])

    def set_enabled(self, families: Iterable[GenreFamily | str]) -> StackedLayout:
        enabled = frozenset(GenreFamily.parse(family) for family in families)
        self._enabled = enabled & frozenset(self.canonical.families)
        disabled = [family for family in self.canonical.families if family not in self._enabled]
        self._layout = collapse(self.canonical, disabled)
        return self._layout

    def frame(self, t0: float, t1: float) -> StreamFrame | None:
        """Geometry for the window ``[t0, t1]``; ``None`` when no year is visible."""
        lo, hi = sorted((float(t0), float(t1)))
        years = self._layout.years
        year_mask = (years >= lo) & (years <= hi)
        if not year_mask.any():
            return None

        global_domain = self.canonical.extent() or (0, 1)
        extent = visible_extent(self._layout, lo, hi, self._enabled)
        if extent is None:
            v_min, v_max = (float(bound) for bound in global_domain)
            y_domain = global_domain
        else:
            v_min, v_max = extent
            window_domain = vertical_domain(self._layout, lo, hi, self._enabled)
            y_domain = window_domain if self.magnitude_scaling and window_domain else global_domain

        return StreamFrame(
            layers=self._layout.window(lo, hi),
            stack_order=self._layout.stack_order,
            enabled=self._enabled,
            x_domain=(lo, hi),
            y_domain=y_domain,
            tick_count=suggested_tick_count(v_max - v_min),
            magnitude_scaling=self.magnitude_scaling,
        )
