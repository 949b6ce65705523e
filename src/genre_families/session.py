from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Literal

import pandas as pd

from genre_families.config import AppConfig
from genre_families.fields import AxisSelection, NumericField
from genre_families.interaction.broker import CoordinationBroker, LinkSnapshot
from genre_families.interaction.viewport import Domain, ViewportController, ViewportState
from genre_families.preprocess.genres import GenreFamily
from genre_families.views.bars import BarsFrame, BarsView
from genre_families.views.scatter import ScatterFrame, ScatterView
from genre_families.views.stream import StreamFrame, StreamView

LOGGER = logging.getLogger(__name__)

AxisSlot = Literal["x", "y", "size"]


@dataclass(frozen=True)
class InteractionState:
    enabled: frozenset[GenreFamily]
    axes: AxisSelection = AxisSelection()
    selected_artist: str | None = None
    show_points: bool = True
    show_lines: bool = True
    magnitude_scaling: bool = True


@dataclass(frozen=True)
class DashboardFrame:
    state: InteractionState
    stream: StreamFrame | None
    scatter: ScatterFrame | None
    bars: BarsFrame
    visible_range: Domain | None
    linked: bool


class DashboardSession:
    """Holds the interaction state and keeps the three views consistent with it."""

    def __init__(
        self,
        stream: StreamView,
        scatter: ScatterView,
        bars: BarsView,
        broker: CoordinationBroker | None = None,
        state: InteractionState | None = None,
        max_scale: float = 8.0,
    ) -> None:
        self.stream = stream
        self.scatter = scatter
        self.bars = bars
        self.max_scale = max_scale
        full_range = stream.full_range()
        self.broker = broker or CoordinationBroker(visible_range=full_range)
        self._state = state or InteractionState(
            enabled=frozenset(stream.canonical.families),
            axes=scatter.axes,
            magnitude_scaling=stream.magnitude_scaling,
        )

        self.stream.magnitude_scaling = self._state.magnitude_scaling
        self.stream.set_enabled(self._state.enabled)
        if self.scatter.axes != self._state.axes:
            self.scatter.set_axes(self._state.axes)

        self.stream_viewport: ViewportController[StreamFrame] = ViewportController(
            ViewportState(domain=full_range or (0.0, 0.0), max_scale=max_scale),
            self._recompute_stream,
            broker=self.broker,
        )
        self.scatter_viewport: ViewportController[ScatterFrame] = ViewportController(
            ViewportState(domain=scatter.base_x_domain, max_scale=max_scale),
            self._recompute_scatter,
        )
        self._bars_frame = self.bars.frame_for(self.broker)
        self.broker.subscribe(self._on_link_change)
        self.stream_viewport.refresh()
        self.scatter_viewport.refresh()

    @classmethod
    def from_tracks(cls, tracks: pd.DataFrame, config: AppConfig) -> DashboardSession:
        stream = StreamView.from_tracks(tracks, config)
        scatter = ScatterView.from_tracks(tracks, config)
        bars = BarsView(tracks)
        LOGGER.info(
            "Dashboard session over %d tracks, years=%s",
            len(tracks),
            stream.full_range(),
        )
        return cls(stream, scatter, bars, max_scale=config.viewport.max_scale)

    @property
    def state(self) -> InteractionState:
        return self._state

    def _recompute_stream(self, visible: Domain) -> StreamFrame | None:
        return self.stream.frame(*visible)

    def _recompute_scatter(self, visible: Domain) -> ScatterFrame | None:
        state = self._state
        return self.scatter.frame(
            *visible,
            enabled=state.enabled,
            selected_artist=state.selected_artist,
            show_points=state.show_points,
            show_lines=state.show_lines,
        )

    def _on_link_change(self, snapshot: LinkSnapshot) -> None:
        self._bars_frame = self.bars.frame(snapshot.active_range)

    def _refresh_all(self) -> None:
        self.stream_viewport.refresh()
        self.scatter_viewport.refresh()

    # Discrete events

    def set_enabled(self, families: Iterable[GenreFamily | str]) -> InteractionState:
        enabled = frozenset(GenreFamily.parse(family) for family in families)
        self._state = replace(self._state, enabled=enabled)
        self.stream.set_enabled(enabled)
        self._refresh_all()
        return self._state

    def toggle_family(self, family: GenreFamily | str) -> InteractionState:
        key = GenreFamily.parse(family)
        return self.set_enabled(self._state.enabled ^ {key})

    def set_axis(self, slot: AxisSlot, field: NumericField | str) -> InteractionState:
        axes = self._state.axes
        if slot == "x":
            updated = axes.with_x(field)
        elif slot == "y":
            updated = axes.with_y(field)
        elif slot == "size":
            updated = axes.with_size(field)
        else:
            raise ValueError(f"Unknown axis slot: {slot}")
        if updated == axes:
            return self._state

        self._state = replace(self._state, axes=updated)
        self.scatter.set_axes(updated)
        self.scatter_viewport.apply_now(
            ViewportState(domain=self.scatter.base_x_domain, max_scale=self.max_scale)
        )
        return self._state

    def select_artist(self, artist: str | None) -> InteractionState:
        name = artist.strip() if artist else None
        self._state = replace(self._state, selected_artist=name or None)
        self.scatter_viewport.refresh()
        return self._state

    def set_show_points(self, show: bool) -> InteractionState:
        self._state = replace(self._state, show_points=bool(show))
        self.scatter_viewport.refresh()
        return self._state

    def set_show_lines(self, show: bool) -> InteractionState:
        self._state = replace(self._state, show_lines=bool(show))
        self.scatter_viewport.refresh()
        return self._state

    def set_magnitude_scaling(self, enabled: bool) -> InteractionState:
        self._state = replace(self._state, magnitude_scaling=bool(enabled))
        self.stream.magnitude_scaling = bool(enabled)
        self.stream_viewport.refresh()
        return self._state

    def set_linked(self, linked: bool) -> LinkSnapshot:
        return self.broker.set_linked(linked)

    def set_stream_window(self, t0: float, t1: float) -> None:
        self.stream_viewport.apply_now(self.stream_viewport.state.with_window(t0, t1))

    def set_scatter_window(self, x0: float, x1: float) -> None:
        self.scatter_viewport.apply_now(self.scatter_viewport.state.with_window(x0, x1))

    # Continuous gestures, applied on the next tick

    def zoom_stream(self, factor: float, anchor: float = 0.5) -> None:
        self.stream_viewport.zoom(factor, anchor=anchor)

    def pan_stream(self, delta: float) -> None:
        self.stream_viewport.pan(delta)

    def zoom_scatter(self, factor: float, anchor: float = 0.5) -> None:
        self.scatter_viewport.zoom(factor, anchor=anchor)

    def pan_scatter(self, delta: float) -> None:
        self.scatter_viewport.pan(delta)

    def tick(self) -> bool:
        """Drain pending gestures once; True when any view was recomputed."""
        stream_update = self.stream_viewport.on_frame()
        scatter_update = self.scatter_viewport.on_frame()
        return stream_update is not None or scatter_update is not None

    def snapshot(self) -> DashboardFrame:
        return DashboardFrame(
            state=self._state,
            stream=self.stream_viewport.last_result,
            scatter=self.scatter_viewport.last_result,
            bars=self._bars_frame,
            visible_range=self.broker.visible_range,
            linked=self.broker.linked,
        )
