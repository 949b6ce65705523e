from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Generic, TypeVar

from genre_families.interaction.broker import CoordinationBroker
from genre_families.interaction.coalesce import FrameCoalescer

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_SCALE = 8.0

Domain = tuple[float, float]
R = TypeVar("R")


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


@dataclass(frozen=True)
class ViewportState:
    """Zoom transform over a continuous domain mapped onto a unit-width view.

    A domain position ``u`` in ``[0, 1]`` appears on screen at
    ``scale * u + translate``. ``translate`` is kept in ``[1 - scale, 0]`` so
    the visible interval never leaves the domain.
    """

    domain: Domain
    scale: float = 1.0
    translate: float = 0.0
    max_scale: float = DEFAULT_MAX_SCALE

    def __post_init__(self) -> None:
        d0, d1 = sorted((float(self.domain[0]), float(self.domain[1])))
        max_scale = max(1.0, float(self.max_scale))
        scale = _clamp(float(self.scale), 1.0, max_scale)
        translate = _clamp(float(self.translate), 1.0 - scale, 0.0)
        object.__setattr__(self, "domain", (d0, d1))
        object.__setattr__(self, "max_scale", max_scale)
        object.__setattr__(self, "scale", scale)
        object.__setattr__(self, "translate", translate)

    @property
    def span(self) -> float:
        return self.domain[1] - self.domain[0]

    def to_screen(self, value: float) -> float:
        if self.span == 0:
            return 0.0
        return self.scale * ((float(value) - self.domain[0]) / self.span) + self.translate

    def visible_range(self) -> Domain:
        d0, d1 = self.domain
        u0 = -self.translate / self.scale
        u1 = (1.0 - self.translate) / self.scale
        t0 = _clamp(d0 + u0 * self.span, d0, d1)
        t1 = _clamp(d0 + u1 * self.span, d0, d1)
        return (t0, t1) if t0 <= t1 else (t1, t0)

    def zoomed(self, factor: float, anchor: float = 0.5) -> ViewportState:
        """Scale by ``factor`` keeping the screen position ``anchor`` fixed."""
        scale = _clamp(self.scale * float(factor), 1.0, self.max_scale)
        anchor_u = (float(anchor) - self.translate) / self.scale
        return replace(self, scale=scale, translate=float(anchor) - scale * anchor_u)

    def zoomed_at(self, factor: float, value: float) -> ViewportState:
        return self.zoomed(factor, anchor=self.to_screen(value))

    def panned(self, delta: float) -> ViewportState:
        """Shift by ``delta`` view widths; positive moves content right."""
        return replace(self, translate=self.translate + float(delta))

    def with_window(self, t0: float, t1: float) -> ViewportState:
        lo, hi = sorted((float(t0), float(t1)))
        if self.span == 0:
            return replace(self, scale=1.0, translate=0.0)
        width = hi - lo
        scale = self.max_scale if width <= 0 else self.span / width
        scale = _clamp(scale, 1.0, self.max_scale)
        u0 = (lo - self.domain[0]) / self.span
        if width <= 0:
            u0 -= 0.5 / scale
        return replace(self, scale=scale, translate=-scale * u0)


@dataclass(frozen=True)
class ViewportUpdate(Generic[R]):
    state: ViewportState
    visible_range: Domain
    result: R | None
    is_stale: bool = False


class ViewportController(Generic[R]):
    """Owns one view's transform and re-derives the dependent geometry.

    Continuous gestures are queued with ``submit``/``zoom``/``pan`` and applied
    by ``on_frame`` at most once per frame. Discrete events call ``apply_now``.
    """

    def __init__(
        self,
        state: ViewportState,
        recompute: Callable[[Domain], R | None],
        broker: CoordinationBroker | None = None,
    ) -> None:
        self._state = state
        self._recompute = recompute
        self._broker = broker
        self._pending: FrameCoalescer[ViewportState] = FrameCoalescer()
        self._last_result: R | None = None
        self.recompute_count = 0

    @property
    def state(self) -> ViewportState:
        return self._state

    @property
    def last_result(self) -> R | None:
        return self._last_result

    @property
    def has_pending(self) -> bool:
        return self._pending.has_pending

    def visible_range(self) -> Domain:
        return self._state.visible_range()

    def _latest(self) -> ViewportState:
        pending = self._pending.peek()
        return pending if pending is not None else self._state

    def submit(self, state: ViewportState) -> None:
        self._pending.submit(state)

    def zoom(self, factor: float, anchor: float = 0.5) -> None:
        self.submit(self._latest().zoomed(factor, anchor=anchor))

    def pan(self, delta: float) -> None:
        self.submit(self._latest().panned(delta))

    def on_frame(self) -> ViewportUpdate[R] | None:
        state = self._pending.drain()
        if state is None:
            return None
        return self.apply_now(state)

    def refresh(self) -> ViewportUpdate[R]:
        return self.apply_now(self._latest())

    def apply_now(self, state: ViewportState) -> ViewportUpdate[R]:
        self._pending.clear()
        self._state = state
        visible = state.visible_range()
        result = self._recompute(visible)
        self.recompute_count += 1
        if result is None:
            LOGGER.debug("Empty visible window %s; keeping last geometry", visible)
            return ViewportUpdate(
                state=state,
                visible_range=visible,
                result=self._last_result,
                is_stale=True,
            )

        self._last_result = result
        if self._broker is not None:
            self._broker.publish(visible)
        return ViewportUpdate(state=state, visible_range=visible, result=result)
