from __future__ import annotations

import pytest

from genre_families.interaction.broker import CoordinationBroker, LinkSnapshot
from genre_families.interaction.coalesce import FrameCoalescer
from genre_families.interaction.viewport import ViewportController, ViewportState


def test_coalescer_keeps_only_latest_value_and_drains_once() -> None:
    coalescer: FrameCoalescer[int] = FrameCoalescer()
    assert coalescer.drain() is None

    for value in range(5):
        coalescer.submit(value)

    assert coalescer.has_pending
    assert coalescer.peek() == 4
    assert coalescer.drain() == 4
    assert coalescer.drain() is None
    assert coalescer.submitted == 5
    assert coalescer.superseded == 4
    assert coalescer.drained == 1

    coalescer.submit(9)
    coalescer.clear()
    assert not coalescer.has_pending
    assert coalescer.drain() is None


def test_broker_notifies_only_when_active_range_changes() -> None:
    broker = CoordinationBroker(visible_range=(1950.0, 2020.0))
    seen: list[LinkSnapshot] = []
    unsubscribe = broker.subscribe(seen.append)

    broker.publish((1950.0, 2020.0))
    assert seen == []

    broker.publish((2010.0, 1990.0))
    assert broker.active_range() == (1990.0, 2010.0)
    assert [snapshot.active_range for snapshot in seen] == [(1990.0, 2010.0)]

    broker.set_linked(False)
    assert broker.active_range() is None
    assert seen[-1].active_range is None

    # Range updates while unlinked do not change the active range.
    broker.publish((2000.0, 2005.0))
    assert len(seen) == 2
    assert broker.visible_range == (2000.0, 2005.0)

    broker.toggle_linked()
    assert broker.linked
    assert seen[-1].active_range == (2000.0, 2005.0)

    unsubscribe()
    broker.publish((1960.0, 1970.0))
    assert len(seen) == 3


def test_viewport_state_visible_range_and_constraints() -> None:
    state = ViewportState(domain=(1950.0, 2030.0))
    assert state.visible_range() == (1950.0, 2030.0)

    zoomed = state.zoomed(2.0, anchor=0.0)
    assert zoomed.scale == 2.0
    assert zoomed.visible_range() == pytest.approx((1950.0, 1990.0))

    centered = state.zoomed(4.0)
    assert centered.visible_range() == pytest.approx((1980.0, 2000.0))

    # Scale is clamped to [1, max_scale].
    assert state.zoomed(100.0).scale == 8.0
    assert state.zoomed(0.1).scale == 1.0

    # Translation cannot move the window outside the domain.
    assert zoomed.panned(5.0).visible_range() == pytest.approx((1950.0, 1990.0))
    assert zoomed.panned(-5.0).visible_range() == pytest.approx((1990.0, 2030.0))
    assert zoomed.panned(-0.5).visible_range() == pytest.approx((1970.0, 2010.0))


def test_viewport_state_with_window_round_trips_visible_range() -> None:
    state = ViewportState(domain=(1950.0, 2030.0), max_scale=8.0)

    windowed = state.with_window(2010.0, 1990.0)
    assert windowed.scale == pytest.approx(4.0)
    assert windowed.visible_range() == pytest.approx((1990.0, 2010.0))

    # Windows narrower than the maximum zoom allows are widened.
    narrow = state.with_window(2000.0, 2001.0)
    assert narrow.scale == 8.0
    assert narrow.visible_range() == pytest.approx((2000.0, 2010.0))

    assert state.zoomed_at(2.0, 2030.0).visible_range() == pytest.approx((1990.0, 2030.0))


def test_controller_coalesces_gestures_into_one_recompute_per_frame() -> None:
    calls: list[tuple[float, float]] = []

    def recompute(visible: tuple[float, float]) -> tuple[float, float]:
        calls.append(visible)
        return visible

    broker = CoordinationBroker(visible_range=(1950.0, 2030.0))
    controller = ViewportController(ViewportState(domain=(1950.0, 2030.0)), recompute, broker)

    for _ in range(10):
        controller.pan(-0.01)
    controller.zoom(2.0, anchor=0.0)
    assert calls == []
    assert controller.has_pending

    update = controller.on_frame()
    assert update is not None
    assert len(calls) == 1
    assert controller.recompute_count == 1
    assert update.visible_range == pytest.approx((1950.0, 1990.0))
    assert broker.visible_range == pytest.approx((1950.0, 1990.0))
    assert controller.on_frame() is None
    assert len(calls) == 1


def test_controller_keeps_last_result_for_empty_window() -> None:
    def recompute(visible: tuple[float, float]) -> str | None:
        return None if visible[0] >= 2000.0 else f"{visible[0]:.0f}"

    broker = CoordinationBroker(visible_range=(1950.0, 2030.0))
    controller = ViewportController(ViewportState(domain=(1950.0, 2030.0)), recompute, broker)
    first = controller.refresh()
    assert first.result == "1950"
    assert not first.is_stale

    stale = controller.apply_now(controller.state.with_window(2010.0, 2030.0))
    assert stale.is_stale
    assert stale.result == "1950"
    assert controller.last_result == "1950"
    # The broker still holds the last non-empty window.
    assert broker.visible_range == (1950.0, 2030.0)
