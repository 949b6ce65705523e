from __future__ import annotations

import pandas as pd
import pytest

from genre_families.config import AppConfig
from genre_families.fields import NumericField
from genre_families.preprocess.genres import FAMILY_PRECEDENCE, GenreFamily
from genre_families.session import DashboardSession

POP = GenreFamily.POP
ROCK = GenreFamily.ROCK_ALTERNATIVE


def _session(tracks: pd.DataFrame) -> DashboardSession:
    config = AppConfig.model_validate({"stack": {"offset": "zero", "order": "none"}})
    return DashboardSession.from_tracks(tracks, config)


def _bar_counts(session: DashboardSession) -> dict[str, int]:
    summary = session.snapshot().bars.summary.set_index("family")
    return {family.value: int(summary.loc[family.value, "n"]) for family in (POP, ROCK)}


def test_initial_snapshot(dashboard_tracks: pd.DataFrame) -> None:
    session = _session(dashboard_tracks)
    frame = session.snapshot()

    assert frame.state.enabled == frozenset(FAMILY_PRECEDENCE)
    assert frame.state.axes.x == NumericField.ARTIST_POPULARITY
    assert frame.visible_range == (2000.0, 2004.0)
    assert frame.linked
    assert frame.stream is not None
    assert frame.stream.x_domain == (2000.0, 2004.0)
    assert frame.stream.y_domain == (0, 31)
    assert frame.scatter is not None
    assert set(frame.scatter.family_lines) == {POP, ROCK}
    assert frame.bars.title.endswith("(2000-2004)")


def test_toggle_family_collapses_stream_and_hides_scatter_points(
    dashboard_tracks: pd.DataFrame,
) -> None:
    session = _session(dashboard_tracks)
    before = session.state

    state = session.toggle_family(POP)
    assert state is not before
    assert POP not in state.enabled
    assert POP in before.enabled

    frame = session.snapshot()
    assert frame.stream is not None
    assert frame.stream.y_domain == (0, 19)
    assert session.stream.layout.layer(POP).heights.tolist() == [0.0] * 5
    assert session.stream.layout.layer(ROCK).band_at(2000) == (0.0, 19.0)
    assert frame.scatter is not None
    assert set(frame.scatter.family_lines) == {ROCK}
    pop_points = frame.scatter.points[frame.scatter.points["genre_family"] == POP.value]
    assert set(pop_points["opacity"]) == {0.0}

    session.toggle_family(POP.value)
    assert session.stream.layout.equals(session.stream.canonical)
    assert session.state.enabled == frozenset(FAMILY_PRECEDENCE)


def test_stream_gestures_are_coalesced_and_drive_bar_window(
    dashboard_tracks: pd.DataFrame,
) -> None:
    session = _session(dashboard_tracks)
    recomputes = session.stream_viewport.recompute_count

    for _ in range(3):
        session.zoom_stream(2.0, anchor=0.0)
    assert session.snapshot().visible_range == (2000.0, 2004.0)

    assert session.tick() is True
    assert session.stream_viewport.recompute_count == recomputes + 1
    assert session.tick() is False

    frame = session.snapshot()
    assert frame.visible_range == pytest.approx((2000.0, 2000.5))
    assert frame.stream is not None
    assert frame.stream.y_domain == (0, 31)
    assert _bar_counts(session) == {POP.value: 12, ROCK.value: 19}

    session.set_linked(False)
    assert session.snapshot().bars.title.endswith("(All Years)")
    assert _bar_counts(session) == {POP.value: 60, ROCK.value: 55}


def test_stream_window_and_empty_window(dashboard_tracks: pd.DataFrame) -> None:
    session = _session(dashboard_tracks)

    session.set_stream_window(2001.0, 2002.0)
    frame = session.snapshot()
    assert frame.visible_range == pytest.approx((2001.0, 2002.0))
    assert frame.bars.title.endswith("(2001-2002)")
    assert _bar_counts(session) == {POP.value: 24, ROCK.value: 36}

    # No whole year lies inside this window; the last geometry stays.
    session.set_stream_window(2000.25, 2000.75)
    after = session.snapshot()
    assert after.stream is frame.stream
    assert after.visible_range == frame.visible_range


def test_magnitude_scaling_toggle(dashboard_tracks: pd.DataFrame) -> None:
    session = _session(dashboard_tracks)
    session.set_stream_window(2003.0, 2004.0)
    assert session.snapshot().stream.y_domain == (0, 12)

    session.set_magnitude_scaling(False)
    assert session.state.magnitude_scaling is False
    assert session.snapshot().stream.y_domain == (0, 31)


def test_axis_and_selection_events(dashboard_tracks: pd.DataFrame) -> None:
    session = _session(dashboard_tracks)
    state = session.state

    assert session.set_axis("x", NumericField.TRACK_POPULARITY) is state

    session.set_axis("x", "release_year")
    assert session.state.axes.x == NumericField.RELEASE_YEAR
    assert session.scatter_viewport.state.domain == (2000.0, 2004.0)
    scatter = session.snapshot().scatter
    assert scatter is not None
    assert scatter.x_domain == (2000.0, 2004.0)

    with pytest.raises(ValueError):
        session.set_axis("z", "tempo")  # type: ignore[arg-type]

    session.set_axis("x", "artist_popularity")
    session.select_artist(" Some Artist ")
    scatter = session.snapshot().scatter
    assert session.state.selected_artist == "Some Artist"
    assert scatter is not None
    assert scatter.selection_line is not None
    assert scatter.selection_line.n == 3

    session.set_show_lines(False)
    assert session.snapshot().scatter.family_lines == {}
    session.select_artist(None)
    assert session.snapshot().scatter.selection_line is None


def test_scatter_gestures_refit_visible_window(dashboard_tracks: pd.DataFrame) -> None:
    session = _session(dashboard_tracks)

    session.zoom_scatter(2.0, anchor=0.0)
    session.tick()
    scatter = session.snapshot().scatter
    assert scatter is not None
    assert scatter.x_domain == pytest.approx((0.0, 29.5))
    # 30 points per family remain, under the trend-line threshold.
    assert scatter.family_lines == {}
    # The stream window is independent of the scatter zoom.
    assert session.snapshot().visible_range == (2000.0, 2004.0)
