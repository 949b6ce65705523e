from __future__ import annotations

import math

import numpy as np
import pandas as pd
import pytest

from genre_families.fields import NumericField
from genre_families.regression import fit_groups, fit_line, fit_selection

X = NumericField.ARTIST_POPULARITY
Y = NumericField.TRACK_POPULARITY


def _group_frame(n_pop: int, n_rock: int) -> pd.DataFrame:
    pop_x = np.arange(n_pop, dtype=float)
    rock_x = np.arange(n_rock, dtype=float)
    return pd.DataFrame(
        {
            "artist_popularity": np.concatenate([pop_x, rock_x]),
            "track_popularity": np.concatenate([2.0 * pop_x + 1.0, 50.0 - 0.5 * rock_x]),
            "genre_family": ["Pop"] * n_pop + ["Rock / Alternative"] * n_rock,
        }
    )


def test_fit_line_recovers_exact_line() -> None:
    result = fit_line([0.0, 1.0, 2.0, 3.0], [1.0, 3.0, 5.0, 7.0], group="g")

    assert result.slope == pytest.approx(2.0)
    assert result.intercept == pytest.approx(1.0)
    assert result.n == 4
    assert (result.x_min, result.x_max) == (0.0, 3.0)
    assert not result.is_degenerate
    (x0, y0), (x1, y1) = result.line(0.0, 10.0)
    assert [x0, y0, x1, y1] == pytest.approx([0.0, 1.0, 10.0, 21.0])


def test_fit_line_ignores_non_finite_pairs() -> None:
    result = fit_line(
        pd.Series([0.0, 1.0, float("nan"), 2.0]),
        pd.Series([0.0, 2.0, 100.0, float("inf")]),
    )
    assert result.n == 2
    assert result.slope == pytest.approx(2.0)


def test_fit_line_degenerate_inputs() -> None:
    flat_x = fit_line([3.0, 3.0, 3.0], [1.0, 2.0, 6.0])
    assert flat_x.is_degenerate
    assert flat_x.slope == 0.0
    assert flat_x.intercept == pytest.approx(3.0)

    single = fit_line([1.0], [4.0])
    assert single.is_degenerate
    assert single.intercept == 4.0

    empty = fit_line([], [])
    assert empty.is_degenerate
    assert empty.n == 0
    assert math.isnan(empty.intercept)
    assert not empty.meets(0)


def test_fit_groups_applies_sample_threshold() -> None:
    tracks = _group_frame(n_pop=60, n_rock=49)

    results = fit_groups(tracks, X, Y, min_samples=50)

    assert list(results) == ["Pop"]
    assert results["Pop"].slope == pytest.approx(2.0)
    assert results["Pop"].intercept == pytest.approx(1.0)
    assert "Rock / Alternative" not in results

    lowered = fit_groups(tracks, X, Y, min_samples=10)
    assert lowered["Rock / Alternative"].slope == pytest.approx(-0.5)


def test_fit_groups_restricted_to_visible_x_range() -> None:
    tracks = _group_frame(n_pop=100, n_rock=100)

    results = fit_groups(tracks, X, Y, min_samples=50, x_range=(60.0, 0.0))

    assert results["Pop"].n == 61
    assert results["Pop"].x_max == 60.0
    assert fit_groups(tracks, X, Y, min_samples=50, x_range=(0.0, 30.0)) == {}


def test_fit_selection_threshold_and_mask() -> None:
    tracks = _group_frame(n_pop=5, n_rock=5)
    mask = (tracks["genre_family"] == "Rock / Alternative").to_numpy()

    result = fit_selection(tracks, mask, X, Y, group="someone")
    assert result is not None
    assert result.group == "someone"
    assert result.slope == pytest.approx(-0.5)

    one_point = np.zeros(len(tracks), dtype=bool)
    one_point[0] = True
    assert fit_selection(tracks, one_point, X, Y) is None
    assert fit_selection(tracks.iloc[0:0], np.array([], dtype=bool), X, Y) is None
