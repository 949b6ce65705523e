from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import pandas as pd

from genre_families.preprocess.genres import FAMILY_PRECEDENCE, GenreFamily

YearRange = tuple[float, float]


def _family_labels(families: Sequence[GenreFamily | str]) -> list[str]:
    return [GenreFamily.parse(family).value for family in families]


def build_year_buckets(
    tracks: pd.DataFrame,
    families: Sequence[GenreFamily | str] = FAMILY_PRECEDENCE,
    start_year: int = 1950,
    end_year: int = 2025,
) -> pd.DataFrame:
    """Count tracks per (year, family), dense over the observed year range.

    The result is indexed by ``year`` with one integer column per family, in
    the given family order. Every year between the first and last observed
    year inside ``[start_year, end_year]`` has a row, zero-filled.
    """
    labels = _family_labels(families)
    years = pd.to_numeric(tracks["release_year"], errors="coerce")
    in_window = years.notna() & (years >= start_year) & (years <= end_year)
    working = tracks.loc[in_window, ["genre_family"]].assign(year=years[in_window].astype(int))

    if working.empty:
        empty = pd.DataFrame(columns=labels, dtype="int64")
        empty.index = pd.Index([], name="year", dtype="int64")
        return empty

    grouped = (
        working.groupby(["year", "genre_family"], dropna=True)
        .size()
        .unstack("genre_family", fill_value=0)
        .reindex(columns=labels, fill_value=0)
        .sort_index()
    )
    full_index = pd.RangeIndex(int(grouped.index.min()), int(grouped.index.max()) + 1, name="year")
    grouped = grouped.reindex(full_index, fill_value=0).astype("int64")
    grouped.columns.name = None
    return grouped


def year_bucket_rows(buckets: pd.DataFrame) -> pd.DataFrame:
    """Long (year, family, count) form of a dense bucket table."""
    if buckets.empty:
        return pd.DataFrame(columns=["year", "family", "count"])
    long = buckets.reset_index().melt(id_vars="year", var_name="family", value_name="count")
    order = {label: position for position, label in enumerate(buckets.columns)}
    long["family_order"] = long["family"].map(order)
    long = long.sort_values(["year", "family_order"]).drop(columns="family_order")
    return long.reset_index(drop=True)


def build_popularity_summary(
    tracks: pd.DataFrame,
    families: Sequence[GenreFamily | str] = FAMILY_PRECEDENCE,
    year_range: YearRange | None = None,
) -> pd.DataFrame:
    """Mean and standard deviation of track popularity per family.

    When ``year_range`` is given only tracks released inside it participate;
    tracks with an unknown year are then excluded.
    """
    labels = _family_labels(families)
    popularity = pd.to_numeric(tracks["track_popularity"], errors="coerce")
    mask = np.isfinite(popularity.to_numpy(dtype=float))
    if year_range is not None:
        t0, t1 = sorted((float(year_range[0]), float(year_range[1])))
        years = pd.to_numeric(tracks["release_year"], errors="coerce")
        mask &= (years >= t0).to_numpy() & (years <= t1).to_numpy()

    working = pd.DataFrame(
        {"family": tracks.loc[mask, "genre_family"], "popularity": popularity[mask]}
    )
    grouped = working.groupby("family", dropna=True)["popularity"].agg(["mean", "std", "count"])
    grouped = grouped.reindex(labels)

    summary = pd.DataFrame(
        {
            "family": labels,
            "mean": grouped["mean"].to_numpy(dtype=float),
            # Sample std is undefined below two values; report no spread.
            "std": grouped["std"].fillna(0.0).to_numpy(dtype=float),
            "n": grouped["count"].fillna(0).astype(int).to_numpy(),
        }
    )
    summary = summary.sort_values("mean", ascending=False, na_position="last", kind="mergesort")
    return summary.reset_index(drop=True)
