from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pandas as pd

from genre_families.config import AppConfig
from genre_families.features.aggregates import (
    build_popularity_summary,
    build_year_buckets,
    year_bucket_rows,
)
from genre_families.io.read import load_fallback_genres, load_track_rows
from genre_families.io.write import write_summary, write_table
from genre_families.paths import build_output_paths
from genre_families.preprocess.genres import FAMILY_PRECEDENCE, GenreFamily
from genre_families.preprocess.tracks import normalize_tracks
from genre_families.regression import RegressionResult
from genre_families.session import DashboardFrame, DashboardSession
from genre_families.viz.bars import plot_popularity_bars
from genre_families.viz.scatter import plot_scatter
from genre_families.viz.stream import plot_stream

LOGGER = logging.getLogger(__name__)


def prepare_tracks(csv_path: Path, config: AppConfig) -> pd.DataFrame:
    rows = load_track_rows(csv_path=csv_path, config=config)
    fallback = load_fallback_genres(config.input.fallback_csv)
    return normalize_tracks(rows, fallback=fallback, config=config.normalize)


def _regression_rows(frame: DashboardFrame) -> pd.DataFrame:
    results: list[RegressionResult] = []
    if frame.scatter is not None:
        results.extend(frame.scatter.family_lines.values())
        if frame.scatter.selection_line is not None:
            results.append(frame.scatter.selection_line)
    return pd.DataFrame(
        [
            {
                "group": result.group,
                "slope": result.slope,
                "intercept": result.intercept,
                "n": result.n,
                "x_min": result.x_min,
                "x_max": result.x_max,
            }
            for result in results
        ],
        columns=["group", "slope", "intercept", "n", "x_min", "x_max"],
    )


def build_tables(tracks: pd.DataFrame, config: AppConfig) -> dict[str, pd.DataFrame]:
    buckets = build_year_buckets(
        tracks,
        start_year=config.temporal.start_year,
        end_year=config.temporal.end_year,
    )
    return {
        "tracks": tracks,
        "year_buckets": year_bucket_rows(buckets),
        "popularity_summary": build_popularity_summary(tracks, FAMILY_PRECEDENCE),
    }


def _write_tables(
    tables: dict[str, pd.DataFrame], out_dir: Path, config: AppConfig
) -> dict[str, Path]:
    paths = build_output_paths(out_dir)
    fmt = config.outputs.tables_format
    extension = "parquet" if fmt == "parquet" else "csv"
    return {
        name: write_table(table, paths.tables / f"{name}.{extension}", fmt=fmt)
        for name, table in tables.items()
    }


def _render_figures(frame: DashboardFrame, out_dir: Path, config: AppConfig) -> dict[str, Path]:
    paths = build_output_paths(out_dir)
    suffix = config.outputs.figures_format
    written: dict[str, Path] = {}
    try:
        stream_path = plot_stream(frame.stream, paths.figures / f"stream.{suffix}")
        if stream_path is not None:
            written["stream"] = stream_path
        scatter_path = plot_scatter(frame.scatter, paths.figures / f"scatter.{suffix}")
        if scatter_path is not None:
            written["scatter"] = scatter_path
        bars_path = plot_popularity_bars(frame.bars, paths.figures / f"popularity_bars.{suffix}")
        if bars_path is not None:
            written["popularity_bars"] = bars_path
    except Exception:  # pragma: no cover
        LOGGER.exception("Failed rendering one or more dashboard figures")
    return written


def summarize_frame(frame: DashboardFrame, tracks: pd.DataFrame) -> dict[str, Any]:
    state = frame.state
    summary: dict[str, Any] = {
        "n_tracks": int(len(tracks)),
        "n_unknown_year": int(tracks["release_year"].isna().sum()),
        "enabled_families": [f.value for f in FAMILY_PRECEDENCE if f in state.enabled],
        "axes": {"x": state.axes.x.value, "y": state.axes.y.value, "size": state.axes.size.value},
        "selected_artist": state.selected_artist,
        "linked": frame.linked,
        "visible_range": list(frame.visible_range) if frame.visible_range else None,
        "bars_title": frame.bars.title,
    }
    if frame.stream is not None:
        summary["stream"] = {
            "x_domain": list(frame.stream.x_domain),
            "y_domain": list(frame.stream.y_domain),
            "stack_order": [family.value for family in frame.stream.stack_order],
        }
    if frame.scatter is not None:
        summary["scatter"] = {
            "x_domain": list(frame.scatter.x_domain),
            "y_domain": list(frame.scatter.y_domain),
            "trend_lines": [family.value for family in frame.scatter.family_lines],
            "has_selection_line": frame.scatter.selection_line is not None,
        }
    return summary


def run_render(
    csv_path: Path,
    out_dir: Path,
    config: AppConfig,
    *,
    window: tuple[float, float] | None = None,
    disabled: Iterable[GenreFamily | str] = (),
    selected_artist: str | None = None,
    linked: bool = True,
) -> dict[str, Path]:
    """Drive one dashboard session and write its tables, figures and summary."""
    paths = build_output_paths(out_dir)
    tracks = prepare_tracks(csv_path, config)
    session = DashboardSession.from_tracks(tracks, config)

    hidden = {GenreFamily.parse(family) for family in disabled}
    if hidden:
        session.set_enabled(frozenset(FAMILY_PRECEDENCE) - hidden)
    session.set_linked(linked)
    if window is not None:
        session.set_stream_window(*window)
    if selected_artist:
        session.select_artist(selected_artist)

    frame = session.snapshot()
    tables = build_tables(tracks, config)
    tables["popularity_window"] = frame.bars.summary
    tables["regression_lines"] = _regression_rows(frame)

    written = _write_tables(tables, out_dir, config)
    written.update(_render_figures(frame, out_dir, config))
    summary = summarize_frame(frame, tracks)
    summary["selected_tracks"] = session.scatter.selection_tooltips(frame.state.selected_artist)
    written["summary"] = write_summary(summary, paths.summary / "dashboard.json")
    LOGGER.info("Render complete: %d outputs under %s", len(written), out_dir)
    return written


def run_summarize(csv_path: Path, out_dir: Path, config: AppConfig) -> dict[str, Path]:
    tracks = prepare_tracks(csv_path, config)
    written = _write_tables(build_tables(tracks, config), out_dir, config)
    LOGGER.info("Summary tables written: %s", ", ".join(sorted(written)))
    return written
