from __future__ import annotations

from pathlib import Path

import typer

from genre_families.config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from genre_families.logging import configure_logging
from genre_families.paths import build_output_paths
from genre_families.pipeline.run_all import run_render, run_summarize
from genre_families.preprocess.genres import GenreFamily

app = typer.Typer(no_args_is_help=True, add_completion=False)


def _load_app_config(config_path: Path) -> AppConfig:
    try:
        return load_config(config_path)
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid config {config_path}: {exc}") from exc


def _parse_families(values: list[str] | None) -> list[GenreFamily]:
    families: list[GenreFamily] = []
    for value in values or []:
        try:
            families.append(GenreFamily.parse(value))
        except ValueError as exc:
            choices = ", ".join(family.value for family in GenreFamily)
            raise typer.BadParameter(
                f"Unknown genre family {value!r}. Choose from: {choices}"
            ) from exc
    return families


def _window(start_year: float | None, end_year: float | None) -> tuple[float, float] | None:
    if start_year is None and end_year is None:
        return None
    if start_year is None or end_year is None:
        raise typer.BadParameter("Provide both --start-year and --end-year to set a window")
    return start_year, end_year


@app.command()
def render(
    csv: Path = typer.Option(..., exists=True, readable=True, resolve_path=True),
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    start_year: float | None = typer.Option(None, help="First year of the stream view window."),
    end_year: float | None = typer.Option(None, help="Last year of the stream view window."),
    disable: list[str] | None = typer.Option(
        None,
        help="Genre family to hide; repeat for several families.",
    ),
    artist: str | None = typer.Option(None, help="Artist to highlight in the scatter view."),
    link: bool = typer.Option(True, help="Aggregate the bar chart over the stream window."),
    log_level: str = typer.Option("INFO"),
) -> None:
    """Render dashboard figures, tables and a JSON summary for one view state."""
    configure_logging(log_level)
    cfg = _load_app_config(config)
    window = _window(start_year, end_year)
    disabled = _parse_families(disable)
    build_output_paths(out)
    try:
        written = run_render(
            csv_path=csv,
            out_dir=out,
            config=cfg,
            window=window,
            disabled=disabled,
            selected_artist=artist,
            linked=link,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(f"Render complete. Outputs: {', '.join(sorted(written.keys()))}")


@app.command()
def summarize(
    csv: Path = typer.Option(..., exists=True, readable=True, resolve_path=True),
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    log_level: str = typer.Option("INFO"),
) -> None:
    """Write normalized tracks, year buckets and popularity tables."""
    configure_logging(log_level)
    cfg = _load_app_config(config)
    build_output_paths(out)
    try:
        written = run_summarize(csv_path=csv, out_dir=out, config=cfg)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(f"Summary complete. Tables: {', '.join(sorted(written.keys()))}")


if __name__ == "__main__":
    app()
