from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from genre_families.fields import NumericField

FALLBACK_CSV_ENV = "GENRE_FAMILIES_FALLBACK_CSV"


class ColumnsConfig(BaseModel):
    track_popularity: str = "track_popularity"
    artist_popularity: str = "artist_popularity"
    artist_followers: str = "artist_followers"
    album_release_date: str = "album_release_date"
    artist_genres: str = "artist_genres"
    danceability: str = "danceability"
    energy: str = "energy"
    valence: str = "valence"
    tempo: str = "tempo"
    duration: str = "track_duration_ms"
    explicit: str = "explicit"
    artist_name: str = "artist_name"
    track_name: str = "track_name"


class NormalizeConfig(BaseModel):
    min_year: int = Field(default=1900, ge=0)
    max_year: int = Field(default=2025, ge=0)
    minutes_threshold: float = Field(default=1000.0, gt=0.0)
    min_duration_ms: float = Field(default=1000.0, ge=0.0)

    @model_validator(mode="after")
    def _check_year_bounds(self) -> NormalizeConfig:
        if self.min_year > self.max_year:
            raise ValueError("normalize.min_year must be <= normalize.max_year")
        return self


class TemporalConfig(BaseModel):
    start_year: int = Field(default=1950, ge=0)
    end_year: int = Field(default=2025, ge=0)

    @model_validator(mode="after")
    def _check_window(self) -> TemporalConfig:
        if self.start_year > self.end_year:
            raise ValueError("temporal.start_year must be <= temporal.end_year")
        return self


class StackConfig(BaseModel):
    offset: Literal["zero", "wiggle"] = "wiggle"
    order: Literal["none", "inside_out"] = "none"
    magnitude_scaling: bool = True


class ViewportConfig(BaseModel):
    max_scale: float = Field(default=8.0, ge=1.0)


class RegressionConfig(BaseModel):
    min_group_samples: int = Field(default=50, ge=2)
    min_selection_samples: int = Field(default=2, ge=2)
    fit_visible_only: bool = True


class ScatterConfig(BaseModel):
    x_field: NumericField = NumericField.ARTIST_POPULARITY
    y_field: NumericField = NumericField.TRACK_POPULARITY
    size_field: NumericField = NumericField.ARTIST_FOLLOWERS
    radius_min: float = Field(default=2.0, gt=0.0)
    radius_max: float = Field(default=10.0, gt=0.0)

    @model_validator(mode="after")
    def _check_fields(self) -> ScatterConfig:
        if len({self.x_field, self.y_field, self.size_field}) != 3:
            raise ValueError("scatter.x_field, y_field and size_field must be distinct")
        return self


class InputConfig(BaseModel):
    fallback_csv: str | None = None


class OutputsConfig(BaseModel):
    tables_format: str = "csv"
    figures_format: str = "png"


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    columns: ColumnsConfig = Field(default_factory=ColumnsConfig)
    normalize: NormalizeConfig = Field(default_factory=NormalizeConfig)
    temporal: TemporalConfig = Field(default_factory=TemporalConfig)
    stack: StackConfig = Field(default_factory=StackConfig)
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)
    regression: RegressionConfig = Field(default_factory=RegressionConfig)
    scatter: ScatterConfig = Field(default_factory=ScatterConfig)
    input: InputConfig = Field(default_factory=InputConfig)
    outputs: OutputsConfig = Field(default_factory=OutputsConfig)


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")


def _resolve_optional_path(path_value: str | None, base_dir: Path) -> str | None:
    if not path_value:
        return None
    candidate = Path(path_value)
    if candidate.is_absolute():
        return str(candidate)
    return str((base_dir / candidate).resolve())


def load_config(path: Path) -> AppConfig:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    config = AppConfig.model_validate(data)
    base_dir = path.resolve().parent

    config.input.fallback_csv = _resolve_optional_path(
        config.input.fallback_csv or os.getenv(FALLBACK_CSV_ENV),
        base_dir,
    )
    return config
