from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from genre_families.config import AppConfig
from genre_families.io.schema import normalize_columns
from genre_families.preprocess.genres import build_fallback_table

LOGGER = logging.getLogger(__name__)

FALLBACK_COLUMNS = ["artist_name", "artist_genres"]


def load_track_rows(csv_path: Path, config: AppConfig) -> pd.DataFrame:
    """Load the primary track table and return canonical columns."""
    # utf-8-sig strips BOM-prefixed headers commonly found in exported CSV files.
    df = pd.read_csv(csv_path, encoding="utf-8-sig", dtype=str, keep_default_na=False)
    LOGGER.info("Loaded %d track rows from %s", len(df), csv_path)
    return normalize_columns(df=df, columns=config.columns)


def load_fallback_genres(path: Path | str | None) -> dict[str, str]:
    if not path:
        return {}
    file_path = Path(path)
    if not file_path.exists():
        LOGGER.warning("Fallback genre table not found: %s", file_path)
        return {}

    df = pd.read_csv(file_path, encoding="utf-8-sig", dtype=str, keep_default_na=False)
    missing = [column for column in FALLBACK_COLUMNS if column not in df.columns]
    if missing:
        raise ValueError(f"Fallback genre table missing columns: {', '.join(missing)}")
    mapping = build_fallback_table(df)
    LOGGER.info("Loaded %d fallback artist genres from %s", len(mapping), file_path)
    return mapping
