from __future__ import annotations

import re
from collections.abc import Mapping
from enum import Enum

import pandas as pd


class GenreFamily(str, Enum):
    POP = "Pop"
    HIP_HOP_RAP = "Hip-Hop / Rap"
    ROCK_ALTERNATIVE = "Rock / Alternative"
    ELECTRONIC_EDM = "Electronic / EDM"
    RNB_SOUL = "R&B / Soul"
    LATIN = "Latin"
    COUNTRY_FOLK = "Country / Folk"
    JAZZ_GOSPEL = "Jazz / Gospel"
    SOUNDTRACK = "Soundtrack"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: str | GenreFamily) -> GenreFamily:
        if isinstance(value, cls):
            return value
        return cls(str(value))


# Modern mainstream families first; resolves multi-genre artists.
FAMILY_PRECEDENCE: tuple[GenreFamily, ...] = tuple(GenreFamily)

GENRE_COLORS: dict[GenreFamily, str] = {
    GenreFamily.POP: "#1f77b4",
    GenreFamily.HIP_HOP_RAP: "#ff7f0e",
    GenreFamily.ROCK_ALTERNATIVE: "#8c564b",
    GenreFamily.ELECTRONIC_EDM: "#2ca02c",
    GenreFamily.RNB_SOUL: "#d62728",
    GenreFamily.LATIN: "#17becf",
    GenreFamily.COUNTRY_FOLK: "#9467bd",
    GenreFamily.JAZZ_GOSPEL: "#e377c2",
    GenreFamily.SOUNDTRACK: "#bcbd22",
    GenreFamily.OTHER: "#7f7f7f",
}

# Ordered per-token rules; the first rule with a matching needle wins for that token.
GENRE_RULES: tuple[tuple[GenreFamily, tuple[str, ...]], ...] = (
    (
        GenreFamily.POP,
        (
            "k-pop",
            "j-pop",
            "dance pop",
            "electropop",
            "teen pop",
            "indie pop",
            "dream pop",
            " pop",
        ),
    ),
    (GenreFamily.HIP_HOP_RAP, ("trap", "rap", "hip")),
    (
        GenreFamily.ROCK_ALTERNATIVE,
        ("alternative", "indie rock", "modern rock", "grunge", "metal", "rock"),
    ),
    (
        GenreFamily.ELECTRONIC_EDM,
        ("house", "techno", "dubstep", "trance", "electronic", "edm"),
    ),
    (GenreFamily.RNB_SOUL, ("neo soul", "r&b", "rnb", "soul")),
    (GenreFamily.LATIN, ("reggaeton", "latin")),
    (GenreFamily.COUNTRY_FOLK, ("contemporary country", "country", "folk")),
    (GenreFamily.JAZZ_GOSPEL, ("jazz", "gospel")),
    (GenreFamily.SOUNDTRACK, ("soundtrack", "score")),
)

EMPTY_GENRE_PLACEHOLDERS = frozenset({"", "[]", "[ ]", "null"})
LIST_PUNCT_RE = re.compile(r"[\[\]'\"]")


def _is_placeholder(value: str) -> bool:
    return value.strip().lower() in EMPTY_GENRE_PLACEHOLDERS


def _clean_text(raw: object) -> str:
    if raw is None:
        return ""
    if isinstance(raw, float) and pd.isna(raw):
        return ""
    text = str(raw).strip()
    return "" if _is_placeholder(text) else text


def split_genre_tokens(raw: object) -> list[str]:
    """Split a comma or bracket delimited genre field into trimmed tokens."""
    text = LIST_PUNCT_RE.sub("", _clean_text(raw))
    return [token.strip() for token in text.split(",") if token.strip()]


def classify_token(token: str) -> GenreFamily:
    lowered = token.strip().lower()
    if lowered == "pop":
        return GenreFamily.POP
    for family, needles in GENRE_RULES:
        if any(needle in lowered for needle in needles):
            return family
    return GenreFamily.OTHER


def resolve_family(candidates: set[GenreFamily] | frozenset[GenreFamily]) -> GenreFamily:
    for family in FAMILY_PRECEDENCE:
        if family in candidates:
            return family
    return GenreFamily.OTHER


def build_fallback_table(
    frame: pd.DataFrame,
    artist_column: str = "artist_name",
    genres_column: str = "artist_genres",
) -> dict[str, str]:
    """Build the artist -> raw genre lookup used when a track has no genres."""
    if frame.empty or artist_column not in frame.columns or genres_column not in frame.columns:
        return {}

    mapping: dict[str, str] = {}
    for artist, genres in zip(frame[artist_column], frame[genres_column]):
        key = _clean_text(artist).lower()
        value = _clean_text(genres)
        if key and value:
            mapping[key] = value
    return mapping


def resolve_raw_genres(
    raw: object,
    artist_name: object = None,
    fallback: Mapping[str, str] | None = None,
) -> str:
    text = _clean_text(raw)
    if text or not fallback:
        return text
    key = _clean_text(artist_name).lower()
    if not key:
        return ""
    return _clean_text(fallback.get(key, ""))


def classify_genres(
    raw: object,
    artist_name: object = None,
    fallback: Mapping[str, str] | None = None,
) -> GenreFamily:
    tokens = split_genre_tokens(resolve_raw_genres(raw, artist_name, fallback))
    candidates = {classify_token(token) for token in tokens}
    candidates.discard(GenreFamily.OTHER)
    return resolve_family(candidates)
