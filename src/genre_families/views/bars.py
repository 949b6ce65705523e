from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import pandas as pd

from genre_families.features.aggregates import YearRange, build_popularity_summary
from genre_families.fields import round_half_up
from genre_families.interaction.broker import CoordinationBroker
from genre_families.preprocess.genres import FAMILY_PRECEDENCE, GenreFamily

TITLE_PREFIX = "Mean Track Popularity by Genre"


def window_title(year_range: YearRange | None) -> str:
    if year_range is None:
        return f"{TITLE_PREFIX} (All Years)"
    t0, t1 = sorted(year_range)
    return f"{TITLE_PREFIX} ({round_half_up(t0)}-{round_half_up(t1)})"


@dataclass(frozen=True)
class BarsFrame:
    summary: pd.DataFrame
    year_range: YearRange | None
    title: str

    @property
    def families(self) -> list[str]:
        return self.summary["family"].tolist()


class BarsView:
    """Mean popularity per family over the broker's active window."""

    def __init__(
        self,
        tracks: pd.DataFrame,
        families: Sequence[GenreFamily | str] = FAMILY_PRECEDENCE,
    ) -> None:
        self.tracks = tracks
        self.families = tuple(GenreFamily.parse(family) for family in families)

    def frame(self, year_range: YearRange | None = None) -> BarsFrame:
        summary = build_popularity_summary(self.tracks, self.families, year_range=year_range)
        return BarsFrame(summary=summary, year_range=year_range, title=window_title(year_range))

    def frame_for(self, broker: CoordinationBroker) -> BarsFrame:
        return self.frame(broker.active_range())
