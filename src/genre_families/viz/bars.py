from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from genre_families.views.bars import BarsFrame
from genre_families.viz.common import family_color, save_figure


def plot_popularity_bars(frame: BarsFrame, output_path: Path) -> Path | None:
    summary = frame.summary.dropna(subset=["mean"])
    if summary.empty:
        return None

    x = np.arange(len(summary), dtype=float)
    plt.figure(figsize=(10, 5))
    plt.bar(
        x,
        summary["mean"],
        yerr=summary["std"],
        color=[family_color(family) for family in summary["family"]],
        capsize=4,
        alpha=0.9,
    )
    for position, mean in zip(x, summary["mean"]):
        plt.text(position, mean, f"{mean:.1f}", ha="center", va="bottom", fontsize="small")
    plt.xticks(x, summary["family"], rotation=30, ha="right")
    plt.xlabel("Genre")
    plt.ylabel("Mean Track Popularity (Spotify Score)")
    plt.title(frame.title)
    return save_figure(output_path)
