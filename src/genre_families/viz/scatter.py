from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.colors import to_rgba

from genre_families.views.scatter import ScatterFrame
from genre_families.viz.common import family_color, save_figure

SELECTION_COLOR = "#000000"


def plot_scatter(frame: ScatterFrame | None, output_path: Path) -> Path | None:
    if frame is None:
        return None

    points = frame.points
    visible = points[points["opacity"] > 0]
    plt.figure(figsize=(9, 6))
    if not visible.empty:
        colors = [family_color(family) for family in visible["genre_family"]]
        rgba = np.array([to_rgba(color) for color in colors])
        rgba[:, 3] = visible["opacity"].to_numpy(dtype=float)
        selected = visible["is_selected"].to_numpy(dtype=bool)
        plt.scatter(
            visible["x"],
            visible["y"],
            s=np.square(visible["radius"].to_numpy(dtype=float)),
            c=rgba,
            edgecolors=[SELECTION_COLOR if flag else "none" for flag in selected],
            linewidths=np.where(selected, 1.5, 0.0),
        )

    for family in frame.family_lines:
        (x0, y0), (x1, y1) = frame.family_segment(family)
        plt.plot([x0, x1], [y0, y1], color=family_color(family), linewidth=2.5, label=family.value)

    segment = frame.selection_segment()
    if segment is not None:
        (x0, y0), (x1, y1) = segment
        plt.plot(
            [x0, x1],
            [y0, y1],
            color=SELECTION_COLOR,
            linewidth=3.0,
            label=frame.selected_artist or "Selection",
        )

    plt.xlim(*frame.x_domain)
    plt.ylim(*frame.y_domain)
    plt.xlabel(frame.axes.x.label)
    plt.ylabel(frame.axes.y.label)
    plt.title(f"{frame.axes.y.label} vs {frame.axes.x.label}")
    if frame.family_lines or segment is not None:
        plt.legend(loc="upper left", fontsize="small")
    return save_figure(output_path)
