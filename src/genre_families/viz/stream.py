from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
from matplotlib.ticker import MaxNLocator

from genre_families.fields import NumericField, format_field_value
from genre_families.views.stream import StreamFrame
from genre_families.viz.common import family_color, save_figure


def plot_stream(frame: StreamFrame | None, output_path: Path) -> Path | None:
    if frame is None:
        return None

    fig, axis = plt.subplots(figsize=(12, 5))
    for family in frame.stack_order:
        layer = next(layer for layer in frame.layers if layer.family == family)
        if layer.years.size == 0:
            continue
        axis.fill_between(
            layer.years,
            layer.low,
            layer.high,
            color=family_color(family),
            alpha=frame.opacity(family),
            linewidth=0,
            label=family.value,
        )

    axis.set_xlim(*frame.x_domain)
    axis.set_ylim(*frame.y_domain)
    axis.yaxis.set_major_locator(MaxNLocator(frame.tick_count))
    axis.set_xlabel("Release Year")
    axis.set_ylabel("Tracks")
    scaling = "visible window" if frame.magnitude_scaling else "global"
    start, end = (format_field_value(year, NumericField.RELEASE_YEAR) for year in frame.x_domain)
    axis.set_title(f"Genre families over time ({start}-{end}, {scaling} scale)")
    if frame.enabled:
        axis.legend(loc="upper left", bbox_to_anchor=(1.0, 1.0), fontsize="small")
    return save_figure(output_path)
