from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402

from genre_families.preprocess.genres import GENRE_COLORS, GenreFamily  # noqa: E402


def family_color(family: GenreFamily | str) -> str:
    return GENRE_COLORS[GenreFamily.parse(family)]


def save_figure(path: Path, dpi: int = 120) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    plt.tight_layout()
    plt.savefig(path, dpi=dpi)
    plt.close()
    return path
