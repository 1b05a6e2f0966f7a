"""Score distribution plot."""
from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

FONT_TITLE = 14
FONT_AXIS_LABEL = 12
GRID_ALPHA = 0.3
COLOR_BLUE = "#3b4cc0"
COLOR_RED = "#b40426"


def plot_score_histogram(
    scores: np.ndarray,
    out_path: Path,
    *,
    expected_score: float | None = None,
    bins: int = 40,
    dpi: int = 200,
) -> None:
    fig, ax = plt.subplots(figsize=(10, 6))
    ax.hist(scores, bins=bins, color=COLOR_BLUE, alpha=0.8)
    ax.axvline(float(np.mean(scores)), color=COLOR_BLUE, linestyle="--", linewidth=1.5,
               label=f"Simulated mean {np.mean(scores):.1f}")
    if expected_score is not None:
        ax.axvline(expected_score, color=COLOR_RED, linewidth=1.5,
                   label=f"Solved expectation {expected_score:.1f}")

    ax.set_xlabel("Total Score", fontsize=FONT_AXIS_LABEL)
    ax.set_ylabel("Games", fontsize=FONT_AXIS_LABEL)
    ax.set_title(f"Score Distribution ({len(scores):,d} games)", fontsize=FONT_TITLE, fontweight="bold")
    ax.grid(alpha=GRID_ALPHA)
    ax.legend()

    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(out_path, dpi=dpi)
    plt.close(fig)
