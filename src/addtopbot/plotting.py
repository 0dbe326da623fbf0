from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict

import matplotlib.pyplot as plt

logger = logging.getLogger(__name__)


def plot_outcome_counts(
    *,
    successes: int,
    errors: Dict[str, int],
    out_png: str | Path,
    title: str = "TOPBOT outcomes",
) -> None:
    """Bar chart of successful designations followed by each error code (sorted)."""
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    labels = ["TOP/BOT"] + sorted(errors)
    values = [int(successes)] + [int(errors[k]) for k in sorted(errors)]
    colors = ["tab:green"] + ["tab:red"] * len(errors)

    plt.figure()
    plt.bar(range(len(labels)), values, color=colors)
    plt.ylabel("Record count")
    plt.title(title)
    plt.xticks(range(len(labels)), labels, rotation=30, ha="right")
    plt.tight_layout()
    plt.savefig(out_png, dpi=160)
    plt.close()
    logger.debug("Wrote outcome plot: %s", out_png)
