"""Residual history plots.

Functions
---------
plot_residual_history
    Semi-log plot of residual norms against iteration, one line per
    time step.
"""

from __future__ import annotations

import os
from typing import Any, Sequence

import numpy as np

from solidcoupling.convergence.residual_log import ResidualRecord, read_residual_log


def plot_residual_history(
    records: Sequence[ResidualRecord] | str | os.PathLike,
    ax: Any = None,
    tolerance: float | None = None,
    title: str = "Coupling residual",
) -> Any:
    """Plot residual norms per time step.

    Args:
        records: Residual records, or the path of a residual log.
        ax: Matplotlib axes.  Created if ``None``.
        tolerance: Draw a horizontal line at this value.
        title: Axes title.

    Returns:
        Matplotlib axes.
    """
    import matplotlib.pyplot as plt

    if isinstance(records, (str, os.PathLike)):
        records = read_residual_log(records)

    if ax is None:
        _, ax = plt.subplots(figsize=(8, 5))

    by_time: dict[float, list[ResidualRecord]] = {}
    for r in records:
        by_time.setdefault(r.time, []).append(r)

    for time, rows in by_time.items():
        it = np.array([r.iteration for r in rows])
        norm = np.array([r.norm for r in rows])
        # zero norms cannot be drawn on a log axis
        norm = np.maximum(norm, 1e-300)
        ax.semilogy(it, norm, "o-", markersize=3, linewidth=1.0, label=f"t = {time:g}")

    if tolerance is not None:
        ax.axhline(tolerance, color="k", linestyle="--", linewidth=0.8, label="tolerance")

    ax.set_xlabel("Iteration")
    ax.set_ylabel("Residual norm")
    ax.set_title(title)
    if by_time and len(by_time) <= 10:
        ax.legend(fontsize="small")
    return ax
