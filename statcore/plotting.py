"""Diagnostic figures for regression, simulation and cross-tab results.

Every plotting function writes a PNG and returns its path; figures are closed
after saving so batch runs do not accumulate open figures.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure

from .schema import CrossTabResult, RegressionResult, SimulationResult
from .simulation import histogram_bins, summarize

FIGURE_DPI = 150


@dataclass(frozen=True)
class StyleConfig:
    BASE_FONTSIZE: float = 11.0
    TITLE_FONTSIZE: float = 13.0
    LINEWIDTH: float = 1.8
    MARKERSIZE: float = 5.0
    ALPHA_POINTS: float = 0.6
    GRID_ALPHA: float = 0.25
    FIGSIZE_SINGLE: tuple = (7.0, 4.2)
    FIGSIZE_WIDE: tuple = (11.0, 4.2)


STYLE = StyleConfig()
_STYLE_STATE = {"initialized": False}


def setup_plot_style() -> None:
    """Apply shared rcParams once per process."""
    if _STYLE_STATE["initialized"]:
        return
    plt.rcParams.update(
        {
            "font.size": STYLE.BASE_FONTSIZE,
            "axes.titlesize": STYLE.TITLE_FONTSIZE,
            "axes.spines.top": False,
            "axes.spines.right": False,
            "grid.alpha": STYLE.GRID_ALPHA,
            "grid.linestyle": ":",
            "legend.frameon": False,
        }
    )
    _STYLE_STATE["initialized"] = True


def _save(fig: Figure, path: str) -> str:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    fig.savefig(path, dpi=FIGURE_DPI, bbox_inches="tight")
    plt.close(fig)
    return path


def plot_regression_diagnostics(
    result: RegressionResult, path: str = "output/regression_diagnostics.png"
) -> str:
    """Residuals-vs-fitted and actual-vs-fitted panels.

    Args:
        result (RegressionResult): Fitted model.
        path (str): Destination PNG path.

    Returns:
        str: ``path``.
    """
    setup_plot_style()
    fitted = np.asarray(result.fitted)
    residuals = np.asarray(result.residuals)
    actual = np.asarray(result.y_actual)

    fig, (ax_res, ax_fit) = plt.subplots(1, 2, figsize=STYLE.FIGSIZE_WIDE)

    ax_res.scatter(fitted, residuals, s=STYLE.MARKERSIZE ** 2, alpha=STYLE.ALPHA_POINTS)
    ax_res.axhline(0.0, color="black", linewidth=1.0, linestyle="--")
    ax_res.set_xlabel("Fitted")
    ax_res.set_ylabel("Residual")
    ax_res.set_title("Residuals vs fitted")
    ax_res.grid(True)

    ax_fit.scatter(fitted, actual, s=STYLE.MARKERSIZE ** 2, alpha=STYLE.ALPHA_POINTS)
    if fitted.size:
        lo = float(min(fitted.min(), actual.min()))
        hi = float(max(fitted.max(), actual.max()))
        ax_fit.plot([lo, hi], [lo, hi], color="tab:red", linewidth=STYLE.LINEWIDTH)
    ax_fit.set_xlabel("Fitted")
    ax_fit.set_ylabel(result.dependent)
    ax_fit.set_title(f"Actual vs fitted (R² = {result.r_squared:.3f})")
    ax_fit.grid(True)

    fig.tight_layout()
    return _save(fig, path)


def plot_simulation(
    result: SimulationResult, path: str = "output/simulation.png"
) -> str:
    """Outcome histogram with mean and 5/95 percentile markers, plus the
    running-mean convergence trace."""
    setup_plot_style()
    summary = summarize(result.values)
    bins = histogram_bins(result.values)

    fig, (ax_hist, ax_conv) = plt.subplots(1, 2, figsize=STYLE.FIGSIZE_WIDE)

    if bins:
        ax_hist.bar(
            [b.start for b in bins],
            [b.count for b in bins],
            width=[b.end - b.start for b in bins],
            align="edge",
            edgecolor="white",
        )
        for x, style, label in (
            (summary.mean, "-", "mean"),
            (summary.p5, ":", "5th pct"),
            (summary.p95, ":", "95th pct"),
        ):
            ax_hist.axvline(x, color="tab:red", linestyle=style, linewidth=STYLE.LINEWIDTH, label=label)
        ax_hist.legend()
    ax_hist.set_xlabel(result.expression)
    ax_hist.set_ylabel("Count")
    ax_hist.set_title("Outcome distribution")

    ax_conv.plot(np.arange(1, len(result.convergence) + 1), result.convergence, linewidth=STYLE.LINEWIDTH)
    ax_conv.set_xlabel("Trace point")
    ax_conv.set_ylabel("Running mean")
    ax_conv.set_title("Convergence")
    ax_conv.grid(True)

    fig.tight_layout()
    return _save(fig, path)


def plot_crosstab_heatmap(
    result: CrossTabResult, path: str = "output/crosstab.png"
) -> str:
    setup_plot_style()
    matrix = np.asarray(result.display_matrix, dtype=float)
    rows, cols = len(result.row_labels), len(result.col_labels)
    fig, ax = plt.subplots(figsize=(max(4.0, 1.2 * cols + 2), max(3.0, 0.6 * rows + 2)))
    # colour intensity relative to the largest raw aggregate
    intensity = np.asarray(result.matrix, dtype=float) / result.max_value
    ax.imshow(intensity, cmap="Blues", vmin=0.0, vmax=1.0, aspect="auto")
    suffix = "" if result.display == "counts" else "%"
    for i in range(rows):
        for j in range(cols):
            ax.text(j, i, f"{matrix[i, j]:.4g}{suffix}", ha="center", va="center")
    ax.set_xticks(range(cols))
    ax.set_xticklabels(result.col_labels)
    ax.set_yticks(range(rows))
    ax.set_yticklabels(result.row_labels)
    ax.set_title(f"{result.aggregation} ({result.display})")
    fig.tight_layout()
    return _save(fig, path)
