# lifeport_report/core/plotting.py
from __future__ import annotations
from pathlib import Path
import logging
import matplotlib.pyplot as plt
import pandas as pd

from .normalize import pick_column, to_float
from .timeseries import sample_window

_LOG = logging.getLogger(__name__)


def _no_data(ax, title: str, reason: str):
    ax.set_title(title)
    ax.text(0.5, 0.5, reason, ha="center", va="center", transform=ax.transAxes, fontsize=9)
    ax.set_xticks([])
    ax.set_yticks([])
    _LOG.info("%s: %s", title, reason)


def _histogram(ax, summary: pd.DataFrame, column: str, bins: int):
    title = f"Histogram: {column}"
    col = pick_column(summary, column)
    if col is None:
        return _no_data(ax, title, f"column '{column}' missing")
    values = to_float(summary[col]).dropna()
    if values.empty:
        return _no_data(ax, title, "no numeric data")
    ax.hist(values.to_numpy(), bins=bins, edgecolor="black", alpha=0.8)
    ax.set_title(title)
    ax.set_xlabel(column)
    ax.set_ylabel("Count")
    ax.grid(True, alpha=0.3)


def _scatter(ax, summary: pd.DataFrame, x_col: str, y_col: str):
    title = f"{y_col} vs {x_col}"
    xc, yc = pick_column(summary, x_col), pick_column(summary, y_col)
    if xc is None or yc is None:
        missing = x_col if xc is None else y_col
        return _no_data(ax, title, f"column '{missing}' missing")
    xy = pd.DataFrame({"x": to_float(summary[xc]), "y": to_float(summary[yc])}).dropna()
    if xy.empty:
        return _no_data(ax, title, "no numeric data")
    ax.scatter(xy["x"], xy["y"], s=18)
    ax.set_title(title)
    ax.set_xlabel(x_col)
    ax.set_ylabel(y_col)
    ax.grid(True, alpha=0.3)


def _line(ax, df: pd.DataFrame | None, y_col: str, time_col: str | None, title: str):
    if df is None or df.empty:
        return _no_data(ax, title, "no time series selected")
    yc = pick_column(df, y_col)
    if yc is None:
        return _no_data(ax, title, f"column '{y_col}' missing")
    y = to_float(df[yc])
    tc = pick_column(df, time_col) if time_col else None
    if tc is not None:
        x = to_float(df[tc])
        xlabel = tc
    else:
        x = pd.Series(range(len(df)), dtype=float)
        xlabel = "Sample"
    ax.plot(x.to_numpy(), y.to_numpy(), linewidth=1.0)
    ax.set_title(title)
    ax.set_xlabel(xlabel)
    ax.set_ylabel(y_col)
    ax.grid(True, alpha=0.3)


def save_report_figure(summary: pd.DataFrame,
                       series: pd.DataFrame | None,
                       columns: dict,
                       out_path: Path,
                       window: tuple[int, int | None] = (0, 500),
                       series_label: str = "",
                       bins: int = 10,
                       dpi: int = 160) -> Path:
    """
    2x2 grid: histogram and scatter of summary columns on top, raw and
    filtered flow of one run (truncated to ``window``) below.
    """
    out_path.parent.mkdir(parents=True, exist_ok=True)
    win = sample_window(series, *window) if series is not None else None
    time_col = columns.get("time_passed")
    suffix = f" ({series_label})" if series_label else ""

    fig, axes = plt.subplots(2, 2, figsize=(12, 8))
    _histogram(axes[0, 0], summary, columns["histogram"], bins)
    _scatter(axes[0, 1], summary, columns["scatter_x"], columns["scatter_y"])
    _line(axes[1, 0], win, columns["flow_raw"], time_col, f"Raw flow{suffix}")
    _line(axes[1, 1], win, columns["flow_filtered"], time_col, f"Filtered flow{suffix}")
    fig.tight_layout()
    fig.savefig(out_path, dpi=dpi)
    plt.close(fig)
    print(f"[OK] figure → {out_path}")
    return out_path
