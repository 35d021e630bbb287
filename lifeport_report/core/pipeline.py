# lifeport_report/core/pipeline.py
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
import logging
import pandas as pd

from .batch import run_batch
from .consolidate import Consolidated, consolidate
from .model import BatchResult
from .plotting import save_report_figure
from .reports import preview, render_html, write_tables
from .stats import MINUTES_PER_HOUR, describe_columns
from .timeseries import boundary_profile, select_series
from .normalize import pick_column

_LOG = logging.getLogger(__name__)

DEFAULT_COLUMNS = {
    # summary table
    "histogram": "ice_temp_mean",
    "scatter_x": "flow_mean",
    "scatter_y": "organ_resistance_mean",
    "flow": "flow_mean",
    "duration_minutes": "perfusion_dur",
    # time series
    "flow_raw": "flow",
    "flow_filtered": "flow_filtered",
    "time_passed": "time_passed",
    # previews
    "device_preview": ["serial_number", "device_type", "start", "stop", "duration", "filename"],
    "organ_preview": ["organ_side", "blood_type", "cross_clamp_time"],
    "summary_preview": ["ice_temp_mean", "flow_mean", "organ_resistance_mean", "perfusion_dur"],
}


@dataclass
class ReportResult:
    batch: BatchResult
    tables: Consolidated
    stats: pd.DataFrame
    report_path: Path | None = None
    figure_path: Path | None = None
    exported: list[Path] = field(default_factory=list)


def resolve_columns(cfg: dict) -> dict:
    cols = dict(DEFAULT_COLUMNS)
    cols.update((cfg or {}).get("columns", {}) or {})
    return cols


def compute_stats(tables: Consolidated, columns: dict) -> pd.DataFrame:
    """Median/IQR of the flow column and of the perfusion duration in hours."""
    flow, dur = columns["flow"], columns["duration_minutes"]
    return describe_columns(
        tables.summary,
        [flow, dur],
        scales={dur: 1.0 / MINUTES_PER_HOUR},
        labels={dur: f"{dur} [h]"},
    )


def _check_filtering(tables: Consolidated, indices: list[int], columns: dict) -> list[str]:
    """Notes for runs whose filtered flow has gaps other than at the boundaries, by input index."""
    notes = []
    raw, filt = columns["flow_raw"], columns["flow_filtered"]
    for i, ts in zip(indices, tables.series):
        rc, fc = pick_column(ts, raw), pick_column(ts, filt)
        if rc is None or fc is None:
            continue
        prof = boundary_profile(ts, rc, fc)
        if not prof.is_boundary_trimmed:
            _LOG.warning("series #%d: filtered flow has %d/%d valid samples, %d interior gaps",
                         i, prof.n_filtered, prof.n_raw, prof.interior_missing)
            notes.append(f"Time series #{i}: filtered flow is not trimmed only at the boundaries.")
    return notes


def _clamp_series_index(index: int, n: int) -> int:
    """Negative values count from the end; anything still out of range snaps to the nearest run."""
    pos = index + n if index < 0 else index
    if pos >= n:
        _LOG.warning("series index %d out of range (%d runs); using the last run", index, n)
        return n - 1
    if pos < 0:
        _LOG.warning("series index %d out of range (%d runs); using the first run", index, n)
        return 0
    return pos


def run_report(items, backend, cfg: dict, out_root: Path) -> ReportResult:
    """ingest -> consolidate -> statistics -> figure -> HTML report -> table export"""
    cfg = cfg or {}
    on_error = str((cfg.get("batch") or {}).get("on_error", "raise")).lower()
    columns = resolve_columns(cfg)
    out_root.mkdir(parents=True, exist_ok=True)

    batch = run_batch(items, backend, on_error=on_error)
    tables = consolidate(batch)
    stats = compute_stats(tables, columns)
    result = ReportResult(batch=batch, tables=tables, stats=stats)

    # selected run for the line plots
    scfg = cfg.get("series", {}) or {}
    index = int(scfg.get("index", 3))
    window = scfg.get("window", [0, 500]) or [0, None]
    start = int(window[0])
    stop = int(window[1]) if len(window) > 1 and window[1] is not None else None
    series = None
    label = ""
    if tables.series:
        pos = _clamp_series_index(index, len(tables.series))
        series = select_series(tables.series, pos)
        label = f"#{batch.indices[pos]} {batch.sources[pos].name}"

    pcfg = cfg.get("plots", {}) or {}
    result.figure_path = save_report_figure(
        tables.summary, series, columns, out_root / "figures.png",
        window=(start, stop), series_label=label,
        bins=int(pcfg.get("bins", 10)), dpi=int(pcfg.get("dpi", 160)),
    )

    rows = int((cfg.get("preview") or {}).get("rows", 5))
    previews = [
        ("Devices", preview(tables.device, columns["device_preview"], rows)),
        ("Organs", preview(tables.organ, columns["organ_preview"], rows)),
        ("Summary statistics", preview(tables.summary, columns["summary_preview"], rows)),
    ]
    notes = [f"{len(batch)} LifePort run(s) processed."]
    if batch.failures:
        notes.append(f"{len(batch.failures)} file(s) skipped after errors.")
    notes.extend(_check_filtering(tables, batch.indices, columns))

    ocfg = cfg.get("output", {}) or {}
    result.report_path = render_html(
        out_root / str(ocfg.get("report_name", "lifeport_report.html")),
        str(ocfg.get("title", "LifePort perfusion report")),
        previews, stats, result.figure_path, notes, batch.failures,
    )

    rcfg = cfg.get("reports", {}) or {}
    result.exported = write_tables(
        tables, out_root / "tables",
        fmt=str(rcfg.get("format", "csv")).lower(),
        mat_variable=str(rcfg.get("mat_variable", "lifeport")),
    )
    return result
