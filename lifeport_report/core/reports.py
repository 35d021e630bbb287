# lifeport_report/core/reports.py
from __future__ import annotations
from pathlib import Path
from typing import Literal, Sequence
import base64
import html
import numpy as np
import pandas as pd
from scipy.io import savemat

from .consolidate import Consolidated
from .normalize import pick_column

ReportFormat = Literal["csv", "mat", "both", "none"]

_TABLES = ("device", "organ", "summary")


def preview(table: pd.DataFrame, columns: Sequence[str] | None = None, rows: int = 5) -> pd.DataFrame:
    """First ``rows`` rows restricted to the requested columns that exist."""
    if columns:
        present = [c for c in (pick_column(table, name) for name in columns) if c is not None]
        table = table[present]
    return table.head(rows)


# ---------- table export ----------
MAT_FIELD_MAX = 31   # savemat default (long_field_names=False)

def _mat_fields(columns) -> list[str]:
    """MATLAB-safe, unique struct field names (<= 31 chars) in column order."""
    import re
    fields: list[str] = []
    taken: set[str] = set()
    for col in columns:
        base = re.sub(r"[^A-Za-z0-9_]+", "_", str(col)).strip("_") or "col"
        if not base[0].isalpha():
            base = f"c_{base}"
        base = base[:MAT_FIELD_MAX]
        name, k = base, 1
        while name in taken:
            k += 1
            tag = f"_{k}"
            name = base[:MAT_FIELD_MAX - len(tag)] + tag
        taken.add(name)
        fields.append(name)
    return fields

def _mat_column(s: pd.Series) -> np.ndarray:
    """Numeric -> double (Nx1); anything else -> cell array of strings (Nx1), missing as ''."""
    if pd.api.types.is_numeric_dtype(s) and not pd.api.types.is_bool_dtype(s):
        return s.to_numpy(dtype=float).reshape(-1, 1)
    text = s.astype(object).where(s.notna(), "").map(str)
    return np.array(text.tolist(), dtype=object).reshape(-1, 1)

def _write_mat(df_out: pd.DataFrame, out_mat: Path, varname: str) -> None:
    mat_struct = {
        field: _mat_column(df_out[col])
        for field, col in zip(_mat_fields(df_out.columns), df_out.columns)
    }
    savemat(out_mat, {varname: mat_struct})

def write_tables(tables: Consolidated, out_dir: Path,
                 fmt: ReportFormat = "csv", mat_variable: str = "lifeport") -> list[Path]:
    """Export the device / organ / summary tables; returns the written paths."""
    written: list[Path] = []
    if fmt == "none":
        return written
    out_dir.mkdir(parents=True, exist_ok=True)
    for name in _TABLES:
        df_out = getattr(tables, name)
        base = out_dir / name
        if fmt in ("csv", "both"):
            df_out.to_csv(base.with_suffix(".csv"), index=False, encoding="utf-8")
            written.append(base.with_suffix(".csv"))
        if fmt in ("mat", "both"):
            _write_mat(df_out, base.with_suffix(".mat"), f"{mat_variable}_{name}")
            written.append(base.with_suffix(".mat"))
    for p in written:
        print(f"[OK] wrote table → {p}")
    return written


# ---------- HTML document ----------
_CSS = """
body { font-family: sans-serif; margin: 2em; max-width: 1100px; }
table { border-collapse: collapse; margin-bottom: 1.5em; font-size: 0.9em; }
th, td { border: 1px solid #bbb; padding: 3px 8px; }
th { background: #eee; }
img { max-width: 100%; }
.failure { color: #a00; }
"""

def _table_html(df: pd.DataFrame) -> str:
    if df.empty:
        return "<p><em>no rows</em></p>"
    return df.to_html(index=False, na_rep="", float_format=lambda v: f"{v:.2f}", border=0)

def _png_data_uri(path: Path) -> str:
    payload = base64.b64encode(Path(path).read_bytes()).decode("ascii")
    return f"data:image/png;base64,{payload}"

def render_html(out_path: Path,
                title: str,
                previews: Sequence[tuple[str, pd.DataFrame]],
                stats: pd.DataFrame,
                figure_path: Path | None = None,
                notes: Sequence[str] = (),
                failures: Sequence = ()) -> Path:
    """Write a single self-contained HTML report (figure embedded as base64)."""
    parts = [
        "<!DOCTYPE html>",
        "<html><head><meta charset='utf-8'>",
        f"<title>{html.escape(title)}</title>",
        f"<style>{_CSS}</style>",
        "</head><body>",
        f"<h1>{html.escape(title)}</h1>",
    ]
    for line in notes:
        parts.append(f"<p>{html.escape(str(line))}</p>")
    for heading, df in previews:
        parts.append(f"<h2>{html.escape(heading)}</h2>")
        parts.append(_table_html(df))
    parts.append("<h2>Median and interquartile range</h2>")
    parts.append(_table_html(stats))
    if figure_path is not None:
        parts.append("<h2>Figures</h2>")
        parts.append(f"<img alt='report figure' src='{_png_data_uri(figure_path)}'>")
    if failures:
        parts.append("<h2>Skipped files</h2><ul>")
        for f in failures:
            parts.append(f"<li class='failure'>#{f.index} {html.escape(f.path.name)}: {html.escape(str(f.error))}</li>")
        parts.append("</ul>")
    parts.append("</body></html>")

    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text("\n".join(parts), encoding="utf-8")
    print(f"[OK] wrote report: {title} → {out_path}")
    return out_path
