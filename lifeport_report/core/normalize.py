# lifeport_report/core/normalize.py
from __future__ import annotations
import pandas as pd

def to_float(s) -> pd.Series:
    if not isinstance(s, pd.Series):
        s = pd.Series(s)
    if pd.api.types.is_numeric_dtype(s):
        return s.astype(float)
    return pd.to_numeric(s.astype(str).str.replace(",", ".", regex=False), errors="coerce")

def pick_column(df: pd.DataFrame, *candidates: str) -> str | None:
    """First candidate present in df (case-insensitive), returned with its real spelling."""
    cmap = {str(c).strip().lower(): c for c in df.columns}
    for name in candidates:
        if name is None:
            continue
        hit = cmap.get(str(name).strip().lower())
        if hit is not None:
            return hit
    return None
