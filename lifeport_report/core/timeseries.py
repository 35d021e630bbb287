# lifeport_report/core/timeseries.py
from __future__ import annotations
from dataclasses import dataclass
import numpy as np
import pandas as pd

from .normalize import to_float


@dataclass(frozen=True)
class BoundaryProfile:
    n_raw: int
    n_filtered: int
    leading_missing: int
    trailing_missing: int
    interior_missing: int

    @property
    def is_boundary_trimmed(self) -> bool:
        """Filtered channel lost samples only at the start and end of the run."""
        return self.n_filtered < self.n_raw and self.interior_missing == 0


def select_series(series_list: list[pd.DataFrame], index: int) -> pd.DataFrame:
    if not 0 <= index < len(series_list):
        raise IndexError(f"time series #{index} requested, {len(series_list)} available")
    return series_list[index]


def sample_window(df: pd.DataFrame, start: int = 0, stop: int | None = None) -> pd.DataFrame:
    return df.iloc[start:stop].reset_index(drop=True)


def boundary_profile(df: pd.DataFrame, raw: str, filtered: str) -> BoundaryProfile:
    raw_ok = to_float(df[raw]).notna().to_numpy()
    filt_ok = to_float(df[filtered]).notna().to_numpy()
    n = filt_ok.size
    valid = np.nonzero(filt_ok)[0]
    if valid.size == 0:
        lead, trail, interior = n, 0, 0
    else:
        lead = int(valid[0])
        trail = int(n - 1 - valid[-1])
        interior = int(n - lead - trail - valid.size)
    return BoundaryProfile(
        n_raw=int(raw_ok.sum()),
        n_filtered=int(filt_ok.sum()),
        leading_missing=lead,
        trailing_missing=trail,
        interior_missing=interior,
    )
