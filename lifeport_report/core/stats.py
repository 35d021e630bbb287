# lifeport_report/core/stats.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Mapping, Sequence
import numpy as np
import pandas as pd

from .normalize import pick_column, to_float

MINUTES_PER_HOUR = 60.0


@dataclass(frozen=True)
class MedianIQR:
    median: float
    q1: float
    q3: float
    n: int

    @property
    def iqr(self) -> float:
        return self.q3 - self.q1

    def format(self, digits: int = 1) -> str:
        if self.n == 0:
            return "n/a"
        return f"{self.median:.{digits}f} (IQR {self.q1:.{digits}f}-{self.q3:.{digits}f})"


def median_iqr(values, scale: float = 1.0) -> MedianIQR:
    """
    Median and quartiles (linear interpolation) of the non-missing values,
    after multiplying by ``scale``.
    """
    x = to_float(values).dropna().to_numpy(dtype=float) * scale
    if x.size == 0:
        return MedianIQR(median=np.nan, q1=np.nan, q3=np.nan, n=0)
    q1, med, q3 = np.percentile(x, [25, 50, 75])
    return MedianIQR(median=float(med), q1=float(q1), q3=float(q3), n=int(x.size))


def minutes_to_hours(values) -> pd.Series:
    return to_float(values) / MINUTES_PER_HOUR


def describe_columns(table: pd.DataFrame,
                     columns: Sequence[str],
                     scales: Mapping[str, float] | None = None,
                     labels: Mapping[str, str] | None = None) -> pd.DataFrame:
    scales = scales or {}
    labels = labels or {}
    rows = []
    for name in columns:
        col = pick_column(table, name)
        if col is None:
            stat = MedianIQR(median=np.nan, q1=np.nan, q3=np.nan, n=0)
        else:
            stat = median_iqr(table[col], scale=float(scales.get(name, 1.0)))
        rows.append({
            "column": labels.get(name, name),
            "n": stat.n,
            "median": stat.median,
            "q1": stat.q1,
            "q3": stat.q3,
            "iqr": stat.iqr,
            "text": stat.format(),
        })
    return pd.DataFrame(rows, columns=["column", "n", "median", "q1", "q3", "iqr", "text"])
