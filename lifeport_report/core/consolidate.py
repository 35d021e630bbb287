# lifeport_report/core/consolidate.py
from __future__ import annotations
from dataclasses import dataclass, field
import pandas as pd

from .model import BatchResult


@dataclass
class Consolidated:
    device: pd.DataFrame
    organ: pd.DataFrame
    summary: pd.DataFrame
    series: list[pd.DataFrame] = field(default_factory=list)   # one table per file, same positions

    def __len__(self) -> int:
        return len(self.device)


def _stack(frames: list[pd.DataFrame]) -> pd.DataFrame:
    if not frames:
        return pd.DataFrame()
    return pd.concat(frames, ignore_index=True)


def consolidate(batch: BatchResult) -> Consolidated:
    """Concatenate the per-file single-row tables in loop order."""
    return Consolidated(
        device=_stack(batch.devices),
        organ=_stack(batch.organs),
        summary=_stack(batch.summaries),
        series=list(batch.series),
    )
