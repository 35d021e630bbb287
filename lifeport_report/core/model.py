# lifeport_report/core/model.py
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
import pandas as pd

@dataclass(frozen=True)
class RunResult:
    index: int                # position in the input file list
    source_path: Path
    device: pd.DataFrame      # one row: serial number, device type, start/stop, duration, filename
    organ: pd.DataFrame       # one row: side, blood type, cross-clamp time (manual entry, may be NaN)
    series: pd.DataFrame      # one row per sample: raw + filtered channels, clock and elapsed time
    summary: pd.DataFrame     # one row: ice temperature, flow, resistance, duration, ...


@dataclass(frozen=True)
class FileFailure:
    index: int
    path: Path
    error: BaseException


@dataclass
class BatchResult:
    """Append-only accumulators; position i in every list belongs to ``sources[i]``."""
    devices: list[pd.DataFrame] = field(default_factory=list)
    organs: list[pd.DataFrame] = field(default_factory=list)
    series: list[pd.DataFrame] = field(default_factory=list)
    summaries: list[pd.DataFrame] = field(default_factory=list)
    sources: list[Path] = field(default_factory=list)
    indices: list[int] = field(default_factory=list)     # input-list position of each entry
    failures: list[FileFailure] = field(default_factory=list)

    def append(self, run: RunResult) -> None:
        self.devices.append(run.device)
        self.organs.append(run.organ)
        self.series.append(run.series)
        self.summaries.append(run.summary)
        self.sources.append(run.source_path)
        self.indices.append(run.index)

    def __len__(self) -> int:
        return len(self.sources)
