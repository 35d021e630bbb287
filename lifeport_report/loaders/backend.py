# lifeport_report/loaders/backend.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Sequence
import importlib
import logging
import pandas as pd

from ..core.errors import BackendError

_LOG = logging.getLogger(__name__)

# ----- defaults (names of the entry points in the external LifePort package) -----
DEFAULT_MODULE = "swt"
DEFAULT_READ = "read_lifeport"
DEFAULT_PROCESS = "process_lifeport"
DEFAULT_SUMMARIZE = "get_lifeport_sum"
DEFAULT_FORMAT = "txt"
DEFAULT_WINDOW_SIZE = 15
DEFAULT_ICE_THRESHOLD = 2.5

_SUMMARY_KEYS = (
    ("device",),
    ("organ",),
    ("data", "series"),
    ("summary",),
)


@dataclass(frozen=True)
class LifePortBackend:
    """Bound read -> process -> summarize calls with their fixed parameters."""
    read_fn: Callable[..., Any]
    process_fn: Callable[..., Any]
    summarize_fn: Callable[..., Any]
    file_format: str = DEFAULT_FORMAT
    window_size: int = DEFAULT_WINDOW_SIZE
    ice_threshold: float = DEFAULT_ICE_THRESHOLD

    def read(self, path: Path):
        return self.read_fn(str(path), self.file_format)

    def process(self, record):
        return self.process_fn(record, window_size=self.window_size)

    def summarize(self, record):
        return self.summarize_fn(record, ice_threshold=self.ice_threshold)


def load_backend(cfg: dict) -> LifePortBackend:
    """
    Import the external LifePort package named in ``backend.module`` and bind
    its three entry points. Raises BackendError when the module or any entry
    point cannot be found.
    """
    bcfg = (cfg or {}).get("backend", {}) or {}
    module_name = str(bcfg.get("module", DEFAULT_MODULE))
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise BackendError(f"cannot import LifePort package '{module_name}': {e}") from e

    fns = {}
    for role, default in (("read", DEFAULT_READ), ("process", DEFAULT_PROCESS), ("summarize", DEFAULT_SUMMARIZE)):
        attr = str(bcfg.get(role, default))
        fn = getattr(module, attr, None)
        if not callable(fn):
            raise BackendError(f"'{module_name}' has no callable '{attr}' (configured as backend.{role})")
        fns[role] = fn

    backend = LifePortBackend(
        read_fn=fns["read"],
        process_fn=fns["process"],
        summarize_fn=fns["summarize"],
        file_format=str(bcfg.get("format", DEFAULT_FORMAT)),
        window_size=int(bcfg.get("window_size", DEFAULT_WINDOW_SIZE)),
        ice_threshold=float(bcfg.get("ice_threshold", DEFAULT_ICE_THRESHOLD)),
    )
    _LOG.info("backend %s (window_size=%d, ice_threshold=%.2f)",
              module_name, backend.window_size, backend.ice_threshold)
    return backend


def _as_frame(part, name: str) -> pd.DataFrame:
    if isinstance(part, pd.DataFrame):
        return part
    if isinstance(part, pd.Series):
        return part.to_frame().T.reset_index(drop=True)
    if isinstance(part, Mapping):
        if name == "data":
            return pd.DataFrame(dict(part))   # column name -> samples
        return pd.DataFrame([dict(part)])
    raise BackendError(f"summary part '{name}' has unsupported type {type(part).__name__}")


def split_summary(result) -> tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame, pd.DataFrame]:
    """
    Split the summarize() output into (device, organ, series, summary).
    Accepts a 4-item sequence in that order or a mapping keyed by
    device / organ / data (or series) / summary.
    """
    if isinstance(result, Mapping):
        parts = []
        for keys in _SUMMARY_KEYS:
            found = next((k for k in keys if k in result), None)
            if found is None:
                raise BackendError(f"summary output has no '{keys[0]}' entry (keys: {sorted(map(str, result))})")
            parts.append(result[found])
    elif isinstance(result, Sequence) and not isinstance(result, (str, bytes)):
        if len(result) != 4:
            raise BackendError(f"summary output must have 4 parts, got {len(result)}")
        parts = list(result)
    else:
        raise BackendError(f"unsupported summary output type {type(result).__name__}")

    device, organ, series, summary = (
        _as_frame(p, keys[0]) for p, keys in zip(parts, _SUMMARY_KEYS)
    )
    return device, organ, series, summary
