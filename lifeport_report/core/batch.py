# lifeport_report/core/batch.py
from __future__ import annotations
from pathlib import Path
from typing import Iterable, Literal
import logging

from .errors import BatchAbortedError, EmptyInputError
from .model import BatchResult, FileFailure, RunResult
from ..loaders.backend import split_summary

_LOG = logging.getLogger(__name__)

OnError = Literal["raise", "skip"]


def process_file(index: int, path: Path, backend) -> RunResult:
    """read -> process -> summarize for a single LifePort export."""
    if path.stat().st_size == 0:
        raise EmptyInputError(path)
    raw = backend.read(path)
    processed = backend.process(raw)
    device, organ, series, summary = split_summary(backend.summarize(processed))
    return RunResult(
        index=index,
        source_path=path,
        device=device,
        organ=organ,
        series=series,
        summary=summary,
    )


def _as_path(item) -> Path:
    return Path(getattr(item, "path", item))


def run_batch(items: Iterable, backend, on_error: OnError = "raise") -> BatchResult:
    """
    Sequentially run every input through the backend and collect the results.

    on_error="raise": stop at the first failing file and raise
    BatchAbortedError carrying the partial results (files before the failure).
    on_error="skip":  log the failure, record it in ``failures`` and continue.
    """
    if on_error not in ("raise", "skip"):
        raise ValueError(f"on_error must be 'raise' or 'skip', got {on_error!r}")

    result = BatchResult()
    for i, item in enumerate(items):
        path = _as_path(item)
        _LOG.info("[%d] %s", i, path.name)
        try:
            run = process_file(i, path, backend)
        except Exception as e:
            if on_error == "raise":
                _LOG.error("[%d] %s failed: %s", i, path.name, e)
                raise BatchAbortedError(i, path, result) from e
            _LOG.warning("[%d] %s skipped: %s", i, path.name, e)
            result.failures.append(FileFailure(index=i, path=path, error=e))
            continue
        result.append(run)

    _LOG.info("processed %d file(s), %d failure(s)", len(result), len(result.failures))
    return result
