# lifeport_report/core/errors.py
from __future__ import annotations
from pathlib import Path


class LifePortReportError(Exception):
    """Base class for errors raised by the report pipeline."""


class BackendError(LifePortReportError):
    """The external LifePort package is missing or returned something unusable."""


class EmptyInputError(LifePortReportError):
    def __init__(self, path: Path):
        super().__init__(f"{path.name}: file is empty")
        self.path = path


class BatchAbortedError(LifePortReportError):
    """
    Raised by the fail-fast batch loop. ``partial`` holds the results of the
    files processed before ``path``; the original failure is ``__cause__``.
    """

    def __init__(self, index: int, path: Path, partial):
        super().__init__(f"batch aborted at file #{index} ({path.name})")
        self.index = index
        self.path = path
        self.partial = partial
