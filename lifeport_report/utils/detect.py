# lifeport_report/utils/detect.py
from __future__ import annotations
from pathlib import Path
from dataclasses import dataclass
from typing import Literal, Sequence
import fnmatch

DetectedKind = Literal["lifeport", "unknown"]

DEFAULT_PATTERNS: tuple[str, ...] = ("*.txt", "*.TXT")

@dataclass(frozen=True)
class DetectedItem:
    path: Path        # actual path on disk
    kind: DetectedKind

def detect_kind(p: Path, patterns: Sequence[str] = DEFAULT_PATTERNS) -> DetectedKind:
    """LifePort text exports are recognised by file name pattern only."""
    if any(fnmatch.fnmatchcase(p.name, pat) for pat in patterns):
        return "lifeport"
    return "unknown"

def discover_inputs(root: Path,
                    patterns: Sequence[str] = DEFAULT_PATTERNS,
                    recurse: bool = False,
                    max_files: int | None = None) -> list[DetectedItem]:
    """
    If 'root' is a file -> return that one item (if it matches).
    If 'root' is a folder -> collect matching files, sorted by path,
    truncated to the first 'max_files'.
    """
    items: list[DetectedItem] = []
    if root.is_file():
        if detect_kind(root, patterns) != "unknown":
            items.append(DetectedItem(root.resolve(), "lifeport"))
        return items

    seen: set[Path] = set()
    for pat in patterns:
        it = root.rglob(pat) if recurse else root.glob(pat)
        for p in it:
            if not p.is_file():
                continue
            rp = p.resolve()
            if rp in seen:
                continue
            seen.add(rp)
            items.append(DetectedItem(rp, "lifeport"))

    # deterministic ordering
    items.sort(key=lambda x: str(x.path))
    if max_files is not None:
        items = items[:max(0, int(max_files))]
    return items
