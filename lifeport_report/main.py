# lifeport_report/main.py
from __future__ import annotations
from pathlib import Path
import argparse
import logging
import sys
import yaml

from lifeport_report.core.errors import BackendError, BatchAbortedError
from lifeport_report.core.pipeline import run_report
from lifeport_report.loaders.backend import load_backend
from lifeport_report.utils.detect import DEFAULT_PATTERNS, discover_inputs

DEFAULT_CONFIG = Path(__file__).resolve().parent / "config.yaml"

_LOG = logging.getLogger("lifeport_report")

def load_config(cfg_path: Path) -> dict:
    with cfg_path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}

def setup_logging(cfg: dict) -> None:
    lcfg = cfg.get("logging", {}) or {}
    level = str(lcfg.get("level", "INFO")).upper()
    if not bool(lcfg.get("verbose", True)):
        level = "WARNING"
    logging.basicConfig(level=getattr(logging, level, logging.INFO),
                        format="[%(levelname)s] %(name)s: %(message)s")

def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="LifePort perfusion batch report")
    parser.add_argument("config", nargs="?", type=Path, default=DEFAULT_CONFIG,
                        help="path to config.yaml")
    args = parser.parse_args(argv)

    # ---------- config ----------
    cfg = load_config(args.config)
    setup_logging(cfg)

    icfg = cfg.get("input", {}) or {}
    in_path = Path(icfg.get("path", "data")).resolve()
    recurse = bool(icfg.get("recurse", False))
    patterns = tuple(icfg.get("patterns") or DEFAULT_PATTERNS)
    max_files = icfg.get("max_files")
    out_root = Path((cfg.get("output", {}) or {}).get("root", "out")).resolve()
    _LOG.info("[cfg] input=%s (recurse=%s, max_files=%s)", in_path, recurse, max_files)
    _LOG.info("[cfg] output=%s", out_root)

    # ---------- discover ----------
    detected = discover_inputs(in_path, patterns=patterns, recurse=recurse,
                               max_files=int(max_files) if max_files is not None else None)
    if not detected:
        _LOG.info("No LifePort exports found under: %s", in_path)
        return 0
    _LOG.info("[detector] found %d input(s)", len(detected))

    # ---------- run ----------
    try:
        backend = load_backend(cfg)
        result = run_report(detected, backend, cfg, out_root)
    except BackendError as e:
        _LOG.error("%s", e)
        return 2
    except BatchAbortedError as e:
        _LOG.error("%s: %s", e, e.__cause__)
        _LOG.error("remove or fix %s and rerun (%d file(s) were processed before it)",
                   e.path, len(e.partial))
        return 1

    _LOG.info("[summary] %d run(s) reported → %s", len(result.batch), result.report_path)
    return 0

if __name__ == "__main__":
    sys.exit(main())
