from pathlib import Path
import sys
import tempfile
import types
import unittest

import matplotlib
matplotlib.use("Agg")
import pandas as pd
from scipy.io import loadmat

from fakes import FakeLifePort, write_export
from lifeport_report.core.errors import BatchAbortedError
from lifeport_report.core.pipeline import run_report
from lifeport_report.core.consolidate import Consolidated
from lifeport_report.core.reports import preview, write_tables
from lifeport_report.main import main


def _cfg(**overrides):
    cfg = {
        "series": {"index": 3, "window": [0, 8]},
        "reports": {"format": "csv"},
        "output": {"report_name": "report.html", "title": "Test report"},
    }
    cfg.update(overrides)
    return cfg


class RunReportTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.files = [
            write_export(self.root / f"run{i}.txt", [10 * (i + 1) + k for k in range(12)],
                         serial=f"LP-{i}", minutes=60.0 * (i + 1))
            for i in range(5)
        ]
        self.out = self.root / "out"

    def tearDown(self):
        self._tmp.cleanup()

    def test_writes_html_figure_and_tables(self):
        result = run_report(self.files, FakeLifePort(), _cfg(), self.out)

        self.assertEqual(5, len(result.tables.summary))
        self.assertTrue(result.figure_path.exists())
        html = result.report_path.read_text(encoding="utf-8")
        self.assertIn("Test report", html)
        self.assertIn("data:image/png;base64,", html)
        self.assertIn("5 LifePort run(s) processed.", html)
        self.assertEqual({"device.csv", "organ.csv", "summary.csv"}, {p.name for p in result.exported})
        summary = pd.read_csv(self.out / "tables" / "summary.csv")
        self.assertEqual([f"run{i}.txt" for i in range(5)], summary["filename"].tolist())

    def test_stats_flow_and_hours(self):
        result = run_report(self.files, FakeLifePort(), _cfg(), self.out)
        stats = result.stats.set_index("column")
        # flow_mean per run: 15.5, 25.5, 35.5, 45.5, 55.5
        self.assertAlmostEqual(35.5, stats.loc["flow_mean", "median"])
        self.assertAlmostEqual(20.0, stats.loc["flow_mean", "iqr"])
        # 60..300 minutes -> 1..5 hours
        self.assertAlmostEqual(3.0, stats.loc["perfusion_dur [h]", "median"])
        self.assertAlmostEqual(2.0, stats.loc["perfusion_dur [h]", "iqr"])

    def test_mat_export(self):
        result = run_report(self.files, FakeLifePort(), _cfg(reports={"format": "both"}), self.out)
        self.assertEqual(6, len(result.exported))
        mat = loadmat(self.out / "tables" / "summary.mat", squeeze_me=True, struct_as_record=False)
        self.assertEqual(5, len(mat["lifeport_summary"].flow_mean))

    def test_fail_fast_propagates(self):
        (self.root / "run2.txt").write_text("", encoding="utf-8")
        with self.assertRaises(BatchAbortedError) as ctx:
            run_report(self.files, FakeLifePort(), _cfg(), self.out)
        self.assertEqual(2, len(ctx.exception.partial))
        self.assertFalse((self.out / "report.html").exists())

    def test_skip_mode_lists_failures(self):
        (self.root / "run2.txt").write_text("", encoding="utf-8")
        result = run_report(self.files, FakeLifePort(), _cfg(batch={"on_error": "skip"}), self.out)
        self.assertEqual(4, len(result.tables.device))
        self.assertIn("Skipped files", result.report_path.read_text(encoding="utf-8"))

    def test_series_index_clamped_and_missing_columns_tolerated(self):
        cfg = _cfg(series={"index": 40}, columns={"histogram": "not_there"})
        result = run_report(self.files[:2], FakeLifePort(), cfg, self.out)
        self.assertTrue(result.figure_path.exists())


class PreviewTests(unittest.TestCase):
    def test_column_subset_and_rows(self):
        table = pd.DataFrame({"a": range(10), "b": range(10), "c": range(10)})
        out = preview(table, ["c", "missing", "a"], rows=5)
        self.assertEqual(["c", "a"], out.columns.tolist())
        self.assertEqual(5, len(out))


class MainTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        (self.root / "data").mkdir()

    def tearDown(self):
        self._tmp.cleanup()
        sys.modules.pop("lifeport_main_test_pkg", None)

    def _write_cfg(self, module: str) -> Path:
        cfg = self.root / "config.yaml"
        cfg.write_text(
            "input:\n"
            f"  path: {self.root / 'data'}\n"
            "backend:\n"
            f"  module: {module}\n"
            "output:\n"
            f"  root: {self.root / 'out'}\n"
            "logging:\n"
            "  verbose: false\n",
            encoding="utf-8",
        )
        return cfg

    def test_no_inputs_exits_cleanly(self):
        self.assertEqual(0, main([str(self._write_cfg("lifeport_main_test_pkg"))]))

    def test_missing_backend(self):
        write_export(self.root / "data" / "a.txt", [1, 2, 3])
        self.assertEqual(2, main([str(self._write_cfg("lifeport_module_that_does_not_exist"))]))

    def test_end_to_end_with_module_backend(self):
        for i in range(3):
            write_export(self.root / "data" / f"r{i}.txt", [10, 11, 12, 13, 14])
        fake = FakeLifePort()
        mod = types.ModuleType("lifeport_main_test_pkg")
        mod.read_lifeport = lambda f, fmt: fake.read(Path(f))
        mod.process_lifeport = lambda rec, window_size: fake.process(rec)
        mod.get_lifeport_sum = lambda rec, ice_threshold: fake.summarize(rec)
        sys.modules["lifeport_main_test_pkg"] = mod

        self.assertEqual(0, main([str(self._write_cfg("lifeport_main_test_pkg"))]))
        self.assertTrue((self.root / "out" / "lifeport_report.html").exists())

    def test_corrupt_file_exits_non_zero(self):
        write_export(self.root / "data" / "a.txt", [10, 11, 12])
        (self.root / "data" / "b.txt").write_text("", encoding="utf-8")
        fake = FakeLifePort()
        mod = types.ModuleType("lifeport_main_test_pkg")
        mod.read_lifeport = lambda f, fmt: fake.read(Path(f))
        mod.process_lifeport = lambda rec, window_size: fake.process(rec)
        mod.get_lifeport_sum = lambda rec, ice_threshold: fake.summarize(rec)
        sys.modules["lifeport_main_test_pkg"] = mod

        self.assertEqual(1, main([str(self._write_cfg("lifeport_main_test_pkg"))]))


if __name__ == "__main__":
    unittest.main()


class _GappyLifePort(FakeLifePort):
    """Filtered flow with a hole in the middle of the run."""

    def process(self, record):
        out = super().process(record)
        out["data"].loc[len(out["data"]) // 2, "flow_filtered"] = float("nan")
        return out


class ReportConfigTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.files = [write_export(self.root / f"run{i}.txt", [10 + k for k in range(8)])
                      for i in range(4)]
        self.out = self.root / "out"

    def tearDown(self):
        self._tmp.cleanup()

    def test_empty_sections_fall_back_to_defaults(self):
        cfg = {"batch": None, "preview": None, "series": None, "plots": None,
               "output": None, "reports": None, "columns": None}
        result = run_report(self.files, FakeLifePort(), cfg, self.out)
        self.assertEqual(4, len(result.tables.summary))
        self.assertEqual("lifeport_report.html", result.report_path.name)

    def test_negative_series_index_counts_from_end(self):
        from lifeport_report.core.pipeline import _clamp_series_index
        self.assertEqual(3, _clamp_series_index(-1, 4))
        self.assertEqual(0, _clamp_series_index(-4, 4))
        self.assertEqual(0, _clamp_series_index(-9, 4))
        self.assertEqual(3, _clamp_series_index(7, 4))
        result = run_report(self.files, FakeLifePort(), _cfg(series={"index": -1}), self.out)
        self.assertTrue(result.figure_path.exists())

    def test_skip_mode_notes_use_input_positions(self):
        (self.root / "run1.txt").write_text("", encoding="utf-8")
        result = run_report(self.files, _GappyLifePort(), _cfg(batch={"on_error": "skip"}), self.out)
        self.assertEqual([0, 2, 3], result.batch.indices)
        html = result.report_path.read_text(encoding="utf-8")
        self.assertIn("#1 run1.txt", html)
        self.assertIn("Time series #2:", html)
        self.assertIn("Time series #3:", html)
        self.assertNotIn("Time series #1:", html)


class MatExportTests(unittest.TestCase):
    def test_long_and_colliding_column_names(self):
        long_name = "mean_ice_container_temperature_during_perfusion"
        df = pd.DataFrame({
            long_name: [1.0, 2.0],
            long_name + "_sd": [0.1, 0.2],
            "flow rate": [3.0, 4.0],
            "flow-rate": [5.0, 6.0],
            "side": ["left", None],
        })
        with tempfile.TemporaryDirectory() as tmpdir:
            written = write_tables(Consolidated(df, df, df, []), Path(tmpdir), fmt="mat")
            self.assertEqual(3, len(written))
            mat = loadmat(Path(tmpdir) / "summary.mat", squeeze_me=True, struct_as_record=False)

        fields = mat["lifeport_summary"]._fieldnames
        self.assertEqual(5, len(fields))
        self.assertEqual(5, len(set(fields)))
        self.assertTrue(all(len(f) <= 31 for f in fields))
        self.assertIn("flow_rate", fields)
        self.assertIn("flow_rate_2", fields)
        self.assertEqual(["left", ""], list(mat["lifeport_summary"].side))
