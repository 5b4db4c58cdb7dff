"""Tests for benchboard.cli — the run and list commands."""

from __future__ import annotations

import json
import logging
import tempfile
import unittest
from pathlib import Path

from click.testing import CliRunner

from benchboard import __version__
from benchboard.cli import main

CATALOG_YAML = """\
name: "Sample suite"
benchmarks:
  parse:
    v1:
      callable: "bench_test_helpers:constant_samples"
      kwargs:
        count: 6
        value: 4.0
    v2:
      callable: "bench_test_helpers:async_constant_samples"
      kwargs:
        count: 10
        value: 2.0
  render:
    current: "true"
"""


class CliTestCase(unittest.TestCase):
    """Writes a catalog to a temp dir and resets logging afterwards."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmpdir = Path(self._tmp.name)
        self.catalog = self.write_catalog(CATALOG_YAML)

    def tearDown(self) -> None:
        logger = logging.getLogger("benchboard")
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        self._tmp.cleanup()

    def write_catalog(self, text: str, name: str = "catalog.yaml") -> Path:
        path = self.tmpdir / name
        path.write_text(text)
        return path


# ---------------------------------------------------------------------------
# Help and version
# ---------------------------------------------------------------------------


class TestHelp(unittest.TestCase):
    def test_main_help(self) -> None:
        result = CliRunner().invoke(main, ["--help"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("run", result.output)
        self.assertIn("list", result.output)

    def test_run_help(self) -> None:
        result = CliRunner().invoke(main, ["run", "--help"])
        self.assertEqual(result.exit_code, 0)
        for option in ("--filter", "--iterations", "--timeout", "--live", "--json"):
            self.assertIn(option, result.output)

    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn(__version__, result.output)


# ---------------------------------------------------------------------------
# list
# ---------------------------------------------------------------------------


class TestList(CliTestCase):
    def test_lists_in_run_order(self) -> None:
        result = CliRunner().invoke(main, ["list", str(self.catalog)])
        self.assertEqual(result.exit_code, 0, result.output)
        lines = result.output.splitlines()
        self.assertEqual(lines[0], "parse")
        self.assertIn("1. v1", lines[1])
        self.assertIn("bench_test_helpers:constant_samples", lines[1])
        self.assertIn("2. v2", lines[2])
        self.assertEqual(lines[3], "render")
        self.assertIn("3. current", lines[4])
        self.assertIn("3 versions across 2 benchmarks", result.output)

    def test_filter(self) -> None:
        result = CliRunner().invoke(main, ["list", str(self.catalog), "--filter", "render"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertNotIn("parse", result.output)
        self.assertIn("1 versions across 1 benchmarks", result.output)

    def test_filter_without_match(self) -> None:
        result = CliRunner().invoke(main, ["list", str(self.catalog), "--filter", "pars"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("No benchmarks to run.", result.output)

    def test_missing_catalog(self) -> None:
        result = CliRunner().invoke(main, ["list", str(self.tmpdir / "missing.yaml")])
        self.assertNotEqual(result.exit_code, 0)


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


class TestRun(CliTestCase):
    def test_json_output(self) -> None:
        result = CliRunner().invoke(main, ["run", str(self.catalog), "--json"])
        self.assertEqual(result.exit_code, 0, result.output)
        payload = json.loads(result.output)

        self.assertEqual(payload["name"], "Sample suite")
        self.assertTrue(payload["finished"])
        self.assertEqual([b["name"] for b in payload["benchmarks"]], ["parse", "render"])

        v1, v2 = payload["benchmarks"][0]["versions"]
        self.assertEqual(v1["status"], "ended")
        self.assertEqual(v1["message"], "4ms")
        self.assertEqual(v1["samples"], [4.0] * 6)
        self.assertEqual(len(v1["regression"]["data"]), 3)
        self.assertEqual(v2["message"], "2ms")

        current = payload["benchmarks"][1]["versions"][0]
        self.assertEqual(current["status"], "ended")
        self.assertEqual(len(current["samples"]), 10)

    def test_json_with_filter_and_iterations(self) -> None:
        result = CliRunner().invoke(
            main,
            ["run", str(self.catalog), "--json", "--filter", "#render", "--iterations", "3"],
        )
        self.assertEqual(result.exit_code, 0, result.output)
        payload = json.loads(result.output)
        self.assertEqual([b["name"] for b in payload["benchmarks"]], ["render"])
        self.assertEqual(len(payload["benchmarks"][0]["versions"][0]["samples"]), 3)

    def test_dashboard_printed_when_finished(self) -> None:
        result = CliRunner().invoke(main, ["run", str(self.catalog), "-q"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Sample suite", result.output)
        self.assertIn("3/3 versions complete (finished)", result.output)
        self.assertIn("Regression", result.output)

    def test_failing_version_does_not_stop_the_run(self) -> None:
        catalog = self.write_catalog(
            "benchmarks:\n"
            "  exits:\n"
            "    broken: \"exit 3\"\n"
            "    fine: \"true\"\n",
            name="failing.yaml",
        )
        result = CliRunner().invoke(main, ["run", str(catalog), "--iterations", "3"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("errored", result.output)
        self.assertIn("command exited with status 3", result.output)
        self.assertIn("2/2 versions complete (finished)", result.output)

    def test_title_defaults_to_file_stem(self) -> None:
        catalog = self.write_catalog('benchmarks:\n  quick:\n    v1: "true"\n', name="nightly.yaml")
        result = CliRunner().invoke(main, ["run", str(catalog), "-q", "--iterations", "3"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertTrue(result.output.startswith("nightly"))

    def test_invalid_catalog(self) -> None:
        catalog = self.write_catalog("name: empty\n", name="empty.yaml")
        result = CliRunner().invoke(main, ["run", str(catalog)])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Invalid benchmark catalog", result.output)

    def test_zero_overrides_rejected(self) -> None:
        for option in ("--iterations", "--timeout"):
            result = CliRunner().invoke(main, ["run", str(self.catalog), option, "0"])
            self.assertEqual(result.exit_code, 1, option)
            self.assertIn("Invalid benchmark catalog", result.output)
            self.assertIn(option.lstrip("-") + ":", result.output)

    def test_malformed_catalog(self) -> None:
        catalog = self.write_catalog("benchmarks:\n  - not\n  - a mapping\n", name="bad.yaml")
        result = CliRunner().invoke(main, ["run", str(catalog)])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error:", result.output)

    def test_log_file(self) -> None:
        log_file = self.tmpdir / "run.log"
        result = CliRunner().invoke(
            main,
            ["run", str(self.catalog), "--json", "--filter", "parse", "--log-file", str(log_file)],
        )
        self.assertEqual(result.exit_code, 0, result.output)
        logging.getLogger("benchboard").handlers[-1].flush()
        text = log_file.read_text()
        self.assertIn("parse/v1", text)
        self.assertIn("DEBUG", text)


if __name__ == "__main__":
    unittest.main()
