"""Tests for benchboard.bench.display — terminal rendering of the dashboard."""

from __future__ import annotations

import unittest
from unittest.mock import patch

from bench_test_helpers import make_benchmark, make_version

from benchboard.bench.display import (
    LiveSink,
    ProgressSink,
    VersionPalette,
    _PALETTE,
    density_plot,
    format_benchmark,
    format_dashboard,
    regression_plot,
)


def _mixed_benchmark():
    return make_benchmark(
        "layout",
        make_version("v1", [10.0, 12.0, 11.0, 13.0, 12.0, 11.0], message="1ms"),
        make_version("v2", status="running"),
        make_version("v3", status="waiting"),
    )


# ---------------------------------------------------------------------------
# Colours
# ---------------------------------------------------------------------------


class TestVersionPalette(unittest.TestCase):
    def test_first_entry_is_skipped(self) -> None:
        palette = VersionPalette()
        self.assertEqual(palette("v1"), _PALETTE[1])
        self.assertEqual(palette("v2"), _PALETTE[2])

    def test_colours_are_stable(self) -> None:
        palette = VersionPalette()
        first = palette("v1")
        palette("v2")
        self.assertEqual(palette("v1"), first)

    def test_wraps_around(self) -> None:
        palette = VersionPalette(["a", "b", "c"])
        self.assertEqual([palette(n) for n in ("x", "y", "z", "w")], ["b", "c", "a", "b"])


# ---------------------------------------------------------------------------
# Plots
# ---------------------------------------------------------------------------


class TestDensityPlot(unittest.TestCase):
    def test_shared_domain_starts_at_zero(self) -> None:
        versions = [
            make_version("fast", [10.0, 12.0, 11.0, 13.0]),
            make_version("slow", [40.0, 42.0, 41.0, 47.0]),
        ]
        plot = density_plot(versions)
        self.assertEqual(plot.x_domain[0], 0)
        self.assertGreaterEqual(plot.x_domain[1], 47.0)
        self.assertEqual([c.name for c in plot.curves], ["fast", "slow"])
        xs_fast = [x for x, _ in plot.curves[0].points]
        xs_slow = [x for x, _ in plot.curves[1].points]
        self.assertEqual(xs_fast, xs_slow)
        self.assertGreater(plot.y_max, 0)

    def test_versions_without_samples_have_no_curve(self) -> None:
        versions = [make_version("v1", [1.0, 2.0, 3.0]), make_version("v2", status="waiting")]
        plot = density_plot(versions)
        self.assertIsNotNone(plot.curves[0].points)
        self.assertIsNone(plot.curves[1].points)

    def test_no_samples_at_all(self) -> None:
        plot = density_plot([make_version("v1", status="waiting")])
        self.assertEqual(plot.x_domain, (0.0, 0.0))
        self.assertEqual(plot.y_max, 0.0)


class TestRegressionPlot(unittest.TestCase):
    def test_only_versions_with_regression(self) -> None:
        plot = regression_plot(_mixed_benchmark().versions)
        self.assertEqual([s.name for s in plot.series], ["v1"])
        series = plot.series[0]
        # Six samples make three windows.
        self.assertEqual([x for x, _ in series.points], [1.0, 2.0, 3.0])
        self.assertEqual(len(series.line), 3)
        self.assertEqual(plot.x_max, 3.0)
        # Largest window sums to 36, extended to the next round tick.
        self.assertEqual(plot.y_max, 40.0)

    def test_empty(self) -> None:
        plot = regression_plot([])
        self.assertEqual((plot.x_max, plot.y_max, plot.series), (0.0, 0.0, []))


# ---------------------------------------------------------------------------
# Dashboard text
# ---------------------------------------------------------------------------


class TestFormatBenchmark(unittest.TestCase):
    def test_versions_table(self) -> None:
        text = format_benchmark(_mixed_benchmark())
        self.assertIn("layout", text)
        self.assertIn("Running...", text)
        self.assertIn("1ms", text)
        for name in ("v1", "v2", "v3"):
            self.assertIn(name, text)

    def test_plots_once_a_version_ended(self) -> None:
        text = format_benchmark(_mixed_benchmark())
        self.assertIn("Density", text)
        self.assertIn("Regression", text)

    def test_no_plots_before_any_version_ended(self) -> None:
        benchmark = make_benchmark(
            "layout",
            make_version("v1", status="running"),
            make_version("v2", status="waiting"),
        )
        text = format_benchmark(benchmark)
        self.assertNotIn("Density", text)
        self.assertNotIn("Regression", text)

    def test_errored_message_shown(self) -> None:
        errored = make_version("v1", status="errored", message="timeout")
        benchmark = make_benchmark("layout", errored)
        self.assertIn("timeout", format_benchmark(benchmark))

    def test_palette_colours_names(self) -> None:
        text = format_benchmark(_mixed_benchmark(), palette=VersionPalette())
        self.assertIn("\x1b[", text)
        self.assertNotIn("\x1b[", format_benchmark(_mixed_benchmark()))


class TestFormatDashboard(unittest.TestCase):
    def test_progress_line(self) -> None:
        text = format_dashboard([_mixed_benchmark()], False, title="Suite")
        lines = text.splitlines()
        self.assertEqual(lines[0], "Suite")
        self.assertEqual(lines[1], "\u2550" * len("Suite"))
        self.assertEqual(lines[2], "1/3 versions complete (in progress)")
        self.assertTrue(text.endswith("\n"))

    def test_finished(self) -> None:
        benchmark = make_benchmark(
            "layout",
            make_version("v1", [1.0, 2.0, 3.0]),
            make_version("v2", status="errored", message="boom"),
        )
        text = format_dashboard([benchmark], True)
        self.assertIn("2/2 versions complete (finished)", text)

    def test_empty(self) -> None:
        text = format_dashboard([], True)
        self.assertIn("No benchmarks to run.", text)


# ---------------------------------------------------------------------------
# Sinks
# ---------------------------------------------------------------------------


class TestProgressSink(unittest.TestCase):
    @patch("benchboard.bench.display.click.echo")
    def test_prints_only_when_finished(self, mock_echo) -> None:
        sink = ProgressSink(title="Suite")
        running = make_benchmark("layout", make_version("v1", status="running"))
        ended = make_benchmark("layout", make_version("v1", [1.0, 2.0, 3.0]))

        sink([running], False)
        sink([ended], False)
        mock_echo.assert_not_called()

        sink([ended], True)
        mock_echo.assert_called_once()
        self.assertIn("1/1 versions complete (finished)", mock_echo.call_args[0][0])

    @patch("benchboard.bench.display.click.echo")
    def test_counts_transitions(self, mock_echo) -> None:
        sink = ProgressSink()
        running = make_benchmark("layout", make_version("v1", status="running"))
        ended = make_benchmark("layout", make_version("v1", [1.0, 2.0, 3.0]))
        sink([running], False)
        sink([ended], False)
        sink([ended], True)
        self.assertEqual(sink.transitions, 2)


class TestLiveSink(unittest.TestCase):
    @patch("benchboard.bench.display.click.clear")
    @patch("benchboard.bench.display.click.echo")
    def test_redraws_every_render(self, mock_echo, mock_clear) -> None:
        sink = LiveSink(title="Suite", color=False)
        benchmark = _mixed_benchmark()
        sink([benchmark], False)
        sink([benchmark], True)
        self.assertEqual(sink.renders, 2)
        self.assertEqual(mock_clear.call_count, 2)
        self.assertEqual(mock_echo.call_count, 2)
        self.assertIn("(in progress)", mock_echo.call_args_list[0][0][0])
        self.assertIn("(finished)", mock_echo.call_args_list[1][0][0])


if __name__ == "__main__":
    unittest.main()
