"""Terminal rendering of the benchmark dashboard.

Everything here is a pure function of a registry snapshot, except the
two sinks at the bottom, which decide *when* to print:

- ``ProgressSink`` counts state changes and prints the full dashboard
  once the suite has finished.
- ``LiveSink`` clears the terminal and redraws the whole dashboard on
  every render call.

Density curves for the versions of one benchmark share a single x
domain computed over all of their samples combined, so curves stay
directly comparable.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence

import click

from benchboard.bench.registry import (
    RUNNING,
    WAITING,
    BenchmarkSnapshot,
    VersionSnapshot,
)
from benchboard.bench.stats import (
    density_domain,
    kernel_density,
    nice_domain,
    regression_line,
)
from benchboard.formatting import (
    format_ms,
    format_number,
    format_sample,
    format_section_header,
    format_sparkline,
    format_status_icon,
    format_table,
)

# Terminal counterpart of a ten-colour categorical palette.
_PALETTE = (
    "blue",
    "yellow",
    "green",
    "red",
    "magenta",
    "cyan",
    "bright_yellow",
    "bright_green",
    "bright_red",
    "bright_magenta",
)


# ---------------------------------------------------------------------------
# Colours
# ---------------------------------------------------------------------------


class VersionPalette:
    """Ordinal colour scale keyed by version name.

    Names get colours in first-seen order and keep them for the rest of
    the session, so a version has the same colour in every benchmark.
    The first palette entry is reserved and never handed out.
    """

    def __init__(self, colors: Sequence[str] = _PALETTE) -> None:
        self._colors = tuple(colors)
        self._assigned: dict[str, str] = {}
        self._next = 1

    def __call__(self, name: str) -> str:
        if name not in self._assigned:
            self._assigned[name] = self._colors[self._next % len(self._colors)]
            self._next += 1
        return self._assigned[name]


# ---------------------------------------------------------------------------
# Plot descriptions
# ---------------------------------------------------------------------------


@dataclass
class DensityCurve:
    name: str
    points: list[tuple[float, float]] | None  # None until the version has samples


@dataclass
class DensityPlot:
    """Density curves of every version of one benchmark."""

    x_domain: tuple[float, float]
    y_max: float
    curves: list[DensityCurve] = field(default_factory=list)


@dataclass
class RegressionSeries:
    name: str
    points: list[tuple[float, float]]
    line: list[tuple[float, float]]


@dataclass
class RegressionPlot:
    """Scatter points and fitted lines of every ended version."""

    x_max: float
    y_max: float
    series: list[RegressionSeries] = field(default_factory=list)


def density_plot(versions: Sequence[VersionSnapshot]) -> DensityPlot:
    """Compute density curves over a domain shared by all *versions*."""
    xs = density_domain([v.samples for v in versions])
    curves = [
        DensityCurve(
            name=v.name,
            points=kernel_density(v.samples, xs) if v.samples else None,
        )
        for v in versions
    ]
    densities = [y for c in curves if c.points for _, y in c.points if math.isfinite(y)]
    return DensityPlot(
        x_domain=(xs[0], xs[-1]) if xs else (0.0, 0.0),
        y_max=max(densities, default=0.0),
        curves=curves,
    )


def regression_plot(versions: Sequence[VersionSnapshot]) -> RegressionPlot:
    """Collect regression points and fitted lines of ended versions.

    Both axes start at zero and are extended to round tick values.
    """
    series = [
        RegressionSeries(
            name=v.name,
            points=[(float(x), y) for x, y in v.regression.data],
            line=regression_line(v.regression),
        )
        for v in versions
        if v.regression is not None
    ]
    x_max = max((x for s in series for x, _ in s.points), default=0.0)
    y_max = max((y for s in series for _, y in s.points), default=0.0)
    return RegressionPlot(
        x_max=nice_domain(0.0, x_max)[1],
        y_max=nice_domain(0.0, y_max)[1],
        series=series,
    )


# ---------------------------------------------------------------------------
# Dashboard text
# ---------------------------------------------------------------------------


def _version_message(version: VersionSnapshot) -> str:
    if version.status == RUNNING:
        return "Running..."
    if version.status == WAITING:
        return ""
    return version.message


def _format_versions_table(
    versions: Sequence[VersionSnapshot],
    palette: VersionPalette | None,
) -> str:
    rows: list[list[str]] = []
    for v in versions:
        rows.append([v.name, format_status_icon(v.status), _version_message(v)])
    table = format_table(
        ["Version", "Status", "Result"],
        rows,
        max_col_width={0: 24, 2: 60},
    )
    if palette is None:
        return table

    # Colour version names after alignment so escape codes don't skew widths.
    lines = table.split("\n")
    for i, v in enumerate(versions, start=1):
        name_cell = lines[i][2 : 2 + len(v.name)]
        if name_cell == v.name:
            styled = click.style(v.name, fg=palette(v.name))
            lines[i] = "  " + styled + lines[i][2 + len(v.name) :]
    return "\n".join(lines)


def _format_density(plot: DensityPlot, width: int) -> list[str]:
    lo, hi = plot.x_domain
    name_width = max((len(c.name) for c in plot.curves), default=0)
    lines = [f"  Density  {format_sample(lo)} \u2192 {format_sample(hi)}"]
    for curve in plot.curves:
        if curve.points is None:
            continue
        spark = format_sparkline(
            [y for _, y in curve.points],
            width=width,
            scale_max=plot.y_max or None,
        )
        lines.append(f"    {curve.name:<{name_width}s}  {spark}")
    return lines


def _format_regression(versions: Sequence[VersionSnapshot]) -> list[str]:
    rows: list[list[str]] = []
    for v in versions:
        if v.regression is None:
            continue
        reg = v.regression
        rows.append(
            [
                v.name,
                format_ms(reg.slope),
                format_ms(reg.intercept),
                format_number(reg.correlation),
                str(len(reg.data)),
            ]
        )
    if not rows:
        return []
    table = format_table(
        ["Version", "Per iteration", "Overhead", "r", "Points"],
        rows,
        alignments=["l", "r", "r", "r", "r"],
        indent=4,
    )
    return ["  Regression"] + table.split("\n")


def format_benchmark(
    benchmark: BenchmarkSnapshot,
    *,
    palette: VersionPalette | None = None,
    width: int = 80,
) -> str:
    """Format one benchmark: versions table, then plots once one ended."""
    lines = [format_section_header(benchmark.name, width)]
    lines.append(_format_versions_table(benchmark.versions, palette))

    if benchmark.has_ended:
        lines.append("")
        lines.extend(_format_density(density_plot(benchmark.versions), max(10, width - 30)))
        lines.append("")
        lines.extend(_format_regression(benchmark.versions))

    return "\n".join(lines)


def format_dashboard(
    snapshot: Sequence[BenchmarkSnapshot],
    finished: bool,
    *,
    title: str = "Benchmarks",
    palette: VersionPalette | None = None,
    width: int = 80,
) -> str:
    """Format the whole dashboard for terminal output."""
    total = sum(len(b.versions) for b in snapshot)
    done = sum(1 for b in snapshot for v in b.versions if v.terminal)

    lines = [title, "\u2550" * len(title)]
    if not snapshot:
        lines.append("No benchmarks to run.")
        return "\n".join(lines) + "\n"

    state = "finished" if finished else "in progress"
    lines.append(f"{done}/{total} versions complete ({state})")
    lines.append("")
    for benchmark in snapshot:
        lines.append(format_benchmark(benchmark, palette=palette, width=width))
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


# ---------------------------------------------------------------------------
# Sinks
# ---------------------------------------------------------------------------


class ProgressSink:
    """Prints the dashboard once the suite has finished.

    Transitions themselves are reported by the runner's log lines, so
    intermediate renders only count state changes.
    """

    def __init__(self, *, title: str = "Benchmarks", color: bool = False) -> None:
        self.title = title
        self.palette = VersionPalette() if color else None
        self.transitions = 0
        self._seen: dict[tuple[str, str], str] = {}

    def __call__(self, snapshot: Sequence[BenchmarkSnapshot], finished: bool) -> None:
        for benchmark in snapshot:
            for version in benchmark.versions:
                key = (benchmark.name, version.name)
                if self._seen.get(key, WAITING) != version.status:
                    self.transitions += 1
                self._seen[key] = version.status

        if finished:
            click.echo(format_dashboard(snapshot, finished, title=self.title, palette=self.palette))


class LiveSink:
    """Redraws the whole dashboard after every state change."""

    def __init__(self, *, title: str = "Benchmarks", color: bool = True) -> None:
        self.title = title
        self.palette = VersionPalette() if color else None
        self.renders = 0

    def __call__(self, snapshot: Sequence[BenchmarkSnapshot], finished: bool) -> None:
        self.renders += 1
        click.clear()
        click.echo(format_dashboard(snapshot, finished, title=self.title, palette=self.palette))
