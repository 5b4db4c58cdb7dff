"""Command-line interface for benchboard.

Subcommands:
    benchboard run    Run every benchmark version in a catalog
    benchboard list   Show the benchmarks and versions a run would execute
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from benchboard import __version__
from benchboard.bench.config import (
    DashboardConfig,
    build_catalog,
    config_from_catalog,
    load_catalog_file,
    validate_config,
)
from benchboard.bench.registry import Registry, build_registry
from benchboard.logging import setup_logging

log = logging.getLogger("benchboard")


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """benchboard — compare benchmark versions one run at a time."""


def _load_config(
    catalog_path: Path,
    cli_overrides: dict[str, object],
) -> DashboardConfig:
    """Load and validate a catalog, exiting with status 1 on errors."""
    try:
        data = load_catalog_file(catalog_path)
        config = config_from_catalog(
            data,
            cli_overrides=cli_overrides,
            base_dir=catalog_path.resolve().parent,
        )
    except (OSError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    errors = validate_config(config)
    for w in (e for e in errors if e.severity == "warning"):
        log.warning("Config warning: %s: %s", w.field, w.message)
    fatal = [e for e in errors if e.severity == "error"]
    if fatal:
        click.echo("Invalid benchmark catalog:", err=True)
        for e in fatal:
            click.echo(f"  {e.field}: {e.message}", err=True)
        raise SystemExit(1)
    return config


def _build(config: DashboardConfig) -> Registry:
    return build_registry(build_catalog(config), config.name_filter)


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


@main.command("run")
@click.argument("catalog", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--filter",
    "name_filter",
    type=str,
    default=None,
    help="Run only the benchmark with exactly this name ('#name' accepted).",
)
@click.option(
    "--iterations",
    type=int,
    default=None,
    help="Iterations per command version (default: catalog, else 10).",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Per-iteration timeout in seconds for command versions.",
)
@click.option("--live", is_flag=True, help="Redraw the dashboard after every state change.")
@click.option("--json", "as_json", is_flag=True, help="Print the final state as JSON.")
@click.option("--color/--no-color", default=None, help="Colour version names.")
@click.option("-v", "--verbose", is_flag=True, help="Show detailed output.")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors.")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Also write a DEBUG log to this file.",
)
def run(
    catalog: Path,
    name_filter: str | None,
    iterations: int | None,
    timeout: float | None,
    live: bool,
    as_json: bool,
    color: bool | None,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Run every benchmark version in CATALOG, one at a time.

    CATALOG is a YAML file mapping benchmark names to versions.

    \b
    Examples:
        benchboard run benchmarks.yaml
        benchboard run benchmarks.yaml --filter layout --live
        benchboard run benchmarks.yaml --json > results.json
    """
    from benchboard.bench.display import LiveSink, ProgressSink
    from benchboard.bench.runner import SequentialRunner

    setup_logging(verbose=verbose, quiet=quiet or as_json, log_file=log_file)

    config = _load_config(
        catalog,
        {"name_filter": name_filter, "iterations": iterations, "timeout": timeout},
    )
    registry = _build(config)
    title = config.name or catalog.stem

    if as_json:
        sink = None
    elif live:
        sink = LiveSink(title=title, color=True if color is None else color)
    else:
        sink = ProgressSink(title=title, color=bool(color))

    runner = SequentialRunner(registry, render=sink)
    try:
        runner.run_sync()
    except KeyboardInterrupt:
        click.echo("\nBenchmark run interrupted.", err=True)
        raise SystemExit(130)  # noqa: B904

    if as_json:
        payload = {
            "name": title,
            "finished": runner.finished,
            "benchmarks": [b.to_dict() for b in registry.snapshot()],
        }
        click.echo(json.dumps(payload, indent=2))


# ---------------------------------------------------------------------------
# list
# ---------------------------------------------------------------------------


@main.command("list")
@click.argument("catalog", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--filter", "name_filter", type=str, default=None, help="Exact benchmark name.")
def list_benchmarks(catalog: Path, name_filter: str | None) -> None:
    """List benchmarks and versions in the order they would run."""
    setup_logging(quiet=True)
    config = _load_config(catalog, {"name_filter": name_filter})
    registry = _build(config)

    if not len(registry):
        click.echo("No benchmarks to run.")
        return

    position = 0
    for benchmark in registry:
        click.echo(benchmark.name)
        for version in benchmark.versions:
            position += 1
            vdef = config.benchmarks[benchmark.name][version.name]
            detail = vdef.command or vdef.callable or ""
            click.echo(f"  {position:3d}. {version.name:<20s} {detail}")
    click.echo(f"\n{registry.total_versions} versions across {len(registry)} benchmarks")
