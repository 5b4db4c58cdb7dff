"""Benchmark catalog loading and configuration.

Handles:
- Loading a benchmark catalog from a YAML file.
- Merging CLI options with catalog defaults.
- Validating the final configuration before anything runs.
- Building the runnable catalog consumed by the registry.

Catalog format::

    name: "Layout benchmarks"
    description: "optional description"
    defaults:
      iterations: 20
      timeout: 60
      env:
        PYTHONHASHSEED: "0"

    benchmarks:
      layout:
        v1.0: "python -c 'import mylib_v1'"     # shorthand for command
        v1.1:
          command: "python -c 'import mylib'"
          iterations: 30
      render:
        current:
          callable: "mylib.bench:render"
          kwargs:
            size: 512
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from benchboard.bench.registry import normalize_filter
from benchboard.bench.timing import CallableBenchmark, CommandBenchmark

log = logging.getLogger("benchboard")


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------


@dataclass
class VersionDef:
    """Definition of one version of a benchmark."""

    name: str
    command: str | None = None
    callable: str | None = None
    kwargs: dict[str, Any] = field(default_factory=dict)
    iterations: int | None = None  # None = use the catalog default
    timeout: float | None = None
    env: dict[str, str] = field(default_factory=dict)
    cwd: str | None = None
    description: str = ""

    @property
    def kind(self) -> str:
        """'command', 'callable', or '' when ill-defined."""
        if self.command and not self.callable:
            return "command"
        if self.callable and not self.command:
            return "callable"
        return ""


@dataclass
class DashboardConfig:
    """Resolved configuration for a dashboard session."""

    name: str = ""
    description: str = ""
    name_filter: str = ""

    # Defaults for command versions
    iterations: int = 10
    timeout: float | None = None
    env: dict[str, str] = field(default_factory=dict)

    # benchmark name -> version name -> definition, in catalog order
    benchmarks: dict[str, dict[str, VersionDef]] = field(default_factory=dict)

    # Directory relative cwd values are resolved against
    base_dir: Path | None = None

    @property
    def total_versions(self) -> int:
        return sum(len(v) for v in self.benchmarks.values())


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str
    severity: str = "error"  # "error" or "warning"


def validate_config(config: DashboardConfig) -> list[ValidationError]:
    """Validate a dashboard configuration.

    Returns a list of validation errors.  Empty list means valid.
    """
    errors: list[ValidationError] = []

    if not config.benchmarks:
        errors.append(
            ValidationError(
                field="benchmarks",
                message="No benchmarks defined. Add a 'benchmarks' mapping to the catalog.",
            )
        )

    for bench_name, versions in config.benchmarks.items():
        if not versions:
            errors.append(
                ValidationError(
                    field=f"benchmarks.{bench_name}",
                    message=f"Benchmark '{bench_name}' has no versions.",
                    severity="warning",
                )
            )
        for version_name, vdef in versions.items():
            where = f"benchmarks.{bench_name}.{version_name}"
            if vdef.command and vdef.callable:
                errors.append(
                    ValidationError(
                        field=where,
                        message="Define either 'command' or 'callable', not both.",
                    )
                )
            elif not vdef.kind:
                errors.append(
                    ValidationError(
                        field=where,
                        message="Version needs a 'command' or a 'callable'.",
                    )
                )
            if vdef.iterations is not None and vdef.iterations < 1:
                errors.append(
                    ValidationError(
                        field=f"{where}.iterations",
                        message=f"Iterations must be at least 1 (got {vdef.iterations}).",
                    )
                )
            if vdef.timeout is not None and vdef.timeout <= 0:
                errors.append(
                    ValidationError(
                        field=f"{where}.timeout",
                        message=f"Timeout must be positive (got {vdef.timeout}).",
                    )
                )

    if config.iterations < 1:
        errors.append(
            ValidationError(
                field="iterations",
                message=f"Iterations must be at least 1 (got {config.iterations}).",
            )
        )
    elif config.iterations < 3:
        errors.append(
            ValidationError(
                field="iterations",
                message=(
                    f"Fewer than 3 iterations (got {config.iterations}) leaves "
                    f"too few points for a regression."
                ),
                severity="warning",
            )
        )

    if config.timeout is not None and config.timeout <= 0:
        errors.append(
            ValidationError(
                field="timeout",
                message=f"Timeout must be positive (got {config.timeout}).",
            )
        )

    if config.name_filter and config.name_filter not in config.benchmarks:
        errors.append(
            ValidationError(
                field="name_filter",
                message=f"No benchmark named '{config.name_filter}'; nothing will run.",
                severity="warning",
            )
        )

    return errors


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------


def load_catalog_file(catalog_path: Path) -> dict[str, Any]:
    """Load a benchmark catalog from a YAML file.

    Returns:
        The parsed YAML as a dict.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the document is not a YAML mapping.
    """
    import yaml

    if not catalog_path.exists():
        raise FileNotFoundError(f"Catalog not found: {catalog_path}")

    data = yaml.safe_load(catalog_path.read_text(encoding="utf-8"))

    if not isinstance(data, dict):
        raise ValueError(f"Catalog must be a YAML mapping, got {type(data).__name__}")

    return data


def _parse_version(name: str, data: Any) -> VersionDef:
    if isinstance(data, str):
        return VersionDef(name=name, command=data)
    if data is None:
        return VersionDef(name=name)
    if not isinstance(data, dict):
        raise ValueError(f"Version '{name}' must be a mapping or a command string")

    kwargs = data.get("kwargs") or {}
    env = data.get("env") or {}
    if not isinstance(kwargs, dict):
        raise ValueError(f"Version '{name}': 'kwargs' must be a mapping")
    if not isinstance(env, dict):
        raise ValueError(f"Version '{name}': 'env' must be a mapping")

    return VersionDef(
        name=name,
        command=data.get("command"),
        callable=data.get("callable"),
        kwargs=dict(kwargs),
        iterations=data.get("iterations"),
        timeout=data.get("timeout"),
        env={str(k): str(v) for k, v in env.items()},
        cwd=data.get("cwd"),
        description=data.get("description", ""),
    )


def config_from_catalog(
    catalog_data: dict[str, Any],
    *,
    cli_overrides: dict[str, Any] | None = None,
    base_dir: Path | None = None,
) -> DashboardConfig:
    """Build a DashboardConfig from a parsed YAML catalog.

    CLI overrides take precedence over catalog values for:
    name_filter, iterations, timeout.

    Raises:
        ValueError: If the catalog structure is malformed.
    """
    cli = cli_overrides or {}
    defaults = catalog_data.get("defaults") or {}
    if not isinstance(defaults, dict):
        raise ValueError("Catalog 'defaults' must be a mapping")

    default_env = defaults.get("env") or {}
    if not isinstance(default_env, dict):
        raise ValueError("Catalog 'defaults.env' must be a mapping")

    iterations = cli.get("iterations")
    if iterations is None:
        iterations = defaults.get("iterations", 10)
    timeout = cli.get("timeout")
    if timeout is None:
        timeout = defaults.get("timeout")

    config = DashboardConfig(
        name=catalog_data.get("name", "") or "",
        description=catalog_data.get("description", "") or "",
        name_filter=normalize_filter(cli.get("name_filter") or catalog_data.get("filter")),
        iterations=iterations,
        timeout=timeout,
        env={str(k): str(v) for k, v in default_env.items()},
        base_dir=base_dir,
    )

    benchmarks_data = catalog_data.get("benchmarks") or {}
    if not isinstance(benchmarks_data, dict):
        raise ValueError("Catalog 'benchmarks' must be a mapping of name -> versions")

    for bench_name, versions_data in benchmarks_data.items():
        if versions_data is None:
            versions_data = {}
        if not isinstance(versions_data, dict):
            raise ValueError(
                f"Benchmark '{bench_name}' must be a mapping of version -> definition, "
                f"got {type(versions_data).__name__}"
            )
        config.benchmarks[str(bench_name)] = {
            str(vname): _parse_version(str(vname), vdata)
            for vname, vdata in versions_data.items()
        }

    return config


# ---------------------------------------------------------------------------
# Runnable catalog
# ---------------------------------------------------------------------------


def _resolve_cwd(vdef: VersionDef, base_dir: Path | None) -> Path | None:
    if not vdef.cwd:
        return base_dir
    cwd = Path(vdef.cwd)
    if not cwd.is_absolute() and base_dir is not None:
        cwd = base_dir / cwd
    return cwd


def build_version(vdef: VersionDef, config: DashboardConfig) -> Any:
    """Build the runnable adapter for one version definition."""
    if vdef.kind == "callable":
        return CallableBenchmark(target=vdef.callable or "", kwargs=dict(vdef.kwargs))

    env = dict(config.env)
    env.update(vdef.env)
    return CommandBenchmark(
        command=vdef.command or "",
        iterations=vdef.iterations if vdef.iterations is not None else config.iterations,
        timeout=vdef.timeout if vdef.timeout is not None else config.timeout,
        env=env,
        cwd=_resolve_cwd(vdef, config.base_dir),
    )


def build_catalog(config: DashboardConfig) -> dict[str, dict[str, Any]]:
    """Turn definitions into the ``name -> version -> runnable`` catalog.

    Versions that are neither a command nor a callable are left out
    (validate_config reports them).
    """
    catalog: dict[str, dict[str, Any]] = {}
    for bench_name, versions in config.benchmarks.items():
        runnables: dict[str, Any] = {}
        for version_name, vdef in versions.items():
            if not vdef.kind:
                log.warning("Skipping ill-defined version %s/%s", bench_name, version_name)
                continue
            runnables[version_name] = build_version(vdef, config)
        catalog[bench_name] = runnables
    return catalog
