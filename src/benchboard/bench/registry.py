"""In-memory benchmark registry and its immutable snapshots.

Hierarchy::

    Registry (one per session)
      → benchmarks: list[BenchmarkEntry]       (catalog order)
        → versions: list[VersionState]          (catalog order)

The registry is built once from a catalog and mutated in place by the
runner.  Renderers never see the live objects: ``Registry.snapshot()``
returns frozen ``BenchmarkSnapshot``/``VersionSnapshot`` copies.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Iterator

from benchboard.bench.stats import RegressionResult
from benchboard.logging import get_logger

log = get_logger("registry")

WAITING = "waiting"
RUNNING = "running"
ENDED = "ended"
ERRORED = "errored"

STATUSES = (WAITING, RUNNING, ENDED, ERRORED)
TERMINAL_STATUSES = frozenset({ENDED, ERRORED})


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VersionSnapshot:
    """Read-only copy of a VersionState at one instant."""

    name: str
    status: str
    message: str = ""
    samples: tuple[float, ...] = ()
    logs: tuple[str, ...] = ()
    regression: RegressionResult | None = None

    @property
    def terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "name": self.name,
            "status": self.status,
            "message": self.message,
            "samples": list(self.samples),
            "logs": list(self.logs),
            "regression": self.regression.to_dict() if self.regression else None,
        }


@dataclass(frozen=True)
class BenchmarkSnapshot:
    """Read-only copy of a BenchmarkEntry at one instant."""

    name: str
    versions: tuple[VersionSnapshot, ...] = ()

    @property
    def has_ended(self) -> bool:
        """True if at least one version finished successfully."""
        return any(v.status == ENDED for v in self.versions)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "name": self.name,
            "versions": [v.to_dict() for v in self.versions],
        }


# ---------------------------------------------------------------------------
# Live state
# ---------------------------------------------------------------------------


@dataclass
class VersionState:
    """Lifecycle state of one version of one benchmark."""

    name: str
    runnable: Any = field(default=None, repr=False, compare=False)
    status: str = WAITING
    message: str = ""
    samples: list[float] = field(default_factory=list)
    logs: list[str] = field(default_factory=list)
    regression: RegressionResult | None = None

    @property
    def terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def snapshot(self) -> VersionSnapshot:
        return VersionSnapshot(
            name=self.name,
            status=self.status,
            message=self.message,
            samples=tuple(self.samples),
            logs=tuple(self.logs),
            regression=self.regression,
        )


@dataclass
class BenchmarkEntry:
    """A named benchmark and its versions in registration order."""

    name: str
    versions: list[VersionState] = field(default_factory=list)

    def snapshot(self) -> BenchmarkSnapshot:
        return BenchmarkSnapshot(
            name=self.name,
            versions=tuple(v.snapshot() for v in self.versions),
        )


@dataclass
class Registry:
    """Ordered collection of benchmarks owned by a single runner."""

    benchmarks: list[BenchmarkEntry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.benchmarks)

    def __iter__(self) -> Iterator[BenchmarkEntry]:
        return iter(self.benchmarks)

    def iter_pairs(self) -> Iterator[tuple[BenchmarkEntry, VersionState]]:
        """Yield every (benchmark, version) pair in scheduling order."""
        for benchmark in self.benchmarks:
            for version in benchmark.versions:
                yield benchmark, version

    @property
    def total_versions(self) -> int:
        return sum(len(b.versions) for b in self.benchmarks)

    @property
    def all_terminal(self) -> bool:
        return all(v.terminal for _, v in self.iter_pairs())

    def status_counts(self) -> dict[str, int]:
        """Number of versions in each status (all statuses present)."""
        counts = dict.fromkeys(STATUSES, 0)
        for _, version in self.iter_pairs():
            counts[version.status] = counts.get(version.status, 0) + 1
        return counts

    def snapshot(self) -> tuple[BenchmarkSnapshot, ...]:
        """Return an immutable value copy of the whole registry."""
        return tuple(b.snapshot() for b in self.benchmarks)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def normalize_filter(name_filter: str | None) -> str:
    """Strip whitespace and a leading ``#`` (URL fragment form)."""
    if not name_filter:
        return ""
    text = name_filter.strip()
    if text.startswith("#"):
        text = text[1:]
    return text


def build_registry(
    catalog: Mapping[str, Mapping[str, Any]] | Any,
    name_filter: str | None = "",
) -> Registry:
    """Build a registry from a catalog of runnables.

    Args:
        catalog: Mapping of benchmark name to a mapping of version name
            to an object exposing ``run()``.
        name_filter: If non-empty, only the benchmark whose name equals
            it exactly is kept.  The filter is compared as given; use
            ``normalize_filter`` first for URL fragment input.

    Returns:
        A Registry with every version ``waiting``.  Malformed catalog
        entries are skipped with a warning rather than raising.
    """
    registry = Registry()
    wanted = name_filter or ""

    if not isinstance(catalog, Mapping):
        log.warning(
            "Benchmark catalog is not a mapping (%s), nothing to run",
            type(catalog).__name__,
        )
        return registry

    for name, versions in catalog.items():
        if wanted and name != wanted:
            continue
        if not isinstance(versions, Mapping):
            log.warning("Benchmark '%s' has no version mapping, skipping", name)
            continue

        entry = BenchmarkEntry(name=str(name))
        for version_name, runnable in versions.items():
            entry.versions.append(VersionState(name=str(version_name), runnable=runnable))
        registry.benchmarks.append(entry)

    if wanted and not registry.benchmarks:
        log.warning("No benchmark named '%s' in the catalog", wanted)

    log.debug(
        "Registry built: %d benchmarks, %d versions",
        len(registry.benchmarks),
        registry.total_versions,
    )
    return registry
