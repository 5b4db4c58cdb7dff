"""Sequential benchmark execution engine.

Walks every (benchmark, version) pair of a Registry in catalog order
and runs them strictly one at a time, so that no two benchmarks ever
compete for CPU or other shared resources while being timed.

Per-version lifecycle::

    waiting → running → ended     (run() produced samples)
                      → errored   (run() raised, or its samples
                                   could not be summarised)

The render sink is called after every transition with an immutable
snapshot of the registry, and once more after the last version has
settled with ``finished=True``.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from benchboard.bench.registry import (
    ENDED,
    ERRORED,
    RUNNING,
    BenchmarkEntry,
    BenchmarkSnapshot,
    Registry,
    VersionState,
)
from benchboard.bench.stats import RegressionResult, mean, regress_samples
from benchboard.formatting import format_ms

log = logging.getLogger("benchboard")

# Callable[[tuple[BenchmarkSnapshot, ...], bool], None]
RenderSink = Callable[[Sequence[BenchmarkSnapshot], bool], Any]


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


@dataclass
class BenchTask:
    """One queued (benchmark, version) execution."""

    benchmark: BenchmarkEntry
    version: VersionState
    position: int  # 1-based position in the global order
    total: int

    @property
    def label(self) -> str:
        return f"{self.benchmark.name}/{self.version.name}"


def _failure_message(exc: BaseException) -> str:
    """Human-readable description of a benchmark failure."""
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or type(exc).__name__


def _coerce_samples(result: Any) -> list[float]:
    """Turn whatever run() produced into a list of floats."""
    if result is None:
        raise TypeError("benchmark returned no samples")
    return [float(s) for s in result]


# ---------------------------------------------------------------------------
# SequentialRunner
# ---------------------------------------------------------------------------


class SequentialRunner:
    """Runs every version of every benchmark, one after another.

    Usage::

        registry = build_registry(catalog, name_filter)
        runner = SequentialRunner(registry, render=sink)
        asyncio.run(runner.run())

    The runner owns *registry* exclusively for the duration of
    ``run()``.  A runner can only be run once.
    """

    def __init__(
        self,
        registry: Registry,
        render: RenderSink | None = None,
    ) -> None:
        self.registry = registry
        self.render: RenderSink = render or self._null_render
        self.finished = False
        self._started = False
        self._queue: deque[BenchTask] = deque()

    async def run(self) -> Registry:
        """Execute the whole suite.

        Returns:
            The registry, with every version in a terminal state.

        Raises:
            RuntimeError: If the runner has already been started.
        """
        if self._started:
            raise RuntimeError("SequentialRunner.run() may only be called once")
        self._started = True

        self._enqueue_all()
        log.info(
            "Running %d versions across %d benchmarks",
            len(self._queue),
            len(self.registry),
        )

        while self._queue:
            task = self._queue.popleft()
            await self._execute(task)

        self.finished = True
        counts = self.registry.status_counts()
        log.info(
            "Benchmarks finished: %d ended, %d errored",
            counts[ENDED],
            counts[ERRORED],
        )
        self._render()
        return self.registry

    def run_sync(self) -> Registry:
        """Run the suite on a fresh event loop."""
        return asyncio.run(self.run())

    def _enqueue_all(self) -> None:
        pairs = list(self.registry.iter_pairs())
        for position, (benchmark, version) in enumerate(pairs, start=1):
            self._queue.append(
                BenchTask(
                    benchmark=benchmark,
                    version=version,
                    position=position,
                    total=len(pairs),
                )
            )

    async def _execute(self, task: BenchTask) -> None:
        """Drive one version from waiting to a terminal state."""
        version = task.version

        version.status = RUNNING
        version.logs.append("started")
        log.info("[%d/%d] %s: running...", task.position, task.total, task.label)
        self._render()

        try:
            result = version.runnable.run()
            if inspect.isawaitable(result):
                result = await result
            samples = _coerce_samples(result)
            regression = regress_samples(samples)
        except Exception as exc:  # noqa: BLE001
            self._mark_errored(task, exc)
        else:
            self._mark_ended(task, samples, regression)

        self._render()

    def _mark_ended(
        self,
        task: BenchTask,
        samples: list[float],
        regression: RegressionResult,
    ) -> None:
        version = task.version
        version.status = ENDED
        version.samples = samples
        # Provisional summary, replaced once the regression is set.
        version.message = format_ms(mean(samples))
        version.regression = regression
        version.message = format_ms(version.regression.slope)
        version.logs.append(f"ended: {len(samples)} samples, {version.message} per iteration")

        log.debug("%s: %d samples, mean %s", task.label, len(samples), format_ms(mean(samples)))
        if version.regression.degenerate:
            log.warning(
                "%s: too few samples for a regression (%d points)",
                task.label,
                len(version.regression.data),
            )
        log.info("[%d/%d] %s: %s", task.position, task.total, task.label, version.message)

    def _mark_errored(self, task: BenchTask, exc: Exception) -> None:
        version = task.version
        version.status = ERRORED
        version.message = _failure_message(exc)
        version.logs.append(f"errored: {version.message}")
        log.warning(
            "[%d/%d] %s failed: %s",
            task.position,
            task.total,
            task.label,
            version.message,
        )
        log.debug("%s failure details", task.label, exc_info=exc)

    def _render(self) -> None:
        self.render(self.registry.snapshot(), self.finished)

    @staticmethod
    def _null_render(snapshot: Sequence[BenchmarkSnapshot], finished: bool) -> None:
        """Default sink: rendering disabled."""


def run_benchmarks(
    registry: Registry,
    render: RenderSink | None = None,
) -> Registry:
    """Convenience wrapper: run *registry* to completion synchronously."""
    return SequentialRunner(registry, render=render).run_sync()
