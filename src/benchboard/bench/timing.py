"""Benchmark adapters that produce timing samples.

Anything with a ``run()`` method can be scheduled by the runner.  This
module provides the two adapters the catalog loader builds:

- ``CommandBenchmark`` times a shell command over several iterations
  using asyncio subprocesses, one sample (milliseconds) per iteration.
- ``CallableBenchmark`` delegates to a Python callable (sync or async)
  that returns its own samples.
"""

from __future__ import annotations

import asyncio
import importlib
import inspect
import logging
import os
import signal
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

log = logging.getLogger("benchboard")


class BenchmarkRunFailure(Exception):
    """A benchmark could not produce samples."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# ---------------------------------------------------------------------------
# Shell commands
# ---------------------------------------------------------------------------


@dataclass
class TimedResult:
    """Result of one timed command execution."""

    wall_time_ms: float
    exit_code: int
    stderr: str = ""
    timed_out: bool = False


def _kill_process_group(pid: int) -> None:
    """Attempt to kill the entire process group on timeout."""
    try:
        os.killpg(os.getpgid(pid), signal.SIGKILL)
    except (ProcessLookupError, PermissionError, OSError):
        pass


async def run_timed(
    command: str,
    *,
    cwd: str | Path | None = None,
    env: dict[str, str] | None = None,
    timeout: float | None = None,
) -> TimedResult:
    """Execute a shell command and measure its wall-clock time.

    Args:
        command: Shell command string.
        cwd: Working directory for the subprocess.
        env: Extra environment variables layered over ``os.environ``.
        timeout: Maximum execution time in seconds, or None.

    Returns:
        TimedResult with the elapsed time in milliseconds.
    """
    run_env = dict(os.environ)
    if env:
        run_env.update(env)

    start = time.perf_counter()
    proc = await asyncio.create_subprocess_shell(
        command,
        cwd=str(cwd) if cwd else None,
        env=run_env,
        stdout=asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.PIPE,
        start_new_session=True,
    )
    try:
        _, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        _kill_process_group(proc.pid)
        await proc.wait()
        return TimedResult(
            wall_time_ms=(time.perf_counter() - start) * 1000,
            exit_code=-1,
            timed_out=True,
        )
    wall_time_ms = (time.perf_counter() - start) * 1000

    return TimedResult(
        wall_time_ms=wall_time_ms,
        exit_code=proc.returncode if proc.returncode is not None else -1,
        stderr=stderr.decode("utf-8", errors="replace") if stderr else "",
    )


@dataclass
class CommandBenchmark:
    """Times a shell command, one sample per iteration."""

    command: str
    iterations: int = 10
    timeout: float | None = None
    env: dict[str, str] = field(default_factory=dict)
    cwd: Path | None = None

    async def run(self) -> list[float]:
        """Run the command *iterations* times.

        Raises:
            BenchmarkRunFailure: On the first iteration that exits
                non-zero or exceeds the timeout.
        """
        samples: list[float] = []
        for index in range(1, self.iterations + 1):
            timed = await run_timed(
                self.command,
                cwd=self.cwd,
                env=self.env,
                timeout=self.timeout,
            )
            if timed.timed_out:
                raise BenchmarkRunFailure("timeout")
            if timed.exit_code != 0:
                last_line = timed.stderr.strip().splitlines()[-1:] or [""]
                detail = f": {last_line[0]}" if last_line[0] else ""
                raise BenchmarkRunFailure(f"command exited with status {timed.exit_code}{detail}")
            log.debug(
                "%r iteration %d/%d: %.1fms",
                self.command,
                index,
                self.iterations,
                timed.wall_time_ms,
            )
            samples.append(timed.wall_time_ms)
        return samples


# ---------------------------------------------------------------------------
# Python callables
# ---------------------------------------------------------------------------


def import_string(target: str) -> Any:
    """Resolve ``"package.module:attr.sub"`` to the named object.

    Raises:
        ImportError: If the module cannot be imported or the attribute
            does not exist.
    """
    if ":" not in target:
        raise ImportError(f"Invalid import string '{target}'. Expected 'module:attribute'.")
    module_name, attr_path = target.split(":", 1)
    module = importlib.import_module(module_name)
    obj: Any = module
    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as exc:
            raise ImportError(f"'{module_name}' has no attribute '{attr_path}'") from exc
    return obj


@dataclass
class CallableBenchmark:
    """Delegates to a Python callable that returns timing samples.

    *target* is either a callable or an import string.  Import strings
    are resolved lazily, on the first ``run()``, so that a broken
    import fails only the versions that use it.
    """

    target: str | Callable[..., Any]
    kwargs: dict[str, Any] = field(default_factory=dict)

    def resolve(self) -> Callable[..., Any]:
        func = import_string(self.target) if isinstance(self.target, str) else self.target
        if not callable(func):
            raise BenchmarkRunFailure(f"{self.target!r} is not callable")
        return func

    async def run(self) -> list[float]:
        result = self.resolve()(**self.kwargs)
        if inspect.isawaitable(result):
            result = await result
        return [float(s) for s in result]
