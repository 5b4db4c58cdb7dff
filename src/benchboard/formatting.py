"""Shared text formatting helpers for benchboard.

Provides functions for formatting timings, tables, sparklines, and
section headers used by the dashboard and the CLI.
"""

from __future__ import annotations

import math


def format_ms(value: float) -> str:
    """Format a millisecond value rounded to a whole number: ``'12ms'``.

    Non-finite values are kept visible (``'nanms'``) so that a
    degenerate regression shows up in the summary instead of hiding.
    """
    return f"{value:.0f}ms"


def format_sample(ms: float) -> str:
    """Format a duration in milliseconds with adaptive units.

    Examples: ``'250ms'``, ``'2.00s'``, ``'1m 5s'``.
    """
    if not math.isfinite(ms):
        return "N/A"
    if ms < 1000:
        return f"{ms:.0f}ms"
    seconds = ms / 1000
    if seconds < 60:
        return f"{seconds:.2f}s"
    minutes = int(seconds // 60)
    return f"{minutes}m {seconds % 60:.0f}s"


def format_number(value: float, precision: int = 3) -> str:
    """Format a float, showing ``'nan'``/``'inf'`` as-is."""
    if not math.isfinite(value):
        return str(value)
    return f"{value:.{precision}f}"


def format_status_icon(status: str) -> str:
    """Return a visual status indicator for a version status."""
    icons: dict[str, str] = {
        "waiting": "\u00b7 waiting",
        "running": "\u25b6 running",
        "ended": "\u2713 ended",
        "errored": "\u2717 errored",
    }
    return icons.get(status, status)


def format_table(
    headers: list[str],
    rows: list[list[str]],
    *,
    alignments: list[str] | None = None,
    max_col_width: dict[int, int] | None = None,
    indent: int = 2,
) -> str:
    """Format a list of rows as an aligned text table.

    Auto-calculates column widths from content. Truncates columns that
    exceed *max_col_width* (with ``'...'`` suffix). Right-aligns columns
    marked ``'r'`` in *alignments*.

    Args:
        headers: Column header strings.
        rows: List of rows, each a list of cell strings.
        alignments: Per-column alignment: ``'l'``, ``'r'``, or ``'c'``.
        max_col_width: Column index to max width mapping.
        indent: Number of leading spaces per line.

    Returns:
        The formatted table as a string.
    """
    if not headers:
        return ""

    ncols = len(headers)
    aligns = list(alignments or [])
    while len(aligns) < ncols:
        aligns.append("l")

    proc_headers = list(headers)
    proc_rows: list[list[str]] = []
    for row in rows:
        padded = list(row) + [""] * (ncols - len(row))
        proc_rows.append(padded[:ncols])

    for ci, max_w in (max_col_width or {}).items():
        if ci < ncols:
            proc_headers[ci] = truncate(proc_headers[ci], max_w)
            for row in proc_rows:
                row[ci] = truncate(row[ci], max_w)

    widths = [len(h) for h in proc_headers]
    for row in proc_rows:
        for ci, cell in enumerate(row):
            widths[ci] = max(widths[ci], len(cell))

    def _cell(text: str, width: int, align: str) -> str:
        if align == "r":
            return text.rjust(width)
        if align == "c":
            return text.center(width)
        return text.ljust(width)

    prefix = " " * indent
    header = "  ".join(_cell(proc_headers[i], widths[i], aligns[i]) for i in range(ncols))
    lines = [(prefix + header).rstrip()]
    for row in proc_rows:
        line = "  ".join(_cell(row[i], widths[i], aligns[i]) for i in range(ncols))
        lines.append((prefix + line).rstrip())

    return "\n".join(lines)


_SPARK_CHARS = "\u2581\u2582\u2583\u2584\u2585\u2586\u2587\u2588"


def format_sparkline(
    values: list[float],
    width: int = 40,
    *,
    scale_max: float | None = None,
) -> str:
    """Format a series of non-negative values as a sparkline.

    Values are scaled against *scale_max* (default: the largest value),
    so several sparklines can share one vertical scale.  Zero draws as
    a blank and NaN as ``'?'``.

    Args:
        values: Numeric values to display.
        width: Output width in characters.
        scale_max: Value mapped to the tallest block.

    Returns:
        The sparkline string.
    """
    if not values:
        return ""

    if len(values) > width:
        step = len(values) / width
        sampled = [values[int(i * step)] for i in range(width)]
    else:
        sampled = list(values)

    finite = [v for v in sampled if math.isfinite(v)]
    hi = scale_max if scale_max is not None else max(finite, default=0.0)

    result: list[str] = []
    for v in sampled:
        if not math.isfinite(v):
            result.append("?")
        elif v <= 0 or not hi or not math.isfinite(hi):
            result.append(" ")
        else:
            idx = int(v / hi * (len(_SPARK_CHARS) - 1))
            result.append(_SPARK_CHARS[max(0, min(idx, len(_SPARK_CHARS) - 1))])

    return "".join(result)


def format_section_header(title: str, width: int = 80) -> str:
    """Format a section header: ``'─── Title ──...'``."""
    prefix = "\u2500\u2500\u2500 "
    suffix_len = width - len(prefix) - len(title) - 1
    suffix = " " + "\u2500" * max(0, suffix_len)
    return prefix + title + suffix


def truncate(text: str, max_len: int, suffix: str = "...") -> str:
    """Truncate text to *max_len*, adding *suffix* if truncated."""
    if len(text) <= max_len:
        return text
    if max_len <= len(suffix):
        return suffix[:max_len]
    return text[: max_len - len(suffix)] + suffix
