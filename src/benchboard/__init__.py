"""benchboard — run versioned benchmarks one at a time and watch the results."""

__version__ = "0.1.0"
