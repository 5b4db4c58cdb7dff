"""Statistical functions for benchmark dashboards.

Provides the cumulative-sum regression transform, an ordinary
least-squares fit, kernel density estimation, and the "nice" linear
tick generation used to pick density evaluation points, in pure
Python with no external dependencies.

Division follows IEEE 754 semantics throughout: a zero denominator
yields NaN or an infinity instead of raising, so degenerate inputs
(fewer than two points, all x values equal, infinite samples) surface
as non-finite statistics rather than exceptions.

References:
    Silverman's rule of thumb: Silverman, B. W. (1986). "Density
        Estimation for Statistics and Data Analysis."
    Epanechnikov kernel: Epanechnikov, V. A. (1969). "Non-parametric
        estimation of a multivariate probability density."
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Sequence

_NAN = float("nan")


def _div(numerator: float, denominator: float) -> float:
    """Divide with IEEE semantics instead of raising ZeroDivisionError."""
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return _NAN
        return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)
    return numerator / denominator


def _finite_or_none(value: float) -> float | None:
    return value if math.isfinite(value) else None


# ---------------------------------------------------------------------------
# Descriptive statistics
# ---------------------------------------------------------------------------


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean. NaN for an empty sequence."""
    if not values:
        return _NAN
    return sum(values) / len(values)


def sample_variance(values: Sequence[float]) -> float:
    """Sample variance (denominator n-1). NaN below two values."""
    n = len(values)
    if n < 2:
        return _NAN
    m = mean(values)
    return sum((v - m) * (v - m) for v in values) / (n - 1)


def sample_stdev(values: Sequence[float]) -> float:
    """Sample standard deviation. NaN below two values."""
    variance = sample_variance(values)
    if math.isnan(variance):
        return _NAN
    return math.sqrt(variance)


# ---------------------------------------------------------------------------
# Cumulative-sum regression
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RegressionResult:
    """Least-squares fit of cumulative time against iteration count."""

    data: tuple[tuple[int, float], ...]
    slope: float
    intercept: float
    correlation: float

    @property
    def degenerate(self) -> bool:
        """True when the fit produced a non-finite slope."""
        return not math.isfinite(self.slope)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict (non-finite → None)."""
        return {
            "data": [[x, y] for x, y in self.data],
            "slope": _finite_or_none(self.slope),
            "intercept": _finite_or_none(self.intercept),
            "correlation": _finite_or_none(self.correlation),
        }


def regression_points(samples: Sequence[float]) -> list[tuple[int, float]]:
    """Transform raw samples into (iterations, cumulative time) points.

    Consecutive, non-overlapping windows of growing length are summed:
    the first point covers one sample, the second the next two, the
    third the next three, and so on.  A window that would run past the
    end of *samples* is dropped, so no sample is used twice and some
    trailing samples may go unused.

    Example::

        >>> regression_points([1, 2, 3, 4, 5, 6])
        [(1, 1), (2, 5), (3, 15)]
    """
    points: list[tuple[int, float]] = []
    cursor = 0
    n = 1
    while cursor + n <= len(samples):
        points.append((n, sum(samples[cursor : cursor + n])))
        cursor += n
        n += 1
    return points


def least_squares(data: Sequence[tuple[float, float]]) -> RegressionResult:
    """Fit ``y = slope * x + intercept`` by ordinary least squares.

    Uses sample (n-1) variance and covariance.  The correlation is the
    Pearson coefficient ``cov / (sd_x * sd_y)``.

    No guard is applied for degenerate input: with fewer than two
    points, or when every x is identical, slope and correlation come
    back as NaN or infinite.
    """
    points = tuple((x, y) for x, y in data)
    xs = [x for x, _ in points]
    ys = [y for _, y in points]

    mean_x = mean(xs)
    mean_y = mean(ys)
    variance_x = sample_variance(xs)
    sd_x = math.sqrt(variance_x) if not math.isnan(variance_x) else _NAN
    sd_y = sample_stdev(ys)

    if len(points) < 2:
        covariance = _NAN
    else:
        covariance = sum((x - mean_x) * (y - mean_y) for x, y in points) / (
            len(points) - 1
        )

    slope = _div(covariance, variance_x)
    intercept = mean_y - slope * mean_x
    correlation = _div(_div(covariance, sd_x), sd_y)

    return RegressionResult(
        data=points,
        slope=slope,
        intercept=intercept,
        correlation=correlation,
    )


def regress_samples(samples: Sequence[float]) -> RegressionResult:
    """Cumulative-sum transform followed by a least-squares fit."""
    return least_squares(regression_points(samples))


def regression_line(result: RegressionResult) -> list[tuple[float, float]]:
    """Points of the fitted line evaluated at each regression x."""
    return [(x, x * result.slope + result.intercept) for x, _ in result.data]


# ---------------------------------------------------------------------------
# Kernel density estimation
# ---------------------------------------------------------------------------


def epanechnikov(v: float) -> float:
    """Epanechnikov kernel: ``0.75 * (1 - v^2)`` on ``[-1, 1]``, else 0."""
    return 0.75 * (1 - v * v) if abs(v) <= 1 else 0.0


def silverman_bandwidth(samples: Sequence[float]) -> float:
    """Rule-of-thumb bandwidth ``1.06 * stdev * n^(-1/5)``."""
    if not samples:
        return _NAN
    return 1.06 * sample_stdev(samples) * len(samples) ** -0.2


def kernel_density(
    samples: Sequence[float],
    points: Sequence[float],
) -> list[tuple[float, float]]:
    """Estimate the density of *samples* at each of *points*.

    Returns ``(x, density)`` pairs in the order of *points*.  A
    single sample (undefined stdev) or identical samples (zero
    bandwidth) produce NaN densities.
    """
    bandwidth = silverman_bandwidth(samples)
    density: list[tuple[float, float]] = []
    for x in points:
        weights = [epanechnikov(_div(x - v, bandwidth)) for v in samples]
        density.append((x, _div(mean(weights), bandwidth)))
    return density


# ---------------------------------------------------------------------------
# Linear ticks
# ---------------------------------------------------------------------------

_E10 = math.sqrt(50)
_E5 = math.sqrt(10)
_E2 = math.sqrt(2)


def tick_increment(start: float, stop: float, count: int) -> float:
    """Return a 1-2-5 tick step for ``[start, stop]``.

    A positive result is the step itself; a negative result ``-k``
    stands for a fractional step of ``1/k`` (avoids float error in
    steps like 0.1).
    """
    step = (stop - start) / count if count > 0 else math.inf
    if step <= 0 or not math.isfinite(step):
        return 0.0 if step == 0 else _NAN
    power = math.floor(math.log10(step))
    error = step / 10**power
    if error >= _E10:
        factor = 10
    elif error >= _E5:
        factor = 5
    elif error >= _E2:
        factor = 2
    else:
        factor = 1
    if power >= 0:
        return factor * 10**power
    return -(10 ** -power) / factor


def linear_ticks(start: float, stop: float, count: int) -> list[float]:
    """Roughly *count* evenly spaced round values covering ``[start, stop]``."""
    if start == stop and count > 0:
        return [start]
    reverse = stop < start
    if reverse:
        start, stop = stop, start
    step = tick_increment(start, stop, count)
    if step == 0 or not math.isfinite(step):
        return []

    if step > 0:
        lo = math.ceil(start / step)
        hi = math.floor(stop / step)
        ticks = [(lo + i) * step for i in range(int(math.ceil(hi - lo + 1)))]
    else:
        inverse = -step
        lo = math.ceil(start * inverse)
        hi = math.floor(stop * inverse)
        ticks = [(lo + i) / inverse for i in range(int(math.ceil(hi - lo + 1)))]

    if reverse:
        ticks.reverse()
    return ticks


def nice_domain(start: float, stop: float, count: int = 10) -> tuple[float, float]:
    """Extend ``[start, stop]`` outward to round tick boundaries."""
    if not (math.isfinite(start) and math.isfinite(stop)) or start == stop:
        return start, stop
    step = tick_increment(start, stop, count)
    for _ in range(2):
        if step > 0:
            start = math.floor(start / step) * step
            stop = math.ceil(stop / step) * step
        elif step < 0:
            start = math.ceil(start * step) / step
            stop = math.floor(stop * step) / step
        else:
            break
        step = tick_increment(start, stop, count)
    return start, stop


def density_domain(
    sample_sets: Sequence[Sequence[float]],
    *,
    ticks: int = 50,
) -> list[float]:
    """Evaluation points shared by every version's density curve.

    Spans ``[0, max]`` over the samples of all versions combined, so
    the curves share an axis and a slow version widens it for all.
    Returns an empty list when there are no samples.
    """
    all_samples = [s for samples in sample_sets for s in samples]
    if not all_samples:
        return []
    lo, hi = nice_domain(0.0, max(all_samples))
    return linear_ticks(lo, hi, ticks)
