"""Linear and log-linear trend fitting for daily ratio series."""

import math
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass
from typing import Any

from ..constants import (
    DEFAULT_R_SQUARED_THRESHOLD,
    MIN_REGRESSION_POINTS,
    REGRESSION_EPSILON,
    RatioKey,
    RegressionKind,
)
from ..models import DailyRatioPoint


@dataclass(frozen=True)
class RegressionResult:
    """A fitted trend.

    For linear fits ``y = intercept + slope * x``. For log-linear fits
    ``y = intercept * exp(slope * x)``. ``predicted_values`` covers every
    index up to ``total_points``, including gaps in the input.
    """

    slope: float
    intercept: float
    r_squared: float
    predicted_values: list[float]
    kind: RegressionKind
    valid_point_count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _is_number(value: float | None) -> bool:
    return value is not None and not math.isnan(value)


def _least_squares(pairs: Sequence[tuple[int, float]]) -> tuple[float, float] | None:
    n = len(pairs)
    sum_x = sum(x for x, _ in pairs)
    sum_y = sum(y for _, y in pairs)
    sum_xy = sum(x * y for x, y in pairs)
    sum_x2 = sum(x * x for x, _ in pairs)

    denominator = sum_x2 - (sum_x * sum_x) / n
    if abs(denominator) < REGRESSION_EPSILON:
        return None

    slope = (sum_xy - (sum_x * sum_y) / n) / denominator
    intercept = sum_y / n - slope * sum_x / n
    return slope, intercept


def _r_squared(pairs: Sequence[tuple[int, float]], predict: Callable[[float], float]) -> float:
    mean_y = sum(y for _, y in pairs) / len(pairs)
    ss_tot = sum((y - mean_y) ** 2 for _, y in pairs)
    ss_res = sum((y - predict(x)) ** 2 for x, y in pairs)
    return 1 - ss_res / ss_tot if ss_tot > 0 else 0.0


def linear_regression(
    values: Sequence[float | None], total_points: int
) -> RegressionResult | None:
    """Fit ``y = a + b*x`` over the non-missing points, x being the index.

    Returns None with fewer than three valid points.
    """
    pairs = [(x, y) for x, y in enumerate(values) if _is_number(y)]
    if len(pairs) < MIN_REGRESSION_POINTS:
        return None

    fit = _least_squares(pairs)
    if fit is None:
        return None
    slope, intercept = fit

    def predict(x: float) -> float:
        return intercept + slope * x

    return RegressionResult(
        slope=slope,
        intercept=intercept,
        r_squared=_r_squared(pairs, predict),
        predicted_values=[predict(x) for x in range(total_points)],
        kind=RegressionKind.LINEAR,
        valid_point_count=len(pairs),
    )


def log_linear_regression(
    values: Sequence[float | None], total_points: int
) -> RegressionResult | None:
    """Fit ``y = a * exp(b*x)`` by regressing ``ln(y)`` on x.

    Only positive values take part. R² is measured on the original scale.
    """
    pairs = [(x, y) for x, y in enumerate(values) if _is_number(y) and y > 0]
    if len(pairs) < MIN_REGRESSION_POINTS:
        return None

    fit = _least_squares([(x, math.log(y)) for x, y in pairs])
    if fit is None:
        return None
    rate, log_scale = fit
    scale = math.exp(log_scale)

    def predict(x: float) -> float:
        return scale * math.exp(rate * x)

    return RegressionResult(
        slope=rate,
        intercept=scale,
        r_squared=_r_squared(pairs, predict),
        predicted_values=[predict(x) for x in range(total_points)],
        kind=RegressionKind.LOG_LINEAR,
        valid_point_count=len(pairs),
    )


def best_regression(
    values: Sequence[float | None],
    total_points: int,
    r_squared_threshold: float = DEFAULT_R_SQUARED_THRESHOLD,
) -> RegressionResult | None:
    """Return the better of the linear and log-linear fits meeting the R² threshold.

    Log-linear wins ties.
    """
    candidates = [
        fit
        for fit in (
            log_linear_regression(values, total_points),
            linear_regression(values, total_points),
        )
        if fit is not None and fit.r_squared >= r_squared_threshold
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda fit: fit.r_squared)


def ratio_series(points: Sequence[DailyRatioPoint], key: RatioKey) -> list[float]:
    """Extract one ratio from a daily rollup, in date order."""
    return [getattr(point, key.value) for point in points]
