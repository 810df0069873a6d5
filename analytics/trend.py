# analytics/trend.py
from __future__ import annotations

from typing import Iterable

import numpy as np

# Minimum absolute slope (currency units per bucket) to call a direction
TREND_SLOPE_THRESHOLD = 50.0


def fit_slope(series: Iterable[float]) -> float:
    """Least-squares slope of the series against its index 0..n-1."""
    y = np.asarray(list(series), dtype=float)
    n = y.size
    if n < 2:
        return 0.0
    x = np.arange(n, dtype=float)
    denom = n * np.sum(x * x) - np.sum(x) ** 2
    if denom == 0:
        return 0.0
    return float((n * np.sum(x * y) - np.sum(x) * np.sum(y)) / denom)


def classify(series: Iterable[float]) -> str:
    """'up', 'down' or 'stable' from the fitted slope."""
    slope = fit_slope(series)
    if abs(slope) < TREND_SLOPE_THRESHOLD:
        return "stable"
    return "up" if slope > 0 else "down"
