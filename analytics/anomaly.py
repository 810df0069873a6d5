# analytics/anomaly.py
"""
Outlier days: a day is anomalous when its total sits at least
ANOMALY_SIGMA population standard deviations away from the mean of the range.
"""
from __future__ import annotations

import logging
import sqlite3
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from sst_core.models import DailyTotal, DateRange, Granularity

from .aggregate import bucket_totals

log = logging.getLogger("analytics")

ANOMALY_SIGMA = 2.0
ANOMALY_MIN_POINTS = 3

Point = Union[DailyTotal, Tuple[date, float], Sequence]


def _as_pair(point: Point) -> Tuple[date, float]:
    if isinstance(point, DailyTotal):
        return point.day, float(point.amount)
    day, amount = point
    return day, float(amount)


def find_anomalies(daily_totals: Iterable[Point]) -> List[date]:
    """Days whose amount deviates from the mean by >= ANOMALY_SIGMA * stddev."""
    points = [_as_pair(p) for p in daily_totals]
    if len(points) < ANOMALY_MIN_POINTS:
        return []

    amounts = np.array([amount for _, amount in points], dtype=float)
    mean = amounts.mean()
    std = amounts.std()  # population (ddof=0)
    if std <= 0:
        return []

    threshold = ANOMALY_SIGMA * std
    deviations = np.abs(amounts - mean)
    flagged = (deviations >= threshold) | np.isclose(deviations, threshold)

    out = [day for (day, _), hit in zip(points, flagged) if hit]
    if out:
        log.debug(
            "%d anomalous day(s) (mean=%.2f std=%.2f): %s",
            len(out),
            mean,
            std,
            ", ".join(d.isoformat() for d in out),
        )
    return out


def daily_totals(
    conn: sqlite3.Connection, period: DateRange, status: Optional[int] = None
) -> List[DailyTotal]:
    """One DailyTotal per calendar day of the period, zero-filled."""
    return [
        DailyTotal(day=b.start, amount=b.amount)
        for b in bucket_totals(conn, period, Granularity.DAY, status)
    ]
