# analytics/performance.py
from __future__ import annotations

import math
import sqlite3
from datetime import timedelta
from typing import Optional

from sst_core.models import DateRange, PerformanceScore
from sst_utils.periods import DateLike, to_date

from .anomaly import daily_totals

# (upper ratio bound, label); first match wins
PERFORMANCE_BANDS = [
    (0.7, "Excellent"),
    (1.0, "Good"),
    (1.3, "Moderate"),
    (1.7, "High"),
]
TOP_BAND = "Very High"


def score(amount: float, average: float) -> PerformanceScore:
    """
    Rate a spend amount against an average: lower spend scores higher.
    ratio = amount / average (1 when there is no positive average).
    """
    ratio = float(amount) / float(average) if average > 0 else 1.0

    label = TOP_BAND
    for bound, name in PERFORMANCE_BANDS:
        if ratio < bound:
            label = name
            break

    if ratio <= 0:
        value = 100
    else:
        # round half up
        value = int(math.floor(100.0 / ratio + 0.5))
        value = max(0, min(100, value))

    return PerformanceScore(label=label, score=value, ratio=ratio)


def score_day(
    conn: sqlite3.Connection,
    day: DateLike,
    baseline_days: int = 7,
    status: Optional[int] = None,
) -> PerformanceScore:
    """Score a day's total against the mean daily total of the days before it."""
    if baseline_days < 1:
        raise ValueError("baseline_days must be >= 1")

    d = to_date(day)
    today = daily_totals(conn, DateRange(d, d), status)
    baseline = daily_totals(
        conn,
        DateRange(d - timedelta(days=baseline_days), d - timedelta(days=1)),
        status,
    )
    average = sum(t.amount for t in baseline) / baseline_days
    return score(today[0].amount, average)
