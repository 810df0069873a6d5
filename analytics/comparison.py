# analytics/comparison.py
from __future__ import annotations

import sqlite3
from typing import Optional

from sst_core.models import Comparison, DateRange, Granularity
from sst_utils.periods import previous_range

from .aggregate import aggregate

# Percentage change below which two periods count as the same
COMPARISON_STABLE_PCT = 5.0


def compare(current: float, previous: float) -> Comparison:
    """
    Period-over-period change.

    The percentage is 0 when there is no positive baseline; the trend then
    follows the sign of the delta alone.
    """
    current = float(current)
    previous = float(previous)
    delta = current - previous

    if previous > 0:
        percentage = delta / previous * 100.0
        if abs(percentage) < COMPARISON_STABLE_PCT:
            trend = "stable"
        else:
            trend = "up" if delta > 0 else "down"
    else:
        percentage = 0.0
        if delta > 0:
            trend = "up"
        elif delta < 0:
            trend = "down"
        else:
            trend = "stable"

    return Comparison(
        current=current,
        previous=previous,
        delta=delta,
        percentage=percentage,
        trend=trend,
    )


def compare_with_previous(
    conn: sqlite3.Connection, period: DateRange, status: Optional[int] = None
) -> Comparison:
    """Compare the period's total with the preceding period of the same kind."""
    current = aggregate(conn, period, Granularity.DAY, status)
    previous = aggregate(conn, previous_range(period), Granularity.DAY, status)
    return compare(current.total, previous.total)
