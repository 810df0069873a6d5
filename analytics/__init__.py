# analytics/__init__.py
"""
Analytics over the shopping store: period aggregation, period-over-period
comparison, trend classification, anomaly detection and day scoring.

All entry points take an open sqlite3 connection (or plain numbers) and
return dataclasses from sst_core.models.
"""

from .aggregate import aggregate, bucket_totals, parse_granularity, product_breakdown
from .anomaly import ANOMALY_MIN_POINTS, ANOMALY_SIGMA, daily_totals, find_anomalies
from .comparison import COMPARISON_STABLE_PCT, compare, compare_with_previous
from .performance import score, score_day
from .trend import TREND_SLOPE_THRESHOLD, classify, fit_slope

__all__ = [
    "aggregate",
    "bucket_totals",
    "parse_granularity",
    "product_breakdown",
    "compare",
    "compare_with_previous",
    "COMPARISON_STABLE_PCT",
    "fit_slope",
    "classify",
    "TREND_SLOPE_THRESHOLD",
    "find_anomalies",
    "daily_totals",
    "ANOMALY_SIGMA",
    "ANOMALY_MIN_POINTS",
    "score",
    "score_day",
]
