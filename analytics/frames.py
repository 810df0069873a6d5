# analytics/frames.py
"""
pandas adapters for chart and export consumers.
"""
from __future__ import annotations

from typing import Iterable, List, Optional

import pandas as pd

from sst_core.models import DailyTotal, MigrationReport, PeriodAggregate

BUCKET_COLUMNS = ["key", "label", "start", "end", "amount", "count"]
PRODUCT_COLUMNS = [
    "product_id",
    "label",
    "unit",
    "quantity",
    "amount",
    "count",
    "avg_unit_price",
]


def buckets_frame(agg: PeriodAggregate) -> pd.DataFrame:
    """Bucket series, one row per bucket, indexed by bucket key."""
    rows = [
        {
            "key": b.key,
            "label": b.label,
            "start": pd.Timestamp(b.start),
            "end": pd.Timestamp(b.end),
            "amount": b.amount,
            "count": b.count,
        }
        for b in agg.buckets
    ]
    df = pd.DataFrame(rows, columns=BUCKET_COLUMNS)
    return df.set_index("key")


def products_frame(agg: PeriodAggregate) -> pd.DataFrame:
    """Per-product breakdown with each product's share of the period total."""
    df = pd.DataFrame([p.to_dict() for p in agg.per_product], columns=PRODUCT_COLUMNS)
    if agg.total:
        df["share_pct"] = df["amount"] / agg.total * 100.0
    else:
        df["share_pct"] = 0.0
    return df


def daily_frame(
    totals: Iterable[DailyTotal], anomalies: Optional[List] = None
) -> pd.DataFrame:
    """Daily totals indexed by day, with an 'anomaly' flag column."""
    flagged = set(anomalies or [])
    rows = [
        {"day": pd.Timestamp(t.day), "amount": t.amount, "anomaly": t.day in flagged}
        for t in totals
    ]
    df = pd.DataFrame(rows, columns=["day", "amount", "anomaly"])
    return df.set_index("day")


def migration_frame(report: MigrationReport) -> pd.DataFrame:
    """One row per migration step outcome."""
    rows = [
        {"step": s.name, "status": s.status, "error": s.error or ""}
        for s in report.steps
    ]
    return pd.DataFrame(rows, columns=["step", "status", "error"])
