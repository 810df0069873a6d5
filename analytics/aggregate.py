# analytics/aggregate.py
"""
Period aggregation over purchase lists and their line items.

Everything is keyed on the list's purchase date (ListeAchat.dateAchat); a
line item belongs to the period its list falls in. Bucket series are
zero-filled so charts and trend fitting always see one value per slot.
"""
from __future__ import annotations

import logging
import sqlite3
from datetime import date
from typing import Any, Dict, List, Optional, Tuple, Union

from sst_core.models import (
    Bucket,
    DateRange,
    Granularity,
    PeriodAggregate,
    ProductBreakdown,
)
from sst_utils.periods import iter_days, month_range, month_starts, week_starts

log = logging.getLogger("analytics")

# SQL expression producing each granularity's bucket key from a list date
BUCKET_KEY_SQL = {
    Granularity.HOUR: "strftime('%H', l.dateAchat)",
    Granularity.DAY: "DATE(l.dateAchat)",
    Granularity.WEEK: "DATE(l.dateAchat, 'weekday 0', '-6 days')",
    Granularity.MONTH: "strftime('%Y-%m-01', l.dateAchat)",
}


def parse_granularity(value: Union[Granularity, str]) -> Granularity:
    if isinstance(value, Granularity):
        return value
    try:
        return Granularity(str(value).lower())
    except ValueError:
        names = ", ".join(g.value for g in Granularity)
        raise ValueError(
            f"Unknown granularity {value!r}; expected one of {names}"
        ) from None


def _where(period: DateRange, status: Optional[int]) -> Tuple[str, List[Any]]:
    conditions = ["DATE(l.dateAchat) BETWEEN ? AND ?"]
    params: List[Any] = [period.start.isoformat(), period.end.isoformat()]
    if status is not None:
        conditions.append("l.statut = ?")
        params.append(status)
    return "WHERE " + " AND ".join(conditions), params


def empty_buckets(period: DateRange, granularity: Granularity) -> List[Bucket]:
    """Zero-valued buckets covering the period, in chronological order."""
    if granularity is Granularity.HOUR:
        return [
            Bucket(key=f"{h:02d}", label=f"{h:02d}:00", start=period.start, end=period.end)
            for h in range(24)
        ]

    if granularity is Granularity.DAY:
        return [
            Bucket(key=d.isoformat(), label=d.strftime("%a %d %b"), start=d, end=d)
            for d in iter_days(period)
        ]

    if granularity is Granularity.WEEK:
        buckets = []
        for monday in week_starts(period):
            sunday = date.fromordinal(monday.toordinal() + 6)
            buckets.append(
                Bucket(
                    key=monday.isoformat(),
                    label=f"Week {monday.isocalendar()[1]:02d}",
                    start=max(monday, period.start),
                    end=min(sunday, period.end),
                )
            )
        return buckets

    if granularity is Granularity.MONTH:
        buckets = []
        for first in month_starts(period):
            last = month_range(first).end
            buckets.append(
                Bucket(
                    key=first.isoformat(),
                    label=first.strftime("%b %Y"),
                    start=max(first, period.start),
                    end=min(last, period.end),
                )
            )
        return buckets

    raise ValueError(f"Unhandled granularity: {granularity!r}")


def bucket_totals(
    conn: sqlite3.Connection,
    period: DateRange,
    granularity: Granularity,
    status: Optional[int] = None,
) -> List[Bucket]:
    """Zero-filled bucket series for the period."""
    granularity = parse_granularity(granularity)
    buckets = empty_buckets(period, granularity)
    by_key: Dict[str, Bucket] = {b.key: b for b in buckets}

    key_expr = BUCKET_KEY_SQL[granularity]
    where, params = _where(period, status)
    cur = conn.cursor()
    cur.execute(
        f"""
        SELECT
            {key_expr} AS bucket,
            COALESCE(SUM(a.prixTotal), 0) AS total,
            COUNT(a.idArticle) AS count
        FROM Article a
        JOIN ListeAchat l ON l.idListe = a.idListeAchat
        {where}
        GROUP BY bucket
        """,
        params,
    )
    for row in cur.fetchall():
        bucket = by_key.get(row[0])
        if bucket is None:
            log.debug("Dropping rows with unparseable date bucket %r", row[0])
            continue
        bucket.amount = float(row[1])
        bucket.count = int(row[2])
    return buckets


def product_breakdown(
    conn: sqlite3.Connection, period: DateRange, status: Optional[int] = None
) -> List[ProductBreakdown]:
    """Per-product quantity and spend, largest spend first."""
    where, params = _where(period, status)
    cur = conn.cursor()
    cur.execute(
        f"""
        SELECT
            a.idProduit AS product_id,
            COALESCE(p.libelle, '(unknown)') AS label,
            COALESCE(p.unite, 'pcs') AS unit,
            COALESCE(SUM(a.quantite), 0) AS quantity,
            COALESCE(SUM(a.prixTotal), 0) AS amount,
            COUNT(*) AS count
        FROM Article a
        JOIN ListeAchat l ON l.idListe = a.idListeAchat
        LEFT JOIN Produit p ON p.idProduit = a.idProduit
        {where}
        GROUP BY a.idProduit
        ORDER BY amount DESC, label
        """,
        params,
    )
    out = []
    for row in cur.fetchall():
        product_id, label, unit, quantity, amount, count = row
        quantity = float(quantity)
        amount = float(amount)
        out.append(
            ProductBreakdown(
                product_id=product_id,
                label=label,
                unit=unit,
                quantity=quantity,
                amount=amount,
                count=int(count),
                avg_unit_price=amount / quantity if quantity else 0.0,
            )
        )
    return out


def aggregate(
    conn: sqlite3.Connection,
    period: DateRange,
    granularity: Union[Granularity, str] = Granularity.DAY,
    status: Optional[int] = None,
) -> PeriodAggregate:
    """
    Total spend, item count, per-product breakdown and bucket series for
    every line item whose list date falls in `period` (inclusive).

    `status` restricts to lists with that statut (e.g. only validated ones).
    Query errors propagate to the caller.
    """
    granularity = parse_granularity(granularity)
    where, params = _where(period, status)
    cur = conn.cursor()

    cur.execute(
        f"""
        SELECT COALESCE(SUM(a.prixTotal), 0), COUNT(a.idArticle)
        FROM Article a
        JOIN ListeAchat l ON l.idListe = a.idListeAchat
        {where}
        """,
        params,
    )
    total, count = cur.fetchone()

    cur.execute(f"SELECT COUNT(*) FROM ListeAchat l {where}", params)
    list_count = cur.fetchone()[0]

    result = PeriodAggregate(
        period=period,
        granularity=granularity,
        total=float(total),
        count=int(count),
        list_count=int(list_count),
        per_product=product_breakdown(conn, period, status),
        buckets=bucket_totals(conn, period, granularity, status),
    )
    log.debug(
        "Aggregated %s..%s by %s: total=%.2f items=%d lists=%d",
        period.start,
        period.end,
        granularity.value,
        result.total,
        result.count,
        result.list_count,
    )
    return result
