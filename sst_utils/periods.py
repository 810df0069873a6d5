from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import List, Union

from sst_core.models import DateRange

DateLike = Union[date, datetime, str]

PERIOD_KINDS = ("day", "week", "month", "year")


def to_date(value: DateLike) -> date:
    """Coerce a date, datetime or ISO-8601 string (with or without time) to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            raise ValueError(f"Not an ISO date: {value!r}") from None
    raise TypeError(f"Cannot convert {type(value).__name__} to date")


def day_range(value: DateLike) -> DateRange:
    d = to_date(value)
    return DateRange(d, d)


def week_range(value: DateLike) -> DateRange:
    """Monday..Sunday week containing the date."""
    d = to_date(value)
    start = d - timedelta(days=d.weekday())
    return DateRange(start, start + timedelta(days=6))


def month_range(value: DateLike) -> DateRange:
    d = to_date(value)
    last = calendar.monthrange(d.year, d.month)[1]
    return DateRange(d.replace(day=1), d.replace(day=last))


def year_range(value: DateLike) -> DateRange:
    d = to_date(value)
    return DateRange(date(d.year, 1, 1), date(d.year, 12, 31))


def range_for(kind: str, value: DateLike) -> DateRange:
    """Calendar range of the given kind ('day', 'week', 'month', 'year')."""
    builders = {
        "day": day_range,
        "week": week_range,
        "month": month_range,
        "year": year_range,
    }
    try:
        builder = builders[kind.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown period kind {kind!r}; expected one of {', '.join(PERIOD_KINDS)}"
        ) from None
    return builder(value)


def _is_full_month(period: DateRange) -> bool:
    return period == month_range(period.start)


def _is_full_year(period: DateRange) -> bool:
    return period == year_range(period.start)


def previous_range(period: DateRange) -> DateRange:
    """
    The period of the same kind immediately before `period`.

    Whole calendar months and years step back by one calendar unit (so the
    previous range of March is all of February). Anything else, including
    days and Monday-started weeks, shifts back by its own length.
    """
    if _is_full_year(period):
        return year_range(date(period.start.year - 1, 1, 1))
    if _is_full_month(period):
        return month_range(period.start - timedelta(days=1))
    length = timedelta(days=period.days)
    return DateRange(period.start - length, period.end - length)


def iter_days(period: DateRange) -> List[date]:
    return [period.start + timedelta(days=i) for i in range(period.days)]


def week_starts(period: DateRange) -> List[date]:
    """Mondays of every week overlapping the range."""
    first = week_range(period.start).start
    out = []
    d = first
    while d <= period.end:
        out.append(d)
        d += timedelta(days=7)
    return out


def month_starts(period: DateRange) -> List[date]:
    """First days of every calendar month overlapping the range."""
    out = []
    d = period.start.replace(day=1)
    while d <= period.end:
        out.append(d)
        d = month_range(d).end + timedelta(days=1)
    return out
