from __future__ import annotations

from datetime import date, datetime
from typing import List, Union

import pandas as pd


DateLike = Union[date, datetime, pd.Timestamp, pd.Period, str]

EARLY_YEARS = 5
MONTHS_PER_YEAR = 12


def to_month(value: DateLike) -> pd.Period:
    """Return the calendar month containing value as a monthly Period.

    Accepts dates, datetimes, Timestamps, Periods and ISO-like strings
    ("2023-12", "2023-12-01").
    """
    if isinstance(value, pd.Period):
        return value.asfreq("M")
    if isinstance(value, (pd.Timestamp, datetime, date)):
        return pd.Period(year=value.year, month=value.month, freq="M")
    # Allow strings via pandas parsing for convenience
    t = pd.Timestamp(value)  # type: ignore[arg-type]
    return pd.Period(year=t.year, month=t.month, freq="M")


def first_day(month: pd.Period) -> date:
    """First calendar day of a month."""
    return date(month.year, month.month, 1)


def last_day(month: pd.Period) -> date:
    return month.end_time.date()


def this_month(today: DateLike | None = None) -> pd.Period:
    return to_month(today if today is not None else date.today())


def fifth_anniversary(issue_month: pd.Period) -> pd.Period:
    """Month a bond stops losing interest on early redemption."""
    return issue_month + EARLY_YEARS * MONTHS_PER_YEAR


def month_range(start: pd.Period, end: pd.Period) -> List[pd.Period]:
    """Inclusive list of months from start to end; empty when end precedes start."""
    if end < start:
        return []
    return list(pd.period_range(start=start, end=end, freq="M"))


def month_label(month: pd.Period) -> str:
    """Short label such as 'Dec 2023' used in interest memos."""
    return month.strftime("%b %Y")
