from __future__ import annotations

from typing import Iterable

import pandas as pd
from dateutil.relativedelta import relativedelta
from scipy import stats


def require_columns(df: pd.DataFrame, cols: Iterable[str]) -> None:
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")


def z_critical(confidence: float = 0.95) -> float:
    """Two-sided standard normal critical value, e.g. 1.96 for 0.95."""
    if not 0.0 < confidence < 1.0:
        raise ValueError(f"confidence must be in (0, 1), got {confidence}")
    return float(stats.norm.ppf(0.5 + confidence / 2.0))


def years_between(start, end, days_per_year: float = 365.0) -> pd.Series:
    """Elapsed years from start to end (scalars or aligned Series), floored at zero."""
    delta = pd.to_datetime(end) - pd.to_datetime(start)
    days = pd.Series(delta).dt.days.astype(float)
    return days.clip(lower=0.0) / days_per_year


def month_overlap_fractions(start: pd.Timestamp, end_exclusive: pd.Timestamp) -> pd.DataFrame:
    """
    For each calendar month touched by [start, end_exclusive), the fraction of
    that month's days falling inside the window.

    Returns a DataFrame with columns year, month, fraction.
    """
    start = pd.Timestamp(start)
    end_exclusive = pd.Timestamp(end_exclusive)
    if end_exclusive <= start:
        raise ValueError("Window end must be after window start.")

    rows = []
    month_start = pd.Timestamp(year=start.year, month=start.month, day=1)
    while month_start < end_exclusive:
        next_month = month_start + relativedelta(months=1)
        lo = max(month_start, start)
        hi = min(next_month, end_exclusive)
        n_days = (next_month - month_start).days
        rows.append({
            "year": month_start.year,
            "month": month_start.month,
            "fraction": (hi - lo).days / n_days,
        })
        month_start = next_month
    return pd.DataFrame(rows)


def shift_year(ts: pd.Timestamp, year: int) -> pd.Timestamp:
    """Move a date to another year, keeping month/day (Feb 29 -> Feb 28)."""
    ts = pd.Timestamp(ts)
    return ts + relativedelta(year=year)


def shift_window(start: pd.Timestamp, end_exclusive: pd.Timestamp, year: int):
    """Move a [start, end_exclusive) window so that it starts in `year`."""
    start = pd.Timestamp(start)
    end_exclusive = pd.Timestamp(end_exclusive)
    offset = year - start.year
    return shift_year(start, year), shift_year(end_exclusive, end_exclusive.year + offset)
