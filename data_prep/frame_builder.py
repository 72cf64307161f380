"""
Build the per-individual analysis frame from roster, weight and death tables.

One row per person ever living in a surveyed household during the window:
living roster members plus household members reported dead. Each row carries
its household's stratum, size and sampling weight, a resolved death date, the
before/after-event death indicators, and person-time split at the event date.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

import numpy as np
import pandas as pd
from dateutil.relativedelta import relativedelta

from core.config import AnalysisConfig
from core.schema import (
    DEATH_COLUMNS,
    FRAME_COLUMNS,
    HOUSEHOLD_COLUMNS,
    INDIVIDUAL_COLUMNS,
    WEIGHT_COLUMNS,
)
from core.utils import require_columns, years_between

logger = logging.getLogger(__name__)


_COLUMN_ALIASES: Dict[str, str] = {
    # identifiers
    "household_id": "hh_id",
    "hhid": "hh_id",
    "HHID": "hh_id",
    "individual_id": "person_id",
    "ind_id": "person_id",
    # design
    "stratum": "strata",
    "remoteness": "strata",
    "household_size": "hh_size",
    "size": "hh_size",
    "hh_weight": "weight",
    "sampling_weight": "weight",
    # demographics
    "sex": "gender",
    # deaths
    "death_month": "died_month",
    "death_day": "died_day",
    "death_year": "died_year",
}

# Bare names whose meaning depends on the table ("id" is the household id on
# the household roster, "month" is a real column of the official counts).
_TABLE_ALIASES: Dict[str, Dict[str, str]] = {
    "households": {"id": "hh_id"},
    "individuals": {"id": "person_id"},
    "deaths": {"id": "person_id", "month": "died_month", "day": "died_day", "year": "died_year"},
}


def _coalesce_duplicates(df: pd.DataFrame) -> pd.DataFrame:
    """Merge same-named columns left to right; the first non-null value wins."""
    merged: Dict[str, pd.Series] = {}
    for pos, name in enumerate(df.columns):
        col = df.iloc[:, pos]
        merged[name] = merged[name].combine_first(col) if name in merged else col
    return pd.DataFrame(merged, index=df.index)


def canonicalize_columns(df: pd.DataFrame, table: Optional[str] = None) -> pd.DataFrame:
    """
    Return a copy with survey column aliases mapped to canonical names.

    `table` adds the aliases that only make sense for that table. When two
    source columns map to the same name (e.g. "sex" and "gender") they are
    merged into one.
    """
    aliases = dict(_COLUMN_ALIASES)
    aliases.update(_TABLE_ALIASES.get(table, {}))
    out = df.rename(columns=lambda c: aliases.get(c, c))
    if out.columns.duplicated().any():
        return _coalesce_duplicates(out)
    return out.copy()


def attach_weights(
    households: pd.DataFrame,
    weights: Optional[pd.DataFrame] = None,
) -> pd.DataFrame:
    """
    Return households with a numeric `weight` column.

    Household-level weights win; stratum weights from the survey weights table
    fill the gaps.
    """
    hh = canonicalize_columns(households, "households")
    require_columns(hh, HOUSEHOLD_COLUMNS)

    if weights is not None:
        w = canonicalize_columns(weights)
        require_columns(w, WEIGHT_COLUMNS)
        w = w.loc[:, list(WEIGHT_COLUMNS)].drop_duplicates(subset="strata")
        w = w.rename(columns={"weight": "_strata_weight"})
        hh = hh.merge(w, on="strata", how="left")
        if "weight" in hh.columns:
            hh["weight"] = hh["weight"].combine_first(hh["_strata_weight"])
        else:
            hh["weight"] = hh["_strata_weight"]
        hh = hh.drop(columns="_strata_weight")

    if "weight" not in hh.columns:
        raise ValueError("No sampling weights: households carry no 'weight' and no weights table given.")

    hh["weight"] = pd.to_numeric(hh["weight"], errors="coerce")
    n_missing = int(hh["weight"].isna().sum())
    if n_missing:
        logger.warning("%d households have no sampling weight and are dropped", n_missing)
        hh = hh[hh["weight"].notna()].copy()
    return hh


def _month_end_exclusive(ts: pd.Timestamp) -> pd.Timestamp:
    return pd.Timestamp(year=ts.year, month=ts.month, day=1) + relativedelta(months=1)


def _death_date(year, month, day, config: AnalysisConfig) -> pd.Timestamp:
    if pd.isna(year) or pd.isna(month):
        return pd.NaT
    year, month = int(year), int(month)
    if not 1 <= month <= 12:
        return pd.NaT
    month_start = pd.Timestamp(year=year, month=month, day=1)
    month_end = _month_end_exclusive(month_start)

    if not pd.isna(day):
        last_day = (month_end - pd.Timedelta(days=1)).day
        return pd.Timestamp(year=year, month=month, day=min(max(int(day), 1), last_day))

    event = pd.Timestamp(config.event_date)
    if year == event.year and month == event.month and config.undated_event_month != "midpoint":
        if config.undated_event_month == "after":
            return event + pd.Timedelta(days=(month_end - event).days // 2)
        before = month_start + pd.Timedelta(days=max((event - month_start).days - 1, 0) // 2)
        # strictly before the event, even when the event is on the 1st
        return min(before, event - pd.Timedelta(days=1))

    return month_start + pd.Timedelta(days=(month_end - month_start).days // 2)


def resolve_death_dates(deaths: pd.DataFrame, config: AnalysisConfig) -> pd.Series:
    """
    Turn died_year/died_month/died_day into a death date.

    Missing year defaults to the window's year. Missing day is imputed as
    mid-month. In the event month `config.undated_event_month` places it
    after the event, strictly before it, or ("midpoint") at mid-month like any
    other month.
    """
    d = canonicalize_columns(deaths, "deaths")
    year = d["died_year"] if "died_year" in d.columns else pd.Series(
        pd.Timestamp(config.window_start).year, index=d.index
    )
    day = d["died_day"] if "died_day" in d.columns else pd.Series(np.nan, index=d.index)
    year = pd.to_numeric(year, errors="coerce")
    month = pd.to_numeric(d["died_month"], errors="coerce")
    day = pd.to_numeric(day, errors="coerce")

    dates = [
        _death_date(y, m, dd, config)
        for y, m, dd in zip(year.to_numpy(), month.to_numpy(), day.to_numpy())
    ]
    return pd.Series(pd.to_datetime(dates), index=d.index, name="death_date")


def add_person_time(frame: pd.DataFrame, config: AnalysisConfig) -> pd.DataFrame:
    """
    Split each person's exposure at the event date.

    Exposure runs from window_start to the end of the window, or to the death
    date for those who died. Both parts are floored at zero.
    """
    out = frame.copy()
    start = pd.Timestamp(config.window_start)
    event = pd.Timestamp(config.event_date)
    end_excl = config.window_end_exclusive

    exit_date = out["death_date"].where(out["died"] == 1, end_excl)
    exit_date = pd.to_datetime(exit_date).clip(lower=start, upper=end_excl)
    before_exit = exit_date.clip(upper=event)

    out["before_years"] = years_between(start, before_exit, config.days_per_year)
    out["after_years"] = years_between(event, exit_date, config.days_per_year)
    out["died_before"] = ((out["died"] == 1) & (out["death_date"] < event)).astype(int)
    out["died_after"] = ((out["died"] == 1) & (out["death_date"] >= event)).astype(int)
    return out


def build_analysis_frame(
    households: pd.DataFrame,
    individuals: pd.DataFrame,
    deaths: pd.DataFrame,
    config: AnalysisConfig,
    *,
    weights: Optional[pd.DataFrame] = None,
) -> pd.DataFrame:
    """
    Join household, individual, weight and death tables into one row per person.

    - Living roster members contribute the full window.
    - Deaths are resolved to dates; deaths outside the window are dropped.
    - Rows whose household is not in the household table are dropped.

    Returns a DataFrame with core.schema.FRAME_COLUMNS (plus any extra columns
    carried by the individual and death tables).
    """
    hh = attach_weights(households, weights)
    ind = canonicalize_columns(individuals, "individuals")
    dth = canonicalize_columns(deaths, "deaths")
    require_columns(ind, INDIVIDUAL_COLUMNS)
    require_columns(dth, DEATH_COLUMNS)

    living = ind.copy()
    living["died"] = 0
    living["death_date"] = pd.NaT

    dead = dth.copy()
    dead["death_date"] = resolve_death_dates(dth, config)
    dead["died"] = 1
    n_undated = int(dead["death_date"].isna().sum())
    if n_undated:
        logger.warning("%d death records have no usable month and are dropped", n_undated)
    in_window = dead["death_date"].between(
        pd.Timestamp(config.window_start), pd.Timestamp(config.window_end)
    )
    n_outside = int((~in_window & dead["death_date"].notna()).sum())
    if n_outside:
        logger.info("%d deaths fall outside the observation window and are dropped", n_outside)
    dead = dead[in_window].drop(
        columns=[c for c in ("died_year", "died_month", "died_day") if c in dead.columns]
    )

    people = pd.concat([living, dead], ignore_index=True, sort=False)
    people["death_date"] = pd.to_datetime(people["death_date"])
    people["age"] = pd.to_numeric(people["age"], errors="coerce")

    hh_cols = list(HOUSEHOLD_COLUMNS) + ["weight"]
    hh_extra = [c for c in people.columns if c in hh_cols and c != "hh_id"]
    frame = people.drop(columns=hh_extra).merge(hh.loc[:, hh_cols], on="hh_id", how="left")

    orphan = frame["strata"].isna()
    if orphan.any():
        logger.warning("%d people belong to households missing from the roster and are dropped",
                       int(orphan.sum()))
        frame = frame[~orphan].copy()

    frame["hh_size"] = pd.to_numeric(frame["hh_size"], errors="coerce")
    no_size = frame["hh_size"].isna()
    if no_size.any():
        # fall back to the number of people listed (living plus deceased)
        listed = frame.groupby("hh_id")["person_id"].transform("size")
        frame.loc[no_size, "hh_size"] = listed[no_size]
    frame = add_person_time(frame, config)

    if (frame[["before_years", "after_years"]] < 0).any().any():
        raise ValueError("Negative person-time produced; check window and death dates.")

    lead = list(FRAME_COLUMNS)
    rest = [c for c in frame.columns if c not in lead]
    frame = frame.loc[:, lead + rest].reset_index(drop=True)

    logger.info(
        "Analysis frame: %d people in %d households, %d deaths before and %d after the event",
        len(frame), frame["hh_id"].nunique(),
        int(frame["died_before"].sum()), int(frame["died_after"].sum()),
    )
    return frame
