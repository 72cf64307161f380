"""
Age-distribution adjustment.

The survey's age composition after the event differs from the pre-event
population (deaths, out-migration). Age-specific post-event rates are
re-weighted with the fixed pre-event census age distribution.
"""

from __future__ import annotations

import logging
from typing import Literal, Tuple

import numpy as np
import pandas as pd

from core.utils import require_columns
from estimators.grouped import rates_by
from estimators.rate import RateEstimate

from .poststrat import post_stratify

logger = logging.getLogger(__name__)


# an age_end at or above this marks the last, open-ended group
OPEN_AGE_END = 120


def _is_open(end) -> bool:
    return bool(pd.isna(end) or end >= OPEN_AGE_END)


def age_group_labels(census_age: pd.DataFrame) -> pd.Series:
    """Label each census row "start-end", or "start+" for an open last group."""
    if "age_group" in census_age.columns:
        return census_age["age_group"].astype(str)
    labels = []
    for start, end in zip(census_age["age_start"], census_age["age_end"]):
        if _is_open(end):
            labels.append(f"{int(start)}+")
        else:
            labels.append(f"{int(start)}-{int(end)}")
    return pd.Series(labels, index=census_age.index)


def assign_age_groups(ages: pd.Series, census_age: pd.DataFrame) -> pd.Series:
    """Map ages onto the census age groups; ages outside every group are NaN."""
    require_columns(census_age, ["age_start", "age_end"])
    ages = pd.to_numeric(ages, errors="coerce")
    labels = age_group_labels(census_age)
    groups = pd.Series(np.nan, index=ages.index, dtype=object)
    for start, end, label in zip(census_age["age_start"], census_age["age_end"], labels):
        upper = np.inf if _is_open(end) else float(end) + 1.0
        groups[(ages >= float(start)) & (ages < upper)] = label
    n_unmatched = int((groups.isna() & ages.notna()).sum())
    if n_unmatched:
        logger.warning("%d ages fall outside the census age groups", n_unmatched)
    return groups


def census_age_frequencies(census_age: pd.DataFrame) -> pd.Series:
    require_columns(census_age, ["age_start", "age_end", "proportion"])
    f = pd.Series(
        pd.to_numeric(census_age["proportion"], errors="coerce").to_numpy(),
        index=age_group_labels(census_age).to_numpy(),
    )
    return f / f.sum()


def age_adjusted_rate(
    frame: pd.DataFrame,
    census_age: pd.DataFrame,
    *,
    period: Literal["before", "after"] = "after",
    variance: Literal["keyfitz", "stratified"] = "keyfitz",
    on_missing: Literal["raise", "drop"] = "drop",
    per: float = 1000.0,
    confidence: float = 0.95,
) -> Tuple[RateEstimate, pd.DataFrame]:
    """
    Age-standardized rate for one period using the census age distribution.

    Returns
    -------
    (estimate, table) with one row per census age group. Groups the survey
    never reaches are flagged `dropped` and their share is spread over the rest.
    """
    death_col, time_col = f"died_{period}", f"{period}_years"
    df = frame.assign(stratum=assign_age_groups(frame["age"], census_age))
    strata = rates_by(df, "stratum", death_col, time_col, per=per)
    return post_stratify(
        strata,
        census_age_frequencies(census_age),
        method=f"age-adjusted ({period})",
        variance=variance,
        on_missing=on_missing,
        per=per,
        confidence=confidence,
    )


def age_composition_shift(frame: pd.DataFrame, census_age: pd.DataFrame) -> pd.DataFrame:
    """
    Person-time share by age group before and after the event, next to the
    census share.

    Returns
    -------
    DataFrame: age_group, census, survey_before, survey_after
    """
    groups = assign_age_groups(frame["age"], census_age)
    df = frame.assign(age_group=groups).dropna(subset=["age_group"])
    shares = df.groupby("age_group")[["before_years", "after_years"]].sum()
    shares = shares / shares.sum()
    census = census_age_frequencies(census_age).rename("census")
    out = pd.DataFrame({"census": census})
    out["survey_before"] = shares["before_years"].reindex(out.index).fillna(0.0)
    out["survey_after"] = shares["after_years"].reindex(out.index).fillna(0.0)
    out.index.name = "age_group"
    return out.reset_index()
