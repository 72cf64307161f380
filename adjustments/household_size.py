"""
Household-size bias adjustment.

Rates are estimated per household-size stratum (sizes at or above the top code
pooled), the single-person stratum is handled by a StratumPolicy, and the
strata are recombined with census household-size frequencies (share of the
population living in households of each size).
"""

from __future__ import annotations

import logging
from typing import Literal, Tuple

import numpy as np
import pandas as pd

from core.utils import require_columns
from estimators.grouped import rates_by
from estimators.rate import RateEstimate

from .policies import StratumPolicy
from .poststrat import post_stratify

logger = logging.getLogger(__name__)

SINGLE = 1


def size_stratum(sizes: pd.Series, top_code: int = 6) -> pd.Series:
    """Household size pooled at the top code (6 means 6+)."""
    s = pd.to_numeric(sizes, errors="coerce")
    return np.minimum(s, top_code)


def census_size_frequencies(census_hh_size: pd.DataFrame, top_code: int = 6) -> pd.Series:
    """Census population share by household-size stratum, summing to one."""
    require_columns(census_hh_size, ["hh_size", "proportion"])
    df = census_hh_size.copy()
    df["stratum"] = size_stratum(df["hh_size"], top_code)
    f = df.groupby("stratum")["proportion"].sum()
    return f / f.sum()


def household_size_table(
    frame: pd.DataFrame,
    death_col: str = "died_after",
    time_col: str = "after_years",
    *,
    top_code: int = 6,
    per: float = 1000.0,
) -> pd.DataFrame:
    """Unweighted rate per household-size stratum (stratum, deaths, person_years, rate, se)."""
    df = frame.assign(stratum=size_stratum(frame["hh_size"], top_code))
    return rates_by(df, "stratum", death_col, time_col, per=per)


def household_size_adjusted_rate(
    frame: pd.DataFrame,
    census_hh_size: pd.DataFrame,
    policy: StratumPolicy,
    *,
    period: Literal["before", "after"] = "after",
    top_code: int = 6,
    variance: Literal["keyfitz", "stratified"] = "keyfitz",
    on_missing: Literal["raise", "drop"] = "drop",
    per: float = 1000.0,
    confidence: float = 0.95,
) -> Tuple[RateEstimate, pd.DataFrame]:
    """
    Household-size post-stratified rate for one period.

    Returns
    -------
    (estimate, table) with one row per size stratum used, including its census
    frequency, rate, and contribution. Census strata with no surveyed members
    are dropped (flagged in the table) unless on_missing="raise".
    """
    death_col, time_col = f"died_{period}", f"{period}_years"
    strata = household_size_table(frame, death_col, time_col, top_code=top_code, per=per)
    freqs = census_size_frequencies(census_hh_size, top_code)

    single = strata.loc[strata["stratum"] == SINGLE]
    if not single.empty and float(single["deaths"].iloc[0]) == 0:
        logger.info("Single-person households show zero %s-event deaths", period)

    strata, freqs = policy.apply(strata, freqs, SINGLE)
    return post_stratify(
        strata,
        freqs,
        method=f"household-size ({policy.label}, {period})",
        variance=variance,
        on_missing=on_missing,
        per=per,
        confidence=confidence,
    )
