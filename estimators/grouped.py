"""
Stratum-specific rates: one linearized rate per level of a grouping column
(age group, household-size stratum, gender, ...).
"""

from __future__ import annotations

import logging
from typing import List

import numpy as np
import pandas as pd

from core.utils import require_columns

from .ratio import cluster_totals, linearized_ratio

logger = logging.getLogger(__name__)


def rates_by(
    frame: pd.DataFrame,
    by: str,
    death_col: str = "died_after",
    time_col: str = "after_years",
    *,
    weighted: bool = False,
    weight_col: str = "weight",
    strata_col: str = "strata",
    cluster_col: str = "hh_id",
    per: float = 1000.0,
) -> pd.DataFrame:
    """
    Returns
    -------
    DataFrame with one row per group level:
        <by>, deaths, person_years, rate, se
    Levels with no exposure get rate NaN. Rows with a missing group are excluded.
    """
    require_columns(frame, [by])
    df = frame[frame[by].notna()]
    rows: List[dict] = []
    for level, grp in df.groupby(by, sort=True, observed=True):
        totals = cluster_totals(
            grp,
            death_col,
            time_col,
            weight_col=weight_col if weighted else None,
            strata_col=strata_col if weighted else None,
            cluster_col=cluster_col,
        )
        deaths = float(totals["deaths"].sum())
        person_years = float(totals["person_years"].sum())
        if totals["x"].sum() <= 0:
            rate, se = np.nan, np.nan
        else:
            ratio, variance = linearized_ratio(totals)
            rate, se = ratio * per, np.sqrt(variance) * per
        if deaths == 0:
            logger.warning("No deaths observed in %s=%s (%.1f person-years)", by, level, person_years)
        rows.append({by: level, "deaths": deaths, "person_years": person_years, "rate": rate, "se": se})
    return pd.DataFrame(rows, columns=[by, "deaths", "person_years", "rate", "se"])
