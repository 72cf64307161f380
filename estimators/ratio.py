"""
Ratio estimator of a death rate with a linearization (Taylor) variance.

The rate is R = sum(y) / sum(x) with y the death indicator and x person-years.
People in the same household are not independent, so the variance is computed
over household totals (clusters):

    z_c = (Y_c - R * X_c) / X
    Var(R) = sum_h n_h / (n_h - 1) * sum_c (z_c - mean_h(z))^2

with h the design strata (a single stratum for the unweighted estimator).
Sampling weights, when given, enter through the cluster totals Y_c and X_c.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import numpy as np
import pandas as pd

from core.utils import require_columns

from .rate import RateEstimate

logger = logging.getLogger(__name__)


def cluster_totals(
    frame: pd.DataFrame,
    death_col: str,
    time_col: str,
    *,
    weight_col: Optional[str] = None,
    strata_col: Optional[str] = None,
    cluster_col: str = "hh_id",
) -> pd.DataFrame:
    """
    Collapse people to clusters: one row per cluster with columns
    strata, y (weighted deaths), x (weighted person-years), deaths, person_years.

    Rows with a missing death indicator, exposure or weight are excluded.
    """
    cols = [death_col, time_col, cluster_col]
    if weight_col:
        cols.append(weight_col)
    if strata_col:
        cols.append(strata_col)
    require_columns(frame, cols)

    df = frame.loc[:, cols].dropna()
    n_dropped = len(frame) - len(df)
    if n_dropped:
        logger.debug("Excluded %d rows with missing values from %s/%s", n_dropped, death_col, time_col)

    w = df[weight_col].to_numpy(dtype=float) if weight_col else np.ones(len(df))
    out = pd.DataFrame({
        "cluster": df[cluster_col].to_numpy(),
        "strata": df[strata_col].to_numpy() if strata_col else 0,
        "y": df[death_col].to_numpy(dtype=float) * w,
        "x": df[time_col].to_numpy(dtype=float) * w,
        "deaths": df[death_col].to_numpy(dtype=float),
        "person_years": df[time_col].to_numpy(dtype=float),
    })
    return out.groupby(["strata", "cluster"], as_index=False, sort=False).sum()


def linearized_ratio(totals: pd.DataFrame) -> Tuple[float, float]:
    """
    Ratio sum(y)/sum(x) and its linearization variance from cluster totals.

    Strata with a single cluster contribute no variance (logged).
    """
    x_total = float(totals["x"].sum())
    if x_total <= 0:
        raise ValueError("Total exposure is zero; the rate is undefined.")
    ratio = float(totals["y"].sum()) / x_total

    z = (totals["y"] - ratio * totals["x"]) / x_total
    variance = 0.0
    lonely = 0
    for _, z_h in z.groupby(totals["strata"]):
        n_h = len(z_h)
        if n_h < 2:
            lonely += 1
            continue
        variance += n_h / (n_h - 1) * float(((z_h - z_h.mean()) ** 2).sum())
    if lonely:
        logger.warning("%d strata have a single cluster and contribute no variance", lonely)
    return ratio, variance


def simple_rate(
    frame: pd.DataFrame,
    death_col: str = "died_after",
    time_col: str = "after_years",
    *,
    cluster_col: str = "hh_id",
    method: str = "unweighted",
    per: float = 1000.0,
    confidence: float = 0.95,
) -> RateEstimate:
    """Unweighted rate per `per` person-years, SE by linearization over households."""
    totals = cluster_totals(frame, death_col, time_col, cluster_col=cluster_col)
    ratio, variance = linearized_ratio(totals)
    return RateEstimate.from_se(
        method,
        ratio * per,
        np.sqrt(variance) * per,
        deaths=totals["deaths"].sum(),
        person_years=totals["person_years"].sum(),
        confidence=confidence,
        per=per,
    )
