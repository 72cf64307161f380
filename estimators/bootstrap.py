"""
Cluster bootstrap for the survey-weighted rate.

Households are resampled with replacement within each stratum, and the
weighted ratio is recomputed for every replicate. The interval is the
percentile interval of the replicates; the SE is their standard deviation.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import pandas as pd

from .rate import RateEstimate
from .ratio import cluster_totals

logger = logging.getLogger(__name__)


def bootstrap_replicates(
    totals: pd.DataFrame,
    n_replicates: int = 1000,
    *,
    seed: int = 7,
) -> np.ndarray:
    """Replicate ratios sum(y*)/sum(x*) from cluster totals, resampled within strata."""
    if n_replicates < 1:
        raise ValueError("n_replicates must be at least 1.")
    rng = np.random.default_rng(seed)
    y_rep = np.zeros(n_replicates, dtype=float)
    x_rep = np.zeros(n_replicates, dtype=float)

    for _, grp in totals.groupby("strata", sort=True):
        y = grp["y"].to_numpy(dtype=float)
        x = grp["x"].to_numpy(dtype=float)
        n_h = len(grp)
        # shape (n_replicates, n_h): one resample of this stratum per row
        idx = rng.integers(0, n_h, size=(n_replicates, n_h))
        y_rep += y[idx].sum(axis=1)
        x_rep += x[idx].sum(axis=1)

    with np.errstate(divide="ignore", invalid="ignore"):
        ratios = np.where(x_rep > 0, y_rep / x_rep, np.nan)
    n_bad = int(np.isnan(ratios).sum())
    if n_bad:
        logger.warning("%d bootstrap replicates had zero exposure and are ignored", n_bad)
    return ratios[~np.isnan(ratios)]


def bootstrap_rate(
    frame: pd.DataFrame,
    death_col: str = "died_after",
    time_col: str = "after_years",
    *,
    n_replicates: int = 1000,
    seed: int = 7,
    weight_col: Optional[str] = "weight",
    strata_col: Optional[str] = "strata",
    cluster_col: str = "hh_id",
    method: str = "bootstrap",
    per: float = 1000.0,
    confidence: float = 0.95,
) -> RateEstimate:
    """Weighted rate with cluster-bootstrap SE and percentile interval."""
    totals = cluster_totals(
        frame,
        death_col,
        time_col,
        weight_col=weight_col,
        strata_col=strata_col,
        cluster_col=cluster_col,
    )
    x_total = float(totals["x"].sum())
    if x_total <= 0:
        raise ValueError("Total exposure is zero; the rate is undefined.")
    rate = float(totals["y"].sum()) / x_total * per

    reps = bootstrap_replicates(totals, n_replicates, seed=seed) * per
    alpha = 1.0 - confidence
    ci = (
        float(np.percentile(reps, 100 * alpha / 2)),
        float(np.percentile(reps, 100 * (1 - alpha / 2))),
    )
    logger.info("Bootstrap: %d replicates, %s CI [%.2f, %.2f]", len(reps), f"{confidence:.0%}", *ci)
    return RateEstimate.from_se(
        method,
        rate,
        float(np.std(reps, ddof=1)) if len(reps) > 1 else 0.0,
        deaths=totals["deaths"].sum(),
        person_years=totals["person_years"].sum(),
        confidence=confidence,
        per=per,
        ci=ci,
    )
