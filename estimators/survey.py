"""
Design-based estimation for the stratified household cluster sample.

Households are the primary sampling units, drawn within remoteness strata,
each carrying its sampling weight. Variances use the with-replacement PSU
approximation (the usual default of design-based survey software).
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from .rate import RateEstimate
from .ratio import cluster_totals, linearized_ratio

logger = logging.getLogger(__name__)


def survey_rate(
    frame: pd.DataFrame,
    death_col: str = "died_after",
    time_col: str = "after_years",
    *,
    weight_col: str = "weight",
    strata_col: str = "strata",
    cluster_col: str = "hh_id",
    method: str = "survey-weighted",
    per: float = 1000.0,
    confidence: float = 0.95,
) -> RateEstimate:
    """Survey-weighted ratio rate with stratified cluster (design-based) SE."""
    totals = cluster_totals(
        frame,
        death_col,
        time_col,
        weight_col=weight_col,
        strata_col=strata_col,
        cluster_col=cluster_col,
    )
    ratio, variance = linearized_ratio(totals)
    logger.debug(
        "Design: %d strata, %d PSUs, weighted exposure %.1f",
        totals["strata"].nunique(), len(totals), totals["x"].sum(),
    )
    return RateEstimate.from_se(
        method,
        ratio * per,
        np.sqrt(variance) * per,
        deaths=totals["deaths"].sum(),
        person_years=totals["person_years"].sum(),
        confidence=confidence,
        per=per,
    )


def design_effect(weighted: RateEstimate, unweighted: RateEstimate) -> float:
    """Variance ratio between two estimates of the same rate (weighted over simple)."""
    if unweighted.se == 0:
        return float("nan")
    return (weighted.se / unweighted.se) ** 2
