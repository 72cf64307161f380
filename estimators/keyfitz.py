"""
Keyfitz approximation for the standard error of a (possibly adjusted) rate.

Treating the death count D behind a rate as Poisson, Var(D) = D, so

    SE(rate) = rate / sqrt(D)

which is what we attach to post-stratified and age-adjusted rates, where a
design-based variance would require re-deriving the adjustment weights.
"""

from __future__ import annotations

import logging
import math

from .rate import RateEstimate

logger = logging.getLogger(__name__)


def keyfitz_se(rate: float, deaths: float) -> float:
    if deaths < 0:
        raise ValueError(f"Death count must be non-negative, got {deaths}")
    if deaths == 0:
        if rate != 0:
            logger.warning("Keyfitz SE undefined for a non-zero rate with zero deaths")
            return math.nan
        return 0.0
    return abs(rate) / math.sqrt(deaths)


def keyfitz_estimate(
    method: str,
    rate: float,
    *,
    deaths: float,
    person_years: float,
    confidence: float = 0.95,
    per: float = 1000.0,
) -> RateEstimate:
    return RateEstimate.from_se(
        method,
        rate,
        keyfitz_se(rate, deaths),
        deaths=deaths,
        person_years=person_years,
        confidence=confidence,
        per=per,
    )
