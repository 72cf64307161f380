"""
Sensitivity of the excess-death estimate to methodological choices.

One row per post-event rate estimate (weighting, variance method,
household-size policy, age adjustment), each carried through to excess deaths
against the same baseline.
"""

from __future__ import annotations

from typing import Iterable

import pandas as pd

from estimators.rate import RateEstimate

from .excess import excess_deaths


def sensitivity_table(
    estimates: Iterable[RateEstimate],
    baseline: RateEstimate,
    *,
    population: float,
    window_years: float,
    include_baseline_variance: bool = False,
) -> pd.DataFrame:
    """
    Returns
    -------
    DataFrame with columns:
        Method, Rate, SE, CI Low, CI High, Deaths, Person-Years,
        Excess, Excess Low, Excess High, Increase
    """
    rows = []
    for est in estimates:
        ex = excess_deaths(
            est,
            baseline,
            population=population,
            window_years=window_years,
            include_baseline_variance=include_baseline_variance,
        )
        rows.append({
            "Method": est.method,
            "Rate": est.rate,
            "SE": est.se,
            "CI Low": est.ci_low,
            "CI High": est.ci_high,
            "Deaths": est.deaths,
            "Person-Years": est.person_years,
            "Excess": ex.excess,
            "Excess Low": ex.ci_low,
            "Excess High": ex.ci_high,
            "Increase": ex.percent_increase,
        })
    return pd.DataFrame(rows)


def estimates_to_dataframe(estimates: Iterable[RateEstimate]) -> pd.DataFrame:
    """Plain table of rate estimates (no baseline needed)."""
    return pd.DataFrame([
        {
            "Method": e.method,
            "Rate": e.rate,
            "SE": e.se,
            "CI Low": e.ci_low,
            "CI High": e.ci_high,
            "Deaths": e.deaths,
            "Person-Years": e.person_years,
        }
        for e in estimates
    ])
