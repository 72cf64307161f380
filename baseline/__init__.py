"""
Baseline package: official vital-statistics rates and their variability.
"""

from .official import (
    period_window,
    window_deaths,
    population_for_year,
    baseline_rate,
    baseline_for_config,
    baseline_variability,
    summarize_variability,
    VarianceComparison,
    compare_variances,
)

__all__ = [
    "period_window",
    "window_deaths",
    "population_for_year",
    "baseline_rate",
    "baseline_for_config",
    "baseline_variability",
    "summarize_variability",
    "VarianceComparison",
    "compare_variances",
]
