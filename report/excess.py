"""
Excess deaths: the rate difference scaled to the population and window.

    Y = (rate_survey - rate_baseline) / per * population * window_years

The interval carries the survey estimate's uncertainty only, unless
include_baseline_variance is set (the baseline SE is typically a few percent
of the survey SE; see baseline.compare_variances).
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import pandas as pd

from core.utils import z_critical
from estimators.rate import RateEstimate


@dataclass
class ExcessDeaths:
    """Structured excess-mortality output."""
    method: str
    survey_rate: float
    baseline_rate: float
    rate_difference: float
    percent_increase: float

    population: float
    window_years: float

    excess: float
    se: float
    ci_low: float
    ci_high: float
    confidence: float
    includes_baseline_variance: bool
    per: float = 1000.0

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to a display-friendly table."""
        pct = f"{self.confidence:.0%}"
        unit = f"per {self.per:g} py"
        rows = [
            {"Metric": "Method", "Value": self.method, "Unit": ""},
            {"Metric": "Survey rate", "Value": f"{self.survey_rate:.2f}", "Unit": unit},
            {"Metric": "Baseline rate", "Value": f"{self.baseline_rate:.2f}", "Unit": unit},
            {"Metric": "Rate difference", "Value": f"{self.rate_difference:.2f}", "Unit": unit},
            {"Metric": "Increase over baseline", "Value": f"{self.percent_increase:.1%}", "Unit": ""},
            {"Metric": "Population", "Value": f"{self.population:,.0f}", "Unit": "people"},
            {"Metric": "Window", "Value": f"{self.window_years:.3f}", "Unit": "years"},
            {"Metric": "Excess deaths", "Value": f"{self.excess:,.0f}", "Unit": "deaths"},
            {"Metric": f"{pct} CI", "Value": f"{self.ci_low:,.0f} to {self.ci_high:,.0f}", "Unit": "deaths"},
            {
                "Metric": "Baseline variance",
                "Value": "included" if self.includes_baseline_variance else "excluded",
                "Unit": "",
            },
        ]
        return pd.DataFrame(rows)


def excess_deaths(
    survey: RateEstimate,
    baseline: RateEstimate,
    *,
    population: float,
    window_years: float,
    include_baseline_variance: bool = False,
) -> ExcessDeaths:
    """
    Parameters
    ----------
    survey : RateEstimate
        Post-event survey rate (any method).
    baseline : RateEstimate
        Official baseline rate over the same calendar window.
    population : float
        Effective population the survey represents.
    window_years : float
        Length of the post-event window in years.
    """
    if population <= 0 or window_years <= 0:
        raise ValueError("population and window_years must be positive.")
    if survey.per != baseline.per:
        raise ValueError("Survey and baseline rates use different rate units.")

    scale = population * window_years / survey.per
    diff = survey.rate - baseline.rate
    excess = diff * scale

    if include_baseline_variance:
        se = math.sqrt(survey.se ** 2 + baseline.se ** 2) * scale
        z = z_critical(survey.confidence)
        ci = (excess - z * se, excess + z * se)
    else:
        se = survey.se * scale
        # survey interval shifted and scaled, so percentile bounds carry over
        ci = ((survey.ci_low - baseline.rate) * scale, (survey.ci_high - baseline.rate) * scale)

    return ExcessDeaths(
        method=survey.method,
        survey_rate=survey.rate,
        baseline_rate=baseline.rate,
        rate_difference=diff,
        percent_increase=survey.rate / baseline.rate - 1.0 if baseline.rate else math.nan,
        population=population,
        window_years=window_years,
        excess=excess,
        se=se,
        ci_low=ci[0],
        ci_high=ci[1],
        confidence=survey.confidence,
        includes_baseline_variance=include_baseline_variance,
        per=survey.per,
    )
