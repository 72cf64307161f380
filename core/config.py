"""
Analysis configuration.
Defaults reproduce the published hurricane estimate; override per run via
core.settings.AnalysisSettings or the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Tuple

import pandas as pd


@dataclass(frozen=True)
class AnalysisConfig:
    # event and observation window (window_end is inclusive)
    event_date: pd.Timestamp = pd.Timestamp("2017-09-20")
    window_start: pd.Timestamp = pd.Timestamp("2017-01-01")
    window_end: pd.Timestamp = pd.Timestamp("2017-12-31")

    # effective population used to scale rate differences into deaths
    population: float = 3_337_177

    # official baseline: same calendar window in baseline_year
    baseline_year: int = 2016
    variability_years: Tuple[int, ...] = (2010, 2011, 2012, 2013, 2014, 2015, 2016)

    per: float = 1000.0
    days_per_year: float = 365.0
    confidence: float = 0.95

    # household-size strata: sizes >= top code are pooled
    hh_size_top_code: int = 6
    single_household_policy: Literal["exclude", "zero", "historical", "reference", "observed"] = "historical"
    reference_rate_single: Optional[float] = None  # per `per` person-years

    # deaths recorded in the event month with no day: after or before the
    # event, or "midpoint" = plain mid-month imputation
    undated_event_month: Literal["after", "before", "midpoint"] = "after"

    n_bootstrap: int = 0
    seed: int = 7

    include_baseline_variance: bool = False
    negligible_ratio: float = 0.05

    @property
    def window_end_exclusive(self) -> pd.Timestamp:
        return pd.Timestamp(self.window_end) + pd.Timedelta(days=1)

    @property
    def pre_event_years(self) -> float:
        days = (pd.Timestamp(self.event_date) - pd.Timestamp(self.window_start)).days
        return days / self.days_per_year

    @property
    def post_event_years(self) -> float:
        days = (self.window_end_exclusive - pd.Timestamp(self.event_date)).days
        return days / self.days_per_year
