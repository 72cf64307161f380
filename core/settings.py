"""
User-facing settings file (JSON) validated with pydantic, converted to the
frozen AnalysisConfig the pipeline consumes.

Example file:

    {
        "event_date": "2017-09-20",
        "population": 3337177,
        "single_household_policy": "reference",
        "reference_rate_single": 21.0,
        "n_bootstrap": 500
    }
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import List, Literal, Optional

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .config import AnalysisConfig


class AnalysisSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    event_date: date = date(2017, 9, 20)
    window_start: date = date(2017, 1, 1)
    window_end: date = date(2017, 12, 31)
    population: float = Field(3_337_177, gt=0)

    baseline_year: int = 2016
    variability_years: List[int] = Field(default_factory=lambda: list(range(2010, 2017)))

    per: float = Field(1000.0, gt=0)
    days_per_year: float = Field(365.0, gt=0)
    confidence: float = Field(0.95, gt=0, lt=1)

    hh_size_top_code: int = Field(6, ge=2)
    single_household_policy: Literal["exclude", "zero", "historical", "reference", "observed"] = "historical"
    reference_rate_single: Optional[float] = Field(None, ge=0)

    undated_event_month: Literal["after", "before", "midpoint"] = "after"

    n_bootstrap: int = Field(0, ge=0)
    seed: int = 7

    include_baseline_variance: bool = False
    negligible_ratio: float = Field(0.05, gt=0)

    @model_validator(mode="after")
    def _check_window(self) -> "AnalysisSettings":
        if not self.window_start < self.event_date <= self.window_end:
            raise ValueError("Require window_start < event_date <= window_end.")
        if self.single_household_policy == "reference" and self.reference_rate_single is None:
            raise ValueError("reference_rate_single is required for the 'reference' policy.")
        return self

    def to_config(self) -> AnalysisConfig:
        return AnalysisConfig(
            event_date=pd.Timestamp(self.event_date),
            window_start=pd.Timestamp(self.window_start),
            window_end=pd.Timestamp(self.window_end),
            population=float(self.population),
            baseline_year=self.baseline_year,
            variability_years=tuple(self.variability_years),
            per=self.per,
            days_per_year=self.days_per_year,
            confidence=self.confidence,
            hh_size_top_code=self.hh_size_top_code,
            single_household_policy=self.single_household_policy,
            reference_rate_single=self.reference_rate_single,
            undated_event_month=self.undated_event_month,
            n_bootstrap=self.n_bootstrap,
            seed=self.seed,
            include_baseline_variance=self.include_baseline_variance,
            negligible_ratio=self.negligible_ratio,
        )


def load_settings(path: Optional[str] = None, **overrides) -> AnalysisConfig:
    """
    Read a JSON settings file (optional) and apply keyword overrides.
    Overrides whose value is None are ignored.
    """
    data = {}
    if path is not None:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    data.update({k: v for k, v in overrides.items() if v is not None})
    return AnalysisSettings(**data).to_config()
