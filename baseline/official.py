"""
Baseline death rates from official vital statistics.

Monthly death counts are summed over a reference window (partial months
pro-rated by days) and divided by the population estimate times the window
length. Treating the count as Poisson gives SE = rate / sqrt(D), the same
Keyfitz form used for adjusted survey rates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Literal, Optional, Tuple

import numpy as np
import pandas as pd

from core.config import AnalysisConfig
from core.utils import month_overlap_fractions, require_columns, shift_window
from estimators.keyfitz import keyfitz_se
from estimators.rate import RateEstimate

logger = logging.getLogger(__name__)

Period = Literal["before", "after", "full"]


def period_window(config: AnalysisConfig, period: Period) -> Tuple[pd.Timestamp, pd.Timestamp]:
    """[start, end_exclusive) of a study period in the event year."""
    if period == "before":
        return pd.Timestamp(config.window_start), pd.Timestamp(config.event_date)
    if period == "after":
        return pd.Timestamp(config.event_date), config.window_end_exclusive
    if period == "full":
        return pd.Timestamp(config.window_start), config.window_end_exclusive
    raise ValueError(f"Unknown period {period!r}")


def window_deaths(
    official: pd.DataFrame,
    start: pd.Timestamp,
    end_exclusive: pd.Timestamp,
) -> float:
    """Official deaths in [start, end_exclusive), pro-rating partial months by days."""
    require_columns(official, ["year", "month", "deaths"])
    counts = official.assign(
        year=pd.to_numeric(official["year"], errors="coerce"),
        month=pd.to_numeric(official["month"], errors="coerce"),
        deaths=pd.to_numeric(official["deaths"], errors="coerce"),
    ).dropna(subset=["year", "month", "deaths"]).astype({"year": int, "month": int})
    counts = counts.groupby(["year", "month"], as_index=False)["deaths"].sum()

    months = month_overlap_fractions(start, end_exclusive)
    merged = months.merge(counts, on=["year", "month"], how="left")
    if merged["deaths"].isna().any():
        missing = merged.loc[merged["deaths"].isna(), ["year", "month"]].values.tolist()
        raise ValueError(f"No official death counts for (year, month) {missing}")
    return float((merged["deaths"] * merged["fraction"]).sum())


def population_for_year(population: pd.DataFrame, year: int) -> float:
    require_columns(population, ["year", "population"])
    years = pd.to_numeric(population["year"], errors="coerce")
    match = population.loc[years == year, "population"]
    if match.empty:
        raise ValueError(f"No population estimate for {year}")
    return float(pd.to_numeric(match, errors="coerce").mean())


def baseline_rate(
    official: pd.DataFrame,
    population: pd.DataFrame,
    start: pd.Timestamp,
    end_exclusive: pd.Timestamp,
    *,
    method: str = "official baseline",
    days_per_year: float = 365.0,
    per: float = 1000.0,
    confidence: float = 0.95,
) -> RateEstimate:
    """Official death rate per `per` person-years over [start, end_exclusive)."""
    start, end_exclusive = pd.Timestamp(start), pd.Timestamp(end_exclusive)
    deaths = window_deaths(official, start, end_exclusive)
    pop = population_for_year(population, start.year)
    years = (end_exclusive - start).days / days_per_year
    person_years = pop * years
    rate = deaths / person_years * per
    return RateEstimate.from_se(
        method,
        rate,
        keyfitz_se(rate, deaths),
        deaths=deaths,
        person_years=person_years,
        confidence=confidence,
        per=per,
    )


def baseline_for_config(
    official: pd.DataFrame,
    population: pd.DataFrame,
    config: AnalysisConfig,
    *,
    period: Period = "after",
    year: Optional[int] = None,
) -> RateEstimate:
    """
    Official rate for a study period moved to `year` (default: config.baseline_year).

    With year equal to the event year this is the official rate over the same
    window the survey covers.
    """
    year = config.baseline_year if year is None else year
    start, end = shift_window(*period_window(config, period), year)
    estimate = baseline_rate(
        official,
        population,
        start,
        end,
        method=f"official {period} ({year})",
        days_per_year=config.days_per_year,
        per=config.per,
        confidence=config.confidence,
    )
    logger.info("Official %s-event rate %d: %.2f per %g", period, year, estimate.rate, config.per)
    return estimate


def baseline_variability(
    official: pd.DataFrame,
    population: pd.DataFrame,
    config: AnalysisConfig,
    *,
    years: Optional[Iterable[int]] = None,
    period: Period = "after",
) -> pd.DataFrame:
    """
    Per-year official rates over the same calendar window.

    Returns
    -------
    DataFrame: year, deaths, person_years, rate, se
    Years lacking counts or population are skipped (logged).
    """
    years = list(config.variability_years if years is None else years)
    rows = []
    for year in years:
        try:
            est = baseline_for_config(official, population, config, period=period, year=year)
        except ValueError as exc:
            logger.warning("Skipping %d in baseline variability: %s", year, exc)
            continue
        rows.append({
            "year": year,
            "deaths": est.deaths,
            "person_years": est.person_years,
            "rate": est.rate,
            "se": est.se,
        })
    return pd.DataFrame(rows, columns=["year", "deaths", "person_years", "rate", "se"])


def summarize_variability(table: pd.DataFrame) -> Dict[str, float]:
    """Mean, between-year SD and coefficient of variation of the yearly rates."""
    rates = table["rate"].dropna().to_numpy(dtype=float)
    if len(rates) == 0:
        return {"n_years": 0, "mean": np.nan, "sd": np.nan, "cv": np.nan, "min": np.nan, "max": np.nan}
    mean = float(np.mean(rates))
    sd = float(np.std(rates, ddof=1)) if len(rates) > 1 else 0.0
    return {
        "n_years": len(rates),
        "mean": mean,
        "sd": sd,
        "cv": sd / mean if mean else np.nan,
        "min": float(np.min(rates)),
        "max": float(np.max(rates)),
    }


@dataclass(frozen=True)
class VarianceComparison:
    """Baseline sampling variability relative to the survey estimate's."""
    baseline_se: float
    survey_se: float
    se_ratio: float
    variance_ratio: float
    threshold: float

    @property
    def defined(self) -> bool:
        return bool(np.isfinite(self.se_ratio))

    @property
    def negligible(self) -> bool:
        return bool(self.se_ratio < self.threshold)

    def __repr__(self) -> str:
        return (
            f"VarianceComparison(se_ratio={self.se_ratio:.2%}, "
            f"variance_ratio={self.variance_ratio:.3%}, negligible={self.negligible})"
        )


def compare_variances(
    baseline: RateEstimate,
    survey: RateEstimate,
    *,
    threshold: float = 0.05,
) -> VarianceComparison:
    """
    Ratio of baseline SE to survey SE; negligible when below `threshold`.

    A survey SE that is zero or undefined (e.g. no post-event deaths) gives an
    undefined ratio, which is never negligible.
    """
    if not survey.se > 0:
        logger.warning(
            "Survey SE is %s (%g deaths); the variance comparison is undefined",
            survey.se, survey.deaths,
        )
        se_ratio = np.nan
    else:
        se_ratio = baseline.se / survey.se
    return VarianceComparison(
        baseline_se=baseline.se,
        survey_se=survey.se,
        se_ratio=se_ratio,
        variance_ratio=se_ratio ** 2,
        threshold=threshold,
    )
