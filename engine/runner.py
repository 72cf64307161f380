"""
Analysis runner: orchestrates the whole excess-mortality analysis.

  1. Validate the loaded tables
  2. Build the per-person analysis frame (death indicators, person-time)
  3. Post-event rates: unweighted, survey-weighted, Keyfitz, bootstrap
  4. Pre-event survey rate next to the official pre-event rate
  5. Official baseline, its year-to-year variability, and its variance
     relative to the survey estimate
  6. Household-size and age adjustments
  7. Excess deaths and the sensitivity table

Every step is a pure function of the tables and the config; nothing is
written to disk.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd

from adjustments.age import age_adjusted_rate, age_composition_shift
from adjustments.household_size import household_size_adjusted_rate
from adjustments.policies import make_single_household_policy
from baseline.official import (
    VarianceComparison,
    baseline_for_config,
    baseline_variability,
    compare_variances,
    summarize_variability,
)
from core.config import AnalysisConfig
from core.errors import AnalysisDataError
from data_prep.frame_builder import build_analysis_frame
from data_prep.loader import load_tables
from data_prep.validators import ValidationResult, validate_tables
from estimators.bootstrap import bootstrap_rate
from estimators.grouped import rates_by
from estimators.keyfitz import keyfitz_estimate
from estimators.rate import RateEstimate
from estimators.ratio import simple_rate
from estimators.survey import survey_rate
from report.excess import ExcessDeaths, excess_deaths
from report.sensitivity import sensitivity_table

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResults:
    """Everything the report prints, keyed by what it is."""
    config: AnalysisConfig
    validation: ValidationResult
    frame: pd.DataFrame

    primary: RateEstimate
    baseline: RateEstimate
    excess: ExcessDeaths

    # post-event rate estimates in reporting order
    estimates: List[RateEstimate] = field(default_factory=list)
    # pre-event: survey vs official
    before: Dict[str, RateEstimate] = field(default_factory=dict)
    # pre-event household-size variants (exclude vs zero plug-in, ...)
    before_household_size: Dict[str, RateEstimate] = field(default_factory=dict)

    household_size_tables: Dict[str, pd.DataFrame] = field(default_factory=dict)
    age_table: Optional[pd.DataFrame] = None
    age_shift: Optional[pd.DataFrame] = None
    gender_rates: Optional[pd.DataFrame] = None

    variability: Optional[pd.DataFrame] = None
    variability_summary: Dict[str, float] = field(default_factory=dict)
    variance_comparison: Optional[VarianceComparison] = None

    sensitivity: Optional[pd.DataFrame] = None


def _household_size_variants(
    frame: pd.DataFrame,
    census_hh_size: pd.DataFrame,
    config: AnalysisConfig,
    *,
    period: str,
    historical_rate: float,
) -> Dict[str, tuple]:
    """Run every applicable single-household policy for one period."""
    names = ["exclude", "zero", "historical"]
    if config.reference_rate_single is not None:
        names.append("reference")
    out = {}
    for name in names:
        policy = make_single_household_policy(
            name,
            historical_rate=historical_rate,
            reference_rate=config.reference_rate_single,
        )
        out[name] = household_size_adjusted_rate(
            frame,
            census_hh_size,
            policy,
            period=period,
            top_code=config.hh_size_top_code,
            per=config.per,
            confidence=config.confidence,
        )
    return out


def run_analysis(
    tables: Dict[str, pd.DataFrame],
    config: Optional[AnalysisConfig] = None,
) -> AnalysisResults:
    """
    Run the full analysis on already-loaded tables.

    Parameters
    ----------
    tables : dict
        Keyed as core.schema.TABLE_FILES (households, individuals, deaths,
        official_deaths, population, census_hh_size, census_age, optional weights).
    config : AnalysisConfig, optional
        Defaults reproduce the published hurricane estimate.

    Raises
    ------
    AnalysisDataError
        When validation finds blocking errors.
    """
    cfg = config or AnalysisConfig()

    # --- Validation ---
    validation = validate_tables(tables, cfg)
    for warning in validation.warnings:
        logger.warning(warning)
    if not validation.is_valid:
        raise AnalysisDataError(validation.errors)

    # --- Analysis frame ---
    frame = build_analysis_frame(
        tables["households"],
        tables["individuals"],
        tables["deaths"],
        cfg,
        weights=tables.get("weights"),
    )
    common = dict(per=cfg.per, confidence=cfg.confidence)

    # --- Post-event rates ---
    unweighted = simple_rate(frame, "died_after", "after_years", method="unweighted", **common)
    weighted = survey_rate(frame, "died_after", "after_years", method="survey-weighted", **common)
    keyfitz = keyfitz_estimate(
        "keyfitz",
        unweighted.rate,
        deaths=unweighted.deaths,
        person_years=unweighted.person_years,
        **common,
    )
    estimates = [unweighted, weighted, keyfitz]
    if cfg.n_bootstrap > 0:
        estimates.append(bootstrap_rate(
            frame,
            "died_after",
            "after_years",
            n_replicates=cfg.n_bootstrap,
            seed=cfg.seed,
            **common,
        ))
    logger.info("Post-event survey rate %.2f (weighted %.2f)", unweighted.rate, weighted.rate)

    # --- Baseline ---
    official = tables["official_deaths"]
    population = tables["population"]
    baseline = baseline_for_config(official, population, cfg, period="after")
    baseline_before = baseline_for_config(official, population, cfg, period="before")

    event_year = pd.Timestamp(cfg.window_start).year
    before = {
        "survey": simple_rate(frame, "died_before", "before_years", method="survey before", **common),
        "official": baseline_for_config(official, population, cfg, period="before", year=event_year),
    }
    logger.info(
        "Pre-event survey rate %.2f vs official %.2f",
        before["survey"].rate, before["official"].rate,
    )

    variability = baseline_variability(official, population, cfg, period="after")
    comparison = compare_variances(baseline, weighted, threshold=cfg.negligible_ratio)
    if comparison.defined:
        logger.info("Baseline SE is %.1f%% of the survey SE", 100 * comparison.se_ratio)

    # --- Household-size adjustment ---
    census_hh = tables["census_hh_size"]
    after_variants = _household_size_variants(
        frame, census_hh, cfg, period="after", historical_rate=baseline.rate
    )
    before_variants = _household_size_variants(
        frame, census_hh, cfg, period="before", historical_rate=baseline_before.rate
    )
    hh_tables = {name: table for name, (_, table) in after_variants.items()}
    estimates.extend(est for est, _ in after_variants.values())

    # --- Age adjustment ---
    census_age = tables["census_age"]
    age_est, age_table = age_adjusted_rate(frame, census_age, period="after", **common)
    estimates.append(age_est)

    # --- Primary estimate and excess deaths ---
    policy = cfg.single_household_policy
    if policy in after_variants:
        primary = after_variants[policy][0]
    else:
        primary = weighted
    excess = excess_deaths(
        primary,
        baseline,
        population=cfg.population,
        window_years=cfg.post_event_years,
        include_baseline_variance=cfg.include_baseline_variance,
    )
    sensitivity = sensitivity_table(
        estimates,
        baseline,
        population=cfg.population,
        window_years=cfg.post_event_years,
        include_baseline_variance=cfg.include_baseline_variance,
    )
    logger.info(
        "Excess deaths (%s): %.0f [%.0f, %.0f]",
        excess.method, excess.excess, excess.ci_low, excess.ci_high,
    )

    return AnalysisResults(
        config=cfg,
        validation=validation,
        frame=frame,
        primary=primary,
        baseline=baseline,
        excess=excess,
        estimates=estimates,
        before=before,
        before_household_size={name: est for name, (est, _) in before_variants.items()},
        household_size_tables=hh_tables,
        age_table=age_table,
        age_shift=age_composition_shift(frame, census_age),
        gender_rates=rates_by(frame, "gender", "died_after", "after_years", per=cfg.per),
        variability=variability,
        variability_summary=summarize_variability(variability),
        variance_comparison=comparison,
        sensitivity=sensitivity,
    )


def run_from_directory(
    data_dir: Union[str, Path] = "data",
    config: Optional[AnalysisConfig] = None,
) -> AnalysisResults:
    """Load every table from `data_dir` and run the analysis."""
    return run_analysis(load_tables(data_dir), config)
