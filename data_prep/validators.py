"""
Data quality validation for the loaded tables before they enter the analysis.

Catches problems early:
- Missing required columns or empty tables
- Negative ages, sizes, weights or counts
- Death months that cannot be dated
- Reference distributions that do not sum to one
- Baseline years with no official counts or population
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pandas as pd

from core.config import AnalysisConfig
from core.schema import OPTIONAL_TABLES, TABLE_COLUMNS
from core.utils import month_overlap_fractions, shift_window

from .frame_builder import canonicalize_columns

_PROPORTION_TOLERANCE = 1e-3


@dataclass
class ValidationResult:
    """
    Blocking errors and informational warnings about the survey and
    reference tables. Messages start with the table name ("deaths: ...").
    """
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def tables_with_issues(self) -> List[str]:
        """Table names mentioned by any error or warning, in first-seen order."""
        names = [m.split(":", 1)[0] for m in self.errors + self.warnings]
        return list(dict.fromkeys(names))

    def summary(self) -> str:
        if not self.errors and not self.warnings:
            return "Input tables: all checks passed."
        head = f"Input tables: {len(self.errors)} blocking error(s), {len(self.warnings)} warning(s)"
        if self.tables_with_issues():
            head += f" in {', '.join(self.tables_with_issues())}"
        lines = [head + "."]
        lines += [f"  [error] {e}" for e in self.errors]
        lines += [f"  [warn]  {w}" for w in self.warnings]
        return "\n".join(lines)


def _numeric(df: pd.DataFrame, col: str) -> pd.Series:
    return pd.to_numeric(df[col], errors="coerce")


def _check_proportions(result: ValidationResult, df: pd.DataFrame, name: str) -> None:
    props = _numeric(df, "proportion")
    if (props < 0).any():
        result.errors.append(f"{name}: {int((props < 0).sum())} negative proportions.")
        return
    total = float(props.sum())
    if abs(total - 1.0) > _PROPORTION_TOLERANCE:
        result.warnings.append(
            f"{name}: proportions sum to {total:.4f}, they will be renormalized."
        )


def validate_tables(
    tables: Dict[str, pd.DataFrame],
    config: Optional[AnalysisConfig] = None,
) -> ValidationResult:
    """
    Run all validation checks on the loaded tables.
    Returns a ValidationResult with errors (blocking) and warnings (informational).
    """
    config = config or AnalysisConfig()
    result = ValidationResult()

    # --- Schema checks ---
    canon: Dict[str, pd.DataFrame] = {}
    for name, columns in TABLE_COLUMNS.items():
        if name not in tables:
            if name not in OPTIONAL_TABLES:
                result.errors.append(f"Missing table: {name}.")
            continue
        df = canonicalize_columns(tables[name], name)
        missing = [c for c in columns if c not in df.columns]
        if missing:
            result.errors.append(f"{name}: missing required columns {missing}.")
            continue
        if df.empty and name not in OPTIONAL_TABLES:
            result.errors.append(f"{name}: table is empty (0 rows).")
            continue
        canon[name] = df

    if not result.is_valid:
        return result  # can't continue without columns

    hh = canon["households"]
    ind = canon["individuals"]
    dth = canon["deaths"]

    # --- Households ---
    n_dup = int(hh["hh_id"].duplicated().sum())
    if n_dup > 0:
        result.errors.append(f"households: {n_dup} duplicate hh_id values.")
    sizes = _numeric(hh, "hh_size")
    if (sizes < 1).any():
        result.errors.append(f"households: {int((sizes < 1).sum())} rows have hh_size < 1.")
    if sizes.isna().any():
        result.warnings.append(
            f"households: {int(sizes.isna().sum())} rows have no hh_size; roster counts will be used."
        )

    # --- Weights ---
    if "weight" in hh.columns:
        hh_weights = _numeric(hh, "weight")
    else:
        hh_weights = pd.Series(float("nan"), index=hh.index)
    if "weights" in canon:
        w = canon["weights"]
        w_vals = _numeric(w, "weight")
        if (w_vals <= 0).any():
            result.errors.append(f"weights: {int((w_vals <= 0).sum())} non-positive weights.")
        strata_weight = dict(zip(w["strata"], w_vals))
        hh_weights = hh_weights.fillna(hh["strata"].map(strata_weight))
    if (hh_weights <= 0).any():
        result.errors.append(f"households: {int((hh_weights <= 0).sum())} non-positive weights.")
    if hh_weights.isna().any():
        result.warnings.append(
            f"households: {int(hh_weights.isna().sum())} have no sampling weight and will be dropped."
        )

    # --- Individuals and deaths ---
    known = set(hh["hh_id"])
    for name, df in (("individuals", ind), ("deaths", dth)):
        ages = _numeric(df, "age")
        if (ages < 0).any():
            result.errors.append(f"{name}: {int((ages < 0).sum())} negative ages.")
        if (ages > 120).any():
            result.warnings.append(f"{name}: {int((ages > 120).sum())} ages above 120.")
        if ages.isna().any():
            result.warnings.append(f"{name}: {int(ages.isna().sum())} rows with missing age.")
        n_orphan = int((~df["hh_id"].isin(known)).sum())
        if n_orphan:
            result.warnings.append(f"{name}: {n_orphan} rows reference unknown households.")

    n_dup = int(ind.duplicated(subset=["hh_id", "person_id"]).sum())
    if n_dup:
        result.warnings.append(f"individuals: {n_dup} duplicate (hh_id, person_id) pairs.")

    months = _numeric(dth, "died_month")
    bad_month = months.notna() & ~months.between(1, 12)
    if bad_month.any():
        result.errors.append(f"deaths: {int(bad_month.sum())} rows have died_month outside 1-12.")
    if months.isna().any():
        result.warnings.append(f"deaths: {int(months.isna().sum())} rows have no died_month.")

    # --- Official statistics ---
    official = canon["official_deaths"]
    counts = _numeric(official, "deaths")
    if (counts < 0).any():
        result.errors.append(f"official_deaths: {int((counts < 0).sum())} negative counts.")
    pop = canon["population"]
    if (_numeric(pop, "population") <= 0).any():
        result.errors.append("population: non-positive population estimates.")

    start, end = shift_window(
        config.window_start, config.window_end_exclusive, config.baseline_year
    )
    needed = month_overlap_fractions(start, end)
    have = set(zip(_numeric(official, "year"), _numeric(official, "month")))
    missing_months = [
        f"{int(y)}-{int(m):02d}" for y, m in zip(needed["year"], needed["month"])
        if (y, m) not in have
    ]
    if missing_months:
        result.errors.append(f"official_deaths: no counts for baseline months {missing_months}.")
    if config.baseline_year not in set(_numeric(pop, "year")):
        result.errors.append(f"population: no estimate for baseline year {config.baseline_year}.")

    # --- Census reference distributions ---
    _check_proportions(result, canon["census_hh_size"], "census_hh_size")
    _check_proportions(result, canon["census_age"], "census_age")
    age = canon["census_age"]
    if (_numeric(age, "age_end") < _numeric(age, "age_start")).any():
        result.errors.append("census_age: age_end before age_start.")

    return result
