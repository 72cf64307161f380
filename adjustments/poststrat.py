"""
Post-stratification: recombine stratum-specific rates with known population
frequencies.

    rate = sum_s f_s * rate_s,    sum_s f_s = 1

The SE is either the Keyfitz approximation on the observed deaths behind the
combined rate ("keyfitz") or the independent-strata sum sqrt(sum f_s^2 se_s^2)
("stratified").
"""

from __future__ import annotations

import logging
from typing import Literal, Tuple

import numpy as np
import pandas as pd

from core.utils import require_columns
from estimators.keyfitz import keyfitz_se
from estimators.rate import RateEstimate

logger = logging.getLogger(__name__)

STRATUM_TABLE_COLUMNS = ("stratum", "deaths", "person_years", "rate", "se")


def normalize_frequencies(frequencies: pd.Series) -> pd.Series:
    """Drop missing entries and rescale to sum to one."""
    f = pd.to_numeric(frequencies, errors="coerce").dropna()
    if (f < 0).any():
        raise ValueError("Frequencies must be non-negative.")
    total = float(f.sum())
    if total <= 0:
        raise ValueError("Frequencies sum to zero.")
    if not np.isclose(total, 1.0):
        logger.info("Renormalizing frequencies that sum to %.4f", total)
    return f / total


def post_stratify(
    strata: pd.DataFrame,
    frequencies: pd.Series,
    *,
    method: str = "post-stratified",
    variance: Literal["keyfitz", "stratified"] = "keyfitz",
    on_missing: Literal["raise", "drop"] = "raise",
    per: float = 1000.0,
    confidence: float = 0.95,
) -> Tuple[RateEstimate, pd.DataFrame]:
    """
    Combine stratum rates using population frequencies.

    Parameters
    ----------
    strata : pd.DataFrame
        One row per stratum with STRATUM_TABLE_COLUMNS.
    frequencies : pd.Series
        Population share per stratum, indexed by stratum. Renormalized to 1.
    on_missing : {"raise", "drop"}
        What to do with population strata that have no survey rate (no
        members, or no exposure). "drop" removes them, renormalizes the
        remaining frequencies and logs a warning.

    Returns
    -------
    (estimate, table) where table is `strata` joined with the frequency column,
    each stratum's contribution to the combined rate, and a `dropped` flag.
    Dropped strata stay in the table with frequency 0 and no rate.
    """
    require_columns(strata, STRATUM_TABLE_COLUMNS)
    if on_missing not in ("raise", "drop"):
        raise ValueError(f"Unknown on_missing mode {on_missing!r}")
    f = normalize_frequencies(frequencies)

    table = strata.set_index("stratum")
    unknown = [s for s in table.index if s not in f.index]
    if unknown:
        logger.warning("Strata %s have no population frequency and are ignored", unknown)
        table = table.drop(index=unknown)
    table = table.reindex(f.index)

    no_rate = list(table.index[table["rate"].isna()])
    if no_rate:
        if on_missing == "raise":
            raise ValueError(f"No rate for strata {no_rate}; supply a plug-in or exclude them.")
        lost = float(f.loc[no_rate].sum())
        if lost >= 1.0:
            raise ValueError("No population stratum has a survey rate.")
        logger.warning(
            "Strata %s have no survey exposure and are dropped (%.1f%% of the population)",
            no_rate, 100 * lost,
        )
        f = f.drop(index=no_rate) / (1.0 - lost)

    table["dropped"] = table["rate"].isna()
    table["frequency"] = f.reindex(table.index).fillna(0.0).to_numpy()
    table[["deaths", "person_years"]] = table[["deaths", "person_years"]].fillna(0.0)
    table["contribution"] = (table["frequency"] * table["rate"]).fillna(0.0)
    table = table.rename_axis("stratum")

    rate = float(table["contribution"].sum())
    deaths = float(table.loc[~table["dropped"], "deaths"].sum())
    if variance == "keyfitz":
        se = keyfitz_se(rate, deaths)
    elif variance == "stratified":
        se = float(np.sqrt((table["frequency"] ** 2 * table["se"].fillna(0.0) ** 2).sum()))
    else:
        raise ValueError(f"Unknown variance method {variance!r}")

    estimate = RateEstimate.from_se(
        method,
        rate,
        se,
        deaths=deaths,
        person_years=float(table["person_years"].sum()),
        confidence=confidence,
        per=per,
    )
    return estimate, table.reset_index()
