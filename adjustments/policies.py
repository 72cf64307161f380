"""
Policies for the single-person-household stratum.

A household whose only member died cannot be interviewed, so surveyed
single-person households show structurally zero deaths. Each policy rewrites
the stratum table and the frequency vector before post-stratification.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import pandas as pd

logger = logging.getLogger(__name__)


class StratumPolicy:
    """Interface for rewriting one stratum ahead of post-stratification."""

    label: str = "none"

    def apply(
        self,
        strata: pd.DataFrame,
        frequencies: pd.Series,
        stratum,
    ) -> Tuple[pd.DataFrame, pd.Series]:
        raise NotImplementedError


@dataclass(frozen=True)
class KeepObserved(StratumPolicy):
    """Use the survey's own (possibly zero) rate for the stratum."""

    label: str = "observed"

    def apply(self, strata, frequencies, stratum):
        return strata.copy(), frequencies.copy()


@dataclass(frozen=True)
class ExcludeStratum(StratumPolicy):
    """Drop the stratum; remaining frequencies are renormalized downstream."""

    label: str = "exclude"

    def apply(self, strata, frequencies, stratum):
        out = strata[strata["stratum"] != stratum].copy()
        return out, frequencies.drop(index=stratum, errors="ignore")


@dataclass(frozen=True)
class PlugInRate(StratumPolicy):
    """
    Replace the stratum's rate with an outside value.

    The replaced stratum keeps its frequency but contributes no observed deaths
    (so it does not shrink a Keyfitz SE).
    """

    rate: float = 0.0
    se: float = 0.0
    label: str = "plug-in"

    def apply(self, strata, frequencies, stratum):
        out = strata[strata["stratum"] != stratum].copy()
        row = pd.DataFrame([{
            "stratum": stratum,
            "deaths": 0.0,
            "person_years": 0.0,
            "rate": float(self.rate),
            "se": float(self.se),
        }])
        out = pd.concat([out, row], ignore_index=True)
        return out, frequencies.copy()


def make_single_household_policy(
    name: str,
    *,
    historical_rate: Optional[float] = None,
    reference_rate: Optional[float] = None,
) -> StratumPolicy:
    """
    Build a policy from its configuration name.

    "exclude"     drop size-1 households
    "zero"        plug in a rate of zero
    "historical"  plug in the official (pre-event or baseline) rate
    "reference"   plug in an external age-appropriate reference rate
    "observed"    keep the survey's own rate
    """
    if name == "exclude":
        return ExcludeStratum()
    if name == "zero":
        return PlugInRate(rate=0.0, label="zero plug-in")
    if name == "historical":
        if historical_rate is None:
            raise ValueError("The 'historical' policy needs historical_rate.")
        return PlugInRate(rate=historical_rate, label="historical plug-in")
    if name == "reference":
        if reference_rate is None:
            raise ValueError("The 'reference' policy needs reference_rate.")
        return PlugInRate(rate=reference_rate, label="reference plug-in")
    if name == "observed":
        return KeepObserved()
    raise KeyError(
        f"Unknown single-household policy '{name}'. "
        f"Available: ['exclude', 'zero', 'historical', 'reference', 'observed']"
    )
