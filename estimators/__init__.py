"""
Estimators package: death rates per person-time and their standard errors.

  1. ratio.py - unweighted ratio, linearization SE over households
  2. survey.py - survey-weighted ratio, stratified cluster design-based SE
  3. keyfitz.py - SE = rate / sqrt(deaths) for adjusted rates
  4. bootstrap.py - cluster bootstrap within strata
  5. grouped.py - stratum-specific rates for the adjustments layer
"""

from .rate import RateEstimate
from .ratio import cluster_totals, linearized_ratio, simple_rate
from .survey import survey_rate, design_effect
from .keyfitz import keyfitz_se, keyfitz_estimate
from .bootstrap import bootstrap_rate, bootstrap_replicates
from .grouped import rates_by

__all__ = [
    "RateEstimate",
    "cluster_totals",
    "linearized_ratio",
    "simple_rate",
    "survey_rate",
    "design_effect",
    "keyfitz_se",
    "keyfitz_estimate",
    "bootstrap_rate",
    "bootstrap_replicates",
    "rates_by",
]
