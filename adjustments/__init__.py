"""
Adjustments: post-stratified rates correcting survey composition bias.
"""

from .poststrat import normalize_frequencies, post_stratify
from .policies import (
    StratumPolicy,
    KeepObserved,
    ExcludeStratum,
    PlugInRate,
    make_single_household_policy,
)
from .household_size import (
    size_stratum,
    census_size_frequencies,
    household_size_table,
    household_size_adjusted_rate,
)
from .age import (
    assign_age_groups,
    census_age_frequencies,
    age_adjusted_rate,
    age_composition_shift,
)

__all__ = [
    "normalize_frequencies",
    "post_stratify",
    "StratumPolicy",
    "KeepObserved",
    "ExcludeStratum",
    "PlugInRate",
    "make_single_household_policy",
    "size_stratum",
    "census_size_frequencies",
    "household_size_table",
    "household_size_adjusted_rate",
    "assign_age_groups",
    "census_age_frequencies",
    "age_adjusted_rate",
    "age_composition_shift",
]
