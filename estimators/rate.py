"""
RateEstimate: the common output of every estimator and adjustment.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Dict, Optional

from core.utils import z_critical


@dataclass(frozen=True)
class RateEstimate:
    """A death rate per `per` person-years with its standard error and interval."""
    method: str
    rate: float
    se: float
    deaths: float          # observed (unweighted) deaths behind the estimate
    person_years: float    # observed (unweighted) exposure behind the estimate
    ci_low: float
    ci_high: float
    confidence: float = 0.95
    per: float = 1000.0

    @classmethod
    def from_se(
        cls,
        method: str,
        rate: float,
        se: float,
        *,
        deaths: float,
        person_years: float,
        confidence: float = 0.95,
        per: float = 1000.0,
        ci: Optional[tuple] = None,
    ) -> "RateEstimate":
        """Build an estimate with a normal-approximation interval unless `ci` is given."""
        if ci is None:
            z = z_critical(confidence)
            ci = (rate - z * se, rate + z * se)
        return cls(
            method=method,
            rate=float(rate),
            se=float(se),
            deaths=float(deaths),
            person_years=float(person_years),
            ci_low=float(ci[0]),
            ci_high=float(ci[1]),
            confidence=confidence,
            per=per,
        )

    @property
    def relative_se(self) -> float:
        return self.se / self.rate if self.rate else math.nan

    def to_dict(self) -> Dict:
        return asdict(self)

    def __repr__(self) -> str:
        return (
            f"RateEstimate({self.method}: {self.rate:.2f} per {self.per:g} "
            f"[{self.ci_low:.2f}, {self.ci_high:.2f}], se={self.se:.3f}, "
            f"deaths={self.deaths:g}, py={self.person_years:.1f})"
        )
