from __future__ import annotations

from typing import List


class AnalysisDataError(ValueError):
    """Input tables failed blocking validation checks."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("Input validation failed:\n  " + "\n  ".join(self.errors))
