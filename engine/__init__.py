"""
Analysis engine: runs every estimator, adjustment and comparison in order.
"""

from .runner import AnalysisResults, run_analysis, run_from_directory

__all__ = ["AnalysisResults", "run_analysis", "run_from_directory"]
