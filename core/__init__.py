"""
Core package: schema definitions, configuration, logging and shared utilities.
No analysis logic lives here.
"""

from .schema import TABLE_COLUMNS, TABLE_FILES, FRAME_COLUMNS
from .config import AnalysisConfig
from .settings import AnalysisSettings, load_settings
from .errors import AnalysisDataError
from .logs import configure_logging
from .utils import require_columns, z_critical, years_between, month_overlap_fractions

__all__ = [
    "TABLE_COLUMNS",
    "TABLE_FILES",
    "FRAME_COLUMNS",
    "AnalysisConfig",
    "AnalysisSettings",
    "load_settings",
    "AnalysisDataError",
    "configure_logging",
    "require_columns",
    "z_critical",
    "years_between",
    "month_overlap_fractions",
]
