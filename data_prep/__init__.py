"""
Data preparation: loading pre-cleaned tables, validation, analysis-frame construction.
"""

from .loader import load_table, load_tables
from .frame_builder import (
    canonicalize_columns,
    attach_weights,
    resolve_death_dates,
    add_person_time,
    build_analysis_frame,
)
from .validators import ValidationResult, validate_tables

__all__ = [
    "load_table",
    "load_tables",
    "canonicalize_columns",
    "attach_weights",
    "resolve_death_dates",
    "add_person_time",
    "build_analysis_frame",
    "ValidationResult",
    "validate_tables",
]
