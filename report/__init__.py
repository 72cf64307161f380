"""
Report outputs: excess deaths, method sensitivity, and the printed report.
"""

from .excess import ExcessDeaths, excess_deaths
from .sensitivity import sensitivity_table, estimates_to_dataframe
from .printer import format_report, print_report

__all__ = [
    "ExcessDeaths",
    "excess_deaths",
    "sensitivity_table",
    "estimates_to_dataframe",
    "format_report",
    "print_report",
]
