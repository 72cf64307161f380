"""
Plain-text report of an analysis run: the printed tables the CLI emits.
"""

from __future__ import annotations

from typing import List

import pandas as pd

from .sensitivity import estimates_to_dataframe

WIDTH = 70


def _section(title: str) -> List[str]:
    return ["", "=" * WIDTH, title, "=" * WIDTH]


def _table(df: pd.DataFrame, float_format: str = "{:,.2f}") -> str:
    return df.to_string(index=False, float_format=lambda v: float_format.format(v))


def format_report(results) -> str:
    """Render AnalysisResults (engine.runner) as text."""
    cfg = results.config
    lines: List[str] = []

    lines += _section("EXCESS MORTALITY ESTIMATE")
    lines.append(_table(results.excess.to_dataframe()))

    lines += _section("POST-EVENT RATES AND SENSITIVITY")
    sens = results.sensitivity.copy()
    sens["Increase"] = sens["Increase"].map(lambda v: f"{v:.1%}")
    lines.append(_table(sens))

    lines += _section("PRE-EVENT RATES (SURVEY VS OFFICIAL)")
    lines.append(_table(estimates_to_dataframe(results.before.values())))
    if results.before_household_size:
        lines.append("")
        lines.append("Pre-event household-size variants:")
        lines.append(_table(estimates_to_dataframe(results.before_household_size.values())))

    lines += _section("HOUSEHOLD-SIZE STRATA")
    for name, table in results.household_size_tables.items():
        lines.append(f"[{name}]")
        lines.append(_table(table, "{:,.4f}"))
        lines.append("")

    lines += _section("AGE ADJUSTMENT")
    if results.age_table is not None:
        lines.append(_table(results.age_table, "{:,.4f}"))
    if results.age_shift is not None:
        lines.append("")
        lines.append("Person-time share by age group:")
        lines.append(_table(results.age_shift, "{:.3f}"))

    if results.gender_rates is not None and not results.gender_rates.empty:
        lines += _section("POST-EVENT RATES BY GENDER")
        lines.append(_table(results.gender_rates))

    lines += _section(f"BASELINE ({cfg.baseline_year}) AND ITS VARIABILITY")
    b = results.baseline
    lines.append(
        f"Baseline rate: {b.rate:.2f} per {b.per:g} py "
        f"(deaths={b.deaths:,.0f}, se={b.se:.3f})"
    )
    if results.variability is not None and not results.variability.empty:
        lines.append(_table(results.variability))
        s = results.variability_summary
        lines.append(
            f"Across {s['n_years']} years: mean={s['mean']:.2f}, sd={s['sd']:.3f}, cv={s['cv']:.1%}"
        )
    vc = results.variance_comparison
    if vc is not None and not vc.defined:
        lines.append(
            f"Baseline SE / survey SE = undefined (survey SE is {vc.survey_se:g})"
        )
    elif vc is not None:
        verdict = "negligible" if vc.negligible else "NOT negligible"
        lines.append(
            f"Baseline SE / survey SE = {vc.se_ratio:.1%} "
            f"(variance ratio {vc.variance_ratio:.2%}): {verdict} at {vc.threshold:.0%}"
        )

    if results.validation.warnings:
        lines += _section("DATA WARNINGS")
        lines.append(results.validation.summary())

    return "\n".join(lines)


def print_report(results) -> None:
    print(format_report(results))
