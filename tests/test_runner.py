"""
End-to-end tests: loading tables from disk, the analysis runner, the
printed report and the command line entry point
"""

import dataclasses
import logging

import pandas as pd
import pytest

from app.cli import main
from core.errors import AnalysisDataError
from core.schema import TABLE_FILES
from data_prep.loader import load_table, load_tables
from engine.runner import run_analysis, run_from_directory
from report.printer import format_report


def _write_tables(tables, directory):
    for name, df in tables.items():
        df.to_csv(directory / f"{TABLE_FILES[name]}.csv", index=False)


@pytest.fixture(autouse=True)
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


# --- Loading ---

def test_load_tables_round_trip(tables, tmp_path):
    _write_tables(tables, tmp_path)
    loaded = load_tables(tmp_path)
    assert set(loaded) == set(tables)
    assert len(loaded["individuals"]) == len(tables["individuals"])


def test_load_tables_optional_and_required(tables, tmp_path):
    del tables["weights"]
    _write_tables(tables, tmp_path)
    assert "weights" not in load_tables(tmp_path)

    (tmp_path / "census_age.csv").unlink()
    with pytest.raises(FileNotFoundError, match="census_age"):
        load_tables(tmp_path)


def test_load_table_rejects_unknown_format(tmp_path):
    path = tmp_path / "households.json"
    path.write_text("{}")
    with pytest.raises(ValueError):
        load_table(path)


# --- Runner ---

def test_run_analysis(tables, config):
    results = run_analysis(tables, config)

    methods = [e.method for e in results.estimates]
    assert methods[:3] == ["unweighted", "survey-weighted", "keyfitz"]
    assert "age-adjusted (after)" in methods
    assert any("exclude" in m for m in methods)

    assert results.primary.method == "household-size (historical plug-in, after)"
    assert results.excess.method == results.primary.method
    assert results.excess.baseline_rate == pytest.approx(results.baseline.rate)
    assert results.excess.window_years == pytest.approx(103 / 365)

    assert set(results.before) == {"survey", "official"}
    assert set(results.before_household_size) == {"exclude", "zero", "historical"}
    assert list(results.variability["year"]) == [2015, 2016]
    assert results.variance_comparison.negligible
    assert results.before_household_size["exclude"].rate >= results.before_household_size["zero"].rate
    assert len(results.sensitivity) == len(results.estimates)
    assert set(results.gender_rates["gender"]) == {"F", "M"}


def test_run_analysis_bootstrap_and_reference(tables, config):
    cfg = dataclasses.replace(
        config,
        n_bootstrap=100,
        single_household_policy="reference",
        reference_rate_single=21.0,
    )
    results = run_analysis(tables, cfg)
    methods = [e.method for e in results.estimates]
    assert "bootstrap" in methods
    assert results.primary.method == "household-size (reference plug-in, after)"


def test_run_analysis_primary_falls_back_to_weighted(tables, config):
    results = run_analysis(tables, dataclasses.replace(config, single_household_policy="observed"))
    assert results.primary.method == "survey-weighted"


def test_run_analysis_rejects_invalid_tables(tables, config):
    tables["deaths"].loc[0, "died_month"] = 13
    with pytest.raises(AnalysisDataError) as exc_info:
        run_analysis(tables, config)
    assert any("died_month" in e for e in exc_info.value.errors)


def test_run_analysis_drops_census_band_without_survey_members(tables, config):
    tables["census_age"] = pd.DataFrame({
        "age_start": [0, 15, 45, 65, 85],
        "age_end": [14, 44, 64, 84, 120],
        "proportion": [0.18, 0.38, 0.26, 0.16, 0.02],
    })
    results = run_analysis(tables, config)
    age = results.age_table.set_index("stratum")
    assert bool(age.loc["85+", "dropped"])
    assert age["frequency"].sum() == pytest.approx(1.0)


def test_run_analysis_drops_size_stratum_without_households(tables, config):
    tables["households"] = tables["households"].assign(
        hh_size=lambda d: d["hh_size"].replace(5, 4)
    )
    results = run_analysis(tables, config)
    for table in results.household_size_tables.values():
        assert bool(table.set_index("stratum").loc[5, "dropped"])


def test_run_analysis_without_post_event_deaths(tables, config):
    deaths = tables["deaths"]
    tables["deaths"] = deaths[deaths["died_month"] < 9]
    results = run_analysis(tables, config)
    assert results.frame["died_after"].sum() == 0
    comparison = results.variance_comparison
    assert comparison.defined is False
    assert comparison.negligible is False
    assert "Baseline SE / survey SE = undefined" in format_report(results)


def test_format_report(tables, config):
    text = format_report(run_analysis(tables, config))
    assert "EXCESS MORTALITY ESTIMATE" in text
    assert "HOUSEHOLD-SIZE STRATA" in text
    assert "Baseline SE / survey SE" in text


def test_run_from_directory(tables, config, tmp_path):
    _write_tables(tables, tmp_path)
    results = run_from_directory(tmp_path, config)
    assert results.frame["died_after"].sum() == 4


# --- CLI ---

def test_cli_success(tables, tmp_path, capsys):
    _write_tables(tables, tmp_path)
    code = main(["--data-dir", str(tmp_path), "--bootstrap", "50", "--log-level", "warning"])
    assert code == 0
    assert "EXCESS MORTALITY ESTIMATE" in capsys.readouterr().out


def test_cli_settings_file(tables, tmp_path):
    _write_tables(tables, tmp_path)
    settings = tmp_path / "settings.json"
    settings.write_text('{"variability_years": [2015, 2016], "single_household_policy": "exclude"}')
    assert main(["--data-dir", str(tmp_path), "--settings", str(settings)]) == 0


def test_cli_missing_data(tmp_path):
    assert main(["--data-dir", str(tmp_path / "nope")]) == 2


def test_cli_invalid_data(tables, tmp_path):
    tables["households"] = tables["households"].assign(hh_size=0)
    _write_tables(tables, tmp_path)
    assert main(["--data-dir", str(tmp_path)]) == 1


def test_cli_sparse_census_band(tables, tmp_path):
    tables["census_age"] = pd.DataFrame({
        "age_start": [0, 15, 45, 65, 85],
        "age_end": [14, 44, 64, 84, 120],
        "proportion": [0.18, 0.38, 0.26, 0.16, 0.02],
    })
    _write_tables(tables, tmp_path)
    assert main(["--data-dir", str(tmp_path)]) == 0


def test_cli_estimate_failure(tables, tmp_path):
    tables["census_age"] = pd.DataFrame({"age_start": [100], "age_end": [120], "proportion": [1.0]})
    _write_tables(tables, tmp_path)
    assert main(["--data-dir", str(tmp_path)]) == 1


def test_cli_invalid_settings(tmp_path):
    assert main(["--data-dir", str(tmp_path), "--policy", "reference"]) == 1
