"""
Tests for excess deaths and the sensitivity table
"""

import math

import pytest

from estimators.rate import RateEstimate
from report.excess import excess_deaths
from report.sensitivity import estimates_to_dataframe, sensitivity_table

Z95 = 1.959964


@pytest.fixture
def survey():
    return RateEstimate.from_se("survey", 12.0, 1.0, deaths=40, person_years=3000)


@pytest.fixture
def baseline():
    return RateEstimate.from_se("official", 8.0, 0.1, deaths=8000, person_years=1_000_000)


def test_excess_deaths_point_and_interval(survey, baseline):
    ex = excess_deaths(survey, baseline, population=1_000_000, window_years=0.5)
    assert ex.excess == pytest.approx(2000.0)
    assert ex.rate_difference == pytest.approx(4.0)
    assert ex.percent_increase == pytest.approx(0.5)
    assert ex.ci_low == pytest.approx((12.0 - Z95 - 8.0) * 500, rel=1e-5)
    assert ex.ci_high == pytest.approx((12.0 + Z95 - 8.0) * 500, rel=1e-5)
    assert not ex.includes_baseline_variance


def test_excess_deaths_with_baseline_variance(survey, baseline):
    ex = excess_deaths(
        survey, baseline, population=1_000_000, window_years=0.5, include_baseline_variance=True
    )
    assert ex.se == pytest.approx(math.sqrt(1.01) * 500)
    assert ex.ci_high - ex.excess == pytest.approx(Z95 * ex.se, rel=1e-5)


def test_excess_deaths_keeps_percentile_interval(baseline):
    boot = RateEstimate.from_se("bootstrap", 12.0, 1.0, deaths=40, person_years=1, ci=(10.0, 15.0))
    ex = excess_deaths(boot, baseline, population=1000, window_years=1.0)
    assert (ex.ci_low, ex.ci_high) == pytest.approx((2.0, 7.0))


def test_excess_deaths_rejects_bad_inputs(survey, baseline):
    with pytest.raises(ValueError):
        excess_deaths(survey, baseline, population=0, window_years=0.5)
    per_100k = RateEstimate.from_se("b", 800.0, 1.0, deaths=1, person_years=1, per=100_000)
    with pytest.raises(ValueError):
        excess_deaths(survey, per_100k, population=1000, window_years=0.5)


def test_excess_deaths_table(survey, baseline):
    table = excess_deaths(survey, baseline, population=1_000_000, window_years=0.5).to_dataframe()
    assert list(table.columns) == ["Metric", "Value", "Unit"]
    assert "2,000" in table.set_index("Metric").loc["Excess deaths", "Value"]


def test_sensitivity_table(survey, baseline):
    other = RateEstimate.from_se("age-adjusted", 10.0, 1.5, deaths=40, person_years=3000)
    table = sensitivity_table([survey, other], baseline, population=1_000_000, window_years=0.5)
    assert list(table["Method"]) == ["survey", "age-adjusted"]
    assert list(table["Excess"]) == pytest.approx([2000.0, 1000.0])
    assert {"Excess Low", "Excess High", "Increase"} <= set(table.columns)

    plain = estimates_to_dataframe([survey, other])
    assert "Excess" not in plain.columns
