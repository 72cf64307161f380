"""
Shared synthetic survey for the test suite.

Twelve households in two strata. Households 1-2 are single-person with no
deaths; five households report one death each (four after the event, one
before). Official counts are flat per month so window totals are easy to
check by hand.
"""

import pandas as pd
import pytest

from core.config import AnalysisConfig

AGE_CYCLE = [5, 30, 50, 70, 20, 40, 10]
HH_SIZES = [1, 1, 2, 2, 3, 3, 4, 4, 5, 6, 7, 2]

# hh_id -> (died_month, died_day or None, age)
DEATHS = {
    3: (10, 15, 72),
    5: (11, None, 80),
    7: (9, 25, 55),
    9: (3, 10, 68),
    10: (12, 1, 35),
}

MONTHLY_DEATHS = {2015: 2450, 2016: 2500, 2017: 2550}
POPULATION = {2015: 3_500_000, 2016: 3_450_000, 2017: 3_400_000}


def _households() -> pd.DataFrame:
    return pd.DataFrame({
        "hh_id": list(range(1, len(HH_SIZES) + 1)),
        "strata": ["A" if i % 2 else "B" for i in range(1, len(HH_SIZES) + 1)],
        "hh_size": HH_SIZES,
    })


def _individuals() -> pd.DataFrame:
    rows = []
    k = 0
    for hh_id, size in enumerate(HH_SIZES, start=1):
        n_living = size - (1 if hh_id in DEATHS else 0)
        for j in range(n_living):
            rows.append({
                "hh_id": hh_id,
                "person_id": f"{hh_id}-{j}",
                "age": AGE_CYCLE[k % len(AGE_CYCLE)],
                "gender": "F" if k % 2 else "M",
            })
            k += 1
    return pd.DataFrame(rows)


def _deaths() -> pd.DataFrame:
    rows = []
    for hh_id, (month, day, age) in DEATHS.items():
        rows.append({
            "hh_id": hh_id,
            "person_id": f"{hh_id}-d",
            "died_year": 2017,
            "died_month": month,
            "died_day": day,
            "age": age,
            "gender": "M",
        })
    return pd.DataFrame(rows)


def _official_deaths() -> pd.DataFrame:
    return pd.DataFrame([
        {"year": year, "month": month, "deaths": count}
        for year, count in MONTHLY_DEATHS.items()
        for month in range(1, 13)
    ])


@pytest.fixture
def config() -> AnalysisConfig:
    return AnalysisConfig(variability_years=(2015, 2016))


@pytest.fixture
def households() -> pd.DataFrame:
    return _households()


@pytest.fixture
def weights() -> pd.DataFrame:
    return pd.DataFrame({"strata": ["A", "B"], "weight": [100.0, 200.0]})


@pytest.fixture
def individuals() -> pd.DataFrame:
    return _individuals()


@pytest.fixture
def deaths() -> pd.DataFrame:
    return _deaths()


@pytest.fixture
def census_hh_size() -> pd.DataFrame:
    return pd.DataFrame({
        "hh_size": [1, 2, 3, 4, 5, 6, 7],
        "proportion": [0.10, 0.25, 0.22, 0.20, 0.12, 0.07, 0.04],
    })


@pytest.fixture
def census_age() -> pd.DataFrame:
    return pd.DataFrame({
        "age_start": [0, 15, 45, 65],
        "age_end": [14, 44, 64, 120],
        "proportion": [0.18, 0.38, 0.26, 0.18],
    })


@pytest.fixture
def tables(households, weights, individuals, deaths, census_hh_size, census_age):
    return {
        "households": households,
        "weights": weights,
        "individuals": individuals,
        "deaths": deaths,
        "official_deaths": _official_deaths(),
        "population": pd.DataFrame(
            {"year": list(POPULATION), "population": list(POPULATION.values())}
        ),
        "census_hh_size": census_hh_size,
        "census_age": census_age,
    }


@pytest.fixture
def frame(tables, config):
    from data_prep.frame_builder import build_analysis_frame

    return build_analysis_frame(
        tables["households"],
        tables["individuals"],
        tables["deaths"],
        config,
        weights=tables["weights"],
    )
