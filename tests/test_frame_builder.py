"""
Tests for the per-person analysis frame
"""

import numpy as np
import pandas as pd
import pytest

from core.config import AnalysisConfig
from core.schema import FRAME_COLUMNS
from data_prep.frame_builder import (
    attach_weights,
    build_analysis_frame,
    canonicalize_columns,
    resolve_death_dates,
)


# --- Column aliases ---

def test_canonicalize_household_aliases():
    df = pd.DataFrame({"id": [1], "stratum": ["A"], "household_size": [3]})
    out = canonicalize_columns(df, "households")
    assert list(out.columns) == ["hh_id", "strata", "hh_size"]


def test_canonicalize_death_aliases_keep_official_month():
    deaths = pd.DataFrame({"hhid": [1], "id": ["1-d"], "month": [10], "day": [3]})
    out = canonicalize_columns(deaths, "deaths")
    assert {"hh_id", "person_id", "died_month", "died_day"} <= set(out.columns)

    official = pd.DataFrame({"year": [2016], "month": [1], "deaths": [10]})
    assert list(canonicalize_columns(official, "official_deaths").columns) == ["year", "month", "deaths"]


def test_canonicalize_coalesces_duplicates():
    df = pd.DataFrame({"sex": ["F", None], "gender": [None, "M"]})
    out = canonicalize_columns(df)
    assert list(out.columns) == ["gender"]
    assert list(out["gender"]) == ["F", "M"]


# --- Weights ---

def test_attach_weights_household_weight_wins(households, weights):
    hh = households.assign(weight=[np.nan] * 11 + [999.0])
    out = attach_weights(hh, weights)
    assert out.loc[out["hh_id"] == 12, "weight"].item() == 999.0
    assert out.loc[out["hh_id"] == 1, "weight"].item() == 100.0
    assert out.loc[out["hh_id"] == 2, "weight"].item() == 200.0


def test_attach_weights_drops_unweighted(households):
    hh = households.assign(weight=[1.0] * 11 + [np.nan])
    out = attach_weights(hh)
    assert len(out) == 11


def test_attach_weights_requires_some_weight(households):
    with pytest.raises(ValueError, match="weights"):
        attach_weights(households)


# --- Death dates ---

def _one_death(month, day=None, year=2017):
    return pd.DataFrame({
        "hh_id": [1], "person_id": ["1-d"], "died_year": [year],
        "died_month": [month], "died_day": [day], "age": [70], "gender": ["F"],
    })


@pytest.mark.parametrize("side, expected", [
    ("after", "2017-09-25"),
    ("before", "2017-09-10"),
    ("midpoint", "2017-09-16"),
])
def test_undated_event_month_death(side, expected):
    cfg = AnalysisConfig(undated_event_month=side)
    assert resolve_death_dates(_one_death(9), cfg).iloc[0] == pd.Timestamp(expected)


@pytest.mark.parametrize("event, expected", [
    ("2017-09-01", "2017-08-31"),
    ("2017-09-02", "2017-09-01"),
])
def test_before_event_death_precedes_early_event(event, expected):
    cfg = AnalysisConfig(event_date=pd.Timestamp(event), undated_event_month="before")
    date = resolve_death_dates(_one_death(9), cfg).iloc[0]
    assert date == pd.Timestamp(expected)
    assert date < pd.Timestamp(event)


def test_undated_death_outside_event_month_is_mid_month():
    assert resolve_death_dates(_one_death(11), AnalysisConfig()).iloc[0] == pd.Timestamp("2017-11-16")


def test_dated_death_day_clipped_to_month():
    assert resolve_death_dates(_one_death(2, 31), AnalysisConfig()).iloc[0] == pd.Timestamp("2017-02-28")


def test_invalid_month_gives_no_date():
    assert pd.isna(resolve_death_dates(_one_death(13), AnalysisConfig()).iloc[0])


# --- Frame ---

def test_frame_shape_and_columns(frame):
    assert len(frame) == 40
    assert list(frame.columns[:len(FRAME_COLUMNS)]) == list(FRAME_COLUMNS)
    assert frame["died"].sum() == 5
    assert frame["died_after"].sum() == 4
    assert frame["died_before"].sum() == 1


def test_living_person_time(frame):
    living = frame[frame["died"] == 0]
    assert np.allclose(living["before_years"], 262 / 365)
    assert np.allclose(living["after_years"], 103 / 365)


def test_decedent_person_time(frame):
    row = frame[frame["person_id"] == "3-d"].iloc[0]
    assert row["death_date"] == pd.Timestamp("2017-10-15")
    assert row["before_years"] == pytest.approx(262 / 365)
    assert row["after_years"] == pytest.approx(25 / 365)

    pre = frame[frame["person_id"] == "9-d"].iloc[0]
    assert pre["died_before"] == 1 and pre["died_after"] == 0
    assert pre["before_years"] == pytest.approx(68 / 365)
    assert pre["after_years"] == 0.0


def test_frame_carries_weights(frame):
    assert set(frame.loc[frame["strata"] == "A", "weight"]) == {100.0}
    assert set(frame.loc[frame["strata"] == "B", "weight"]) == {200.0}


def test_deaths_outside_window_dropped(households, weights, individuals, deaths, config):
    extra = _one_death(12, 5, year=2016)
    out = build_analysis_frame(
        households, individuals, pd.concat([deaths, extra], ignore_index=True), config, weights=weights
    )
    assert len(out) == 40


def test_orphan_people_dropped(households, weights, individuals, deaths, config):
    stray = pd.DataFrame({"hh_id": [99], "person_id": ["99-0"], "age": [30], "gender": ["F"]})
    out = build_analysis_frame(
        households, pd.concat([individuals, stray], ignore_index=True), deaths, config, weights=weights
    )
    assert 99 not in set(out["hh_id"])


def test_missing_size_uses_roster_count(households, weights, individuals, deaths, config):
    hh = households.astype({"hh_size": float})
    hh.loc[hh["hh_id"] == 3, "hh_size"] = np.nan
    out = build_analysis_frame(hh, individuals, deaths, config, weights=weights)
    assert set(out.loc[out["hh_id"] == 3, "hh_size"]) == {2.0}
