from __future__ import annotations

from typing import Dict, Tuple

# Required columns for each input table. Extra columns are carried through
# untouched; only these are enforced by the loader and validators.
HOUSEHOLD_COLUMNS: Tuple[str, ...] = ("hh_id", "strata", "hh_size")
WEIGHT_COLUMNS: Tuple[str, ...] = ("strata", "weight")
INDIVIDUAL_COLUMNS: Tuple[str, ...] = ("hh_id", "person_id", "age", "gender")
DEATH_COLUMNS: Tuple[str, ...] = ("hh_id", "person_id", "died_month", "age", "gender")
OFFICIAL_DEATH_COLUMNS: Tuple[str, ...] = ("year", "month", "deaths")
POPULATION_COLUMNS: Tuple[str, ...] = ("year", "population")
CENSUS_HH_SIZE_COLUMNS: Tuple[str, ...] = ("hh_size", "proportion")
CENSUS_AGE_COLUMNS: Tuple[str, ...] = ("age_start", "age_end", "proportion")

# Table name -> file stem under the data directory.
TABLE_FILES: Dict[str, str] = {
    "households": "households",
    "weights": "survey_weights",
    "individuals": "individuals",
    "deaths": "deaths",
    "official_deaths": "official_deaths",
    "population": "population",
    "census_hh_size": "census_household_size",
    "census_age": "census_age",
}

TABLE_COLUMNS: Dict[str, Tuple[str, ...]] = {
    "households": HOUSEHOLD_COLUMNS,
    "weights": WEIGHT_COLUMNS,
    "individuals": INDIVIDUAL_COLUMNS,
    "deaths": DEATH_COLUMNS,
    "official_deaths": OFFICIAL_DEATH_COLUMNS,
    "population": POPULATION_COLUMNS,
    "census_hh_size": CENSUS_HH_SIZE_COLUMNS,
    "census_age": CENSUS_AGE_COLUMNS,
}

# Tables the analysis can run without (weights may live on the household table).
OPTIONAL_TABLES: Tuple[str, ...] = ("weights",)

# Columns produced by data_prep.frame_builder.build_analysis_frame.
FRAME_COLUMNS: Tuple[str, ...] = (
    "hh_id",
    "person_id",
    "strata",
    "hh_size",
    "weight",
    "age",
    "gender",
    "died",
    "death_date",
    "died_before",
    "died_after",
    "before_years",
    "after_years",
)
