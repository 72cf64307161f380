"""
Tests for configuration and settings loading
"""

import json

import pandas as pd
import pytest
from pydantic import ValidationError

from core.config import AnalysisConfig
from core.settings import AnalysisSettings, load_settings


def test_default_windows():
    cfg = AnalysisConfig()
    assert cfg.window_end_exclusive == pd.Timestamp("2018-01-01")
    assert cfg.pre_event_years == pytest.approx(262 / 365)
    assert cfg.post_event_years == pytest.approx(103 / 365)


def test_settings_defaults_match_config():
    assert AnalysisSettings().to_config() == AnalysisConfig()


def test_settings_reject_event_outside_window():
    with pytest.raises(ValidationError):
        AnalysisSettings(event_date="2018-02-01")


def test_settings_reference_policy_needs_rate():
    with pytest.raises(ValidationError):
        AnalysisSettings(single_household_policy="reference")
    cfg = AnalysisSettings(single_household_policy="reference", reference_rate_single=21.0).to_config()
    assert cfg.reference_rate_single == 21.0


def test_settings_reject_unknown_keys():
    with pytest.raises(ValidationError):
        AnalysisSettings(not_a_setting=1)


def test_load_settings_file_and_overrides(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"population": 1000000, "n_bootstrap": 50}))

    cfg = load_settings(str(path), n_bootstrap=200, seed=None)

    assert cfg.population == 1000000
    assert cfg.n_bootstrap == 200
    assert cfg.seed == AnalysisConfig().seed
    assert isinstance(cfg.event_date, pd.Timestamp)
