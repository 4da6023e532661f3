# -*- coding: utf-8 -*-
"""Tests for ReliabilityEngineConfig: defaults, environment loading, validation."""

import pytest

from gmao.exceptions import ConfigurationError
from gmao.reliability_engine.config import (
    ReliabilityEngineConfig,
    get_config,
    reset_config,
    set_config,
)


class TestDefaults:
    """Default values."""

    def test_thermal_defaults(self):
        config = ReliabilityEngineConfig()
        assert config.specific_heat_kj_kg_k == 4.18
        assert config.default_design_efficiency == 85.0
        assert config.recent_readings_count == 10
        assert config.degradation_window_months == 3
        assert config.degradation_method == "endpoint"

    def test_alert_defaults(self):
        config = ReliabilityEngineConfig()
        assert (config.replacement_ratio, config.maintenance_ratio, config.cleaning_ratio) == (
            0.60, 0.75, 0.85,
        )
        assert config.monitoring_degradation_rate == -2.0
        assert config.default_prediction_days == 90

    def test_reliability_defaults(self):
        config = ReliabilityEngineConfig()
        assert config.consistency_tolerance_pct == 5.0
        assert config.trend_stable_threshold == 0.05
        assert config.history_months_back == 12
        assert config.clip_repair_to_window is False
        assert config.due_soon_days == 3
        assert config.upcoming_days == 7

    def test_to_dict(self):
        data = ReliabilityEngineConfig().to_dict()
        assert data["log_level"] == "INFO"
        assert data["enable_provenance"] is True
        assert data["genesis_hash"] == "gmao-reliability-engine-genesis"
        assert len(data) == 27


class TestFromEnv:
    """Environment variable overrides."""

    def test_no_env_gives_defaults(self):
        assert ReliabilityEngineConfig.from_env() == ReliabilityEngineConfig()

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("GMAO_RE_DEFAULT_DESIGN_EFFICIENCY", "80")
        monkeypatch.setenv("GMAO_RE_RECENT_READINGS_COUNT", "5")
        monkeypatch.setenv("GMAO_RE_DEGRADATION_METHOD", "regression")
        monkeypatch.setenv("GMAO_RE_CLIP_REPAIR_TO_WINDOW", "yes")
        monkeypatch.setenv("GMAO_RE_ENABLE_METRICS", "false")
        monkeypatch.setenv("GMAO_RE_LOG_LEVEL", "debug")

        config = ReliabilityEngineConfig.from_env()
        assert config.default_design_efficiency == 80.0
        assert config.recent_readings_count == 5
        assert config.degradation_method == "regression"
        assert config.clip_repair_to_window is True
        assert config.enable_metrics is False
        assert config.log_level == "debug"

    def test_unparseable_number_falls_back(self, monkeypatch):
        monkeypatch.setenv("GMAO_RE_NTU_MAX", "lots")
        monkeypatch.setenv("GMAO_RE_HISTORY_MONTHS_BACK", "6.5")
        config = ReliabilityEngineConfig.from_env()
        assert config.ntu_max == 10.0
        assert config.history_months_back == 12

    def test_invalid_value_raises(self, monkeypatch):
        monkeypatch.setenv("GMAO_RE_DEGRADATION_METHOD", "spline")
        with pytest.raises(ConfigurationError):
            ReliabilityEngineConfig.from_env()


class TestValidation:
    """__post_init__ constraints."""

    @pytest.mark.parametrize("overrides", [
        {"specific_heat_kj_kg_k": 0.0},
        {"ntu_effectiveness_cap": 1.0},
        {"default_design_efficiency": 0.0},
        {"default_design_efficiency": 101.0},
        {"recent_readings_count": 0},
        {"degradation_window_months": 0},
        {"degradation_method": "spline"},
        {"days_per_month": 0.0},
        {"replacement_ratio": 0.80},
        {"maintenance_ratio": 0.90},
        {"cleaning_ratio": 1.1},
        {"monitoring_degradation_rate": 0.5},
        {"maintenance_threshold_ratio": 0.0},
        {"availability_good_pct": 96.0},
        {"history_months_back": 0},
        {"due_soon_days": 10},
        {"log_level": "VERBOSE"},
        {"genesis_hash": ""},
    ])
    def test_rejects(self, overrides):
        with pytest.raises(ConfigurationError):
            ReliabilityEngineConfig(**overrides)

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            ReliabilityEngineConfig(ntu_max=-1.0)

    def test_collects_every_error(self):
        with pytest.raises(ConfigurationError) as exc_info:
            ReliabilityEngineConfig(ntu_max=-1.0, history_months_back=0)
        errors = exc_info.value.context["errors"]
        assert len(errors) == 2
        assert exc_info.value.error_code == "GMAO_CONFIG_CONFIGURATION_ERROR"

    def test_lowercase_log_level_accepted(self):
        assert ReliabilityEngineConfig(log_level="warning").log_level == "warning"


class TestSingleton:
    """get_config / set_config / reset_config."""

    def test_cached(self):
        assert get_config() is get_config()

    def test_reads_env(self, monkeypatch):
        monkeypatch.setenv("GMAO_RE_UPCOMING_DAYS", "14")
        assert get_config().upcoming_days == 14

    def test_set_and_reset(self):
        custom = ReliabilityEngineConfig(history_months_back=6)
        set_config(custom)
        assert get_config() is custom
        reset_config()
        assert get_config() is not custom
        assert get_config().history_months_back == 12
