# -*- coding: utf-8 -*-
"""
Reliability Engine Configuration

Centralized configuration for the reliability and thermal-efficiency
calculation engine covering:
- Logging level
- Thermal constants (specific heat, NTU clamp)
- Heat-exchanger evaluation parameters (design efficiency, reading window,
  degradation window and method)
- Alert classification ratios and maintenance threshold
- Availability performance ladder and trend threshold
- Theoretical availability consistency tolerance
- Historical trend depth
- Maintenance due-date windows
- Provenance and metrics toggles

All settings can be overridden via environment variables with the
``GMAO_RE_`` prefix (e.g. ``GMAO_RE_DEFAULT_DESIGN_EFFICIENCY``).

Example:
    >>> from gmao.reliability_engine.config import get_config
    >>> cfg = get_config()
    >>> print(cfg.default_design_efficiency, cfg.degradation_method)
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional

from gmao.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Environment variable prefix
# ---------------------------------------------------------------------------

_ENV_PREFIX = "GMAO_RE_"

#: Supported degradation slope estimators.
DEGRADATION_METHODS = ("endpoint", "regression")


# ---------------------------------------------------------------------------
# ReliabilityEngineConfig
# ---------------------------------------------------------------------------


@dataclass
class ReliabilityEngineConfig:
    """Complete configuration for the reliability engine.

    Attributes:
        log_level: Logging level applied to the ``gmao`` logger hierarchy
            by the service facade.
        specific_heat_kj_kg_k: Specific heat used for every heat-transfer
            computation, in kJ/(kg*K). Water is assumed for both streams.
        default_design_efficiency: Design effectiveness (percent) used when
            the caller does not supply one.
        recent_readings_count: Number of most recent readings averaged into
            the current efficiency of a heat exchanger.
        degradation_window_months: Trailing window, in months, of readings
            considered by the degradation-rate estimator.
        degradation_method: ``endpoint`` (slope between first and last
            reading in the window) or ``regression`` (least-squares slope).
        days_per_month: Length of a month in days when converting elapsed
            time into months.
        ntu_effectiveness_cap: Effectiveness (fraction) at or above which
            NTU is clamped to ``ntu_max``.
        ntu_max: NTU value returned for near-unity effectiveness.
        consistency_tolerance_pct: Maximum deviation, in percentage points,
            between observed and theoretical availability for the two to be
            reported as consistent.
        trend_stable_threshold: Relative change below which a trend is
            reported as stable.
        availability_excellent_pct: Availability at or above which
            performance is excellent.
        availability_good_pct: Availability at or above which performance
            is good.
        availability_warning_pct: Availability at or above which
            performance is warning; anything lower is critical.
        replacement_ratio: Efficiency ratio below which replacement is
            recommended (red).
        maintenance_ratio: Efficiency ratio below which maintenance is
            recommended (orange).
        cleaning_ratio: Efficiency ratio below which cleaning is
            recommended (yellow).
        monitoring_degradation_rate: Degradation rate (percent per month)
            below which a healthy exchanger is put under monitoring.
        maintenance_threshold_ratio: Fraction of design efficiency at which
            maintenance becomes due for date prediction.
        default_prediction_days: Days ahead of now used as the predicted
            maintenance date when no readings exist.
        history_months_back: Default number of monthly snapshots produced
            for trend charts.
        clip_repair_to_window: When True, MTTR clips repair intervals to the
            calculation window like MTBF does. Off by default.
        due_soon_days: Days-until-due at or below which a scheduled task is
            reported as due soon.
        upcoming_days: Days-until-due at or below which a scheduled task is
            reported as upcoming.
        enable_provenance: Whether the service records SHA-256 provenance.
        enable_metrics: Whether the service emits Prometheus metrics.
        genesis_hash: Seed string for the provenance chain.
    """

    # -- Logging -------------------------------------------------------------
    log_level: str = "INFO"

    # -- Thermal constants ---------------------------------------------------
    specific_heat_kj_kg_k: float = 4.18
    ntu_effectiveness_cap: float = 0.99
    ntu_max: float = 10.0

    # -- Heat-exchanger evaluation -------------------------------------------
    default_design_efficiency: float = 85.0
    recent_readings_count: int = 10
    degradation_window_months: int = 3
    degradation_method: str = "endpoint"
    days_per_month: float = 30.0

    # -- Alert classification ------------------------------------------------
    replacement_ratio: float = 0.60
    maintenance_ratio: float = 0.75
    cleaning_ratio: float = 0.85
    monitoring_degradation_rate: float = -2.0
    maintenance_threshold_ratio: float = 0.75
    default_prediction_days: int = 90

    # -- Reliability ---------------------------------------------------------
    consistency_tolerance_pct: float = 5.0
    trend_stable_threshold: float = 0.05
    availability_excellent_pct: float = 95.0
    availability_good_pct: float = 90.0
    availability_warning_pct: float = 80.0
    history_months_back: int = 12
    clip_repair_to_window: bool = False

    # -- Maintenance scheduling ----------------------------------------------
    due_soon_days: int = 3
    upcoming_days: int = 7

    # -- Provenance / metrics ------------------------------------------------
    enable_provenance: bool = True
    enable_metrics: bool = True

    # -- Genesis hash --------------------------------------------------------
    genesis_hash: str = "gmao-reliability-engine-genesis"

    # ------------------------------------------------------------------
    # Factory helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls) -> ReliabilityEngineConfig:
        """Build a ReliabilityEngineConfig from environment variables.

        Every field can be overridden via ``GMAO_RE_<FIELD_UPPER>``.
        Boolean values accept ``true/1/yes`` (case-insensitive).
        Unparseable numbers fall back to the default with a warning.

        Returns:
            Populated ReliabilityEngineConfig instance.
        """
        prefix = _ENV_PREFIX

        def _env(name: str, default: Any = None) -> Optional[str]:
            return os.environ.get(f"{prefix}{name}", default)

        def _bool(name: str, default: bool) -> bool:
            val = _env(name)
            if val is None:
                return default
            return val.lower() in ("true", "1", "yes")

        def _int(name: str, default: int) -> int:
            val = _env(name)
            if val is None:
                return default
            try:
                return int(val)
            except ValueError:
                logger.warning(
                    "Invalid integer for %s%s=%s, using default %d",
                    prefix, name, val, default,
                )
                return default

        def _float(name: str, default: float) -> float:
            val = _env(name)
            if val is None:
                return default
            try:
                return float(val)
            except ValueError:
                logger.warning(
                    "Invalid float for %s%s=%s, using default %f",
                    prefix, name, val, default,
                )
                return default

        def _str(name: str, default: str) -> str:
            val = _env(name)
            if val is None:
                return default
            return val

        config = cls(
            # Logging
            log_level=_str("LOG_LEVEL", cls.log_level),
            # Thermal constants
            specific_heat_kj_kg_k=_float(
                "SPECIFIC_HEAT_KJ_KG_K", cls.specific_heat_kj_kg_k,
            ),
            ntu_effectiveness_cap=_float(
                "NTU_EFFECTIVENESS_CAP", cls.ntu_effectiveness_cap,
            ),
            ntu_max=_float("NTU_MAX", cls.ntu_max),
            # Heat-exchanger evaluation
            default_design_efficiency=_float(
                "DEFAULT_DESIGN_EFFICIENCY", cls.default_design_efficiency,
            ),
            recent_readings_count=_int(
                "RECENT_READINGS_COUNT", cls.recent_readings_count,
            ),
            degradation_window_months=_int(
                "DEGRADATION_WINDOW_MONTHS", cls.degradation_window_months,
            ),
            degradation_method=_str(
                "DEGRADATION_METHOD", cls.degradation_method,
            ),
            days_per_month=_float("DAYS_PER_MONTH", cls.days_per_month),
            # Alert classification
            replacement_ratio=_float(
                "REPLACEMENT_RATIO", cls.replacement_ratio,
            ),
            maintenance_ratio=_float(
                "MAINTENANCE_RATIO", cls.maintenance_ratio,
            ),
            cleaning_ratio=_float("CLEANING_RATIO", cls.cleaning_ratio),
            monitoring_degradation_rate=_float(
                "MONITORING_DEGRADATION_RATE",
                cls.monitoring_degradation_rate,
            ),
            maintenance_threshold_ratio=_float(
                "MAINTENANCE_THRESHOLD_RATIO",
                cls.maintenance_threshold_ratio,
            ),
            default_prediction_days=_int(
                "DEFAULT_PREDICTION_DAYS", cls.default_prediction_days,
            ),
            # Reliability
            consistency_tolerance_pct=_float(
                "CONSISTENCY_TOLERANCE_PCT", cls.consistency_tolerance_pct,
            ),
            trend_stable_threshold=_float(
                "TREND_STABLE_THRESHOLD", cls.trend_stable_threshold,
            ),
            availability_excellent_pct=_float(
                "AVAILABILITY_EXCELLENT_PCT",
                cls.availability_excellent_pct,
            ),
            availability_good_pct=_float(
                "AVAILABILITY_GOOD_PCT", cls.availability_good_pct,
            ),
            availability_warning_pct=_float(
                "AVAILABILITY_WARNING_PCT", cls.availability_warning_pct,
            ),
            history_months_back=_int(
                "HISTORY_MONTHS_BACK", cls.history_months_back,
            ),
            clip_repair_to_window=_bool(
                "CLIP_REPAIR_TO_WINDOW", cls.clip_repair_to_window,
            ),
            # Maintenance scheduling
            due_soon_days=_int("DUE_SOON_DAYS", cls.due_soon_days),
            upcoming_days=_int("UPCOMING_DAYS", cls.upcoming_days),
            # Provenance / metrics
            enable_provenance=_bool(
                "ENABLE_PROVENANCE", cls.enable_provenance,
            ),
            enable_metrics=_bool("ENABLE_METRICS", cls.enable_metrics),
            # Genesis hash
            genesis_hash=_str("GENESIS_HASH", cls.genesis_hash),
        )

        logger.info(
            "ReliabilityEngineConfig loaded: cp=%.3f kJ/kg.K, "
            "design_eff=%.1f%%, readings=%d, "
            "degradation=%s/%dmo, "
            "alert_ratios=[%.2f/%.2f/%.2f], "
            "history=%dmo, clip_repair=%s, "
            "provenance=%s, metrics=%s",
            config.specific_heat_kj_kg_k,
            config.default_design_efficiency,
            config.recent_readings_count,
            config.degradation_method,
            config.degradation_window_months,
            config.replacement_ratio,
            config.maintenance_ratio,
            config.cleaning_ratio,
            config.history_months_back,
            config.clip_repair_to_window,
            config.enable_provenance,
            config.enable_metrics,
        )
        return config

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def __post_init__(self) -> None:
        """Validate all configuration constraints after initialization.

        Raises:
            ConfigurationError: If any constraint is violated. It is a
                ValueError subclass.
        """
        errors: list[str] = []

        # Thermal constants
        if self.specific_heat_kj_kg_k <= 0.0:
            errors.append("specific_heat_kj_kg_k must be > 0.0")
        if not 0.0 < self.ntu_effectiveness_cap < 1.0:
            errors.append("ntu_effectiveness_cap must be in (0.0, 1.0)")
        if self.ntu_max <= 0.0:
            errors.append("ntu_max must be > 0.0")

        # Heat-exchanger evaluation
        if not 0.0 < self.default_design_efficiency <= 100.0:
            errors.append("default_design_efficiency must be in (0.0, 100.0]")
        if self.recent_readings_count < 1:
            errors.append("recent_readings_count must be >= 1")
        if self.degradation_window_months < 1:
            errors.append("degradation_window_months must be >= 1")
        if self.degradation_method not in DEGRADATION_METHODS:
            errors.append(
                f"degradation_method must be one of {DEGRADATION_METHODS}, "
                f"got '{self.degradation_method}'"
            )
        if self.days_per_month <= 0.0:
            errors.append("days_per_month must be > 0.0")

        # Alert classification (ratios strictly ascending)
        if self.replacement_ratio <= 0.0:
            errors.append("replacement_ratio must be > 0.0")
        if self.replacement_ratio >= self.maintenance_ratio:
            errors.append("replacement_ratio must be < maintenance_ratio")
        if self.maintenance_ratio >= self.cleaning_ratio:
            errors.append("maintenance_ratio must be < cleaning_ratio")
        if self.cleaning_ratio > 1.0:
            errors.append("cleaning_ratio must be <= 1.0")
        if self.monitoring_degradation_rate >= 0.0:
            errors.append("monitoring_degradation_rate must be < 0.0")
        if not 0.0 < self.maintenance_threshold_ratio <= 1.0:
            errors.append("maintenance_threshold_ratio must be in (0.0, 1.0]")
        if self.default_prediction_days < 0:
            errors.append("default_prediction_days must be >= 0")

        # Reliability
        if self.consistency_tolerance_pct < 0.0:
            errors.append("consistency_tolerance_pct must be >= 0.0")
        if self.trend_stable_threshold < 0.0:
            errors.append("trend_stable_threshold must be >= 0.0")
        if not (
            self.availability_warning_pct
            < self.availability_good_pct
            < self.availability_excellent_pct
            <= 100.0
        ):
            errors.append(
                "availability thresholds must satisfy "
                "warning < good < excellent <= 100"
            )
        if self.history_months_back < 1:
            errors.append("history_months_back must be >= 1")

        # Maintenance scheduling
        if self.due_soon_days < 0:
            errors.append("due_soon_days must be >= 0")
        if self.due_soon_days > self.upcoming_days:
            errors.append("due_soon_days must be <= upcoming_days")

        # Log level
        valid_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        if self.log_level.upper() not in valid_levels:
            errors.append(
                f"log_level must be one of {valid_levels}, "
                f"got '{self.log_level}'"
            )

        # Genesis hash
        if not self.genesis_hash:
            errors.append("genesis_hash must not be empty")

        if errors:
            msg = "; ".join(errors)
            logger.error(
                "ReliabilityEngineConfig validation failed: %s", msg,
            )
            raise ConfigurationError(
                f"ReliabilityEngineConfig validation failed: {msg}",
                context={"errors": errors},
            )

        logger.debug("ReliabilityEngineConfig validated successfully")

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the configuration to a plain dictionary."""
        return {
            "log_level": self.log_level,
            "specific_heat_kj_kg_k": self.specific_heat_kj_kg_k,
            "ntu_effectiveness_cap": self.ntu_effectiveness_cap,
            "ntu_max": self.ntu_max,
            "default_design_efficiency": self.default_design_efficiency,
            "recent_readings_count": self.recent_readings_count,
            "degradation_window_months": self.degradation_window_months,
            "degradation_method": self.degradation_method,
            "days_per_month": self.days_per_month,
            "replacement_ratio": self.replacement_ratio,
            "maintenance_ratio": self.maintenance_ratio,
            "cleaning_ratio": self.cleaning_ratio,
            "monitoring_degradation_rate": self.monitoring_degradation_rate,
            "maintenance_threshold_ratio": self.maintenance_threshold_ratio,
            "default_prediction_days": self.default_prediction_days,
            "consistency_tolerance_pct": self.consistency_tolerance_pct,
            "trend_stable_threshold": self.trend_stable_threshold,
            "availability_excellent_pct": self.availability_excellent_pct,
            "availability_good_pct": self.availability_good_pct,
            "availability_warning_pct": self.availability_warning_pct,
            "history_months_back": self.history_months_back,
            "clip_repair_to_window": self.clip_repair_to_window,
            "due_soon_days": self.due_soon_days,
            "upcoming_days": self.upcoming_days,
            "enable_provenance": self.enable_provenance,
            "enable_metrics": self.enable_metrics,
            "genesis_hash": self.genesis_hash,
        }


# ---------------------------------------------------------------------------
# Thread-safe singleton accessor
# ---------------------------------------------------------------------------

_config_instance: Optional[ReliabilityEngineConfig] = None
_config_lock = threading.Lock()


def get_config() -> ReliabilityEngineConfig:
    """Return the singleton ReliabilityEngineConfig, creating from env if needed.

    Uses double-checked locking for thread safety with minimal
    contention on the hot path.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = ReliabilityEngineConfig.from_env()
    return _config_instance


def set_config(config: ReliabilityEngineConfig) -> None:
    """Replace the singleton ReliabilityEngineConfig (useful for testing).

    Args:
        config: New configuration to install.
    """
    global _config_instance
    with _config_lock:
        _config_instance = config
    logger.info("ReliabilityEngineConfig replaced programmatically")


def reset_config() -> None:
    """Reset the singleton (primarily for test teardown)."""
    global _config_instance
    with _config_lock:
        _config_instance = None


__all__ = [
    "DEGRADATION_METHODS",
    "ReliabilityEngineConfig",
    "get_config",
    "set_config",
    "reset_config",
]
