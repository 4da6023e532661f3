# -*- coding: utf-8 -*-
"""
Thermal Efficiency Analyzer Engine

Evaluates heat-exchanger health from inlet/outlet temperature and flow
readings. For each exchanger the engine derives:

    - current efficiency: mean effectiveness of the most recent readings
    - degradation rate: effectiveness change in percent per month over a
      trailing window (negative = degrading)
    - thermodynamic snapshot of the latest reading: actual and maximum
      heat transfer, NTU and effectiveness
    - an alert level and recommended action from the ratio of current to
      design efficiency
    - a predicted maintenance date by linear extrapolation of the
      degradation rate down to the maintenance threshold

Design assumptions:
    - Heat capacity is that of water (4.18 kJ/(kg*K)) for both streams.
    - NTU is approximated as ``-ln(1 - effectiveness)``, which holds for
      a single-pass counter-flow exchanger with a negligible capacity
      ratio. It is capped at ``ntu_max`` once effectiveness reaches
      ``ntu_effectiveness_cap``.
    - Inverted or flat readings (cold inlet at or above hot inlet) have
      no thermal driving force and score an effectiveness of 0.

Degradation methods:
    - ``endpoint`` (default): slope between the first and last reading
      of the window. Sensitive to noise on the boundary readings.
    - ``regression``: least-squares slope over every reading of the
      window (numpy.polyfit).

Example:
    >>> from gmao.reliability_engine.thermal_analyzer import ThermalEfficiencyAnalyzer
    >>> analyzer = ThermalEfficiencyAnalyzer()
    >>> analyzer.classify_alert(50.0, 85.0, 0.0)
    (<AlertLevel.RED: 'red'>, <RecommendedAction.REPLACEMENT: 'replacement'>)
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, List, Optional, Sequence, Tuple

import numpy as np

from gmao.reliability_engine.models import (
    AlertLevel,
    Equipment,
    HeatExchangerEfficiency,
    RecommendedAction,
    ThermalReading,
    ThermodynamicData,
    add_months,
    to_utc,
)

logger = logging.getLogger(__name__)

__all__ = [
    "ThermalEfficiencyAnalyzer",
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _utcnow() -> datetime:
    """Return current UTC datetime with microseconds zeroed."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def _sorted_by_time(readings: Sequence[ThermalReading]) -> List[ThermalReading]:
    return sorted(readings, key=lambda r: r.timestamp)


# ---------------------------------------------------------------------------
# ThermalEfficiencyAnalyzer
# ---------------------------------------------------------------------------


class ThermalEfficiencyAnalyzer:
    """Heat-exchanger effectiveness, degradation and alerting engine.

    Attributes:
        _config: ReliabilityEngineConfig holding thresholds and constants.
        _clock: Callable returning the current UTC datetime, used when a
            method is called without an explicit ``now``.

    Example:
        >>> analyzer = ThermalEfficiencyAnalyzer()
        >>> result = analyzer.evaluate_heat_exchanger(equipment, readings)
        >>> result.alert_level, result.recommended_action
    """

    def __init__(
        self,
        config: Any = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Initialize ThermalEfficiencyAnalyzer.

        Args:
            config: Optional ReliabilityEngineConfig instance. If None,
                the module singleton from get_config() is used.
            clock: Optional time source returning a UTC datetime.
        """
        if config is None:
            from gmao.reliability_engine.config import get_config
            self._config = get_config()
        else:
            self._config = config
        self._clock = clock or _utcnow

    def _now(self, now: Optional[datetime]) -> datetime:
        return to_utc(now) if now is not None else to_utc(self._clock())

    # ------------------------------------------------------------------
    # 1. calculate_effectiveness
    # ------------------------------------------------------------------

    def calculate_effectiveness(self, reading: ThermalReading) -> float:
        """Effectiveness of one reading, in percent.

        effectiveness = max(hot side delta, cold side delta) /
        (hot inlet - cold inlet), clamped to [0, 1] then scaled to percent.

        Returns:
            Effectiveness in [0, 100]. 0.0 when the hot inlet is not
            hotter than the cold inlet.
        """
        max_possible_delta = reading.hot_inlet_temp - reading.cold_inlet_temp
        if max_possible_delta <= 0.0:
            logger.warning(
                "calculate_effectiveness: no driving force in reading %s "
                "(hot inlet %.2f, cold inlet %.2f)",
                reading.id or reading.equipment_id,
                reading.hot_inlet_temp, reading.cold_inlet_temp,
            )
            return 0.0

        hot_side_delta = reading.hot_inlet_temp - reading.hot_outlet_temp
        cold_side_delta = reading.cold_outlet_temp - reading.cold_inlet_temp
        effectiveness = max(hot_side_delta, cold_side_delta) / max_possible_delta
        return min(1.0, max(0.0, effectiveness)) * 100.0

    # ------------------------------------------------------------------
    # 2. Heat transfer
    # ------------------------------------------------------------------

    def calculate_actual_heat_transfer(self, reading: ThermalReading) -> float:
        """Heat released by the hot stream in kW: m_hot * cp * (T_hi - T_ho)."""
        return (
            reading.flow_rate_hot
            * self._config.specific_heat_kj_kg_k
            * (reading.hot_inlet_temp - reading.hot_outlet_temp)
        )

    def calculate_max_heat_transfer(self, reading: ThermalReading) -> float:
        """Heat transfer of an ideal exchanger in kW.

        min(m_hot, m_cold) * cp * (T_hi - T_ci)
        """
        return (
            min(reading.flow_rate_hot, reading.flow_rate_cold)
            * self._config.specific_heat_kj_kg_k
            * (reading.hot_inlet_temp - reading.cold_inlet_temp)
        )

    # ------------------------------------------------------------------
    # 3. calculate_ntu
    # ------------------------------------------------------------------

    def calculate_ntu(self, reading: ThermalReading) -> float:
        """Number of transfer units implied by the reading's effectiveness."""
        effectiveness = self.calculate_effectiveness(reading) / 100.0
        if effectiveness >= self._config.ntu_effectiveness_cap:
            return self._config.ntu_max
        return -math.log(1.0 - effectiveness)

    # ------------------------------------------------------------------
    # 4. calculate_degradation_rate
    # ------------------------------------------------------------------

    def calculate_degradation_rate(
        self,
        readings: Sequence[ThermalReading],
        now: Optional[datetime] = None,
    ) -> float:
        """Effectiveness trend in percent per month over the trailing window.

        Only readings taken within ``degradation_window_months`` before
        ``now`` are used. A month is ``days_per_month`` days.

        Args:
            readings: Reading history of a single exchanger.
            now: Reference time, defaults to the injected clock.

        Returns:
            Rate in %/month, negative when degrading. 0.0 with fewer than
            two readings in the window or when they share a timestamp.
        """
        reference = self._now(now)
        cutoff = add_months(reference, -self._config.degradation_window_months)
        window = [
            r for r in _sorted_by_time(readings)
            if cutoff <= r.timestamp <= reference
        ]
        if len(window) < 2:
            return 0.0

        first = window[0].timestamp
        months = np.array([
            (r.timestamp - first).total_seconds() / 86400.0
            / self._config.days_per_month
            for r in window
        ])
        if months[-1] <= 0.0:
            return 0.0
        efficiencies = np.array([self.calculate_effectiveness(r) for r in window])

        if self._config.degradation_method == "regression":
            slope = float(np.polyfit(months, efficiencies, 1)[0])
        else:
            slope = float((efficiencies[-1] - efficiencies[0]) / months[-1])

        logger.debug(
            "calculate_degradation_rate: method=%s points=%d rate=%.4f%%/month",
            self._config.degradation_method, len(window), slope,
        )
        return slope

    # ------------------------------------------------------------------
    # 5. classify_alert
    # ------------------------------------------------------------------

    def classify_alert(
        self,
        current_efficiency: float,
        design_efficiency: float,
        degradation_rate: float,
    ) -> Tuple[AlertLevel, RecommendedAction]:
        """Map efficiency ratio and degradation rate to an alert.

        Rules are evaluated in order, first match wins:

            ratio < replacement_ratio            -> RED / REPLACEMENT
            ratio < maintenance_ratio            -> ORANGE / MAINTENANCE
            ratio < cleaning_ratio               -> YELLOW / CLEANING
            rate < monitoring_degradation_rate   -> YELLOW / MONITORING
            otherwise                            -> GREEN / NONE

        A non-positive design efficiency gives a ratio of 0.
        """
        cfg = self._config
        ratio = current_efficiency / design_efficiency if design_efficiency > 0 else 0.0

        if ratio < cfg.replacement_ratio:
            return AlertLevel.RED, RecommendedAction.REPLACEMENT
        if ratio < cfg.maintenance_ratio:
            return AlertLevel.ORANGE, RecommendedAction.MAINTENANCE
        if ratio < cfg.cleaning_ratio:
            return AlertLevel.YELLOW, RecommendedAction.CLEANING
        if degradation_rate < cfg.monitoring_degradation_rate:
            return AlertLevel.YELLOW, RecommendedAction.MONITORING
        return AlertLevel.GREEN, RecommendedAction.NONE

    # ------------------------------------------------------------------
    # 6. predict_maintenance_date
    # ------------------------------------------------------------------

    def predict_maintenance_date(
        self,
        current_efficiency: float,
        design_efficiency: float,
        degradation_rate: float,
        now: Optional[datetime] = None,
    ) -> date:
        """Date at which efficiency reaches the maintenance threshold.

        threshold = design_efficiency * maintenance_threshold_ratio.
        Today is returned when the exchanger is not degrading or is
        already at or below the threshold. Otherwise the remaining
        margin divided by the rate gives a month count, rounded up and
        added as calendar months.
        """
        today = self._now(now).date()
        threshold = design_efficiency * self._config.maintenance_threshold_ratio
        if degradation_rate >= 0.0 or current_efficiency <= threshold:
            return today

        months_until = (current_efficiency - threshold) / abs(degradation_rate)
        return add_months(today, math.ceil(months_until))

    # ------------------------------------------------------------------
    # 7. evaluate_heat_exchanger
    # ------------------------------------------------------------------

    def evaluate_heat_exchanger(
        self,
        equipment: Equipment,
        reading_history: Sequence[ThermalReading],
        design_efficiency: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> HeatExchangerEfficiency:
        """Evaluate the health of one heat exchanger.

        Readings belonging to other equipment are ignored. With no
        reading left the exchanger is reported healthy at its design
        efficiency, with maintenance predicted ``default_prediction_days``
        ahead.

        Args:
            equipment: Exchanger to evaluate.
            reading_history: Thermal readings, any order.
            design_efficiency: Design effectiveness in percent, defaults
                to ``default_design_efficiency``.
            now: Reference time, defaults to the injected clock.

        Returns:
            HeatExchangerEfficiency evaluation.
        """
        reference = self._now(now)
        if design_efficiency is None:
            design_efficiency = self._config.default_design_efficiency

        history = _sorted_by_time(
            r for r in reading_history if r.equipment_id == equipment.id
        )

        if not history:
            logger.debug(
                "evaluate_heat_exchanger: no readings for %s, using defaults",
                equipment.id,
            )
            return HeatExchangerEfficiency(
                equipment_id=equipment.id,
                equipment_name=equipment.name,
                current_efficiency=design_efficiency,
                design_efficiency=design_efficiency,
                degradation_rate=0.0,
                predicted_maintenance_date=(
                    reference + timedelta(days=self._config.default_prediction_days)
                ).date(),
                recommended_action=RecommendedAction.NONE,
                alert_level=AlertLevel.GREEN,
                thermodynamic_data=ThermodynamicData(),
                readings_used=0,
                evaluated_at=reference,
            )

        recent = history[-self._config.recent_readings_count:]
        current_efficiency = float(np.mean(
            [self.calculate_effectiveness(r) for r in recent]
        ))
        degradation_rate = self.calculate_degradation_rate(history, now=reference)

        latest = history[-1]
        thermo = ThermodynamicData(
            actual_heat_transfer=self.calculate_actual_heat_transfer(latest),
            max_possible_heat_transfer=self.calculate_max_heat_transfer(latest),
            ntu=self.calculate_ntu(latest),
            effectiveness=self.calculate_effectiveness(latest),
        )

        alert_level, action = self.classify_alert(
            current_efficiency, design_efficiency, degradation_rate,
        )
        predicted = self.predict_maintenance_date(
            current_efficiency, design_efficiency, degradation_rate,
            now=reference,
        )

        logger.debug(
            "evaluate_heat_exchanger: equipment=%s current=%.2f%% design=%.2f%% "
            "rate=%.3f%%/month alert=%s",
            equipment.id, current_efficiency, design_efficiency,
            degradation_rate, alert_level.value,
        )

        return HeatExchangerEfficiency(
            equipment_id=equipment.id,
            equipment_name=equipment.name,
            current_efficiency=current_efficiency,
            design_efficiency=design_efficiency,
            degradation_rate=degradation_rate,
            predicted_maintenance_date=predicted,
            recommended_action=action,
            alert_level=alert_level,
            thermodynamic_data=thermo,
            readings_used=len(recent),
            evaluated_at=reference,
        )

    # ------------------------------------------------------------------
    # 8. evaluate_fleet
    # ------------------------------------------------------------------

    def evaluate_fleet(
        self,
        equipments: Sequence[Equipment],
        readings: Sequence[ThermalReading],
        design_efficiency: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> List[HeatExchangerEfficiency]:
        """Evaluate every heat exchanger of a fleet.

        Other equipment types are skipped. Results keep the order of
        ``equipments``.
        """
        reference = self._now(now)
        return [
            self.evaluate_heat_exchanger(
                equipment, readings,
                design_efficiency=design_efficiency, now=reference,
            )
            for equipment in equipments
            if equipment.is_heat_exchanger
        ]
