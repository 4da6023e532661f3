# -*- coding: utf-8 -*-
"""
Reliability Calculator Engine

Computes the reliability indicators of the maintenance application from
time-stamped event logs: Mean Time Between Failures (MTBF), Mean Time To
Repair (MTTR), availability and intervention counts, for one equipment
unit or averaged across a fleet, over an explicit time window.

Window semantics:
    - A breakdown belongs to a window when its start time lies within
      ``[period_start, period_end]`` (both bounds inclusive).
    - A maintenance task belongs to a window when its scheduled date lies
      within the same bounds.
    - Breakdown downtime (MTBF, availability) is clipped to the window.
      Repair time (MTTR) uses the raw repair interval unless
      ``clip_repair_to_window`` is enabled in the configuration.
    - Unresolved breakdowns (no end time) count as failures but add no
      downtime or repair time.

Fleet aggregation averages every equipment unit with equal weight,
regardless of its operating hours.

The engine holds no mutable state. Every method reads its arguments and
returns a new value; degenerate inputs degrade to documented defaults
instead of raising.

Example:
    >>> from datetime import datetime, timezone
    >>> from gmao.reliability_engine.reliability_calculator import ReliabilityCalculator
    >>> calc = ReliabilityCalculator()
    >>> start = datetime(2025, 1, 1, tzinfo=timezone.utc)
    >>> end = datetime(2025, 1, 31, tzinfo=timezone.utc)
    >>> calc.calculate_mtbf("eq-001", [], start, end)
    720.0
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, List, Optional, Sequence

from gmao.reliability_engine.models import (
    Breakdown,
    ConsistencyCheck,
    Equipment,
    EquipmentMetrics,
    HistoricalDataPoint,
    MaintenanceTask,
    PerformanceMetrics,
    PerformanceStatus,
    TaskStatus,
    TheoreticalMetrics,
    TrendDirection,
    add_months,
    hours_between,
    to_utc,
)

logger = logging.getLogger(__name__)

__all__ = [
    "ReliabilityCalculator",
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _utcnow() -> datetime:
    """Return current UTC datetime with microseconds zeroed."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def _in_window(moment: datetime, period_start: datetime, period_end: datetime) -> bool:
    return period_start <= moment <= period_end


def _clipped_hours(
    start: datetime,
    end: datetime,
    period_start: datetime,
    period_end: datetime,
) -> float:
    """Hours of ``[start, end]`` that overlap the window, never negative."""
    clipped_start = max(start, period_start)
    clipped_end = min(end, period_end)
    return max(0.0, hours_between(clipped_start, clipped_end))


# ---------------------------------------------------------------------------
# ReliabilityCalculator
# ---------------------------------------------------------------------------


class ReliabilityCalculator:
    """MTBF / MTTR / availability engine over breakdown and task logs.

    Attributes:
        _config: ReliabilityEngineConfig holding thresholds.
        _clock: Callable returning the current UTC datetime. Only used by
            ``generate_historical_data`` when no ``now`` is passed.

    Example:
        >>> calc = ReliabilityCalculator()
        >>> calc.calculate_theoretical_availability(356.0, 4.0)
        98.88888888888889
    """

    def __init__(
        self,
        config: Any = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Initialize ReliabilityCalculator.

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

    # ------------------------------------------------------------------
    # Window filters
    # ------------------------------------------------------------------

    @staticmethod
    def _breakdowns_in_window(
        equipment_id: str,
        breakdowns: Sequence[Breakdown],
        period_start: datetime,
        period_end: datetime,
    ) -> List[Breakdown]:
        return [
            b for b in breakdowns
            if b.equipment_id == equipment_id
            and _in_window(b.start_time, period_start, period_end)
        ]

    @staticmethod
    def _tasks_in_window(
        equipment_id: str,
        maintenance_tasks: Sequence[MaintenanceTask],
        period_start: datetime,
        period_end: datetime,
    ) -> List[MaintenanceTask]:
        return [
            t for t in maintenance_tasks
            if t.equipment_id == equipment_id
            and _in_window(t.scheduled_date, period_start, period_end)
        ]

    @staticmethod
    def _breakdown_downtime(
        breakdowns: Sequence[Breakdown],
        period_start: datetime,
        period_end: datetime,
    ) -> float:
        """Sum of window-clipped durations of resolved breakdowns."""
        total = 0.0
        for breakdown in breakdowns:
            if breakdown.end_time is None:
                continue
            total += _clipped_hours(
                breakdown.start_time, breakdown.end_time,
                period_start, period_end,
            )
        return total

    # ------------------------------------------------------------------
    # 1. calculate_mtbf
    # ------------------------------------------------------------------

    def calculate_mtbf(
        self,
        equipment_id: str,
        breakdowns: Sequence[Breakdown],
        period_start: datetime,
        period_end: datetime,
    ) -> float:
        """Compute the Mean Time Between Failures in hours.

        MTBF = (window hours - clipped breakdown downtime) / failure count.
        With no failure in the window the whole window counts as one
        uninterrupted operating interval and its length is returned.
        Unresolved breakdowns count as failures but add no downtime.

        Args:
            equipment_id: Equipment whose breakdowns are considered.
            breakdowns: Breakdown log (any equipment).
            period_start: Window start.
            period_end: Window end.

        Returns:
            MTBF in hours. 0.0 for an empty or inverted window.
        """
        period_start, period_end = to_utc(period_start), to_utc(period_end)
        total_period_hours = hours_between(period_start, period_end)
        if total_period_hours <= 0.0:
            logger.warning(
                "calculate_mtbf: empty window %s..%s for %s",
                period_start.isoformat(), period_end.isoformat(), equipment_id,
            )
            return 0.0

        failures = self._breakdowns_in_window(
            equipment_id, breakdowns, period_start, period_end,
        )
        if not failures:
            return total_period_hours

        downtime = self._breakdown_downtime(failures, period_start, period_end)
        operating_time = total_period_hours - downtime
        mtbf = operating_time / len(failures)

        logger.debug(
            "calculate_mtbf: equipment=%s failures=%d downtime=%.2fh mtbf=%.2fh",
            equipment_id, len(failures), downtime, mtbf,
        )
        return mtbf

    # ------------------------------------------------------------------
    # 2. calculate_mttr
    # ------------------------------------------------------------------

    def calculate_mttr(
        self,
        equipment_id: str,
        breakdowns: Sequence[Breakdown],
        period_start: datetime,
        period_end: datetime,
    ) -> float:
        """Compute the Mean Time To Repair in hours.

        Averages ``end_time - start_time`` over resolved breakdowns that
        started inside the window. The repair interval is not clipped to
        the window unless ``clip_repair_to_window`` is enabled.

        Returns:
            MTTR in hours, 0.0 when no resolved breakdown qualifies.
        """
        period_start, period_end = to_utc(period_start), to_utc(period_end)
        repairs = [
            b for b in self._breakdowns_in_window(
                equipment_id, breakdowns, period_start, period_end,
            )
            if b.end_time is not None
        ]
        if not repairs:
            return 0.0

        if self._config.clip_repair_to_window:
            total_repair_time = self._breakdown_downtime(
                repairs, period_start, period_end,
            )
        else:
            total_repair_time = sum(
                max(0.0, hours_between(b.start_time, b.end_time))
                for b in repairs
            )

        mttr = total_repair_time / len(repairs)
        logger.debug(
            "calculate_mttr: equipment=%s repairs=%d mttr=%.2fh",
            equipment_id, len(repairs), mttr,
        )
        return mttr

    # ------------------------------------------------------------------
    # 3. calculate_availability
    # ------------------------------------------------------------------

    def calculate_availability(
        self,
        equipment_id: str,
        breakdowns: Sequence[Breakdown],
        maintenance_tasks: Sequence[MaintenanceTask],
        period_start: datetime,
        period_end: datetime,
    ) -> float:
        """Compute availability as a percentage of the window.

        Downtime is the clipped duration of resolved breakdowns plus the
        duration of completed maintenance tasks scheduled in the window
        (actual duration when recorded, estimated otherwise). The result
        is floored at 0 when overlapping outages exceed the window.

        Returns:
            Availability in [0, 100]. 0.0 for an empty or inverted window.
        """
        period_start, period_end = to_utc(period_start), to_utc(period_end)
        total_period_hours = hours_between(period_start, period_end)
        if total_period_hours <= 0.0:
            logger.warning(
                "calculate_availability: empty window %s..%s for %s",
                period_start.isoformat(), period_end.isoformat(), equipment_id,
            )
            return 0.0

        breakdown_downtime = self._breakdown_downtime(
            self._breakdowns_in_window(
                equipment_id, breakdowns, period_start, period_end,
            ),
            period_start,
            period_end,
        )

        completed = [
            t for t in self._tasks_in_window(
                equipment_id, maintenance_tasks, period_start, period_end,
            )
            if t.status == TaskStatus.COMPLETED and t.completed_date is not None
        ]
        maintenance_downtime = sum(t.downtime_hours for t in completed)

        uptime = total_period_hours - breakdown_downtime - maintenance_downtime
        availability = max(0.0, uptime / total_period_hours * 100.0)

        logger.debug(
            "calculate_availability: equipment=%s breakdown=%.2fh "
            "maintenance=%.2fh availability=%.2f%%",
            equipment_id, breakdown_downtime, maintenance_downtime, availability,
        )
        return availability

    # ------------------------------------------------------------------
    # 4. calculate_intervention_count
    # ------------------------------------------------------------------

    def calculate_intervention_count(
        self,
        equipment_id: str,
        breakdowns: Sequence[Breakdown],
        maintenance_tasks: Sequence[MaintenanceTask],
        period_start: datetime,
        period_end: datetime,
    ) -> int:
        """Count breakdowns plus maintenance tasks (any status) in the window."""
        period_start, period_end = to_utc(period_start), to_utc(period_end)
        failures = self._breakdowns_in_window(
            equipment_id, breakdowns, period_start, period_end,
        )
        tasks = self._tasks_in_window(
            equipment_id, maintenance_tasks, period_start, period_end,
        )
        return len(failures) + len(tasks)

    # ------------------------------------------------------------------
    # 5. Theoretical availability identity
    # ------------------------------------------------------------------

    @staticmethod
    def calculate_theoretical_availability(mtbf: float, mttr: float) -> float:
        """Availability implied by MTBF and MTTR: MTBF / (MTBF + MTTR) * 100.

        Returns:
            Percent availability, 0.0 if either input is not positive.
        """
        if mtbf <= 0.0 or mttr <= 0.0:
            return 0.0
        return mtbf / (mtbf + mttr) * 100.0

    @staticmethod
    def calculate_theoretical_mtbf(availability: float, mttr: float) -> float:
        """MTBF implied by an availability target and an MTTR.

        Solves ``A = MTBF / (MTBF + MTTR)`` for MTBF.

        Returns:
            MTBF in hours, 0.0 unless ``0 < availability < 100`` and
            ``mttr > 0``.
        """
        if availability <= 0.0 or availability >= 100.0 or mttr <= 0.0:
            return 0.0
        return availability * mttr / (100.0 - availability)

    @staticmethod
    def calculate_theoretical_mttr(availability: float, mtbf: float) -> float:
        """MTTR implied by an availability target and an MTBF.

        Returns:
            MTTR in hours, 0.0 unless ``0 < availability < 100`` and
            ``mtbf > 0``.
        """
        if availability <= 0.0 or availability >= 100.0 or mtbf <= 0.0:
            return 0.0
        return mtbf * (100.0 - availability) / availability

    # ------------------------------------------------------------------
    # 6. calculate_theoretical_equipment_metrics
    # ------------------------------------------------------------------

    def calculate_theoretical_equipment_metrics(
        self,
        equipment_id: str,
        breakdowns: Sequence[Breakdown],
        maintenance_tasks: Sequence[MaintenanceTask],
        period_start: datetime,
        period_end: datetime,
    ) -> TheoreticalMetrics:
        """Cross-check observed availability against MTBF/(MTBF+MTTR).

        A deviation above ``consistency_tolerance_pct`` percentage points
        points at data-quality problems (unresolved breakdowns skewing
        MTBF, maintenance downtime not reflected in MTTR) or a real model
        mismatch.
        """
        observed_mtbf = self.calculate_mtbf(
            equipment_id, breakdowns, period_start, period_end,
        )
        observed_mttr = self.calculate_mttr(
            equipment_id, breakdowns, period_start, period_end,
        )
        observed_availability = self.calculate_availability(
            equipment_id, breakdowns, maintenance_tasks,
            period_start, period_end,
        )
        theoretical_availability = self.calculate_theoretical_availability(
            observed_mtbf, observed_mttr,
        )
        deviation = abs(observed_availability - theoretical_availability)
        is_consistent = deviation <= self._config.consistency_tolerance_pct

        if not is_consistent:
            logger.info(
                "Availability mismatch for %s: observed=%.2f%% "
                "theoretical=%.2f%% deviation=%.2fpp",
                equipment_id, observed_availability,
                theoretical_availability, deviation,
            )

        return TheoreticalMetrics(
            observed_mtbf=observed_mtbf,
            observed_mttr=observed_mttr,
            observed_availability=observed_availability,
            theoretical_availability=theoretical_availability,
            consistency_check=ConsistencyCheck(
                is_consistent=is_consistent,
                deviation=deviation,
            ),
        )

    # ------------------------------------------------------------------
    # 7. calculate_equipment_metrics
    # ------------------------------------------------------------------

    def calculate_equipment_metrics(
        self,
        equipment: Equipment,
        breakdowns: Sequence[Breakdown],
        maintenance_tasks: Sequence[MaintenanceTask],
        period_start: datetime,
        period_end: datetime,
    ) -> EquipmentMetrics:
        """Bundle MTBF, MTTR, availability and interventions for one unit."""
        period_start, period_end = to_utc(period_start), to_utc(period_end)
        return EquipmentMetrics(
            equipment_id=equipment.id,
            equipment_name=equipment.name,
            mtbf=self.calculate_mtbf(
                equipment.id, breakdowns, period_start, period_end,
            ),
            mttr=self.calculate_mttr(
                equipment.id, breakdowns, period_start, period_end,
            ),
            availability=self.calculate_availability(
                equipment.id, breakdowns, maintenance_tasks,
                period_start, period_end,
            ),
            intervention_count=self.calculate_intervention_count(
                equipment.id, breakdowns, maintenance_tasks,
                period_start, period_end,
            ),
            period=f"{period_start:%Y-%m-%d} - {period_end:%Y-%m-%d}",
        )

    # ------------------------------------------------------------------
    # 8. calculate_global_metrics
    # ------------------------------------------------------------------

    def calculate_global_metrics(
        self,
        equipments: Sequence[Equipment],
        breakdowns: Sequence[Breakdown],
        maintenance_tasks: Sequence[MaintenanceTask],
        period_start: datetime,
        period_end: datetime,
    ) -> PerformanceMetrics:
        """Fleet indicators: unweighted mean of per-equipment MTBF, MTTR
        and availability; interventions are summed.

        Every unit counts equally regardless of its operating hours.
        An empty fleet yields all-zero metrics.
        """
        per_equipment = [
            self.calculate_equipment_metrics(
                equipment, breakdowns, maintenance_tasks,
                period_start, period_end,
            )
            for equipment in equipments
        ]
        total_interventions = sum(m.intervention_count for m in per_equipment)

        count = len(per_equipment)
        if count == 0:
            return PerformanceMetrics(
                mtbf=0.0, mttr=0.0, availability=0.0,
                intervention_count=0,
            )

        return PerformanceMetrics(
            mtbf=sum(m.mtbf for m in per_equipment) / count,
            mttr=sum(m.mttr for m in per_equipment) / count,
            availability=sum(m.availability for m in per_equipment) / count,
            intervention_count=total_interventions,
        )

    # ------------------------------------------------------------------
    # 9. generate_historical_data
    # ------------------------------------------------------------------

    def generate_historical_data(
        self,
        equipments: Sequence[Equipment],
        breakdowns: Sequence[Breakdown],
        maintenance_tasks: Sequence[MaintenanceTask],
        months_back: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[HistoricalDataPoint]:
        """Produce one fleet snapshot per calendar month, oldest first.

        The series ends with the month containing ``now``. Each month's
        window runs from the first day to the last day of the month, both
        at midnight UTC. Values are rounded to one decimal.

        Args:
            equipments: Fleet to aggregate.
            breakdowns: Breakdown log.
            maintenance_tasks: Maintenance task log.
            months_back: Number of months, defaults to
                ``history_months_back`` from config.
            now: Reference time, defaults to the injected clock.

        Returns:
            ``months_back`` HistoricalDataPoint entries, oldest first.
        """
        if months_back is None:
            months_back = self._config.history_months_back
        reference = to_utc(now) if now is not None else to_utc(self._clock())
        first_of_current = reference.replace(
            day=1, hour=0, minute=0, second=0, microsecond=0,
        )

        data: List[HistoricalDataPoint] = []
        for offset in range(months_back - 1, -1, -1):
            period_start = add_months(first_of_current, -offset)
            period_end = add_months(period_start, 1) - timedelta(days=1)

            metrics = self.calculate_global_metrics(
                equipments, breakdowns, maintenance_tasks,
                period_start, period_end,
            )
            data.append(HistoricalDataPoint(
                month=f"{period_start:%b %Y}",
                period_start=period_start,
                period_end=period_end,
                mtbf=round(metrics.mtbf, 1),
                mttr=round(metrics.mttr, 1),
                availability=round(metrics.availability, 1),
                interventions=metrics.intervention_count,
            ))

        logger.debug(
            "generate_historical_data: %d months ending %s",
            len(data), f"{first_of_current:%Y-%m}",
        )
        return data

    # ------------------------------------------------------------------
    # 10. get_performance_status
    # ------------------------------------------------------------------

    def get_performance_status(self, availability: float) -> PerformanceStatus:
        """Classify availability on the excellent/good/warning/critical ladder."""
        if availability >= self._config.availability_excellent_pct:
            return PerformanceStatus.EXCELLENT
        if availability >= self._config.availability_good_pct:
            return PerformanceStatus.GOOD
        if availability >= self._config.availability_warning_pct:
            return PerformanceStatus.WARNING
        return PerformanceStatus.CRITICAL

    # ------------------------------------------------------------------
    # 11. calculate_trend
    # ------------------------------------------------------------------

    def calculate_trend(
        self,
        current_value: float,
        previous_value: float,
    ) -> TrendDirection:
        """Direction of the relative change from previous to current.

        A relative change below ``trend_stable_threshold`` (5% by default)
        is stable. A zero previous value has no defined relative change
        and yields ``TrendDirection.NONE``.
        """
        if previous_value == 0:
            return TrendDirection.NONE
        change = (current_value - previous_value) / previous_value
        if abs(change) < self._config.trend_stable_threshold:
            return TrendDirection.STABLE
        return TrendDirection.UP if change > 0 else TrendDirection.DOWN
