# -*- coding: utf-8 -*-
"""
Reliability Engine Service Setup

Provides ``ReliabilityEngineService``, the facade that wires a
maintenance data repository to the three calculation engines
(ReliabilityCalculator, ThermalEfficiencyAnalyzer, MaintenanceScheduler)
and adds the operational concerns the engines leave out: equipment
lookup errors, provenance recording, Prometheus metrics and logging.

Example:
    >>> from gmao.reliability_engine.repository import FileMaintenanceRepository
    >>> from gmao.reliability_engine.setup import ReliabilityEngineService
    >>> service = ReliabilityEngineService(FileMaintenanceRepository("snapshot.json"))
    >>> service.fleet_metrics(start, end).availability
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional

from gmao.exceptions import EquipmentNotFoundError
from gmao.reliability_engine import metrics
from gmao.reliability_engine.config import ReliabilityEngineConfig, get_config
from gmao.reliability_engine.maintenance_scheduler import MaintenanceScheduler
from gmao.reliability_engine.models import (
    Equipment,
    EquipmentMetrics,
    HeatExchangerEfficiency,
    HistoricalDataPoint,
    MaintenanceDueAlert,
    MaintenanceTask,
    PerformanceMetrics,
    TheoreticalMetrics,
    to_utc,
)
from gmao.reliability_engine.provenance import ProvenanceTracker
from gmao.reliability_engine.reliability_calculator import ReliabilityCalculator
from gmao.reliability_engine.repository import MaintenanceDataRepository
from gmao.reliability_engine.thermal_analyzer import ThermalEfficiencyAnalyzer

logger = logging.getLogger(__name__)

__all__ = [
    "ReliabilityEngineService",
]


def _utcnow() -> datetime:
    """Return current UTC datetime with microseconds zeroed."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def _window(period_start: datetime, period_end: datetime) -> Dict[str, str]:
    return {
        "period_start": to_utc(period_start).isoformat(),
        "period_end": to_utc(period_end).isoformat(),
    }


class ReliabilityEngineService:
    """Facade over the reliability, thermal and scheduling engines.

    Attributes:
        repository: Source of equipment, breakdown, task and reading records.
        config: ReliabilityEngineConfig in effect.
        provenance: ProvenanceTracker receiving one entry per operation.
        _reliability: ReliabilityCalculator instance.
        _thermal: ThermalEfficiencyAnalyzer instance.
        _scheduler: MaintenanceScheduler instance.
    """

    def __init__(
        self,
        repository: MaintenanceDataRepository,
        config: Optional[ReliabilityEngineConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Initialize ReliabilityEngineService.

        Args:
            repository: Data source for all operations.
            config: Optional configuration, defaults to get_config().
            clock: Optional UTC time source shared by every engine.
        """
        self.repository = repository
        self.config = config or get_config()
        self._clock = clock or _utcnow

        logging.getLogger("gmao").setLevel(self.config.log_level.upper())

        self._reliability = ReliabilityCalculator(self.config, clock=self._clock)
        self._thermal = ThermalEfficiencyAnalyzer(self.config, clock=self._clock)
        self._scheduler = MaintenanceScheduler(self.config, clock=self._clock)
        self.provenance = ProvenanceTracker(genesis=self.config.genesis_hash)

        self._lock = threading.Lock()
        self._stats: Dict[str, int] = {
            "total_operations": 0,
            "total_errors": 0,
            "equipment_evaluations": 0,
            "heat_exchanger_evaluations": 0,
            "maintenance_alerts": 0,
            "recurring_tasks_generated": 0,
        }
        logger.info("ReliabilityEngineService created")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        """Time an operation and count it, or count its failure."""
        start = time.monotonic()
        try:
            yield
        except Exception as e:
            with self._lock:
                self._stats["total_errors"] += 1
            if self.config.enable_metrics:
                metrics.record_error(type(e).__name__)
            logger.error("Operation %s failed: %s", name, e)
            raise
        with self._lock:
            self._stats["total_operations"] += 1
        if self.config.enable_metrics:
            metrics.record_calculation(name)
            metrics.observe_duration(name, time.monotonic() - start)

    def _record(
        self,
        entity_type: str,
        entity_id: str,
        operation: str,
        input_data: Any,
        output_data: Any,
    ) -> None:
        if self.config.enable_provenance:
            self.provenance.record_operation(
                entity_type, entity_id, operation,
                input_data=input_data, output_data=output_data,
            )

    def _require_equipment(self, equipment_id: str) -> Equipment:
        equipment = self.repository.get_equipment(equipment_id)
        if equipment is None:
            raise EquipmentNotFoundError(equipment_id)
        return equipment

    def _now(self, now: Optional[datetime]) -> datetime:
        return to_utc(now) if now is not None else to_utc(self._clock())

    # ------------------------------------------------------------------
    # 1. Reliability indicators
    # ------------------------------------------------------------------

    def equipment_metrics(
        self,
        equipment_id: str,
        period_start: datetime,
        period_end: datetime,
    ) -> EquipmentMetrics:
        """MTBF, MTTR, availability and interventions of one equipment unit.

        Raises:
            EquipmentNotFoundError: If the repository has no such unit.
        """
        with self._operation("equipment_metrics"):
            equipment = self._require_equipment(equipment_id)
            result = self._reliability.calculate_equipment_metrics(
                equipment,
                self.repository.get_breakdowns(equipment_id),
                self.repository.get_maintenance_tasks(equipment_id),
                period_start,
                period_end,
            )
            with self._lock:
                self._stats["equipment_evaluations"] += 1
            if self.config.enable_metrics:
                metrics.observe_availability(result.availability)
            self._record(
                "equipment", equipment_id, "equipment_metrics",
                _window(period_start, period_end), result,
            )
        logger.info(
            "Equipment %s: MTBF=%.1fh MTTR=%.1fh availability=%.1f%%",
            equipment_id, result.mtbf, result.mttr, result.availability,
        )
        return result

    def fleet_metrics(
        self,
        period_start: datetime,
        period_end: datetime,
    ) -> PerformanceMetrics:
        """Unweighted fleet averages over every registered equipment unit."""
        with self._operation("fleet_metrics"):
            equipments = self.repository.get_equipments()
            result = self._reliability.calculate_global_metrics(
                equipments,
                self.repository.get_breakdowns(),
                self.repository.get_maintenance_tasks(),
                period_start,
                period_end,
            )
            self._record(
                "fleet", "all", "fleet_metrics",
                {**_window(period_start, period_end), "equipments": len(equipments)},
                result,
            )
        logger.info(
            "Fleet of %d: availability=%.1f%% interventions=%d",
            len(equipments), result.availability, result.intervention_count,
        )
        return result

    def theoretical_metrics(
        self,
        equipment_id: str,
        period_start: datetime,
        period_end: datetime,
    ) -> TheoreticalMetrics:
        """Observed vs MTBF/(MTBF+MTTR) availability of one equipment unit.

        Raises:
            EquipmentNotFoundError: If the repository has no such unit.
        """
        with self._operation("theoretical_metrics"):
            self._require_equipment(equipment_id)
            result = self._reliability.calculate_theoretical_equipment_metrics(
                equipment_id,
                self.repository.get_breakdowns(equipment_id),
                self.repository.get_maintenance_tasks(equipment_id),
                period_start,
                period_end,
            )
            self._record(
                "equipment", equipment_id, "theoretical_metrics",
                _window(period_start, period_end), result,
            )
        return result

    def historical_data(
        self,
        months_back: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[HistoricalDataPoint]:
        """Monthly fleet indicators, oldest first, ending with the current month."""
        with self._operation("historical_data"):
            reference = self._now(now)
            result = self._reliability.generate_historical_data(
                self.repository.get_equipments(),
                self.repository.get_breakdowns(),
                self.repository.get_maintenance_tasks(),
                months_back=months_back,
                now=reference,
            )
            self._record(
                "fleet", "all", "historical_data",
                {"months_back": months_back, "now": reference.isoformat()},
                result,
            )
        return result

    # ------------------------------------------------------------------
    # 2. Thermal efficiency
    # ------------------------------------------------------------------

    def evaluate_heat_exchanger(
        self,
        equipment_id: str,
        design_efficiency: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> HeatExchangerEfficiency:
        """Health evaluation of one heat exchanger from its stored readings.

        Raises:
            EquipmentNotFoundError: If the repository has no such unit.
        """
        with self._operation("evaluate_heat_exchanger"):
            equipment = self._require_equipment(equipment_id)
            if not equipment.is_heat_exchanger:
                logger.warning(
                    "Equipment %s is a %s, evaluating as heat exchanger anyway",
                    equipment_id, equipment.type.value,
                )
            result = self._thermal.evaluate_heat_exchanger(
                equipment,
                self.repository.get_thermal_readings(equipment_id),
                design_efficiency=design_efficiency,
                now=self._now(now),
            )
            self._after_thermal(result)
        return result

    def evaluate_heat_exchangers(
        self,
        design_efficiency: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> List[HeatExchangerEfficiency]:
        """Health evaluation of every heat exchanger in the repository."""
        with self._operation("evaluate_heat_exchangers"):
            results = self._thermal.evaluate_fleet(
                self.repository.get_equipments(),
                self.repository.get_thermal_readings(),
                design_efficiency=design_efficiency,
                now=self._now(now),
            )
            for result in results:
                self._after_thermal(result)
        logger.info("Evaluated %d heat exchanger(s)", len(results))
        return results

    def _after_thermal(self, result: HeatExchangerEfficiency) -> None:
        with self._lock:
            self._stats["heat_exchanger_evaluations"] += 1
        if self.config.enable_metrics:
            metrics.record_heat_exchanger_alert(result.alert_level.value)
            metrics.observe_thermal_efficiency(result.current_efficiency)
        self._record(
            "heat_exchanger", result.equipment_id, "evaluate_heat_exchanger",
            {
                "design_efficiency": result.design_efficiency,
                "readings_used": result.readings_used,
                "evaluated_at": result.evaluated_at.isoformat(),
            },
            result,
        )

    # ------------------------------------------------------------------
    # 3. Maintenance scheduling
    # ------------------------------------------------------------------

    def maintenance_alerts(
        self,
        now: Optional[datetime] = None,
    ) -> List[MaintenanceDueAlert]:
        """Due alerts for every scheduled task, most urgent first."""
        with self._operation("maintenance_alerts"):
            reference = self._now(now)
            alerts = self._scheduler.check_maintenance_due(
                self.repository.get_maintenance_tasks(), now=reference,
            )
            with self._lock:
                self._stats["maintenance_alerts"] += len(alerts)
            if self.config.enable_metrics:
                for alert in alerts:
                    metrics.record_maintenance_alert(alert.status.value)
            self._record(
                "maintenance", "all", "maintenance_alerts",
                {"now": reference.isoformat()}, alerts,
            )
        return alerts

    def recurring_tasks(
        self,
        now: Optional[datetime] = None,
    ) -> List[MaintenanceTask]:
        """New occurrences of completed recurring tasks that have come due.

        The repository is not modified; persisting the returned tasks is
        the caller's decision.
        """
        with self._operation("recurring_tasks"):
            reference = self._now(now)
            generated = self._scheduler.generate_recurring_tasks(
                self.repository.get_maintenance_tasks(), now=reference,
            )
            with self._lock:
                self._stats["recurring_tasks_generated"] += len(generated)
            self._record(
                "maintenance", "all", "recurring_tasks",
                {"now": reference.isoformat()}, generated,
            )
        return generated

    # ------------------------------------------------------------------
    # 4. Statistics
    # ------------------------------------------------------------------

    def get_statistics(self) -> Dict[str, Any]:
        """Aggregate counters, repository sizes and provenance state."""
        with self._lock:
            stats: Dict[str, Any] = dict(self._stats)
        stats.update({
            "equipments": len(self.repository.get_equipments()),
            "breakdowns": len(self.repository.get_breakdowns()),
            "maintenance_tasks": len(self.repository.get_maintenance_tasks()),
            "thermal_readings": len(self.repository.get_thermal_readings()),
            "provenance_entries": self.provenance.entry_count,
            "provenance_head": self.provenance.get_latest_hash(),
            "timestamp": self._now(None).isoformat(),
        })
        return stats
