# -*- coding: utf-8 -*-
"""
GMAO Reliability Engine
=======================

Calculation engine of the maintenance management application. It turns
equipment, breakdown, maintenance-task and thermal-reading logs into:

- Reliability indicators per equipment unit and per fleet: MTBF, MTTR,
  availability, intervention count, over an explicit time window
- A consistency check of observed availability against the
  MTBF/(MTBF+MTTR) identity
- Monthly historical series of fleet indicators
- Heat-exchanger effectiveness, NTU, heat transfer, degradation trend,
  alert level, recommended action and predicted maintenance date
- Maintenance due alerts and recurring task generation
- SHA-256 provenance chain tracking of every served calculation
- Prometheus metrics

Key Components:
    - config: ReliabilityEngineConfig with GMAO_RE_ env prefix
    - models: pydantic v2 records, results and enumerations
    - reliability_calculator: MTBF / MTTR / availability engine
    - thermal_analyzer: heat-exchanger efficiency engine
    - maintenance_scheduler: due alerts and recurring tasks
    - repository: in-memory and JSON/YAML snapshot data sources
    - provenance: SHA-256 chain-hashed audit trail
    - metrics: Prometheus metrics
    - setup: ReliabilityEngineService facade

Example:
    >>> from gmao.reliability_engine import (
    ...     FileMaintenanceRepository, ReliabilityEngineService,
    ... )
    >>> service = ReliabilityEngineService(FileMaintenanceRepository("snapshot.json"))
    >>> service.evaluate_heat_exchangers()
"""

# ---------------------------------------------------------------------------
# Engine metadata constants
# ---------------------------------------------------------------------------

ENGINE_ID = "GMAO-RE"
ENGINE_NAME = "Reliability Engine"
ENGINE_VERSION = "1.0.0"

__version__ = ENGINE_VERSION

from gmao.reliability_engine.config import (
    ReliabilityEngineConfig,
    get_config,
    reset_config,
    set_config,
)
from gmao.reliability_engine.maintenance_scheduler import MaintenanceScheduler
from gmao.reliability_engine.models import (
    AlertLevel,
    Breakdown,
    BreakdownSeverity,
    ConsistencyCheck,
    Equipment,
    EquipmentMetrics,
    EquipmentStatus,
    EquipmentType,
    HeatExchangerEfficiency,
    HistoricalDataPoint,
    MaintenanceDueAlert,
    MaintenanceDueStatus,
    MaintenanceTask,
    NotificationPriority,
    PerformanceMetrics,
    PerformanceStatus,
    RecommendedAction,
    TaskFrequency,
    TaskPriority,
    TaskStatus,
    TaskType,
    TheoreticalMetrics,
    ThermalReading,
    ThermodynamicData,
    TrendDirection,
)
from gmao.reliability_engine.provenance import (
    ProvenanceEntry,
    ProvenanceTracker,
    get_provenance_tracker,
)
from gmao.reliability_engine.reliability_calculator import ReliabilityCalculator
from gmao.reliability_engine.repository import (
    FileMaintenanceRepository,
    InMemoryMaintenanceRepository,
    MaintenanceDataRepository,
)
from gmao.reliability_engine.setup import ReliabilityEngineService
from gmao.reliability_engine.thermal_analyzer import ThermalEfficiencyAnalyzer

__all__ = [
    # Metadata
    "ENGINE_ID",
    "ENGINE_NAME",
    "ENGINE_VERSION",
    "__version__",
    # Configuration
    "ReliabilityEngineConfig",
    "get_config",
    "set_config",
    "reset_config",
    # Engines
    "ReliabilityCalculator",
    "ThermalEfficiencyAnalyzer",
    "MaintenanceScheduler",
    # Repositories
    "MaintenanceDataRepository",
    "InMemoryMaintenanceRepository",
    "FileMaintenanceRepository",
    # Service
    "ReliabilityEngineService",
    # Provenance
    "ProvenanceEntry",
    "ProvenanceTracker",
    "get_provenance_tracker",
    # Enumerations
    "EquipmentType",
    "EquipmentStatus",
    "BreakdownSeverity",
    "TaskType",
    "TaskStatus",
    "TaskFrequency",
    "TaskPriority",
    "PerformanceStatus",
    "TrendDirection",
    "AlertLevel",
    "RecommendedAction",
    "NotificationPriority",
    "MaintenanceDueStatus",
    # Records
    "Equipment",
    "Breakdown",
    "MaintenanceTask",
    "ThermalReading",
    # Results
    "PerformanceMetrics",
    "EquipmentMetrics",
    "ConsistencyCheck",
    "TheoreticalMetrics",
    "ThermodynamicData",
    "HeatExchangerEfficiency",
    "HistoricalDataPoint",
    "MaintenanceDueAlert",
]
