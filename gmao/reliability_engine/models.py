# -*- coding: utf-8 -*-
"""
Reliability Engine Data Models

Pydantic v2 data models for the reliability and thermal-efficiency
calculation engine. Defines enumerations, the input record shapes read
from the maintenance application's store, and the value objects returned
by the calculators.

Input records (4):
    - Equipment, Breakdown, MaintenanceTask, ThermalReading

Result models (9):
    - PerformanceMetrics, EquipmentMetrics, ConsistencyCheck,
      TheoreticalMetrics, ThermodynamicData, HeatExchangerEfficiency,
      HistoricalDataPoint, MaintenanceDueAlert

Enumerations (14):
    - EquipmentType, EquipmentStatus, BreakdownSeverity, TaskType,
      TaskStatus, TaskFrequency, TaskPriority, PerformanceStatus,
      TrendDirection, AlertLevel, RecommendedAction,
      NotificationPriority, MaintenanceDueStatus

All models are frozen. Field names are snake_case; the camelCase names
used by the application's JSON export (``equipmentId``, ``hotInletTemp``)
are accepted on input and produced by ``model_dump(by_alias=True)``.

Naive datetimes are interpreted as UTC and date-only values are promoted
to midnight UTC, so every comparison performed by the engine is
timezone-safe.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Annotated, Any, Dict, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    model_validator,
)
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _utcnow() -> datetime:
    """Return current UTC datetime with microseconds zeroed."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def to_utc(value: Any) -> Any:
    """Normalize a date or datetime to a timezone-aware UTC datetime.

    Naive datetimes are assumed to be UTC. Plain dates become midnight
    UTC. Other values are returned unchanged so pydantic can report them.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time(), tzinfo=timezone.utc)
    return value


def _promote_date(value: Any) -> Any:
    """Promote a plain date to midnight UTC before datetime parsing."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return to_utc(value)
    return value


def hours_between(start: datetime, end: datetime) -> float:
    """Return the signed number of hours from ``start`` to ``end``."""
    return (end - start).total_seconds() / SECONDS_PER_HOUR


def add_months(value: date, months: int) -> date:
    """Shift a date by whole calendar months.

    The day of month is clamped to the length of the target month, so
    January 31 plus one month is the last day of February.
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


#: Datetime field type normalized to timezone-aware UTC.
UTCDateTime = Annotated[
    datetime, BeforeValidator(_promote_date), AfterValidator(to_utc),
]


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

#: Seconds in one hour.
SECONDS_PER_HOUR: float = 3600.0

#: Specific heat of water in kJ/(kg*K).
WATER_SPECIFIC_HEAT_KJ_KG_K: float = 4.18

#: Model version string.
VERSION: str = "1.0.0"


# =============================================================================
# Enumerations
# =============================================================================


class EquipmentType(str, Enum):
    """Category of a registered equipment unit."""

    HEAT_EXCHANGER = "heat_exchanger"
    COOLING_TOWER = "cooling_tower"
    WATER_PUMP = "water_pump"
    OIL_PUMP = "oil_pump"
    WATER_PREFILTER = "water_prefilter"
    WATER_FILTER = "water_filter"
    OIL_FILTER = "oil_filter"


class EquipmentStatus(str, Enum):
    """Operational status of an equipment unit."""

    OPERATIONAL = "operational"
    MAINTENANCE = "maintenance"
    BREAKDOWN = "breakdown"
    OFFLINE = "offline"


class BreakdownSeverity(str, Enum):
    """Severity reported for a failure event."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class TaskType(str, Enum):
    """Maintenance task type."""

    PREVENTIVE = "preventive"
    CORRECTIVE = "corrective"


class TaskStatus(str, Enum):
    """Lifecycle status of a maintenance task."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskFrequency(str, Enum):
    """Recurrence frequency of a preventive maintenance task."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"


class TaskPriority(str, Enum):
    """Priority assigned to a maintenance task."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class PerformanceStatus(str, Enum):
    """Availability performance category.

    EXCELLENT: availability >= 95%.
    GOOD: availability >= 90%.
    WARNING: availability >= 80%.
    CRITICAL: anything lower.
    """

    EXCELLENT = "excellent"
    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"


class TrendDirection(str, Enum):
    """Direction of change between two successive indicator values.

    NONE is returned when the previous value is zero and a relative
    change cannot be computed.
    """

    UP = "up"
    DOWN = "down"
    STABLE = "stable"
    NONE = "none"


class AlertLevel(str, Enum):
    """Heat-exchanger health alert level, from healthy to critical."""

    GREEN = "green"
    YELLOW = "yellow"
    ORANGE = "orange"
    RED = "red"


class RecommendedAction(str, Enum):
    """Action recommended for a heat exchanger."""

    NONE = "none"
    MONITORING = "monitoring"
    CLEANING = "cleaning"
    MAINTENANCE = "maintenance"
    REPLACEMENT = "replacement"


class NotificationPriority(str, Enum):
    """Priority of an alert raised to maintenance staff."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class MaintenanceDueStatus(str, Enum):
    """How close a scheduled task is to its due date."""

    OVERDUE = "overdue"
    DUE_TODAY = "due_today"
    DUE_SOON = "due_soon"
    UPCOMING = "upcoming"


# =============================================================================
# Base model
# =============================================================================


class GMAOModel(BaseModel):
    """Frozen base model with camelCase aliases."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


# =============================================================================
# Input records
# =============================================================================


class Equipment(GMAOModel):
    """A registered equipment unit.

    Attributes:
        id: Unique equipment identifier.
        name: Display name.
        type: Equipment category.
        location: Physical location label.
        status: Current operational status.
        installation_date: Date the unit was installed.
        next_maintenance_date: Next planned maintenance date.
        manufacturer: Manufacturer name.
        model: Manufacturer model reference.
        specifications: Free-form technical specifications.
    """

    id: str = Field(..., min_length=1, description="Unique equipment identifier")
    name: str = Field(default="", description="Display name")
    type: EquipmentType = Field(..., description="Equipment category")
    location: str = Field(default="", description="Physical location label")
    status: EquipmentStatus = Field(
        default=EquipmentStatus.OPERATIONAL,
        description="Current operational status",
    )
    installation_date: Optional[UTCDateTime] = Field(
        default=None, description="Installation date",
    )
    next_maintenance_date: Optional[UTCDateTime] = Field(
        default=None, description="Next planned maintenance date",
    )
    manufacturer: str = Field(default="", description="Manufacturer name")
    model: str = Field(default="", description="Manufacturer model reference")
    specifications: Dict[str, Any] = Field(
        default_factory=dict, description="Free-form technical specifications",
    )

    @property
    def is_heat_exchanger(self) -> bool:
        return self.type == EquipmentType.HEAT_EXCHANGER


class Breakdown(GMAOModel):
    """A failure event on one equipment unit.

    A breakdown without ``end_time`` is unresolved: it counts as a
    failure but contributes no repair time or downtime.
    """

    id: str = Field(default="", description="Breakdown identifier")
    equipment_id: str = Field(..., min_length=1, description="Failed equipment")
    description: str = Field(default="", description="Failure description")
    start_time: UTCDateTime = Field(..., description="Failure start (UTC)")
    end_time: Optional[UTCDateTime] = Field(
        default=None, description="Repair completion (UTC), absent if ongoing",
    )
    cause: str = Field(default="", description="Free-text cause")
    severity: BreakdownSeverity = Field(
        default=BreakdownSeverity.MEDIUM, description="Reported severity",
    )
    reported_by: str = Field(default="", description="Reporting user")

    @model_validator(mode="after")
    def validate_interval(self) -> Breakdown:
        """Reject repairs that end before the failure started."""
        if self.end_time is not None and self.end_time < self.start_time:
            raise ValueError("end_time must be >= start_time")
        return self

    @property
    def is_resolved(self) -> bool:
        return self.end_time is not None


class MaintenanceTask(GMAOModel):
    """A preventive or corrective maintenance task.

    ``actual_duration`` is preferred over ``estimated_duration`` when
    computing downtime.
    """

    id: str = Field(default="", description="Task identifier")
    equipment_id: str = Field(..., min_length=1, description="Target equipment")
    type: TaskType = Field(default=TaskType.PREVENTIVE, description="Task type")
    title: str = Field(default="", description="Short title")
    description: str = Field(default="", description="Work description")
    scheduled_date: UTCDateTime = Field(..., description="Scheduled date (UTC)")
    completed_date: Optional[UTCDateTime] = Field(
        default=None, description="Completion date (UTC)",
    )
    status: TaskStatus = Field(
        default=TaskStatus.SCHEDULED, description="Lifecycle status",
    )
    assigned_to: Optional[str] = Field(default=None, description="Assignee")
    frequency: Optional[TaskFrequency] = Field(
        default=None, description="Recurrence frequency",
    )
    priority: TaskPriority = Field(
        default=TaskPriority.MEDIUM, description="Task priority",
    )
    estimated_duration: float = Field(
        default=0.0, ge=0.0, description="Estimated duration in hours",
    )
    actual_duration: Optional[float] = Field(
        default=None, ge=0.0, description="Actual duration in hours",
    )
    notes: Optional[str] = Field(default=None, description="Free-text notes")

    @property
    def downtime_hours(self) -> float:
        """Hours of downtime attributed to this task."""
        if self.actual_duration is not None:
            return self.actual_duration
        return self.estimated_duration


class ThermalReading(GMAOModel):
    """One temperature/flow measurement on a heat exchanger.

    Temperatures are in degrees Celsius, flow rates in kg/s.
    """

    id: str = Field(default="", description="Reading identifier")
    equipment_id: str = Field(..., min_length=1, description="Measured exchanger")
    timestamp: UTCDateTime = Field(..., description="Measurement time (UTC)")
    hot_inlet_temp: float = Field(..., description="Hot fluid inlet (C)")
    hot_outlet_temp: float = Field(..., description="Hot fluid outlet (C)")
    cold_inlet_temp: float = Field(..., description="Cold fluid inlet (C)")
    cold_outlet_temp: float = Field(..., description="Cold fluid outlet (C)")
    flow_rate_hot: float = Field(..., ge=0.0, description="Hot fluid flow (kg/s)")
    flow_rate_cold: float = Field(..., ge=0.0, description="Cold fluid flow (kg/s)")
    efficiency: Optional[float] = Field(
        default=None, description="Efficiency stored by the recorder (%)",
    )
    recorded_by: str = Field(default="", description="Recording user")


# =============================================================================
# Result models
# =============================================================================


class PerformanceMetrics(GMAOModel):
    """Reliability indicators over a time window.

    Attributes:
        mtbf: Mean time between failures (hours).
        mttr: Mean time to repair (hours).
        availability: Availability (percent, 0-100).
        intervention_count: Breakdowns plus maintenance tasks in window.
    """

    mtbf: float = Field(..., description="Mean time between failures (h)")
    mttr: float = Field(..., description="Mean time to repair (h)")
    availability: float = Field(..., description="Availability (%)")
    intervention_count: int = Field(..., ge=0, description="Interventions")


class EquipmentMetrics(PerformanceMetrics):
    """Reliability indicators for one equipment unit."""

    equipment_id: str = Field(..., description="Equipment identifier")
    equipment_name: str = Field(default="", description="Equipment name")
    period: str = Field(..., description="Human-readable window label")


class ConsistencyCheck(GMAOModel):
    """Agreement between observed and theoretical availability."""

    is_consistent: bool = Field(..., description="Deviation within tolerance")
    deviation: float = Field(..., ge=0.0, description="Absolute deviation (pp)")


class TheoreticalMetrics(GMAOModel):
    """Observed indicators cross-checked against MTBF/(MTBF+MTTR)."""

    observed_mtbf: float = Field(..., description="Observed MTBF (h)")
    observed_mttr: float = Field(..., description="Observed MTTR (h)")
    observed_availability: float = Field(..., description="Observed availability (%)")
    theoretical_availability: float = Field(
        ..., description="MTBF/(MTBF+MTTR) availability (%)",
    )
    consistency_check: ConsistencyCheck = Field(
        ..., description="Observed vs theoretical agreement",
    )


class ThermodynamicData(GMAOModel):
    """Thermodynamic snapshot computed from the latest reading.

    Attributes:
        actual_heat_transfer: Heat released by the hot stream (kW).
        max_possible_heat_transfer: Heat transfer of an ideal exchanger (kW).
        ntu: Number of transfer units (dimensionless).
        effectiveness: Effectiveness of the latest reading (percent).
    """

    actual_heat_transfer: float = Field(default=0.0, description="Actual heat transfer (kW)")
    max_possible_heat_transfer: float = Field(
        default=0.0, description="Maximum possible heat transfer (kW)",
    )
    ntu: float = Field(default=0.0, ge=0.0, description="Number of transfer units")
    effectiveness: float = Field(
        default=0.0, ge=0.0, le=100.0, description="Effectiveness (%)",
    )


class HeatExchangerEfficiency(GMAOModel):
    """Health evaluation of a heat exchanger."""

    equipment_id: str = Field(..., description="Equipment identifier")
    equipment_name: str = Field(default="", description="Equipment name")
    current_efficiency: float = Field(..., description="Mean recent effectiveness (%)")
    design_efficiency: float = Field(..., description="Design effectiveness (%)")
    degradation_rate: float = Field(
        ..., description="Effectiveness change (%/month), negative = degrading",
    )
    predicted_maintenance_date: date = Field(
        ..., description="Date effectiveness reaches the maintenance threshold",
    )
    recommended_action: RecommendedAction = Field(..., description="Recommended action")
    alert_level: AlertLevel = Field(..., description="Health alert level")
    thermodynamic_data: ThermodynamicData = Field(
        default_factory=ThermodynamicData,
        description="Snapshot from the latest reading",
    )
    readings_used: int = Field(default=0, ge=0, description="Readings averaged")
    evaluated_at: UTCDateTime = Field(
        default_factory=_utcnow, description="Evaluation timestamp (UTC)",
    )


class HistoricalDataPoint(GMAOModel):
    """Fleet-level indicators for one calendar month."""

    month: str = Field(..., description="Month label, e.g. 'Mar 2025'")
    period_start: UTCDateTime = Field(..., description="First day of month (UTC)")
    period_end: UTCDateTime = Field(..., description="Last day of month (UTC)")
    mtbf: float = Field(..., description="Fleet MTBF (h), one decimal")
    mttr: float = Field(..., description="Fleet MTTR (h), one decimal")
    availability: float = Field(..., description="Fleet availability (%), one decimal")
    interventions: int = Field(..., ge=0, description="Fleet interventions")


class MaintenanceDueAlert(GMAOModel):
    """Alert for a scheduled task approaching or past its due date."""

    task_id: str = Field(..., description="Task identifier")
    equipment_id: str = Field(..., description="Target equipment")
    title: str = Field(default="", description="Task title")
    status: MaintenanceDueStatus = Field(..., description="Due status")
    priority: NotificationPriority = Field(..., description="Alert priority")
    days_until_due: int = Field(..., description="Whole days until due, negative if late")
    scheduled_date: UTCDateTime = Field(..., description="Scheduled date (UTC)")
    message: str = Field(default="", description="Human-readable message")


__all__ = [
    # Helpers
    "to_utc",
    "UTCDateTime",
    "hours_between",
    "add_months",
    # Constants
    "SECONDS_PER_HOUR",
    "WATER_SPECIFIC_HEAT_KJ_KG_K",
    "VERSION",
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
    # Models
    "GMAOModel",
    "Equipment",
    "Breakdown",
    "MaintenanceTask",
    "ThermalReading",
    "PerformanceMetrics",
    "EquipmentMetrics",
    "ConsistencyCheck",
    "TheoreticalMetrics",
    "ThermodynamicData",
    "HeatExchangerEfficiency",
    "HistoricalDataPoint",
    "MaintenanceDueAlert",
]
