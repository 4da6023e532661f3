# -*- coding: utf-8 -*-
"""
Prometheus Metrics - Reliability Engine

Metrics:
    1. gmao_re_calculations_total (Counter, labels: operation)
    2. gmao_re_heat_exchanger_alerts_total (Counter, labels: level)
    3. gmao_re_maintenance_alerts_total (Counter, labels: status)
    4. gmao_re_availability_percent (Histogram)
    5. gmao_re_thermal_efficiency_percent (Histogram)
    6. gmao_re_processing_duration_seconds (Histogram, labels: operation)
    7. gmao_re_processing_errors_total (Counter, labels: error_type)

Metrics are registered on the default prometheus_client registry at
import time. The service only calls the helpers below when
``enable_metrics`` is set.
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram


_PERCENT_BUCKETS = (
    10.0, 20.0, 30.0, 40.0, 50.0, 60.0,
    70.0, 75.0, 80.0, 85.0, 90.0, 95.0, 99.0, 100.0,
)

# 1. Calculations served by operation
re_calculations_total = Counter(
    "gmao_re_calculations_total",
    "Total reliability engine calculations served",
    labelnames=["operation"],
)

# 2. Heat-exchanger evaluations by alert level
re_heat_exchanger_alerts_total = Counter(
    "gmao_re_heat_exchanger_alerts_total",
    "Heat-exchanger evaluations by resulting alert level",
    labelnames=["level"],
)

# 3. Maintenance due alerts by status
re_maintenance_alerts_total = Counter(
    "gmao_re_maintenance_alerts_total",
    "Maintenance due alerts raised by due status",
    labelnames=["status"],
)

# 4. Availability distribution
re_availability_percent = Histogram(
    "gmao_re_availability_percent",
    "Distribution of computed equipment availability (%)",
    buckets=_PERCENT_BUCKETS,
)

# 5. Thermal efficiency distribution
re_thermal_efficiency_percent = Histogram(
    "gmao_re_thermal_efficiency_percent",
    "Distribution of current heat-exchanger efficiency (%)",
    buckets=_PERCENT_BUCKETS,
)

# 6. Processing duration by operation
re_processing_duration_seconds = Histogram(
    "gmao_re_processing_duration_seconds",
    "Reliability engine processing duration in seconds",
    labelnames=["operation"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0),
)

# 7. Processing errors by error type
re_processing_errors_total = Counter(
    "gmao_re_processing_errors_total",
    "Total processing errors in the reliability engine",
    labelnames=["error_type"],
)


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


def record_calculation(operation: str) -> None:
    """Record one served calculation.

    Args:
        operation: Service operation name (equipment_metrics,
            fleet_metrics, historical_data, evaluate_heat_exchanger, ...).
    """
    re_calculations_total.labels(operation=operation).inc()


def record_heat_exchanger_alert(level: str) -> None:
    """Record a heat-exchanger evaluation outcome (green, yellow, orange, red)."""
    re_heat_exchanger_alerts_total.labels(level=level).inc()


def record_maintenance_alert(status: str, count: int = 1) -> None:
    """Record maintenance due alerts (overdue, due_today, due_soon, upcoming)."""
    re_maintenance_alerts_total.labels(status=status).inc(count)


def observe_availability(availability: float) -> None:
    re_availability_percent.observe(availability)


def observe_thermal_efficiency(efficiency: float) -> None:
    re_thermal_efficiency_percent.observe(efficiency)


def observe_duration(operation: str, seconds: float) -> None:
    """Record processing duration for an operation.

    Args:
        operation: Service operation name.
        seconds: Wall-clock duration in seconds.
    """
    re_processing_duration_seconds.labels(operation=operation).observe(seconds)


def record_error(error_type: str) -> None:
    """Record a processing error.

    Args:
        error_type: Exception class name or error category.
    """
    re_processing_errors_total.labels(error_type=error_type).inc()


__all__ = [
    "re_calculations_total",
    "re_heat_exchanger_alerts_total",
    "re_maintenance_alerts_total",
    "re_availability_percent",
    "re_thermal_efficiency_percent",
    "re_processing_duration_seconds",
    "re_processing_errors_total",
    "record_calculation",
    "record_heat_exchanger_alert",
    "record_maintenance_alert",
    "observe_availability",
    "observe_thermal_efficiency",
    "observe_duration",
    "record_error",
]
