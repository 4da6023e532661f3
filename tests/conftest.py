# -*- coding: utf-8 -*-
"""Pytest configuration and shared fixtures."""

import os
from datetime import datetime, timedelta, timezone

import pytest

from gmao.reliability_engine.config import ReliabilityEngineConfig, reset_config
from gmao.reliability_engine.models import (
    Breakdown,
    Equipment,
    EquipmentType,
    MaintenanceTask,
    TaskFrequency,
    TaskStatus,
    ThermalReading,
)
from gmao.reliability_engine.repository import InMemoryMaintenanceRepository


#: Fixed "now" used across the suite.
NOW = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _clean_config(monkeypatch):
    """Isolate every test from GMAO_RE_* variables and the config singleton."""
    for key in list(os.environ):
        if key.startswith("GMAO_RE_"):
            monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    """Clock returning the fixed test time."""
    return lambda: NOW


@pytest.fixture
def config():
    return ReliabilityEngineConfig(enable_metrics=False)


@pytest.fixture
def window():
    """A 30-day (720h) window in January 2025."""
    return (
        datetime(2025, 1, 1, tzinfo=timezone.utc),
        datetime(2025, 1, 31, tzinfo=timezone.utc),
    )


@pytest.fixture
def pump():
    return Equipment(id="eq-001", name="Feed pump", type=EquipmentType.WATER_PUMP)


@pytest.fixture
def exchanger():
    return Equipment(id="hx-001", name="Oil cooler", type=EquipmentType.HEAT_EXCHANGER)


@pytest.fixture
def two_breakdowns():
    """Two resolved 4-hour breakdowns on eq-001 inside the January window."""
    return [
        Breakdown(
            id="bd-1",
            equipment_id="eq-001",
            start_time=datetime(2025, 1, 5, 8, 0, tzinfo=timezone.utc),
            end_time=datetime(2025, 1, 5, 12, 0, tzinfo=timezone.utc),
        ),
        Breakdown(
            id="bd-2",
            equipment_id="eq-001",
            start_time=datetime(2025, 1, 20, 14, 0, tzinfo=timezone.utc),
            end_time=datetime(2025, 1, 20, 18, 0, tzinfo=timezone.utc),
        ),
    ]


def _make_reading(
    timestamp,
    hot_in=90.0,
    hot_out=70.0,
    cold_in=20.0,
    cold_out=50.0,
    equipment_id="hx-001",
    flow_hot=2.0,
    flow_cold=3.0,
):
    return ThermalReading(
        equipment_id=equipment_id,
        timestamp=timestamp,
        hot_inlet_temp=hot_in,
        hot_outlet_temp=hot_out,
        cold_inlet_temp=cold_in,
        cold_outlet_temp=cold_out,
        flow_rate_hot=flow_hot,
        flow_rate_cold=flow_cold,
    )


@pytest.fixture
def steady_readings():
    """Weekly readings at 42.86% effectiveness over the last two months."""
    return [
        _make_reading(NOW - timedelta(days=7 * i))
        for i in range(8, -1, -1)
    ]


@pytest.fixture
def repository(pump, exchanger, two_breakdowns, steady_readings):
    tasks = [
        MaintenanceTask(
            id="task-1",
            equipment_id="eq-001",
            title="Bearing lubrication",
            scheduled_date=datetime(2025, 1, 10, tzinfo=timezone.utc),
            completed_date=datetime(2025, 1, 10, 6, 0, tzinfo=timezone.utc),
            status=TaskStatus.COMPLETED,
            estimated_duration=2.0,
            frequency=TaskFrequency.MONTHLY,
        ),
        MaintenanceTask(
            id="task-2",
            equipment_id="hx-001",
            title="Tube cleaning",
            scheduled_date=NOW + timedelta(days=2),
            estimated_duration=6.0,
        ),
    ]
    return InMemoryMaintenanceRepository(
        equipments=[pump, exchanger],
        breakdowns=two_breakdowns,
        maintenance_tasks=tasks,
        thermal_readings=steady_readings,
    )


@pytest.fixture
def make_reading():
    """Factory for thermal readings; defaults reproduce a 42.86% reading."""
    return _make_reading
