# -*- coding: utf-8 -*-
"""Tests for reliability engine data models and date helpers."""

from datetime import date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from gmao.reliability_engine.models import (
    AlertLevel,
    Breakdown,
    Equipment,
    EquipmentStatus,
    EquipmentType,
    HeatExchangerEfficiency,
    MaintenanceTask,
    RecommendedAction,
    TaskStatus,
    ThermalReading,
    ThermodynamicData,
    add_months,
    hours_between,
    to_utc,
)


class TestToUtc:
    """Tests for to_utc."""

    def test_naive_is_utc(self):
        assert to_utc(datetime(2025, 1, 1, 8)) == datetime(2025, 1, 1, 8, tzinfo=timezone.utc)

    def test_offset_converted(self):
        paris = timezone(timedelta(hours=1))
        value = to_utc(datetime(2025, 1, 1, 9, tzinfo=paris))
        assert value == datetime(2025, 1, 1, 8, tzinfo=timezone.utc)
        assert value.tzinfo == timezone.utc

    def test_date_to_midnight(self):
        assert to_utc(date(2025, 1, 1)) == datetime(2025, 1, 1, tzinfo=timezone.utc)

    def test_other_values_untouched(self):
        assert to_utc("2025-01-01") == "2025-01-01"


class TestAddMonths:
    """Tests for add_months."""

    @pytest.mark.parametrize("start,months,expected", [
        (date(2025, 1, 15), 1, date(2025, 2, 15)),
        (date(2025, 1, 31), 1, date(2025, 2, 28)),
        (date(2024, 1, 31), 1, date(2024, 2, 29)),
        (date(2025, 11, 30), 3, date(2026, 2, 28)),
        (date(2025, 3, 31), -1, date(2025, 2, 28)),
        (date(2025, 1, 1), -1, date(2024, 12, 1)),
        (date(2025, 3, 15), 0, date(2025, 3, 15)),
    ])
    def test_dates(self, start, months, expected):
        assert add_months(start, months) == expected

    def test_datetime_keeps_time_and_zone(self):
        value = datetime(2025, 1, 31, 6, 30, tzinfo=timezone.utc)
        assert add_months(value, 1) == datetime(2025, 2, 28, 6, 30, tzinfo=timezone.utc)


def test_hours_between():
    start = datetime(2025, 1, 1, tzinfo=timezone.utc)
    assert hours_between(start, start + timedelta(hours=36)) == 36.0
    assert hours_between(start + timedelta(minutes=30), start) == -0.5


class TestEquipment:
    """Tests for Equipment."""

    def test_camel_case_input(self):
        equipment = Equipment.model_validate({
            "id": "eq-7",
            "name": "Cooling tower",
            "type": "cooling_tower",
            "installationDate": "2020-05-01",
            "nextMaintenanceDate": "2025-04-01T00:00:00Z",
        })
        assert equipment.type == EquipmentType.COOLING_TOWER
        assert equipment.status == EquipmentStatus.OPERATIONAL
        assert equipment.installation_date == datetime(2020, 5, 1, tzinfo=timezone.utc)
        assert not equipment.is_heat_exchanger

    def test_dump_by_alias(self, exchanger):
        dumped = exchanger.model_dump(by_alias=True)
        assert "nextMaintenanceDate" in dumped
        assert exchanger.is_heat_exchanger

    def test_frozen(self, pump):
        with pytest.raises(ValidationError):
            pump.name = "other"

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            Equipment(id="eq-1", type="boiler")

    def test_empty_id_rejected(self):
        with pytest.raises(ValidationError):
            Equipment(id="", type=EquipmentType.OIL_PUMP)


class TestBreakdown:
    """Tests for Breakdown."""

    def test_end_before_start_rejected(self):
        with pytest.raises(ValidationError):
            Breakdown(
                equipment_id="eq-1",
                start_time=datetime(2025, 1, 2, tzinfo=timezone.utc),
                end_time=datetime(2025, 1, 1, tzinfo=timezone.utc),
            )

    def test_unresolved(self):
        breakdown = Breakdown(
            equipment_id="eq-1",
            start_time=datetime(2025, 1, 2, tzinfo=timezone.utc),
        )
        assert not breakdown.is_resolved

    def test_naive_times_become_utc(self):
        breakdown = Breakdown.model_validate({
            "equipmentId": "eq-1",
            "startTime": "2025-01-02T08:00:00",
            "endTime": "2025-01-02T10:00:00",
        })
        assert breakdown.start_time.tzinfo == timezone.utc
        assert breakdown.is_resolved


class TestMaintenanceTask:
    """Tests for MaintenanceTask."""

    def _task(self, **kwargs):
        return MaintenanceTask(
            equipment_id="eq-1",
            scheduled_date=date(2025, 1, 10),
            **kwargs,
        )

    def test_date_only_scheduled(self):
        task = self._task()
        assert task.scheduled_date == datetime(2025, 1, 10, tzinfo=timezone.utc)
        assert task.status == TaskStatus.SCHEDULED

    def test_downtime_prefers_actual(self):
        assert self._task(estimated_duration=4.0, actual_duration=2.5).downtime_hours == 2.5

    def test_downtime_zero_actual_kept(self):
        assert self._task(estimated_duration=4.0, actual_duration=0.0).downtime_hours == 0.0

    def test_downtime_falls_back_to_estimate(self):
        assert self._task(estimated_duration=4.0).downtime_hours == 4.0

    def test_negative_duration_rejected(self):
        with pytest.raises(ValidationError):
            self._task(estimated_duration=-1.0)


class TestThermalReading:
    """Tests for ThermalReading."""

    def test_camel_case_input(self):
        reading = ThermalReading.model_validate({
            "equipmentId": "hx-1",
            "timestamp": "2025-03-01T10:00:00+01:00",
            "hotInletTemp": 90,
            "hotOutletTemp": 70,
            "coldInletTemp": 20,
            "coldOutletTemp": 50,
            "flowRateHot": 2.0,
            "flowRateCold": 3.0,
            "efficiency": 42.9,
        })
        assert reading.timestamp == datetime(2025, 3, 1, 9, tzinfo=timezone.utc)
        assert reading.hot_inlet_temp == 90.0

    def test_negative_flow_rejected(self):
        with pytest.raises(ValidationError):
            ThermalReading(
                equipment_id="hx-1",
                timestamp=datetime(2025, 3, 1, tzinfo=timezone.utc),
                hot_inlet_temp=90.0,
                hot_outlet_temp=70.0,
                cold_inlet_temp=20.0,
                cold_outlet_temp=50.0,
                flow_rate_hot=-1.0,
                flow_rate_cold=3.0,
            )


class TestResultModels:
    """Tests for result value objects."""

    def test_thermodynamic_defaults(self):
        data = ThermodynamicData()
        assert data.actual_heat_transfer == 0.0
        assert data.effectiveness == 0.0

    def test_effectiveness_bounded(self):
        with pytest.raises(ValidationError):
            ThermodynamicData(effectiveness=120.0)

    def test_efficiency_dump(self):
        result = HeatExchangerEfficiency(
            equipment_id="hx-1",
            current_efficiency=80.0,
            design_efficiency=85.0,
            degradation_rate=-1.0,
            predicted_maintenance_date=date(2025, 9, 15),
            recommended_action=RecommendedAction.NONE,
            alert_level=AlertLevel.GREEN,
        )
        dumped = result.model_dump(by_alias=True, mode="json")
        assert dumped["predictedMaintenanceDate"] == "2025-09-15"
        assert dumped["alertLevel"] == "green"
        assert dumped["thermodynamicData"]["maxPossibleHeatTransfer"] == 0.0
