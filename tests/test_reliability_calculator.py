# -*- coding: utf-8 -*-
"""Tests for ReliabilityCalculator.

Covers MTBF, MTTR, availability, intervention counts, the theoretical
availability identity, equipment and fleet aggregation, monthly history,
performance status and trend classification.
"""

from datetime import datetime, timedelta, timezone

import pytest

from gmao.reliability_engine.config import ReliabilityEngineConfig
from gmao.reliability_engine.models import (
    Breakdown,
    Equipment,
    EquipmentType,
    MaintenanceTask,
    PerformanceStatus,
    TaskStatus,
    TrendDirection,
)
from gmao.reliability_engine.reliability_calculator import ReliabilityCalculator


def _utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def _task(scheduled, status=TaskStatus.COMPLETED, estimated=0.0, actual=None,
          completed=None, equipment_id="eq-001"):
    if completed is None and status == TaskStatus.COMPLETED:
        completed = scheduled
    return MaintenanceTask(
        equipment_id=equipment_id,
        scheduled_date=scheduled,
        completed_date=completed,
        status=status,
        estimated_duration=estimated,
        actual_duration=actual,
    )


@pytest.fixture
def calc(config, clock):
    return ReliabilityCalculator(config, clock=clock)


# ==============================================================================
# MTBF
# ==============================================================================


class TestCalculateMtbf:
    """Tests for calculate_mtbf."""

    def test_no_breakdowns_returns_window_length(self, calc, window):
        """Without failures MTBF equals the window length in hours."""
        assert calc.calculate_mtbf("eq-001", [], *window) == 720.0

    @pytest.mark.parametrize("days", [1, 7, 31, 365])
    def test_no_breakdowns_any_window(self, calc, days):
        """Window length is returned exactly for arbitrary windows."""
        start = _utc(2024, 6, 1, 7, 30)
        end = start + timedelta(days=days)
        assert calc.calculate_mtbf("eq-001", [], start, end) == days * 24.0

    def test_two_four_hour_breakdowns(self, calc, window, two_breakdowns):
        """(720 - 8) / 2 = 356 hours."""
        assert calc.calculate_mtbf("eq-001", two_breakdowns, *window) == pytest.approx(356.0)

    def test_other_equipment_ignored(self, calc, window, two_breakdowns):
        """Breakdowns of another unit do not count."""
        assert calc.calculate_mtbf("eq-999", two_breakdowns, *window) == 720.0

    def test_breakdown_before_window_ignored(self, calc, window):
        """A breakdown starting before the window is not a failure of the window."""
        breakdown = Breakdown(
            equipment_id="eq-001",
            start_time=_utc(2024, 12, 31, 22),
            end_time=_utc(2025, 1, 1, 2),
        )
        assert calc.calculate_mtbf("eq-001", [breakdown], *window) == 720.0

    def test_downtime_clipped_to_window(self, calc, window):
        """Only the in-window part of a breakdown is removed from operating time."""
        breakdown = Breakdown(
            equipment_id="eq-001",
            start_time=_utc(2025, 1, 30, 20),
            end_time=_utc(2025, 2, 2),
        )
        assert calc.calculate_mtbf("eq-001", [breakdown], *window) == pytest.approx(716.0)

    def test_unresolved_breakdown_counts_without_downtime(self, calc, window):
        """An ongoing breakdown is a failure with no downtime."""
        breakdown = Breakdown(equipment_id="eq-001", start_time=_utc(2025, 1, 10))
        assert calc.calculate_mtbf("eq-001", [breakdown], *window) == 720.0

    def test_window_end_is_inclusive(self, calc, window):
        """A breakdown starting exactly at the window end is counted."""
        breakdown = Breakdown(
            equipment_id="eq-001",
            start_time=window[1],
            end_time=window[1] + timedelta(hours=2),
        )
        assert calc.calculate_intervention_count("eq-001", [breakdown], [], *window) == 1
        assert calc.calculate_mtbf("eq-001", [breakdown], *window) == 720.0

    def test_empty_window_returns_zero(self, calc):
        """A zero-length window degrades to 0."""
        moment = _utc(2025, 1, 1)
        assert calc.calculate_mtbf("eq-001", [], moment, moment) == 0.0

    def test_inverted_window_returns_zero(self, calc, window):
        """End before start degrades to 0."""
        assert calc.calculate_mtbf("eq-001", [], window[1], window[0]) == 0.0

    def test_naive_window_treated_as_utc(self, calc, two_breakdowns):
        """Naive window bounds are interpreted as UTC."""
        mtbf = calc.calculate_mtbf(
            "eq-001", two_breakdowns, datetime(2025, 1, 1), datetime(2025, 1, 31),
        )
        assert mtbf == pytest.approx(356.0)


# ==============================================================================
# MTTR
# ==============================================================================


class TestCalculateMttr:
    """Tests for calculate_mttr."""

    def test_two_four_hour_breakdowns(self, calc, window, two_breakdowns):
        """Mean of two 4-hour repairs is exactly 4."""
        assert calc.calculate_mttr("eq-001", two_breakdowns, *window) == 4.0

    def test_no_breakdowns_returns_zero(self, calc, window):
        """No repair yields 0."""
        assert calc.calculate_mttr("eq-001", [], *window) == 0.0

    def test_unresolved_breakdowns_excluded(self, calc, window, two_breakdowns):
        """Ongoing breakdowns do not enter the mean."""
        ongoing = Breakdown(equipment_id="eq-001", start_time=_utc(2025, 1, 25))
        assert calc.calculate_mttr("eq-001", two_breakdowns + [ongoing], *window) == 4.0

    def test_repair_not_clipped_by_default(self, calc, window):
        """A repair running past the window keeps its full duration."""
        breakdown = Breakdown(
            equipment_id="eq-001",
            start_time=_utc(2025, 1, 30, 20),
            end_time=_utc(2025, 2, 2),
        )
        assert calc.calculate_mttr("eq-001", [breakdown], *window) == pytest.approx(52.0)

    def test_repair_clipped_when_enabled(self, clock, window):
        """clip_repair_to_window clips repairs like MTBF downtime."""
        calc = ReliabilityCalculator(
            ReliabilityEngineConfig(clip_repair_to_window=True), clock=clock,
        )
        breakdown = Breakdown(
            equipment_id="eq-001",
            start_time=_utc(2025, 1, 30, 20),
            end_time=_utc(2025, 2, 2),
        )
        assert calc.calculate_mttr("eq-001", [breakdown], *window) == pytest.approx(4.0)


# ==============================================================================
# Availability
# ==============================================================================


class TestCalculateAvailability:
    """Tests for calculate_availability."""

    def test_no_events_is_full_availability(self, calc, window):
        """No downtime means 100%."""
        assert calc.calculate_availability("eq-001", [], [], *window) == 100.0

    def test_breakdown_downtime(self, calc, window, two_breakdowns):
        """8h of breakdowns over 720h."""
        availability = calc.calculate_availability("eq-001", two_breakdowns, [], *window)
        assert availability == pytest.approx(712.0 / 720.0 * 100.0)

    def test_completed_task_estimated_duration(self, calc, window, two_breakdowns):
        """Completed maintenance adds its estimated duration to downtime."""
        tasks = [_task(_utc(2025, 1, 10), estimated=2.0)]
        availability = calc.calculate_availability("eq-001", two_breakdowns, tasks, *window)
        assert availability == pytest.approx(710.0 / 720.0 * 100.0)

    def test_actual_duration_preferred(self, calc, window):
        """Actual duration replaces the estimate when recorded."""
        tasks = [_task(_utc(2025, 1, 10), estimated=10.0, actual=3.0)]
        availability = calc.calculate_availability("eq-001", [], tasks, *window)
        assert availability == pytest.approx(717.0 / 720.0 * 100.0)

    def test_zero_actual_duration_is_kept(self, calc, window):
        """A recorded actual duration of zero is not replaced by the estimate."""
        tasks = [_task(_utc(2025, 1, 10), estimated=10.0, actual=0.0)]
        assert calc.calculate_availability("eq-001", [], tasks, *window) == 100.0

    def test_uncompleted_tasks_ignored(self, calc, window):
        """Scheduled and in-progress tasks add no downtime."""
        tasks = [
            _task(_utc(2025, 1, 10), status=TaskStatus.SCHEDULED, estimated=5.0),
            _task(_utc(2025, 1, 11), status=TaskStatus.IN_PROGRESS, estimated=5.0),
        ]
        assert calc.calculate_availability("eq-001", [], tasks, *window) == 100.0

    def test_completed_without_date_ignored(self, calc, window):
        """A completed task lacking a completion date adds no downtime."""
        task = MaintenanceTask(
            equipment_id="eq-001",
            scheduled_date=_utc(2025, 1, 10),
            status=TaskStatus.COMPLETED,
            estimated_duration=5.0,
        )
        assert calc.calculate_availability("eq-001", [], [task], *window) == 100.0

    def test_task_outside_window_ignored(self, calc, window):
        """Tasks scheduled outside the window add no downtime."""
        tasks = [_task(_utc(2025, 2, 10), estimated=50.0)]
        assert calc.calculate_availability("eq-001", [], tasks, *window) == 100.0

    def test_floored_at_zero(self, calc, window, two_breakdowns):
        """Downtime above the window length yields 0, never negative."""
        tasks = [_task(_utc(2025, 1, 10), actual=1000.0)]
        assert calc.calculate_availability("eq-001", two_breakdowns, tasks, *window) == 0.0

    @pytest.mark.parametrize("hours", [0.0, 1.0, 360.0, 719.0, 720.0, 5000.0])
    def test_always_within_bounds(self, calc, window, hours):
        """Availability stays in [0, 100] whatever the downtime."""
        tasks = [_task(_utc(2025, 1, 10), actual=hours)]
        availability = calc.calculate_availability("eq-001", [], tasks, *window)
        assert 0.0 <= availability <= 100.0

    def test_empty_window_returns_zero(self, calc):
        """A zero-length window degrades to 0."""
        moment = _utc(2025, 1, 1)
        assert calc.calculate_availability("eq-001", [], [], moment, moment) == 0.0


# ==============================================================================
# Interventions
# ==============================================================================


class TestCalculateInterventionCount:
    """Tests for calculate_intervention_count."""

    def test_counts_breakdowns_and_tasks_of_any_status(self, calc, window, two_breakdowns):
        """Tasks count whatever their status."""
        tasks = [
            _task(_utc(2025, 1, 10)),
            _task(_utc(2025, 1, 11), status=TaskStatus.SCHEDULED),
            _task(_utc(2025, 1, 12), status=TaskStatus.CANCELLED),
            _task(_utc(2025, 3, 1), status=TaskStatus.SCHEDULED),
        ]
        assert calc.calculate_intervention_count("eq-001", two_breakdowns, tasks, *window) == 5

    def test_other_equipment_ignored(self, calc, window, two_breakdowns):
        tasks = [_task(_utc(2025, 1, 10), equipment_id="eq-002")]
        assert calc.calculate_intervention_count("eq-002", two_breakdowns, tasks, *window) == 1


# ==============================================================================
# Theoretical availability
# ==============================================================================


class TestTheoreticalHelpers:
    """Tests for the MTBF/(MTBF+MTTR) identity helpers."""

    def test_theoretical_availability(self):
        """356 / 360 * 100."""
        result = ReliabilityCalculator.calculate_theoretical_availability(356.0, 4.0)
        assert result == pytest.approx(98.8888889)

    @pytest.mark.parametrize("mtbf,mttr", [(0.0, 4.0), (356.0, 0.0), (-1.0, 4.0)])
    def test_theoretical_availability_invalid(self, mtbf, mttr):
        """Non-positive inputs give 0."""
        assert ReliabilityCalculator.calculate_theoretical_availability(mtbf, mttr) == 0.0

    def test_monotonic_in_mtbf_and_mttr(self):
        """Increasing in MTBF, decreasing in MTTR."""
        avail = ReliabilityCalculator.calculate_theoretical_availability
        assert avail(100.0, 5.0) < avail(200.0, 5.0) < avail(400.0, 5.0)
        assert avail(100.0, 1.0) > avail(100.0, 5.0) > avail(100.0, 25.0)

    @pytest.mark.parametrize("mtbf,mttr", [(356.0, 4.0), (12.5, 0.25), (1000.0, 80.0)])
    def test_theoretical_mtbf_inverts_availability(self, mtbf, mttr):
        """MTBF is recovered from availability and MTTR."""
        availability = ReliabilityCalculator.calculate_theoretical_availability(mtbf, mttr)
        recovered = ReliabilityCalculator.calculate_theoretical_mtbf(availability, mttr)
        assert recovered == pytest.approx(mtbf)

    @pytest.mark.parametrize("mtbf,mttr", [(356.0, 4.0), (12.5, 0.25)])
    def test_theoretical_mttr_inverts_availability(self, mtbf, mttr):
        """MTTR is recovered from availability and MTBF."""
        availability = ReliabilityCalculator.calculate_theoretical_availability(mtbf, mttr)
        recovered = ReliabilityCalculator.calculate_theoretical_mttr(availability, mtbf)
        assert recovered == pytest.approx(mttr)

    @pytest.mark.parametrize("availability", [0.0, 100.0, -5.0, 120.0])
    def test_invalid_availability_gives_zero(self, availability):
        """Availability outside (0, 100) gives 0."""
        assert ReliabilityCalculator.calculate_theoretical_mtbf(availability, 4.0) == 0.0
        assert ReliabilityCalculator.calculate_theoretical_mttr(availability, 356.0) == 0.0


class TestTheoreticalEquipmentMetrics:
    """Tests for calculate_theoretical_equipment_metrics."""

    def test_consistent_when_only_breakdowns(self, calc, window, two_breakdowns):
        """Observed and theoretical availability agree without maintenance."""
        result = calc.calculate_theoretical_equipment_metrics(
            "eq-001", two_breakdowns, [], *window,
        )
        assert result.observed_mtbf == pytest.approx(356.0)
        assert result.observed_mttr == pytest.approx(4.0)
        assert result.theoretical_availability == pytest.approx(98.8888889)
        assert result.consistency_check.is_consistent is True
        assert result.consistency_check.deviation == pytest.approx(0.0, abs=1e-9)

    def test_inconsistent_with_heavy_maintenance(self, calc, window, two_breakdowns):
        """Maintenance downtime invisible to MTTR breaks the identity."""
        tasks = [_task(_utc(2025, 1, 10), actual=100.0)]
        result = calc.calculate_theoretical_equipment_metrics(
            "eq-001", two_breakdowns, tasks, *window,
        )
        assert result.observed_availability == pytest.approx(85.0)
        assert result.consistency_check.is_consistent is False
        assert result.consistency_check.deviation == pytest.approx(13.8888889)

    def test_no_breakdowns(self, calc, window):
        """Without repairs the theoretical availability is 0."""
        result = calc.calculate_theoretical_equipment_metrics("eq-001", [], [], *window)
        assert result.theoretical_availability == 0.0
        assert result.consistency_check.deviation == pytest.approx(100.0)


# ==============================================================================
# Equipment and fleet metrics
# ==============================================================================


class TestEquipmentMetrics:
    """Tests for calculate_equipment_metrics."""

    def test_bundles_indicators(self, calc, window, pump, two_breakdowns):
        """All four indicators plus identity and period label."""
        tasks = [_task(_utc(2025, 1, 10), estimated=2.0)]
        result = calc.calculate_equipment_metrics(pump, two_breakdowns, tasks, *window)

        assert result.equipment_id == "eq-001"
        assert result.equipment_name == "Feed pump"
        assert result.mtbf == pytest.approx(356.0)
        assert result.mttr == pytest.approx(4.0)
        assert result.availability == pytest.approx(710.0 / 720.0 * 100.0)
        assert result.intervention_count == 3
        assert result.period == "2025-01-01 - 2025-01-31"


class TestGlobalMetrics:
    """Tests for calculate_global_metrics."""

    def test_unweighted_mean(self, calc, window, pump, exchanger, two_breakdowns):
        """Each unit weighs the same; interventions are summed."""
        result = calc.calculate_global_metrics(
            [pump, exchanger], two_breakdowns, [], *window,
        )
        assert result.mtbf == pytest.approx((356.0 + 720.0) / 2)
        assert result.mttr == pytest.approx(2.0)
        assert result.availability == pytest.approx((712.0 / 720.0 * 100.0 + 100.0) / 2)
        assert result.intervention_count == 2

    def test_empty_fleet(self, calc, window):
        """No equipment yields all zeros."""
        result = calc.calculate_global_metrics([], [], [], *window)
        assert result.mtbf == 0.0
        assert result.mttr == 0.0
        assert result.availability == 0.0
        assert result.intervention_count == 0


# ==============================================================================
# Historical data
# ==============================================================================


class TestGenerateHistoricalData:
    """Tests for generate_historical_data."""

    def test_months_oldest_first(self, calc, pump, two_breakdowns, now):
        """Three months ending with the current month."""
        data = calc.generate_historical_data([pump], two_breakdowns, [], months_back=3, now=now)
        assert [p.month for p in data] == ["Jan 2025", "Feb 2025", "Mar 2025"]

    def test_month_bounds(self, calc, pump, now):
        """First day to last day of month, both at midnight UTC."""
        data = calc.generate_historical_data([pump], [], [], months_back=2, now=now)
        feb = data[0]
        assert feb.period_start == _utc(2025, 2, 1)
        assert feb.period_end == _utc(2025, 2, 28)
        assert feb.mtbf == 27 * 24.0

    def test_values_rounded(self, calc, pump, two_breakdowns, now):
        """Values are rounded to one decimal."""
        data = calc.generate_historical_data([pump], two_breakdowns, [], months_back=3, now=now)
        jan = data[0]
        assert jan.mtbf == 356.0
        assert jan.mttr == 4.0
        assert jan.availability == 98.9
        assert jan.interventions == 2

    def test_default_depth_uses_config_and_clock(self, calc, pump):
        """Twelve months by default, ending with the clock's month."""
        data = calc.generate_historical_data([pump], [], [])
        assert len(data) == 12
        assert data[0].month == "Apr 2024"
        assert data[-1].month == "Mar 2025"

    def test_crosses_year_boundary(self, calc, pump):
        """December of the previous year precedes January."""
        data = calc.generate_historical_data(
            [pump], [], [], months_back=2, now=_utc(2025, 1, 3),
        )
        assert [p.month for p in data] == ["Dec 2024", "Jan 2025"]
        assert data[0].period_end == _utc(2024, 12, 31)


# ==============================================================================
# Status and trend
# ==============================================================================


class TestPerformanceStatus:
    """Tests for get_performance_status."""

    @pytest.mark.parametrize("availability,expected", [
        (100.0, PerformanceStatus.EXCELLENT),
        (95.0, PerformanceStatus.EXCELLENT),
        (94.9, PerformanceStatus.GOOD),
        (90.0, PerformanceStatus.GOOD),
        (85.0, PerformanceStatus.WARNING),
        (80.0, PerformanceStatus.WARNING),
        (79.9, PerformanceStatus.CRITICAL),
        (0.0, PerformanceStatus.CRITICAL),
    ])
    def test_ladder(self, calc, availability, expected):
        assert calc.get_performance_status(availability) == expected


class TestCalculateTrend:
    """Tests for calculate_trend."""

    @pytest.mark.parametrize("current,previous,expected", [
        (104.0, 100.0, TrendDirection.STABLE),
        (96.0, 100.0, TrendDirection.STABLE),
        (110.0, 100.0, TrendDirection.UP),
        (90.0, 100.0, TrendDirection.DOWN),
        (-10.0, -5.0, TrendDirection.UP),
    ])
    def test_direction(self, calc, current, previous, expected):
        """Relative change under 5% is stable."""
        assert calc.calculate_trend(current, previous) == expected

    def test_zero_previous_is_none(self, calc):
        """No relative change can be computed from zero."""
        assert calc.calculate_trend(50.0, 0.0) == TrendDirection.NONE
        assert calc.calculate_trend(0.0, 0.0) == TrendDirection.NONE


class TestDefaults:
    """Construction without explicit configuration."""

    def test_uses_global_config(self):
        """Without config the singleton is used."""
        calc = ReliabilityCalculator()
        assert calc.get_performance_status(95.0) == PerformanceStatus.EXCELLENT

    def test_equipment_types_are_not_filtered(self, calc, window):
        """Any equipment type is measured."""
        tower = Equipment(id="ct-1", name="Tower", type=EquipmentType.COOLING_TOWER)
        result = calc.calculate_equipment_metrics(tower, [], [], *window)
        assert result.mtbf == 720.0
