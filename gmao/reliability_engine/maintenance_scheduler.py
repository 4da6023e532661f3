# -*- coding: utf-8 -*-
"""
Maintenance Scheduler Engine

Turns the maintenance task log into due-date alerts and recurring work
orders:

    - Due alerts for scheduled tasks, classified by whole days until due:
        < 0               overdue      / urgent
        == 0              due today    / high
        <= due_soon_days  due soon     / high
        <= upcoming_days  upcoming     / medium
      Tasks further out raise no alert.
    - Recurring tasks: once a completed task with a frequency reaches its
      next due date, a new scheduled task is generated for that date.
    - Breakdown severity to notification priority mapping.

The scheduler never mutates its input. Generated tasks are new frozen
records produced with ``model_copy``.

Example:
    >>> from gmao.reliability_engine.maintenance_scheduler import MaintenanceScheduler
    >>> scheduler = MaintenanceScheduler()
    >>> alerts = scheduler.check_maintenance_due(tasks)
"""

from __future__ import annotations

import logging
import math
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from gmao.reliability_engine.models import (
    BreakdownSeverity,
    MaintenanceDueAlert,
    MaintenanceDueStatus,
    MaintenanceTask,
    NotificationPriority,
    TaskFrequency,
    TaskStatus,
    add_months,
    to_utc,
)

logger = logging.getLogger(__name__)

__all__ = [
    "MaintenanceScheduler",
]


_SECONDS_PER_DAY = 86400.0

_FREQUENCY_MONTHS: Dict[TaskFrequency, int] = {
    TaskFrequency.MONTHLY: 1,
    TaskFrequency.QUARTERLY: 3,
    TaskFrequency.ANNUALLY: 12,
}

_FREQUENCY_DAYS: Dict[TaskFrequency, int] = {
    TaskFrequency.DAILY: 1,
    TaskFrequency.WEEKLY: 7,
}

_SEVERITY_PRIORITY: Dict[BreakdownSeverity, NotificationPriority] = {
    BreakdownSeverity.CRITICAL: NotificationPriority.URGENT,
    BreakdownSeverity.HIGH: NotificationPriority.HIGH,
    BreakdownSeverity.MEDIUM: NotificationPriority.MEDIUM,
    BreakdownSeverity.LOW: NotificationPriority.LOW,
}


def _utcnow() -> datetime:
    """Return current UTC datetime with microseconds zeroed."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def _generate_id(prefix: str = "task") -> str:
    """Generate a unique identifier of the form ``{prefix}-{hex12}``."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def _whole_days(delta: timedelta) -> int:
    """Round a signed interval up to whole days."""
    return math.ceil(delta.total_seconds() / _SECONDS_PER_DAY)


class MaintenanceScheduler:
    """Due-date alerting and recurring-task generation.

    Attributes:
        _config: ReliabilityEngineConfig holding the due windows.
        _clock: Callable returning the current UTC datetime.
    """

    def __init__(
        self,
        config: Any = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        if config is None:
            from gmao.reliability_engine.config import get_config
            self._config = get_config()
        else:
            self._config = config
        self._clock = clock or _utcnow

    def _now(self, now: Optional[datetime]) -> datetime:
        return to_utc(now) if now is not None else to_utc(self._clock())

    # ------------------------------------------------------------------
    # 1. Due-date alerts
    # ------------------------------------------------------------------

    def days_until_due(
        self,
        task: MaintenanceTask,
        now: Optional[datetime] = None,
    ) -> int:
        """Whole days until the task's scheduled date, rounded up.

        Negative when the task is late.
        """
        return _whole_days(task.scheduled_date - self._now(now))

    def classify_due(
        self,
        task: MaintenanceTask,
        now: Optional[datetime] = None,
    ) -> Optional[MaintenanceDueAlert]:
        """Build the due alert for one task, or None when it is not close."""
        days = self.days_until_due(task, now)
        label = task.title or task.id

        if days < 0:
            status = MaintenanceDueStatus.OVERDUE
            priority = NotificationPriority.URGENT
            message = (
                f'Task "{label}" was due on {task.scheduled_date:%Y-%m-%d}'
            )
        elif days == 0:
            status = MaintenanceDueStatus.DUE_TODAY
            priority = NotificationPriority.HIGH
            message = f'Task "{label}" is due today'
        elif days <= self._config.due_soon_days:
            status = MaintenanceDueStatus.DUE_SOON
            priority = NotificationPriority.HIGH
            message = f'Task "{label}" is due in {days} day(s)'
        elif days <= self._config.upcoming_days:
            status = MaintenanceDueStatus.UPCOMING
            priority = NotificationPriority.MEDIUM
            message = f'Task "{label}" is due in {days} days'
        else:
            return None

        return MaintenanceDueAlert(
            task_id=task.id,
            equipment_id=task.equipment_id,
            title=task.title,
            status=status,
            priority=priority,
            days_until_due=days,
            scheduled_date=task.scheduled_date,
            message=message,
        )

    def check_maintenance_due(
        self,
        tasks: Sequence[MaintenanceTask],
        now: Optional[datetime] = None,
    ) -> List[MaintenanceDueAlert]:
        """Due alerts for every scheduled task, most urgent first.

        Tasks in progress, completed or cancelled are ignored.
        """
        reference = self._now(now)
        alerts: List[MaintenanceDueAlert] = []
        for task in tasks:
            if task.status != TaskStatus.SCHEDULED:
                continue
            alert = self.classify_due(task, reference)
            if alert is not None:
                alerts.append(alert)

        alerts.sort(key=lambda a: a.days_until_due)
        logger.debug(
            "check_maintenance_due: %d alerts from %d tasks",
            len(alerts), len(tasks),
        )
        return alerts

    # ------------------------------------------------------------------
    # 2. Recurring tasks
    # ------------------------------------------------------------------

    @staticmethod
    def next_due_date(task: MaintenanceTask) -> Optional[datetime]:
        """Next occurrence of a completed recurring task.

        Returns:
            ``completed_date`` shifted by the task frequency, or None when
            the task has no frequency or no completion date.
        """
        if task.frequency is None or task.completed_date is None:
            return None
        if task.frequency in _FREQUENCY_DAYS:
            return task.completed_date + timedelta(
                days=_FREQUENCY_DAYS[task.frequency],
            )
        return add_months(task.completed_date, _FREQUENCY_MONTHS[task.frequency])

    def generate_recurring_tasks(
        self,
        tasks: Sequence[MaintenanceTask],
        now: Optional[datetime] = None,
    ) -> List[MaintenanceTask]:
        """Generate the next occurrence of every completed recurring task
        that has come due.

        The new task is scheduled at midnight UTC of the next due date,
        with a fresh id and cleared completion fields. An occurrence that
        already exists in ``tasks`` (same equipment, title and scheduled
        date) is not generated again.

        Args:
            tasks: Maintenance task log.
            now: Reference time, defaults to the injected clock.

        Returns:
            Newly generated scheduled tasks. ``tasks`` is left unchanged.
        """
        reference = self._now(now)
        existing = {
            (t.equipment_id, t.title, t.scheduled_date) for t in tasks
        }

        generated: List[MaintenanceTask] = []
        for task in tasks:
            if task.status != TaskStatus.COMPLETED:
                continue
            next_due = self.next_due_date(task)
            if next_due is None or _whole_days(next_due - reference) > 0:
                continue

            scheduled = next_due.replace(hour=0, minute=0, second=0, microsecond=0)
            key = (task.equipment_id, task.title, scheduled)
            if key in existing:
                continue
            existing.add(key)

            generated.append(task.model_copy(update={
                "id": _generate_id(),
                "scheduled_date": scheduled,
                "status": TaskStatus.SCHEDULED,
                "completed_date": None,
                "actual_duration": None,
            }))

        if generated:
            logger.info(
                "Generated %d recurring maintenance task(s)", len(generated),
            )
        return generated

    # ------------------------------------------------------------------
    # 3. breakdown_priority
    # ------------------------------------------------------------------

    @staticmethod
    def breakdown_priority(severity: BreakdownSeverity) -> NotificationPriority:
        """Notification priority for a reported breakdown."""
        return _SEVERITY_PRIORITY.get(severity, NotificationPriority.MEDIUM)
