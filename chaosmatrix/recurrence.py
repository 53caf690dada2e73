"""Recurrence engine: which tasks are active on a given calendar day."""

from __future__ import annotations

import calendar
from datetime import date, tzinfo
from typing import Iterable

from chaosmatrix.models import Recurrence, Task, parse_recurrence

SUNDAY = 6


def anchor_date(task: Task, tz: tzinfo | None = None) -> date | None:
    """Return the day a task's recurrence is measured from.

    ``targetDate`` wins; otherwise the calendar date of ``createdAt``, taken in
    ``tz`` when the timestamp carries an offset.
    """
    if task.target_date is not None:
        return task.target_date
    created_at = task.created_at
    if created_at is None:
        return None
    if tz is not None and created_at.tzinfo is not None:
        created_at = created_at.astimezone(tz)
    return created_at.date()


def is_due(task: Task, query_date: date, tz: tzinfo | None = None) -> bool:
    anchor = anchor_date(task, tz)
    if anchor is None or query_date < anchor:
        return False
    if query_date == anchor:
        return True

    rule = parse_recurrence(task.recurrence)
    if rule is Recurrence.DAILY:
        return True
    if rule is Recurrence.WEEKDAYS:
        return query_date.weekday() < 5
    if rule is Recurrence.WEEKLY:
        return query_date.weekday() == anchor.weekday()
    if rule is Recurrence.MONTHLY:
        return query_date.day == _monthly_day(anchor.day, query_date)
    return False


def _monthly_day(anchor_day: int, query_date: date) -> int:
    # Anchors past the end of a short month fire on its last day.
    last_day = calendar.monthrange(query_date.year, query_date.month)[1]
    return min(anchor_day, last_day)


def tasks_for_day(
    tasks: Iterable[Task], day: date, tz: tzinfo | None = None
) -> list[Task]:
    return [task for task in tasks if is_due(task, day, tz)]


def month_grid(
    year: int, month: int, first_weekday: int = SUNDAY
) -> list[list[date | None]]:
    """Weeks of seven cells for a month view; padding cells are ``None``."""
    month_calendar = calendar.Calendar(firstweekday=first_weekday)
    return [
        [day if day.month == month else None for day in week]
        for week in month_calendar.monthdatescalendar(year, month)
    ]


def calendar_month(
    tasks: Iterable[Task], year: int, month: int, tz: tzinfo | None = None
) -> dict[date, list[Task]]:
    task_list = list(tasks)
    days_in_month = calendar.monthrange(year, month)[1]
    schedule: dict[date, list[Task]] = {}
    for day_number in range(1, days_in_month + 1):
        day = date(year, month, day_number)
        schedule[day] = tasks_for_day(task_list, day, tz)
    return schedule
