"""Calendar endpoints built on the recurrence engine."""

from __future__ import annotations

from typing import Any

from fastapi import Request

from chaosmatrix.errors import ToolError, success_response
from chaosmatrix.recurrence import calendar_month as build_calendar_month
from chaosmatrix.recurrence import month_grid, tasks_for_day as due_tasks_for_day
from chaosmatrix.tool_payload import (
    _ensure_payload_dict,
    _read_date,
    _reject_unknown_fields,
    _require_fields,
)
from chaosmatrix.tool_router import tool_router
from chaosmatrix.tool_tasks import (
    FILTER_FIELDS,
    filter_tasks,
    get_request_store,
    get_request_timezone,
)


@tool_router.post("/tool:tasks_for_day")
def tasks_for_day(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Tasks due on one calendar day."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"date"} | FILTER_FIELDS)
    _require_fields(payload, ["date"])

    day = _read_date(payload["date"], "date")
    filters = {key: payload[key] for key in FILTER_FIELDS if key in payload}
    tasks = filter_tasks(get_request_store(request).list_all(), filters)
    due = due_tasks_for_day(tasks, day, get_request_timezone(request))
    return success_response(
        {"date": day.isoformat(), "tasks": [task.to_dict() for task in due]}
    )


@tool_router.post("/tool:calendar_month")
def calendar_month(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Month grid plus the ids of the tasks due on each day."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"year", "month"} | FILTER_FIELDS)
    _require_fields(payload, ["year", "month"])

    year = payload["year"]
    month = payload["month"]
    if (
        isinstance(year, bool)
        or isinstance(month, bool)
        or not isinstance(year, int)
        or not isinstance(month, int)
    ):
        raise ToolError(
            "INVALID_TYPE",
            "year and month must be integers.",
            {"year": str(year), "month": str(month)},
        )
    if not 1 <= month <= 12 or not 1 <= year <= 9999:
        raise ToolError(
            "INVALID_DATE",
            "month must be 1-12 and year 1-9999.",
            {"year": year, "month": month},
        )

    filters = {key: payload[key] for key in FILTER_FIELDS if key in payload}
    tasks = filter_tasks(get_request_store(request).list_all(), filters)
    schedule = build_calendar_month(tasks, year, month, get_request_timezone(request))
    weeks = [
        [day.isoformat() if day else None for day in week]
        for week in month_grid(year, month)
    ]
    days = {
        day.isoformat(): [task.id for task in due] for day, due in schedule.items()
    }
    return success_response(
        {
            "year": year,
            "month": month,
            "weeks": weeks,
            "days": days,
            "tasks": {task.id: task.to_dict() for task in tasks},
        }
    )
