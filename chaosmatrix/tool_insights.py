"""Summary endpoints: task statistics and the creation timeline."""

from __future__ import annotations

from datetime import tzinfo
from typing import Any, Iterable

from fastapi import Request

from chaosmatrix.errors import success_response
from chaosmatrix.models import Task
from chaosmatrix.tool_constants import HIGH_IMPACT_THRESHOLD, QUICK_WIN_EFFORT_CEILING
from chaosmatrix.tool_payload import _ensure_payload_dict, _reject_unknown_fields
from chaosmatrix.tool_router import tool_router
from chaosmatrix.tool_tasks import (
    FILTER_FIELDS,
    filter_tasks,
    get_request_store,
    get_request_timezone,
)


def summarize_tasks(tasks: Iterable[Task]) -> dict[str, int]:
    task_list = list(tasks)
    completed = sum(1 for task in task_list if task.completed)
    return {
        "total": len(task_list),
        "completed": completed,
        "pending": len(task_list) - completed,
        "highImpact": sum(
            1 for task in task_list if task.impact > HIGH_IMPACT_THRESHOLD
        ),
        "quickWins": sum(
            1
            for task in task_list
            if task.impact > HIGH_IMPACT_THRESHOLD
            and task.effort < QUICK_WIN_EFFORT_CEILING
        ),
        "urgent": sum(1 for task in task_list if task.urgency),
    }


def group_by_created_day(
    tasks: Iterable[Task], tz: tzinfo | None = None
) -> list[dict[str, Any]]:
    """Group tasks by the calendar day they were created, newest day first."""
    ordered = sorted(
        (task for task in tasks if task.created_at is not None),
        key=lambda task: task.created_at,
        reverse=True,
    )
    groups: list[dict[str, Any]] = []
    for task in ordered:
        created_at = task.created_at
        if tz is not None and created_at.tzinfo is not None:
            created_at = created_at.astimezone(tz)
        day = created_at.date().isoformat()
        if not groups or groups[-1]["date"] != day:
            groups.append({"date": day, "tasks": []})
        groups[-1]["tasks"].append(task.to_dict())
    return groups


@tool_router.post("/tool:task_stats")
def task_stats(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, FILTER_FIELDS)

    tasks = filter_tasks(get_request_store(request).list_all(), payload)
    return success_response({"stats": summarize_tasks(tasks)})


@tool_router.post("/tool:timeline")
def timeline(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Tasks grouped by creation day."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, FILTER_FIELDS)

    tasks = filter_tasks(get_request_store(request).list_all(), payload)
    groups = group_by_created_day(tasks, get_request_timezone(request))
    return success_response({"groups": groups})
