"""Tool handler registration."""

# ruff: noqa: F401

from __future__ import annotations

from fastapi import FastAPI

from chaosmatrix.tool_constants import ACTIVITY_LOG_FILENAME, TASKS_FILENAME
from chaosmatrix.tool_router import tool_router

# Import modules to register routes with the shared router.
from chaosmatrix import (
    tool_activity,
    tool_calendar,
    tool_chaos,
    tool_insights,
    tool_matrix,
    tool_schemas_endpoint,
    tool_tasks,
)

# Re-export endpoints for tests and direct imports.
from chaosmatrix.tool_activity import read_activity_log
from chaosmatrix.tool_calendar import calendar_month, tasks_for_day
from chaosmatrix.tool_chaos import parse_chaos
from chaosmatrix.tool_git import _resolve_git_head
from chaosmatrix.tool_insights import task_stats, timeline
from chaosmatrix.tool_matrix import drop_task, place_tasks
from chaosmatrix.tool_schemas_endpoint import list_tool_schemas
from chaosmatrix.tool_tasks import (
    bulk_create_tasks,
    complete_task,
    create_task,
    delete_task,
    list_clients,
    list_tasks,
    reopen_task,
    update_task,
)


def register_tool_handlers(app: FastAPI) -> None:
    """Attach tool routes to the FastAPI application."""
    app.include_router(tool_router)
