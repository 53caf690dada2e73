"""Task store tool endpoints."""

from __future__ import annotations

from datetime import timezone, tzinfo
from typing import Any, Iterable

from fastapi import Request

from chaosmatrix.errors import ToolError, success_response
from chaosmatrix.models import Task
from chaosmatrix.task_store import TaskStore, draft_from_fields
from chaosmatrix.tool_constants import CATEGORY_FILTERS, STATUS_FILTERS
from chaosmatrix.tool_payload import (
    _ensure_payload_dict,
    _reject_unknown_fields,
    _require_fields,
    _require_task_id,
)
from chaosmatrix.tool_router import tool_router
from chaosmatrix.user_scope import get_request_data_root

FILTER_FIELDS = {"category", "client", "status", "search"}


def get_request_store(request: Request) -> TaskStore:
    return TaskStore(get_request_data_root(request))


def get_request_timezone(request: Request) -> tzinfo:
    config = getattr(request.app.state, "config", None)
    return getattr(config, "timezone", None) or timezone.utc


@tool_router.post("/tool:create_task")
def create_task(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Create a single task from a full task payload."""
    payload = _ensure_payload_dict(payload)
    draft = draft_from_fields(payload)
    task, commit_sha = get_request_store(request).create(draft)
    return success_response({"task": task.to_dict(), "commitSha": commit_sha})


@tool_router.post("/tool:bulk_create_tasks")
def bulk_create_tasks(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Create several tasks in one commit, preserving their order."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"tasks"})
    _require_fields(payload, ["tasks"])

    items = payload["tasks"]
    if not isinstance(items, list):
        raise ToolError(
            "INVALID_TYPE",
            "tasks must be a list of objects.",
            {"tasks": str(items)},
        )
    drafts = [draft_from_fields(_ensure_payload_dict(item)) for item in items]
    tasks, commit_sha = get_request_store(request).bulk_create(drafts)
    return success_response(
        {"tasks": [task.to_dict() for task in tasks], "commitSha": commit_sha}
    )


@tool_router.post("/tool:update_task")
def update_task(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Update any subset of a task's mutable fields."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"id", "fields"})
    _require_fields(payload, ["id", "fields"])

    task_id = _require_task_id(payload)
    task, commit_sha = get_request_store(request).update(task_id, payload["fields"])
    return success_response({"task": task.to_dict(), "commitSha": commit_sha})


@tool_router.post("/tool:complete_task")
def complete_task(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Mark a task as completed."""
    return _set_completed(payload, request, True)


@tool_router.post("/tool:reopen_task")
def reopen_task(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Mark a completed task as pending again."""
    return _set_completed(payload, request, False)


@tool_router.post("/tool:delete_task")
def delete_task(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"id"})

    task_id = _require_task_id(payload)
    task, commit_sha = get_request_store(request).delete(task_id)
    return success_response({"task": task.to_dict(), "commitSha": commit_sha})


@tool_router.post("/tool:list_tasks")
def list_tasks(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """List tasks newest first, optionally filtered."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, FILTER_FIELDS)

    tasks = filter_tasks(get_request_store(request).list_all(), payload)
    return success_response({"tasks": [task.to_dict() for task in tasks]})


@tool_router.post("/tool:list_clients")
def list_clients(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Distinct client names, in first-seen order."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, set())

    clients: list[str] = []
    for task in get_request_store(request).list_all():
        if task.client_name and task.client_name not in clients:
            clients.append(task.client_name)
    return success_response({"clients": clients})


def _set_completed(
    payload: dict[str, Any], request: Request, completed: bool
) -> dict[str, Any]:
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"id"})

    task_id = _require_task_id(payload)
    task, commit_sha = get_request_store(request).update(
        task_id, {"completed": completed}
    )
    return success_response({"task": task.to_dict(), "commitSha": commit_sha})


def filter_tasks(tasks: Iterable[Task], filters: dict[str, Any]) -> list[Task]:
    """Apply the category/client/status/search filters of the list views."""
    category = _read_choice(filters, "category", CATEGORY_FILTERS)
    status = _read_choice(filters, "status", STATUS_FILTERS)
    client = filters.get("client") or "all"
    search = filters.get("search") or ""
    if not isinstance(client, str) or not isinstance(search, str):
        raise ToolError(
            "INVALID_TYPE",
            "client and search must be strings.",
            {"client": str(client), "search": str(search)},
        )
    search = search.lower()

    selected: list[Task] = []
    for task in tasks:
        if category != "all" and task.category.value != category:
            continue
        if client != "all" and task.client_name != client:
            continue
        if search and search not in task.title.lower():
            continue
        if status == "urgent" and not task.urgency:
            continue
        if status == "completed" and not task.completed:
            continue
        if status == "pending" and task.completed:
            continue
        selected.append(task)
    return selected


def _read_choice(filters: dict[str, Any], key: str, choices: set[str]) -> str:
    value = filters.get(key) or "all"
    if not isinstance(value, str) or value not in choices:
        raise ToolError(
            "INVALID_VALUE",
            f"{key} must be one of: {', '.join(sorted(choices))}.",
            {key: str(value)},
        )
    return value
