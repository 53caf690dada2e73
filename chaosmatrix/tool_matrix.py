"""Priority map endpoints: drag-end persistence and task placement."""

from __future__ import annotations

from typing import Any

from fastapi import Request

from chaosmatrix.coordinates import (
    CanvasRect,
    MatrixPoint,
    Viewport,
    matrix_to_screen,
    quadrant,
    screen_to_matrix,
)
from chaosmatrix.errors import success_response
from chaosmatrix.tool_payload import (
    _ensure_payload_dict,
    _read_number,
    _read_object,
    _reject_unknown_fields,
    _require_fields,
    _require_task_id,
)
from chaosmatrix.tool_router import tool_router
from chaosmatrix.tool_tasks import get_request_store


def _read_canvas(payload: dict[str, Any]) -> CanvasRect:
    canvas = _read_object(payload, "canvas")
    _reject_unknown_fields(canvas, {"left", "top", "width", "height"})
    return CanvasRect(
        left=_read_number(canvas, "left", 0),
        top=_read_number(canvas, "top", 0),
        width=_read_number(canvas, "width"),
        height=_read_number(canvas, "height"),
    )


def _read_viewport(payload: dict[str, Any]) -> Viewport:
    if "viewport" not in payload:
        return Viewport()
    viewport = _read_object(payload, "viewport")
    _reject_unknown_fields(viewport, {"panX", "panY", "zoom"})
    return Viewport(
        pan_x=_read_number(viewport, "panX", 0),
        pan_y=_read_number(viewport, "panY", 0),
        zoom=_read_number(viewport, "zoom", 1),
    )


@tool_router.post("/tool:drop_task")
def drop_task(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Persist a task's new (effort, impact) after a drag ends."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"id", "pointer", "canvas", "viewport"})
    _require_fields(payload, ["id", "pointer", "canvas"])

    task_id = _require_task_id(payload)
    pointer = _read_object(payload, "pointer")
    _reject_unknown_fields(pointer, {"x", "y"})
    pointer_x = _read_number(pointer, "x")
    pointer_y = _read_number(pointer, "y")
    rect = _read_canvas(payload)
    viewport = _read_viewport(payload)

    store = get_request_store(request)
    task = store.get(task_id)
    previous = MatrixPoint(effort=task.effort, impact=task.impact)
    point = screen_to_matrix(pointer_x, pointer_y, rect, viewport, previous)
    if point == previous:
        return success_response(
            {"task": task.to_dict(), "moved": False, "commitSha": None}
        )

    updated, commit_sha = store.update(task_id, point.to_dict())
    return success_response(
        {"task": updated.to_dict(), "moved": True, "commitSha": commit_sha}
    )


@tool_router.post("/tool:place_tasks")
def place_tasks(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Screen position and quadrant of every task for the current viewport."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"canvas", "viewport"})
    _require_fields(payload, ["canvas"])

    rect = _read_canvas(payload)
    viewport = _read_viewport(payload)
    placements = []
    for task in get_request_store(request).list_all():
        point = MatrixPoint(effort=task.effort, impact=task.impact)
        x, y = matrix_to_screen(point, rect, viewport)
        placements.append(
            {"id": task.id, "x": x, "y": y, "quadrant": quadrant(point)}
        )
    return success_response({"placements": placements})
