"""Payload validation helpers for tool endpoints."""

from __future__ import annotations

from datetime import date
from typing import Any

from chaosmatrix.errors import ToolError


def _ensure_payload_dict(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise ToolError(
            "INVALID_TYPE",
            "Payload must be an object.",
            {"type": type(payload).__name__},
        )
    return payload


def _reject_unknown_fields(payload: dict[str, Any], allowed_fields: set[str]) -> None:
    unknown_fields = sorted(set(payload) - allowed_fields)
    if unknown_fields:
        raise ToolError(
            "UNKNOWN_FIELD",
            "Unknown fields are not allowed.",
            {"fields": unknown_fields},
        )


def _require_fields(payload: dict[str, Any], required: list[str]) -> None:
    missing = [name for name in required if name not in payload]
    if missing:
        raise ToolError(
            "MISSING_FIELDS",
            f"{' and '.join(required)} {'is' if len(required) == 1 else 'are'} required.",
            {"fields": missing},
        )


def _require_task_id(payload: dict[str, Any]) -> str:
    _require_fields(payload, ["id"])
    task_id = payload["id"]
    if not isinstance(task_id, str) or not task_id.strip():
        raise ToolError(
            "INVALID_TYPE",
            "id must be a non-empty string.",
            {"id": str(task_id)},
        )
    return task_id.strip()


def _read_number(payload: dict[str, Any], key: str, default: float | None = None) -> float:
    value = payload.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ToolError(
            "INVALID_TYPE",
            f"{key} must be a number.",
            {key: str(value)},
        )
    return float(value)


def _read_object(payload: dict[str, Any], key: str) -> dict[str, Any]:
    value = payload.get(key)
    if not isinstance(value, dict):
        raise ToolError(
            "INVALID_TYPE",
            f"{key} must be an object.",
            {key: str(value)},
        )
    return value


def _read_date(value: Any, key: str) -> date:
    if not isinstance(value, str):
        raise ToolError(
            "INVALID_TYPE",
            f"{key} must be an ISO date string.",
            {key: str(value)},
        )
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ToolError(
            "INVALID_DATE",
            f"{key} must be an ISO date (YYYY-MM-DD).",
            {key: value},
        )
