"""Activity log: one JSON line per committed task mutation."""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from fastapi import Request

from chaosmatrix.errors import ToolError, success_response
from chaosmatrix.tool_constants import ACTIVITY_LOG_FILENAME
from chaosmatrix.tool_payload import _ensure_payload_dict, _reject_unknown_fields
from chaosmatrix.tool_router import tool_router
from chaosmatrix.user_scope import get_request_data_root

logger = logging.getLogger(__name__)

DEFAULT_ACTIVITY_LIMIT = 50


def _append_activity_log(data_root: Path, entry: dict[str, Any]) -> None:
    line = json.dumps(entry, sort_keys=True, separators=(",", ":"))
    with (data_root / ACTIVITY_LOG_FILENAME).open("a", encoding="utf-8") as log_file:
        log_file.write(line + "\n")
        log_file.flush()
        os.fsync(log_file.fileno())


def _build_activity_entry(
    operation: str,
    relative_path: Path,
    summary: str,
    commit_sha: str,
    task_ids: Iterable[str] = (),
) -> dict[str, Any]:
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "operation": operation,
        "path": relative_path.as_posix(),
        "summary": summary,
        "commitSha": commit_sha,
        "taskIds": list(task_ids),
    }


def _entry_time(entry: dict[str, Any], naive: bool) -> datetime | None:
    try:
        moment = datetime.fromisoformat(entry["timestamp"])
    except (KeyError, TypeError, ValueError):
        return None
    return moment.replace(tzinfo=None) if naive else moment


def _read_activity_entries(
    data_root: Path,
    since: datetime | None,
    limit: int,
    operation: str | None = None,
) -> list[dict[str, Any]]:
    log_path = data_root / ACTIVITY_LOG_FILENAME
    if not log_path.exists():
        return []

    entries: list[dict[str, Any]] = []
    with log_path.open(encoding="utf-8") as log_file:
        for number, line in enumerate(log_file, start=1):
            if not line.strip():
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                logger.warning("skipping malformed activity line %s in %s", number, log_path)
                continue
            if operation and entry.get("operation") != operation:
                continue
            if since is not None:
                moment = _entry_time(entry, naive=since.tzinfo is None)
                if moment is not None and moment < since:
                    continue
            entries.append(entry)
    return entries[-limit:]


@tool_router.post("/tool:read_activity_log")
def read_activity_log(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Most recent activity entries, optionally since a moment or for one operation."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"limit", "since", "operation"})

    limit = payload.get("limit", DEFAULT_ACTIVITY_LIMIT)
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise ToolError(
            "INVALID_TYPE",
            "limit must be a positive integer.",
            {"limit": str(limit)},
        )

    operation = payload.get("operation")
    if operation is not None and not isinstance(operation, str):
        raise ToolError(
            "INVALID_TYPE",
            "operation must be a string.",
            {"operation": str(operation)},
        )

    since = None
    if payload.get("since") is not None:
        try:
            since = datetime.fromisoformat(str(payload["since"]))
        except ValueError:
            raise ToolError(
                "INVALID_DATE",
                "since must be an ISO date-time.",
                {"since": payload["since"]},
            )

    entries = _read_activity_entries(
        get_request_data_root(request), since, limit, operation
    )
    return success_response({"entries": entries})
