"""Per-user task store backed by a git-versioned JSON document.

Every mutation rewrites ``tasks.json`` atomically, commits it, and appends an
activity log entry. A failed commit restores the previous document and
surfaces ``GIT_ERROR``. Writes under one data root are serialized so that
concurrent updates to different tasks never overwrite each other; updates to
the same task are last-write-wins.
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable

from chaosmatrix.errors import ToolError
from chaosmatrix.models import (
    Category,
    Recurrence,
    Task,
    TaskDraft,
    clamp_duration,
    clamp_percent,
)
from chaosmatrix.tool_activity import _append_activity_log, _build_activity_entry
from chaosmatrix.tool_constants import (
    TASK_IMMUTABLE_FIELDS,
    TASK_MUTABLE_FIELDS,
    TASKS_FILENAME,
)
from chaosmatrix.tool_git import (
    _commit_task_change,
    _ensure_git_repo,
    _rollback_task_change,
)
from chaosmatrix.tool_payload import _read_date
from chaosmatrix.tool_utils import _atomic_write

logger = logging.getLogger(__name__)

_ROOT_LOCKS: dict[Path, threading.Lock] = {}
_ROOT_LOCKS_GUARD = threading.Lock()

_FIELD_NAMES = {"clientName": "client_name", "targetDate": "target_date"}


def _root_lock(data_root: Path) -> threading.Lock:
    with _ROOT_LOCKS_GUARD:
        return _ROOT_LOCKS.setdefault(data_root.resolve(), threading.Lock())


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TaskStore:
    def __init__(
        self, data_root: Path, clock: Callable[[], datetime] | None = None
    ) -> None:
        self.data_root = data_root
        self.path = data_root / TASKS_FILENAME
        self._clock = clock or _utc_now

    def list_all(self) -> list[Task]:
        """All tasks, newest first."""
        tasks = self._load()
        return sorted(
            tasks,
            key=lambda task: task.created_at or datetime.min.replace(tzinfo=timezone.utc),
            reverse=True,
        )

    def get(self, task_id: str) -> Task:
        for task in self._load():
            if task.id == task_id:
                return task
        raise ToolError("TASK_NOT_FOUND", "Task ID not found.", {"id": task_id})

    def create(self, draft: TaskDraft) -> tuple[Task, str]:
        tasks, commit_sha = self.bulk_create([draft], operation="create_task")
        return tasks[0], commit_sha

    def bulk_create(
        self, drafts: Iterable[TaskDraft], operation: str = "bulk_create_tasks"
    ) -> tuple[list[Task], str]:
        drafts = [_enforce_client_invariant(draft) for draft in drafts]
        if not drafts:
            raise ToolError(
                "INVALID_VALUE",
                "At least one task is required.",
                {"tasks": 0},
            )
        created_at = self._clock()
        created = [
            Task.from_draft(draft, uuid.uuid4().hex, created_at) for draft in drafts
        ]
        with _root_lock(self.data_root):
            tasks = self._load()
            commit_sha = self._write(
                tasks + created,
                operation,
                f"create {len(created)} task(s)",
                [task.id for task in created],
            )
        logger.info("created %s task(s) in %s", len(created), self.data_root)
        return created, commit_sha

    def update(self, task_id: str, fields: dict[str, Any]) -> tuple[Task, str]:
        changes = coerce_task_fields(fields, partial=True)
        with _root_lock(self.data_root):
            tasks = self._load()
            for index, task in enumerate(tasks):
                if task.id == task_id:
                    updated = _enforce_client_invariant(replace(task, **changes))
                    tasks[index] = updated
                    break
            else:
                raise ToolError(
                    "TASK_NOT_FOUND", "Task ID not found.", {"id": task_id}
                )
            commit_sha = self._write(
                tasks, "update_task", f"update task {task_id}", [task_id]
            )
        logger.info("updated task %s fields=%s", task_id, sorted(changes))
        return updated, commit_sha

    def delete(self, task_id: str) -> tuple[Task, str]:
        with _root_lock(self.data_root):
            tasks = self._load()
            remaining = [task for task in tasks if task.id != task_id]
            if len(remaining) == len(tasks):
                raise ToolError(
                    "TASK_NOT_FOUND", "Task ID not found.", {"id": task_id}
                )
            removed = next(task for task in tasks if task.id == task_id)
            commit_sha = self._write(
                remaining, "delete_task", f"delete task {task_id}", [task_id]
            )
        logger.info("deleted task %s", task_id)
        return removed, commit_sha

    def _load(self) -> list[Task]:
        if not self.path.exists():
            return []
        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
            return [Task.from_dict(item) for item in document.get("tasks", [])]
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.warning("task document %s is unreadable: %s", self.path, exc)
            raise ToolError(
                "STORE_CORRUPT",
                "Task document could not be read.",
                {"path": TASKS_FILENAME},
            ) from exc

    def _write(
        self,
        tasks: list[Task],
        operation: str,
        summary: str,
        task_ids: list[str],
    ) -> str:
        self.data_root.mkdir(parents=True, exist_ok=True)
        repo = _ensure_git_repo(self.data_root)
        original = (
            self.path.read_text(encoding="utf-8") if self.path.exists() else None
        )
        content = json.dumps(
            {"tasks": [task.to_dict() for task in tasks]}, indent=2, ensure_ascii=False
        )
        _atomic_write(self.path, content + "\n")
        relative_path = self.path.relative_to(self.data_root)
        try:
            commit_sha = _commit_task_change(repo, relative_path, operation)
        except Exception as exc:
            _rollback_task_change(repo, self.path, relative_path, original)
            raise ToolError(
                "GIT_ERROR",
                "Git commit failed; mutation rolled back.",
                {"path": TASKS_FILENAME, "operation": operation},
            ) from exc
        entry = _build_activity_entry(
            operation, relative_path, summary, commit_sha, task_ids
        )
        _append_activity_log(self.data_root, entry)
        return commit_sha


def draft_from_fields(fields: dict[str, Any]) -> TaskDraft:
    """Validate a full task payload at the store boundary."""
    if "title" not in fields:
        raise ToolError("MISSING_TITLE", "title is required.", {"fields": ["title"]})
    values = coerce_task_fields(fields, partial=False)
    values.setdefault("impact", 50.0)
    values.setdefault("effort", 50.0)
    return _enforce_client_invariant(TaskDraft(**values))


def coerce_task_fields(fields: dict[str, Any], *, partial: bool) -> dict[str, Any]:
    """Validate camelCase task fields and return dataclass keyword arguments."""
    if not isinstance(fields, dict):
        raise ToolError(
            "INVALID_TYPE", "fields must be an object.", {"fields": str(fields)}
        )
    immutable = sorted(set(fields) & TASK_IMMUTABLE_FIELDS)
    if immutable:
        raise ToolError(
            "IMMUTABLE_FIELD",
            "id and createdAt cannot be changed.",
            {"fields": immutable},
        )
    unknown = sorted(set(fields) - TASK_MUTABLE_FIELDS)
    if unknown:
        raise ToolError(
            "UNKNOWN_FIELD", "Unknown fields are not allowed.", {"fields": unknown}
        )
    if partial and not fields:
        raise ToolError(
            "MISSING_FIELDS", "fields must not be empty.", {"fields": []}
        )

    values: dict[str, Any] = {}
    for key, value in fields.items():
        values[_FIELD_NAMES.get(key, key)] = _coerce_field(key, value)
    return values


def _coerce_field(key: str, value: Any) -> Any:
    if key == "title":
        if not isinstance(value, str) or not value.strip():
            raise ToolError(
                "INVALID_VALUE", "title must be a non-empty string.", {"title": str(value)}
            )
        return value.strip()
    if key in {"impact", "effort"}:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ToolError("INVALID_TYPE", f"{key} must be a number.", {key: str(value)})
        return clamp_percent(float(value))
    if key in {"urgency", "completed"}:
        if not isinstance(value, bool):
            raise ToolError("INVALID_TYPE", f"{key} must be a boolean.", {key: str(value)})
        return value
    if key == "duration":
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, int):
            raise ToolError(
                "INVALID_TYPE", "duration must be an integer or null.", {key: str(value)}
            )
        return clamp_duration(value)
    if key == "tags":
        if not isinstance(value, list) or not all(isinstance(tag, str) for tag in value):
            raise ToolError(
                "INVALID_TYPE", "tags must be a list of strings.", {key: str(value)}
            )
        tags: list[str] = []
        for tag in value:
            cleaned = tag.strip().lstrip("#")
            if cleaned and cleaned not in tags:
                tags.append(cleaned)
        return tuple(tags)
    if key == "category":
        try:
            return Category(value)
        except ValueError:
            raise ToolError(
                "INVALID_VALUE",
                "category must be one of: own, client.",
                {key: str(value)},
            )
    if key == "recurrence":
        try:
            return Recurrence(value)
        except ValueError:
            raise ToolError(
                "INVALID_VALUE",
                "recurrence must be one of: none, daily, weekdays, weekly, monthly.",
                {key: str(value)},
            )
    if key == "clientName":
        if value is None:
            return None
        if not isinstance(value, str):
            raise ToolError(
                "INVALID_TYPE", "clientName must be a string or null.", {key: str(value)}
            )
        return value.strip() or None
    if key == "targetDate":
        if value is None:
            return None
        return _read_date(value, key)
    raise ToolError("UNKNOWN_FIELD", "Unknown fields are not allowed.", {"fields": [key]})


def _enforce_client_invariant(draft: TaskDraft) -> TaskDraft:
    if draft.category is Category.CLIENT:
        if not draft.client_name:
            raise ToolError(
                "CLIENT_NAME_REQUIRED",
                "clientName is required when category is client.",
                {"category": draft.category.value},
            )
        return draft
    if draft.client_name is not None:
        return replace(draft, client_name=None)
    return draft
