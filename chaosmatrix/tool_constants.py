"""Shared constants for tool endpoints."""

from __future__ import annotations

ACTIVITY_LOG_FILENAME = "activity.log"
TASKS_FILENAME = "tasks.json"
TASK_MUTABLE_FIELDS = {
    "title",
    "impact",
    "effort",
    "urgency",
    "duration",
    "tags",
    "completed",
    "category",
    "clientName",
    "targetDate",
    "recurrence",
}
TASK_IMMUTABLE_FIELDS = {"id", "createdAt"}
CATEGORY_FILTERS = {"all", "own", "client"}
STATUS_FILTERS = {"all", "pending", "urgent", "completed"}
HIGH_IMPACT_THRESHOLD = 70
QUICK_WIN_EFFORT_CEILING = 40
