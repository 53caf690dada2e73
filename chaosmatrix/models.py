"""Task record shapes shared by the parser, calendar, matrix and store.

Records are immutable. Every component that changes a field returns a new
record built with ``dataclasses.replace``; only the task store persists them.
JSON keys are camelCase to match the tool envelopes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

PERCENT_MIN = 0.0
PERCENT_MAX = 100.0


class Category(str, Enum):
    OWN = "own"
    CLIENT = "client"


class Recurrence(str, Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKDAYS = "weekdays"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


def clamp_percent(value: float) -> float:
    """Clamp an impact/effort value into [0, 100]."""
    return max(PERCENT_MIN, min(PERCENT_MAX, value))


def clamp_duration(value: int | None) -> int | None:
    if value is None:
        return None
    return max(0, int(value))


def parse_recurrence(value: Any) -> Recurrence:
    """Map a raw recurrence value to the enum; unknown values mean no recurrence."""
    if isinstance(value, Recurrence):
        return value
    try:
        return Recurrence(str(value).strip().lower())
    except ValueError:
        return Recurrence.NONE


def _unique_tags(tags: Any) -> tuple[str, ...]:
    seen: list[str] = []
    for tag in tags or ():
        if tag not in seen:
            seen.append(tag)
    return tuple(seen)


def _parse_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _parse_created_at(value: Any) -> datetime | None:
    """Stored timestamps without an offset are taken as UTC."""
    if not value:
        return None
    created_at = datetime.fromisoformat(str(value))
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return created_at


@dataclass(frozen=True)
class TaskDraft:
    """An unpersisted task, as produced by the chaos parser."""

    title: str
    impact: float
    effort: float
    urgency: bool = False
    duration: int | None = None
    tags: tuple[str, ...] = field(default_factory=tuple)
    completed: bool = False
    category: Category = Category.OWN
    client_name: str | None = None
    target_date: date | None = None
    recurrence: Recurrence = Recurrence.NONE

    def draft_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "impact": self.impact,
            "effort": self.effort,
            "urgency": self.urgency,
            "duration": self.duration,
            "tags": list(self.tags),
            "completed": self.completed,
            "category": self.category.value,
            "clientName": self.client_name,
            "targetDate": self.target_date.isoformat() if self.target_date else None,
            "recurrence": self.recurrence.value,
        }

    def to_dict(self) -> dict[str, Any]:
        return self.draft_dict()

    @staticmethod
    def draft_kwargs(data: dict[str, Any]) -> dict[str, Any]:
        return {
            "title": data["title"],
            "impact": clamp_percent(float(data.get("impact", 50))),
            "effort": clamp_percent(float(data.get("effort", 50))),
            "urgency": bool(data.get("urgency", False)),
            "duration": clamp_duration(data.get("duration")),
            "tags": _unique_tags(data.get("tags")),
            "completed": bool(data.get("completed", False)),
            "category": Category(data.get("category") or Category.OWN.value),
            "client_name": data.get("clientName"),
            "target_date": _parse_date(data.get("targetDate")),
            "recurrence": parse_recurrence(data.get("recurrence", "none")),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TaskDraft":
        return cls(**cls.draft_kwargs(data))


@dataclass(frozen=True)
class Task(TaskDraft):
    """A persisted task; ``id`` and ``created_at`` are assigned by the store."""

    id: str = ""
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        data = {"id": self.id}
        data.update(self.draft_dict())
        data["createdAt"] = self.created_at.isoformat() if self.created_at else None
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        return cls(
            **cls.draft_kwargs(data),
            id=str(data["id"]),
            created_at=_parse_created_at(data.get("createdAt")),
        )

    @classmethod
    def from_draft(cls, draft: TaskDraft, task_id: str, created_at: datetime) -> "Task":
        return cls(
            **{name: getattr(draft, name) for name in TaskDraft.__dataclass_fields__},
            id=task_id,
            created_at=created_at,
        )
