from datetime import datetime, timezone
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import chaosmatrix.handlers as handlers
from chaosmatrix.models import TaskDraft
from chaosmatrix.task_store import TaskStore
from chaosmatrix.tool_insights import group_by_created_day, summarize_tasks


def _build_request(data_root, tz=None):
    state = SimpleNamespace(data_path=data_root)
    if tz is not None:
        state.config = SimpleNamespace(data_path=data_root, timezone=tz)
    return SimpleNamespace(
        app=SimpleNamespace(state=state),
        state=SimpleNamespace(user_id="test-user-123"),
    )


def _store_at(tmp_path, moment):
    return TaskStore(tmp_path / "users" / "testuser123", clock=lambda: moment)


def test_task_stats_counts(tmp_path):
    handlers.bulk_create_tasks(
        {
            "tasks": [
                {"title": "Quick win", "impact": 85, "effort": 20},
                {"title": "Big bet", "impact": 90, "effort": 80, "urgency": True},
                {"title": "Boundary", "impact": 70, "effort": 10, "completed": True},
                {"title": "Chore", "impact": 30, "effort": 39.9},
            ]
        },
        _build_request(tmp_path),
    )

    payload = handlers.task_stats({}, _build_request(tmp_path))

    assert payload["data"]["stats"] == {
        "total": 4,
        "completed": 1,
        "pending": 3,
        "highImpact": 2,
        "quickWins": 1,
        "urgent": 1,
    }


def test_task_stats_respects_filters(tmp_path):
    handlers.bulk_create_tasks(
        {
            "tasks": [
                {"title": "Mine", "impact": 80},
                {"title": "Theirs", "category": "client", "clientName": "Acme"},
            ]
        },
        _build_request(tmp_path),
    )

    payload = handlers.task_stats({"category": "client"}, _build_request(tmp_path))

    assert payload["data"]["stats"]["total"] == 1
    assert payload["data"]["stats"]["highImpact"] == 0


def test_summarize_empty():
    assert summarize_tasks([]) == {
        "total": 0,
        "completed": 0,
        "pending": 0,
        "highImpact": 0,
        "quickWins": 0,
        "urgent": 0,
    }


def test_timeline_groups_by_creation_day_newest_first(tmp_path):
    _store_at(tmp_path, datetime(2026, 5, 1, 9, 0, tzinfo=timezone.utc)).create(
        TaskDraft(title="First", impact=50, effort=50)
    )
    _store_at(tmp_path, datetime(2026, 5, 1, 15, 0, tzinfo=timezone.utc)).create(
        TaskDraft(title="Second", impact=50, effort=50)
    )
    _store_at(tmp_path, datetime(2026, 5, 3, 8, 0, tzinfo=timezone.utc)).create(
        TaskDraft(title="Third", impact=50, effort=50)
    )

    payload = handlers.timeline({}, _build_request(tmp_path))

    groups = payload["data"]["groups"]
    assert [group["date"] for group in groups] == ["2026-05-03", "2026-05-01"]
    assert [task["title"] for task in groups[1]["tasks"]] == ["Second", "First"]


def test_timeline_uses_configured_timezone(tmp_path):
    _store_at(tmp_path, datetime(2026, 5, 1, 23, 30, tzinfo=timezone.utc)).create(
        TaskDraft(title="Late", impact=50, effort=50)
    )

    payload = handlers.timeline({}, _build_request(tmp_path, ZoneInfo("Asia/Tokyo")))

    assert [group["date"] for group in payload["data"]["groups"]] == ["2026-05-02"]


def test_group_by_created_day_empty():
    assert group_by_created_day([]) == []
