from datetime import date, datetime, timezone

from chaosmatrix.models import (
    Category,
    Recurrence,
    Task,
    TaskDraft,
    clamp_duration,
    clamp_percent,
    parse_recurrence,
)


def test_clamp_helpers():
    assert clamp_percent(-3) == 0
    assert clamp_percent(130.5) == 100
    assert clamp_percent(42.5) == 42.5
    assert clamp_duration(-15) == 0
    assert clamp_duration(None) is None


def test_parse_recurrence_fails_open():
    assert parse_recurrence("WEEKLY") is Recurrence.WEEKLY
    assert parse_recurrence("every other tuesday") is Recurrence.NONE
    assert parse_recurrence(None) is Recurrence.NONE


def test_task_dict_round_trip_uses_camel_case():
    task = Task(
        title="Quarterly report",
        impact=80,
        effort=35.5,
        urgency=True,
        duration=90,
        tags=("finance",),
        category=Category.CLIENT,
        client_name="Acme",
        target_date=date(2026, 4, 1),
        recurrence=Recurrence.MONTHLY,
        id="abc123",
        created_at=datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc),
    )

    data = task.to_dict()

    assert data["clientName"] == "Acme"
    assert data["targetDate"] == "2026-04-01"
    assert data["createdAt"] == "2026-03-01T08:00:00+00:00"
    assert data["tags"] == ["finance"]
    assert Task.from_dict(data) == task


def test_draft_dict_has_no_identity_fields():
    data = TaskDraft(title="Draft", impact=30, effort=60).to_dict()

    assert "id" not in data
    assert "createdAt" not in data
    assert data["category"] == "own"
    assert data["recurrence"] == "none"


def test_naive_created_at_is_read_as_utc():
    task = Task.from_dict({"id": "t1", "title": "Legacy", "createdAt": "2026-03-01T08:00:00"})

    assert task.created_at == datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)
