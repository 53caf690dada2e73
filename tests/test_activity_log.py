import json
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

import chaosmatrix.handlers as handlers
from chaosmatrix.errors import ToolError


def _build_request(data_root):
    return SimpleNamespace(
        app=SimpleNamespace(state=SimpleNamespace(data_path=data_root)),
        state=SimpleNamespace(user_id="test-user-123"),
    )


def _user_root(data_root):
    root = data_root / "users" / "testuser123"
    root.mkdir(parents=True, exist_ok=True)
    return root


def _read_activity_entries(data_root):
    log_path = _user_root(data_root) / handlers.ACTIVITY_LOG_FILENAME
    assert log_path.exists()
    entries = []
    for line in log_path.read_text(encoding="utf-8").splitlines():
        if line.strip():
            entries.append(json.loads(line))
    return entries


def test_mutations_append_activity_entries(tmp_path):
    created = handlers.create_task({"title": "Plan sprint"}, _build_request(tmp_path))
    task_id = created["data"]["task"]["id"]
    updated = handlers.update_task(
        {"id": task_id, "fields": {"impact": 90}}, _build_request(tmp_path)
    )
    deleted = handlers.delete_task({"id": task_id}, _build_request(tmp_path))

    entries = _read_activity_entries(tmp_path)

    assert [entry["operation"] for entry in entries] == [
        "create_task",
        "update_task",
        "delete_task",
    ]
    assert {entry["path"] for entry in entries} == {handlers.TASKS_FILENAME}
    assert [entry["commitSha"] for entry in entries] == [
        created["data"]["commitSha"],
        updated["data"]["commitSha"],
        deleted["data"]["commitSha"],
    ]
    assert entries[1]["summary"] == f"update task {task_id}"
    assert [entry["taskIds"] for entry in entries] == [[task_id]] * 3


def test_read_activity_log_filters_by_operation(tmp_path):
    request = _build_request(tmp_path)
    task_id = handlers.create_task({"title": "Plan"}, request)["data"]["task"]["id"]
    handlers.complete_task({"id": task_id}, request)
    handlers.reopen_task({"id": task_id}, request)

    result = handlers.read_activity_log({"operation": "update_task"}, request)

    assert len(result["data"]["entries"]) == 2
    assert {entry["operation"] for entry in result["data"]["entries"]} == {"update_task"}


def test_read_activity_log_applies_limit_and_since(tmp_path):
    for title in ["One", "Two", "Three"]:
        handlers.create_task({"title": title}, _build_request(tmp_path))

    limited = handlers.read_activity_log({"limit": 2}, _build_request(tmp_path))
    assert len(limited["data"]["entries"]) == 2

    future = (datetime.now(timezone.utc) + timedelta(hours=1)).isoformat()
    recent = handlers.read_activity_log({"since": future}, _build_request(tmp_path))
    assert recent["data"]["entries"] == []


def test_read_activity_log_skips_malformed_lines(tmp_path):
    log_path = _user_root(tmp_path) / handlers.ACTIVITY_LOG_FILENAME
    log_path.write_text('not json\n{"operation":"create_task"}\n', encoding="utf-8")

    result = handlers.read_activity_log({}, _build_request(tmp_path))

    assert result["data"]["entries"] == [{"operation": "create_task"}]


@pytest.mark.parametrize(
    ("payload", "code"),
    [
        ({"limit": 0}, "INVALID_TYPE"),
        ({"limit": True}, "INVALID_TYPE"),
        ({"since": "yesterday"}, "INVALID_DATE"),
        ({"path": "tasks.json"}, "UNKNOWN_FIELD"),
    ],
)
def test_read_activity_log_rejects_bad_payloads(tmp_path, payload, code):
    with pytest.raises(ToolError) as excinfo:
        handlers.read_activity_log(payload, _build_request(tmp_path))
    assert excinfo.value.error.code == code
