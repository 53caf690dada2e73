from types import SimpleNamespace

import pytest

import chaosmatrix.handlers as handlers
from chaosmatrix.errors import ToolError
from chaosmatrix.tool_chaos import install_random_source

DUMP = "Fix login bug #dev (2h) urgent\n\nCall Ana !i:90\nWrite docs"


def _app_state(data_root, random_seed=None):
    state = SimpleNamespace(data_path=data_root)
    if random_seed is not None:
        install_random_source(state, random_seed)
    return state


def _build_request(data_root, state=None):
    return SimpleNamespace(
        app=SimpleNamespace(state=state or _app_state(data_root)),
        state=SimpleNamespace(user_id="test-user-123"),
    )


def _user_root(data_root):
    return data_root / "users" / "testuser123"


def _positions(payload):
    return [(draft["impact"], draft["effort"]) for draft in payload["data"]["drafts"]]


def test_preview_returns_drafts_without_writing(tmp_path):
    payload = handlers.parse_chaos({"text": DUMP, "seed": 1}, _build_request(tmp_path))

    drafts = payload["data"]["drafts"]
    assert [draft["title"] for draft in drafts] == ["Fix login bug", "Call Ana", "Write docs"]
    assert drafts[0]["urgency"] is True
    assert drafts[0]["duration"] == 120
    assert drafts[0]["tags"] == ["dev"]
    assert drafts[1]["impact"] == 90
    assert all("id" not in draft for draft in drafts)
    assert not (_user_root(tmp_path) / "tasks.json").exists()


def test_same_seed_gives_same_drafts(tmp_path):
    first = handlers.parse_chaos({"text": DUMP, "seed": 42}, _build_request(tmp_path))
    second = handlers.parse_chaos({"text": DUMP, "seed": 42}, _build_request(tmp_path))

    assert first == second


def test_configured_seed_keeps_drawing_across_requests(tmp_path):
    state = _app_state(tmp_path, random_seed=5)

    first = handlers.parse_chaos(
        {"text": "Write report\nCall bank"}, _build_request(tmp_path, state)
    )
    second = handlers.parse_chaos(
        {"text": "Buy milk\nFix sink"}, _build_request(tmp_path, state)
    )

    assert _positions(first) != _positions(second)


def test_fresh_app_with_same_seed_replays_the_sequence(tmp_path):
    runs = []
    for _ in range(2):
        state = _app_state(tmp_path, random_seed=5)
        runs.append(
            [
                _positions(
                    handlers.parse_chaos({"text": text}, _build_request(tmp_path, state))
                )
                for text in ("Write report\nCall bank", "Buy milk\nFix sink")
            ]
        )

    assert runs[0] == runs[1]


def test_payload_seed_leaves_shared_source_untouched(tmp_path):
    state = _app_state(tmp_path, random_seed=5)
    handlers.parse_chaos({"text": "Warm up", "seed": 1}, _build_request(tmp_path, state))

    after = handlers.parse_chaos({"text": "Write report"}, _build_request(tmp_path, state))
    fresh = handlers.parse_chaos(
        {"text": "Write report"}, _build_request(tmp_path, _app_state(tmp_path, 5))
    )

    assert _positions(after) == _positions(fresh)


def test_commit_stores_tasks_in_one_commit(tmp_path):
    request = _build_request(tmp_path)

    payload = handlers.parse_chaos({"text": DUMP, "commit": True}, request)

    tasks = payload["data"]["tasks"]
    assert [task["title"] for task in tasks] == ["Fix login bug", "Call Ana", "Write docs"]
    assert all(task["id"] and task["createdAt"] for task in tasks)
    assert handlers._resolve_git_head(_user_root(tmp_path)) == payload["data"]["commitSha"]
    listed = handlers.list_tasks({}, request)["data"]["tasks"]
    assert listed == tasks


def test_commit_of_empty_text_is_a_no_op(tmp_path):
    payload = handlers.parse_chaos({"text": "\n  \n", "commit": True}, _build_request(tmp_path))

    assert payload["data"] == {"tasks": [], "commitSha": None}
    assert not (_user_root(tmp_path) / ".git").exists()


def test_batch_defaults_are_applied_to_every_line(tmp_path):
    payload = handlers.parse_chaos(
        {
            "text": "One\nTwo",
            "targetDate": "2026-06-01",
            "recurrence": "weekdays",
            "category": "client",
            "clientName": " Acme ",
        },
        _build_request(tmp_path),
    )

    for draft in payload["data"]["drafts"]:
        assert draft["targetDate"] == "2026-06-01"
        assert draft["recurrence"] == "weekdays"
        assert draft["category"] == "client"
        assert draft["clientName"] == "Acme"


def test_client_batch_without_client_name_is_rejected(tmp_path):
    with pytest.raises(ToolError) as excinfo:
        handlers.parse_chaos(
            {"text": "One", "category": "client", "commit": True},
            _build_request(tmp_path),
        )

    assert excinfo.value.error.code == "CLIENT_NAME_REQUIRED"
    assert not (_user_root(tmp_path) / "tasks.json").exists()


@pytest.mark.parametrize(
    ("payload", "code"),
    [
        ({}, "MISSING_FIELDS"),
        ({"text": ["a"]}, "INVALID_TYPE"),
        ({"text": "a", "seed": "abc"}, "INVALID_TYPE"),
        ({"text": "a", "commit": "yes"}, "INVALID_TYPE"),
        ({"text": "a", "targetDate": "tomorrow"}, "INVALID_DATE"),
        ({"text": "a", "mode": "fast"}, "UNKNOWN_FIELD"),
    ],
)
def test_parse_chaos_rejects_bad_payloads(tmp_path, payload, code):
    with pytest.raises(ToolError) as excinfo:
        handlers.parse_chaos(payload, _build_request(tmp_path))

    assert excinfo.value.error.code == code
