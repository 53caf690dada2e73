import pytest

from tools.chaos_tools import ToolSchemaError, load_tool_definitions, tool_names


def test_load_tool_definitions_rejects_missing_file(tmp_path):
    missing = tmp_path / "missing.json"
    with pytest.raises(ToolSchemaError):
        load_tool_definitions(missing)


def test_load_tool_definitions_rejects_invalid_json(tmp_path):
    path = tmp_path / "tools.json"
    path.write_text("{not valid json", encoding="utf-8")
    with pytest.raises(ToolSchemaError):
        load_tool_definitions(path)


def test_load_tool_definitions_rejects_non_list(tmp_path):
    path = tmp_path / "tools.json"
    path.write_text("{\"type\":\"function\"}", encoding="utf-8")
    with pytest.raises(ToolSchemaError):
        load_tool_definitions(path)


def test_load_tool_definitions_rejects_duplicate_names(tmp_path):
    path = tmp_path / "tools.json"
    tool = '{"type":"function","function":{"name":"ping","parameters":{}}}'
    path.write_text(f"[{tool},{tool}]", encoding="utf-8")
    with pytest.raises(ToolSchemaError, match="more than once"):
        load_tool_definitions(path)


def test_load_tool_definitions_rejects_undeclared_required(tmp_path):
    path = tmp_path / "tools.json"
    path.write_text(
        '[{"type":"function","function":{"name":"ping",'
        '"parameters":{"properties":{},"required":["id"]}}}]',
        encoding="utf-8",
    )
    with pytest.raises(ToolSchemaError, match="undeclared"):
        load_tool_definitions(path)


def test_load_tool_definitions_validates_schema(tmp_path):
    path = tmp_path / "tools.json"
    path.write_text(
        '[{"type":"function","function":{"name":"ping","parameters":{}}}]',
        encoding="utf-8",
    )
    tools = load_tool_definitions(path)
    assert tool_names(tools) == ["ping"]


def test_shipped_definitions_cover_every_tool_route():
    from chaosmatrix.main import create_app

    routes = {
        route.path.removeprefix("/tool:")
        for route in create_app().routes
        if getattr(route, "path", "").startswith("/tool:")
    }

    assert set(tool_names(load_tool_definitions())) == routes
