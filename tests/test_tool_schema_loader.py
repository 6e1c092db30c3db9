import pytest

from tools.mcp_tools import ToolSchemaError, load_tool_definitions, tool_names


def _write(tmp_path, content):
    path = tmp_path / "tools.json"
    path.write_text(content, encoding="utf-8")
    return path


def test_load_tool_definitions_rejects_missing_file(tmp_path):
    with pytest.raises(ToolSchemaError):
        load_tool_definitions(tmp_path / "missing.json")


def test_load_tool_definitions_rejects_invalid_json(tmp_path):
    with pytest.raises(ToolSchemaError):
        load_tool_definitions(_write(tmp_path, "{not valid json"))


def test_load_tool_definitions_rejects_non_list(tmp_path):
    with pytest.raises(ToolSchemaError):
        load_tool_definitions(_write(tmp_path, '{"type":"function"}'))


@pytest.mark.parametrize(
    "content",
    [
        '[{"type":"function","function":{"name":"ping","parameters":{}}}]',
        '[{"type":"function","function":{"name":" ","parameters":{"type":"object"}}}]',
        '[{"type":"function","function":{"name":"ping","parameters":{"type":"object",'
        '"properties":{},"required":["id"]}}}]',
        '[{"type":"function","function":{"name":"ping","parameters":{"type":"object"}}},'
        '{"type":"function","function":{"name":"ping","parameters":{"type":"object"}}}]',
    ],
)
def test_load_tool_definitions_rejects_invalid_schemas(tmp_path, content):
    with pytest.raises(ToolSchemaError):
        load_tool_definitions(_write(tmp_path, content))


def test_bundled_tool_definitions_are_valid():
    tools = load_tool_definitions()

    assert tool_names(tools) == ["list_all_tasks", "query_tasks", "complete_task"]
    complete = tools[2]["function"]["parameters"]
    assert complete["required"] == ["id"]
