"""Tests for per-tool parameter validation."""

import pytest

from intent_gate.hooks.params import (
    ApplyPatchParams,
    ExecuteCommandParams,
    FileEditParams,
    GenericParams,
    InvalidToolParams,
    PathEditParams,
    SelectIntentParams,
    WriteToFileParams,
    parse_tool_params,
)


class TestParseToolParams:
    """Tests for parse_tool_params."""

    def test_write_to_file(self):
        params = parse_tool_params(
            "write_to_file",
            {"path": "a.txt", "content": "hi", "mutation_class": "refactor"},
        )
        assert params == WriteToFileParams(
            path="a.txt", content="hi", mutation_class="refactor", intent_id=""
        )

    def test_missing_fields_become_empty(self):
        params = parse_tool_params("write_to_file", {})
        assert params == WriteToFileParams(path="", content="")

    @pytest.mark.parametrize(
        "tool_name", ["edit", "edit_file", "search_and_replace", "search_replace"]
    )
    def test_file_path_tools(self, tool_name):
        params = parse_tool_params(tool_name, {"file_path": "src/x.py"})
        assert params == FileEditParams(file_path="src/x.py")

    def test_apply_diff(self):
        assert parse_tool_params("apply_diff", {"path": "x"}) == PathEditParams(path="x")

    def test_apply_patch(self):
        assert parse_tool_params("apply_patch", {"patch": "p"}) == ApplyPatchParams(patch="p")

    def test_execute_command_coerces_scalars(self):
        params = parse_tool_params("execute_command", {"command": 42})
        assert params == ExecuteCommandParams(command="42")

    def test_select_prefers_intent_id(self):
        params = parse_tool_params("select_active_intent", {"intent_id": " I-1 ", "id": "I-2"})
        assert params == SelectIntentParams(intent_id="I-1")

    def test_select_falls_back_to_id(self):
        params = parse_tool_params("select_active_intent", {"id": "I-2"})
        assert params == SelectIntentParams(intent_id="I-2")

    def test_select_blank_intent_id_does_not_fall_back(self):
        params = parse_tool_params("select_active_intent", {"intent_id": "", "id": "I-2"})
        assert params.intent_id == ""

    def test_unknown_tool_is_generic(self):
        params = parse_tool_params("read_file", {"path": "x", "limit": [1, 2]})
        assert isinstance(params, GenericParams)
        assert params.values == {"path": "x", "limit": [1, 2]}

    def test_none_params_allowed(self):
        assert parse_tool_params("read_file", None) == GenericParams(values={})

    def test_non_mapping_rejected(self):
        with pytest.raises(InvalidToolParams):
            parse_tool_params("write_to_file", ["path", "a.txt"])

    @pytest.mark.parametrize("bad_value", [{"nested": "x"}, ["a", "b"]])
    def test_structured_value_in_string_field_rejected(self, bad_value):
        with pytest.raises(InvalidToolParams, match="path"):
            parse_tool_params("write_to_file", {"path": bad_value, "content": "x"})

    def test_invalid_params_is_value_error(self):
        assert issubclass(InvalidToolParams, ValueError)
