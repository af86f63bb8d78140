"""Tests for output mode selection."""

import json

from focusboard.output.console import create_console, get_output, style_for_list
from focusboard.output.formatters import OutputSettings, format_result
from focusboard.services.result import ServiceResult

RESULT = ServiceResult(ok=True, op="create_card", data={"id": "card_00000001", "position": 0})


class TestFormatResult:
    def test_default_is_rich(self) -> None:
        output = format_result(RESULT)
        assert output.startswith("OK")
        assert "create_card" in output

    def test_json(self) -> None:
        output = format_result(RESULT, settings=OutputSettings(json_output=True))
        assert json.loads(output)["data"]["id"] == "card_00000001"

    def test_quiet(self) -> None:
        assert format_result(RESULT, settings=OutputSettings(quiet=True)) == "card_00000001"

    def test_json_wins_over_quiet(self) -> None:
        output = format_result(RESULT, settings=OutputSettings(json_output=True, quiet=True))
        assert json.loads(output)["ok"] is True


class TestConsole:
    def test_renders_to_buffer(self) -> None:
        console = create_console(no_color=True, width=40)
        console.print("hello")
        assert get_output(console) == "hello\n"

    def test_list_styles(self) -> None:
        assert style_for_list(is_focused=True, is_catch_all=True) == "fb.focus"
        assert style_for_list(is_focused=False, is_catch_all=True) == "fb.catch_all"
        assert style_for_list(is_focused=False, is_catch_all=False) == "fb.title"
