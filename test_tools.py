"""
Tests for the analyzePrompt function-calling convention.
"""

import pytest

from ollama_routing.core.tools import ANALYZE_PROMPT_TOOL, parse_tool_arguments


def test_tool_schema_requires_all_fields():
    parameters = ANALYZE_PROMPT_TOOL["function"]["parameters"]
    assert ANALYZE_PROMPT_TOOL["function"]["name"] == "analyzePrompt"
    assert parameters["required"] == ["userinput", "selected_agent", "confidence"]
    assert parameters["properties"]["confidence"]["type"] == "number"


def test_parse_mapping_arguments():
    parsed = parse_tool_arguments("analyzePrompt", {
        "userinput": "hi", "selected_agent": "tech-agent", "confidence": "0.75"
    })
    assert parsed == {"userinput": "hi", "selected_agent": "tech-agent", "confidence": 0.75}


def test_parse_json_arguments():
    parsed = parse_tool_arguments(
        "analyzePrompt", '{"userinput": "hi", "selected_agent": "tech-agent", "confidence": 0.6}'
    )
    assert parsed["selected_agent"] == "tech-agent"
    assert parsed["confidence"] == 0.6


def test_confidence_is_clamped():
    assert parse_tool_arguments("analyzePrompt", {"selected_agent": "a", "confidence": 1.7})["confidence"] == 1.0
    assert parse_tool_arguments("analyzePrompt", {"selected_agent": "a", "confidence": -2})["confidence"] == 0.0


@pytest.mark.parametrize("name, arguments", [
    ("getWeather", {"selected_agent": "a", "confidence": 1}),
    (None, {"selected_agent": "a", "confidence": 1}),
    ("analyzePrompt", "{not json"),
    ("analyzePrompt", ["a", 1]),
    ("analyzePrompt", {"confidence": 0.9}),
    ("analyzePrompt", {"selected_agent": "a", "confidence": "high"}),
    ("analyzePrompt", {"selected_agent": "a", "confidence": float("nan")}),
])
def test_invalid_calls_rejected(name, arguments):
    with pytest.raises(ValueError):
        parse_tool_arguments(name, arguments)
