"""
Function-calling convention used by the classifiers.

The model is offered a single tool, ``analyzePrompt``, and is expected to
answer with a call to it instead of free text.
"""

import json
import math
from typing import Any, Dict, Mapping, Union

ANALYZE_PROMPT_TOOL_NAME = "analyzePrompt"

ANALYZE_PROMPT_TOOL: Dict[str, Any] = {
    "type": "function",
    "function": {
        "name": ANALYZE_PROMPT_TOOL_NAME,
        "description": "Analyze the user input and provide structured output",
        "parameters": {
            "type": "object",
            "properties": {
                "userinput": {
                    "type": "string",
                    "description": "The original user input",
                },
                "selected_agent": {
                    "type": "string",
                    "description": "The name of the selected agent",
                },
                "confidence": {
                    "type": "number",
                    "description": "Confidence level between 0 and 1",
                },
            },
            "required": ["userinput", "selected_agent", "confidence"],
        },
    },
}

NO_TOOL_USE_MESSAGE = "No valid tool use found in the response"


def parse_tool_arguments(name: str, arguments: Union[str, Mapping[str, Any], None]) -> Dict[str, Any]:
    """
    Validate an ``analyzePrompt`` call and normalize its arguments.

    Args:
        name: Name of the function the model called
        arguments: Call arguments, either a mapping or a JSON string

    Returns:
        Dict with ``userinput``, ``selected_agent`` and a float ``confidence``

    Raises:
        ValueError: If the call is not a well-formed ``analyzePrompt`` call
    """
    if name != ANALYZE_PROMPT_TOOL_NAME:
        raise ValueError(NO_TOOL_USE_MESSAGE)

    if isinstance(arguments, str):
        try:
            arguments = json.loads(arguments)
        except json.JSONDecodeError as e:
            raise ValueError(f"Tool arguments are not valid JSON: {str(e)}") from e

    if not isinstance(arguments, Mapping):
        raise ValueError("Tool arguments must be an object")

    if "selected_agent" not in arguments:
        raise ValueError("Tool arguments are missing 'selected_agent'")

    try:
        confidence = float(arguments.get("confidence", 0.0))
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid confidence value: {arguments.get('confidence')!r}") from e

    if math.isnan(confidence):
        raise ValueError("Confidence must be a number")

    return {
        "userinput": str(arguments.get("userinput", "")),
        "selected_agent": str(arguments["selected_agent"] or ""),
        "confidence": min(max(confidence, 0.0), 1.0),
    }
