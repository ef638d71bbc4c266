"""
Tests for the OpenAI-compatible classifier.
"""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from ollama_routing.core.agents import Agent
from ollama_routing.core.openai_classifier import OpenAIClassifier
from ollama_routing.models import OpenAIClassifierOptions
from ollama_routing.utils import ClassificationError, ConfigurationError


class StaticAgent(Agent):
    def process_request(self, input_text, user_id, session_id, chat_history, additional_params=None):
        return input_text


def completion(tool_calls):
    message = SimpleNamespace(content=None, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def tool_call(name, arguments):
    return SimpleNamespace(function=SimpleNamespace(name=name, arguments=json.dumps(arguments)))


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def classifier(client):
    classifier = OpenAIClassifier(
        OpenAIClassifierOptions(model_id="llama3.1", inference_config={"temperature": 0.1, "topP": 0.5}),
        client=client,
    )
    agent = StaticAgent("Travel Agent", "Trips and bookings")
    classifier.set_agents({agent.id: agent})
    return classifier


def test_forced_tool_call(classifier, client):
    client.chat.completions.create.return_value = completion([
        tool_call("analyzePrompt", {"userinput": "Flights to Rome", "selected_agent": "travel-agent", "confidence": 0.88})
    ])

    result = classifier.classify("Flights to Rome", [])

    assert result.selected_agent is classifier.agents["travel-agent"]
    assert result.confidence == pytest.approx(0.88)

    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "llama3.1"
    assert kwargs["tool_choice"] == {"type": "function", "function": {"name": "analyzePrompt"}}
    assert kwargs["temperature"] == 0.1
    assert kwargs["top_p"] == 0.5
    assert "travel-agent:Trips and bookings" in kwargs["messages"][0]["content"]


def test_missing_tool_call_raises(classifier, client):
    client.chat.completions.create.return_value = completion(None)

    with pytest.raises(ClassificationError):
        classifier.classify("Flights to Rome", [])


def test_client_error_is_wrapped(classifier, client):
    client.chat.completions.create.side_effect = RuntimeError("network down")

    with pytest.raises(ClassificationError) as excinfo:
        classifier.classify("Flights to Rome", [])

    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_api_key_required():
    with pytest.raises(ConfigurationError):
        OpenAIClassifier(OpenAIClassifierOptions(api_key=""))
