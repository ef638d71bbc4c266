"""
Tests for the multi-agent orchestrator.
"""

import logging

import pytest

from ollama_routing.core.agents import Agent
from ollama_routing.core.classifier import Classifier
from ollama_routing.core.orchestrator import NO_AGENT_ID, MultiAgentOrchestrator
from ollama_routing.models import ClassifierResult, OrchestratorConfig, RoutingOutcome
from ollama_routing.utils import ClassificationError


class EchoAgent(Agent):
    """Answers with its id and records what it was given."""

    def __init__(self, name, description="test agent"):
        super().__init__(name, description)
        self.calls = []

    def process_request(self, input_text, user_id, session_id, chat_history, additional_params=None):
        self.calls.append({
            "input": input_text,
            "history": [message.text for message in chat_history],
            "additional_params": additional_params,
        })
        return f"{self.id} answered: {input_text}"


class FailingAgent(Agent):
    def process_request(self, input_text, user_id, session_id, chat_history, additional_params=None):
        raise RuntimeError("model crashed")


class ScriptedClassifier(Classifier):
    """Replays (agent_id, confidence) pairs or raises queued errors."""

    def __init__(self, script):
        super().__init__()
        self.script = list(script)
        self.histories = []

    def process_request(self, input_text, chat_history, system_prompt):
        self.histories.append([message.text for message in chat_history])
        step = self.script.pop(0)
        if isinstance(step, Exception):
            raise step
        agent_id, confidence = step
        return ClassifierResult(selected_agent=self.get_agent_by_id(agent_id), confidence=confidence)


def make_orchestrator(script, default_agent=None, **config):
    config.setdefault("retry_base_delay", 0.0)
    config.setdefault("retry_max_delay", 0.0)
    classifier = ScriptedClassifier(script)
    orchestrator = MultiAgentOrchestrator(
        classifier=classifier,
        options=OrchestratorConfig(**config),
        default_agent=default_agent
    )
    tech = EchoAgent("Tech Agent")
    travel = EchoAgent("Travel Agent")
    orchestrator.add_agent(tech)
    orchestrator.add_agent(travel)
    return orchestrator, classifier, tech, travel


def test_routes_to_selected_agent():
    orchestrator, classifier, tech, travel = make_orchestrator([("tech-agent", 0.9)])

    response = orchestrator.route_request("What is Kubernetes?", "user1", "s1", {"channel": "web"})

    assert response.success
    assert response.output == "tech-agent answered: What is Kubernetes?"
    assert response.metadata.agent_id == "tech-agent"
    assert response.metadata.agent_name == "Tech Agent"
    assert response.metadata.additional_params == {"channel": "web"}
    assert tech.calls[0]["additional_params"] == {"channel": "web"}
    assert travel.calls == []
    assert set(classifier.agents) == {"tech-agent", "travel-agent"}


def test_history_is_saved_and_shared_with_classifier():
    orchestrator, classifier, tech, _ = make_orchestrator([("tech-agent", 0.9), ("tech-agent", 0.8)])

    orchestrator.route_request("What is Kubernetes?", "user1", "s1")
    orchestrator.route_request("Tell me more", "user1", "s1")

    assert classifier.histories[0] == []
    assert classifier.histories[1] == [
        "What is Kubernetes?",
        "[tech-agent] tech-agent answered: What is Kubernetes?",
    ]
    assert tech.calls[1]["history"] == ["What is Kubernetes?", "tech-agent answered: What is Kubernetes?"]

    # Another session starts clean
    orchestrator.classifier.script.append(("tech-agent", 0.9))
    orchestrator.route_request("Hi", "user1", "s2")
    assert classifier.histories[2] == []


def test_default_agent_used_when_none_identified():
    general = EchoAgent("General Agent")
    orchestrator, _, tech, _ = make_orchestrator([("unknown", 0.2)], default_agent=general)

    response = orchestrator.route_request("Hello there", "user1", "s1")

    assert response.success
    assert response.metadata.agent_id == "general-agent"
    assert general.calls[0]["input"] == "Hello there"
    assert orchestrator.get_routing_statistics()["default_agent_routes"] == 1
    assert orchestrator.get_recent_routing_decisions()[0]["outcome"] == RoutingOutcome.DEFAULT_AGENT.name


def test_no_agent_message_without_default():
    orchestrator, _, _, _ = make_orchestrator([("unknown", 0.2)])

    response = orchestrator.route_request("Hello there", "user1", "s1")

    assert not response.success
    assert response.output == orchestrator.config.no_selected_agent_message
    assert response.metadata.agent_id == NO_AGENT_ID


def test_default_agent_disabled_by_config():
    general = EchoAgent("General Agent")
    orchestrator, _, _, _ = make_orchestrator(
        [("unknown", 0.2)], default_agent=general, use_default_agent_if_none_identified=False
    )

    response = orchestrator.route_request("Hello there", "user1", "s1")

    assert not response.success
    assert general.calls == []


def test_low_confidence_treated_as_no_selection():
    general = EchoAgent("General Agent")
    orchestrator, _, tech, _ = make_orchestrator(
        [("tech-agent", 0.4)], default_agent=general, confidence_threshold=0.6
    )

    response = orchestrator.route_request("maybe code?", "user1", "s1")

    assert response.metadata.agent_id == "general-agent"
    assert tech.calls == []


def test_classification_retried_then_succeeds():
    orchestrator, _, tech, _ = make_orchestrator(
        [ClassificationError("boom"), ("tech-agent", 0.9)], max_retries=2
    )

    response = orchestrator.route_request("What is Kubernetes?", "user1", "s1")

    assert response.success
    assert len(tech.calls) == 1


def test_classification_failure_returns_error_response():
    orchestrator, _, tech, _ = make_orchestrator(
        [ClassificationError("boom"), ClassificationError("boom again")], max_retries=1
    )

    response = orchestrator.route_request("What is Kubernetes?", "user1", "s1")

    assert not response.success
    assert response.output == orchestrator.config.classification_error_message
    assert response.error_message == "boom again"
    assert tech.calls == []
    stats = orchestrator.get_routing_statistics()
    assert stats["failed_routes"] == 1
    assert stats["success_rate"] == 0


def test_agent_failure_returns_error_response():
    orchestrator, _, _, _ = make_orchestrator([("broken-agent", 0.9)])
    orchestrator.add_agent(FailingAgent("Broken Agent", "always fails"))

    response = orchestrator.route_request("anything", "user1", "s1")

    assert not response.success
    assert response.output == orchestrator.config.general_routing_error_msg_message
    assert "model crashed" in response.error_message
    assert response.metadata.agent_id == "broken-agent"
    assert orchestrator.storage.fetch_chat("user1", "s1", "broken-agent") == []
    assert orchestrator.get_recent_routing_decisions()[-1]["outcome"] == RoutingOutcome.AGENT_FAILED.name


def test_duplicate_agent_rejected():
    orchestrator, _, _, _ = make_orchestrator([])
    with pytest.raises(ValueError):
        orchestrator.add_agent(EchoAgent("Tech Agent"))


def test_history_capped_per_agent():
    orchestrator, _, tech, _ = make_orchestrator(
        [("tech-agent", 0.9)] * 3, max_message_pairs_per_agent=1
    )

    for text in ("one", "two", "three"):
        orchestrator.route_request(text, "user1", "s1")

    history = orchestrator.storage.fetch_chat("user1", "s1", "tech-agent")
    assert [message.text for message in history] == ["three", "tech-agent answered: three"]


def test_statistics_and_audit_trail():
    orchestrator, _, _, _ = make_orchestrator(
        [("tech-agent", 0.9), ("travel-agent", 0.7), ("unknown", 0.1)]
    )

    orchestrator.route_request("a", "user1", "s1")
    orchestrator.route_request("b", "user1", "s1")
    orchestrator.route_request("c", "user1", "s1")

    stats = orchestrator.get_routing_statistics()
    assert stats["total_requests"] == 3
    assert stats["successful_routes"] == 2
    assert stats["no_agent_routes"] == 1
    assert stats["agent_usage"] == {"tech-agent": 1, "travel-agent": 1}

    decisions = orchestrator.get_recent_routing_decisions(limit=2)
    assert [d["agent_id"] for d in decisions] == ["travel-agent", None]
    assert decisions[1]["outcome"] == RoutingOutcome.NO_AGENT.name

    orchestrator.clear_routing_log()
    assert orchestrator.get_recent_routing_decisions() == []


def test_routing_log_is_bounded():
    orchestrator, _, _, _ = make_orchestrator([("tech-agent", 0.9)] * 5, max_log_entries=4)

    for i in range(5):
        orchestrator.route_request(str(i), "user1", "s1")

    assert len(orchestrator.routing_log) <= 4


def test_is_healthy():
    orchestrator = MultiAgentOrchestrator(classifier=ScriptedClassifier([]))
    assert orchestrator.is_healthy() is False

    orchestrator.add_agent(EchoAgent("Tech Agent"))
    assert orchestrator.is_healthy() is True


def test_routing_log_bounded_with_single_entry():
    orchestrator, _, _, _ = make_orchestrator([("tech-agent", 0.9)] * 50, max_log_entries=1)

    for i in range(50):
        orchestrator.route_request(str(i), "user1", "s1")

    assert len(orchestrator.routing_log) == 1
    assert orchestrator.routing_log[0].user_input == "49"


def test_log_flags_off_by_default(caplog):
    orchestrator, _, _, _ = make_orchestrator([("tech-agent", 0.9)])

    with caplog.at_level(logging.INFO, logger="ollama_routing"):
        orchestrator.route_request("What is Kubernetes?", "user1", "s1")

    assert "** CLASSIFIER CHAT HISTORY **" not in caplog.text
    assert "** AGENT CHAT HISTORY **" not in caplog.text
    assert "Classifier system prompt" not in caplog.text
    assert "Classifier selected" not in caplog.text
    assert "Classifying user intent" not in caplog.text


def test_log_classifier_chat(caplog):
    orchestrator, _, _, _ = make_orchestrator(
        [("tech-agent", 0.9), ("tech-agent", 0.9)], log_classifier_chat=True
    )
    orchestrator.route_request("What is Kubernetes?", "user1", "s1")

    with caplog.at_level(logging.INFO, logger="ollama_routing"):
        orchestrator.route_request("Tell me more", "user1", "s1")

    assert "** CLASSIFIER CHAT HISTORY ** classifier" in caplog.text
    assert "> user: What is Kubernetes?" in caplog.text
    assert "> assistant: [tech-agent] tech-agent answered: What is Kubernetes?" in caplog.text


def test_log_agent_chat(caplog):
    orchestrator, _, _, _ = make_orchestrator(
        [("tech-agent", 0.9), ("tech-agent", 0.9)], log_agent_chat=True
    )
    orchestrator.route_request("What is Kubernetes?", "user1", "s1")

    with caplog.at_level(logging.INFO, logger="ollama_routing"):
        orchestrator.route_request("Tell me more", "user1", "s1")

    assert "** AGENT CHAT HISTORY ** Tech Agent" in caplog.text
    assert "> assistant: tech-agent answered: What is Kubernetes?" in caplog.text


def test_log_classifier_raw_output(caplog):
    orchestrator, _, _, _ = make_orchestrator([("tech-agent", 0.9)], log_classifier_raw_output=True)

    with caplog.at_level(logging.INFO, logger="ollama_routing"):
        orchestrator.route_request("What is Kubernetes?", "user1", "s1")

    assert "Classifier system prompt:" in caplog.text
    assert "tech-agent:test agent" in caplog.text


def test_log_classifier_output(caplog):
    orchestrator, _, _, _ = make_orchestrator(
        [("tech-agent", 0.87), ("unknown", 0.1)], log_classifier_output=True
    )

    with caplog.at_level(logging.INFO, logger="ollama_routing"):
        orchestrator.route_request("What is Kubernetes?", "user1", "s1")
        orchestrator.route_request("Hello", "user1", "s1")

    assert "Classifier selected tech-agent (confidence: 0.87)" in caplog.text
    assert "Classifier selected no agent (confidence: 0.10)" in caplog.text


def test_log_execution_times(caplog):
    orchestrator, _, _, _ = make_orchestrator([("tech-agent", 0.9)], log_execution_times=True)

    with caplog.at_level(logging.INFO, logger="ollama_routing"):
        orchestrator.route_request("What is Kubernetes?", "user1", "s1")

    messages = [record.getMessage() for record in caplog.records]
    assert any(m.startswith("Classifying user intent: ") and m.endswith("s") for m in messages)
    assert any(m.startswith("Agent Tech Agent | Processing request: ") for m in messages)
