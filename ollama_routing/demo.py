"""
Demo script routing a few requests through an Ollama classifier.
"""

from typing import Optional

from .models import OllamaAgentOptions, SystemConfig
from .utils import setup_logging, get_logger, ConfigManager
from .core import Classifier, MultiAgentOrchestrator, OllamaAgent, OllamaClassifier, OpenAIClassifier

DEMO_AGENTS = [
    ("Tech Agent", "Specializes in software development, programming languages, "
                   "cloud services and troubleshooting technical issues."),
    ("Health Agent", "Focuses on health and fitness topics, general wellness advice "
                     "and healthy habits."),
    ("Travel Agent", "Helps with trip planning, destinations, transport options "
                     "and travel tips."),
]

DEMO_REQUESTS = [
    "What are the benefits of serverless computing?",
    "How many hours of sleep should an adult get?",
    "Can you suggest a three day itinerary for Lisbon?",
    "Tell me more",
]


def build_classifier(config: SystemConfig) -> Classifier:
    if config.classifier_backend == "openai":
        return OpenAIClassifier(config.openai_classifier_config)
    return OllamaClassifier(config.classifier_config)


def build_orchestrator(config: SystemConfig) -> MultiAgentOrchestrator:
    model_id = config.classifier_config.model_id
    host = config.classifier_config.host

    orchestrator = MultiAgentOrchestrator(
        classifier=build_classifier(config),
        options=config.orchestrator_config
    )
    for name, description in DEMO_AGENTS:
        orchestrator.add_agent(OllamaAgent(OllamaAgentOptions(
            name=name, description=description, model_id=model_id, host=host
        )))

    orchestrator.set_default_agent(OllamaAgent(OllamaAgentOptions(
        name="General Agent",
        description="Answers general questions that no specialist covers.",
        model_id=model_id,
        host=host
    )))
    return orchestrator


def main(config_path: Optional[str] = None):
    """Demonstrate request classification and routing."""
    config_manager = ConfigManager(config_path)
    config = config_manager.load_config()

    setup_logging(config.logging_config)
    logger = get_logger(__name__)

    logger.info("Ollama Routing Demo Starting")

    orchestrator = build_orchestrator(config)
    if not orchestrator.is_healthy():
        logger.warning(f"Classifier backend not ready, is Ollama running at {config.classifier_config.host}?")

    user_id, session_id = "demo_user", "demo_session"
    for i, user_input in enumerate(DEMO_REQUESTS, 1):
        logger.info(f"Processing request {i}: {user_input[:50]}...")
        response = orchestrator.route_request(user_input, user_id, session_id)
        print(f"\nRequest {i}: {user_input}")
        print(f"Agent: {response.metadata.agent_name}")
        print(f"Response: {response.output}")
        print("-" * 50)

    stats = orchestrator.get_routing_statistics()
    logger.info(f"Demo completed: {stats['successful_routes']}/{stats['total_requests']} requests routed")


if __name__ == "__main__":
    main()
