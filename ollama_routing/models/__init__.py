"""
Data models for the Ollama routing system.
"""

from .core import (
    ConversationMessage,
    ClassifierResult,
    AgentProcessingResult,
    AgentResponse,
    RoutingDecision,
)

from .config import (
    SystemConfig,
    OllamaClassifierOptions,
    OpenAIClassifierOptions,
    OllamaAgentOptions,
    OrchestratorConfig,
    LoggingConfig,
)

from .enums import (
    ParticipantRole,
    RoutingOutcome,
)

__all__ = [
    # Core models
    "ConversationMessage",
    "ClassifierResult",
    "AgentProcessingResult",
    "AgentResponse",
    "RoutingDecision",
    # Configuration models
    "SystemConfig",
    "OllamaClassifierOptions",
    "OpenAIClassifierOptions",
    "OllamaAgentOptions",
    "OrchestratorConfig",
    "LoggingConfig",
    # Enums
    "ParticipantRole",
    "RoutingOutcome",
]
