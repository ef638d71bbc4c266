"""
Ollama Routing

Routes user requests between specialized agents, using a locally hosted
Ollama model as the classifier that picks the agent for each request.
"""

__version__ = "0.1.0"
__author__ = "Ollama Routing"

from .models import (
    ConversationMessage,
    ClassifierResult,
    AgentProcessingResult,
    AgentResponse,
    SystemConfig,
    OllamaClassifierOptions,
    OpenAIClassifierOptions,
    OllamaAgentOptions,
    OrchestratorConfig,
)
from .core import (
    Agent,
    OllamaAgent,
    Classifier,
    OllamaClassifier,
    OpenAIClassifier,
    MultiAgentOrchestrator,
    InMemoryChatStorage,
)

__all__ = [
    "ConversationMessage",
    "ClassifierResult",
    "AgentProcessingResult",
    "AgentResponse",
    "SystemConfig",
    "OllamaClassifierOptions",
    "OpenAIClassifierOptions",
    "OllamaAgentOptions",
    "OrchestratorConfig",
    "Agent",
    "OllamaAgent",
    "Classifier",
    "OllamaClassifier",
    "OpenAIClassifier",
    "MultiAgentOrchestrator",
    "InMemoryChatStorage",
]
