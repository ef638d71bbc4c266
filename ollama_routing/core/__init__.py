"""
Core components of the Ollama routing system.
"""

from .agents import Agent, OllamaAgent, generate_key_from_name
from .classifier import Classifier
from .ollama_classifier import OllamaClassifier
from .openai_classifier import OpenAIClassifier
from .orchestrator import MultiAgentOrchestrator
from .storage import InMemoryChatStorage
from .tools import ANALYZE_PROMPT_TOOL, parse_tool_arguments

__all__ = [
    "Agent",
    "OllamaAgent",
    "generate_key_from_name",
    "Classifier",
    "OllamaClassifier",
    "OpenAIClassifier",
    "MultiAgentOrchestrator",
    "InMemoryChatStorage",
    "ANALYZE_PROMPT_TOOL",
    "parse_tool_arguments",
]
