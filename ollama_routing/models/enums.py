"""
Enumerations for the Ollama routing system.
"""

from enum import Enum, auto


class ParticipantRole(Enum):
    """Roles of the participants in a conversation."""
    USER = "user"
    ASSISTANT = "assistant"


class RoutingOutcome(Enum):
    """How a routed request was resolved."""
    AGENT_SELECTED = auto()
    DEFAULT_AGENT = auto()
    NO_AGENT = auto()
    CLASSIFICATION_FAILED = auto()
    AGENT_FAILED = auto()
