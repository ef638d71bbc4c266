"""
Core data models for classification and routing.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any, Optional, List, TYPE_CHECKING

from .enums import ParticipantRole, RoutingOutcome

if TYPE_CHECKING:
    from ..core.agents import Agent


@dataclass
class ConversationMessage:
    """A single message in a conversation history."""
    role: str
    content: List[Dict[str, str]] = field(default_factory=list)
    timestamp: float = field(default_factory=time.time)

    @classmethod
    def from_text(cls, role: ParticipantRole, text: str) -> "ConversationMessage":
        return cls(role=role.value, content=[{"text": text}])

    @property
    def text(self) -> str:
        return " ".join(item.get("text", "") for item in self.content)


@dataclass
class ClassifierResult:
    """Outcome of classifying a user request."""
    selected_agent: Optional["Agent"]
    confidence: float = 0.0


@dataclass
class AgentProcessingResult:
    """Metadata describing who processed a request."""
    user_input: str
    agent_id: str
    agent_name: str
    user_id: str
    session_id: str
    additional_params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AgentResponse:
    """Response returned by the orchestrator for a routed request."""
    metadata: AgentProcessingResult
    output: str
    success: bool = True
    error_message: Optional[str] = None
    processing_time: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class RoutingDecision:
    """Audit record of a routing decision."""
    user_input: str
    outcome: RoutingOutcome
    agent_id: Optional[str]
    confidence: float
    user_id: str
    session_id: str
    classification_time: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)
