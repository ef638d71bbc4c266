"""
Agents that can be selected by the classifier.
"""

import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder
from langchain_ollama import ChatOllama

from ..models import ConversationMessage, OllamaAgentOptions, ParticipantRole
from ..utils import get_logger

DEFAULT_AGENT_SYSTEM_PROMPT = """
You are {agent_name}, a helpful assistant.

Your role:
{agent_description}

Rules:
- Answer only within your role.
- Be concise and accurate.
- If the request is outside your role, say so plainly.
"""


def generate_key_from_name(name: str) -> str:
    """Derive an agent id from its display name."""
    key = re.sub(r'[^a-zA-Z\s-]', '', name)
    key = re.sub(r'\s+', '-', key.strip())
    return key.lower()


class Agent(ABC):
    """
    Base class for routable agents.

    The description is what the classifier sees, so it should say plainly
    which requests the agent handles.
    """

    def __init__(self, name: str, description: str):
        if not name:
            raise ValueError("Agent name must not be empty")
        self.name = name
        self.description = description
        self.id = generate_key_from_name(name)
        if not self.id:
            raise ValueError(f"Cannot derive an agent id from name: {name!r}")
        self.logger = get_logger(__name__)

    @abstractmethod
    def process_request(self, input_text: str, user_id: str, session_id: str,
                        chat_history: List[ConversationMessage],
                        additional_params: Optional[Dict[str, Any]] = None) -> str:
        """Answer a request routed to this agent."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"


class OllamaAgent(Agent):
    """
    Agent answering through a local Ollama model.
    """

    def __init__(self, options: OllamaAgentOptions, llm: Optional[BaseChatModel] = None):
        super().__init__(options.name, options.description)
        self.options = options

        self.llm = llm or ChatOllama(
            model=options.model_id,
            base_url=options.host,
            temperature=options.temperature
        )

        system_prompt = options.system_prompt or DEFAULT_AGENT_SYSTEM_PROMPT.format(
            agent_name=options.name,
            agent_description=options.description
        )
        # Literal braces would otherwise be read as template variables
        system_prompt = system_prompt.replace("{", "{{").replace("}", "}}")

        self.prompt = ChatPromptTemplate.from_messages([
            ("system", system_prompt),
            MessagesPlaceholder("history"),
            ("human", "{input}")
        ])
        self.chain = self.prompt | self.llm | StrOutputParser()

        self.logger.info(f"Initialized OllamaAgent {self.id} with model: {options.model_id}")

    def process_request(self, input_text: str, user_id: str, session_id: str,
                        chat_history: List[ConversationMessage],
                        additional_params: Optional[Dict[str, Any]] = None) -> str:
        self.logger.info(f"{self.id} processing: {input_text[:50]}...")
        return self.chain.invoke({
            "history": self._to_langchain_messages(chat_history),
            "input": input_text
        }).strip()

    @staticmethod
    def _to_langchain_messages(chat_history: List[ConversationMessage]) -> List[BaseMessage]:
        messages: List[BaseMessage] = []
        for message in chat_history:
            if message.role == ParticipantRole.USER.value:
                messages.append(HumanMessage(content=message.text))
            elif message.role == ParticipantRole.ASSISTANT.value:
                messages.append(AIMessage(content=message.text))
        return messages
