"""
Base classifier for matching user requests with registered agents.
"""

import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union

from ..models import ClassifierResult, ConversationMessage
from ..utils import get_logger
from .agents import Agent

UNKNOWN_AGENT_ID = "unknown"

DEFAULT_CLASSIFIER_PROMPT = """
You are AgentMatcher, an intelligent assistant designed to analyze user queries and match them with the most suitable agent or department. Your task is to understand the user's request, identify key entities and intents, and determine which agent or department would be best equipped to handle the query.

Important: The user's input may be a follow-up response to a previous interaction. The conversation history, including the name of the previously selected agent, is provided. If the user's input appears to be a continuation of the previous conversation (e.g., "yes", "ok", "I want to know more", "1"), select the same agent as before.

Analyze the user's input and categorize it into one of the following agent types:
<agents>
{{AGENT_DESCRIPTIONS}}
</agents>
If you are unable to select an agent put "unknown"

Guidelines for classification:
    Agent Type: Choose the most appropriate agent type based on the nature of the query. For follow-up responses, use the same agent type as the previous interaction.
    Key Entities: Extract important nouns, product names, or specific issues mentioned. For follow-up responses, include relevant entities from the previous interaction if applicable.
    For follow-ups, relate the intent to the ongoing conversation.
    Confidence: Indicate how confident you are in the classification, as a number between 0 and 1.
        High (0.8 - 1.0): Clear, straightforward requests or clear follow-ups
        Medium (0.5 - 0.8): Requests with some ambiguity but likely classification
        Low (0 - 0.5): Vague or multi-faceted requests that could fit multiple categories

Handle variations in user input, including different phrasings, synonyms, and potential spelling errors. For short responses like "yes", "ok", "I want to know more", or numerical answers, treat them as follow-ups and maintain the previous agent selection.

Here is the conversation history that you need to take into account before answering:
<history>
{{HISTORY}}
</history>

Skip any preamble and provide only the response in the specified format.
"""

_PLACEHOLDER = re.compile(r'{{(\w+)}}')


class Classifier(ABC):
    """
    Base class for request classifiers.

    Keeps the registry of candidate agents and renders the system prompt
    from a template with ``{{AGENT_DESCRIPTIONS}}`` and ``{{HISTORY}}``
    placeholders plus any custom variables. Subclasses implement
    ``process_request`` against a concrete model backend.
    """

    def __init__(self):
        self.logger = get_logger(__name__)
        self.agents: Dict[str, Agent] = {}
        self.agent_descriptions = ""
        self.history = ""
        self.custom_variables: Dict[str, Union[str, List[str]]] = {}
        self.prompt_template = DEFAULT_CLASSIFIER_PROMPT
        self.system_prompt = ""

    def set_agents(self, agents: Dict[str, Agent]) -> None:
        self.agents = dict(agents)
        self.agent_descriptions = "\n\n".join(
            f"{agent_id}:{agent.description}" for agent_id, agent in self.agents.items()
        )

    def set_history(self, messages: List[ConversationMessage]) -> None:
        self.history = self.format_messages(messages)

    def set_system_prompt(self, template: Optional[str] = None,
                          variables: Optional[Dict[str, Union[str, List[str]]]] = None) -> None:
        """
        Replace the prompt template and/or the custom template variables.

        Args:
            template: New prompt template, kept unchanged if None
            variables: Custom placeholder values, kept unchanged if None
        """
        if template:
            self.prompt_template = template
        if variables is not None:
            self.custom_variables = dict(variables)
        self.update_system_prompt()

    def update_system_prompt(self) -> None:
        self.system_prompt = self.render_system_prompt(self.history)

    def render_system_prompt(self, history: str) -> str:
        all_variables = {
            **self.custom_variables,
            "AGENT_DESCRIPTIONS": self.agent_descriptions,
            "HISTORY": history,
        }
        return self.replace_placeholders(self.prompt_template, all_variables)

    @staticmethod
    def format_messages(messages: List[ConversationMessage]) -> str:
        return "\n".join(f"{message.role.lower()}: {message.text}" for message in messages)

    @staticmethod
    def replace_placeholders(template: str, variables: Dict[str, Any]) -> str:
        """Substitute ``{{NAME}}`` placeholders, leaving unknown ones untouched."""
        def replace(match):
            key = match.group(1)
            if key not in variables:
                return match.group(0)
            value = variables[key]
            if isinstance(value, list):
                return "\n".join(str(item) for item in value)
            return str(value)

        return _PLACEHOLDER.sub(replace, template)

    def get_agent_by_id(self, agent_id: Optional[str]) -> Optional[Agent]:
        """
        Look up an agent by the id the model returned.

        Only the first word is used and case is ignored, since models
        tend to decorate the id ("tech-agent (confident)").
        """
        if not agent_id or not agent_id.strip():
            return None
        key = agent_id.split()[0].lower()
        if key == UNKNOWN_AGENT_ID:
            return None
        return self.agents.get(key)

    def classify(self, input_text: str, chat_history: List[ConversationMessage]) -> ClassifierResult:
        """
        Classify a request against the registered agents.

        Args:
            input_text: The user's input
            chat_history: Conversation history across all agents of the session

        Returns:
            ClassifierResult with the selected agent (or None) and confidence

        Raises:
            ClassificationError: If the backend call fails
        """
        # Rendered per call so concurrent requests never share a prompt
        system_prompt = self.render_system_prompt(self.format_messages(chat_history))
        self.system_prompt = system_prompt
        return self.process_request(input_text, chat_history, system_prompt)

    @abstractmethod
    def process_request(self, input_text: str, chat_history: List[ConversationMessage],
                        system_prompt: str) -> ClassifierResult:
        """Run the backend call with the rendered system prompt."""

    def is_healthy(self) -> bool:
        return True
