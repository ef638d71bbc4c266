"""
Classifier using an OpenAI-compatible chat-completions endpoint.

Pointing ``base_url`` at ``http://localhost:11434/v1`` runs the same
classification against a local Ollama server through its OpenAI
compatibility layer.
"""

from typing import List, Optional

import openai
from openai import OpenAI

from ..models import ClassifierResult, ConversationMessage, OpenAIClassifierOptions
from ..utils import get_logger
from ..utils.error_handling import ClassificationError, ConfigurationError
from .classifier import Classifier
from .tools import ANALYZE_PROMPT_TOOL, ANALYZE_PROMPT_TOOL_NAME, NO_TOOL_USE_MESSAGE, parse_tool_arguments


class OpenAIClassifier(Classifier):
    """Classifier that forces an ``analyzePrompt`` tool call."""

    def __init__(self, options: Optional[OpenAIClassifierOptions] = None, client: Optional[OpenAI] = None):
        super().__init__()
        self.options = options or OpenAIClassifierOptions()
        self.logger = get_logger(__name__)

        if client is not None:
            self._client = client
        elif self.options.api_key:
            self._client = OpenAI(
                api_key=self.options.api_key,
                base_url=self.options.base_url,
                timeout=self.options.timeout_seconds
            )
        else:
            raise ConfigurationError("OpenAI API key not provided", config_key="openai_classifier_config.api_key")

        self.model_id = self.options.model_id
        self.inference_config = dict(self.options.inference_config or {})
        self.tools = [ANALYZE_PROMPT_TOOL]

        self.logger.info(f"Initialized OpenAIClassifier with model: {self.model_id}")

    def process_request(self, input_text: str, chat_history: List[ConversationMessage],
                        system_prompt: str) -> ClassifierResult:
        api_params = {
            "model": self.model_id,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": input_text},
            ],
            "tools": self.tools,
            "tool_choice": {"type": "function", "function": {"name": ANALYZE_PROMPT_TOOL_NAME}},
            "temperature": self.inference_config.get("temperature", 0.0),
            "max_tokens": self.inference_config.get("maxTokens", 1000),
        }
        if "topP" in self.inference_config:
            api_params["top_p"] = self.inference_config["topP"]
        if "stopSequences" in self.inference_config:
            api_params["stop"] = self.inference_config["stopSequences"]

        try:
            response = self._client.chat.completions.create(**api_params)

            tool_calls = response.choices[0].message.tool_calls if response.choices else None
            if not tool_calls:
                raise ValueError(NO_TOOL_USE_MESSAGE)

            function = tool_calls[0].function
            tool_input = parse_tool_arguments(function.name, function.arguments)

            result = ClassifierResult(
                selected_agent=self.get_agent_by_id(tool_input["selected_agent"]),
                confidence=tool_input["confidence"]
            )
            self.logger.info(
                f"Classification complete: {tool_input['selected_agent']} (confidence: {result.confidence:.2f})"
            )
            return result

        except openai.APIError as e:
            self.logger.error(f"OpenAI API error in classifier: {str(e)}")
            raise ClassificationError(
                f"OpenAI API error: {str(e)}", request_content=input_text[:100]
            ) from e
        except Exception as e:
            self.logger.error(f"Error in OpenAI Classifier: {str(e)}")
            raise ClassificationError(
                f"Failed to classify request: {str(e)}", request_content=input_text[:100]
            ) from e
