"""
Classifier backed by a locally hosted Ollama model.
"""

import time
from typing import Any, Dict, List, Optional

import requests

from ..models import ClassifierResult, ConversationMessage, OllamaClassifierOptions
from ..utils import get_logger
from ..utils.error_handling import APIError, ClassificationError, ResourceUnavailableError
from .classifier import Classifier
from .tools import ANALYZE_PROMPT_TOOL, NO_TOOL_USE_MESSAGE, parse_tool_arguments

# inference_config key -> Ollama option name
_OPTION_NAMES = {
    "temperature": "temperature",
    "maxTokens": "num_predict",
    "topP": "top_p",
    "stopSequences": "stop",
}


class OllamaClassifier(Classifier):
    """
    Classifier using Ollama's chat API with tool calling.

    The model receives the rendered system prompt plus the user input and
    must answer with an ``analyzePrompt`` tool call naming the agent.
    """

    def __init__(self, options: Optional[OllamaClassifierOptions] = None,
                 session: Optional[requests.Session] = None):
        super().__init__()
        self.options = options or OllamaClassifierOptions()
        self.model_id = self.options.model_id or "llama3.1"
        self.host = (self.options.host or "http://localhost:11434").rstrip("/")
        self.inference_config = dict(self.options.inference_config or {})
        self.temperature = self.inference_config.get("temperature", 0.0)
        self.tools = [ANALYZE_PROMPT_TOOL]
        self.session = session or requests.Session()
        self.logger = get_logger(__name__)

        self.logger.info(f"Initialized OllamaClassifier with model: {self.model_id} at {self.host}")

    def build_options(self) -> Dict[str, Any]:
        """Map the inference config onto Ollama's ``options`` object."""
        options = {"temperature": self.temperature}
        for key, option_name in _OPTION_NAMES.items():
            if key in self.inference_config and key != "temperature":
                options[option_name] = self.inference_config[key]
        return options

    def build_payload(self, input_text: str, system_prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model_id,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": input_text},
            ],
            "tools": self.tools,
            "options": self.build_options(),
            "stream": False,
        }

    def process_request(self, input_text: str, chat_history: List[ConversationMessage],
                        system_prompt: str) -> ClassifierResult:
        start_time = time.time()

        try:
            response = self.session.post(
                f"{self.host}/api/chat",
                json=self.build_payload(input_text, system_prompt),
                timeout=self.options.timeout_seconds
            )

            if response.status_code != 200:
                raise APIError(
                    f"Ollama API error: {response.status_code} - {response.text}",
                    api_name="ollama",
                    status_code=response.status_code
                )

            message = response.json().get("message") or {}
            tool_calls = message.get("tool_calls")
            if not tool_calls:
                raise ValueError(NO_TOOL_USE_MESSAGE)

            function = tool_calls[0].get("function") or {}
            tool_input = parse_tool_arguments(function.get("name"), function.get("arguments"))

            result = ClassifierResult(
                selected_agent=self.get_agent_by_id(tool_input["selected_agent"]),
                confidence=tool_input["confidence"]
            )

            self.logger.info(
                f"Classification complete: {tool_input['selected_agent']} "
                f"(confidence: {result.confidence:.2f}) in {time.time() - start_time:.2f}s"
            )
            return result

        except requests.exceptions.Timeout as e:
            self.logger.error(f"Error in Ollama Classifier: request timeout after {self.options.timeout_seconds} seconds")
            raise ClassificationError(
                f"Ollama request timed out: {str(e)}", request_content=input_text[:100]
            ) from e
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Error in Ollama Classifier: {str(e)}")
            raise ClassificationError(
                f"Ollama server not reachable: {str(e)}", request_content=input_text[:100]
            ) from e
        except Exception as e:
            self.logger.error(f"Error in Ollama Classifier: {str(e)}")
            raise ClassificationError(
                f"Failed to classify request: {str(e)}", request_content=input_text[:100]
            ) from e

    def list_models(self) -> List[str]:
        """
        List the models available on the Ollama server.

        Raises:
            ResourceUnavailableError: If the server cannot be reached
        """
        try:
            response = self.session.get(f"{self.host}/api/tags", timeout=5)
        except requests.exceptions.RequestException as e:
            raise ResourceUnavailableError(
                f"Ollama server not accessible: {str(e)}", resource_type="ollama"
            ) from e

        if response.status_code != 200:
            raise ResourceUnavailableError(
                f"Ollama server not accessible: {response.status_code}", resource_type="ollama"
            )
        return [model["name"] for model in response.json().get("models", [])]

    def is_healthy(self) -> bool:
        """Check that the server is up and serves the configured model."""
        try:
            model_names = self.list_models()
        except ResourceUnavailableError as e:
            self.logger.error(f"Health check failed: {str(e)}")
            return False

        # Ollama reports "llama3.1:latest" for a model pulled as "llama3.1"
        accepted = {self.model_id, f"{self.model_id}:latest"}
        if not accepted.intersection(model_names):
            self.logger.warning(f"Model {self.model_id} not found. Available models: {model_names}")
            return False
        return True
