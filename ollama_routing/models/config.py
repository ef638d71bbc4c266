"""
Configuration models for the Ollama routing system.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional
import logging


@dataclass
class OllamaClassifierOptions:
    """Configuration for the Ollama-backed classifier."""
    model_id: str = "llama3.1"
    inference_config: Dict[str, Any] = field(default_factory=dict)
    host: str = "http://localhost:11434"
    timeout_seconds: int = 30


@dataclass
class OpenAIClassifierOptions:
    """Configuration for the OpenAI-compatible classifier."""
    api_key: str = ""
    model_id: str = "gpt-4o-mini"
    base_url: Optional[str] = None
    inference_config: Dict[str, Any] = field(default_factory=dict)
    timeout_seconds: int = 60


@dataclass
class OllamaAgentOptions:
    """Configuration for an agent answering through a local Ollama model."""
    name: str
    description: str
    model_id: str = "llama3.1"
    host: str = "http://localhost:11434"
    temperature: float = 0.7
    system_prompt: Optional[str] = None


@dataclass
class OrchestratorConfig:
    """Behaviour switches for the multi-agent orchestrator."""
    log_agent_chat: bool = False
    log_classifier_chat: bool = False
    log_classifier_raw_output: bool = False
    log_classifier_output: bool = False
    log_execution_times: bool = False
    max_retries: int = 3
    retry_base_delay: float = 1.0
    retry_max_delay: float = 10.0
    use_default_agent_if_none_identified: bool = True
    confidence_threshold: Optional[float] = None
    classification_error_message: str = (
        "I'm sorry, an error occurred while processing your request. Please try again later."
    )
    no_selected_agent_message: str = (
        "I'm sorry, I couldn't determine how to handle your request. "
        "Could you please rephrase it?"
    )
    general_routing_error_msg_message: str = (
        "An error occurred while processing your request. Please try again later."
    )
    max_message_pairs_per_agent: int = 100
    max_log_entries: int = 1000


@dataclass
class LoggingConfig:
    """Configuration for system logging."""
    level: int = logging.INFO
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = "ollama_routing.log"
    max_file_size_mb: int = 100
    backup_count: int = 5
    enable_console: bool = True
    enable_file: bool = True


@dataclass
class SystemConfig:
    """Main system configuration."""
    classifier_config: OllamaClassifierOptions = field(default_factory=OllamaClassifierOptions)
    openai_classifier_config: OpenAIClassifierOptions = field(default_factory=OpenAIClassifierOptions)
    orchestrator_config: OrchestratorConfig = field(default_factory=OrchestratorConfig)
    logging_config: LoggingConfig = field(default_factory=LoggingConfig)
    classifier_backend: str = "ollama"
    debug_mode: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict)
