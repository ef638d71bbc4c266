"""
Utility modules for the Ollama routing system.
"""

from .logging import setup_logging, get_logger, RoutingLogger
from .config_manager import ConfigManager
from .error_handling import (
    OllamaRoutingError,
    ConfigurationError,
    ResourceUnavailableError,
    APIError,
    ClassificationError,
    AgentProcessingError,
    handle_error,
    retry_with_backoff,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "RoutingLogger",
    "ConfigManager",
    "OllamaRoutingError",
    "ConfigurationError",
    "ResourceUnavailableError",
    "APIError",
    "ClassificationError",
    "AgentProcessingError",
    "handle_error",
    "retry_with_backoff",
]
