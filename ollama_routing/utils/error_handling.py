"""
Error handling utilities and custom exceptions for the Ollama routing system.
"""

import random
import time
from functools import wraps
from typing import Optional, Dict, Any, Tuple, Type

import requests


class OllamaRoutingError(Exception):
    """Base exception for all Ollama routing system errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}


class ConfigurationError(OllamaRoutingError):
    """Raised when there are configuration-related errors."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        super().__init__(message, error_code="CONFIG_ERROR", **kwargs)
        self.config_key = config_key


class ResourceUnavailableError(OllamaRoutingError):
    """Raised when the model-serving daemon cannot be reached."""

    def __init__(self, message: str, resource_type: Optional[str] = None, **kwargs):
        super().__init__(message, error_code="RESOURCE_UNAVAILABLE", **kwargs)
        self.resource_type = resource_type


class APIError(OllamaRoutingError):
    """Raised when external API calls fail."""

    def __init__(self, message: str, api_name: Optional[str] = None, status_code: Optional[int] = None, **kwargs):
        super().__init__(message, error_code="API_ERROR", **kwargs)
        self.api_name = api_name
        self.status_code = status_code


class ClassificationError(OllamaRoutingError):
    """Raised when request classification fails."""

    def __init__(self, message: str, request_content: Optional[str] = None, **kwargs):
        super().__init__(message, error_code="CLASSIFICATION_ERROR", **kwargs)
        self.request_content = request_content


class AgentProcessingError(OllamaRoutingError):
    """Raised when the selected agent fails to answer."""

    def __init__(self, message: str, agent_id: Optional[str] = None, **kwargs):
        super().__init__(message, error_code="AGENT_ERROR", **kwargs)
        self.agent_id = agent_id


def handle_error(error: Exception, logger=None, context: Optional[Dict[str, Any]] = None) -> OllamaRoutingError:
    """
    Convert generic exceptions to OllamaRoutingError instances.

    Args:
        error: The original exception
        logger: Optional logger for error reporting
        context: Additional context information

    Returns:
        OllamaRoutingError instance
    """
    if isinstance(error, OllamaRoutingError):
        routing_error = error
    elif isinstance(error, requests.exceptions.Timeout):
        routing_error = ResourceUnavailableError(f"Operation timed out: {str(error)}", context=context)
    elif isinstance(error, (ConnectionError, requests.exceptions.ConnectionError)):
        routing_error = ResourceUnavailableError(str(error), context=context)
    elif isinstance(error, TimeoutError):
        routing_error = ResourceUnavailableError(f"Operation timed out: {str(error)}", context=context)
    else:
        routing_error = OllamaRoutingError(str(error), context=context)

    if logger:
        logger.error(f"{type(routing_error).__name__}: {routing_error.message}", extra={"context": context or {}})

    return routing_error


def retry_with_backoff(max_retries: int = 3, base_delay: float = 1.0, max_delay: float = 60.0,
                       exceptions: Tuple[Type[BaseException], ...] = (Exception,)):
    """
    Decorator for implementing retry logic with exponential backoff.

    The last exception is re-raised once all attempts are used up.

    Args:
        max_retries: Maximum number of retry attempts
        base_delay: Base delay in seconds
        max_delay: Maximum delay in seconds
        exceptions: Exception types that trigger a retry
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions:
                    if attempt == max_retries:
                        raise

                    # Exponential backoff with jitter
                    delay = min(base_delay * (2 ** attempt), max_delay)
                    jitter = random.uniform(0.1, 0.3) * delay
                    time.sleep(delay + jitter)

        return wrapper

    return decorator
