"""
Configuration management for the Ollama routing system.
"""

import copy
import json
import os
from dataclasses import asdict
from pathlib import Path
from typing import Optional, Dict, Any
import logging

from ..models.config import (
    SystemConfig, OllamaClassifierOptions, OpenAIClassifierOptions,
    OrchestratorConfig, LoggingConfig,
)
from .error_handling import ConfigurationError

SUPPORTED_BACKENDS = ("ollama", "openai")


class ConfigManager:
    """
    Manages system configuration loading, validation, and updates.

    Values from the config file can be overridden by the environment:
    OLLAMA_HOST, OLLAMA_MODEL and OPENAI_API_KEY.
    """

    def __init__(self, config_path: Optional[str] = None, environ: Optional[Dict[str, str]] = None):
        self.config_path = config_path or "config.json"
        self.environ = os.environ if environ is None else environ
        self._config: Optional[SystemConfig] = None
        # Values as stored on disk, without environment overrides
        self._file_config: Optional[SystemConfig] = None
        self.logger = logging.getLogger(__name__)

    def load_config(self) -> SystemConfig:
        """
        Load configuration from file or create default configuration.

        Returns:
            SystemConfig instance

        Raises:
            ConfigurationError: If configuration loading fails
        """
        try:
            if Path(self.config_path).exists():
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    config_data = json.load(f)
                self._file_config = self._dict_to_config(config_data)
                self.logger.info(f"Configuration loaded from {self.config_path}")
            else:
                self._file_config = SystemConfig()
                self.save_config()  # Save default config
                self.logger.info("Default configuration created")

            config = self._with_environment(self._file_config)
            self._validate_config(config)
            self._config = config
            return self._config

        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration: {str(e)}") from e

    def save_config(self, config: Optional[SystemConfig] = None) -> None:
        """
        Save configuration to file.

        Args:
            config: Configuration to save (uses the file values if None,
                so environment overrides never reach the file)

        Raises:
            ConfigurationError: If configuration saving fails
        """
        config_to_save = config or self._file_config
        if not config_to_save:
            raise ConfigurationError("No configuration to save")

        try:
            config_dict = self._config_to_dict(config_to_save)

            Path(self.config_path).parent.mkdir(parents=True, exist_ok=True)

            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(config_dict, f, indent=2, default=str)

            self.logger.info(f"Configuration saved to {self.config_path}")

        except Exception as e:
            raise ConfigurationError(f"Failed to save configuration: {str(e)}") from e

    def get_config(self) -> SystemConfig:
        """
        Get current configuration, loading if necessary.

        Returns:
            SystemConfig instance
        """
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def update_config(self, updates: Dict[str, Any]) -> SystemConfig:
        """
        Update configuration with new values.

        Args:
            updates: Dictionary of configuration updates

        Returns:
            Updated SystemConfig instance
        """
        self.get_config()
        config_dict = self._config_to_dict(self._file_config)

        self._deep_update(config_dict, updates)

        try:
            updated_file_config = self._dict_to_config(config_dict)
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration update: {str(e)}") from e
        updated_config = self._with_environment(updated_file_config)
        self._validate_config(updated_config)

        self._file_config = updated_file_config
        self._config = updated_config
        self.save_config()

        return updated_config

    def _with_environment(self, config: SystemConfig) -> SystemConfig:
        effective = copy.deepcopy(config)
        self._apply_environment(effective)
        return effective

    def _apply_environment(self, config: SystemConfig) -> None:
        """Override file values with environment variables."""
        host = self.environ.get("OLLAMA_HOST")
        if host:
            if not host.startswith(("http://", "https://")):
                host = f"http://{host}"
            config.classifier_config.host = host.rstrip("/")

        model = self.environ.get("OLLAMA_MODEL")
        if model:
            config.classifier_config.model_id = model

        api_key = self.environ.get("OPENAI_API_KEY")
        if api_key:
            config.openai_classifier_config.api_key = api_key

    def _validate_config(self, config: SystemConfig) -> None:
        """
        Validate configuration settings.

        Raises:
            ConfigurationError: If validation fails
        """
        classifier = config.classifier_config
        if not classifier.model_id:
            raise ConfigurationError("Classifier model id must not be empty", config_key="classifier_config.model_id")

        if not classifier.host.startswith(("http://", "https://")):
            raise ConfigurationError(f"Invalid Ollama host: {classifier.host}", config_key="classifier_config.host")

        if classifier.timeout_seconds <= 0:
            raise ConfigurationError("Classifier timeout must be positive", config_key="classifier_config.timeout_seconds")

        temperature = classifier.inference_config.get("temperature")
        if temperature is not None and not 0 <= temperature <= 2:
            raise ConfigurationError("Temperature must be between 0 and 2", config_key="classifier_config.inference_config")

        if config.classifier_backend not in SUPPORTED_BACKENDS:
            raise ConfigurationError(
                f"Unknown classifier backend: {config.classifier_backend}", config_key="classifier_backend"
            )

        if config.classifier_backend == "openai" and not config.openai_classifier_config.api_key:
            self.logger.warning("OpenAI classifier selected but no API key configured")

        orchestrator = config.orchestrator_config
        if orchestrator.max_retries < 0:
            raise ConfigurationError("max_retries must not be negative", config_key="orchestrator_config.max_retries")

        if orchestrator.confidence_threshold is not None and not 0 <= orchestrator.confidence_threshold <= 1:
            raise ConfigurationError(
                "Confidence threshold must be between 0 and 1", config_key="orchestrator_config.confidence_threshold"
            )

        if orchestrator.max_message_pairs_per_agent <= 0:
            raise ConfigurationError(
                "max_message_pairs_per_agent must be positive",
                config_key="orchestrator_config.max_message_pairs_per_agent"
            )

        if orchestrator.max_log_entries <= 0:
            raise ConfigurationError(
                "max_log_entries must be positive", config_key="orchestrator_config.max_log_entries"
            )

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> SystemConfig:
        """Convert dictionary to SystemConfig object."""
        return SystemConfig(
            classifier_config=OllamaClassifierOptions(**config_dict.get('classifier_config', {})),
            openai_classifier_config=OpenAIClassifierOptions(**config_dict.get('openai_classifier_config', {})),
            orchestrator_config=OrchestratorConfig(**config_dict.get('orchestrator_config', {})),
            logging_config=LoggingConfig(**config_dict.get('logging_config', {})),
            classifier_backend=config_dict.get('classifier_backend', 'ollama'),
            debug_mode=config_dict.get('debug_mode', False),
            metadata=config_dict.get('metadata', {})
        )

    def _config_to_dict(self, config: SystemConfig) -> Dict[str, Any]:
        """Convert SystemConfig object to dictionary."""
        return asdict(config)

    def _deep_update(self, base_dict: Dict[str, Any], updates: Dict[str, Any]) -> None:
        """Recursively update nested dictionary."""
        for key, value in updates.items():
            if key in base_dict and isinstance(base_dict[key], dict) and isinstance(value, dict):
                self._deep_update(base_dict[key], value)
            else:
                base_dict[key] = value
