"""Configuration management for SSE streaming clients."""

import os
from typing import Any

import yaml
from dotenv import load_dotenv

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "config.yaml")


class Configuration:
    """Manages configuration and environment variables for streaming clients."""

    def __init__(self, config_path: str | None = None) -> None:
        """Initialize configuration from YAML and environment variables."""
        self.load_env()  # Load .env for API keys
        self._config = self._load_yaml_config(config_path or DEFAULT_CONFIG_PATH)

    @staticmethod
    def load_env() -> None:
        """Load environment variables from .env file."""
        load_dotenv()

    @staticmethod
    def _load_yaml_config(config_path: str) -> dict[str, Any]:
        """Load configuration from YAML file."""
        with open(config_path) as file:
            config = yaml.safe_load(file)
            if not isinstance(config, dict):
                raise ValueError(
                    f"Config file must be YAML dict, got {type(config)}"
                )
            return config

    @property
    def active_provider(self) -> str:
        return self._config.get("stream", {}).get("active", "openai")

    @property
    def api_key(self) -> str:
        """Get the API key for the active provider.

        Returns:
            The API key as a string.

        Raises:
            ValueError: If the API key is not found in environment variables.
        """
        env_key = self.get_stream_config()["api_key_env"]
        api_key = os.getenv(env_key)
        if not api_key:
            raise ValueError(
                f"API key '{env_key}' not found in environment variables "
                f"for provider '{self.active_provider}'"
            )

        return api_key

    def get_stream_config(self) -> dict[str, Any]:
        """Get active streaming provider configuration from YAML.

        Returns:
            Active provider configuration dictionary.

        Raises:
            ValueError: If required streaming parameters are missing or invalid.
        """
        providers = self._config.get("stream", {}).get("providers", {})
        active_provider = self.active_provider

        if active_provider not in providers:
            raise ValueError(
                f"Active provider '{active_provider}' not found in providers config"
            )

        provider_config = providers[active_provider]

        required_keys = [
            "base_url", "path", "model", "api_key_env",
            "expected_content_type", "completion_marker", "event_delimiter",
        ]
        for key in required_keys:
            if key not in provider_config:
                raise ValueError(
                    f"stream.providers.{active_provider}.{key} must be "
                    "explicitly configured in config.yaml"
                )

        for key in ["completion_marker", "event_delimiter"]:
            value = provider_config[key]
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"{key} must be a non-empty string")

        return provider_config

    def get_http_client_config(self) -> dict[str, Any]:
        """Get HTTP client configuration for the active provider.

        Returns:
            HTTP client configuration dictionary with validated values.

        Raises:
            ValueError: If required HTTP client parameters are missing or invalid.
        """
        http_config = self.get_stream_config().get("http_client", {})

        required_keys = [
            "connect_timeout", "read_timeout", "write_timeout", "pool_timeout",
        ]

        for key in required_keys:
            if key not in http_config:
                raise ValueError(
                    f"http_client.{key} must be explicitly configured "
                    f"for provider '{self.active_provider}' in config.yaml"
                )
            if http_config[key] <= 0:
                raise ValueError(f"http_client.{key} must be positive")

        return http_config

    def get_logging_config(self) -> dict[str, Any]:
        """Get logging configuration from YAML."""
        return self._config.get("logging", {})
