"""
Configuration management for Stash.

This module handles loading and accessing configuration values from config.yaml.
It provides a centralized way to manage all settings so behavior can be tuned
without changing code.
"""

import yaml
from pathlib import Path
from typing import Any, Dict
import logging


class ConfigManager:
    """
    Manages configuration loading and access for Stash.
    """

    def __init__(self, config_path: str = "config.yaml"):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file
        """
        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        try:
            if not self.config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

            with open(self.config_path, 'r', encoding='utf-8') as f:
                self._config = yaml.safe_load(f) or {}

            logging.info(f"Configuration loaded from {self.config_path}")

        except Exception as e:
            logging.error(f"Failed to load configuration: {e}")
            # Fall back to default configuration
            self._config = self._get_default_config()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values as fallback."""
        return {
            "ai": {
                "endpoint": "https://generativelanguage.googleapis.com/v1beta",
                "model": "gemini-3-flash-preview",
                "timeout": 30.0
            },
            "database": {
                "filename": "stash.db"
            },
            "storage": {
                "state_key": "my_stash_v1",
                "credential_key": "gemini_api_key"
            },
            "enrichment": {
                "max_content_chars": 5000,
                "max_connection_blocks": 20,
                "preview_chars": 150
            },
            "paths": {
                "export_file": "my_stash_backup.json",
                "log_file": "stash.log"
            },
            "logging": {
                "level": "INFO",
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            }
        }

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key_path: Dot-separated path to the configuration value (e.g., "ai.model")
            default: Default value if key is not found

        Returns:
            The configuration value

        Examples:
            config.get("ai.model")  # Returns "gemini-3-flash-preview"
            config.get("storage.state_key")  # Returns "my_stash_v1"
        """
        keys = key_path.split('.')
        value = self._config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def get_section(self, section: str) -> Dict[str, Any]:
        """
        Get an entire configuration section.

        Args:
            section: Name of the configuration section

        Returns:
            Dictionary containing the section configuration
        """
        return self._config.get(section, {})

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    # Convenience properties for commonly used values

    @property
    def ai_endpoint(self) -> str:
        """Get the generative-language API base URL."""
        return self.get("ai.endpoint", "https://generativelanguage.googleapis.com/v1beta")

    @property
    def model_name(self) -> str:
        """Get AI model name."""
        return self.get("ai.model", "gemini-3-flash-preview")

    @property
    def ai_timeout(self) -> float:
        """Get AI request timeout."""
        return self.get("ai.timeout", 30.0)

    @property
    def database_filename(self) -> str:
        """Get database filename."""
        return self.get("database.filename", "stash.db")

    @property
    def state_key(self) -> str:
        """Get the key the state snapshot is stored under."""
        return self.get("storage.state_key", "my_stash_v1")

    @property
    def credential_key(self) -> str:
        """Get the key the API credential is stored under."""
        return self.get("storage.credential_key", "gemini_api_key")

    @property
    def max_content_chars(self) -> int:
        """Get the analysis input cap."""
        return self.get("enrichment.max_content_chars", 5000)

    @property
    def max_connection_blocks(self) -> int:
        """Get the number of blocks sent to the connections agent."""
        return self.get("enrichment.max_connection_blocks", 20)

    @property
    def preview_chars(self) -> int:
        """Get the per-block preview length for the connections agent."""
        return self.get("enrichment.preview_chars", 150)

    @property
    def export_filename(self) -> str:
        """Get export file name."""
        return self.get("paths.export_file", "my_stash_backup.json")

    @property
    def log_filename(self) -> str:
        """Get log file name."""
        return self.get("paths.log_file", "stash.log")


# Global configuration instance
config = ConfigManager()


def get_config() -> ConfigManager:
    """
    Get the global configuration instance.

    Returns:
        The global ConfigManager instance
    """
    return config
