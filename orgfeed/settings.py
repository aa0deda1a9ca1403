"""
Configuration Facade

This module provides a central facade for accessing all configuration values.
It is the sole module responsible for loading and providing access to
parameters from config.yaml, decoupling the compiler, adapter and CLI from
the YAML file's structure.

Usage:
    >>> from orgfeed.settings import settings
    >>> settings.initialize('config/config.yaml')
    >>> files = settings.get_outline_files()
    >>> tree_id = settings.get_tree_id()
"""
import os
import logging
from typing import Optional, List

from orgfeed.config_loader import ConfigLoader
from orgfeed.config_schema import OrgFeedConfigSchema

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/config.yaml"
DEFAULT_ENV_PATH = ".env"


class Settings:
    """
    Configuration facade providing getter methods for all configuration values.

    It loads configuration once and provides type-safe access to all values.

    All modules should import and use this singleton instance:
        from orgfeed.settings import settings
    """

    _instance: Optional['Settings'] = None
    _config: Optional[OrgFeedConfigSchema] = None

    def __new__(cls):
        """Singleton pattern - ensure only one instance exists."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def initialize(
        self,
        config_path: str = DEFAULT_CONFIG_PATH,
        env_path: str = DEFAULT_ENV_PATH,
        allow_missing: bool = False
    ) -> None:
        """
        Initialize the settings facade by loading configuration.

        This should be called once at application startup.
        If not called explicitly, configuration will be loaded lazily on first access.

        Args:
            config_path: Path to the YAML configuration file
            env_path: Path to the .env file (for loading environment variables)
            allow_missing: Fall back to schema defaults (plus ORGFEED_* env
                overrides) when config_path does not exist

        Raises:
            ConfigurationError: If configuration loading or validation fails
        """
        if self._config is not None:
            logger.warning("Settings already initialized, ignoring re-initialization")
            return

        if os.path.exists(env_path):
            from dotenv import load_dotenv
            load_dotenv(env_path)
            logger.info(f"Loaded environment variables from {env_path}")

        if allow_missing and not os.path.exists(config_path):
            logger.info(f"No configuration file at {config_path}, using defaults")
            self._config = ConfigLoader.load_from_dict(ConfigLoader._apply_env_overrides({}))
        else:
            self._config = ConfigLoader(config_path).load()
        logger.info("Settings facade initialized successfully")

    def reset(self) -> None:
        """Drop the loaded configuration so the next access reloads it."""
        self._config = None

    def _ensure_initialized(self) -> None:
        """Ensure configuration is loaded (lazy initialization)."""
        if self._config is None:
            logger.info("Settings not initialized, loading configuration lazily")
            self.initialize(allow_missing=True)

    # Outline Configuration Getters

    def get_outline_files(self) -> List[str]:
        """Get outline document paths, with ~ expanded."""
        self._ensure_initialized()
        return [os.path.expanduser(path) for path in self._config.outline.files]

    def get_tree_id(self) -> str:
        """Get the marker tag that selects feed subtrees."""
        self._ensure_initialized()
        return self._config.outline.tree_id

    def get_ignore_tag(self) -> str:
        """Get the tag that excludes headings from rule generation."""
        self._ensure_initialized()
        return self._config.outline.ignore_tag

    # Logging Configuration Getters

    def get_log_level(self) -> str:
        """Get log level name."""
        self._ensure_initialized()
        return self._config.logging.level

    def get_log_format(self) -> str:
        """Get log format ('plain' or 'json')."""
        self._ensure_initialized()
        return self._config.logging.format

    def get_log_file(self) -> Optional[str]:
        """Get optional log file path."""
        self._ensure_initialized()
        return self._config.logging.file


# Singleton instance - import this in other modules
settings = Settings()
