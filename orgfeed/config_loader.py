"""
Configuration Loader

This module provides functionality to load, parse, and validate orgfeed
configuration files using the Pydantic schema defined in config_schema.py.

Environment Variable Overrides:
    Configuration values can be overridden using environment variables.
    Naming convention: ORGFEED_<SECTION>_<KEY> (uppercase, underscores)

    Examples:
        ORGFEED_OUTLINE_TREE_ID=feeds
        ORGFEED_OUTLINE_IGNORE_TAG=skip
        ORGFEED_OUTLINE_FILES=~/org/feeds.org:~/org/more.org
        ORGFEED_LOGGING_LEVEL=DEBUG
"""
import os
import logging
from typing import Dict, Any, List
from pathlib import Path

from pydantic import ValidationError

from orgfeed.config import ConfigurationError, load_yaml_config
from orgfeed.config_schema import OrgFeedConfigSchema

logger = logging.getLogger(__name__)

ENV_PREFIX = "ORGFEED_"

SECTION_MAP = {
    'OUTLINE': 'outline',
    'LOGGING': 'logging',
}

# Fields that hold lists in the schema
LIST_FIELDS = {
    'outline': ['files'],
}


class ConfigLoader:
    """
    Configuration loader for orgfeed configuration files.

    Args:
        config_path: Path to the YAML configuration file

    Raises:
        ConfigurationError: If the config file is missing, invalid YAML, or validation fails

    Example:
        >>> loader = ConfigLoader('config/config.yaml')
        >>> config = loader.load()
        >>> print(config.outline.tree_id)
        'elfeed'
    """

    def __init__(self, config_path: str):
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

    @staticmethod
    def _apply_env_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply environment variable overrides to configuration dictionary.

        Environment variable naming: ORGFEED_<SECTION>_<KEY>
        Examples:
            ORGFEED_OUTLINE_TREE_ID -> config['outline']['tree_id']
            ORGFEED_LOGGING_LEVEL -> config['logging']['level']

        Args:
            config_dict: Configuration dictionary from YAML

        Returns:
            Configuration dictionary with environment variable overrides applied
        """
        overrides_applied = []

        for env_key, env_value in os.environ.items():
            if not env_key.startswith(ENV_PREFIX):
                continue

            key_without_prefix = env_key[len(ENV_PREFIX):]
            parts = key_without_prefix.split('_', 1)

            if len(parts) != 2:
                logger.warning(f"Invalid environment variable format: {env_key} (expected ORGFEED_<SECTION>_<KEY>)")
                continue

            section_env, key_env = parts
            section = SECTION_MAP.get(section_env)

            if not section:
                logger.warning(f"Unknown configuration section in environment variable: {env_key}")
                continue

            section_dict = config_dict.get(section)
            if not isinstance(section_dict, dict):
                section_dict = {}
                config_dict[section] = section_dict

            key = key_env.lower()
            converted_value = ConfigLoader._convert_env_value(key, env_value, section)
            section_dict[key] = converted_value
            overrides_applied.append(f"{section}.{key}={converted_value}")

        if overrides_applied:
            logger.info(f"Applied {len(overrides_applied)} environment variable overrides: {', '.join(overrides_applied)}")

        return config_dict

    @staticmethod
    def _convert_env_value(key: str, value: str, section: str) -> Any:
        """
        Convert environment variable string value to appropriate type.

        List fields accept os.pathsep- or comma-separated values.
        """
        if key in LIST_FIELDS.get(section, []):
            return _split_list_value(value)
        return value

    def load(self) -> OrgFeedConfigSchema:
        """
        Load and validate the configuration file.

        Environment variable overrides are applied before validation.

        Returns:
            Validated OrgFeedConfigSchema instance

        Raises:
            ConfigurationError: If YAML parsing or schema validation fails
        """
        logger.info(f"Loading configuration from {self.config_path}")

        raw_config = load_yaml_config(str(self.config_path))
        raw_config = self._apply_env_overrides(raw_config)

        return self.load_from_dict(raw_config)

    @staticmethod
    def load_from_dict(config_dict: Dict[str, Any]) -> OrgFeedConfigSchema:
        """
        Load and validate configuration from a dictionary.

        This is useful for testing or programmatic configuration.

        Args:
            config_dict: Configuration dictionary

        Returns:
            Validated OrgFeedConfigSchema instance

        Raises:
            ConfigurationError: If schema validation fails
        """
        try:
            validated_config = OrgFeedConfigSchema(**config_dict)
        except ValidationError as e:
            error_msg = f"Configuration validation failed: {e}"
            logger.error(error_msg)
            raise ConfigurationError(error_msg) from e
        logger.debug("Configuration validated successfully")
        return validated_config


def _split_list_value(value: str) -> List[str]:
    separator = ',' if ',' in value else os.pathsep
    return [item.strip() for item in value.split(separator) if item.strip()]
