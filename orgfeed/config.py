import os
import yaml
from typing import Any, Dict


class ConfigurationError(Exception):
    """
    Raised when configuration loading or validation fails.

    This exception is raised for:
    - Missing config files
    - Missing outline documents named in the configuration
    - Invalid YAML syntax
    - Configuration values rejected by the schema
    """
    pass


def load_yaml_config(path: str) -> Dict[str, Any]:
    """
    Load and parse a YAML configuration file.

    Args:
        path: Path to the YAML configuration file

    Returns:
        Dictionary containing the parsed configuration (empty dict for an empty file)

    Raises:
        ConfigurationError: If the file doesn't exist or contains invalid YAML

    Example:
        >>> config = load_yaml_config('config/config.yaml')
        >>> print(config['outline']['tree_id'])
        'elfeed'
    """
    if not os.path.exists(path):
        raise ConfigurationError(f"Config file not found: {path}")
    with open(path, 'r', encoding='utf-8') as f:
        try:
            config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"YAML parse error in {path}: {e}")
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigurationError(
            f"Config file {path} must contain a mapping, got {type(config).__name__}"
        )
    return config
