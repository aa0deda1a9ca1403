"""
Logging Configuration Module

This module provides centralized logging configuration for orgfeed. It
initializes the `orgfeed` logger on startup so the compiler, adapter and CLI
all log with the same handlers and formats.

Key Features:
    - Startup-time logging override
    - Centralized configuration loader (defaults, YAML, env vars, runtime overrides)
    - Support for plain text and JSON formats
    - Component name (module) attached to every record

Usage:
    >>> from orgfeed.logging_config import init_logging
    >>>
    >>> # Initialize with defaults
    >>> init_logging()
    >>>
    >>> # Initialize with config file
    >>> init_logging(config_path='config/config.yaml')
    >>>
    >>> # Initialize with runtime overrides
    >>> init_logging(overrides={'level': 'DEBUG', 'format': 'json'})
"""
import copy
import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Dict, Any, Union

import yaml

ROOT_LOGGER_NAME = 'orgfeed'

PLAIN_FORMAT = '%(asctime)s %(levelname)-8s [%(component)s] %(message)s'
PLAIN_DATEFMT = '%Y-%m-%d %H:%M:%S'

# Default configuration
DEFAULT_CONFIG = {
    'level': 'INFO',
    'format': 'plain',  # 'plain' or 'json'
    'handlers': {
        'console': {
            'enabled': True,
            'level': 'INFO',
            'stream': 'stderr'
        },
        'file': {
            'enabled': False,
            'path': 'logs/orgfeed.log',
            'level': 'INFO',
            'max_bytes': 10 * 1024 * 1024,  # 10MB
            'backup_count': 5
        }
    }
}

# Environment variable overrides
ENV_VAR_MAPPING = {
    'LOG_LEVEL': 'level',
    'LOG_FORMAT': 'format',
    'LOG_FILE': ('handlers', 'file', 'path'),
    'LOG_CONSOLE': ('handlers', 'console', 'enabled'),
}


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Formats log records as one JSON object per line.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'message': record.getMessage(),
            'component': getattr(record, 'component', record.name),
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_data'):
            log_data['extra'] = record.extra_data

        return json.dumps(log_data, ensure_ascii=False)


class ComponentFilter(logging.Filter):
    """Filter that adds the emitting module's short name as `component`."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, 'component'):
            # e.g. 'compiler' from 'orgfeed.compiler'
            record.component = record.name.rsplit('.', 1)[-1]
        return True


def _load_config_from_file(config_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load logging configuration from YAML file.

    Accepts either a dedicated logging file or the main config.yaml; in the
    latter case the `logging` section is used, and its flat `file` key is
    mapped onto the file handler.

    Raises:
        FileNotFoundError: If config file doesn't exist
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Logging config file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        config = yaml.safe_load(f) or {}

    if 'logging' in config:
        config = config['logging'] or {}

    log_file = config.pop('file', None)
    if isinstance(log_file, str) and log_file:
        config = _merge_config(config, {'handlers': {'file': {'enabled': True, 'path': log_file}}})
    return config


def _apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Args:
        config: Configuration dictionary

    Returns:
        Updated configuration dictionary
    """
    config = copy.deepcopy(config)

    for env_var, config_path in ENV_VAR_MAPPING.items():
        env_value = os.environ.get(env_var)
        if env_value is None:
            continue

        if isinstance(config_path, tuple):
            current = config
            for key in config_path[:-1]:
                current = current.setdefault(key, {})
            key = config_path[-1]
            if env_var == 'LOG_CONSOLE':
                current[key] = env_value.lower() in ('true', '1', 'yes', 'on')
            else:
                current[key] = env_value
                if env_var == 'LOG_FILE':
                    current['enabled'] = True
        elif config_path == 'level':
            config[config_path] = env_value.upper()
        elif config_path == 'format':
            config[config_path] = env_value.lower()
        else:
            config[config_path] = env_value

    return config


def _merge_config(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge configuration dictionaries."""
    result = copy.deepcopy(base)

    for key, value in overrides.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_config(result[key], value)
        else:
            result[key] = value

    return result


def _make_formatter(log_format: str) -> logging.Formatter:
    if log_format == 'json':
        return JSONFormatter()
    return logging.Formatter(fmt=PLAIN_FORMAT, datefmt=PLAIN_DATEFMT)


def _setup_handlers(logger: logging.Logger, config: Dict[str, Any]) -> None:
    """
    Set up logging handlers based on configuration.

    Args:
        logger: Package root logger to configure
        config: Logging configuration
    """
    handlers_config = config.get('handlers', {})
    log_format = config.get('format', 'plain')
    component_filter = ComponentFilter()

    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    console_config = handlers_config.get('console', {})
    if console_config.get('enabled', True):
        console_level = console_config.get('level', config.get('level', 'INFO'))
        stream = sys.stdout if console_config.get('stream') == 'stdout' else sys.stderr
        console_handler = logging.StreamHandler(stream)
        console_handler.setLevel(getattr(logging, console_level.upper(), logging.INFO))
        console_handler.setFormatter(_make_formatter(log_format))
        console_handler.addFilter(component_filter)
        logger.addHandler(console_handler)

    file_config = handlers_config.get('file', {})
    if file_config.get('enabled', False):
        file_path = Path(file_config.get('path', 'logs/orgfeed.log'))
        file_level = file_config.get('level', config.get('level', 'INFO'))

        file_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            str(file_path),
            maxBytes=file_config.get('max_bytes', 10 * 1024 * 1024),
            backupCount=file_config.get('backup_count', 5),
            encoding='utf-8'
        )
        file_handler.setLevel(getattr(logging, file_level.upper(), logging.INFO))
        file_handler.setFormatter(_make_formatter(log_format))
        file_handler.addFilter(component_filter)
        logger.addHandler(file_handler)


def init_logging(
    config_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None
) -> None:
    """
    Initialize and override the application's logging configuration.

    Precedence, lowest first: DEFAULT_CONFIG, config file, environment
    variables (LOG_LEVEL, LOG_FORMAT, LOG_FILE, LOG_CONSOLE), runtime overrides.
    A top-level `level` also applies to every handler that does not set its own.

    Args:
        config_path: Optional path to YAML configuration file
        overrides: Optional dictionary of runtime overrides (e.g., {'level': 'DEBUG'})

    Raises:
        FileNotFoundError: If config_path is specified but file doesn't exist
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    explicit = {}

    if config_path:
        file_config = _load_config_from_file(config_path)
        explicit = _merge_config(explicit, file_config)

    explicit = _apply_env_overrides(explicit)

    if overrides:
        explicit = _merge_config(explicit, overrides)

    if 'level' in explicit:
        for handler_config in config['handlers'].values():
            handler_config['level'] = explicit['level']
    config = _merge_config(config, explicit)

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, str(config.get('level', 'INFO')).upper(), logging.INFO))
    root_logger.propagate = False

    _setup_handlers(root_logger, config)

    root_logger.debug(
        f"Logging initialized: level={config.get('level')}, format={config.get('format')}"
    )
    if config_path:
        root_logger.debug(f"Logging configuration loaded from: {config_path}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance under the orgfeed namespace.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger instance

    Example:
        >>> get_logger('__main__').name
        'orgfeed'
        >>> get_logger('scripts.sync').name
        'orgfeed.scripts.sync'
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + '.'):
        return logging.getLogger(name)
    if name == '__main__':
        return logging.getLogger(ROOT_LOGGER_NAME)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
