"""
Tests for Logging Configuration

Tests the centralized logging configuration system including:
- Defaults and runtime overrides
- Configuration loading from files (dedicated file or config.yaml `logging` section)
- Environment variable overrides
- JSON formatting and the component filter
"""
import json
import logging
import logging.handlers
import sys

import pytest
import yaml

from orgfeed.logging_config import (
    ComponentFilter,
    DEFAULT_CONFIG,
    JSONFormatter,
    get_logger,
    init_logging,
)


def _record(name='orgfeed.compiler', msg='hello'):
    return logging.LogRecord(name, logging.INFO, __file__, 1, msg, None, None)


def test_init_logging_defaults():
    """init_logging works with the default configuration."""
    init_logging()

    root_logger = logging.getLogger('orgfeed')
    assert root_logger.level == logging.INFO
    assert root_logger.propagate is False
    assert len(root_logger.handlers) == 1
    assert isinstance(root_logger.handlers[0], logging.StreamHandler)


def test_init_logging_with_overrides():
    init_logging(overrides={'level': 'DEBUG'})

    root_logger = logging.getLogger('orgfeed')
    assert root_logger.level == logging.DEBUG
    assert all(h.level == logging.DEBUG for h in root_logger.handlers)


def test_init_logging_twice_does_not_duplicate_handlers():
    init_logging()
    init_logging()
    assert len(logging.getLogger('orgfeed').handlers) == 1


def test_init_logging_with_file(tmp_path):
    """init_logging reads the logging section of config.yaml."""
    log_file = tmp_path / "logs" / "orgfeed.log"
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.dump({
        'outline': {'tree_id': 'elfeed'},
        'logging': {'level': 'WARNING', 'file': str(log_file)},
    }))

    init_logging(config_path=config_path)

    root_logger = logging.getLogger('orgfeed')
    assert root_logger.level == logging.WARNING
    file_handlers = [h for h in root_logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
    assert len(file_handlers) == 1

    get_logger('compiler').warning("written to file")
    file_handlers[0].flush()
    assert "written to file" in log_file.read_text()


def test_init_logging_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        init_logging(config_path=tmp_path / "missing.yaml")


def test_env_overrides(monkeypatch):
    monkeypatch.setenv('LOG_LEVEL', 'error')
    monkeypatch.setenv('LOG_FORMAT', 'JSON')
    init_logging()

    root_logger = logging.getLogger('orgfeed')
    assert root_logger.level == logging.ERROR
    assert isinstance(root_logger.handlers[0].formatter, JSONFormatter)


def test_runtime_overrides_beat_env(monkeypatch):
    monkeypatch.setenv('LOG_LEVEL', 'ERROR')
    init_logging(overrides={'level': 'DEBUG'})
    assert logging.getLogger('orgfeed').level == logging.DEBUG


def test_console_can_be_disabled(monkeypatch):
    monkeypatch.setenv('LOG_CONSOLE', 'false')
    init_logging()
    assert logging.getLogger('orgfeed').handlers == []


def test_default_config_is_not_mutated():
    init_logging(overrides={'level': 'DEBUG', 'format': 'json'})
    assert DEFAULT_CONFIG['level'] == 'INFO'
    assert DEFAULT_CONFIG['handlers']['console']['level'] == 'INFO'


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_format(self):
        record = _record()
        ComponentFilter().filter(record)
        data = json.loads(JSONFormatter().format(record))
        assert data['level'] == 'INFO'
        assert data['message'] == 'hello'
        assert data['component'] == 'compiler'
        assert 'timestamp' in data

    def test_exception_included(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord('orgfeed', logging.ERROR, __file__, 1, 'failed', None, sys.exc_info())
        data = json.loads(JSONFormatter().format(record))
        assert 'ValueError: boom' in data['exception']


class TestComponentFilter:
    """Tests for ComponentFilter."""

    def test_sets_short_module_name(self):
        record = _record('orgfeed.feed_engine')
        assert ComponentFilter().filter(record) is True
        assert record.component == 'feed_engine'

    def test_keeps_existing_component(self):
        record = _record()
        record.component = 'custom'
        ComponentFilter().filter(record)
        assert record.component == 'custom'


@pytest.mark.parametrize("name,expected", [
    ('orgfeed', 'orgfeed'),
    ('orgfeed.rules', 'orgfeed.rules'),
    ('__main__', 'orgfeed'),
    ('scripts.sync', 'orgfeed.scripts.sync'),
])
def test_get_logger(name, expected):
    assert get_logger(name).name == expected
