"""
Test fixtures for orgfeed tests.

This module provides shared test infrastructure including:
- Sample outline documents written to tmp_path
- Config file fixtures
- Settings/logging/environment isolation
"""
import logging
import os
import pytest
import yaml
from pathlib import Path

from orgfeed.settings import Settings, settings


SAMPLE_OUTLINE = """\
#+TITLE: Feeds

* Reading list
Some notes that are not feeds.

* Blogs                                                       :elfeed:
** feed-author: Jane Doe                                        :tech:
** Emacs                                                   :emacs:tech:
*** http://example.com/emacs.xml                                 :daily:
*** [[http://planet.emacslife.com/atom.xml][Planet Emacslife]]
*** [[http://example.com/bare.xml]]
** entry-title: Release                                        :release:
** entry-title:
** Old stuff                                                    :ignore:
*** http://example.com/dead.xml
** Not a feed, just a note
* Podcasts
  :PROPERTIES:
  :ID:       elfeed
  :END:
** entry-enclosure: .mp3                                          :audio:
** https://podcast.example.com/feed                              :podcast:
"""


@pytest.fixture(autouse=True)
def clean_orgfeed_env(monkeypatch):
    """Remove ORGFEED_* and LOG_* overrides inherited from the developer environment."""
    for key in list(os.environ):
        if key.startswith('ORGFEED_') or key in ('LOG_LEVEL', 'LOG_FORMAT', 'LOG_FILE', 'LOG_CONSOLE'):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def reset_settings():
    """Reset the settings singleton before and after a test."""
    settings.reset()
    Settings._config = None
    yield
    settings.reset()
    Settings._config = None


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset the orgfeed logger after each test (init_logging turns propagation off)."""
    yield
    root_logger = logging.getLogger('orgfeed')
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.NOTSET)
    root_logger.propagate = True


@pytest.fixture
def write_outline(tmp_path):
    """Return a helper writing outline text to a file under tmp_path."""
    def _write(text: str, name: str = "feeds.org") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding='utf-8')
        return path
    return _write


@pytest.fixture
def sample_outline(write_outline) -> Path:
    """The shared sample outline as a file."""
    return write_outline(SAMPLE_OUTLINE)


@pytest.fixture
def config_file(tmp_path, sample_outline) -> Path:
    """A config.yaml pointing at the sample outline."""
    config_path = tmp_path / "config.yaml"
    config_data = {
        'outline': {
            'files': [str(sample_outline)],
            'tree_id': 'elfeed',
            'ignore_tag': 'ignore',
        },
        'logging': {
            'level': 'WARNING',
            'format': 'plain',
        },
    }
    with open(config_path, 'w') as f:
        yaml.dump(config_data, f)
    return config_path
