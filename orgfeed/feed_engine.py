"""
Adapter between the rule compiler and a host feed engine.

The adapter owns the current RuleTable. A reload compiles a complete new
table first and then publishes it with one reference assignment, so entry
callbacks running on other threads see either the old table or the new one,
never a mix. A failed reload leaves the old table in place.

Usage:
    >>> store = InMemoryFeedStore()
    >>> adapter = FeedEngineAdapter.from_settings(settings, store)
    >>> adapter.start()                         # before the engine starts fetching
    >>> engine.feeds = adapter.feed_urls
    >>> engine.on_new_entry(adapter.on_new_entry)
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Protocol, Set

from orgfeed.compiler import compile_from_settings
from orgfeed.models import FeedEntry
from orgfeed.rules import EMPTY_TABLE, RuleTable, apply_rules

logger = logging.getLogger(__name__)


@dataclass
class Feed:
    """Feed metadata kept by the host engine."""
    url: str
    title: Optional[str] = None


class FeedStore(Protocol):
    """Feed metadata store provided by the host engine."""

    def get_feed_by_id(self, feed_id: str) -> Optional[Feed]:
        ...

    def set_feed_title(self, feed_id: str, title: str) -> None:
        ...


@dataclass
class InMemoryFeedStore:
    """Dictionary-backed FeedStore, keyed by feed URL."""
    feeds: Dict[str, Feed] = field(default_factory=dict)
    title_updates: int = 0

    def get_feed_by_id(self, feed_id: str) -> Optional[Feed]:
        return self.feeds.get(feed_id)

    def set_feed_title(self, feed_id: str, title: str) -> None:
        feed = self.feeds.setdefault(feed_id, Feed(url=feed_id))
        feed.title = title
        self.title_updates += 1


def export_titles(table: RuleTable, store: FeedStore) -> int:
    """
    Set display titles from the table's subscription rules, once per feed.

    Feeds already carrying the wanted title are left alone.

    Returns:
        Number of feeds whose title was set
    """
    updated = 0
    for url, title in table.titles.items():
        feed = store.get_feed_by_id(url)
        if feed is not None and feed.title == title:
            continue
        store.set_feed_title(url, title)
        updated += 1
    if updated:
        logger.debug(f"Exported {updated} feed title(s)")
    return updated


class FeedEngineAdapter:
    """
    Holds the current rule table and applies it to new entries.

    Args:
        compile_fn: Zero-argument callable running one compile pass
        store: Feed metadata store used for title export
    """

    def __init__(self, compile_fn: Callable[[], RuleTable], store: FeedStore):
        self._compile_fn = compile_fn
        self._store = store
        self._table: RuleTable = EMPTY_TABLE
        self._reload_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings, store: FeedStore) -> 'FeedEngineAdapter':
        """Build an adapter compiling the outline files named in settings."""
        return cls(lambda: compile_from_settings(settings), store)

    @property
    def table(self) -> RuleTable:
        return self._table

    @property
    def feed_urls(self) -> List[str]:
        """Feed URLs the host engine should subscribe to."""
        return self._table.feed_urls

    def reload(self) -> RuleTable:
        """
        Recompile and publish a new rule table.

        Raises:
            ConfigurationError: If compilation fails; the current table is kept
        """
        with self._reload_lock:
            table = self._compile_fn()
            self._table = table
        export_titles(table, self._store)
        return table

    def start(self) -> RuleTable:
        """Compile before the host engine starts fetching and report the rule count."""
        table = self.reload()
        logger.info(f"Feed engine starting with {table.rule_count} rules for {len(table.feed_urls)} feed(s)")
        return table

    def on_new_entry(self, entry: FeedEntry) -> Set[str]:
        """New-entry callback: tag the entry with the current table."""
        table = self._table
        return apply_rules(entry, table)
