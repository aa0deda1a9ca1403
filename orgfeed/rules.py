"""
Rules engine for feed entry tagging.

This module provides the rule table built from a compiled outline and the
tagging engine that applies it to incoming entries.

Keyword rules match an entry's metadata field against a literal value and add
tags. Subscription rules match an entry's feed URL and add tags; they may also
carry a display title for the feed (exported separately, once per feed, by
orgfeed.feed_engine).

Integration Pattern:
    1. Compile: table = compile_outlines(paths, tree_id, ignore_tag)
       (orgfeed.compiler runs reader -> flattener -> classifier -> build_rule_table)
    2. For every new entry: apply_rules(entry, table)

    Example:
        >>> from orgfeed.models import FeedEntry, Keyword, KeywordFilter
        >>> from orgfeed.rules import build_rule_table, apply_rules
        >>>
        >>> table = build_rule_table([KeywordFilter(Keyword.FEED_AUTHOR, "Jane Doe", ("tech",))])
        >>> entry = FeedEntry(feed_url="http://example.com/feed", feed_authors=["Jane Doe"])
        >>> apply_rules(entry, table)
        {'tech'}
        >>> entry.tags
        {'tech'}
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from orgfeed.models import (
    ClassifiedEntry,
    FeedEntry,
    Keyword,
    KEYWORDS,
    KeywordFilter,
    MULTI_VALUED_KEYWORDS,
    Subscription,
)

logger = logging.getLogger(__name__)


class InvalidRuleError(Exception):
    """Exception raised when a keyword or subscription rule is invalid or malformed."""
    pass


@dataclass(frozen=True)
class KeywordRule:
    """
    Adds tags to entries whose metadata field matches a literal value.

    Fields:
        field: Metadata keyword the rule inspects
        match: Literal value; single-valued fields match on equality or prefix,
               multi-valued fields (authors, enclosures) when any value contains it
        add_tags: Tags to add when the rule matches
    """
    field: Keyword
    match: str
    add_tags: FrozenSet[str] = frozenset()

    def __post_init__(self):
        """Validate rule after initialization."""
        if not isinstance(self.field, Keyword):
            raise InvalidRuleError(f"Rule field must be a Keyword, got {type(self.field).__name__}")
        if not self.match or not self.match.strip():
            raise InvalidRuleError(f"Rule value for '{self.field.value}' cannot be empty")


@dataclass(frozen=True)
class SubscriptionRule:
    """
    Adds tags to every entry of one feed, optionally titling the feed.

    Fields:
        feed_url: Feed URL, compared for equality
        add_tags: Tags to add to the feed's entries
        title: Display title to set on the feed, if any
    """
    feed_url: str
    add_tags: FrozenSet[str] = frozenset()
    title: Optional[str] = None

    def __post_init__(self):
        """Validate rule after initialization."""
        if not self.feed_url or not self.feed_url.strip():
            raise InvalidRuleError("Subscription URL cannot be empty")
        if any(ch.isspace() for ch in self.feed_url):
            raise InvalidRuleError(f"Subscription URL cannot contain whitespace: '{self.feed_url}'")


@dataclass(frozen=True)
class RuleTable:
    """
    Immutable set of rules produced by one compile pass.

    Rule order is insertion order. Subscription rules are also indexed by feed
    URL so a lookup per entry does not scan the whole table.
    """
    keyword_rules: Tuple[KeywordRule, ...] = ()
    subscription_rules: Tuple[SubscriptionRule, ...] = ()
    _by_feed_url: Dict[str, Tuple[SubscriptionRule, ...]] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self):
        index: Dict[str, List[SubscriptionRule]] = {}
        for rule in self.subscription_rules:
            index.setdefault(rule.feed_url, []).append(rule)
        object.__setattr__(
            self, '_by_feed_url', {url: tuple(rules) for url, rules in index.items()}
        )

    @property
    def rule_count(self) -> int:
        return len(self.keyword_rules) + len(self.subscription_rules)

    @property
    def feed_urls(self) -> List[str]:
        """Subscribed feed URLs, unique, in first-seen order."""
        return list(self._by_feed_url)

    @property
    def titles(self) -> Dict[str, str]:
        """Feed URL to display title; a later rule for the same feed wins."""
        return {
            rule.feed_url: rule.title
            for rule in self.subscription_rules
            if rule.title
        }

    def subscriptions_for(self, feed_url: str) -> Tuple[SubscriptionRule, ...]:
        """Subscription rules for one feed URL, in insertion order."""
        return self._by_feed_url.get(feed_url, ())

    def is_empty(self) -> bool:
        return self.rule_count == 0


EMPTY_TABLE = RuleTable()


def build_rule_table(
    classified: Sequence[ClassifiedEntry],
    keywords: Sequence[Keyword] = KEYWORDS
) -> RuleTable:
    """
    Build a fresh rule table from classified entries.

    Keyword rules are grouped by keyword in recognition order and kept in
    encounter order within each keyword; every entry yields its own rule, so
    several rules per keyword are normal. Each subscription yields one
    subscription rule. An entry that fails rule validation is skipped; it
    never aborts the build.

    Args:
        classified: Output of orgfeed.classifier.classify
        keywords: Recognized keywords, in recognition order

    Returns:
        New RuleTable; previously built tables are never modified
    """
    keyword_rules: List[KeywordRule] = []
    subscription_rules: List[SubscriptionRule] = []
    skipped_count = 0

    for keyword in keywords:
        for entry in classified:
            if not isinstance(entry, KeywordFilter) or entry.keyword is not keyword:
                continue
            try:
                keyword_rules.append(
                    KeywordRule(field=keyword, match=entry.value, add_tags=frozenset(entry.tags))
                )
            except InvalidRuleError as e:
                skipped_count += 1
                logger.debug(f"Skipping malformed keyword entry {entry}: {e}")

    for entry in classified:
        if not isinstance(entry, Subscription):
            continue
        try:
            subscription_rules.append(
                SubscriptionRule(feed_url=entry.url, add_tags=frozenset(entry.tags), title=entry.title)
            )
        except InvalidRuleError as e:
            skipped_count += 1
            logger.debug(f"Skipping malformed subscription entry {entry}: {e}")

    if skipped_count > 0:
        logger.debug(f"Skipped {skipped_count} malformed entr(y/ies) while building rules")

    return RuleTable(
        keyword_rules=tuple(keyword_rules),
        subscription_rules=tuple(subscription_rules),
    )


def keyword_rule_matches(entry: FeedEntry, rule: KeywordRule) -> bool:
    """
    Check if an entry's metadata matches a keyword rule.

    Example:
        >>> entry = FeedEntry(feed_url="http://example.com/feed", title="Emacs 30 released")
        >>> keyword_rule_matches(entry, KeywordRule(Keyword.ENTRY_TITLE, "Emacs"))
        True
    """
    values = entry.values_for(rule.field)
    if rule.field in MULTI_VALUED_KEYWORDS:
        return any(rule.match in value for value in values)
    # startswith also covers equality
    return any(value.startswith(rule.match) for value in values)


def apply_rules(entry: FeedEntry, table: RuleTable) -> Set[str]:
    """
    Apply every matching rule in the table to an entry, adding tags.

    Keyword rules run first, then subscription rules, each in insertion order.
    Tags merge by set union, so re-applying the same table adds nothing.

    Args:
        entry: Entry to tag (its tag set is updated in place)
        table: Rule table to apply

    Returns:
        Tags that were not on the entry before this call
    """
    added: Set[str] = set()

    for rule in table.keyword_rules:
        if keyword_rule_matches(entry, rule):
            added |= rule.add_tags - entry.tags
            entry.tags |= rule.add_tags
            logger.debug(
                f"Entry {entry.link or entry.title!r} matched {rule.field.value}="
                f"{rule.match!r}, tags={sorted(rule.add_tags)}"
            )

    for rule in table.subscriptions_for(entry.feed_url):
        added |= rule.add_tags - entry.tags
        entry.tags |= rule.add_tags

    return added
