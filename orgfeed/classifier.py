"""
Entry classifier and filter.

Sorts flattened headings into keyword filters, feed subscriptions, and
noise. Headings are recognized by shape:

    feed-author: Jane Doe              -> KeywordFilter(FEED_AUTHOR, "Jane Doe")
    http://example.com/feed            -> Subscription(url)
    [[http://example.com/feed][Title]] -> Subscription(url, title="Title")
    [[http://example.com/feed]]        -> Subscription(url)

Anything else is dropped without being reported.
"""

import logging
import re
from typing import List, Optional, Sequence

from orgfeed.models import (
    ClassifiedEntry,
    FlatEntry,
    Keyword,
    KEYWORDS,
    KeywordFilter,
    Subscription,
)

logger = logging.getLogger(__name__)

URL_TOKEN = "http"

# Whole-heading link markup
TITLED_LINK_RE = re.compile(r'^\[\[(?P<url>[^\]]+)\]\[(?P<title>[^\]]*)\]\]$')
BARE_LINK_RE = re.compile(r'^\[\[(?P<url>[^\]]+)\]\]$')


def cleanup_entries(entries: Sequence[FlatEntry], marker_tag: str) -> List[FlatEntry]:
    """Remove the structural marker tag from every entry's tag list."""
    return [
        FlatEntry(entry.heading, tuple(tag for tag in entry.tags if tag != marker_tag))
        for entry in entries
    ]


def is_relevant(
    entry: FlatEntry,
    ignore_tag: str,
    keywords: Sequence[Keyword] = KEYWORDS
) -> bool:
    """
    Check whether a heading can produce a rule at all.

    A heading is relevant when it mentions a recognized keyword or "http",
    and neither it nor any ancestor carries the ignore tag.
    """
    if ignore_tag in entry.tags:
        return False
    heading = entry.heading
    return URL_TOKEN in heading or any(keyword.value in heading for keyword in keywords)


def filter_relevant(
    entries: Sequence[FlatEntry],
    ignore_tag: str,
    keywords: Sequence[Keyword] = KEYWORDS
) -> List[FlatEntry]:
    """Keep only entries that pass is_relevant()."""
    return [entry for entry in entries if is_relevant(entry, ignore_tag, keywords)]


def _classify_keyword(entry: FlatEntry, keywords: Sequence[Keyword]) -> Optional[KeywordFilter]:
    for keyword in keywords:
        prefix = keyword.value + ":"
        if entry.heading.startswith(prefix):
            value = entry.heading[len(prefix):].strip()
            if not value:
                logger.debug(f"Skipping '{entry.heading}': no value after '{prefix}'")
                return None
            return KeywordFilter(keyword=keyword, value=value, tags=entry.tags)
    return None


def _classify_subscription(entry: FlatEntry) -> Optional[Subscription]:
    heading = entry.heading.strip()
    # A literal URL wins over link markup
    if heading.startswith(URL_TOKEN):
        return Subscription(url=heading, tags=entry.tags)

    match = TITLED_LINK_RE.match(heading)
    if match:
        title = match.group('title').strip() or None
        return Subscription(url=match.group('url').strip(), tags=entry.tags, title=title)

    match = BARE_LINK_RE.match(heading)
    if match:
        return Subscription(url=match.group('url').strip(), tags=entry.tags)

    return None


def classify_entry(
    entry: FlatEntry,
    keywords: Sequence[Keyword] = KEYWORDS
) -> Optional[ClassifiedEntry]:
    """
    Classify a single relevant entry.

    Keyword headings are tested first, in recognition order; a heading that
    starts with a keyword prefix but has an empty value is discarded rather
    than falling through to subscription matching.

    Returns:
        KeywordFilter, Subscription, or None when the heading matches neither shape
    """
    if any(entry.heading.startswith(keyword.value + ":") for keyword in keywords):
        return _classify_keyword(entry, keywords)
    return _classify_subscription(entry)


def classify(
    entries: Sequence[FlatEntry],
    ignore_tag: str,
    keywords: Sequence[Keyword] = KEYWORDS
) -> List[ClassifiedEntry]:
    """
    Filter and classify flattened entries.

    Args:
        entries: Flattened entries with the marker tag already removed
        ignore_tag: Tag excluding an entry (and, by inheritance, its subtree)
        keywords: Recognized keywords, in recognition order

    Returns:
        KeywordFilter and Subscription values in encounter order
    """
    classified: List[ClassifiedEntry] = []
    relevant = filter_relevant(entries, ignore_tag, keywords)
    for entry in relevant:
        result = classify_entry(entry, keywords)
        if result is None:
            logger.debug(f"Heading matches no rule shape, skipping: '{entry.heading}'")
            continue
        classified.append(result)

    logger.debug(
        f"Classified {len(classified)} of {len(relevant)} relevant heading(s) "
        f"({len(entries)} flattened)"
    )
    return classified
