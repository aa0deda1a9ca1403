"""
Data models for the outline-to-rules pipeline.

Integration Pattern:
    Each stage of the compile pass hands the next one an immutable value:

    1. Outline reader: document text -> OutlineNode trees
    2. Flattener: OutlineNode -> FlatEntry (heading + inherited tags)
    3. Classifier: FlatEntry -> KeywordFilter | Subscription
    4. Rule builder: classified entries -> RuleTable (see orgfeed.rules)

    FeedEntry is the shape of an incoming entry handed to the tagging engine;
    it is the only mutable model (its tag set grows as rules match).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Set, Tuple, Union


class Keyword(Enum):
    """
    Metadata keywords recognized at the start of an outline heading.

    Declaration order is the recognition order used by the classifier and
    the rule builder.
    """
    FEED_TITLE = "feed-title"
    FEED_URL = "feed-url"
    FEED_AUTHOR = "feed-author"
    ENTRY_TITLE = "entry-title"
    ENTRY_LINK = "entry-link"
    ENTRY_CONTENT_TYPE = "entry-content-type"
    ENTRY_ENCLOSURE = "entry-enclosure"


KEYWORDS: Tuple[Keyword, ...] = tuple(Keyword)


@dataclass(frozen=True)
class OutlineNode:
    """
    One heading of a parsed outline document.

    Fields:
        text: Heading text with the tag annotation removed
        level: Nesting level (number of leading stars, >= 1)
        tags: Tags declared on this heading only, in declaration order
        id: Value of the :ID: property, if the heading has one
        children: Direct sub-headings in document order
    """
    text: str
    level: int
    tags: Tuple[str, ...] = ()
    id: Optional[str] = None
    children: Tuple['OutlineNode', ...] = ()

    def walk(self):
        """Yield this node and all descendants in depth-first document order."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass(frozen=True)
class FlatEntry:
    """A heading paired with the tags inherited along its path from the matched root."""
    heading: str
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class KeywordFilter:
    """Heading of the form `<keyword>: <value>`."""
    keyword: Keyword
    value: str
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Subscription:
    """Heading naming a feed URL, optionally with a display title."""
    url: str
    tags: Tuple[str, ...] = ()
    title: Optional[str] = None


ClassifiedEntry = Union[KeywordFilter, Subscription]


@dataclass
class FeedEntry:
    """
    An entry delivered by the feed engine.

    Fields:
        feed_url: URL of the feed the entry came from
        feed_title: Display title of that feed
        feed_authors: Author names declared by the feed
        title: Entry title
        link: Entry permalink
        content_type: Content type of the entry body (e.g. "html")
        enclosures: Enclosure URLs attached to the entry
        tags: Tags on the entry; rules only ever add to this set
    """
    feed_url: str
    feed_title: Optional[str] = None
    feed_authors: List[str] = field(default_factory=list)
    title: Optional[str] = None
    link: Optional[str] = None
    content_type: Optional[str] = None
    enclosures: List[str] = field(default_factory=list)
    tags: Set[str] = field(default_factory=set)

    def values_for(self, keyword: Keyword) -> List[str]:
        """
        Resolve the entry's metadata for a keyword.

        Single-valued fields resolve to a one-element list (or empty when unset).
        """
        if keyword is Keyword.FEED_AUTHOR:
            return [a for a in self.feed_authors if a]
        if keyword is Keyword.ENTRY_ENCLOSURE:
            return [e for e in self.enclosures if e]
        value = {
            Keyword.FEED_TITLE: self.feed_title,
            Keyword.FEED_URL: self.feed_url,
            Keyword.ENTRY_TITLE: self.title,
            Keyword.ENTRY_LINK: self.link,
            Keyword.ENTRY_CONTENT_TYPE: self.content_type,
        }[keyword]
        return [value] if value else []


MULTI_VALUED_KEYWORDS = frozenset({Keyword.FEED_AUTHOR, Keyword.ENTRY_ENCLOSURE})
