"""
Outline reader for org-style feed documents.

Only the parts of the markup the rule compiler consumes are parsed:

    * Heading text                                  :tag1:tag2:
      :PROPERTIES:
      :ID:       elfeed
      :END:

Heading level is the number of leading stars; tags are the trailing
`:a:b:` annotation; the ID comes from a property drawer directly below the
heading. Body text, lists, blocks and other markup are ignored.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Sequence, Union

from orgfeed.config import ConfigurationError
from orgfeed.models import OutlineNode

logger = logging.getLogger(__name__)

HEADING_RE = re.compile(r'^(?P<stars>\*+)(?:[ \t]+(?P<rest>.*?))?[ \t]*$')
TAGS_RE = re.compile(r'^(?P<text>.*?)(?:^|[ \t]+)(?P<tags>:(?:[\w@#%]+:)+)$')
PROPERTY_RE = re.compile(r'^:(?P<name>[^:\s]+):(?:[ \t]+(?P<value>.*?))?[ \t]*$')
PLANNING_RE = re.compile(r'^(?:SCHEDULED|DEADLINE|CLOSED):', re.IGNORECASE)


class _NodeBuilder:
    """Mutable stand-in for OutlineNode while the document is being read."""

    def __init__(self, text: str, level: int, tags: tuple):
        self.text = text
        self.level = level
        self.tags = tags
        self.id: Optional[str] = None
        self.children: List['_NodeBuilder'] = []

    def freeze(self) -> OutlineNode:
        return OutlineNode(
            text=self.text,
            level=self.level,
            tags=self.tags,
            id=self.id,
            children=tuple(child.freeze() for child in self.children),
        )


def _split_tags(rest: str) -> tuple:
    """Split heading remainder into (text, tags)."""
    match = TAGS_RE.match(rest)
    if not match:
        return rest, ()
    tags = tuple(tag for tag in match.group('tags').split(':') if tag)
    # Tags are a set on each heading; keep first occurrence order
    return match.group('text').strip(), tuple(dict.fromkeys(tags))


def parse_outline(text: str) -> List[OutlineNode]:
    """
    Parse outline text into its top-level heading trees.

    A heading becomes a child of the nearest preceding heading with a
    smaller level, so skipped levels (`*` followed by `***`) still nest.

    Args:
        text: Document contents

    Returns:
        Top-level OutlineNode trees in document order
    """
    roots: List[_NodeBuilder] = []
    open_nodes: List[_NodeBuilder] = []
    # Heading whose property drawer may still start on the following lines
    drawer_owner: Optional[_NodeBuilder] = None
    in_drawer = False

    for raw in text.splitlines():
        heading = HEADING_RE.match(raw)
        if heading:
            in_drawer = False
            level = len(heading.group('stars'))
            heading_text, tags = _split_tags((heading.group('rest') or '').strip())
            node = _NodeBuilder(heading_text, level, tags)

            while open_nodes and open_nodes[-1].level >= level:
                open_nodes.pop()
            if open_nodes:
                open_nodes[-1].children.append(node)
            else:
                roots.append(node)
            open_nodes.append(node)
            drawer_owner = node
            continue

        line = raw.strip()
        if in_drawer:
            if line.upper() == ':END:':
                in_drawer = False
                drawer_owner = None
                continue
            prop = PROPERTY_RE.match(line)
            if prop and prop.group('name').upper() == 'ID' and drawer_owner is not None:
                drawer_owner.id = (prop.group('value') or '').strip() or None
            continue

        if drawer_owner is not None:
            if line.upper() == ':PROPERTIES:':
                in_drawer = True
                continue
            if PLANNING_RE.match(line):
                continue
            drawer_owner = None

    return [root.freeze() for root in roots]


def read_outline_file(path: Union[str, Path]) -> List[OutlineNode]:
    """
    Read and parse one outline document.

    Raises:
        ConfigurationError: If the path cannot be read as UTF-8 text
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Could not read outline file {path}: {e}") from e
    nodes = parse_outline(text)
    logger.debug(f"Parsed {len(nodes)} top-level heading(s) from {path}")
    return nodes


def find_marked(nodes: Sequence[OutlineNode], marker: str) -> List[OutlineNode]:
    """
    Select every heading carrying the marker tag or whose ID equals it.

    Nested matches are returned as well as their enclosing match; the
    flattener's deduplication resolves the overlap.
    """
    return [
        node
        for root in nodes
        for node in root.walk()
        if marker in node.tags or node.id == marker
    ]


def import_marked_subtrees(
    documents: Sequence[Union[str, Path]],
    marker: str
) -> List[OutlineNode]:
    """
    Read each document and return the subtrees rooted at marked headings.

    Every path is checked before any document is parsed, so a missing file
    aborts the whole pass without partial results.

    Args:
        documents: Outline document paths, in order
        marker: Marker tag / legacy ID value selecting the subtrees

    Returns:
        Marked subtrees from all documents, concatenated in document order

    Raises:
        ConfigurationError: If any document path does not exist
    """
    paths = [Path(doc).expanduser() for doc in documents]
    for path in paths:
        if not path.exists():
            raise ConfigurationError(
                f"Outline file not found: {path}. "
                f"Check the outline.files setting or the paths given on the command line."
            )

    subtrees: List[OutlineNode] = []
    for path in paths:
        matched = find_marked(read_outline_file(path), marker)
        logger.debug(f"Found {len(matched)} heading(s) marked '{marker}' in {path}")
        subtrees.extend(matched)
    return subtrees
