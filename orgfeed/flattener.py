"""
Tag-inheritance flattener.

Turns each marked subtree into an ordered list of FlatEntry values whose tags
are the tags of every heading on the path from the subtree root, root first.

Inheritance is computed from traversal order and heading level alone,
without relying on any outline-wide tag inheritance setting:

    for each node at level L (depth-first, document order):
        pop stack entries whose level is >= L
        push (L, (top's tags, or empty) + node's own tags)
        emit (node.text, top's tags)

With consecutive levels this pops (1 - delta) entries, delta being the level
change from the previous heading. A level jump (`*` then `***`) still keeps
the jump's parent on the stack, so a later `**` sibling inherits from it.
"""

import logging
from typing import Iterable, List, Sequence, Tuple

from orgfeed.models import FlatEntry, OutlineNode

logger = logging.getLogger(__name__)


def flatten(root: OutlineNode) -> List[FlatEntry]:
    """
    Flatten one subtree (root included) into heading/inherited-tag pairs.

    Example:
        >>> leaf = OutlineNode("http://example.com/feed", 2, ("daily",))
        >>> root = OutlineNode("Feeds", 1, ("elfeed", "tech"), children=(leaf,))
        >>> [e.tags for e in flatten(root)]
        [('elfeed', 'tech'), ('elfeed', 'tech', 'daily')]
    """
    tag_stack: List[Tuple[int, Tuple[str, ...]]] = []
    entries: List[FlatEntry] = []

    for node in root.walk():
        while tag_stack and tag_stack[-1][0] >= node.level:
            tag_stack.pop()

        inherited = tag_stack[-1][1] if tag_stack else ()
        tag_stack.append((node.level, inherited + node.tags))
        entries.append(FlatEntry(node.text, tag_stack[-1][1]))

    return entries


def dedupe_entries(entries: Iterable[FlatEntry]) -> List[FlatEntry]:
    """Drop exact duplicates, keeping the first occurrence of each entry."""
    seen = set()
    unique: List[FlatEntry] = []
    total = 0
    for entry in entries:
        total += 1
        if entry in seen:
            continue
        seen.add(entry)
        unique.append(entry)

    if total != len(unique):
        logger.debug(f"Dropped {total - len(unique)} duplicate flattened heading(s)")
    return unique


def flatten_subtrees(roots: Sequence[OutlineNode]) -> List[FlatEntry]:
    """
    Flatten every root and drop exact duplicates across the whole batch.

    The same subtree can be selected twice (by tag and by legacy ID, or as a
    nested match inside another match); only the first occurrence of each
    distinct entry is kept.
    """
    return dedupe_entries(entry for root in roots for entry in flatten(root))
