"""
Outline-to-rules compiler.

One compile pass runs the whole pipeline and returns a new RuleTable:

    import_marked_subtrees -> flatten_subtrees -> cleanup_entries
        -> dedupe_entries -> classify -> build_rule_table

Entries are deduplicated again once the marker tag is gone, so nested marked
subtrees do not yield the same rule twice.

The pass holds no state between calls. Keeping the "current" table is the
caller's job (see orgfeed.feed_engine.FeedEngineAdapter).
"""

import logging
from pathlib import Path
from typing import Sequence, Union

from orgfeed.classifier import classify, cleanup_entries
from orgfeed.flattener import dedupe_entries, flatten_subtrees
from orgfeed.models import KEYWORDS, Keyword
from orgfeed.outline_reader import import_marked_subtrees
from orgfeed.rules import RuleTable, build_rule_table

logger = logging.getLogger(__name__)

DEFAULT_TREE_ID = "elfeed"
DEFAULT_IGNORE_TAG = "ignore"


def compile_outlines(
    documents: Sequence[Union[str, Path]],
    tree_id: str = DEFAULT_TREE_ID,
    ignore_tag: str = DEFAULT_IGNORE_TAG,
    keywords: Sequence[Keyword] = KEYWORDS
) -> RuleTable:
    """
    Compile outline documents into a rule table.

    Args:
        documents: Outline document paths
        tree_id: Marker tag (or legacy ID value) selecting the feed subtrees
        ignore_tag: Tag excluding headings and their subtrees
        keywords: Recognized keywords, in recognition order

    Returns:
        RuleTable built from this pass only

    Raises:
        ConfigurationError: If any document does not exist (nothing is compiled)
    """
    subtrees = import_marked_subtrees(documents, tree_id)
    entries = dedupe_entries(cleanup_entries(flatten_subtrees(subtrees), tree_id))
    table = build_rule_table(classify(entries, ignore_tag, keywords), keywords)

    logger.info(
        f"Loaded {table.rule_count} rules "
        f"({len(table.keyword_rules)} keyword, {len(table.subscription_rules)} subscription) "
        f"from {len(documents)} outline file(s)"
    )
    return table


def compile_from_settings(settings) -> RuleTable:
    """Compile the outline files, marker tag and ignore tag named in a Settings facade."""
    return compile_outlines(
        settings.get_outline_files(),
        tree_id=settings.get_tree_id(),
        ignore_tag=settings.get_ignore_tag(),
    )
