"""
Tests for the tag-inheritance flattener.
"""
from orgfeed.flattener import dedupe_entries, flatten, flatten_subtrees
from orgfeed.models import FlatEntry, OutlineNode
from orgfeed.outline_reader import find_marked, parse_outline


def _flat(text: str, marker: str = "elfeed"):
    return flatten_subtrees(find_marked(parse_outline(text), marker))


def test_child_inherits_parent_tags_in_order():
    entries = _flat("* Root :elfeed:\n** Parent :a:\n*** Child :b:\n")
    assert entries[-1] == FlatEntry("Child", ("elfeed", "a", "b"))


def test_sibling_does_not_inherit_previous_branch():
    text = "* Root :elfeed:\n** Parent :a:\n*** Child :b:\n*** Sibling :c:\n"
    entries = {e.heading: e.tags for e in _flat(text)}
    assert entries["Child"] == ("elfeed", "a", "b")
    assert entries["Sibling"] == ("elfeed", "a", "c")


def test_returning_several_levels_up():
    text = (
        "* Root :elfeed:\n"
        "** A :a:\n"
        "*** B :b:\n"
        "**** C :c:\n"
        "** D :d:\n"
    )
    entries = {e.heading: e.tags for e in _flat(text)}
    assert entries["C"] == ("elfeed", "a", "b", "c")
    assert entries["D"] == ("elfeed", "d")


def test_root_is_emitted_first():
    entries = _flat("* Root :elfeed:x:\n** Leaf\n")
    assert entries[0] == FlatEntry("Root", ("elfeed", "x"))
    assert entries[1] == FlatEntry("Leaf", ("elfeed", "x"))


def test_tags_declared_twice_on_the_path_are_kept():
    entries = _flat("* Root :elfeed:tech:\n** Leaf :tech:\n")
    assert entries[1].tags == ("elfeed", "tech", "tech")


def test_subtree_not_at_top_level():
    text = "* Notes\n** Feeds :elfeed:\n*** Leaf :x:\n** Other :y:\n"
    entries = _flat(text)
    assert [e.heading for e in entries] == ["Feeds", "Leaf"]
    assert entries[1].tags == ("elfeed", "x")


def test_level_jump_keeps_the_jump_parent():
    root = OutlineNode(
        "Root", 1, ("r",),
        children=(
            OutlineNode("Deep", 3, ("d",)),
            OutlineNode("Mid", 2, ("m",)),
        ),
    )
    entries = flatten(root)
    assert entries[1] == FlatEntry("Deep", ("r", "d"))
    assert entries[2] == FlatEntry("Mid", ("r", "m"))


def test_ignore_tag_survives_level_jump():
    text = (
        "* Feeds :elfeed:tech:\n"
        "** Old :ignore:\n"
        "**** http://deep.example.com/feed\n"
        "*** http://dead.example.com/feed\n"
    )
    entries = {e.heading: e.tags for e in _flat(text)}
    assert entries["http://deep.example.com/feed"] == ("elfeed", "tech", "ignore")
    assert entries["http://dead.example.com/feed"] == ("elfeed", "tech", "ignore")


def test_same_root_twice_is_deduplicated():
    # Matched once by tag and once by legacy ID
    text = "* Feeds :elfeed:\n:PROPERTIES:\n:ID: elfeed\n:END:\n** http://a.com/feed :x:\n"
    roots = parse_outline(text)
    marked = find_marked(roots, "elfeed")
    assert len(marked) == 1

    entries = flatten_subtrees([marked[0], marked[0]])
    assert entries == [
        FlatEntry("Feeds", ("elfeed",)),
        FlatEntry("http://a.com/feed", ("elfeed", "x")),
    ]


def test_nested_match_keeps_distinct_entries():
    text = "* Outer :elfeed:a:\n** Inner :elfeed:\n*** Leaf\n"
    entries = _flat(text)
    assert FlatEntry("Leaf", ("elfeed", "a", "elfeed")) in entries
    assert FlatEntry("Leaf", ("elfeed",)) in entries
    assert len(entries) == len(set(entries))


def test_inheritance_does_not_depend_on_ambient_state():
    text = "* Root :elfeed:\n** A :a:\n*** B\n"
    assert _flat(text) == _flat(text)


def test_dedupe_entries_keeps_first_occurrence():
    entries = [
        FlatEntry("http://a.com/feed", ("x",)),
        FlatEntry("http://b.com/feed", ()),
        FlatEntry("http://a.com/feed", ("x",)),
        FlatEntry("http://a.com/feed", ("y",)),
    ]
    assert dedupe_entries(entries) == [
        FlatEntry("http://a.com/feed", ("x",)),
        FlatEntry("http://b.com/feed", ()),
        FlatEntry("http://a.com/feed", ("y",)),
    ]
