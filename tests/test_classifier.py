"""
Tests for the entry classifier and filter.
"""
import pytest

from orgfeed.classifier import (
    classify,
    classify_entry,
    cleanup_entries,
    filter_relevant,
    is_relevant,
)
from orgfeed.models import FlatEntry, Keyword, KeywordFilter, Subscription


class TestCleanup:
    """Tests for cleanup_entries."""

    def test_marker_tag_removed_everywhere(self):
        entries = [
            FlatEntry("Root", ("elfeed",)),
            FlatEntry("http://a.com/feed", ("elfeed", "tech", "elfeed")),
        ]
        cleaned = cleanup_entries(entries, "elfeed")
        assert cleaned == [
            FlatEntry("Root", ()),
            FlatEntry("http://a.com/feed", ("tech",)),
        ]


class TestRelevance:
    """Tests for is_relevant / filter_relevant."""

    @pytest.mark.parametrize("heading,expected", [
        ("http://example.com/feed", True),
        ("[[https://example.com/feed][Title]]", True),
        ("feed-author: Jane", True),
        ("see the entry-link: docs", True),
        ("Just a note", False),
        ("", False),
    ])
    def test_heading_relevance(self, heading, expected):
        assert is_relevant(FlatEntry(heading, ()), "ignore") is expected

    def test_ignore_tag_drops_entry(self):
        assert not is_relevant(FlatEntry("http://a.com/feed", ("tech", "ignore")), "ignore")

    def test_filter_keeps_order(self):
        entries = [
            FlatEntry("http://b.com/feed", ()),
            FlatEntry("note", ()),
            FlatEntry("http://a.com/feed", ()),
        ]
        assert [e.heading for e in filter_relevant(entries, "ignore")] == [
            "http://b.com/feed",
            "http://a.com/feed",
        ]


class TestClassifyEntry:
    """Tests for classify_entry."""

    def test_keyword_filter(self):
        result = classify_entry(FlatEntry("feed-author: Jane Doe", ("tech",)))
        assert result == KeywordFilter(Keyword.FEED_AUTHOR, "Jane Doe", ("tech",))

    def test_keyword_value_is_trimmed(self):
        result = classify_entry(FlatEntry("entry-title:   Emacs  ", ()))
        assert result.value == "Emacs"

    @pytest.mark.parametrize("keyword", list(Keyword))
    def test_every_keyword_recognized(self, keyword):
        result = classify_entry(FlatEntry(f"{keyword.value}: value", ()))
        assert isinstance(result, KeywordFilter)
        assert result.keyword is keyword

    def test_empty_keyword_value_discarded(self):
        assert classify_entry(FlatEntry("entry-title:", ("x",))) is None
        assert classify_entry(FlatEntry("entry-title:    ", ("x",))) is None

    def test_keyword_without_colon_is_not_a_filter(self):
        assert classify_entry(FlatEntry("entry-title Emacs", ())) is None

    def test_bare_url(self):
        result = classify_entry(FlatEntry("http://example.com/feed", ("tech", "daily")))
        assert result == Subscription("http://example.com/feed", ("tech", "daily"), None)

    def test_https_url(self):
        assert classify_entry(FlatEntry("https://example.com/feed", ())).url == "https://example.com/feed"

    def test_titled_link(self):
        result = classify_entry(FlatEntry("[[http://example.com/feed][Example Feed]]", ("tech",)))
        assert result == Subscription("http://example.com/feed", ("tech",), "Example Feed")

    def test_titled_link_without_tags_keeps_title(self):
        result = classify_entry(FlatEntry("[[http://example.com/feed][Example Feed]]", ()))
        assert result.title == "Example Feed"

    def test_bare_link(self):
        result = classify_entry(FlatEntry("[[http://example.com/feed]]", ("tech",)))
        assert result == Subscription("http://example.com/feed", ("tech",), None)

    def test_link_markup_must_span_whole_heading(self):
        assert classify_entry(FlatEntry("[[http://example.com/feed][Title]] and more", ())) is None
        assert classify_entry(FlatEntry("Read [[http://example.com/feed]]", ())) is None

    def test_literal_url_takes_precedence_over_markup(self):
        heading = "http://example.com/feed [[http://other.com/feed][Other]]"
        result = classify_entry(FlatEntry(heading, ()))
        assert result.url == heading
        assert result.title is None


class TestClassify:
    """Tests for classify."""

    def test_mixed_entries(self):
        entries = [
            FlatEntry("Blogs", ()),
            FlatEntry("feed-author: Jane Doe", ("tech",)),
            FlatEntry("http://example.com/feed", ("tech", "daily")),
            FlatEntry("entry-title:", ()),
            FlatEntry("http://example.com/skip", ("ignore",)),
            FlatEntry("note mentioning http somewhere", ()),
        ]
        assert classify(entries, "ignore") == [
            KeywordFilter(Keyword.FEED_AUTHOR, "Jane Doe", ("tech",)),
            Subscription("http://example.com/feed", ("tech", "daily")),
        ]

    def test_restricted_keyword_set(self):
        entries = [FlatEntry("feed-author: Jane", ()), FlatEntry("entry-title: Emacs", ())]
        result = classify(entries, "ignore", keywords=[Keyword.ENTRY_TITLE])
        assert result == [KeywordFilter(Keyword.ENTRY_TITLE, "Emacs", ())]
