"""
Unit tests for protocol.matcher and protocol.tag_index.

Tests:
- Each constraint kind in isolation
- AND across constraints, OR within a constraint, OR across filters
- Tag-query intersection via TagIndex
- limit selection ordering and truncation
"""

import pytest

from nostrcore.models import Filter
from nostrcore.protocol.matcher import FilterMatcher, matches, matches_any, newest_first
from nostrcore.protocol.tag_index import TagIndex


@pytest.fixture
def note(make_event):
    return make_event(
        kind=1,
        created_at=1000,
        tags=[["e", "1" * 64], ["p", "2" * 64], ["t", "nostr"], ["t", "python"], ["alt"]],
        content="hello world",
    )


class TestTagIndex:
    def test_build(self, note):
        index = TagIndex.build(note)
        assert index.values_for("t") == ("nostr", "python")
        assert index.names == frozenset({"e", "p", "t"})
        assert "alt" not in index

    def test_mapping_protocol(self, note):
        index = TagIndex.build(note)
        assert dict(index)["e"] == ("1" * 64,)
        assert len(index) == 3

    def test_intersects(self, note):
        index = TagIndex.build(note)
        assert index.intersects("t", ["rust", "python"])
        assert not index.intersects("t", ["rust"])
        assert not index.intersects("x", ["anything"])
        assert not index.intersects("t", [])


class TestSingleConstraints:
    def test_empty_filter_matches(self, note):
        assert matches(note, Filter())

    def test_id_prefix(self, note):
        assert matches(note, Filter(ids=[note.id[:8]]))
        assert matches(note, Filter(ids=[note.id]))
        other = "0" if note.id[0] != "0" else "1"
        assert not matches(note, Filter(ids=[other]))

    def test_empty_ids_matches_nothing(self, note):
        assert not matches(note, Filter(ids=[]))

    def test_author_prefix(self, note, alice):
        assert matches(note, Filter(authors=[alice.public_key_hex[:4]]))

    def test_author_mismatch(self, note, bob):
        assert not matches(note, Filter(authors=[bob.public_key_hex]))

    def test_kinds(self, note):
        assert matches(note, Filter(kinds=[0, 1]))
        assert not matches(note, Filter(kinds=[7]))

    def test_since_until_inclusive(self, note):
        assert matches(note, Filter(since=1000, until=1000))
        assert not matches(note, Filter(since=1001))
        assert not matches(note, Filter(until=999))

    def test_tag_query(self, note):
        assert matches(note, Filter(tags={"t": ["python"]}))
        assert not matches(note, Filter(tags={"t": ["rust"]}))

    def test_tag_query_single_element_tag_never_matches(self, note):
        assert not matches(note, Filter(tags={"alt": ["anything"]}))


class TestCombinations:
    def test_and_across_constraints(self, note):
        assert matches(note, Filter(kinds=[1], tags={"t": ["nostr"]}, since=500))
        assert not matches(note, Filter(kinds=[1], tags={"t": ["nostr"]}, since=1500))

    def test_and_across_tag_names(self, note):
        assert matches(note, Filter(tags={"e": ["1" * 64], "p": ["2" * 64]}))
        assert not matches(note, Filter(tags={"e": ["1" * 64], "p": ["3" * 64]}))

    def test_or_within_constraint(self, note):
        assert matches(note, Filter(kinds=[5, 1, 9]))

    def test_or_across_filters(self, note):
        assert matches_any(note, [Filter(kinds=[7]), Filter(tags={"t": ["nostr"]})])
        assert not matches_any(note, [Filter(kinds=[7]), Filter(tags={"t": ["go"]})])

    def test_empty_filter_list(self, note):
        assert not matches_any(note, [])

    def test_shared_index(self, note):
        matcher = FilterMatcher()
        index = TagIndex.build(note)
        assert matcher.matches(note, Filter(tags={"t": ["nostr"]}), index)


class TestSearch:
    def test_ignored_without_collaborator(self, note):
        assert matches(note, Filter(search="nothing like this"))

    def test_delegated(self, note):
        matcher = FilterMatcher(search=lambda event, query: query in event.content)
        assert matcher.matches(note, Filter(search="world"))
        assert not matcher.matches(note, Filter(search="moon"))

    def test_other_constraints_checked_first(self, note):
        calls = []

        def search(event, query):
            calls.append(query)
            return True

        assert not FilterMatcher(search=search).matches(note, Filter(kinds=[7], search="x"))
        assert calls == []


class TestSelect:
    @pytest.fixture
    def timeline(self, make_event):
        return [make_event(created_at=t, content=f"post {t}") for t in (100, 200, 150)]

    def test_newest_first_with_limit(self, timeline):
        selected = FilterMatcher().select(timeline, Filter(limit=2))
        assert [e.created_at for e in selected] == [200, 150]

    def test_no_limit_returns_all_sorted(self, timeline):
        assert [e.created_at for e in FilterMatcher().select(timeline, Filter())] == [200, 150, 100]

    def test_limit_zero(self, timeline):
        assert FilterMatcher().select(timeline, Filter(limit=0)) == []

    def test_ties_broken_by_id(self, make_event):
        same_time = [make_event(created_at=5, content=str(i)) for i in range(4)]
        selected = FilterMatcher().select(same_time, Filter())
        assert [e.id for e in selected] == sorted(e.id for e in same_time)

    def test_limit_does_not_affect_matching(self, timeline):
        assert all(matches(e, Filter(limit=1)) for e in timeline)

    def test_select_many_deduplicates(self, timeline):
        filters = [Filter(limit=2), Filter(since=150)]
        selected = FilterMatcher().select_many(timeline, filters)
        assert [e.created_at for e in selected] == [200, 150]

    def test_newest_first_key(self, timeline):
        assert sorted(timeline, key=newest_first)[0].created_at == 200
