"""
Unit tests for models.filter module.

Tests:
- Construction and validation of every constraint
- Tag-query parsing from "#x" keys (single and multi-letter)
- Wire round-trip and omission of absent constraints
- Value semantics (hashing, equality, immutability of the tag map)
"""

import pytest

from nostrcore.models import Filter


class TestConstruction:
    def test_empty_filter_is_open(self):
        filter_ = Filter()
        assert filter_.is_open
        assert filter_.to_dict() == {}

    def test_limit_only_is_open(self):
        assert Filter(limit=10).is_open

    def test_lists_frozen(self):
        filter_ = Filter(ids=["ab"], authors=["cd"], kinds=[1, 2])
        assert filter_.ids == ("ab",)
        assert filter_.authors == ("cd",)
        assert filter_.kinds == (1, 2)

    def test_empty_ids_is_present_constraint(self):
        filter_ = Filter(ids=[])
        assert filter_.ids == ()
        assert not filter_.is_open

    @pytest.mark.parametrize("prefix", ["AB", "xyz", "a" * 65])
    def test_bad_id_prefix(self, prefix):
        with pytest.raises(ValueError):
            Filter(ids=[prefix])

    def test_kinds_must_be_ints(self):
        with pytest.raises(TypeError, match="kinds"):
            Filter(kinds=["1"])

    def test_negative_since(self):
        with pytest.raises(ValueError, match="since"):
            Filter(since=-5)

    def test_search_must_be_str(self):
        with pytest.raises(TypeError, match="search"):
            Filter(search=5)

    def test_tag_values_must_be_str(self):
        with pytest.raises(TypeError, match="#e"):
            Filter(tags={"e": [1]})

    def test_empty_tag_name(self):
        with pytest.raises(ValueError, match="empty"):
            Filter(tags={"": ["x"]})

    def test_tag_map_is_read_only(self):
        filter_ = Filter(tags={"e": ["x"]})
        with pytest.raises(TypeError):
            filter_.tags["p"] = ("y",)

    def test_tag_map_copied(self):
        source = {"e": ["x"]}
        filter_ = Filter(tags=source)
        source["p"] = ["y"]
        assert "p" not in filter_.tags


class TestFromDict:
    def test_all_fields(self):
        data = {
            "ids": ["abc"],
            "authors": ["def"],
            "kinds": [1, 7],
            "#e": ["1" * 64],
            "#p": ["2" * 64],
            "since": 10,
            "until": 20,
            "limit": 5,
            "search": "nostr",
        }
        filter_ = Filter.from_dict(data)
        assert filter_.tags == {"e": ("1" * 64,), "p": ("2" * 64,)}
        assert filter_.since == 10
        assert filter_.until == 20
        assert filter_.limit == 5
        assert filter_.search == "nostr"

    def test_multi_letter_tag_query(self):
        filter_ = Filter.from_dict({"#emoji": ["sparkles"]})
        assert filter_.tags == {"emoji": ("sparkles",)}

    def test_lone_hash_ignored(self):
        assert Filter.from_dict({"#": ["x"]}).tags == {}

    def test_unknown_keys_ignored(self):
        assert Filter.from_dict({"foo": 1, "kinds": [1]}) == Filter(kinds=[1])

    def test_not_a_mapping(self):
        with pytest.raises(TypeError, match="filter"):
            Filter.from_dict([1, 2])

    def test_round_trip(self):
        data = {"kinds": [1], "#t": ["nostr", "python"], "since": 1, "limit": 3}
        assert Filter.from_dict(data).to_dict() == data


class TestValueSemantics:
    def test_equal_filters_hash_equal(self):
        a = Filter(kinds=[1], tags={"e": ["x"], "p": ["y"]})
        b = Filter(kinds=[1], tags={"p": ["y"], "e": ["x"]})
        assert a == b
        assert hash(a) == hash(b)

    def test_usable_in_set(self):
        assert len({Filter(kinds=[1]), Filter(kinds=[1]), Filter(kinds=[2])}) == 2
