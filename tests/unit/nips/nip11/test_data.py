"""
Unit tests for NIP-11 data models.

Tests:
- RelayLimitation lenient parsing
- RetentionEntry kind ranges
- Fees parsing
- RelayInformation nested parsing, ``self`` alias and unknown-key retention
"""

from nostrcore.nips.nip11 import (
    FeeEntry,
    Fees,
    RelayInformation,
    RelayLimitation,
    RetentionEntry,
)


SAMPLE_DOCUMENT = {
    "name": "Example Relay",
    "description": "A relay for tests",
    "pubkey": "a" * 64,
    "self": "b" * 64,
    "contact": "mailto:ops@example.com",
    "supported_nips": [1, 11, 13, 42, 45, "50"],
    "software": "git+https://example.com/relay.git",
    "version": "1.2.3",
    "limitation": {
        "max_message_length": 65536,
        "max_subscriptions": 20,
        "max_filters": 10,
        "max_limit": 500,
        "max_subid_length": 64,
        "min_pow_difficulty": 0,
        "auth_required": False,
        "default_limit": 100,
        "unknown_limit": 5,
    },
    "retention": [
        {"kinds": [0, 1, [5, 7], [40, 49]], "time": 3600},
        {"kinds": [[40000, 49999]], "time": 100},
        {"count": 1000},
    ],
    "fees": {"admission": [{"amount": 1000000, "unit": "msats"}]},
    "relay_countries": ["CA", "US"],
    "nip_999_extension": {"flag": True},
}


class TestRelayLimitation:
    def test_parse_drops_wrong_types(self):
        parsed = RelayLimitation.parse({"max_limit": "500", "auth_required": "yes", "max_filters": 3})
        assert parsed == {"max_filters": 3}

    def test_all_none_by_default(self):
        limitation = RelayLimitation()
        assert limitation.max_limit is None
        assert limitation.auth_required is None


class TestRetentionEntry:
    def test_ranges_parsed_as_tuples(self):
        entry = RetentionEntry.from_raw({"kinds": [1, [5, 7], [1, 2, 3], "x"], "time": 60})
        assert entry.kinds == [1, (5, 7)]
        assert entry.time == 60

    def test_covers(self):
        entry = RetentionEntry.from_raw({"kinds": [1, [5, 7]]})
        assert entry.covers(1)
        assert entry.covers(6)
        assert not entry.covers(8)

    def test_no_kinds_covers_everything(self):
        assert RetentionEntry(count=10).covers(12345)


class TestFees:
    def test_invalid_entries_dropped(self):
        fees = Fees.from_raw({"admission": [{"amount": "x"}, {"amount": 5, "unit": "sats"}]})
        assert fees.admission == [FeeEntry(amount=5, unit="sats")]
        assert fees.publication is None


class TestRelayInformation:
    def test_from_raw(self):
        info = RelayInformation.from_raw(SAMPLE_DOCUMENT)
        assert info.name == "Example Relay"
        assert info.self == "b" * 64
        assert info.supported_nips == [1, 11, 13, 42, 45]
        assert info.limitation.max_filters == 10
        assert info.limitation.default_limit == 100
        assert len(info.retention) == 3
        assert info.fees.admission[0].amount == 1000000

    def test_supports(self):
        info = RelayInformation.from_raw(SAMPLE_DOCUMENT)
        assert info.supports(42)
        assert not info.supports(50)

    def test_unknown_keys_kept(self):
        info = RelayInformation.from_raw(SAMPLE_DOCUMENT)
        assert info.extra == {"nip_999_extension": {"flag": True}}

    def test_to_dict_uses_wire_names(self):
        data = RelayInformation.from_raw(SAMPLE_DOCUMENT).to_dict()
        assert data["self"] == "b" * 64
        assert "self_pubkey" not in data
        assert "extra" not in data
        assert data["nip_999_extension"] == {"flag": True}
        assert data["retention"][0]["kinds"] == [0, 1, [5, 7], [40, 49]]

    def test_empty_nested_objects_omitted(self):
        assert RelayInformation.from_raw({"name": "bare"}).to_dict() == {"name": "bare"}

    def test_reparse_is_stable(self):
        info = RelayInformation.from_raw(SAMPLE_DOCUMENT)
        assert RelayInformation.from_raw(info.to_dict()) == info

    def test_non_dict(self):
        assert RelayInformation.from_raw(["not", "an", "object"]) == RelayInformation()

    def test_populate_by_field_name(self):
        assert RelayInformation(self_pubkey="c" * 64).self == "c" * 64
