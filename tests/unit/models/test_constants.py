"""Unit tests for models.constants."""

from nostrcore.models import EventKind, MachineReadablePrefix, MessageType
from nostrcore.models.constants import (
    ADDRESSABLE_KIND_RANGE,
    EPHEMERAL_KIND_RANGE,
    REPLACEABLE_KIND_RANGE,
)


class TestMessageType:
    def test_values_are_wire_literals(self):
        assert {m.value for m in MessageType} == {
            "EVENT",
            "REQ",
            "CLOSE",
            "COUNT",
            "AUTH",
            "OK",
            "EOSE",
            "CLOSED",
            "NOTICE",
        }

    def test_str_enum_compares_with_str(self):
        assert MessageType.EOSE == "EOSE"


class TestMachineReadablePrefix:
    def test_rate_limited_uses_hyphen(self):
        assert MachineReadablePrefix.RATE_LIMITED.value == "rate-limited"
        assert MachineReadablePrefix.AUTH_REQUIRED.value == "auth-required"


class TestEventKind:
    def test_auth_kind(self):
        assert EventKind.CLIENT_AUTHENTICATION == 22242

    def test_kinds_fall_in_documented_ranges(self):
        assert EPHEMERAL_KIND_RANGE[0] <= EventKind.CLIENT_AUTHENTICATION < EPHEMERAL_KIND_RANGE[1]
        assert REPLACEABLE_KIND_RANGE[0] <= EventKind.RELAY_LIST_METADATA < REPLACEABLE_KIND_RANGE[1]
        assert ADDRESSABLE_KIND_RANGE[0] <= EventKind.LONG_FORM_CONTENT < ADDRESSABLE_KIND_RANGE[1]
