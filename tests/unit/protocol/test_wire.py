"""
Unit tests for protocol.wire.

Tests:
- Decoding every message variant in each direction
- Direction-dependent shapes of EVENT, AUTH and COUNT
- Decode errors by kind (unknown type, arity, element type, invalid JSON)
- encode() is a left inverse of decode()
"""

import json

import pytest

from nostrcore.core.exceptions import DecodeError, DecodeErrorKind
from nostrcore.models import (
    AuthChallengeMessage,
    AuthMessage,
    CloseMessage,
    ClosedMessage,
    CountMessage,
    CountResultMessage,
    EoseMessage,
    EventMessage,
    Filter,
    MessageType,
    NoticeMessage,
    OkMessage,
    RelayEventMessage,
    ReqMessage,
)
from nostrcore.protocol.wire import Direction, MessageCodec, direction_of


@pytest.fixture
def codec():
    return MessageCodec()


def _frame(*items):
    return json.dumps(list(items))


class TestDecodeToRelay:
    def test_event(self, codec, sample_event, sample_event_dict):
        assert codec.decode_to_relay(_frame("EVENT", sample_event_dict)) == EventMessage(sample_event)

    def test_req_multiple_filters(self, codec):
        message = codec.decode_to_relay(_frame("REQ", "feed", {"kinds": [1]}, {"#t": ["x"]}))
        assert message == ReqMessage("feed", (Filter(kinds=[1]), Filter(tags={"t": ["x"]})))

    def test_close(self, codec):
        assert codec.decode_to_relay(_frame("CLOSE", "feed")) == CloseMessage("feed")

    def test_count(self, codec):
        message = codec.decode_to_relay(_frame("COUNT", "c1", {"kinds": [3]}))
        assert message == CountMessage("c1", (Filter(kinds=[3]),))

    def test_auth(self, codec, sample_event, sample_event_dict):
        assert codec.decode_to_relay(_frame("AUTH", sample_event_dict)) == AuthMessage(sample_event)

    def test_relay_only_type_rejected(self, codec):
        with pytest.raises(DecodeError) as exc_info:
            codec.decode_to_relay(_frame("EOSE", "feed"))
        assert exc_info.value.kind is DecodeErrorKind.UNKNOWN_TYPE

    def test_bytes_input(self, codec):
        assert codec.decode_to_relay(b'["CLOSE","x"]') == CloseMessage("x")


class TestDecodeToClient:
    def test_event(self, codec, sample_event, sample_event_dict):
        message = codec.decode_to_client(_frame("EVENT", "feed", sample_event_dict))
        assert message == RelayEventMessage("feed", sample_event)

    def test_ok(self, codec):
        message = codec.decode_to_client(_frame("OK", "a" * 64, True, "duplicate: have it"))
        assert message == OkMessage("a" * 64, True, "duplicate: have it")

    def test_eose_closed_notice(self, codec):
        assert codec.decode_to_client(_frame("EOSE", "s")) == EoseMessage("s")
        assert codec.decode_to_client(_frame("CLOSED", "s", "error: x")) == ClosedMessage("s", "error: x")
        assert codec.decode_to_client(_frame("NOTICE", "hi")) == NoticeMessage("hi")

    def test_auth_challenge(self, codec):
        assert codec.decode_to_client(_frame("AUTH", "chal")) == AuthChallengeMessage("chal")

    def test_count_result(self, codec):
        assert codec.decode_to_client(_frame("COUNT", "c", {"count": 12})) == CountResultMessage("c", 12)

    @pytest.mark.parametrize("body", [{"count": -1}, {"count": "3"}, {"count": True}, {}, 3])
    def test_bad_count_body(self, codec, body):
        with pytest.raises(DecodeError) as exc_info:
            codec.decode_to_client(_frame("COUNT", "c", body))
        assert exc_info.value.kind is DecodeErrorKind.TYPE_MISMATCH

    def test_client_only_type_rejected(self, codec):
        with pytest.raises(DecodeError) as exc_info:
            codec.decode_to_client(_frame("REQ", "s", {}))
        assert exc_info.value.kind is DecodeErrorKind.UNKNOWN_TYPE


class TestDecodeErrors:
    @pytest.mark.parametrize(
        ("frame", "kind"),
        [
            ('["HELLO","x"]', DecodeErrorKind.UNKNOWN_TYPE),
            ("[1,2]", DecodeErrorKind.UNKNOWN_TYPE),
            ('["CLOSE"]', DecodeErrorKind.ARITY_MISMATCH),
            ('["CLOSE","a","b"]', DecodeErrorKind.ARITY_MISMATCH),
            ('["REQ","s"]', DecodeErrorKind.ARITY_MISMATCH),
            ('["CLOSE",5]', DecodeErrorKind.TYPE_MISMATCH),
            ('["REQ","s",[]]', DecodeErrorKind.TYPE_MISMATCH),
            ('["REQ","s",{"kinds":"1"}]', DecodeErrorKind.TYPE_MISMATCH),
            ('["EVENT","not an object"]', DecodeErrorKind.TYPE_MISMATCH),
            ("not json", DecodeErrorKind.INVALID_JSON),
            ("{}", DecodeErrorKind.INVALID_JSON),
            ("[]", DecodeErrorKind.INVALID_JSON),
        ],
    )
    def test_kinds(self, codec, frame, kind):
        with pytest.raises(DecodeError) as exc_info:
            codec.decode_to_relay(frame)
        assert exc_info.value.kind is kind

    def test_message_type_recorded(self, codec):
        with pytest.raises(DecodeError) as exc_info:
            codec.decode_to_relay('["CLOSE"]')
        assert exc_info.value.message_type is MessageType.CLOSE

    def test_malformed_event_keeps_id(self, codec, sample_event_dict):
        sample_event_dict["sig"] = "short"
        with pytest.raises(DecodeError) as exc_info:
            codec.decode_to_relay(_frame("EVENT", sample_event_dict))
        assert exc_info.value.event_id == sample_event_dict["id"]

    def test_malformed_event_without_id(self, codec):
        with pytest.raises(DecodeError) as exc_info:
            codec.decode_to_relay(_frame("EVENT", {"content": "x"}))
        assert exc_info.value.event_id is None

    @pytest.mark.parametrize("raw_id", ["x", "AB" * 32, "ab" * 31, 7])
    def test_malformed_event_with_unusable_id(self, codec, sample_event_dict, raw_id):
        sample_event_dict.update(id=raw_id, sig="short")
        with pytest.raises(DecodeError) as exc_info:
            codec.decode_to_relay(_frame("EVENT", sample_event_dict))
        assert exc_info.value.event_id is None

    def test_lone_surrogate_content(self, codec, sample_event_dict):
        sample_event_dict["content"] = "\ud800"
        with pytest.raises(DecodeError) as exc_info:
            codec.decode_to_relay(_frame("EVENT", sample_event_dict))
        assert exc_info.value.kind is DecodeErrorKind.TYPE_MISMATCH
        assert exc_info.value.event_id == sample_event_dict["id"]

    @pytest.mark.parametrize("message_type", ["REQ", "COUNT"])
    def test_malformed_filter_keeps_sub_id(self, codec, message_type):
        with pytest.raises(DecodeError) as exc_info:
            codec.decode_to_relay(_frame(message_type, "feed", {"kinds": [1]}, {"kinds": "1"}))
        assert exc_info.value.kind is DecodeErrorKind.TYPE_MISMATCH
        assert exc_info.value.sub_id == "feed"
        assert exc_info.value.event_id is None

    def test_non_object_filter_keeps_sub_id(self, codec):
        with pytest.raises(DecodeError) as exc_info:
            codec.decode_to_relay(_frame("REQ", "feed", []))
        assert exc_info.value.sub_id == "feed"

    def test_unreadable_sub_id(self, codec):
        with pytest.raises(DecodeError) as exc_info:
            codec.decode_to_relay(_frame("REQ", 1, {}))
        assert exc_info.value.sub_id is None

    def test_max_message_length(self):
        codec = MessageCodec(max_message_length=16)
        codec.decode_to_relay('["CLOSE","abc"]')
        with pytest.raises(DecodeError, match="max_message_length"):
            codec.decode_to_relay('["CLOSE","abcdefghij"]')

    def test_max_message_length_counts_utf8_bytes(self):
        codec = MessageCodec(max_message_length=16)
        with pytest.raises(DecodeError):
            codec.decode_to_relay('["CLOSE","ééé"]')


class TestEncode:
    def test_compact_and_raw_utf8(self, codec):
        assert codec.encode(NoticeMessage("héllo")) == '["NOTICE","héllo"]'

    def test_round_trip_to_relay(self, codec, sample_event):
        messages = [
            EventMessage(sample_event),
            ReqMessage("s", [Filter(kinds=[1], tags={"e": ["x"]}), Filter(limit=5)]),
            CloseMessage("s"),
            CountMessage("c", [Filter(authors=["ab"])]),
            AuthMessage(sample_event),
        ]
        for message in messages:
            assert codec.decode(codec.encode(message), Direction.TO_RELAY) == message

    def test_round_trip_to_client(self, codec, sample_event):
        messages = [
            RelayEventMessage("s", sample_event),
            OkMessage(sample_event.id, False, "blocked: no"),
            EoseMessage("s"),
            ClosedMessage("s", ""),
            NoticeMessage("n"),
            AuthChallengeMessage("c"),
            CountResultMessage("c", 0),
        ]
        for message in messages:
            assert codec.decode(codec.encode(message), Direction.TO_CLIENT) == message

    def test_direction_of(self, sample_event):
        assert direction_of(EventMessage(sample_event)) is Direction.TO_RELAY
        assert direction_of(RelayEventMessage("s", sample_event)) is Direction.TO_CLIENT
        assert direction_of(AuthChallengeMessage("c")) is Direction.TO_CLIENT
