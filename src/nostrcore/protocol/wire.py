"""
Wire message codec.

Decodes raw text frames into the typed variants of
[nostrcore.models.messages][nostrcore.models.messages] and encodes them back.
The same discriminator means different shapes in each direction (``EVENT``,
``AUTH`` and ``COUNT``), so decoding is always done for a
[Direction][nostrcore.protocol.wire.Direction].

Decoding is strict: arity and per-position types must match exactly. Only
``REQ`` and ``COUNT`` are variadic, and each trailing element must be a
well-formed filter object. ``encode`` is a left inverse of ``decode``: for
every valid message ``m``, ``decode(encode(m), direction) == m``.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from enum import StrEnum
from typing import Any

from nostrcore.core.exceptions import DecodeError, DecodeErrorKind
from nostrcore.core.metrics import DECODE_ERRORS_TOTAL, MESSAGES_TOTAL
from nostrcore.models.constants import MessageType
from nostrcore.models.event import Event
from nostrcore.models.filter import Filter
from nostrcore.models.messages import (
    AuthChallengeMessage,
    AuthMessage,
    CloseMessage,
    ClosedMessage,
    CountMessage,
    CountResultMessage,
    EoseMessage,
    EventMessage,
    Message,
    NoticeMessage,
    OkMessage,
    RelayEventMessage,
    ReqMessage,
    ToClientMessage,
    ToRelayMessage,
)


_SEPARATORS = (",", ":")
_EVENT_ID = re.compile(r"[0-9a-f]{64}")


class Direction(StrEnum):
    TO_RELAY = "to_relay"
    TO_CLIENT = "to_client"


_TO_RELAY_TYPES = (EventMessage, ReqMessage, CloseMessage, CountMessage, AuthMessage)


def direction_of(message: Message) -> Direction:
    return Direction.TO_RELAY if isinstance(message, _TO_RELAY_TYPES) else Direction.TO_CLIENT


class _Frame:
    """A decoded JSON array being matched against one message shape."""

    __slots__ = ("items", "message_type")

    def __init__(self, items: list[Any], message_type: MessageType) -> None:
        self.items = items
        self.message_type = message_type

    def fail(
        self,
        kind: DecodeErrorKind,
        detail: str,
        *,
        event_id: str | None = None,
        sub_id: str | None = None,
    ) -> DecodeError:
        return DecodeError(
            kind, detail, message_type=self.message_type, event_id=event_id, sub_id=sub_id
        )

    def arity(self, expected: int) -> None:
        if len(self.items) != expected:
            raise self.fail(
                DecodeErrorKind.ARITY_MISMATCH,
                f"{self.message_type} takes {expected} elements, got {len(self.items)}",
            )

    def min_arity(self, minimum: int) -> None:
        if len(self.items) < minimum:
            raise self.fail(
                DecodeErrorKind.ARITY_MISMATCH,
                f"{self.message_type} takes at least {minimum} elements, got {len(self.items)}",
            )

    def string(self, index: int) -> str:
        value = self.items[index]
        if not isinstance(value, str):
            raise self.fail(
                DecodeErrorKind.TYPE_MISMATCH,
                f"element {index} of {self.message_type} must be a string",
            )
        return value

    def boolean(self, index: int) -> bool:
        value = self.items[index]
        if not isinstance(value, bool):
            raise self.fail(
                DecodeErrorKind.TYPE_MISMATCH,
                f"element {index} of {self.message_type} must be a boolean",
            )
        return value

    def event(self, index: int) -> Event:
        value = self.items[index]
        if not isinstance(value, dict):
            raise self.fail(
                DecodeErrorKind.TYPE_MISMATCH,
                f"element {index} of {self.message_type} must be an event object",
            )
        try:
            return Event.from_dict(value)
        except (TypeError, ValueError) as e:
            raw_id = value.get("id")
            if not isinstance(raw_id, str) or not _EVENT_ID.fullmatch(raw_id):
                raw_id = None
            raise self.fail(
                DecodeErrorKind.TYPE_MISMATCH, f"malformed event: {e}", event_id=raw_id
            ) from e

    def filters(self, start: int, *, sub_id: str) -> tuple[Filter, ...]:
        parsed = []
        for index in range(start, len(self.items)):
            value = self.items[index]
            if not isinstance(value, dict):
                raise self.fail(
                    DecodeErrorKind.TYPE_MISMATCH,
                    f"element {index} of {self.message_type} must be a filter object",
                    sub_id=sub_id,
                )
            try:
                parsed.append(Filter.from_dict(value))
            except (TypeError, ValueError) as e:
                raise self.fail(
                    DecodeErrorKind.TYPE_MISMATCH, f"malformed filter: {e}", sub_id=sub_id
                ) from e
        return tuple(parsed)


# -- client -> relay ---------------------------------------------------------


def _event_to_relay(frame: _Frame) -> ToRelayMessage:
    frame.arity(2)
    return EventMessage(frame.event(1))


def _req(frame: _Frame) -> ToRelayMessage:
    frame.min_arity(3)
    sub_id = frame.string(1)
    return ReqMessage(sub_id, frame.filters(2, sub_id=sub_id))


def _close(frame: _Frame) -> ToRelayMessage:
    frame.arity(2)
    return CloseMessage(frame.string(1))


def _count_request(frame: _Frame) -> ToRelayMessage:
    frame.min_arity(3)
    sub_id = frame.string(1)
    return CountMessage(sub_id, frame.filters(2, sub_id=sub_id))


def _auth_event(frame: _Frame) -> ToRelayMessage:
    frame.arity(2)
    return AuthMessage(frame.event(1))


# -- relay -> client ---------------------------------------------------------


def _event_to_client(frame: _Frame) -> ToClientMessage:
    frame.arity(3)
    return RelayEventMessage(frame.string(1), frame.event(2))


def _ok(frame: _Frame) -> ToClientMessage:
    frame.arity(4)
    return OkMessage(frame.string(1), frame.boolean(2), frame.string(3))


def _eose(frame: _Frame) -> ToClientMessage:
    frame.arity(2)
    return EoseMessage(frame.string(1))


def _closed(frame: _Frame) -> ToClientMessage:
    frame.arity(3)
    return ClosedMessage(frame.string(1), frame.string(2))


def _notice(frame: _Frame) -> ToClientMessage:
    frame.arity(2)
    return NoticeMessage(frame.string(1))


def _auth_challenge(frame: _Frame) -> ToClientMessage:
    frame.arity(2)
    return AuthChallengeMessage(frame.string(1))


def _count_result(frame: _Frame) -> ToClientMessage:
    frame.arity(3)
    sub_id = frame.string(1)
    body = frame.items[2]
    count = body.get("count") if isinstance(body, dict) else None
    if not isinstance(count, int) or isinstance(count, bool) or count < 0:
        raise frame.fail(
            DecodeErrorKind.TYPE_MISMATCH,
            'element 2 of COUNT must be {"count": <non-negative integer>}',
        )
    return CountResultMessage(sub_id, count)


_DECODERS: dict[Direction, dict[MessageType, Callable[[_Frame], Message]]] = {
    Direction.TO_RELAY: {
        MessageType.EVENT: _event_to_relay,
        MessageType.REQ: _req,
        MessageType.CLOSE: _close,
        MessageType.COUNT: _count_request,
        MessageType.AUTH: _auth_event,
    },
    Direction.TO_CLIENT: {
        MessageType.EVENT: _event_to_client,
        MessageType.OK: _ok,
        MessageType.EOSE: _eose,
        MessageType.CLOSED: _closed,
        MessageType.NOTICE: _notice,
        MessageType.AUTH: _auth_challenge,
        MessageType.COUNT: _count_result,
    },
}


class MessageCodec:
    """Decodes and encodes wire frames.

    Args:
        max_message_length: Reject frames longer than this many UTF-8 bytes
            before parsing (NIP-11 ``max_message_length``). ``None`` disables
            the guard.
    """

    def __init__(self, max_message_length: int | None = None) -> None:
        self._max_message_length = max_message_length

    def decode(self, text: str | bytes, direction: Direction) -> Message:
        """Decode one frame sent in *direction*.

        Raises:
            DecodeError: If the frame does not match any message shape.
        """
        try:
            message = self._decode(text, direction)
        except DecodeError as e:
            DECODE_ERRORS_TOTAL.labels(kind=e.kind.value).inc()
            raise
        MESSAGES_TOTAL.labels(
            direction=direction.value, operation="decode", type=message.MESSAGE_TYPE.value
        ).inc()
        return message

    def decode_to_relay(self, text: str | bytes) -> ToRelayMessage:
        return self.decode(text, Direction.TO_RELAY)  # type: ignore[return-value]

    def decode_to_client(self, text: str | bytes) -> ToClientMessage:
        return self.decode(text, Direction.TO_CLIENT)  # type: ignore[return-value]

    def _decode(self, text: str | bytes, direction: Direction) -> Message:
        size = len(text) if isinstance(text, bytes) else len(text.encode("utf-8"))
        if self._max_message_length is not None and size > self._max_message_length:
            raise DecodeError(
                DecodeErrorKind.TYPE_MISMATCH,
                f"frame of {size} bytes exceeds max_message_length {self._max_message_length}",
            )
        try:
            items = json.loads(text)
        except ValueError as e:
            raise DecodeError(DecodeErrorKind.INVALID_JSON, f"not JSON: {e}") from e
        if not isinstance(items, list) or not items:
            raise DecodeError(DecodeErrorKind.INVALID_JSON, "frame must be a non-empty JSON array")

        head = items[0]
        decoders = _DECODERS[direction]
        try:
            message_type = MessageType(head) if isinstance(head, str) else None
        except ValueError:
            message_type = None
        if message_type is None or message_type not in decoders:
            raise DecodeError(
                DecodeErrorKind.UNKNOWN_TYPE,
                f"unknown {direction.value} message type: {head!r}",
            )
        return decoders[message_type](_Frame(items, message_type))

    def encode(self, message: Message) -> str:
        """Render *message* as a compact JSON frame."""
        MESSAGES_TOTAL.labels(
            direction=direction_of(message).value,
            operation="encode",
            type=message.MESSAGE_TYPE.value,
        ).inc()
        return json.dumps(message.to_array(), separators=_SEPARATORS, ensure_ascii=False)
