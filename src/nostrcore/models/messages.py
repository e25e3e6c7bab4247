"""
Wire message variants exchanged between clients and relays.

Each message is a JSON array whose first element is a literal discriminator
([MessageType][nostrcore.models.constants.MessageType]). Every discriminator
and direction has its own frozen dataclass, so a decoded message is one member
of a closed union (``ToRelayMessage`` or ``ToClientMessage``) and consumers can
dispatch with ``match`` instead of indexing loose arrays.

Parsing from text lives in [MessageCodec][nostrcore.protocol.wire.MessageCodec];
this module only defines the variants and their ``to_array()`` rendering.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

from .constants import MachineReadablePrefix, MessageType
from .event import Event
from .filter import Filter


_PREFIX_SEPARATOR = ":"


# =============================================================================
# Machine-readable reasons
# =============================================================================


@dataclass(frozen=True, slots=True)
class PrefixedReason:
    """Parsed ``OK`` / ``CLOSED`` message text.

    Attributes:
        prefix: Recognized machine-readable prefix, or ``None`` when the text
            is an opaque human-readable message.
        detail: Text after the prefix separator (leading whitespace removed),
            or the full text when no prefix was recognized.
    """

    prefix: MachineReadablePrefix | None
    detail: str

    def __str__(self) -> str:
        return format_reason(self.prefix, self.detail)


def parse_reason(text: str) -> PrefixedReason:
    """Split ``"<prefix>:<detail>"`` when *prefix* is a recognized prefix.

    Examples:
        ```python
        parse_reason("duplicate: already have this event")
        # PrefixedReason(prefix=MachineReadablePrefix.DUPLICATE, detail="already have this event")
        parse_reason("hello")
        # PrefixedReason(prefix=None, detail="hello")
        ```
    """
    head, separator, rest = text.partition(_PREFIX_SEPARATOR)
    if separator:
        try:
            return PrefixedReason(MachineReadablePrefix(head), rest.lstrip())
        except ValueError:
            pass
    return PrefixedReason(None, text)


def format_reason(prefix: MachineReadablePrefix | None, detail: str) -> str:
    """Render a reason string (inverse of [parse_reason][nostrcore.models.messages.parse_reason])."""
    if prefix is None:
        return detail
    if not detail:
        return f"{prefix.value}{_PREFIX_SEPARATOR}"
    return f"{prefix.value}{_PREFIX_SEPARATOR} {detail}"


# =============================================================================
# Client -> relay
# =============================================================================


@dataclass(frozen=True, slots=True)
class EventMessage:
    """``["EVENT", event]``: publish an event."""

    MESSAGE_TYPE: ClassVar[MessageType] = MessageType.EVENT

    event: Event

    def to_array(self) -> list[Any]:
        return [self.MESSAGE_TYPE.value, self.event.to_dict()]


@dataclass(frozen=True, slots=True)
class ReqMessage:
    """``["REQ", sub_id, filter, ...]``: open a subscription."""

    MESSAGE_TYPE: ClassVar[MessageType] = MessageType.REQ

    sub_id: str
    filters: tuple[Filter, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "filters", tuple(self.filters))
        if not self.filters:
            raise ValueError("REQ requires at least one filter")

    def to_array(self) -> list[Any]:
        return [self.MESSAGE_TYPE.value, self.sub_id, *(f.to_dict() for f in self.filters)]


@dataclass(frozen=True, slots=True)
class CloseMessage:
    """``["CLOSE", sub_id]``: stop a subscription."""

    MESSAGE_TYPE: ClassVar[MessageType] = MessageType.CLOSE

    sub_id: str

    def to_array(self) -> list[Any]:
        return [self.MESSAGE_TYPE.value, self.sub_id]


@dataclass(frozen=True, slots=True)
class CountMessage:
    """``["COUNT", sub_id, filter, ...]``: one-shot count request (NIP-45)."""

    MESSAGE_TYPE: ClassVar[MessageType] = MessageType.COUNT

    sub_id: str
    filters: tuple[Filter, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "filters", tuple(self.filters))
        if not self.filters:
            raise ValueError("COUNT requires at least one filter")

    def to_array(self) -> list[Any]:
        return [self.MESSAGE_TYPE.value, self.sub_id, *(f.to_dict() for f in self.filters)]


@dataclass(frozen=True, slots=True)
class AuthMessage:
    """``["AUTH", event]``: answer a relay challenge with a kind 22242 event (NIP-42)."""

    MESSAGE_TYPE: ClassVar[MessageType] = MessageType.AUTH

    event: Event

    def to_array(self) -> list[Any]:
        return [self.MESSAGE_TYPE.value, self.event.to_dict()]


# =============================================================================
# Relay -> client
# =============================================================================


@dataclass(frozen=True, slots=True)
class RelayEventMessage:
    """``["EVENT", sub_id, event]``: an event matching a subscription."""

    MESSAGE_TYPE: ClassVar[MessageType] = MessageType.EVENT

    sub_id: str
    event: Event

    def to_array(self) -> list[Any]:
        return [self.MESSAGE_TYPE.value, self.sub_id, self.event.to_dict()]


@dataclass(frozen=True, slots=True)
class OkMessage:
    """``["OK", event_id, accepted, message]``: result of an EVENT or AUTH."""

    MESSAGE_TYPE: ClassVar[MessageType] = MessageType.OK

    event_id: str
    accepted: bool
    message: str = ""

    @property
    def reason(self) -> PrefixedReason:
        return parse_reason(self.message)

    def to_array(self) -> list[Any]:
        return [self.MESSAGE_TYPE.value, self.event_id, self.accepted, self.message]


@dataclass(frozen=True, slots=True)
class EoseMessage:
    """``["EOSE", sub_id]``: end of stored events."""

    MESSAGE_TYPE: ClassVar[MessageType] = MessageType.EOSE

    sub_id: str

    def to_array(self) -> list[Any]:
        return [self.MESSAGE_TYPE.value, self.sub_id]


@dataclass(frozen=True, slots=True)
class ClosedMessage:
    """``["CLOSED", sub_id, message]``: the relay ended or refused a subscription."""

    MESSAGE_TYPE: ClassVar[MessageType] = MessageType.CLOSED

    sub_id: str
    message: str = ""

    @property
    def reason(self) -> PrefixedReason:
        return parse_reason(self.message)

    def to_array(self) -> list[Any]:
        return [self.MESSAGE_TYPE.value, self.sub_id, self.message]


@dataclass(frozen=True, slots=True)
class NoticeMessage:
    """``["NOTICE", message]``: human-readable relay notice."""

    MESSAGE_TYPE: ClassVar[MessageType] = MessageType.NOTICE

    message: str

    def to_array(self) -> list[Any]:
        return [self.MESSAGE_TYPE.value, self.message]


@dataclass(frozen=True, slots=True)
class AuthChallengeMessage:
    """``["AUTH", challenge]``: relay challenge (NIP-42)."""

    MESSAGE_TYPE: ClassVar[MessageType] = MessageType.AUTH

    challenge: str

    def to_array(self) -> list[Any]:
        return [self.MESSAGE_TYPE.value, self.challenge]


@dataclass(frozen=True, slots=True)
class CountResultMessage:
    """``["COUNT", sub_id, {"count": n}]``: answer to a COUNT request (NIP-45)."""

    MESSAGE_TYPE: ClassVar[MessageType] = MessageType.COUNT

    sub_id: str
    count: int

    def to_array(self) -> list[Any]:
        return [self.MESSAGE_TYPE.value, self.sub_id, {"count": self.count}]


ToRelayMessage = EventMessage | ReqMessage | CloseMessage | CountMessage | AuthMessage
ToClientMessage = (
    RelayEventMessage
    | OkMessage
    | EoseMessage
    | ClosedMessage
    | NoticeMessage
    | AuthChallengeMessage
    | CountResultMessage
)
Message = ToRelayMessage | ToClientMessage
