"""Models layer: frozen dataclasses describing events, filters, tags and messages.

Bottom of the dependency DAG. Depends only on the standard library and
performs no I/O. Validation is structural; cryptographic validity is decided
by [nostrcore.protocol.gate][nostrcore.protocol.gate].

Attributes:
    Event: Signed event as exchanged on the wire.
        See [Event][nostrcore.models.event.Event].
    UnsignedEvent: The id pre-image of an event.
    Filter: Subscription query with an open tag-query map.
        See [Filter][nostrcore.models.filter.Filter].
    EventKind: Well-known event kinds.
    MessageType: Wire message discriminators.
    MachineReadablePrefix: Recognized ``OK``/``CLOSED`` reason prefixes.
"""

from .constants import EventKind, MachineReadablePrefix, MessageType
from .event import Event, UnsignedEvent
from .filter import Filter
from .messages import (
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
    PrefixedReason,
    RelayEventMessage,
    ReqMessage,
    ToClientMessage,
    ToRelayMessage,
    format_reason,
    parse_reason,
)
from .tags import (
    AddressPointer,
    EventMarker,
    EventPointer,
    ExternalIdentity,
    Label,
    LabelAnnotation,
    PubkeyPointer,
    parse_tag,
    tag_values,
)


__all__ = [
    "AddressPointer",
    "AuthChallengeMessage",
    "AuthMessage",
    "CloseMessage",
    "ClosedMessage",
    "CountMessage",
    "CountResultMessage",
    "EoseMessage",
    "Event",
    "EventKind",
    "EventMarker",
    "EventMessage",
    "EventPointer",
    "ExternalIdentity",
    "Filter",
    "Label",
    "LabelAnnotation",
    "MachineReadablePrefix",
    "Message",
    "MessageType",
    "NoticeMessage",
    "OkMessage",
    "PrefixedReason",
    "PubkeyPointer",
    "RelayEventMessage",
    "ReqMessage",
    "ToClientMessage",
    "ToRelayMessage",
    "UnsignedEvent",
    "format_reason",
    "parse_reason",
    "tag_values",
]
