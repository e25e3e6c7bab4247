"""Shared constants for the models layer.

Defines enumerations and other constants that are used across multiple
model and protocol modules. Placing them here avoids circular dependencies
between the models and protocol layers.

See Also:
    [nostrcore.models.messages][]: Uses [MessageType][nostrcore.models.constants.MessageType]
        as the discriminator of every wire message variant.
    [nostrcore.protocol.relay][]: Uses
        [MachineReadablePrefix][nostrcore.models.constants.MachineReadablePrefix]
        to build ``OK`` and ``CLOSED`` rejection reasons.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum


class MessageType(StrEnum):
    """Literal discriminator placed first in every wire message array.

    The same literal may name different shapes depending on direction
    (``EVENT``, ``AUTH`` and ``COUNT`` exist both ways).
    """

    EVENT = "EVENT"
    REQ = "REQ"
    CLOSE = "CLOSE"
    COUNT = "COUNT"
    AUTH = "AUTH"
    OK = "OK"
    EOSE = "EOSE"
    CLOSED = "CLOSED"
    NOTICE = "NOTICE"


class MachineReadablePrefix(StrEnum):
    """Machine-readable prefixes recognized in ``OK`` and ``CLOSED`` messages.

    A reason string of the form ``"<prefix>:<detail>"`` whose prefix is one of
    these members is parsed into a
    [PrefixedReason][nostrcore.models.messages.PrefixedReason]; any other string
    is an opaque human-readable message.
    """

    DUPLICATE = "duplicate"
    POW = "pow"
    BLOCKED = "blocked"
    RATE_LIMITED = "rate-limited"
    INVALID = "invalid"
    ERROR = "error"
    AUTH_REQUIRED = "auth-required"
    RESTRICTED = "restricted"


class EventKind(IntEnum):
    """Well-known Nostr event kinds.

    Only kinds that the engine treats specially, or that are commonly
    referenced by callers, are listed. Any non-negative integer is a valid
    kind on the wire.
    """

    METADATA = 0
    TEXT = 1
    RECOMMEND_RELAY = 2
    CONTACTS = 3
    ENCRYPTED_DIRECT_MESSAGE = 4
    EVENT_DELETION = 5
    REPOST = 6
    REACTION = 7
    BADGE_AWARD = 8
    GENERIC_REPOST = 16
    CHANNEL_CREATION = 40
    CHANNEL_METADATA = 41
    CHANNEL_MESSAGE = 42
    CHANNEL_HIDE_MESSAGE = 43
    CHANNEL_MUTE_USER = 44
    OPEN_TIMESTAMPS = 1040
    FILE_METADATA = 1063
    LIVE_CHAT_MESSAGE = 1311
    REPORTING = 1984
    LABEL = 1985
    COMMUNITY_POST_APPROVAL = 4550
    ZAP_GOAL = 9041
    ZAP_REQUEST = 9734
    ZAP = 9735
    HIGHLIGHTS = 9802
    MUTE_LIST = 10000
    PIN_LIST = 10001
    RELAY_LIST_METADATA = 10_002
    BOOKMARK_LIST = 10_003
    WALLET_INFO = 13_194
    CLIENT_AUTHENTICATION = 22_242
    WALLET_REQUEST = 23_194
    WALLET_RESPONSE = 23_195
    NOSTR_CONNECT = 24_133
    HTTP_AUTH = 27_235
    CATEGORIZED_PEOPLE_LIST = 30_000
    LONG_FORM_CONTENT = 30_023
    APPLICATION_SPECIFIC_DATA = 30_078
    LIVE_EVENT = 30_311
    COMMUNITY_DEFINITION = 34_550


# Kind ranges from NIP-01; the upper bound of each range is exclusive.
REPLACEABLE_KIND_RANGE = (10_000, 20_000)
EPHEMERAL_KIND_RANGE = (20_000, 30_000)
ADDRESSABLE_KIND_RANGE = (30_000, 40_000)
LEGACY_REPLACEABLE_KINDS = frozenset({EventKind.METADATA, EventKind.CONTACTS})

ID_HEX_LENGTH = 64
PUBKEY_HEX_LENGTH = 64
SIG_HEX_LENGTH = 128
