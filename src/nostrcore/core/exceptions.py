"""nostrcore exception hierarchy.

Provides typed exceptions for every error category so callers can tell a
malformed wire frame from a policy rejection or a fatal collaborator fault.

Exception hierarchy:

```text
NostrCoreError (base -- never raised directly)
├── ConfigurationError          -- config validation, missing keys, bad YAML
├── ProtocolError               -- wire or event structure failures
│   ├── MalformedEventError     -- event fields absent or mis-shaped
│   ├── DecodeError             -- wire frame does not match any message shape
│   ├── FilterRejectedError     -- filter exceeds relay-declared limits
│   ├── AuthError               -- NIP-42 authentication event rejected
│   ├── UnknownSubscriptionError -- message references an untracked sub id
│   └── SubscriptionClosedError  -- relay closed a pending one-shot request
└── CryptoError                 -- hashing/signing collaborator fault (fatal)
```

Note:
    An event whose id or signature does not check out is *not* an exception:
    [SignatureGate][nostrcore.protocol.gate.SignatureGate] classifies it as
    ``INVALID_ID`` or ``INVALID_SIGNATURE`` and the caller decides what to do.

See Also:
    [MessageCodec][nostrcore.protocol.wire.MessageCodec]: Raises
        [DecodeError][nostrcore.core.exceptions.DecodeError].
    [FilterPolicy][nostrcore.protocol.policy.FilterPolicy]: Raises
        [FilterRejectedError][nostrcore.core.exceptions.FilterRejectedError].
"""

from __future__ import annotations

from enum import StrEnum

from nostrcore.models.constants import MachineReadablePrefix, MessageType
from nostrcore.models.messages import PrefixedReason


class NostrCoreError(Exception):
    """Base exception for all nostrcore errors.

    Never raised directly -- always use a specific subclass.
    """


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(NostrCoreError):
    """Invalid or missing configuration (YAML, env vars, CLI flags)."""


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class ProtocolError(NostrCoreError):
    """Wire message or event structure violates the protocol."""


class MalformedEventError(ProtocolError):
    """An event has an absent or mis-shaped field.

    Local rejection: such an event is never transmitted and never reaches
    the signature primitive.
    """


class DecodeErrorKind(StrEnum):
    """Why a wire frame failed to decode.

    Attributes:
        UNKNOWN_TYPE: First element is not a known discriminator for the direction.
        ARITY_MISMATCH: Wrong number of elements for the discriminator.
        TYPE_MISMATCH: An element has the wrong type or shape.
        INVALID_JSON: The frame is not a non-empty JSON array.
    """

    UNKNOWN_TYPE = "unknown_type"
    ARITY_MISMATCH = "arity_mismatch"
    TYPE_MISMATCH = "type_mismatch"
    INVALID_JSON = "invalid_json"


class DecodeError(ProtocolError):
    """A wire frame does not match the shape of any known message.

    Attributes:
        kind: [DecodeErrorKind][nostrcore.core.exceptions.DecodeErrorKind].
        message_type: Discriminator of the frame, when it was recognized.
        event_id: ``id`` of the embedded event when the frame was an EVENT or
            AUTH whose id is 64 lowercase hex chars; lets relays answer with ``OK``.
        sub_id: Subscription id of a REQ or COUNT whose filters were
            malformed; lets relays answer with ``CLOSED``.
    """

    def __init__(
        self,
        kind: DecodeErrorKind,
        detail: str,
        *,
        message_type: MessageType | None = None,
        event_id: str | None = None,
        sub_id: str | None = None,
    ) -> None:
        super().__init__(f"{kind.value}: {detail}")
        self.kind = kind
        self.detail = detail
        self.message_type = message_type
        self.event_id = event_id
        self.sub_id = sub_id


class _ReasonError(ProtocolError):
    """Protocol rejection carrying a machine-readable reason."""

    def __init__(self, prefix: MachineReadablePrefix, detail: str) -> None:
        self.reason = PrefixedReason(prefix, detail)
        super().__init__(str(self.reason))


class FilterRejectedError(_ReasonError):
    """A REQ/COUNT exceeds relay-declared limits.

    Relays answer with ``CLOSED`` carrying ``str(error.reason)`` and never
    process the request.
    """


class AuthError(_ReasonError):
    """A NIP-42 authentication event was rejected."""


class UnknownSubscriptionError(ProtocolError):
    """A message references a subscription id with no tracked state."""

    def __init__(self, sub_id: str) -> None:
        super().__init__(f"unknown subscription: {sub_id}")
        self.sub_id = sub_id


class SubscriptionClosedError(ProtocolError):
    """The relay answered a one-shot request (COUNT) with ``CLOSED``.

    Set on the pending future of the request, not raised by the engine.
    """

    def __init__(self, sub_id: str, reason: PrefixedReason) -> None:
        super().__init__(f"{sub_id} closed by relay: {reason}")
        self.sub_id = sub_id
        self.reason = reason


# ---------------------------------------------------------------------------
# Crypto
# ---------------------------------------------------------------------------


class CryptoError(NostrCoreError):
    """The hashing or signing collaborator itself faulted.

    Unlike verification failures this is unrecoverable and propagates.
    """
