"""Protocol engine: event identity, verification, filters, wire messages and sessions.

Attributes:
    EventCodec: Canonical serialization and id computation.
        See [nostrcore.protocol.codec][nostrcore.protocol.codec].
    SignatureGate: Total classification of candidate events.
        See [nostrcore.protocol.gate][nostrcore.protocol.gate].
    FilterMatcher: Filter evaluation and ``limit`` selection.
        See [nostrcore.protocol.matcher][nostrcore.protocol.matcher].
    MessageCodec: Wire frame decoding/encoding.
        See [nostrcore.protocol.wire][nostrcore.protocol.wire].
    ClientSession: Client-side subscription state machine.
        See [nostrcore.protocol.subscriptions][nostrcore.protocol.subscriptions].
    RelayHub: Relay-side processing.
        See [nostrcore.protocol.relay][nostrcore.protocol.relay].
"""

from .auth import build_auth_event, validate_auth_event
from .codec import EventCodec, canonicalize, compute_id
from .gate import SignatureGate, VerificationResult
from .matcher import FilterMatcher, SearchMatcher, matches, matches_any
from .policy import FilterPolicy
from .pow import committed_difficulty, leading_zero_bits, meets_difficulty, mine
from .relay import EventStore, RelayConnection, RelayHub, SubscriptionRegistry
from .signing import build_unsigned, sign_event
from .subscriptions import (
    ClientSession,
    RoutingOutcome,
    Subscription,
    SubscriptionState,
)
from .tag_index import TagIndex
from .wire import Direction, MessageCodec


__all__ = [
    "ClientSession",
    "Direction",
    "EventCodec",
    "EventStore",
    "FilterMatcher",
    "FilterPolicy",
    "MessageCodec",
    "RelayConnection",
    "RelayHub",
    "RoutingOutcome",
    "SearchMatcher",
    "SignatureGate",
    "Subscription",
    "SubscriptionRegistry",
    "SubscriptionState",
    "TagIndex",
    "VerificationResult",
    "build_auth_event",
    "build_unsigned",
    "canonicalize",
    "committed_difficulty",
    "compute_id",
    "leading_zero_bits",
    "matches",
    "matches_any",
    "meets_difficulty",
    "mine",
    "sign_event",
    "validate_auth_event",
]
