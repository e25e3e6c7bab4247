"""
Client-side subscription tracking and inbound message routing.

One [ClientSession][nostrcore.protocol.subscriptions.ClientSession] exists
per relay connection. It produces the outgoing REQ/CLOSE/COUNT/EVENT/AUTH
messages and routes every inbound frame:

```text
           REQ sent           EOSE (once)
  (none) ───────────> OPEN ───────────────> STREAMING
                        │                       │
                        │ CLOSE / CLOSED /      │
                        └──── teardown ─────────┴──> CLOSED (terminal)
```

``OPEN`` and ``STREAMING`` both accept events. A second EOSE is an anomaly,
logged and otherwise ignored. Messages for unknown subscription ids are logged
and discarded. Nothing here raises for protocol misbehaviour by the relay.

Incoming events pass the [SignatureGate][nostrcore.protocol.gate.SignatureGate]
(in an executor) before delivery. The subscription is looked up again after
verification, so an event that was being verified while the subscription was
closed is dropped instead of delivered.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import Executor
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any, Self

from nostrcore.core.config import EngineConfig
from nostrcore.core.exceptions import (
    DecodeError,
    MalformedEventError,
    SubscriptionClosedError,
    UnknownSubscriptionError,
)
from nostrcore.core.logger import Logger
from nostrcore.core.metrics import DELIVERIES_TOTAL, OPEN_SUBSCRIPTIONS
from nostrcore.crypto.schnorr import Signer
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
    NoticeMessage,
    OkMessage,
    PrefixedReason,
    RelayEventMessage,
    ReqMessage,
    ToClientMessage,
)
from nostrcore.nips.nip11 import RelayInformation

from .auth import build_auth_event
from .gate import SignatureGate
from .matcher import FilterMatcher
from .policy import FilterPolicy
from .wire import MessageCodec


_SIDE = "client"


class SubscriptionState(StrEnum):
    OPEN = "open"
    STREAMING = "streaming"
    CLOSED = "closed"


EventCallback = Callable[["Subscription", Event], None]


@dataclass(slots=True, eq=False)
class Subscription:
    """A subscription owned by one [ClientSession][nostrcore.protocol.subscriptions.ClientSession].

    Attributes:
        sub_id: Client-chosen id, unique among the session's active subscriptions.
        filters: The filters sent in the REQ.
        on_event: Called synchronously with every delivered event.
        state: Current [SubscriptionState][nostrcore.protocol.subscriptions.SubscriptionState].
        received: Number of events delivered.
        closed_reason: Reason from the relay's ``CLOSED``, if it closed us.
    """

    sub_id: str
    filters: tuple[Filter, ...]
    on_event: EventCallback | None = None
    state: SubscriptionState = SubscriptionState.OPEN
    received: int = 0
    closed_reason: PrefixedReason | None = field(default=None)

    @property
    def is_active(self) -> bool:
        return self.state is not SubscriptionState.CLOSED


class RoutingOutcome(StrEnum):
    """What [ClientSession.handle_message][nostrcore.protocol.subscriptions.ClientSession.handle_message] did."""

    DELIVERED = "delivered"
    REJECTED = "rejected"
    FILTERED = "filtered"
    DISCARDED = "discarded"
    EOSE = "eose"
    ANOMALY = "anomaly"
    CLOSED = "closed"
    RESOLVED = "resolved"
    UNMATCHED = "unmatched"
    NOTICE = "notice"
    AUTH_CHALLENGE = "auth_challenge"
    UNKNOWN_SUBSCRIPTION = "unknown_subscription"
    DECODE_ERROR = "decode_error"


class ClientSession:
    """Subscription state machine for one relay connection.

    Args:
        relay_info: The relay's NIP-11 document; its limitation is enforced
            locally before requests are produced.
        relay_url: URL of the relay, used when answering AUTH challenges.
        gate: Verifies incoming events.
        verify_incoming: Skip the gate when False (trusted relay).
        executor: Where verification runs; ``None`` uses the loop default.
        matcher: Filter evaluation; events that match none of the
            subscription's filters are not delivered.
        codec: Wire codec used by [handle_frame][nostrcore.protocol.subscriptions.ClientSession.handle_frame].
    """

    def __init__(
        self,
        relay_info: RelayInformation | None = None,
        *,
        relay_url: str | None = None,
        gate: SignatureGate | None = None,
        verify_incoming: bool = True,
        executor: Executor | None = None,
        matcher: FilterMatcher | None = None,
        codec: MessageCodec | None = None,
        logger: Logger | None = None,
    ) -> None:
        self._relay_info = relay_info or RelayInformation()
        self._relay_url = relay_url
        self._policy = FilterPolicy(self._relay_info.limitation)
        self._gate = gate or SignatureGate()
        self._verify_incoming = verify_incoming
        self._executor = executor
        self._matcher = matcher or FilterMatcher()
        self._codec = codec or MessageCodec()
        self._logger = logger or Logger("nostrcore.session")

        self._subscriptions: dict[str, Subscription] = {}
        self._pending_counts: dict[str, asyncio.Future[int]] = {}
        self._pending_oks: dict[str, asyncio.Future[OkMessage]] = {}
        self._challenge: str | None = None

    @classmethod
    def from_config(cls, config: EngineConfig, **kwargs: Any) -> Self:
        """Build a session for the relay described by *config*.

        ``relay_url``, ``relay_info``, ``verification.verify_incoming`` and the
        relay's ``max_message_length`` come from *config*; *kwargs* supplies
        the remaining collaborators (gate, executor, matcher).
        """
        kwargs.setdefault(
            "logger", Logger("nostrcore.session", json_output=config.logging.json_output)
        )
        return cls(
            config.relay_info,
            relay_url=config.relay_url,
            verify_incoming=config.verification.verify_incoming,
            codec=MessageCodec(config.relay_info.limitation.max_message_length),
            **kwargs,
        )

    # -- inspection -----------------------------------------------------------

    @property
    def subscriptions(self) -> Mapping[str, Subscription]:
        """Active subscriptions by id (read-only view)."""
        return MappingProxyType(self._subscriptions)

    @property
    def challenge(self) -> str | None:
        """Latest AUTH challenge received from the relay."""
        return self._challenge

    def get(self, sub_id: str) -> Subscription | None:
        return self._subscriptions.get(sub_id)

    # -- outgoing -------------------------------------------------------------

    def subscribe(
        self,
        sub_id: str,
        filters: Iterable[Filter],
        on_event: EventCallback | None = None,
    ) -> ReqMessage:
        """Open (or replace) subscription *sub_id*.

        Raises:
            FilterRejectedError: If the request exceeds the relay's limitation.
        """
        filters = tuple(filters)
        others = len(self._subscriptions) - (1 if sub_id in self._subscriptions else 0)
        checked = self._policy.check(sub_id, filters, open_subscriptions=others)

        previous = self._subscriptions.pop(sub_id, None)
        if previous is not None:
            previous.state = SubscriptionState.CLOSED
            OPEN_SUBSCRIPTIONS.labels(side=_SIDE).dec()
            self._logger.debug("subscription_replaced", sub_id=sub_id)

        self._subscriptions[sub_id] = Subscription(sub_id, checked, on_event)
        OPEN_SUBSCRIPTIONS.labels(side=_SIDE).inc()
        return ReqMessage(sub_id, checked)

    def close(self, sub_id: str) -> CloseMessage | None:
        """Close *sub_id*; returns None if it was not active (no-op).

        No event is delivered to the subscription once this returns.
        """
        subscription = self._subscriptions.pop(sub_id, None)
        if subscription is None:
            return None
        subscription.state = SubscriptionState.CLOSED
        OPEN_SUBSCRIPTIONS.labels(side=_SIDE).dec()
        return CloseMessage(sub_id)

    def count(self, sub_id: str, filters: Iterable[Filter]) -> CountMessage:
        """Produce a one-shot COUNT request; await [count_result][nostrcore.protocol.subscriptions.ClientSession.count_result].

        Must be called from a running event loop.

        Raises:
            FilterRejectedError: If the request exceeds the relay's limitation.
        """
        checked = self._policy.check(sub_id, tuple(filters))
        previous = self._pending_counts.pop(sub_id, None)
        if previous is not None:
            previous.cancel()
        self._pending_counts[sub_id] = asyncio.get_running_loop().create_future()
        return CountMessage(sub_id, checked)

    def count_result(self, sub_id: str) -> asyncio.Future[int]:
        """Future resolved by the relay's COUNT answer (or failed by CLOSED).

        Raises:
            UnknownSubscriptionError: If no COUNT is pending for *sub_id*.
        """
        future = self._pending_counts.get(sub_id)
        if future is None:
            raise UnknownSubscriptionError(sub_id)
        return future

    def publish(self, event: Event) -> EventMessage:
        """Produce an EVENT message; await [ok_result][nostrcore.protocol.subscriptions.ClientSession.ok_result]."""
        self._expect_ok(event)
        return EventMessage(event)

    def authenticate(self, event: Event) -> AuthMessage:
        """Produce an AUTH message for a signed kind 22242 event."""
        self._expect_ok(event)
        return AuthMessage(event)

    def answer_challenge(self, signer: Signer) -> AuthMessage:
        """Sign and produce the answer to the latest AUTH challenge.

        Raises:
            MalformedEventError: If no challenge was received or no relay URL is known.
        """
        if self._challenge is None or self._relay_url is None:
            raise MalformedEventError("no AUTH challenge to answer")
        return self.authenticate(build_auth_event(self._challenge, self._relay_url, signer))

    def ok_result(self, event_id: str) -> asyncio.Future[OkMessage]:
        """Future resolved by the relay's OK for *event_id*.

        Raises:
            KeyError: If nothing was published with that id.
        """
        future = self._pending_oks.get(event_id)
        if future is None:
            raise KeyError(event_id)
        return future

    def _expect_ok(self, event: Event) -> None:
        if event.id not in self._pending_oks:
            self._pending_oks[event.id] = asyncio.get_running_loop().create_future()

    # -- incoming -------------------------------------------------------------

    async def handle_frame(self, text: str | bytes) -> RoutingOutcome:
        """Decode and route one frame; undecodable frames are logged and dropped."""
        try:
            message = self._codec.decode_to_client(text)
        except DecodeError as e:
            self._logger.warning("frame_discarded", kind=e.kind.value, error=e.detail)
            return RoutingOutcome.DECODE_ERROR
        return await self.handle_message(message)

    async def handle_message(self, message: ToClientMessage) -> RoutingOutcome:
        match message:
            case RelayEventMessage(sub_id=sub_id, event=event):
                return await self._on_event(sub_id, event)
            case EoseMessage(sub_id=sub_id):
                return self._on_eose(sub_id)
            case ClosedMessage(sub_id=sub_id):
                return self._on_closed(sub_id, message.reason)
            case OkMessage(event_id=event_id):
                return self._on_ok(event_id, message)
            case CountResultMessage(sub_id=sub_id, count=count):
                return self._on_count(sub_id, count)
            case NoticeMessage(message=text):
                self._logger.info("relay_notice", message=text)
                return RoutingOutcome.NOTICE
            case AuthChallengeMessage(challenge=challenge):
                self._challenge = challenge
                self._logger.debug("auth_challenge_received")
                return RoutingOutcome.AUTH_CHALLENGE
            case _:
                raise TypeError(f"not a relay-to-client message: {type(message).__name__}")

    async def _on_event(self, sub_id: str, event: Event) -> RoutingOutcome:
        subscription = self._subscriptions.get(sub_id)
        if subscription is None:
            self._logger.debug("event_for_unknown_subscription", sub_id=sub_id, event_id=event.id)
            return RoutingOutcome.UNKNOWN_SUBSCRIPTION

        if self._verify_incoming:
            result = await self._gate.verify_async(event, self._executor)
            if not result.is_valid:
                self._logger.warning(
                    "event_rejected", sub_id=sub_id, event_id=event.id, result=result.value
                )
                return RoutingOutcome.REJECTED
            # closed or replaced while verifying
            if self._subscriptions.get(sub_id) is not subscription:
                return RoutingOutcome.DISCARDED

        if not self._matcher.matches_any(event, subscription.filters):
            self._logger.warning("event_outside_filters", sub_id=sub_id, event_id=event.id)
            return RoutingOutcome.FILTERED

        subscription.received += 1
        DELIVERIES_TOTAL.labels(side=_SIDE).inc()
        if subscription.on_event is not None:
            subscription.on_event(subscription, event)
        return RoutingOutcome.DELIVERED

    def _on_eose(self, sub_id: str) -> RoutingOutcome:
        subscription = self._subscriptions.get(sub_id)
        if subscription is None:
            self._logger.warning("eose_for_unknown_subscription", sub_id=sub_id)
            return RoutingOutcome.UNKNOWN_SUBSCRIPTION
        if subscription.state is SubscriptionState.STREAMING:
            self._logger.warning("eose_while_streaming", sub_id=sub_id)
            return RoutingOutcome.ANOMALY
        subscription.state = SubscriptionState.STREAMING
        return RoutingOutcome.EOSE

    def _on_closed(self, sub_id: str, reason: PrefixedReason) -> RoutingOutcome:
        pending = self._pending_counts.pop(sub_id, None)
        if pending is not None:
            if not pending.done():
                pending.set_exception(SubscriptionClosedError(sub_id, reason))
            return RoutingOutcome.RESOLVED

        subscription = self._subscriptions.pop(sub_id, None)
        if subscription is None:
            self._logger.warning("closed_for_unknown_subscription", sub_id=sub_id)
            return RoutingOutcome.UNKNOWN_SUBSCRIPTION
        subscription.state = SubscriptionState.CLOSED
        subscription.closed_reason = reason
        OPEN_SUBSCRIPTIONS.labels(side=_SIDE).dec()
        self._logger.info("subscription_closed_by_relay", sub_id=sub_id, reason=str(reason))
        return RoutingOutcome.CLOSED

    def _on_ok(self, event_id: str, message: OkMessage) -> RoutingOutcome:
        pending = self._pending_oks.pop(event_id, None)
        if pending is None:
            self._logger.debug("ok_without_pending_event", event_id=event_id)
            return RoutingOutcome.UNMATCHED
        if not pending.done():
            pending.set_result(message)
        return RoutingOutcome.RESOLVED

    def _on_count(self, sub_id: str, count: int) -> RoutingOutcome:
        pending = self._pending_counts.pop(sub_id, None)
        if pending is None:
            self._logger.warning("count_for_unknown_request", sub_id=sub_id)
            return RoutingOutcome.UNKNOWN_SUBSCRIPTION
        if not pending.done():
            pending.set_result(count)
        return RoutingOutcome.RESOLVED

    # -- lifecycle ------------------------------------------------------------

    def teardown(self) -> None:
        """Close every subscription and cancel pending requests (connection lost)."""
        for subscription in self._subscriptions.values():
            subscription.state = SubscriptionState.CLOSED
            OPEN_SUBSCRIPTIONS.labels(side=_SIDE).dec()
        self._subscriptions.clear()
        for future in (*self._pending_counts.values(), *self._pending_oks.values()):
            future.cancel()
        self._pending_counts.clear()
        self._pending_oks.clear()
        self._challenge = None
