"""
Relay-side message processing.

[RelayHub][nostrcore.protocol.relay.RelayHub] owns the shared pieces (store,
gate, verification executor, configuration) and the set of live
connections. Each [RelayConnection][nostrcore.protocol.relay.RelayConnection]
turns the inbound frames of one client into outbound frames:

* ``EVENT``: exactly one ``OK``. Accepted events are fanned out to every
  matching open subscription on every connection.
* ``REQ``: ``CLOSED`` if refused, otherwise stored matches then ``EOSE``.
* ``COUNT``: a ``COUNT`` answer, or ``CLOSED`` if refused.
* ``CLOSE``: idempotent removal.
* ``AUTH``: NIP-42 validation, answered with ``OK``.
* Undecodable frames: ``OK false`` when an event id was readable, ``CLOSED``
  when a REQ or COUNT sub id was readable, otherwise ``NOTICE``.

Persistence and the socket are collaborators: an
[EventStore][nostrcore.protocol.relay.EventStore] and an async ``send``
callable accepting text frames.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Iterable, Sequence
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Protocol

from nostrcore import __version__
from nostrcore.core.config import EngineConfig
from nostrcore.core.exceptions import AuthError, DecodeError, FilterRejectedError
from nostrcore.core.logger import Logger
from nostrcore.core.metrics import (
    DELIVERIES_TOTAL,
    ENGINE_INFO,
    OPEN_SUBSCRIPTIONS,
    MetricsServer,
)
from nostrcore.models.constants import MachineReadablePrefix
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
    RelayEventMessage,
    ReqMessage,
    ToClientMessage,
    ToRelayMessage,
    format_reason,
)

from .auth import new_challenge, validate_auth_event
from .gate import SignatureGate
from .matcher import FilterMatcher
from .policy import FilterPolicy
from .pow import committed_difficulty, meets_difficulty
from .wire import MessageCodec


_SIDE = "relay"

Send = Callable[[str], Awaitable[None]]
Clock = Callable[[], int]


def _now() -> int:
    return int(time.time())


class EventStore(Protocol):
    """Persistence collaborator consumed by the relay."""

    async def save(self, event: Event) -> bool:
        """Store *event*; return False if it was already stored."""
        ...

    async def query(self, filters: Sequence[Filter]) -> Iterable[Event]:
        """Return stored events matching any of *filters* (a superset is fine)."""
        ...

    async def count(self, filters: Sequence[Filter]) -> int:
        """Count stored events matching any of *filters*."""
        ...


# ---------------------------------------------------------------------------
# Per-connection subscription registry
# ---------------------------------------------------------------------------


class SubscriptionRegistry:
    """Open subscriptions of one connection.

    Mutations and dispatch share one ``asyncio.Lock``: an event is never
    delivered to a subscription that is being removed, and once
    [remove][nostrcore.protocol.relay.SubscriptionRegistry.remove] returns no
    further event reaches it.
    """

    def __init__(self, matcher: FilterMatcher | None = None) -> None:
        self._matcher = matcher or FilterMatcher()
        self._subscriptions: dict[str, tuple[Filter, ...]] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._subscriptions)

    def __contains__(self, sub_id: object) -> bool:
        return sub_id in self._subscriptions

    async def add(self, sub_id: str, filters: Sequence[Filter]) -> None:
        """Register *sub_id*, replacing any subscription with the same id."""
        async with self._lock:
            if sub_id not in self._subscriptions:
                OPEN_SUBSCRIPTIONS.labels(side=_SIDE).inc()
            self._subscriptions[sub_id] = tuple(filters)

    async def remove(self, sub_id: str) -> bool:
        """Remove *sub_id*; returns False if it was not open."""
        async with self._lock:
            if self._subscriptions.pop(sub_id, None) is None:
                return False
            OPEN_SUBSCRIPTIONS.labels(side=_SIDE).dec()
            return True

    async def clear(self) -> None:
        async with self._lock:
            OPEN_SUBSCRIPTIONS.labels(side=_SIDE).dec(len(self._subscriptions))
            self._subscriptions.clear()

    async def dispatch(
        self, event: Event, send: Callable[[ToClientMessage], Awaitable[None]]
    ) -> int:
        """Send *event* to every matching subscription; returns the delivery count."""
        async with self._lock:
            targets = [
                sub_id
                for sub_id, filters in self._subscriptions.items()
                if self._matcher.matches_any(event, filters)
            ]
            for sub_id in targets:
                await send(RelayEventMessage(sub_id, event))
        if targets:
            DELIVERIES_TOTAL.labels(side=_SIDE).inc(len(targets))
        return len(targets)


# ---------------------------------------------------------------------------
# Hub
# ---------------------------------------------------------------------------


class RelayHub:
    """Shared relay state and fan-out of accepted events.

    Args:
        config: Engine configuration (relay URL, NIP-11 limits, auth, workers).
        store: Persistence collaborator.
        gate: Signature gate; defaults to SHA-256 + coincurve.
        matcher: Filter evaluation (and optional search collaborator).
        clock: Returns the current Unix time; injectable for tests.
    """

    def __init__(
        self,
        config: EngineConfig,
        store: EventStore,
        *,
        gate: SignatureGate | None = None,
        matcher: FilterMatcher | None = None,
        clock: Clock = _now,
        logger: Logger | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.gate = gate or SignatureGate()
        self.matcher = matcher or FilterMatcher()
        self.policy = FilterPolicy(config.relay_info.limitation, clamp_limit=True)
        self.codec = MessageCodec(config.relay_info.limitation.max_message_length)
        self.clock = clock
        self._logger = logger or Logger("nostrcore.relay", json_output=config.logging.json_output)
        self._executor: Executor | None = (
            ThreadPoolExecutor(
                max_workers=config.verification.max_workers,
                thread_name_prefix="nostrcore-verify",
            )
            if config.verification.max_workers is not None
            else None
        )
        self._connections: set[RelayConnection] = set()
        self._metrics_server = MetricsServer(config.metrics)

    @property
    def executor(self) -> Executor | None:
        return self._executor

    @property
    def logger(self) -> Logger:
        return self._logger

    @property
    def connections(self) -> frozenset[RelayConnection]:
        return frozenset(self._connections)

    @property
    def metrics_server(self) -> MetricsServer:
        return self._metrics_server

    async def start(self) -> None:
        """Publish engine info and start the metrics endpoint when enabled.

        Raises:
            OSError: If the metrics port cannot be bound.
        """
        info = self.config.relay_info
        ENGINE_INFO.info(
            {
                "version": __version__,
                "relay_url": self.config.relay_url,
                "software": info.software or "",
                "supported_nips": ",".join(str(nip) for nip in info.supported_nips or ()),
            }
        )
        metrics = self.config.metrics
        await self._metrics_server.start()
        if metrics.enabled:
            self._logger.info(
                "metrics_server_started", host=metrics.host, port=metrics.port, path=metrics.path
            )

    def connect(self, send: Send) -> RelayConnection:
        """Create a connection bound to *send* (the transport's text-frame writer)."""
        connection = RelayConnection(self, send)
        self._connections.add(connection)
        return connection

    def _forget(self, connection: RelayConnection) -> None:
        self._connections.discard(connection)

    async def broadcast(self, event: Event) -> int:
        """Deliver *event* to matching subscriptions on every connection."""
        delivered = 0
        for connection in list(self._connections):
            delivered += await connection.deliver(event)
        return delivered

    async def close(self) -> None:
        """Close every connection, then stop the executor and metrics endpoint."""
        for connection in list(self._connections):
            await connection.close()
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
        if self._metrics_server.is_running:
            await self._metrics_server.stop()
            self._logger.info("metrics_server_stopped")


# ---------------------------------------------------------------------------
# Connection
# ---------------------------------------------------------------------------


class RelayConnection:
    """Protocol handler for one client connection."""

    def __init__(self, hub: RelayHub, send: Send) -> None:
        self._hub = hub
        self._send_text = send
        self._registry = SubscriptionRegistry(hub.matcher)
        self._challenge: str | None = None
        self._authenticated: set[str] = set()
        self._closed = False

    @property
    def registry(self) -> SubscriptionRegistry:
        return self._registry

    @property
    def challenge(self) -> str | None:
        return self._challenge

    @property
    def authenticated(self) -> frozenset[str]:
        """Pubkeys that completed NIP-42 authentication on this connection."""
        return frozenset(self._authenticated)

    async def send(self, message: ToClientMessage) -> None:
        await self._send_text(self._hub.codec.encode(message))

    async def open(self) -> None:
        """Issue the NIP-42 challenge when authentication is enabled."""
        if self._hub.config.auth.enabled:
            self._challenge = new_challenge()
            await self.send(AuthChallengeMessage(self._challenge))

    async def close(self) -> None:
        """Tear down every subscription. Idempotent."""
        if self._closed:
            return
        self._closed = True
        await self._registry.clear()
        self._hub._forget(self)

    async def deliver(self, event: Event) -> int:
        if self._closed:
            return 0
        return await self._registry.dispatch(event, self.send)

    # -- inbound --------------------------------------------------------------

    async def handle_frame(self, text: str | bytes) -> None:
        try:
            message = self._hub.codec.decode_to_relay(text)
        except DecodeError as e:
            self._hub.logger.warning(
                "frame_rejected",
                kind=e.kind.value,
                error=e.detail,
                event_id=e.event_id,
                sub_id=e.sub_id,
            )
            reason = format_reason(MachineReadablePrefix.INVALID, e.detail)
            if e.event_id is not None:
                await self.send(OkMessage(e.event_id, False, reason))
            elif e.sub_id is not None:
                await self.send(ClosedMessage(e.sub_id, reason))
            else:
                await self.send(NoticeMessage(format_reason(MachineReadablePrefix.INVALID, str(e))))
            return
        await self.handle_message(message)

    async def handle_message(self, message: ToRelayMessage) -> None:
        match message:
            case EventMessage(event=event):
                await self._on_event(event)
            case ReqMessage(sub_id=sub_id, filters=filters):
                await self._on_req(sub_id, filters)
            case CountMessage(sub_id=sub_id, filters=filters):
                await self._on_count(sub_id, filters)
            case CloseMessage(sub_id=sub_id):
                await self._registry.remove(sub_id)
            case AuthMessage(event=event):
                await self._on_auth(event)
            case _:
                raise TypeError(f"not a client-to-relay message: {type(message).__name__}")

    async def _reject(self, event: Event, prefix: MachineReadablePrefix, detail: str) -> None:
        self._hub.logger.debug(
            "event_rejected", event_id=event.id, prefix=prefix.value, detail=detail
        )
        await self.send(OkMessage(event.id, False, format_reason(prefix, detail)))

    def _limit_violation(self, event: Event) -> str | None:
        limits = self._hub.config.relay_info.limitation
        now = self._hub.clock()
        if limits.max_event_tags is not None and len(event.tags) > limits.max_event_tags:
            return f"too many tags (max {limits.max_event_tags})"
        if limits.max_content_length is not None and len(event.content) > limits.max_content_length:
            return f"content longer than {limits.max_content_length} characters"
        lower, upper = limits.created_at_lower_limit, limits.created_at_upper_limit
        if lower is not None and event.created_at < now - lower:
            return "created_at is too far in the past"
        if upper is not None and event.created_at > now + upper:
            return "created_at is too far in the future"
        if event.is_expired(now):
            return "event has expired"
        return None

    async def _on_event(self, event: Event) -> None:
        limits = self._hub.config.relay_info.limitation

        violation = self._limit_violation(event)
        if violation is not None:
            await self._reject(event, MachineReadablePrefix.INVALID, violation)
            return

        result = await self._hub.gate.verify_async(event, self._hub.executor)
        if not result.is_valid:
            self._hub.logger.debug("event_rejected", event_id=event.id, result=result.value)
            await self.send(OkMessage(event.id, False, result.reason))
            return

        target = limits.min_pow_difficulty
        if target and not meets_difficulty(event.id, target, committed_difficulty(event)):
            await self._reject(event, MachineReadablePrefix.POW, f"difficulty below {target}")
            return

        if limits.auth_required and event.pubkey not in self._authenticated:
            await self._reject(event, MachineReadablePrefix.AUTH_REQUIRED, "authenticate first")
            return

        if not event.is_ephemeral and not await self._hub.store.save(event):
            reason = format_reason(MachineReadablePrefix.DUPLICATE, "already have this event")
            await self.send(OkMessage(event.id, True, reason))
            return

        await self.send(OkMessage(event.id, True, ""))
        await self._hub.broadcast(event)

    def _refuse_request(self, sub_id: str) -> ClosedMessage | None:
        if self._hub.config.relay_info.limitation.auth_required and not self._authenticated:
            reason = format_reason(MachineReadablePrefix.AUTH_REQUIRED, "authenticate first")
            return ClosedMessage(sub_id, reason)
        return None

    async def _on_req(self, sub_id: str, filters: tuple[Filter, ...]) -> None:
        refusal = self._refuse_request(sub_id)
        if refusal is not None:
            await self.send(refusal)
            return
        others = len(self._registry) - (1 if sub_id in self._registry else 0)
        try:
            checked = self._hub.policy.check(sub_id, filters, open_subscriptions=others)
        except FilterRejectedError as e:
            self._hub.logger.debug("req_refused", sub_id=sub_id, reason=str(e.reason))
            await self.send(ClosedMessage(sub_id, str(e.reason)))
            return

        await self._registry.add(sub_id, checked)
        stored = await self._hub.store.query(checked)
        for event in self._hub.matcher.select_many(stored, checked):
            await self.send(RelayEventMessage(sub_id, event))
        await self.send(EoseMessage(sub_id))

    async def _on_count(self, sub_id: str, filters: tuple[Filter, ...]) -> None:
        refusal = self._refuse_request(sub_id)
        if refusal is not None:
            await self.send(refusal)
            return
        try:
            checked = self._hub.policy.check(sub_id, filters)
        except FilterRejectedError as e:
            await self.send(ClosedMessage(sub_id, str(e.reason)))
            return
        await self.send(CountResultMessage(sub_id, await self._hub.store.count(checked)))

    async def _on_auth(self, event: Event) -> None:
        if self._challenge is None:
            await self._reject(event, MachineReadablePrefix.RESTRICTED, "no challenge was issued")
            return
        result = await self._hub.gate.verify_async(event, self._hub.executor)
        if not result.is_valid:
            await self.send(OkMessage(event.id, False, result.reason))
            return
        try:
            pubkey = validate_auth_event(
                event,
                self._challenge,
                self._hub.config.relay_url,
                now=self._hub.clock(),
                window=self._hub.config.auth.window,
            )
        except AuthError as e:
            await self.send(OkMessage(event.id, False, str(e.reason)))
            return
        self._authenticated.add(pubkey)
        self._hub.logger.info("client_authenticated", pubkey=pubkey)
        await self.send(OkMessage(event.id, True, ""))
