"""
NIP-42 client authentication.

The relay sends ``["AUTH", <challenge>]``; the client answers with
``["AUTH", <event>]`` where the event has kind 22242 and carries the
challenge and the relay URL in tags. The event is never broadcast or stored.
"""

from __future__ import annotations

import secrets

from rfc3986 import uri_reference

from nostrcore.core.exceptions import AuthError
from nostrcore.crypto.schnorr import Signer
from nostrcore.models.constants import EventKind, MachineReadablePrefix
from nostrcore.models.event import Event

from .codec import EventCodec
from .signing import build_unsigned, sign_event


CHALLENGE_TAG = "challenge"
RELAY_TAG = "relay"

_DEFAULT_PORTS = {"ws": 80, "wss": 443}


def new_challenge() -> str:
    return secrets.token_hex(16)


def normalize_relay_url(url: str) -> str:
    """Normalize *url* for comparison.

    RFC 3986 normalization (case of scheme and host, percent-encoding), then
    the default port and any trailing slash are dropped.
    """
    uri = uri_reference(url.strip()).normalize()
    port = uri.port
    if port and port.isdigit() and int(port) == _DEFAULT_PORTS.get(uri.scheme or ""):
        port = None
    authority = uri.host or ""
    if port:
        authority = f"{authority}:{port}"
    path = (uri.path or "").rstrip("/")
    return f"{uri.scheme}://{authority}{path}"


def build_auth_event(
    challenge: str,
    relay_url: str,
    signer: Signer,
    *,
    created_at: int | None = None,
    codec: EventCodec | None = None,
) -> Event:
    """Sign the kind 22242 answer to *challenge*."""
    unsigned = build_unsigned(
        EventKind.CLIENT_AUTHENTICATION,
        "",
        signer,
        tags=((RELAY_TAG, relay_url), (CHALLENGE_TAG, challenge)),
        created_at=created_at,
    )
    return sign_event(unsigned, signer, codec)


def validate_auth_event(
    event: Event,
    challenge: str,
    relay_url: str,
    *,
    now: int,
    window: int = 600,
) -> str:
    """Check an AUTH event whose signature has already passed the gate.

    Returns:
        The authenticated pubkey.

    Raises:
        AuthError: With an ``invalid:`` reason describing the first failed check.
    """
    if event.kind != EventKind.CLIENT_AUTHENTICATION:
        raise AuthError(
            MachineReadablePrefix.INVALID,
            f"auth event must be kind {int(EventKind.CLIENT_AUTHENTICATION)}",
        )
    if challenge not in event.tag_values(CHALLENGE_TAG):
        raise AuthError(MachineReadablePrefix.INVALID, "challenge does not match")
    expected = normalize_relay_url(relay_url)
    if not any(normalize_relay_url(url) == expected for url in event.tag_values(RELAY_TAG)):
        raise AuthError(MachineReadablePrefix.INVALID, "relay url does not match")
    if abs(now - event.created_at) > window:
        raise AuthError(MachineReadablePrefix.INVALID, "auth event created_at is out of range")
    return event.pubkey
