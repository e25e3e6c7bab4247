"""
Canonical event serialization and id computation.

An event id is the hex SHA-256 of the UTF-8 bytes of the compact JSON array::

    [0, <pubkey>, <created_at>, <kind>, <tags>, <content>]

with no whitespace between tokens and no escaping beyond what JSON requires
(control characters, ``"`` and ``\\``). Non-ASCII text is written as raw UTF-8.
Any deviation changes the id, so this is the one place the pre-image is built.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from nostrcore.core.exceptions import CryptoError, MalformedEventError
from nostrcore.crypto.hashing import DIGEST_SIZE, Hasher, sha256
from nostrcore.models.event import Event, UnsignedEvent


_SEPARATORS = (",", ":")

EventLike = UnsignedEvent | Event | Mapping[str, Any]


def _as_unsigned(unsigned: EventLike) -> UnsignedEvent:
    if isinstance(unsigned, UnsignedEvent):
        return unsigned
    if isinstance(unsigned, Event):
        return unsigned.unsigned
    try:
        return UnsignedEvent.from_dict(unsigned)
    except (TypeError, ValueError) as e:
        raise MalformedEventError(str(e)) from e


def canonicalize(unsigned: EventLike) -> bytes:
    """Return the canonical id pre-image of *unsigned*.

    Raises:
        MalformedEventError: If a field is absent, mis-shaped, or holds text
            with no UTF-8 form.
    """
    event = _as_unsigned(unsigned)
    payload = [0, event.pubkey, event.created_at, event.kind, event.tags, event.content]
    return json.dumps(payload, separators=_SEPARATORS, ensure_ascii=False).encode("utf-8")


class EventCodec:
    """Computes event ids with an injectable hashing collaborator.

    Stateless apart from the hasher; safe to share across threads.
    """

    def __init__(self, hasher: Hasher = sha256) -> None:
        self._hasher = hasher

    def canonicalize(self, unsigned: EventLike) -> bytes:
        return canonicalize(unsigned)

    def digest(self, unsigned: EventLike) -> bytes:
        """Return the 32-byte id digest.

        Raises:
            MalformedEventError: If a field is absent or mis-shaped.
            CryptoError: If the hasher faults or returns a wrong-sized digest.
        """
        data = canonicalize(unsigned)
        try:
            digest = self._hasher(data)
        except Exception as e:
            raise CryptoError(f"hasher failed: {e}") from e
        if not isinstance(digest, bytes) or len(digest) != DIGEST_SIZE:
            raise CryptoError(f"hasher must return {DIGEST_SIZE} bytes")
        return digest

    def compute_id(self, unsigned: EventLike) -> str:
        """Return the lowercase hex id of *unsigned*."""
        return self.digest(unsigned).hex()


_DEFAULT_CODEC = EventCodec()


def compute_id(unsigned: EventLike) -> str:
    """Return the SHA-256 id of *unsigned* (see [EventCodec][nostrcore.protocol.codec.EventCodec])."""
    return _DEFAULT_CODEC.compute_id(unsigned)
