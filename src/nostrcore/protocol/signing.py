"""Building and signing events."""

from __future__ import annotations

import time
from collections.abc import Iterable, Sequence
from enum import IntEnum

from nostrcore.core.exceptions import MalformedEventError
from nostrcore.crypto.schnorr import Signer
from nostrcore.models.event import Event, UnsignedEvent

from .codec import EventCodec


def build_unsigned(
    kind: int,
    content: str,
    signer: Signer,
    tags: Iterable[Sequence[str]] = (),
    created_at: int | None = None,
) -> UnsignedEvent:
    """Assemble the pre-image of an event authored by *signer*.

    ``created_at`` defaults to the current time.

    Raises:
        MalformedEventError: If a field has the wrong shape.
    """
    try:
        return UnsignedEvent(
            pubkey=signer.public_key.hex(),
            created_at=int(time.time()) if created_at is None else created_at,
            kind=int(kind) if isinstance(kind, IntEnum) else kind,
            tags=tuple(tuple(tag) for tag in tags),
            content=content,
        )
    except (TypeError, ValueError) as e:
        raise MalformedEventError(str(e)) from e


def sign_event(unsigned: UnsignedEvent, signer: Signer, codec: EventCodec | None = None) -> Event:
    """Compute the id of *unsigned* and sign it.

    Raises:
        MalformedEventError: If *signer* does not own ``unsigned.pubkey``.
    """
    if unsigned.pubkey != signer.public_key.hex():
        raise MalformedEventError("pubkey does not belong to the signer")
    digest = (codec or EventCodec()).digest(unsigned)
    return Event.from_unsigned(unsigned, id=digest.hex(), sig=signer.sign(digest).hex())
