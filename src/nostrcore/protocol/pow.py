"""
NIP-13 proof of work.

Difficulty is the number of leading zero bits of the event id. Authors commit
to a target in the third element of a ``nonce`` tag
(``["nonce", "<counter>", "<target>"]``) so that an event mined for a low
target cannot claim credit for a lucky high difficulty.
"""

from __future__ import annotations

from dataclasses import replace

from nostrcore.models.event import Event, UnsignedEvent

from .codec import EventCodec


NONCE_TAG = "nonce"


def leading_zero_bits(event_id: str) -> int:
    """Count leading zero bits of a hex id."""
    count = 0
    for char in event_id:
        nibble = int(char, 16)
        if nibble == 0:
            count += 4
            continue
        count += 4 - nibble.bit_length()
        break
    return count


def committed_difficulty(event: Event | UnsignedEvent) -> int | None:
    """Target declared by the first ``nonce`` tag, or None."""
    for tag in event.tags:
        if tag[0] == NONCE_TAG and len(tag) > 2 and tag[2].isdigit():  # noqa: PLR2004
            return int(tag[2])
    return None


def meets_difficulty(event_id: str, target: int, committed: int | None = None) -> bool:
    """True if *event_id* has at least *target* leading zero bits.

    When *committed* is given it must also be at least *target*.
    """
    if committed is not None and committed < target:
        return False
    return leading_zero_bits(event_id) >= target


def mine(
    unsigned: UnsignedEvent,
    target: int,
    *,
    codec: EventCodec | None = None,
    max_attempts: int | None = None,
) -> UnsignedEvent:
    """Add a ``nonce`` tag so the event id reaches *target* bits.

    Any existing ``nonce`` tag is replaced.

    Raises:
        RuntimeError: If *max_attempts* is exhausted.
    """
    codec = codec or EventCodec()
    base_tags = tuple(tag for tag in unsigned.tags if tag[0] != NONCE_TAG)
    counter = 0
    while max_attempts is None or counter < max_attempts:
        candidate = replace(unsigned, tags=(*base_tags, (NONCE_TAG, str(counter), str(target))))
        if leading_zero_bits(codec.compute_id(candidate)) >= target:
            return candidate
        counter += 1
    raise RuntimeError(f"no nonce reached difficulty {target} in {max_attempts} attempts")
