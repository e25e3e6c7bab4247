"""
Immutable Nostr event models.

[UnsignedEvent][nostrcore.models.event.UnsignedEvent] holds the five fields
that make up the id pre-image; [Event][nostrcore.models.event.Event] adds the
``id`` digest and ``sig`` signature.

Construction validates *shape only* (hex lengths, integer fields, tag
structure). Whether ``id`` matches the content and ``sig`` verifies is decided
by [SignatureGate][nostrcore.protocol.gate.SignatureGate]: an instance of
``Event`` that fails the gate is a rejected candidate, not a valid event.

See Also:
    [nostrcore.protocol.codec][]: Canonical serialization and id computation.
    [nostrcore.models.tags][]: Typed views over positional tag semantics.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Self

from ._validation import (
    freeze_tags,
    validate_hex,
    validate_mapping,
    validate_non_negative_int,
    validate_str,
)
from .constants import (
    ADDRESSABLE_KIND_RANGE,
    EPHEMERAL_KIND_RANGE,
    ID_HEX_LENGTH,
    LEGACY_REPLACEABLE_KINDS,
    PUBKEY_HEX_LENGTH,
    REPLACEABLE_KIND_RANGE,
    SIG_HEX_LENGTH,
)


Tags = tuple[tuple[str, ...], ...]

_UNSIGNED_FIELDS = ("pubkey", "created_at", "kind", "tags", "content")


def _require(data: Any, keys: tuple[str, ...]) -> None:
    validate_mapping(data, "event")
    missing = [key for key in keys if key not in data]
    if missing:
        raise ValueError(f"event is missing required fields: {', '.join(missing)}")


@dataclass(frozen=True, slots=True)
class UnsignedEvent:
    """All the information needed to compute an event id and signature.

    Attributes:
        pubkey: Author public key, 64 lowercase hex chars (x-only, 32 bytes).
        created_at: Unix timestamp in seconds.
        kind: Non-negative integer event kind.
        tags: Tuple of tags; each tag is a non-empty tuple of strings.
        content: Arbitrary string content.

    Raises:
        TypeError: If a field has the wrong type.
        ValueError: If a field has the right type but an invalid value.
    """

    pubkey: str
    created_at: int
    kind: int
    tags: Tags
    content: str

    def __post_init__(self) -> None:
        validate_hex(self.pubkey, "pubkey", length=PUBKEY_HEX_LENGTH)
        validate_non_negative_int(self.created_at, "created_at")
        validate_non_negative_int(self.kind, "kind")
        object.__setattr__(self, "tags", freeze_tags(self.tags))
        validate_str(self.content, "content")

    @classmethod
    def from_dict(cls, data: Any) -> Self:
        """Build an unsigned event from a wire object, ignoring unrelated keys."""
        _require(data, _UNSIGNED_FIELDS)
        return cls(
            pubkey=data["pubkey"],
            created_at=data["created_at"],
            kind=data["kind"],
            tags=data["tags"],
            content=data["content"],
        )

    def to_dict(self) -> dict[str, Any]:
        """Render the wire object (tags as nested lists)."""
        return {
            "pubkey": self.pubkey,
            "created_at": self.created_at,
            "kind": self.kind,
            "tags": [list(tag) for tag in self.tags],
            "content": self.content,
        }


@dataclass(frozen=True, slots=True)
class Event:
    """Signed Nostr event as exchanged on the wire.

    Instances are value objects: freely shared, hashable and never mutated.
    Equality compares every field, so two events with the same ``id`` but a
    different ``sig`` are different candidates.

    Examples:
        ```python
        event = Event.from_dict(json.loads(raw))
        event.kind            # 1
        event.tag_values("e")  # ("5c83...", ...)
        ```
    """

    id: str
    pubkey: str
    created_at: int
    kind: int
    tags: Tags
    content: str
    sig: str

    def __post_init__(self) -> None:
        validate_hex(self.id, "id", length=ID_HEX_LENGTH)
        validate_hex(self.pubkey, "pubkey", length=PUBKEY_HEX_LENGTH)
        validate_non_negative_int(self.created_at, "created_at")
        validate_non_negative_int(self.kind, "kind")
        object.__setattr__(self, "tags", freeze_tags(self.tags))
        validate_str(self.content, "content")
        validate_hex(self.sig, "sig", length=SIG_HEX_LENGTH)

    @classmethod
    def from_dict(cls, data: Any) -> Self:
        """Build an event from a wire object.

        Keys outside the seven NIP-01 fields (for example NIP-03 ``ots``) are
        ignored.

        Raises:
            TypeError: If *data* is not a mapping or a field has the wrong type.
            ValueError: If a field is missing or has an invalid value.
        """
        _require(data, ("id", *_UNSIGNED_FIELDS, "sig"))
        return cls(
            id=data["id"],
            pubkey=data["pubkey"],
            created_at=data["created_at"],
            kind=data["kind"],
            tags=data["tags"],
            content=data["content"],
            sig=data["sig"],
        )

    @classmethod
    def from_unsigned(cls, unsigned: UnsignedEvent, *, id: str, sig: str) -> Self:  # noqa: A002
        """Attach an id and signature to an unsigned pre-image."""
        return cls(
            id=id,
            pubkey=unsigned.pubkey,
            created_at=unsigned.created_at,
            kind=unsigned.kind,
            tags=unsigned.tags,
            content=unsigned.content,
            sig=sig,
        )

    def to_dict(self) -> dict[str, Any]:
        """Render the wire object (tags as nested lists)."""
        return {
            "id": self.id,
            "pubkey": self.pubkey,
            "created_at": self.created_at,
            "kind": self.kind,
            "tags": [list(tag) for tag in self.tags],
            "content": self.content,
            "sig": self.sig,
        }

    @property
    def unsigned(self) -> UnsignedEvent:
        """The id pre-image of this event."""
        return UnsignedEvent(
            pubkey=self.pubkey,
            created_at=self.created_at,
            kind=self.kind,
            tags=self.tags,
            content=self.content,
        )

    # -- tag helpers --------------------------------------------------------

    def tag_values(self, name: str) -> tuple[str, ...]:
        """Second element of every tag called *name*, in order."""
        return tuple(tag[1] for tag in self.tags if tag[0] == name and len(tag) > 1)

    @property
    def d_tag(self) -> str:
        """Identifier of an addressable event (first ``d`` value, or ``""``)."""
        values = self.tag_values("d")
        return values[0] if values else ""

    @property
    def expiration(self) -> int | None:
        """NIP-40 expiration timestamp, or ``None`` when absent or unparsable."""
        for value in self.tag_values("expiration"):
            if value.isdigit():
                return int(value)
        return None

    def is_expired(self, now: int) -> bool:
        """Return True if the event carries an expiration at or before *now*."""
        expiration = self.expiration
        return expiration is not None and expiration <= now

    # -- kind classification (NIP-01) ---------------------------------------

    @property
    def is_replaceable(self) -> bool:
        low, high = REPLACEABLE_KIND_RANGE
        return self.kind in LEGACY_REPLACEABLE_KINDS or low <= self.kind < high

    @property
    def is_ephemeral(self) -> bool:
        low, high = EPHEMERAL_KIND_RANGE
        return low <= self.kind < high

    @property
    def is_addressable(self) -> bool:
        low, high = ADDRESSABLE_KIND_RANGE
        return low <= self.kind < high

    @property
    def is_regular(self) -> bool:
        return not (self.is_replaceable or self.is_ephemeral or self.is_addressable)
