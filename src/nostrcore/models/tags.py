"""
Typed views over positional tag semantics.

On the wire every tag is an array of strings whose first element is the tag
name. Some names give meaning to later positions, for example
``["e", <event id>, <relay url>, <marker>]``. That meaning is a parsing concern
layered above storage: [Event][nostrcore.models.event.Event] keeps raw tuples,
and [parse_tag][nostrcore.models.tags.parse_tag] produces one of the typed
views below on demand.

Only shape is interpreted here. Values are not validated beyond what each view
needs to be constructed (a malformed ``a`` specifier yields ``None`` rather
than an exception), since relays and clients must tolerate foreign tags.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any, Self


class EventMarker(StrEnum):
    """Marker in the fourth position of an ``e`` tag (NIP-10)."""

    ROOT = "root"
    REPLY = "reply"
    MENTION = "mention"


class ExternalPlatform(StrEnum):
    """Platforms recognized in ``i`` tag identities (NIP-39)."""

    GITHUB = "github"
    TWITTER = "twitter"
    MASTODON = "mastodon"
    TELEGRAM = "telegram"


_MARKERS = frozenset(m.value for m in EventMarker)
_PLATFORMS = frozenset(p.value for p in ExternalPlatform)


def _at(tag: Sequence[str], index: int) -> str | None:
    """Return ``tag[index]`` if present and non-empty."""
    if len(tag) > index and tag[index]:
        return tag[index]
    return None


def tag_values(tags: Sequence[Sequence[str]], name: str) -> tuple[str, ...]:
    """Second element of every tag called *name*, in original order."""
    return tuple(tag[1] for tag in tags if len(tag) > 1 and tag[0] == name)


@dataclass(frozen=True, slots=True)
class EventPointer:
    """``["e", event_id, relay_url?, marker?]``."""

    event_id: str
    relay_url: str | None = None
    marker: EventMarker | None = None

    @classmethod
    def from_tag(cls, tag: Sequence[str]) -> Self | None:
        if len(tag) < 2 or tag[0] != "e":  # noqa: PLR2004 - name + value
            return None
        raw_marker = _at(tag, 3)
        marker = EventMarker(raw_marker) if raw_marker in _MARKERS else None
        return cls(event_id=tag[1], relay_url=_at(tag, 2), marker=marker)

    def to_tag(self) -> tuple[str, ...]:
        if self.marker is not None:
            return ("e", self.event_id, self.relay_url or "", self.marker.value)
        if self.relay_url is not None:
            return ("e", self.event_id, self.relay_url)
        return ("e", self.event_id)


@dataclass(frozen=True, slots=True)
class PubkeyPointer:
    """``["p", pubkey, relay_url?]``."""

    pubkey: str
    relay_url: str | None = None

    @classmethod
    def from_tag(cls, tag: Sequence[str]) -> Self | None:
        if len(tag) < 2 or tag[0] != "p":  # noqa: PLR2004
            return None
        return cls(pubkey=tag[1], relay_url=_at(tag, 2))

    def to_tag(self) -> tuple[str, ...]:
        if self.relay_url is not None:
            return ("p", self.pubkey, self.relay_url)
        return ("p", self.pubkey)


@dataclass(frozen=True, slots=True)
class AddressPointer:
    """``["a", "<kind>:<pubkey>:<d>", relay_url?]`` referencing a replaceable event."""

    kind: int
    pubkey: str
    identifier: str = ""
    relay_url: str | None = None

    @classmethod
    def parse_specifier(cls, specifier: str, relay_url: str | None = None) -> Self | None:
        """Parse a ``kind:pubkey:d`` specifier; the ``d`` part may contain colons."""
        parts = specifier.split(":", 2)
        if len(parts) < 2 or not parts[0].isdigit() or not parts[1]:  # noqa: PLR2004
            return None
        identifier = parts[2] if len(parts) == 3 else ""  # noqa: PLR2004
        return cls(kind=int(parts[0]), pubkey=parts[1], identifier=identifier, relay_url=relay_url)

    @classmethod
    def from_tag(cls, tag: Sequence[str]) -> Self | None:
        if len(tag) < 2 or tag[0] != "a":  # noqa: PLR2004
            return None
        return cls.parse_specifier(tag[1], _at(tag, 2))

    @property
    def specifier(self) -> str:
        return f"{self.kind}:{self.pubkey}:{self.identifier}"

    def to_tag(self) -> tuple[str, ...]:
        if self.relay_url is not None:
            return ("a", self.specifier, self.relay_url)
        return ("a", self.specifier)


@dataclass(frozen=True, slots=True)
class ExternalIdentity:
    """``["i", "<platform>:<identity>", proof]`` (NIP-39)."""

    platform: str
    identity: str
    proof: str | None = None

    @property
    def is_known_platform(self) -> bool:
        return self.platform in _PLATFORMS

    @classmethod
    def from_tag(cls, tag: Sequence[str]) -> Self | None:
        if len(tag) < 2 or tag[0] != "i" or ":" not in tag[1]:  # noqa: PLR2004
            return None
        platform, identity = tag[1].split(":", 1)
        return cls(platform=platform, identity=identity, proof=_at(tag, 2))


@dataclass(frozen=True, slots=True)
class LabelAnnotation:
    """JSON annotation carried by the fourth element of an ``l`` tag (NIP-32).

    Known optional fields are typed; every other key is preserved in ``extra``
    so annotations from newer clients survive a parse/serialize cycle.
    """

    quality: float | None = None
    confidence: float | None = None
    context: tuple[str, ...] | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    @classmethod
    def from_json(cls, raw: str) -> Self | None:
        """Parse the annotation; returns ``None`` if it is not a JSON object."""
        try:
            data = json.loads(raw)
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        known: dict[str, Any] = {}
        for key in ("quality", "confidence"):
            value = data.get(key)
            if isinstance(value, int | float) and not isinstance(value, bool):
                known[key] = float(value)
        context = data.get("context")
        if isinstance(context, list) and all(isinstance(c, str) for c in context):
            known["context"] = tuple(context)
        extra = {k: v for k, v in data.items() if k not in ("quality", "confidence", "context")}
        return cls(**known, extra=extra)

    def to_json(self) -> str:
        data: dict[str, Any] = dict(self.extra)
        if self.quality is not None:
            data["quality"] = self.quality
        if self.confidence is not None:
            data["confidence"] = self.confidence
        if self.context is not None:
            data["context"] = list(self.context)
        return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True, slots=True)
class Label:
    """``["l", value, namespace, annotation?]`` (NIP-32)."""

    value: str
    namespace: str | None = None
    annotation: LabelAnnotation | None = None

    @classmethod
    def from_tag(cls, tag: Sequence[str]) -> Self | None:
        if len(tag) < 2 or tag[0] != "l":  # noqa: PLR2004
            return None
        raw = _at(tag, 3)
        annotation = LabelAnnotation.from_json(raw) if raw is not None else None
        return cls(value=tag[1], namespace=_at(tag, 2), annotation=annotation)


TagView = EventPointer | PubkeyPointer | AddressPointer | ExternalIdentity | Label

_PARSERS: dict[str, Any] = {
    "e": EventPointer.from_tag,
    "p": PubkeyPointer.from_tag,
    "a": AddressPointer.from_tag,
    "i": ExternalIdentity.from_tag,
    "l": Label.from_tag,
}


def parse_tag(tag: Sequence[str]) -> TagView | None:
    """Return the typed view for *tag*, or ``None`` for unknown or malformed tags."""
    if not tag:
        return None
    parser = _PARSERS.get(tag[0])
    return parser(tag) if parser is not None else None
