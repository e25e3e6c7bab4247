"""
Subscription filter model.

A [Filter][nostrcore.models.filter.Filter] is a set of optional constraints.
An event matches a filter only if every *present* constraint matches (AND
across constraint kinds, OR within a constraint's value set). Evaluation lives
in [FilterMatcher][nostrcore.protocol.matcher.FilterMatcher]; this module only
models, validates and serializes the wire object.

Tag queries (``"#e": [...]``, ``"#p": [...]``) are stored in
[Filter.tags][nostrcore.models.filter.Filter] keyed by tag *name*, without the
leading ``#``. Any string is accepted as a name so that multi-letter tag
queries used by some relays round-trip unchanged.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Self

from ._validation import (
    freeze_str_list,
    is_sequence,
    validate_hex,
    validate_mapping,
    validate_non_negative_int,
    validate_str,
)
from .constants import ID_HEX_LENGTH


TAG_QUERY_PREFIX = "#"


def _freeze_hex_prefixes(value: Any, name: str) -> tuple[str, ...]:
    prefixes = freeze_str_list(value, name)
    for prefix in prefixes:
        validate_hex(prefix, name, max_length=ID_HEX_LENGTH)
    return prefixes


def _freeze_kinds(value: Any) -> tuple[int, ...]:
    if not is_sequence(value):
        raise TypeError(f"kinds must be a list, got {type(value).__name__}")
    for kind in value:
        validate_non_negative_int(kind, "kinds")
    return tuple(value)


def _optional_int(value: Any, name: str) -> int | None:
    if value is None:
        return None
    validate_non_negative_int(value, name)
    return value


@dataclass(frozen=True, slots=True)
class Filter:
    """Query describing which events a subscription wants.

    ``None`` means the constraint is absent. An empty tuple is a present
    constraint that nothing satisfies, which is how relays interpret
    ``{"ids": []}``.

    Attributes:
        ids: Event id hex prefixes.
        authors: Author pubkey hex prefixes.
        kinds: Acceptable event kinds.
        since: Lower ``created_at`` bound (inclusive).
        until: Upper ``created_at`` bound (inclusive).
        limit: Maximum number of stored events returned, newest first.
        search: NIP-50 free-text query, interpreted by a search collaborator.
        tags: Tag-query map from tag name to acceptable values.
    """

    ids: tuple[str, ...] | None = None
    authors: tuple[str, ...] | None = None
    kinds: tuple[int, ...] | None = None
    since: int | None = None
    until: int | None = None
    limit: int | None = None
    search: str | None = None
    tags: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.ids is not None:
            object.__setattr__(self, "ids", _freeze_hex_prefixes(self.ids, "ids"))
        if self.authors is not None:
            object.__setattr__(self, "authors", _freeze_hex_prefixes(self.authors, "authors"))
        if self.kinds is not None:
            object.__setattr__(self, "kinds", _freeze_kinds(self.kinds))
        _optional_int(self.since, "since")
        _optional_int(self.until, "until")
        _optional_int(self.limit, "limit")
        if self.search is not None:
            validate_str(self.search, "search")
        validate_mapping(self.tags, "tags")
        frozen: dict[str, tuple[str, ...]] = {}
        for name, values in self.tags.items():
            validate_str(name, "tag query name")
            if not name:
                raise ValueError("tag query name must not be empty")
            frozen[name] = freeze_str_list(values, f"{TAG_QUERY_PREFIX}{name}")
        object.__setattr__(self, "tags", MappingProxyType(frozen))

    def __hash__(self) -> int:
        return hash(
            (
                self.ids,
                self.authors,
                self.kinds,
                self.since,
                self.until,
                self.limit,
                self.search,
                tuple(sorted(self.tags.items())),
            )
        )

    @classmethod
    def from_dict(cls, data: Any) -> Self:
        """Build a filter from a wire object.

        Unknown keys are ignored. A key starting with ``#`` and followed by at
        least one character is a tag query.

        Raises:
            TypeError: If *data* is not a mapping or a recognized key holds a
                value of the wrong type.
            ValueError: If a recognized key holds an invalid value.
        """
        validate_mapping(data, "filter")
        tags = {
            key[len(TAG_QUERY_PREFIX) :]: value
            for key, value in data.items()
            if isinstance(key, str) and key.startswith(TAG_QUERY_PREFIX) and len(key) > 1
        }
        return cls(
            ids=data.get("ids"),
            authors=data.get("authors"),
            kinds=data.get("kinds"),
            since=data.get("since"),
            until=data.get("until"),
            limit=data.get("limit"),
            search=data.get("search"),
            tags=tags,
        )

    def to_dict(self) -> dict[str, Any]:
        """Render the wire object, omitting absent constraints."""
        result: dict[str, Any] = {}
        if self.ids is not None:
            result["ids"] = list(self.ids)
        if self.authors is not None:
            result["authors"] = list(self.authors)
        if self.kinds is not None:
            result["kinds"] = list(self.kinds)
        for name, values in self.tags.items():
            result[f"{TAG_QUERY_PREFIX}{name}"] = list(values)
        if self.since is not None:
            result["since"] = self.since
        if self.until is not None:
            result["until"] = self.until
        if self.limit is not None:
            result["limit"] = self.limit
        if self.search is not None:
            result["search"] = self.search
        return result

    @property
    def is_open(self) -> bool:
        """True when no per-event constraint is present (matches everything)."""
        return (
            self.ids is None
            and self.authors is None
            and self.kinds is None
            and self.since is None
            and self.until is None
            and not self.tags
        )
