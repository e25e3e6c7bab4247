"""Per-event index of tag name to tag values, used by filter matching."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Self

from nostrcore.models.event import Event


class TagIndex(Mapping[str, tuple[str, ...]]):
    """Read-only map from tag name to the second element of each such tag.

    Derived from an event and disposable; never persisted. Tags with a single
    element contribute nothing. Values keep their original order and may repeat.
    """

    __slots__ = ("_index",)

    def __init__(self, index: Mapping[str, tuple[str, ...]]) -> None:
        self._index = MappingProxyType(dict(index))

    @classmethod
    def build(cls, event: Event) -> Self:
        collected: dict[str, list[str]] = {}
        for tag in event.tags:
            if len(tag) > 1:
                collected.setdefault(tag[0], []).append(tag[1])
        return cls({name: tuple(values) for name, values in collected.items()})

    def __getitem__(self, name: str) -> tuple[str, ...]:
        return self._index[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._index)

    def __len__(self) -> int:
        return len(self._index)

    def __repr__(self) -> str:
        return f"TagIndex({dict(self._index)!r})"

    @property
    def names(self) -> frozenset[str]:
        return frozenset(self._index)

    def values_for(self, name: str) -> tuple[str, ...]:
        """Values of tag *name*, or an empty tuple."""
        return self._index.get(name, ())

    def intersects(self, name: str, values: Iterable[str]) -> bool:
        """True if at least one of *values* appears under *name*."""
        present = self._index.get(name)
        if not present:
            return False
        wanted = set(values)
        return any(value in wanted for value in present)
