"""
Filter evaluation against events.

An event matches a filter when every present constraint matches (AND across
constraint kinds, OR within a constraint's value set):

* ``ids`` / ``authors``: some entry is a prefix of the event's id / pubkey.
* ``kinds``: the event kind is listed.
* ``since`` / ``until``: ``since <= created_at <= until``.
* ``#x``: the event's ``x`` tag values intersect the queried values.
* ``search``: delegated to a [SearchMatcher][nostrcore.protocol.matcher.SearchMatcher];
  without one the constraint is ignored.

An event matches a filter list when it matches at least one filter; an empty
list matches nothing. ``limit`` does not affect matching, only
[select][nostrcore.protocol.matcher.FilterMatcher.select].
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol

from nostrcore.models.event import Event
from nostrcore.models.filter import Filter

from .tag_index import TagIndex


class SearchMatcher(Protocol):
    """Decides whether an event satisfies a NIP-50 ``search`` string."""

    def __call__(self, event: Event, query: str, /) -> bool: ...


def _has_prefix(value: str, prefixes: Sequence[str]) -> bool:
    return any(value.startswith(prefix) for prefix in prefixes)


def newest_first(event: Event) -> tuple[int, str]:
    """Sort key: descending ``created_at``, then ascending id."""
    return (-event.created_at, event.id)


class FilterMatcher:
    """Evaluates filters; stateless apart from the optional search collaborator."""

    def __init__(self, search: SearchMatcher | None = None) -> None:
        self._search = search

    def matches(self, event: Event, filter_: Filter, tag_index: TagIndex | None = None) -> bool:
        """True if *event* satisfies every constraint present in *filter_*.

        Pass *tag_index* to reuse one index across several filters.
        """
        if filter_.ids is not None and not _has_prefix(event.id, filter_.ids):
            return False
        if filter_.authors is not None and not _has_prefix(event.pubkey, filter_.authors):
            return False
        if filter_.kinds is not None and event.kind not in filter_.kinds:
            return False
        if filter_.since is not None and event.created_at < filter_.since:
            return False
        if filter_.until is not None and event.created_at > filter_.until:
            return False
        if filter_.tags:
            index = tag_index if tag_index is not None else TagIndex.build(event)
            for name, values in filter_.tags.items():
                if not index.intersects(name, values):
                    return False
        if filter_.search is not None and self._search is not None:
            return self._search(event, filter_.search)
        return True

    def matches_any(self, event: Event, filters: Iterable[Filter]) -> bool:
        """True if *event* matches at least one of *filters*."""
        index: TagIndex | None = None
        for filter_ in filters:
            if filter_.tags and index is None:
                index = TagIndex.build(event)
            if self.matches(event, filter_, index):
                return True
        return False

    def select(self, events: Iterable[Event], filter_: Filter) -> list[Event]:
        """Matching events, newest first (ties by ascending id), capped at ``limit``."""
        selected = sorted((e for e in events if self.matches(e, filter_)), key=newest_first)
        if filter_.limit is not None:
            del selected[filter_.limit :]
        return selected

    def select_many(self, events: Iterable[Event], filters: Iterable[Filter]) -> list[Event]:
        """Union of per-filter selections, de-duplicated by id, newest first."""
        pool = list(events)
        seen: dict[str, Event] = {}
        for filter_ in filters:
            for event in self.select(pool, filter_):
                seen.setdefault(event.id, event)
        return sorted(seen.values(), key=newest_first)


_DEFAULT_MATCHER = FilterMatcher()


def matches(event: Event, filter_: Filter) -> bool:
    return _DEFAULT_MATCHER.matches(event, filter_)


def matches_any(event: Event, filters: Iterable[Filter]) -> bool:
    return _DEFAULT_MATCHER.matches_any(event, filters)
