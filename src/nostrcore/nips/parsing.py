"""
Declarative field parsing for relay-supplied documents.

A relay information document comes from an untrusted peer. Each model
declares a [FieldSpec][nostrcore.nips.parsing.FieldSpec] naming the fields it
understands and their types; [parse_fields][nostrcore.nips.parsing.parse_fields]
keeps only values of the right type and drops the rest without raising.
[residual_fields][nostrcore.nips.parsing.residual_fields] returns the keys a
model does not name, so unknown extensions survive a round trip.

Supported field types: ``int``, ``bool``, ``str``, ``float``,
``list[int]``, ``list[str]``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Callable


_SKIP: Any = object()


def _is_int(value: Any) -> bool:
    # bool is an int subclass; "max_limit": true is not a limit
    return isinstance(value, int) and not isinstance(value, bool)


def _is_str(value: Any) -> bool:
    return isinstance(value, str)


def _is_bool(value: Any) -> bool:
    return isinstance(value, bool)


def _scalar(check: Callable[[Any], bool]) -> Callable[[Any], Any]:
    return lambda value: value if check(value) else _SKIP


def _list_of(check: Callable[[Any], bool]) -> Callable[[Any], Any]:
    def parse(value: Any) -> Any:
        if not isinstance(value, list):
            return _SKIP
        return [item for item in value if check(item)] or _SKIP

    return parse


def _parse_float(value: Any) -> Any:
    return float(value) if _is_int(value) or isinstance(value, float) else _SKIP


_FIELD_PARSERS: dict[str, Callable[[Any], Any]] = {
    "int_fields": _scalar(_is_int),
    "bool_fields": _scalar(_is_bool),
    "str_fields": _scalar(_is_str),
    "float_fields": _parse_float,
    "int_list_fields": _list_of(_is_int),
    "str_list_fields": _list_of(_is_str),
}


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """Expected field types of a relay-supplied object.

    Attributes:
        int_fields: ``int`` values (``bool`` excluded).
        bool_fields: ``bool`` values.
        str_fields: ``str`` values.
        float_fields: ``float`` values; ``int`` is accepted and converted.
        int_list_fields: ``list[int]``; other elements are dropped.
        str_list_fields: ``list[str]``; other elements are dropped.
        nested_fields: Sub-objects parsed by the owning model itself; listed
            so they are not reported as residual.
    """

    int_fields: frozenset[str] = field(default_factory=frozenset)
    bool_fields: frozenset[str] = field(default_factory=frozenset)
    str_fields: frozenset[str] = field(default_factory=frozenset)
    str_list_fields: frozenset[str] = field(default_factory=frozenset)
    float_fields: frozenset[str] = field(default_factory=frozenset)
    int_list_fields: frozenset[str] = field(default_factory=frozenset)
    nested_fields: frozenset[str] = field(default_factory=frozenset)

    def parsers(self) -> dict[str, Callable[[Any], Any]]:
        """Map every declared field name to its parser."""
        return {
            name: parser
            for group, parser in _FIELD_PARSERS.items()
            for name in getattr(self, group)
        }

    @property
    def known(self) -> frozenset[str]:
        """Every field name this spec accounts for."""
        return frozenset(self.parsers()) | self.nested_fields


def parse_fields(data: dict[str, Any], spec: FieldSpec) -> dict[str, Any]:
    """Keep the values of *data* whose type matches *spec*.

    List fields drop wrongly-typed elements, and a list left empty drops the
    field. Keys outside the spec, ``nested_fields`` included, are ignored.
    """
    parsers = spec.parsers()
    parsed = {
        key: parsers[key](value) for key, value in data.items() if key in parsers
    }
    return {key: value for key, value in parsed.items() if value is not _SKIP}


def residual_fields(data: dict[str, Any], spec: FieldSpec) -> dict[str, Any]:
    """Return the entries of *data* whose key *spec* does not account for."""
    known = spec.known
    return {key: value for key, value in data.items() if isinstance(key, str) and key not in known}


__all__ = ["FieldSpec", "parse_fields", "residual_fields"]
