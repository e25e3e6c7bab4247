"""Shared validation helpers for frozen dataclass models.

Private module, not part of the public API. Used exclusively by
``__post_init__`` methods and ``from_dict`` constructors in sibling model
modules to enforce runtime type and shape constraints on wire data.
"""

from __future__ import annotations

import string
from collections.abc import Mapping, Sequence
from typing import Any


_HEX_DIGITS = frozenset(string.hexdigits.lower())


def validate_instance(value: Any, expected: type, name: str) -> None:
    """Raise ``TypeError`` if *value* is not an instance of *expected*."""
    if not isinstance(value, expected):
        article = "an" if expected.__name__[0] in "AEIOUaeiou" else "a"
        raise TypeError(f"{name} must be {article} {expected.__name__}, got {type(value).__name__}")


def validate_non_negative_int(value: Any, name: str) -> None:
    """Raise if *value* is not a non-negative ``int`` (``bool`` excluded)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")


def validate_str(value: Any, name: str) -> None:
    """Raise if *value* is not a ``str`` that encodes to UTF-8.

    Lone surrogates such as ``"\\ud800"`` survive ``json.loads`` but have no
    UTF-8 form.
    """
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str, got {type(value).__name__}")
    if not is_utf8(value):
        raise ValueError(f"{name} must be valid UTF-8 text")


def is_utf8(value: str) -> bool:
    """Return True if *value* can be encoded as UTF-8."""
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def is_lower_hex(value: str) -> bool:
    """Return True if *value* only contains lowercase hexadecimal digits."""
    return all(c in _HEX_DIGITS for c in value)


def validate_hex(
    value: Any, name: str, *, length: int | None = None, max_length: int | None = None
) -> None:
    """Raise if *value* is not a lowercase hex string of the expected size.

    Args:
        value: Candidate string.
        name: Field name for error messages.
        length: Exact number of hex characters required, if any.
        max_length: Upper bound on the number of characters, if any.
    """
    validate_str(value, name)
    if length is not None and len(value) != length:
        raise ValueError(f"{name} must be {length} hex chars, got {len(value)}")
    if max_length is not None and len(value) > max_length:
        raise ValueError(f"{name} must be at most {max_length} hex chars")
    if not is_lower_hex(value):
        raise ValueError(f"{name} must be lowercase hex")


def validate_mapping(value: Any, name: str) -> None:
    """Raise ``TypeError`` if *value* is not a ``Mapping``."""
    if not isinstance(value, Mapping):
        raise TypeError(f"{name} must be a Mapping, got {type(value).__name__}")


def is_sequence(value: Any) -> bool:
    """Return True for list/tuple-like sequences, excluding ``str`` and ``bytes``."""
    return isinstance(value, Sequence) and not isinstance(value, str | bytes | bytearray)


def freeze_tags(value: Any, name: str = "tags") -> tuple[tuple[str, ...], ...]:
    """Validate a tag list and return it as a tuple of tuples.

    Each tag must be a non-empty sequence of strings.

    Raises:
        TypeError: If the outer value, a tag, or a tag element has the wrong type.
        ValueError: If a tag is empty or holds text with no UTF-8 form.
    """
    if not is_sequence(value):
        raise TypeError(f"{name} must be a sequence of tags, got {type(value).__name__}")
    frozen: list[tuple[str, ...]] = []
    for index, tag in enumerate(value):
        if not is_sequence(tag):
            raise TypeError(f"{name}[{index}] must be a sequence, got {type(tag).__name__}")
        if not tag:
            raise ValueError(f"{name}[{index}] must not be empty")
        for item in tag:
            if not isinstance(item, str):
                raise TypeError(f"{name}[{index}] elements must be str, got {type(item).__name__}")
            if not is_utf8(item):
                raise ValueError(f"{name}[{index}] elements must be valid UTF-8 text")
        frozen.append(tuple(tag))
    return tuple(frozen)


def freeze_str_list(value: Any, name: str) -> tuple[str, ...]:
    """Validate a list of strings and return it as a tuple."""
    if not is_sequence(value):
        raise TypeError(f"{name} must be a list, got {type(value).__name__}")
    for item in value:
        if not isinstance(item, str):
            raise TypeError(f"{name} elements must be str, got {type(item).__name__}")
        if not is_utf8(item):
            raise ValueError(f"{name} elements must be valid UTF-8 text")
    return tuple(value)
