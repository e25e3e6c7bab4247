"""Typed models for relay-supplied documents.

Depends only on [nostrcore.models][nostrcore.models] and Pydantic; performs
no I/O.
"""

from .base import BaseData
from .nip11 import RelayInformation, RelayLimitation
from .parsing import FieldSpec, parse_fields, residual_fields


__all__ = [
    "BaseData",
    "FieldSpec",
    "RelayInformation",
    "RelayLimitation",
    "parse_fields",
    "residual_fields",
]
