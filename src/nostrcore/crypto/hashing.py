"""Hashing collaborator used for event ids."""

from __future__ import annotations

import hashlib
from typing import Protocol


DIGEST_SIZE = 32


class Hasher(Protocol):
    """Maps canonical bytes to a 32-byte digest."""

    def __call__(self, data: bytes, /) -> bytes: ...


def sha256(data: bytes, /) -> bytes:
    return hashlib.sha256(data).digest()
