"""NIP-11 relay information document.

Implements the [NIP-11](https://github.com/nostr-protocol/nips/blob/master/11.md)
document shape. Raw JSON is sanitized through ``parse()`` and validated into
frozen Pydantic models; invalid fields or wrong types are dropped.

Model hierarchy:

```text
RelayInformation
+-- name, description, pubkey, contact, software, version, ...
+-- supported_nips: list[int]
+-- limitation: RelayLimitation
+-- retention: list[RetentionEntry]
+-- fees: Fees
|   +-- admission / subscription / publication: list[FeeEntry]
+-- extra: dict (unknown keys)
```
"""

from .data import (
    FeeEntry,
    Fees,
    KindRange,
    RelayInformation,
    RelayLimitation,
    RetentionEntry,
)


__all__ = [
    "FeeEntry",
    "Fees",
    "KindRange",
    "RelayInformation",
    "RelayLimitation",
    "RetentionEntry",
]
