r"""nostrcore -- core engine of a Nostr protocol participant.

Canonical event model, deterministic identity and signature scheme, and the
client/relay message protocol with subscription filter matching. Transport
and storage are collaborators supplied by the caller.

Imports flow strictly downward:

```text
              protocol         Codecs, signature gate, matcher, sessions
             /   |    \
          core  nips  crypto   Errors/logging/config/metrics, NIP-11, Schnorr
             \   |    /
              models           Pure frozen dataclasses (zero I/O)
```

Note:
    Top-level imports (``from nostrcore import Event``) use lazy loading and
    resolve on first access. Subpackages can be imported directly::

        from nostrcore.models import Event, Filter
        from nostrcore.protocol import SignatureGate
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("nostrcore")

__all__ = [
    "ClientSession",
    "EngineConfig",
    "Event",
    "EventCodec",
    "Filter",
    "FilterMatcher",
    "Logger",
    "MessageCodec",
    "RelayHub",
    "RelayInformation",
    "SchnorrSigner",
    "SchnorrVerifier",
    "SignatureGate",
    "UnsignedEvent",
    "VerificationResult",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "Event": ("nostrcore.models", "Event"),
    "Filter": ("nostrcore.models", "Filter"),
    "UnsignedEvent": ("nostrcore.models", "UnsignedEvent"),
    "EngineConfig": ("nostrcore.core", "EngineConfig"),
    "Logger": ("nostrcore.core", "Logger"),
    "RelayInformation": ("nostrcore.nips", "RelayInformation"),
    "SchnorrSigner": ("nostrcore.crypto", "SchnorrSigner"),
    "SchnorrVerifier": ("nostrcore.crypto", "SchnorrVerifier"),
    "ClientSession": ("nostrcore.protocol", "ClientSession"),
    "EventCodec": ("nostrcore.protocol", "EventCodec"),
    "FilterMatcher": ("nostrcore.protocol", "FilterMatcher"),
    "MessageCodec": ("nostrcore.protocol", "MessageCodec"),
    "RelayHub": ("nostrcore.protocol", "RelayHub"),
    "SignatureGate": ("nostrcore.protocol", "SignatureGate"),
    "VerificationResult": ("nostrcore.protocol", "VerificationResult"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value
        return value
    raise AttributeError(f"module 'nostrcore' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
