"""
BIP-340 Schnorr signatures over secp256k1.

The engine only needs two capabilities from the signature scheme and states
them as protocols: a [Signer][nostrcore.crypto.schnorr.Signer] that signs a
32-byte digest and a [Verifier][nostrcore.crypto.schnorr.Verifier] that
checks one. The default implementations use ``coincurve`` (libsecp256k1).

Examples:
    ```python
    signer = SchnorrSigner.from_env("PRIVATE_KEY")
    sig = signer.sign(digest)
    SchnorrVerifier().verify(signer.public_key, digest, sig)  # True
    ```
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Protocol, Self

from coincurve import PrivateKey, PublicKeyXOnly

from .keys import load_keys_from_env


if TYPE_CHECKING:
    from nostr_sdk import Keys


SECRET_KEY_SIZE = 32
XONLY_PUBKEY_SIZE = 32
SIGNATURE_SIZE = 64


class Signer(Protocol):
    """Holds a secret key and signs digests with it."""

    @property
    def public_key(self) -> bytes:
        """32-byte x-only public key."""
        ...

    def sign(self, digest: bytes, /) -> bytes:
        """Return the 64-byte signature of a 32-byte digest."""
        ...


class Verifier(Protocol):
    """Checks a signature against an x-only public key and a digest."""

    def verify(self, pubkey: bytes, digest: bytes, sig: bytes, /) -> bool: ...


class SchnorrSigner:
    """[Signer][nostrcore.crypto.schnorr.Signer] backed by a coincurve private key.

    Signatures use fresh auxiliary randomness (BIP-340 recommends it), so the
    same digest signed twice yields two different, equally valid signatures.
    Pass ``deterministic=True`` to sign with all-zero auxiliary data, which
    makes test vectors reproducible.
    """

    def __init__(self, secret: bytes, *, deterministic: bool = False) -> None:
        if len(secret) != SECRET_KEY_SIZE:
            raise ValueError(f"secret key must be {SECRET_KEY_SIZE} bytes, got {len(secret)}")
        self._key = PrivateKey(secret)
        self._public_key = self._key.public_key_xonly.format()
        self._deterministic = deterministic

    def __repr__(self) -> str:
        return f"SchnorrSigner(public_key={self.public_key_hex})"

    @classmethod
    def from_hex(cls, secret_hex: str, *, deterministic: bool = False) -> Self:
        return cls(bytes.fromhex(secret_hex), deterministic=deterministic)

    @classmethod
    def from_keys(cls, keys: Keys, *, deterministic: bool = False) -> Self:
        """Wrap a ``nostr_sdk.Keys`` (parsed from nsec or hex)."""
        return cls.from_hex(keys.secret_key().to_hex(), deterministic=deterministic)

    @classmethod
    def from_env(cls, env_var: str) -> Self:
        """Load the secret key (nsec1 or hex) from an environment variable.

        Raises:
            ValueError: If the variable is unset or empty.
        """
        return cls.from_keys(load_keys_from_env(env_var))

    @classmethod
    def generate(cls) -> Self:
        return cls(os.urandom(SECRET_KEY_SIZE))

    @property
    def public_key(self) -> bytes:
        return self._public_key

    @property
    def public_key_hex(self) -> str:
        return self._public_key.hex()

    def sign(self, digest: bytes, /) -> bytes:
        aux = bytes(32) if self._deterministic else os.urandom(32)
        return self._key.sign_schnorr(digest, aux)


class SchnorrVerifier:
    """[Verifier][nostrcore.crypto.schnorr.Verifier] backed by coincurve.

    Total: malformed keys or signatures yield ``False`` instead of raising.
    """

    def verify(self, pubkey: bytes, digest: bytes, sig: bytes, /) -> bool:
        if len(pubkey) != XONLY_PUBKEY_SIZE or len(sig) != SIGNATURE_SIZE:
            return False
        try:
            return bool(PublicKeyXOnly(pubkey).verify(sig, digest))
        except ValueError:
            # not a point on the curve
            return False
