"""Cryptographic collaborators: hashing, BIP-340 signing and verification, keys."""

from .hashing import Hasher, sha256
from .keys import KeysConfig, load_keys_from_env
from .schnorr import SchnorrSigner, SchnorrVerifier, Signer, Verifier


__all__ = [
    "Hasher",
    "KeysConfig",
    "SchnorrSigner",
    "SchnorrVerifier",
    "Signer",
    "Verifier",
    "load_keys_from_env",
    "sha256",
]
