"""Nostr key loading from environment variables.

Supports nsec1 (bech32) and hex-encoded secret keys through ``nostr_sdk``.

Warning:
    Secret keys must never be stored in configuration files, source code,
    or logged. Always pass them through environment variables.

Examples:
    ```python
    import os

    os.environ["PRIVATE_KEY"] = "nsec1..."  # pragma: allowlist secret
    config = KeysConfig()
    signer = SchnorrSigner.from_keys(config.keys)
    ```
"""

from __future__ import annotations

import os
from typing import Any

from nostr_sdk import Keys
from pydantic import BaseModel, Field, model_validator


ENV_PRIVATE_KEY = "PRIVATE_KEY"  # pragma: allowlist secret


def load_keys_from_env(env_var: str) -> Keys:
    """Parse the secret key held by *env_var* into ``nostr_sdk.Keys``.

    Raises:
        ValueError: If the environment variable is not set or is empty.
        nostr_sdk.NostrSdkError: If the value is not a valid key.
    """
    value = os.getenv(env_var, "").strip()
    if not value:
        raise ValueError(f"{env_var} environment variable is required")
    return Keys.parse(value)


class KeysConfig(BaseModel):
    """Pydantic model that loads ``keys`` from the variable named by ``keys_env``.

    Attributes:
        keys_env: Environment variable name for the secret key.
        keys: Loaded ``nostr_sdk.Keys`` (secret and derived public key).

    Warning:
        ``keys`` holds a live secret key. Never serialize this model.
    """

    model_config = {"arbitrary_types_allowed": True}

    keys_env: str = Field(
        default=ENV_PRIVATE_KEY,
        min_length=1,
        description="Environment variable name for the secret key",
    )
    keys: Keys = Field(description="Keys loaded from keys_env")

    @model_validator(mode="before")
    @classmethod
    def _load_keys_from_env(cls, data: Any) -> Any:
        if data is None:
            data = {}
        if isinstance(data, dict) and "keys" not in data:
            data = {**data, "keys": load_keys_from_env(data.get("keys_env", ENV_PRIVATE_KEY))}
        return data

    @property
    def public_key_hex(self) -> str:
        """x-only public key, the ``pubkey`` field of events signed with these keys."""
        return self.keys.public_key().to_hex()
