"""
Engine configuration.

[EngineConfig][nostrcore.core.config.EngineConfig] groups every tunable of a
relay or client built on the engine. It is a Pydantic model so YAML, dicts and
keyword arguments are validated the same way; any failure surfaces as
[ConfigurationError][nostrcore.core.exceptions.ConfigurationError].

Examples:
    ```yaml
    # relay.yaml
    relay_url: wss://relay.example.com
    relay_info:
      name: example
      supported_nips: [1, 11, 13, 42, 45]
      limitation:
        max_filters: 10
        max_limit: 500
        min_pow_difficulty: 0
    verification:
      max_workers: 4
    logging:
      level: DEBUG
    ```

    ```python
    config = EngineConfig.from_yaml("relay.yaml")
    ```
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Self

from pydantic import BaseModel, Field, ValidationError

from nostrcore.nips.nip11 import RelayInformation

from .exceptions import ConfigurationError
from .metrics import MetricsConfig
from .yaml import load_yaml


LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class VerificationConfig(BaseModel):
    """Signature gate tuning."""

    max_workers: int | None = Field(
        default=None,
        ge=1,
        description="Executor threads for verification (None = loop default executor)",
    )
    verify_incoming: bool = Field(
        default=True,
        description="Clients verify events received from relays before delivery",
    )


class AuthConfig(BaseModel):
    """NIP-42 authentication settings."""

    enabled: bool = Field(default=True, description="Issue an AUTH challenge on connect")
    window: int = Field(
        default=600,
        ge=1,
        description="Maximum distance in seconds between an AUTH event and now",
    )


class LoggingConfig(BaseModel):
    level: LogLevel = Field(default="INFO", description="Root log level")
    json_output: bool = Field(default=False, description="Emit JSON log lines")


class EngineConfig(BaseModel):
    """Top-level engine configuration.

    Attributes:
        relay_url: Canonical URL of the relay (used to check NIP-42 ``relay``
            tags), or of the relay a client talks to.
        relay_info: NIP-11 document; its ``limitation`` drives
            [FilterPolicy][nostrcore.protocol.policy.FilterPolicy].
        verification: [VerificationConfig][nostrcore.core.config.VerificationConfig].
        auth: [AuthConfig][nostrcore.core.config.AuthConfig].
        logging: [LoggingConfig][nostrcore.core.config.LoggingConfig].
        metrics: [MetricsConfig][nostrcore.core.metrics.MetricsConfig].
    """

    relay_url: str = Field(default="ws://localhost:7777", min_length=1)
    relay_info: RelayInformation = Field(default_factory=RelayInformation)
    verification: VerificationConfig = Field(default_factory=VerificationConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Validate *data*.

        Raises:
            ConfigurationError: If any value is invalid.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"invalid engine configuration: {e}") from e

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> Self:
        """Load and validate a YAML configuration file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigurationError: If the file is not valid YAML or a value is invalid.
        """
        return cls.from_dict(load_yaml(config_path))
