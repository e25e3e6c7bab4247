"""Ambient infrastructure: errors, structured logging, configuration and metrics.

Attributes:
    NostrCoreError: Root of the exception hierarchy.
        See [nostrcore.core.exceptions][nostrcore.core.exceptions].
    Logger: Structured key=value / JSON logger.
        See [Logger][nostrcore.core.logger.Logger].
    EngineConfig: Pydantic configuration loaded from YAML.
        See [EngineConfig][nostrcore.core.config.EngineConfig].
    MetricsServer: aiohttp endpoint exposing Prometheus metrics.
        See [MetricsServer][nostrcore.core.metrics.MetricsServer].
"""

from .config import AuthConfig, EngineConfig, LoggingConfig, VerificationConfig
from .exceptions import (
    AuthError,
    ConfigurationError,
    CryptoError,
    DecodeError,
    DecodeErrorKind,
    FilterRejectedError,
    MalformedEventError,
    NostrCoreError,
    ProtocolError,
    SubscriptionClosedError,
    UnknownSubscriptionError,
)
from .logger import Logger, StructuredFormatter, format_kv_pairs
from .metrics import MetricsConfig, MetricsServer
from .yaml import load_yaml


__all__ = [
    "AuthConfig",
    "AuthError",
    "ConfigurationError",
    "CryptoError",
    "DecodeError",
    "DecodeErrorKind",
    "EngineConfig",
    "FilterRejectedError",
    "Logger",
    "LoggingConfig",
    "MalformedEventError",
    "MetricsConfig",
    "MetricsServer",
    "NostrCoreError",
    "ProtocolError",
    "StructuredFormatter",
    "SubscriptionClosedError",
    "UnknownSubscriptionError",
    "VerificationConfig",
    "format_kv_pairs",
    "load_yaml",
]
