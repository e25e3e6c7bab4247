"""
Prometheus metrics collection and HTTP exposition.

Module-level metric objects are process-wide singletons shared by every
codec, gate and session. They are cheap to update from the hot path and safe
to touch from executor threads.

Architecture:
    MESSAGES_TOTAL:             Wire messages encoded or decoded, by direction and type.
    DECODE_ERRORS_TOTAL:        Frames rejected by the wire codec, by error kind.
    VERIFICATIONS_TOTAL:        Signature gate outcomes, by result.
    VERIFICATION_SECONDS:       Histogram of gate latency (hash + Schnorr).
    DELIVERIES_TOTAL:           Events routed to subscriptions, by side.
    OPEN_SUBSCRIPTIONS:         Currently open subscriptions, by side.
    ENGINE_INFO:                Static metadata set by RelayHub.start().

The [MetricsServer][nostrcore.core.metrics.MetricsServer] exposes them over
aiohttp for Prometheus scraping.
"""

from __future__ import annotations

from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)
from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class MetricsConfig(BaseModel):
    """Configuration for the Prometheus metrics endpoint.

    The endpoint is only started when ``enabled`` is True; counters are
    updated regardless.
    """

    enabled: bool = Field(default=False, description="Expose metrics over HTTP")
    port: int = Field(default=8000, ge=1024, le=65535, description="Metrics HTTP port")
    host: str = Field(default="127.0.0.1", description="Metrics HTTP bind address")
    path: str = Field(default="/metrics", description="Metrics endpoint path")


# ---------------------------------------------------------------------------
# Engine metrics
# ---------------------------------------------------------------------------

ENGINE_INFO = Info(
    "nostrcore",
    "Engine information and metadata",
)

MESSAGES_TOTAL = Counter(
    "nostrcore_messages_total",
    "Wire messages processed by the message codec",
    ["direction", "operation", "type"],
)

DECODE_ERRORS_TOTAL = Counter(
    "nostrcore_decode_errors_total",
    "Wire frames that failed to decode",
    ["kind"],
)

VERIFICATIONS_TOTAL = Counter(
    "nostrcore_verifications_total",
    "Signature gate outcomes",
    ["result"],
)

VERIFICATION_SECONDS = Histogram(
    "nostrcore_verification_seconds",
    "Time spent verifying one event (id recomputation plus signature check)",
    buckets=(0.0001, 0.00025, 0.0005, 0.001, 0.0025, 0.005, 0.01, 0.05),
)

DELIVERIES_TOTAL = Counter(
    "nostrcore_deliveries_total",
    "Events delivered to subscriptions",
    ["side"],
)

OPEN_SUBSCRIPTIONS = Gauge(
    "nostrcore_open_subscriptions",
    "Subscriptions currently open",
    ["side"],
)


# ---------------------------------------------------------------------------
# HTTP Server
# ---------------------------------------------------------------------------


class MetricsServer:
    """Async HTTP server exposing a Prometheus-compatible endpoint.

    Example:
        server = MetricsServer(MetricsConfig(enabled=True, port=8001))
        await server.start()
        # ... engine runs ...
        await server.stop()
    """

    def __init__(self, config: MetricsConfig) -> None:
        self._config = config
        self._runner: web.AppRunner | None = None

    @property
    def is_running(self) -> bool:
        return self._runner is not None

    async def start(self) -> None:
        """Start listening for scrape requests; no-op when disabled.

        Raises:
            OSError: If the port is already in use or binding fails.
        """
        if not self._config.enabled or self._runner is not None:
            return

        app = web.Application()
        app.router.add_get(self._config.path, self._handle_metrics)

        runner = web.AppRunner(app, access_log=None)
        await runner.setup()
        site = web.TCPSite(runner, self._config.host, self._config.port)
        await site.start()
        self._runner = runner

    async def stop(self) -> None:
        """Stop the HTTP server. Idempotent."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None

    @staticmethod
    async def _handle_metrics(_request: web.Request) -> web.Response:
        return web.Response(
            body=generate_latest(),
            headers={"Content-Type": CONTENT_TYPE_LATEST},
        )
