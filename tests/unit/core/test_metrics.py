"""
Unit tests for core.metrics module.

Tests:
- MetricsConfig initialization and validation
- MetricsServer start/stop lifecycle
- Metrics endpoint response format
- Engine metric objects and label sets
"""

import pytest
from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, Info
from pydantic import ValidationError

from nostrcore.core.metrics import (
    DECODE_ERRORS_TOTAL,
    DELIVERIES_TOTAL,
    ENGINE_INFO,
    MESSAGES_TOTAL,
    OPEN_SUBSCRIPTIONS,
    VERIFICATION_SECONDS,
    VERIFICATIONS_TOTAL,
    MetricsConfig,
    MetricsServer,
)


# ============================================================================
# MetricsConfig Tests
# ============================================================================


class TestMetricsConfig:
    """Tests for MetricsConfig Pydantic model."""

    def test_defaults(self) -> None:
        config = MetricsConfig()

        assert config.enabled is False
        assert config.port == 8000
        assert config.host == "127.0.0.1"
        assert config.path == "/metrics"

    def test_custom_values(self) -> None:
        config = MetricsConfig(enabled=True, port=9090, host="0.0.0.0", path="/custom")

        assert config.enabled is True
        assert config.port == 9090
        assert config.path == "/custom"

    def test_port_below_range(self) -> None:
        with pytest.raises(ValidationError):
            MetricsConfig(port=80)

    def test_port_above_range(self) -> None:
        with pytest.raises(ValidationError):
            MetricsConfig(port=70000)


# ============================================================================
# Metric Objects
# ============================================================================


class TestMetricObjects:
    def test_types(self) -> None:
        assert isinstance(ENGINE_INFO, Info)
        assert isinstance(MESSAGES_TOTAL, Counter)
        assert isinstance(DECODE_ERRORS_TOTAL, Counter)
        assert isinstance(VERIFICATIONS_TOTAL, Counter)
        assert isinstance(VERIFICATION_SECONDS, Histogram)
        assert isinstance(DELIVERIES_TOTAL, Counter)
        assert isinstance(OPEN_SUBSCRIPTIONS, Gauge)

    def test_message_labels(self) -> None:
        MESSAGES_TOTAL.labels(direction="to_relay", operation="decode", type="REQ").inc()

    def test_subscription_gauge_labels(self) -> None:
        gauge = OPEN_SUBSCRIPTIONS.labels(side="client")
        gauge.inc()
        gauge.dec()


# ============================================================================
# MetricsServer Tests
# ============================================================================


class TestMetricsServerLifecycle:
    """Tests for MetricsServer start/stop lifecycle."""

    @pytest.mark.asyncio
    async def test_start_disabled_is_noop(self) -> None:
        server = MetricsServer(MetricsConfig(enabled=False))

        await server.start()

        assert not server.is_running

    @pytest.mark.asyncio
    async def test_start_and_stop(self) -> None:
        server = MetricsServer(MetricsConfig(enabled=True, port=19876, host="127.0.0.1"))

        try:
            await server.start()
            assert server.is_running
        finally:
            await server.stop()

        assert not server.is_running

    @pytest.mark.asyncio
    async def test_stop_without_start_is_safe(self) -> None:
        await MetricsServer(MetricsConfig()).stop()

    @pytest.mark.asyncio
    async def test_stop_multiple_times_is_safe(self) -> None:
        server = MetricsServer(MetricsConfig(enabled=True, port=19878, host="127.0.0.1"))

        try:
            await server.start()
        finally:
            await server.stop()
            await server.stop()


class TestMetricsServerHandler:
    """Tests for MetricsServer request handler."""

    @pytest.mark.asyncio
    async def test_handle_metrics_returns_exposition(self) -> None:
        response = await MetricsServer._handle_metrics(None)

        assert isinstance(response, web.Response)
        assert response.headers["Content-Type"] == CONTENT_TYPE_LATEST
        assert b"nostrcore_messages_total" in response.body
