"""Tests for OTELExporter."""

from unittest.mock import MagicMock

import pytest

from drawbridge.domain.ports.telemetry_port import TelemetryPort
from drawbridge.infrastructure.telemetry.otel_exporter import (
    OTELConfig,
    OTELExporter,
    create_exporter,
)


class TestOTELConfig:
    def test_default_empty_endpoint(self):
        assert OTELConfig().endpoint == ""

    def test_localhost_http_allowed(self):
        config = OTELConfig(endpoint="http://localhost:4317")
        assert config.endpoint == "http://localhost:4317"

    def test_remote_https_allowed(self):
        config = OTELConfig(endpoint="https://remote.example.com:4317")
        assert config.endpoint == "https://remote.example.com:4317"

    def test_remote_http_rejected(self):
        with pytest.raises(ValueError, match="insecure=True"):
            OTELConfig(endpoint="http://remote.example.com:4317")

    def test_remote_http_with_insecure(self):
        config = OTELConfig(endpoint="http://remote.example.com:4317", insecure=True)
        assert config.insecure is True


class TestOTELExporter:
    def test_implements_port(self):
        assert isinstance(OTELExporter(OTELConfig()), TelemetryPort)

    def test_disabled_without_endpoint(self):
        exporter = create_exporter()
        assert not exporter.enabled

    def test_record_metric_buffers(self):
        exporter = OTELExporter(OTELConfig())
        exporter.record_metric("drawbridge.firewall.rules_added", 3, attributes={"resource": "fw"})
        assert len(exporter.buffered_metrics) == 1
        metric = exporter.buffered_metrics[0]
        assert metric["name"] == "drawbridge.firewall.rules_added"
        assert metric["value"] == 3
        assert metric["attributes"] == {"resource": "fw"}

    def test_span_noop_when_disabled(self):
        exporter = OTELExporter(OTELConfig())
        span = exporter.start_span("drawbridge.open")
        assert span is None
        exporter.end_span(span)

    def test_end_span_records_error(self):
        exporter = OTELExporter(OTELConfig())
        span = MagicMock()
        error = RuntimeError("boom")
        exporter.end_span(span, error)
        span.record_exception.assert_called_once_with(error)
        span.set_status.assert_called_once()
        span.end.assert_called_once()

    def test_shutdown_noop_when_disabled(self):
        exporter = OTELExporter(OTELConfig())
        exporter.record_metric("x", 1)
        exporter.shutdown()
        assert len(exporter.buffered_metrics) == 1
