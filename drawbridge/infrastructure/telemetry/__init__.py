"""
drawbridge Telemetry

Architectural Intent:
- Public surface of the telemetry adapter: the composition root builds an
  OTELExporter from TelemetryConfig and hands it to the Dispatcher as its
  TelemetryPort
- Spans cover each dispatch and each firewall or instance it touches;
  counters track rules added and removed and instances converged
"""

from drawbridge.infrastructure.telemetry.otel_exporter import (
    OTELConfig,
    OTELExporter,
    create_exporter,
)

__all__ = [
    "OTELConfig",
    "OTELExporter",
    "create_exporter",
]
