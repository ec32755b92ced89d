"""
Telemetry Port

Architectural Intent:
- Lets use cases emit metrics and spans without knowing about
  OpenTelemetry
- Implemented by OTELExporter; a disabled exporter simply buffers
"""

from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class TelemetryPort(Protocol):
    def record_metric(
        self,
        name: str,
        value: float,
        unit: str = "",
        attributes: Optional[dict[str, str]] = None,
    ) -> None: ...

    def start_span(
        self, name: str, attributes: Optional[dict[str, str]] = None
    ) -> Optional[Any]: ...

    def end_span(self, span: Any, error: Optional[BaseException] = None) -> None: ...
