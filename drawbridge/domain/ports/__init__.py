"""
Domain Ports Package

Architectural Intent:
- Contains port interfaces (abstract contracts) for external dependencies
- Ports define what the domain needs, adapters implement how
- Follows Hexagonal Architecture principles
"""

from drawbridge.domain.ports.cloud_provider_port import (
    CloudProviderPort,
    FirewallPort,
    InstancePort,
)
from drawbridge.domain.ports.dns_provider_port import DnsProviderPort, DnsZonePort
from drawbridge.domain.ports.public_ip_port import PublicIpPort
from drawbridge.domain.ports.telemetry_port import TelemetryPort

__all__ = [
    "CloudProviderPort",
    "FirewallPort",
    "InstancePort",
    "DnsProviderPort",
    "DnsZonePort",
    "PublicIpPort",
    "TelemetryPort",
]
