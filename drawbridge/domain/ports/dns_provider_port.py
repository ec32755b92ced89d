"""
DNS Provider Port

Architectural Intent:
- Port interfaces for hosted DNS zones
- Zone authority resolution is NOT part of the port: it is implemented
  once in the domain (DnsBinder) on top of list_zones
- Implemented by the Route 53 adapter and the in-memory adapter
"""

from typing import Protocol, runtime_checkable

from drawbridge.domain.value_objects.dns_target import DnsTarget


@runtime_checkable
class DnsZonePort(Protocol):
    """Port for binding hostnames inside one zone."""

    @property
    def id(self) -> str: ...

    @property
    def name(self) -> str:
        """Dotted domain suffix the zone is authoritative for."""
        ...

    def bind(self, fqdn: str, target: DnsTarget) -> None:
        """Create or replace the single record for ``fqdn``."""
        ...

    def unbind(self, fqdn: str) -> None:
        """Delete the record for ``fqdn`` if there is one."""
        ...


@runtime_checkable
class DnsProviderPort(Protocol):
    def list_zones(self) -> list[DnsZonePort]: ...
