"""
In-Memory DNS Adapter

Architectural Intent:
- Implements DnsProviderPort for tests and --provider memory
- MemoryDns owns the zones; each zone holds at most one DnsTarget per
  hostname, keyed case-insensitively without the trailing dot
"""

from __future__ import annotations

import itertools
import logging
from typing import Optional

from drawbridge.domain.services.dns_binder import dns_labels
from drawbridge.domain.value_objects.dns_target import DnsTarget

logger = logging.getLogger(__name__)


def _key(fqdn: str) -> str:
    return ".".join(dns_labels(fqdn))


class MemoryDnsZone:
    def __init__(self, zone_id: str, name: str) -> None:
        self._id = zone_id
        self._name = name
        self._records: dict[str, DnsTarget] = {}

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"MemoryDnsZone({self._name} ({self._id}))"

    def lookup(self, fqdn: str) -> Optional[DnsTarget]:
        return self._records.get(_key(fqdn))

    def records(self) -> dict[str, DnsTarget]:
        return dict(self._records)

    def bind(self, fqdn: str, target: DnsTarget) -> None:
        self._records[_key(fqdn)] = target

    def unbind(self, fqdn: str) -> None:
        self._records.pop(_key(fqdn), None)


class MemoryDns:
    def __init__(self) -> None:
        self._ids = itertools.count()
        self._zones: dict[str, MemoryDnsZone] = {}

    def create_dns_zone(self, name: str) -> MemoryDnsZone:
        zone = MemoryDnsZone(f"Z{next(self._ids)}", name)
        self._zones[zone.id] = zone
        logger.debug("Created DNS zone %s (%s)", name, zone.id)
        return zone

    def list_zones(self) -> list[MemoryDnsZone]:
        return list(self._zones.values())
