"""
DNS Binder Service

Architectural Intent:
- Domain service keeping a hostname bound only while its instance runs
- Resolves the authoritative zone itself from the provider's zone list,
  so every DNS provider shares the same resolution rule

Domain Logic:
- A zone matches when its labels are a suffix of the hostname's labels
- The most specific match (most labels) is authoritative
- Comparison ignores case and a trailing root dot
"""

from __future__ import annotations

import logging
from typing import Optional

from drawbridge.domain.exceptions import NoAuthoritativeZoneError
from drawbridge.domain.ports.dns_provider_port import DnsProviderPort, DnsZonePort
from drawbridge.domain.value_objects.dns_target import DnsTarget

logger = logging.getLogger(__name__)


def dns_labels(name: str) -> tuple[str, ...]:
    """Split a dotted name into labels, dropping the trailing root label."""
    return tuple(label for label in name.lower().rstrip(".").split(".") if label)


class DnsBinder:
    def __init__(self, dns: DnsProviderPort) -> None:
        self.dns = dns

    def find_authoritative_zone(self, fqdn: str) -> DnsZonePort:
        labels = dns_labels(fqdn)
        best: Optional[DnsZonePort] = None
        best_len = 0

        for zone in self.dns.list_zones():
            zone_labels = dns_labels(zone.name)
            if not zone_labels or len(zone_labels) > len(labels):
                continue
            if labels[-len(zone_labels):] != zone_labels:
                continue
            if len(zone_labels) > best_len:
                best, best_len = zone, len(zone_labels)

        if best is None:
            raise NoAuthoritativeZoneError(
                f"could not find authoritative DNS zone for: {fqdn}"
            )
        logger.info("Found authoritative DNS zone for %s: %s (%s)", fqdn, best.name, best.id)
        return best

    def sync(self, fqdn: str, target: Optional[DnsTarget] = None) -> DnsZonePort:
        """Bind ``fqdn`` to ``target``, or unbind it when no target is given."""
        zone = self.find_authoritative_zone(fqdn)
        if target is not None:
            zone.bind(fqdn, target)
            logger.info("Bound hostname %s to %s", fqdn, target)
        else:
            zone.unbind(fqdn)
            logger.info("Unbound hostname %s", fqdn)
        return zone
