"""
AWS Route 53 DNS Adapter

Architectural Intent:
- Implements DnsProviderPort and DnsZonePort on top of a boto3 Route 53
  client
- A hostname holds at most one drawbridge record: binding replaces an
  existing record of the other type in the same atomic change batch

Design Decisions:
- Zone ids are stored without the "/hostedzone/" prefix
- Record lookups use list_resource_record_sets with StartRecordName /
  StartRecordType / MaxItems=1, then check the returned name and type
  exactly, because Route 53 returns the next record in order when there
  is no match
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from drawbridge.domain.services.dns_binder import dns_labels
from drawbridge.domain.value_objects.dns_target import DnsTarget, RecordType
from drawbridge.infrastructure.adapters.aws_session import aws_errors, create_client

logger = logging.getLogger(__name__)

HOSTED_ZONE_PREFIX = "/hostedzone/"
DEFAULT_TTL = 60


def absolute_name(fqdn: str) -> str:
    return fqdn if fqdn.endswith(".") else f"{fqdn}."


def _unescape(name: str) -> str:
    # Route 53 returns "*" as "\052" in record names
    return name.replace("\\052", "*")


class AwsDnsZone:
    """A Route 53 hosted zone."""

    def __init__(self, client: Any, zone_id: str, name: str, ttl: int = DEFAULT_TTL) -> None:
        self._client = client
        self._id = zone_id
        self._name = name
        self.ttl = ttl

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"AwsDnsZone({self._name} ({self._id}))"

    def find_record_set(self, fqdn: str, record_type: RecordType) -> Optional[dict]:
        """Return the record set named exactly ``fqdn`` with ``record_type``, if any."""
        with aws_errors(f"find existing DNS entry: {fqdn}"):
            response = self._client.list_resource_record_sets(
                HostedZoneId=self._id,
                StartRecordName=absolute_name(fqdn),
                StartRecordType=record_type.value,
                MaxItems="1",
            )
        for record_set in response.get("ResourceRecordSets", []):
            if (
                record_set["Type"] == record_type.value
                and dns_labels(_unescape(record_set["Name"])) == dns_labels(fqdn)
            ):
                return record_set
        return None

    def _change(self, changes: list[dict], fqdn: str) -> None:
        actions = "/".join(c["Action"] for c in changes)
        logger.debug("change_resource_record_sets %s: %s", self._id, changes)
        with aws_errors(f"{actions} DNS entry: {fqdn}"):
            self._client.change_resource_record_sets(
                HostedZoneId=self._id, ChangeBatch={"Changes": changes}
            )

    def bind(self, fqdn: str, target: DnsTarget) -> None:
        other = RecordType.CNAME if target.record_type is RecordType.A else RecordType.A
        changes = []
        existing = self.find_record_set(fqdn, other)
        if existing is not None:
            changes.append({"Action": "DELETE", "ResourceRecordSet": existing})
        changes.append(
            {
                "Action": "UPSERT",
                "ResourceRecordSet": {
                    "Name": absolute_name(fqdn),
                    "Type": target.record_type.value,
                    "TTL": self.ttl,
                    "ResourceRecords": [{"Value": target.value}],
                },
            }
        )
        self._change(changes, fqdn)

    def unbind(self, fqdn: str) -> None:
        changes = []
        for record_type in (RecordType.A, RecordType.CNAME):
            existing = self.find_record_set(fqdn, record_type)
            if existing is not None:
                changes.append({"Action": "DELETE", "ResourceRecordSet": existing})
        if not changes:
            logger.debug("No DNS entry to remove for %s in %s", fqdn, self._name)
            return
        self._change(changes, fqdn)


class AwsDns:
    """Route 53-backed DnsProviderPort."""

    def __init__(self, client: Any, ttl: int = DEFAULT_TTL) -> None:
        self._client = client
        self.ttl = ttl

    @classmethod
    def create(
        cls,
        region: Optional[str] = "us-east-1",
        profile: Optional[str] = None,
        ttl: int = DEFAULT_TTL,
    ) -> "AwsDns":
        return cls(create_client("route53", region, profile), ttl)

    def list_zones(self) -> list[AwsDnsZone]:
        zones = []
        with aws_errors("list hosted zones"):
            paginator = self._client.get_paginator("list_hosted_zones")
            for page in paginator.paginate():
                for hz in page.get("HostedZones", []):
                    zone_id = hz["Id"].removeprefix(HOSTED_ZONE_PREFIX)
                    zones.append(AwsDnsZone(self._client, zone_id, hz["Name"], self.ttl))
        logger.debug("Listed %d hosted zone(s)", len(zones))
        return zones
