"""
DNS Target Value Object

Architectural Intent:
- What a hostname is bound to: an IPv4 address (A record) or an alias
  name (CNAME record), never both
- Built by adapters from whatever address a running instance exposes
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RecordType(Enum):
    A = "A"
    CNAME = "CNAME"


@dataclass(frozen=True)
class DnsTarget:
    """
    Value Object representing the target of a DNS binding.
    """
    record_type: RecordType
    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("DNS target value cannot be empty")
        if self.record_type is RecordType.A:
            ipaddress.IPv4Address(self.value)

    @staticmethod
    def a(address: str | ipaddress.IPv4Address) -> "DnsTarget":
        return DnsTarget(RecordType.A, str(address))

    @staticmethod
    def cname(name: str) -> "DnsTarget":
        return DnsTarget(RecordType.CNAME, name)

    @staticmethod
    def preferred(
        alias: Optional[str] = None, ipv4: Optional[str] = None
    ) -> Optional["DnsTarget"]:
        """
        Choose the address a running instance should be bound to.
        The alias name wins when both are present; blanks count as absent.
        """
        if alias:
            return DnsTarget.cname(alias)
        if ipv4:
            return DnsTarget.a(ipv4)
        return None

    def __str__(self) -> str:
        return f"{self.record_type.value} {self.value}"
