"""
Ingress Rule Value Objects

Architectural Intent:
- Immutable, hashable value objects describing inbound firewall permissions
- Rule sets are plain Python sets keyed by full structural equality
- Parsing lives next to the types (PortRange.parse, IpProtocol.parse) so
  the CLI and the provider adapters share one grammar

Grammar:
- port range: "22" or "60000-61000"
- protocol:   "<port range>/<tcp|udp>"
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Union

from drawbridge.domain.exceptions import InputError

IpNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]

_MAX_PORT = 65535


@dataclass(frozen=True)
class PortRange:
    """
    Value Object representing a closed interval of 16-bit port numbers.
    """
    start: int
    end: int

    def __post_init__(self) -> None:
        for port in (self.start, self.end):
            if not (0 <= port <= _MAX_PORT):
                raise InputError(f"Port must be 0-{_MAX_PORT}, got {port}")
        if self.start > self.end:
            raise InputError(f"invalid IP port range: {self.start}-{self.end}")

    @staticmethod
    def single(port: int) -> "PortRange":
        return PortRange(port, port)

    @staticmethod
    def parse(value: str) -> "PortRange":
        """Parses '22' or '60000-61000' into a PortRange."""
        parts = value.split("-")
        if len(parts) not in (1, 2) or not all(p.isascii() and p.isdigit() for p in parts):
            raise InputError(f"invalid IP port range: {value!r}")
        ports = [int(p) for p in parts]
        if len(ports) == 1:
            return PortRange.single(ports[0])
        return PortRange(ports[0], ports[1])

    def __str__(self) -> str:
        if self.start == self.end:
            return str(self.start)
        return f"{self.start}-{self.end}"


class Transport(Enum):
    TCP = "tcp"
    UDP = "udp"


@dataclass(frozen=True)
class IpProtocol:
    """
    Value Object pairing a transport with a port range, e.g. 22/tcp.
    """
    transport: Transport
    ports: PortRange

    @staticmethod
    def tcp(start: int, end: int | None = None) -> "IpProtocol":
        return IpProtocol(Transport.TCP, PortRange(start, start if end is None else end))

    @staticmethod
    def udp(start: int, end: int | None = None) -> "IpProtocol":
        return IpProtocol(Transport.UDP, PortRange(start, start if end is None else end))

    @staticmethod
    def parse(value: str) -> "IpProtocol":
        """Parses '22/tcp' or '60000-61000/udp' into an IpProtocol."""
        parts = value.split("/")
        if len(parts) != 2:
            raise InputError(f"invalid IP protocol: {value!r}")
        try:
            transport = Transport(parts[1])
        except ValueError:
            raise InputError(f"invalid IP protocol: {value!r}") from None
        return IpProtocol(transport, PortRange.parse(parts[0]))

    def __str__(self) -> str:
        return f"{self.ports}/{self.transport.value}"


@dataclass(frozen=True)
class IngressRule:
    """
    Value Object permitting inbound traffic from a network on a protocol.
    """
    network: IpNetwork
    protocol: IpProtocol

    def __str__(self) -> str:
        return f"{self.protocol} -> {self.network}"

    def sort_key(self) -> tuple:
        return (
            self.protocol.transport.value,
            self.protocol.ports.start,
            self.protocol.ports.end,
            self.network.version,
            self.network,
        )


def parse_network(value: str) -> IpNetwork:
    """
    Parses a CIDR block or a bare address into a network.

    A bare IPv4 address becomes a /32 and a bare IPv6 address a /128.
    Host bits set in a CIDR are masked off (1.1.1.1/16 -> 1.1.0.0/16).
    """
    try:
        return ipaddress.ip_network(value.strip(), strict=False)
    except ValueError:
        kind = "IP network" if "/" in value else "IP address"
        raise InputError(f"not an {kind}: {value}") from None


def build_desired_rules(
    networks: Iterable[IpNetwork], protocols: Iterable[IpProtocol]
) -> frozenset[IngressRule]:
    """Cross product of networks and protocols, deduplicated."""
    protocols = list(protocols)
    return frozenset(
        IngressRule(network, protocol)
        for network in networks
        for protocol in protocols
    )


def format_rules(rules: Iterable[IngressRule]) -> str:
    """Renders a rule set deterministically for log output."""
    return "{" + ", ".join(str(r) for r in sorted(rules, key=IngressRule.sort_key)) + "}"
