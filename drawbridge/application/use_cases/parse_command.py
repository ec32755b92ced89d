"""
Parse Command Use Case

Architectural Intent:
- Turns raw operator input (protocol specs, sources, instance type) into a
  domain Command, before any provider is contacted
- Resolves the "self" source through PublicIpPort, at most once
- Protocol aliases: ssh, mosh, http, https
"""

from __future__ import annotations

import ipaddress
import logging
from typing import Optional, Sequence

from drawbridge.domain.entities.command import (
    CloseCommand,
    OpenCommand,
    StartCommand,
    StopCommand,
)
from drawbridge.domain.exceptions import InputError
from drawbridge.domain.ports.public_ip_port import PublicIpPort
from drawbridge.domain.value_objects.ingress_rule import (
    IpNetwork,
    IpProtocol,
    parse_network,
)
from drawbridge.domain.value_objects.instance_state import InstanceType

logger = logging.getLogger(__name__)

PROTOCOL_ALIASES = {
    "ssh": "22/tcp",
    "mosh": "60000-61000/udp",
    "http": "80/tcp",
    "https": "443/tcp",
}

SELF_SOURCE = "self"


def parse_protocol(value: str) -> IpProtocol:
    resolved = PROTOCOL_ALIASES.get(value, value)
    if resolved != value:
        logger.info("Substituted: %s -> %s", value, resolved)
    try:
        return IpProtocol.parse(resolved)
    except InputError as e:
        raise InputError(f"not a protocol: {value} ({e})") from None


def parse_sources(
    sources: Sequence[str], public_ip: Optional[PublicIpPort] = None
) -> tuple[IpNetwork, ...]:
    """
    Parse --source values. CIDRs and bare addresses are parsed first so a
    typo fails before the public address service is contacted.
    """
    networks = [parse_network(s) for s in sources if s != SELF_SOURCE]

    if SELF_SOURCE in sources:
        if public_ip is None:
            raise InputError("source 'self' requires a public address lookup")
        own = ipaddress.ip_network(f"{public_ip.lookup()}/32")
        logger.info("Substituted: %s -> %s", SELF_SOURCE, own)
        networks.append(own)

    return tuple(dict.fromkeys(networks))


def _names(names: Sequence[str]) -> tuple[str, ...]:
    cleaned = tuple(dict.fromkeys(n.strip() for n in names if n.strip()))
    if not cleaned:
        raise InputError("at least one resource name is required")
    return cleaned


class ParseCommand:
    def __init__(self, public_ip: Optional[PublicIpPort] = None):
        self.public_ip = public_ip

    def open(
        self, names: Sequence[str], protocols: Sequence[str], sources: Sequence[str]
    ) -> OpenCommand:
        names = _names(names)
        parsed_protocols = tuple(dict.fromkeys(parse_protocol(p) for p in protocols))
        networks = parse_sources(sources, self.public_ip)
        return OpenCommand(networks=networks, protocols=parsed_protocols, names=names)

    def close(self, names: Sequence[str]) -> CloseCommand:
        return CloseCommand(names=_names(names))

    def start(
        self, names: Sequence[str], instance_type: Optional[str] = None
    ) -> StartCommand:
        return StartCommand(
            names=_names(names),
            instance_type=InstanceType(instance_type) if instance_type else None,
        )

    def stop(self, names: Sequence[str]) -> StopCommand:
        return StopCommand(names=_names(names))
