"""
Command Module

Architectural Intent:
- The desired state an operator asks for on one invocation
- Each command names its own target resources: firewalls for open/close,
  instances for start/stop
- Commands are immutable; nothing about them is persisted between runs
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from drawbridge.domain.value_objects.ingress_rule import (
    IngressRule,
    IpNetwork,
    IpProtocol,
    build_desired_rules,
)
from drawbridge.domain.value_objects.instance_state import InstanceType


@dataclass(frozen=True)
class OpenCommand:
    """Allow the given networks on the given protocols through the named firewalls."""
    networks: tuple[IpNetwork, ...]
    protocols: tuple[IpProtocol, ...]
    names: tuple[str, ...]

    def desired_rules(self) -> frozenset[IngressRule]:
        return build_desired_rules(self.networks, self.protocols)


@dataclass(frozen=True)
class CloseCommand:
    """Remove every ingress rule from the named firewalls."""
    names: tuple[str, ...]

    def desired_rules(self) -> frozenset[IngressRule]:
        return frozenset()


@dataclass(frozen=True)
class StartCommand:
    """Start the named instances, optionally changing their type first."""
    names: tuple[str, ...]
    instance_type: Optional[InstanceType] = None


@dataclass(frozen=True)
class StopCommand:
    """Stop the named instances."""
    names: tuple[str, ...]


Command = Union[OpenCommand, CloseCommand, StartCommand, StopCommand]
