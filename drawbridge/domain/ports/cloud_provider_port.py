"""
Cloud Provider Port

Architectural Intent:
- Port interfaces for the cloud resources drawbridge reconciles
- Abstracts firewall (security group) and instance discovery and mutation
- Implemented by the AWS EC2 adapter and the in-memory adapter

Design Decisions:
- Uses Protocol for structural typing (no inheritance needed)
- InstancePort exposes only primitive reads and single mutations; the
  convergence loops (ensure running/stopped, type change precondition)
  live once in the domain, in InstanceLifecycle
- Mutations are synchronous; each call returns once the provider accepted it
"""

from typing import Iterable, Optional, Protocol, runtime_checkable

from drawbridge.domain.value_objects.ingress_rule import IngressRule
from drawbridge.domain.value_objects.instance_state import InstanceState, InstanceType


@runtime_checkable
class FirewallPort(Protocol):
    """Port for reading and mutating one firewall's ingress rules."""

    @property
    def id(self) -> str: ...

    @property
    def name(self) -> str: ...

    def list_ingress_rules(self) -> set[IngressRule]:
        """Return the firewall's current ingress rules."""
        ...

    def add_ingress_rules(self, rules: Iterable[IngressRule]) -> None:
        """Authorize the given rules. An empty iterable must not reach the provider."""
        ...

    def remove_ingress_rules(self, rules: Iterable[IngressRule]) -> None:
        """Revoke the given rules. An empty iterable must not reach the provider."""
        ...


@runtime_checkable
class InstancePort(Protocol):
    """Port for reading and mutating one compute instance."""

    @property
    def id(self) -> str: ...

    @property
    def name(self) -> str: ...

    @property
    def fqdn(self) -> Optional[str]:
        """Hostname to bind while the instance runs, if it declares one."""
        ...

    def describe(self) -> InstanceState:
        """Read the instance's current power state, type and address."""
        ...

    def request_start(self) -> None: ...

    def request_stop(self) -> None: ...

    def modify_instance_type(self, instance_type: InstanceType) -> None:
        """Change the instance type. Providers reject this unless stopped."""
        ...


@runtime_checkable
class CloudProviderPort(Protocol):
    """Port for looking up named cloud resources."""

    def list_firewalls(self, names: Iterable[str]) -> list[FirewallPort]:
        """Return the visible firewalls whose name is in ``names``."""
        ...

    def list_instances(self, names: Iterable[str]) -> list[InstancePort]:
        """Return the visible instances whose name is in ``names``."""
        ...
