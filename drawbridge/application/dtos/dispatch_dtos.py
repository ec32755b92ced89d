"""
Dispatch DTOs

Architectural Intent:
- Data Transfer Objects returned from the dispatch use case
- Lets the CLI report what changed without reaching into the domain
"""

from dataclasses import dataclass, field
from typing import Optional

from drawbridge.domain.services.firewall_reconciler import ReconcileResult
from drawbridge.domain.value_objects.instance_state import InstanceRunningState


@dataclass(frozen=True)
class InstanceOutcome:
    name: str
    running: Optional[InstanceRunningState] = None
    fqdn: Optional[str] = None
    zone: Optional[str] = None

    @property
    def stopped(self) -> bool:
        return self.running is None


@dataclass(frozen=True)
class DispatchReport:
    command: str
    firewalls: tuple[ReconcileResult, ...] = ()
    instances: tuple[InstanceOutcome, ...] = ()
    missing: tuple[str, ...] = field(default_factory=tuple)

    @property
    def rules_added(self) -> int:
        return sum(len(r.added) for r in self.firewalls)

    @property
    def rules_removed(self) -> int:
        return sum(len(r.removed) for r in self.firewalls)
