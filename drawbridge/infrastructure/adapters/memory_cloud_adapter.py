"""
In-Memory Cloud Provider Adapter

Architectural Intent:
- Implements CloudProviderPort without any network access, for tests and
  for running drawbridge with --provider memory
- MemoryCloud is the store: it owns every firewall and instance record,
  keyed by generated id. The handles it returns are thin views that read
  and write through to the store, so two handles for the same id always
  agree

Simulation:
- start moves a STOPPED instance to PENDING and stop moves a RUNNING one
  to STOPPING; each describe() reports the current state and then
  advances a transitional state to its resting state
- Each instance gets a fresh IPv4 address, exposed only while RUNNING
- Type changes are rejected unless the instance is STOPPED, as on EC2
- Every provider mutation is appended to ``MemoryCloud.history``
"""

from __future__ import annotations

import ipaddress
import itertools
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from drawbridge.domain.exceptions import ProviderError
from drawbridge.domain.value_objects.dns_target import DnsTarget
from drawbridge.domain.value_objects.ingress_rule import IngressRule
from drawbridge.domain.value_objects.instance_state import (
    InstanceRunningState,
    InstanceState,
    InstanceType,
    PowerState,
)

logger = logging.getLogger(__name__)

_SETTLES_TO = {
    PowerState.PENDING: PowerState.RUNNING,
    PowerState.STOPPING: PowerState.STOPPED,
}


@dataclass
class _FirewallRecord:
    id: str
    name: str
    rules: set[IngressRule] = field(default_factory=set)


@dataclass
class _InstanceRecord:
    id: str
    name: str
    fqdn: Optional[str]
    instance_type: InstanceType
    ip_address: ipaddress.IPv4Address
    public_dns_name: Optional[str] = None
    power_state: PowerState = PowerState.STOPPED

    def address(self) -> Optional[DnsTarget]:
        if self.power_state is not PowerState.RUNNING:
            return None
        return DnsTarget.preferred(alias=self.public_dns_name, ipv4=str(self.ip_address))


class MemoryFirewall:
    def __init__(self, cloud: "MemoryCloud", firewall_id: str) -> None:
        self._cloud = cloud
        self._id = firewall_id

    @property
    def _record(self) -> _FirewallRecord:
        return self._cloud._firewalls[self._id]

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._record.name

    def __repr__(self) -> str:
        return f"MemoryFirewall({self.name} ({self._id}))"

    def list_ingress_rules(self) -> set[IngressRule]:
        return set(self._record.rules)

    def add_ingress_rules(self, rules: Iterable[IngressRule]) -> None:
        rules = set(rules)
        if not rules:
            return
        self._cloud.history.append(("add_ingress_rules", self._id, frozenset(rules)))
        self._record.rules |= rules

    def remove_ingress_rules(self, rules: Iterable[IngressRule]) -> None:
        rules = set(rules)
        if not rules:
            return
        self._cloud.history.append(("remove_ingress_rules", self._id, frozenset(rules)))
        self._record.rules -= rules


class MemoryInstance:
    def __init__(self, cloud: "MemoryCloud", instance_id: str) -> None:
        self._cloud = cloud
        self._id = instance_id

    @property
    def _record(self) -> _InstanceRecord:
        return self._cloud._instances[self._id]

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._record.name

    @property
    def fqdn(self) -> Optional[str]:
        return self._record.fqdn

    @property
    def power_state(self) -> PowerState:
        """Current state, without advancing the simulation."""
        return self._record.power_state

    def __repr__(self) -> str:
        return f"MemoryInstance({self.name} ({self._id}))"

    def running_state(self) -> Optional[InstanceRunningState]:
        """The running state if the instance is RUNNING, else None."""
        record = self._record
        address = record.address()
        if address is None:
            return None
        return InstanceRunningState(instance_type=record.instance_type, address=address)

    def describe(self) -> InstanceState:
        record = self._record
        state = InstanceState(
            power_state=record.power_state,
            instance_type=record.instance_type,
            address=record.address(),
        )
        if record.power_state in _SETTLES_TO:
            record.power_state = _SETTLES_TO[record.power_state]
        return state

    def request_start(self) -> None:
        record = self._record
        self._cloud.history.append(("request_start", self._id))
        if record.power_state is PowerState.STOPPED:
            record.power_state = PowerState.PENDING
        elif record.power_state not in (PowerState.PENDING, PowerState.RUNNING):
            raise ProviderError(
                f"failed to start instance: {self._id} is {record.power_state.value}"
            )

    def request_stop(self) -> None:
        record = self._record
        self._cloud.history.append(("request_stop", self._id))
        if record.power_state is PowerState.RUNNING:
            record.power_state = PowerState.STOPPING
        elif record.power_state not in (PowerState.STOPPING, PowerState.STOPPED):
            raise ProviderError(
                f"failed to stop instance: {self._id} is {record.power_state.value}"
            )

    def modify_instance_type(self, instance_type: InstanceType) -> None:
        record = self._record
        self._cloud.history.append(("modify_instance_type", self._id, instance_type))
        if record.power_state is not PowerState.STOPPED:
            raise ProviderError(
                f"failed to change instance type to {instance_type}: {self._id} "
                f"is {record.power_state.value}"
            )
        record.instance_type = instance_type


class MemoryCloud:
    """In-process store implementing CloudProviderPort."""

    def __init__(self, network: str = "10.0.0.0/8") -> None:
        self._ids = itertools.count()
        self._addresses = ipaddress.IPv4Network(network).hosts()
        self._firewalls: dict[str, _FirewallRecord] = {}
        self._instances: dict[str, _InstanceRecord] = {}
        self.history: list[tuple] = []

    def _fresh_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    def _fresh_address(self) -> ipaddress.IPv4Address:
        try:
            return next(self._addresses)
        except StopIteration:
            raise ProviderError("in-memory address pool exhausted") from None

    def create_firewall(
        self, name: str, rules: Iterable[IngressRule] = ()
    ) -> MemoryFirewall:
        record = _FirewallRecord(self._fresh_id("sg"), name, set(rules))
        self._firewalls[record.id] = record
        logger.debug("Created firewall %s (%s)", name, record.id)
        return MemoryFirewall(self, record.id)

    def create_instance(
        self,
        name: str,
        fqdn: Optional[str] = None,
        instance_type: InstanceType | str = "t3.micro",
        power_state: PowerState = PowerState.STOPPED,
        public_dns_name: Optional[str] = None,
    ) -> MemoryInstance:
        if isinstance(instance_type, str):
            instance_type = InstanceType(instance_type)
        record = _InstanceRecord(
            id=self._fresh_id("i"),
            name=name,
            fqdn=fqdn,
            instance_type=instance_type,
            ip_address=self._fresh_address(),
            public_dns_name=public_dns_name,
            power_state=power_state,
        )
        self._instances[record.id] = record
        logger.debug("Created instance %s (%s)", name, record.id)
        return MemoryInstance(self, record.id)

    def list_firewalls(self, names: Iterable[str]) -> list[MemoryFirewall]:
        names = set(names)
        return [
            MemoryFirewall(self, r.id) for r in self._firewalls.values() if r.name in names
        ]

    def list_instances(self, names: Iterable[str]) -> list[MemoryInstance]:
        names = set(names)
        return [
            MemoryInstance(self, r.id) for r in self._instances.values() if r.name in names
        ]
