"""
Instance State Value Objects

Architectural Intent:
- Provider-neutral view of a compute instance's lifecycle
- PowerState.from_code replicates the EC2 state code table so every
  adapter maps codes the same way
- InstanceState is a single snapshot read from the provider; the lifecycle
  service decides what to do with it
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from drawbridge.domain.value_objects.dns_target import DnsTarget


class PowerState(Enum):
    PENDING = "pending"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    TERMINATING = "terminating"
    TERMINATED = "terminated"
    UNKNOWN = "unknown"

    @staticmethod
    def from_code(code: int) -> "PowerState":
        """
        Map a provider state code to a PowerState.

        Only the low byte is significant; EC2 uses the high byte internally.
        """
        return _CODES.get(code & 0xFF, PowerState.UNKNOWN)

    @property
    def is_transitional(self) -> bool:
        return self in (PowerState.PENDING, PowerState.STOPPING)


_CODES = {
    0: PowerState.PENDING,
    16: PowerState.RUNNING,
    32: PowerState.TERMINATING,
    48: PowerState.TERMINATED,
    64: PowerState.STOPPING,
    80: PowerState.STOPPED,
}


@dataclass(frozen=True)
class InstanceType:
    """
    Value Object for a provider-assigned instance size label (e.g. t3.micro).
    Opaque: compared by exact string value only.
    """
    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("Instance type cannot be empty")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class InstanceState:
    """
    A snapshot of an instance as reported by its provider.

    ``code`` keeps the raw provider code so UNKNOWN states can be reported.
    ``address`` is the preferred network address when one is assigned.
    """
    power_state: PowerState
    instance_type: InstanceType
    address: Optional[DnsTarget] = None
    code: Optional[int] = None

    @staticmethod
    def from_code(
        code: int,
        instance_type: InstanceType,
        address: Optional[DnsTarget] = None,
    ) -> "InstanceState":
        return InstanceState(
            power_state=PowerState.from_code(code),
            instance_type=instance_type,
            address=address,
            code=code,
        )

    def __str__(self) -> str:
        state = self.power_state.value
        if self.power_state is PowerState.UNKNOWN and self.code is not None:
            state = f"unknown({self.code})"
        return f"{state}, type={self.instance_type}, address={self.address or '-'}"


@dataclass(frozen=True)
class InstanceRunningState:
    """The result of driving an instance to RUNNING."""
    instance_type: InstanceType
    address: DnsTarget
