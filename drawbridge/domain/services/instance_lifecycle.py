"""
Instance Lifecycle Service

Architectural Intent:
- Domain service driving a compute instance through its power-state
  machine to RUNNING or STOPPED, optionally changing its type first
- Written once against InstancePort so every provider shares the same
  convergence semantics

Domain Logic:
- Each loop iteration reads the state once, takes at most one mutating
  action, then sleeps poll_interval seconds before reading again
- PENDING and STOPPING are waited out; TERMINATING, TERMINATED and
  unrecognized states are fatal
- A type change is only requested while STOPPED; otherwise it is rejected
  with InstanceTypeChangeError (never queued, never retried)
- Unbounded by default. A positive timeout bounds the loop and raises
  InstanceTimeoutError when exceeded
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from drawbridge.domain.exceptions import (
    InstanceStateError,
    InstanceTimeoutError,
    InstanceTypeChangeError,
)
from drawbridge.domain.ports.cloud_provider_port import InstancePort
from drawbridge.domain.value_objects.instance_state import (
    InstanceRunningState,
    InstanceState,
    InstanceType,
    PowerState,
)

logger = logging.getLogger(__name__)


class InstanceLifecycle:
    """
    Blocking convergence loops over an instance's power state.

    Args:
        poll_interval: Seconds to sleep between state reads.
        timeout: Seconds before giving up; None or 0 waits forever.
        sleep: Sleep function, injectable for tests.
        clock: Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        poll_interval: float = 1.0,
        timeout: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if poll_interval < 0:
            raise ValueError(f"poll interval cannot be negative: {poll_interval}")
        if timeout is not None and timeout < 0:
            raise ValueError(f"timeout cannot be negative: {timeout}")
        self.poll_interval = poll_interval
        self.timeout = timeout or None
        self._sleep = sleep
        self._clock = clock

    def try_ensure_instance_type(
        self, instance: InstancePort, instance_type: InstanceType
    ) -> None:
        state = instance.describe()
        logger.info("Instance %s state: %s", instance.name, state)

        if state.instance_type == instance_type:
            return
        if state.power_state is not PowerState.STOPPED:
            raise InstanceTypeChangeError()

        logger.info(
            "Changing instance type of %s from %s to %s",
            instance.name,
            state.instance_type,
            instance_type,
        )
        instance.modify_instance_type(instance_type)

    def ensure_running(
        self,
        instance: InstancePort,
        instance_type: Optional[InstanceType] = None,
    ) -> InstanceRunningState:
        if instance_type is not None:
            self.try_ensure_instance_type(instance, instance_type)

        deadline = self._deadline()
        while True:
            state = self._observe(instance)
            power_state = state.power_state

            if power_state is PowerState.RUNNING:
                if state.address is None:
                    raise InstanceStateError(
                        f"expected running instance to have an address: {instance.name} ({state})"
                    )
                return InstanceRunningState(
                    instance_type=state.instance_type, address=state.address
                )
            if power_state is PowerState.STOPPED:
                logger.info("Starting instance %s", instance.name)
                instance.request_start()
            elif not power_state.is_transitional:
                self._fail(instance, state)

            self._wait(instance, deadline, PowerState.RUNNING)

    def ensure_stopped(self, instance: InstancePort) -> None:
        deadline = self._deadline()
        while True:
            state = self._observe(instance)
            power_state = state.power_state

            if power_state is PowerState.STOPPED:
                return
            if power_state is PowerState.RUNNING:
                logger.info("Stopping instance %s", instance.name)
                instance.request_stop()
            elif not power_state.is_transitional:
                self._fail(instance, state)

            self._wait(instance, deadline, PowerState.STOPPED)

    def _observe(self, instance: InstancePort) -> InstanceState:
        state = instance.describe()
        logger.info("Instance %s state: %s", instance.name, state)
        return state

    def _fail(self, instance: InstancePort, state: InstanceState) -> None:
        if state.power_state is PowerState.UNKNOWN:
            raise InstanceStateError(
                f"instance {instance.name} is in unknown state: {state.code}"
            )
        raise InstanceStateError(
            f"instance {instance.name} is {state.power_state.value}"
        )

    def _deadline(self) -> Optional[float]:
        if self.timeout is None:
            return None
        return self._clock() + self.timeout

    def _wait(
        self, instance: InstancePort, deadline: Optional[float], target: PowerState
    ) -> None:
        if deadline is not None and self._clock() >= deadline:
            raise InstanceTimeoutError(
                f"instance {instance.name} did not reach {target.value} "
                f"within {self.timeout:g}s"
            )
        self._sleep(self.poll_interval)
