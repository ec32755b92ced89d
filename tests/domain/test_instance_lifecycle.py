"""Tests for InstanceLifecycle convergence loops."""

import itertools

import pytest

from drawbridge.domain.exceptions import (
    INSTANCE_MUST_BE_STOPPED,
    InstanceStateError,
    InstanceTimeoutError,
    InstanceTypeChangeError,
)
from drawbridge.domain.services.instance_lifecycle import InstanceLifecycle
from drawbridge.domain.value_objects.dns_target import DnsTarget
from drawbridge.domain.value_objects.instance_state import (
    InstanceState,
    InstanceType,
    PowerState,
)


class ScriptedInstance:
    """Replays a fixed sequence of state codes, repeating the last one."""

    def __init__(self, codes, instance_type="t3.micro", address=DnsTarget.a("1.2.3.4")):
        self.id = "i-1"
        self.name = "scripted"
        self.fqdn = None
        self._codes = iter(codes)
        self._last = None
        self._type = InstanceType(instance_type)
        self._address = address
        self.calls = []

    def describe(self):
        self._last = next(self._codes, self._last)
        address = self._address if self._last == 16 else None
        return InstanceState.from_code(self._last, self._type, address)

    def request_start(self):
        self.calls.append("start")

    def request_stop(self):
        self.calls.append("stop")

    def modify_instance_type(self, instance_type):
        self.calls.append(("modify", str(instance_type)))


class TestEnsureRunning:
    def test_starts_stopped_instance(self, cloud, lifecycle, sleeps):
        instance = cloud.create_instance("web", instance_type="t3.micro")
        running = lifecycle.ensure_running(instance)

        assert instance.power_state is PowerState.RUNNING
        assert running.instance_type == InstanceType("t3.micro")
        assert running.address.record_type.value == "A"
        assert sleeps == [1.0, 1.0]

    def test_already_running_no_mutation(self, cloud, lifecycle, sleeps):
        instance = cloud.create_instance("web", power_state=PowerState.RUNNING)
        lifecycle.ensure_running(instance)
        assert cloud.history == []
        assert sleeps == []

    def test_waits_out_stopping(self, lifecycle):
        instance = ScriptedInstance([64, 64, 80, 0, 16])
        lifecycle.ensure_running(instance)
        assert instance.calls == ["start"]

    def test_changes_type_when_stopped(self, cloud, lifecycle):
        instance = cloud.create_instance("web", instance_type="t3.micro")
        running = lifecycle.ensure_running(instance, InstanceType("t3.large"))
        assert running.instance_type == InstanceType("t3.large")

    def test_running_with_different_type_rejected(self, cloud, lifecycle):
        instance = cloud.create_instance(
            "web", instance_type="t3.micro", power_state=PowerState.RUNNING
        )
        with pytest.raises(InstanceTypeChangeError) as exc_info:
            lifecycle.ensure_running(instance, InstanceType("t3.large"))
        assert str(exc_info.value) == INSTANCE_MUST_BE_STOPPED
        assert instance.running_state().instance_type == InstanceType("t3.micro")

    def test_running_with_same_type_is_noop(self, cloud, lifecycle):
        instance = cloud.create_instance(
            "web", instance_type="t3.micro", power_state=PowerState.RUNNING
        )
        lifecycle.ensure_running(instance, InstanceType("t3.micro"))
        assert cloud.history == []

    def test_running_without_address_fails(self, lifecycle):
        instance = ScriptedInstance([16], address=None)
        with pytest.raises(InstanceStateError, match="expected running instance to have an address"):
            lifecycle.ensure_running(instance)

    @pytest.mark.parametrize("code,message", [
        (32, "is terminating"),
        (48, "is terminated"),
        (99, "unknown state: 99"),
    ])
    def test_terminal_states_fail(self, lifecycle, code, message):
        with pytest.raises(InstanceStateError, match=message):
            lifecycle.ensure_running(ScriptedInstance([code]))


class TestEnsureStopped:
    def test_stops_running_instance(self, cloud, lifecycle):
        instance = cloud.create_instance("web", power_state=PowerState.RUNNING)
        lifecycle.ensure_stopped(instance)
        assert instance.power_state is PowerState.STOPPED
        assert instance.running_state() is None

    def test_already_stopped_is_noop(self, cloud, lifecycle, sleeps):
        instance = cloud.create_instance("web")
        lifecycle.ensure_stopped(instance)
        assert cloud.history == []
        assert sleeps == []

    def test_waits_out_pending(self, lifecycle):
        instance = ScriptedInstance([0, 16, 64, 80])
        lifecycle.ensure_stopped(instance)
        assert instance.calls == ["stop"]

    def test_terminated_fails(self, lifecycle):
        with pytest.raises(InstanceStateError, match="terminated"):
            lifecycle.ensure_stopped(ScriptedInstance([48]))


class TestTimeout:
    def test_unbounded_by_default(self):
        assert InstanceLifecycle().timeout is None
        assert InstanceLifecycle(timeout=0).timeout is None

    def test_timeout_raises(self):
        clock = itertools.count(0, 5)
        lifecycle = InstanceLifecycle(
            poll_interval=5, timeout=12, sleep=lambda s: None, clock=lambda: next(clock)
        )
        with pytest.raises(InstanceTimeoutError, match="did not reach running within 12s"):
            lifecycle.ensure_running(ScriptedInstance([0]))

    def test_timeout_is_a_state_error(self):
        assert issubclass(InstanceTimeoutError, InstanceStateError)

    def test_negative_timeout_rejected(self):
        with pytest.raises(ValueError, match="timeout cannot be negative"):
            InstanceLifecycle(timeout=-5)

    def test_negative_poll_interval_rejected(self):
        with pytest.raises(ValueError, match="poll interval cannot be negative"):
            InstanceLifecycle(poll_interval=-1)


class TestTryEnsureInstanceType:
    def test_modifies_when_stopped(self, lifecycle):
        instance = ScriptedInstance([80])
        lifecycle.try_ensure_instance_type(instance, InstanceType("m5.large"))
        assert instance.calls == [("modify", "m5.large")]

    def test_rejects_when_pending(self, lifecycle):
        instance = ScriptedInstance([0])
        with pytest.raises(InstanceTypeChangeError):
            lifecycle.try_ensure_instance_type(instance, InstanceType("m5.large"))
        assert instance.calls == []
