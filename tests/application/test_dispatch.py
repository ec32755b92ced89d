"""Tests for the Dispatcher use case."""

import logging
from unittest.mock import MagicMock

import pytest

from drawbridge.application.use_cases.dispatch import Dispatcher, command_name
from drawbridge.domain.entities.command import (
    CloseCommand,
    OpenCommand,
    StartCommand,
    StopCommand,
)
from drawbridge.domain.exceptions import (
    INSTANCE_MUST_BE_STOPPED,
    InstanceTypeChangeError,
    NoAuthoritativeZoneError,
)
from drawbridge.domain.value_objects.ingress_rule import (
    IngressRule,
    IpProtocol,
    parse_network,
)
from drawbridge.domain.value_objects.instance_state import InstanceType, PowerState


def rule(network, protocol):
    return IngressRule(parse_network(network), IpProtocol.parse(protocol))


def open_command(names, networks, protocols):
    return OpenCommand(
        networks=tuple(parse_network(n) for n in networks),
        protocols=tuple(IpProtocol.parse(p) for p in protocols),
        names=tuple(names),
    )


@pytest.fixture
def dispatcher(cloud, dns, lifecycle):
    return Dispatcher(cloud, dns, lifecycle=lifecycle)


class TestOpenClose:
    def test_open_then_close(self, cloud, dispatcher):
        fw = cloud.create_firewall(
            "fw",
            rules={
                rule("9.9.9.9/32", "443/tcp"),
                rule("1.1.1.1/32", "80/tcp"),
                rule("1.1.0.0/16", "22/tcp"),
            },
        )

        report = dispatcher.dispatch(
            open_command(["fw"], ["1.1.0.0/16", "9.9.9.9/32"], ["22/tcp", "80/tcp"])
        )
        assert fw.list_ingress_rules() == {
            rule("1.1.0.0/16", "22/tcp"),
            rule("1.1.0.0/16", "80/tcp"),
            rule("9.9.9.9/32", "22/tcp"),
            rule("9.9.9.9/32", "80/tcp"),
        }
        assert report.rules_added == 3
        assert report.rules_removed == 2

        dispatcher.dispatch(CloseCommand(names=("fw",)))
        assert fw.list_ingress_rules() == set()

        history_len = len(cloud.history)
        report = dispatcher.dispatch(CloseCommand(names=("fw",)))
        assert fw.list_ingress_rules() == set()
        assert len(cloud.history) == history_len
        assert report.rules_removed == 0

    def test_open_on_empty_firewall(self, cloud, dispatcher):
        fw = cloud.create_firewall("fw")
        dispatcher.dispatch(open_command(["fw"], ["1.1.1.1"], ["22/tcp"]))
        assert fw.list_ingress_rules() == {rule("1.1.1.1/32", "22/tcp")}

    def test_open_is_idempotent(self, cloud, dispatcher):
        cloud.create_firewall("fw")
        command = open_command(["fw"], ["1.1.1.1"], ["22/tcp"])
        dispatcher.dispatch(command)
        history_len = len(cloud.history)
        dispatcher.dispatch(command)
        assert len(cloud.history) == history_len

    def test_only_named_firewalls_touched(self, cloud, dispatcher):
        other = cloud.create_firewall("other", rules={rule("1.1.1.1", "22/tcp")})
        cloud.create_firewall("fw")
        dispatcher.dispatch(CloseCommand(names=("fw",)))
        assert other.list_ingress_rules() == {rule("1.1.1.1", "22/tcp")}

    def test_missing_names_reported(self, cloud, dispatcher, caplog):
        cloud.create_firewall("fw")
        report = dispatcher.dispatch(CloseCommand(names=("fw", "ghost")))
        assert report.missing == ("ghost",)
        assert "No resource named ghost" in caplog.text


class TestStartStop:
    @pytest.fixture
    def zones(self, dns):
        return {
            name: dns.create_dns_zone(name)
            for name in ("example.com", "sub.example.com", "other.example.com", "example.net")
        }

    def test_start_binds_and_stop_unbinds(self, cloud, dispatcher, zones):
        instance = cloud.create_instance("inst", fqdn="inst.sub.example.com")

        report = dispatcher.dispatch(StartCommand(names=("inst",)))
        running = instance.running_state()
        assert running is not None
        assert zones["sub.example.com"].lookup("inst.sub.example.com") == running.address
        for name in ("example.com", "other.example.com", "example.net"):
            assert zones[name].lookup("inst.sub.example.com") is None
        assert report.instances[0].zone == "sub.example.com"

        dispatcher.dispatch(StopCommand(names=("inst",)))
        assert instance.power_state is PowerState.STOPPED
        for zone in zones.values():
            assert zone.lookup("inst.sub.example.com") is None

        dispatcher.dispatch(StopCommand(names=("inst",)))
        assert instance.power_state is PowerState.STOPPED
        for zone in zones.values():
            assert zone.lookup("inst.sub.example.com") is None

    def test_start_with_different_type(self, cloud, dispatcher, zones):
        instance = cloud.create_instance("inst", instance_type="t3.micro")
        report = dispatcher.dispatch(
            StartCommand(names=("inst",), instance_type=InstanceType("t3.large"))
        )
        assert instance.running_state().instance_type == InstanceType("t3.large")
        assert report.instances[0].running.instance_type == InstanceType("t3.large")

    def test_start_already_running(self, cloud, dispatcher):
        cloud.create_instance("inst", power_state=PowerState.RUNNING)
        dispatcher.dispatch(StartCommand(names=("inst",)))
        assert cloud.history == []

    def test_running_with_different_type_fails(self, cloud, dispatcher):
        instance = cloud.create_instance(
            "inst", instance_type="t3.micro", power_state=PowerState.RUNNING
        )
        with pytest.raises(InstanceTypeChangeError, match=INSTANCE_MUST_BE_STOPPED):
            dispatcher.dispatch(
                StartCommand(names=("inst",), instance_type=InstanceType("t3.large"))
            )
        assert instance.running_state().instance_type == InstanceType("t3.micro")

    def test_instance_without_fqdn_skips_dns(self, cloud, dns, dispatcher):
        cloud.create_instance("inst")
        report = dispatcher.dispatch(StartCommand(names=("inst",)))
        assert report.instances[0].zone is None

    def test_no_zone_fails_after_start(self, cloud, dispatcher):
        instance = cloud.create_instance("inst", fqdn="inst.example.org")
        with pytest.raises(NoAuthoritativeZoneError):
            dispatcher.dispatch(StartCommand(names=("inst",)))
        assert instance.power_state is PowerState.RUNNING

    def test_stop_unbinds_before_stopping(self, cloud, dispatcher):
        instance = cloud.create_instance(
            "inst", fqdn="inst.example.org", power_state=PowerState.RUNNING
        )
        with pytest.raises(NoAuthoritativeZoneError):
            dispatcher.dispatch(StopCommand(names=("inst",)))
        assert instance.power_state is PowerState.RUNNING

    def test_cname_preferred(self, cloud, dispatcher, zones):
        cloud.create_instance(
            "inst",
            fqdn="inst.example.com",
            public_dns_name="ec2-10-0-0-1.compute-1.amazonaws.com",
        )
        dispatcher.dispatch(StartCommand(names=("inst",)))
        target = zones["example.com"].lookup("inst.example.com")
        assert target.record_type.value == "CNAME"

    def test_first_failure_aborts_rest(self, cloud, dispatcher):
        cloud.create_instance("a", power_state=PowerState.TERMINATED)
        b = cloud.create_instance("b")
        with pytest.raises(Exception):
            dispatcher.dispatch(StartCommand(names=("a", "b")))
        assert b.power_state is PowerState.STOPPED


class TestTelemetry:
    def test_metrics_and_spans(self, cloud, dns, lifecycle):
        telemetry = MagicMock()
        dispatcher = Dispatcher(cloud, dns, lifecycle=lifecycle, telemetry=telemetry)
        cloud.create_firewall("fw")

        dispatcher.dispatch(open_command(["fw"], ["1.1.1.1"], ["22/tcp", "80/tcp"]))

        metrics = {c.args[0]: c.args[1] for c in telemetry.record_metric.call_args_list}
        assert metrics == {
            "drawbridge.firewall.rules_added": 2,
            "drawbridge.firewall.rules_removed": 0,
        }
        span_names = [c.args[0] for c in telemetry.start_span.call_args_list]
        assert span_names == ["drawbridge.open", "drawbridge.firewall"]
        assert telemetry.end_span.call_count == 2

    def test_resource_span_attributes(self, cloud, dns, lifecycle):
        telemetry = MagicMock()
        dispatcher = Dispatcher(cloud, dns, lifecycle=lifecycle, telemetry=telemetry)
        fw = cloud.create_firewall("fw")

        dispatcher.dispatch(CloseCommand(names=("fw",)))

        resource_call = telemetry.start_span.call_args_list[1]
        assert resource_call.args == ("drawbridge.firewall", {"id": fw.id, "name": "fw"})

    def test_named_resources_processed_without_telemetry(self, cloud, dns, lifecycle):
        fw = cloud.create_firewall("fw", rules={rule("1.1.1.1", "22/tcp")})
        instance = cloud.create_instance("web")
        dispatcher = Dispatcher(cloud, dns, lifecycle=lifecycle)

        dispatcher.dispatch(CloseCommand(names=("fw",)))
        dispatcher.dispatch(StartCommand(names=("web",)))

        assert fw.list_ingress_rules() == set()
        assert instance.power_state is PowerState.RUNNING

    def test_failed_span_records_error(self, cloud, dns, lifecycle):
        telemetry = MagicMock()
        dispatcher = Dispatcher(cloud, dns, lifecycle=lifecycle, telemetry=telemetry)
        cloud.create_instance("inst", power_state=PowerState.TERMINATED)

        with pytest.raises(Exception) as exc_info:
            dispatcher.dispatch(StartCommand(names=("inst",)))

        errors = [c.args[1] for c in telemetry.end_span.call_args_list]
        assert errors == [exc_info.value, exc_info.value]


def test_command_name():
    assert command_name(StopCommand(names=("x",))) == "stop"


def test_resource_logs_carry_context(cloud, dispatcher, caplog):
    fw = cloud.create_firewall("fw")
    with caplog.at_level(logging.INFO, logger="drawbridge"):
        dispatcher.dispatch(CloseCommand(names=("fw",)))
    records = [r for r in caplog.records if r.getMessage().startswith("Processing firewall")]
    assert [(r.resource_id, r.resource_name, r.command) for r in records] == [
        (fw.id, "fw", "close")
    ]
