"""
Dispatch Use Case

Architectural Intent:
- Top-level orchestration of one operator command
- Resolves the named resources through the cloud port, then fans out to
  FirewallReconciler, InstanceLifecycle and DnsBinder
- Processes resources one at a time; the first failure aborts the rest
  (earlier resources keep their changes, re-running converges)

Ordering:
- start: DNS is bound only after the instance is confirmed running
- stop:  DNS is unbound before the instance is asked to stop

Telemetry:
- One span per dispatch ("drawbridge.<command>") and one per resource
  ("drawbridge.firewall" / "drawbridge.instance"); failed spans carry
  the exception
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Optional, Sequence

from drawbridge.application.dtos.dispatch_dtos import DispatchReport, InstanceOutcome
from drawbridge.domain.entities.command import (
    CloseCommand,
    Command,
    OpenCommand,
    StartCommand,
    StopCommand,
)
from drawbridge.domain.ports.cloud_provider_port import (
    CloudProviderPort,
    FirewallPort,
    InstancePort,
)
from drawbridge.domain.ports.dns_provider_port import DnsProviderPort
from drawbridge.domain.ports.telemetry_port import TelemetryPort
from drawbridge.domain.services.dns_binder import DnsBinder
from drawbridge.domain.services.firewall_reconciler import FirewallReconciler
from drawbridge.domain.services.instance_lifecycle import InstanceLifecycle
from drawbridge.domain.value_objects.ingress_rule import IngressRule

logger = logging.getLogger(__name__)


def command_name(command: Command) -> str:
    """OpenCommand -> "open"."""
    return type(command).__name__.removesuffix("Command").lower()


class Dispatcher:
    def __init__(
        self,
        cloud: CloudProviderPort,
        dns: DnsProviderPort,
        lifecycle: Optional[InstanceLifecycle] = None,
        reconciler: Optional[FirewallReconciler] = None,
        telemetry: Optional[TelemetryPort] = None,
    ):
        self.cloud = cloud
        self.binder = DnsBinder(dns)
        self.lifecycle = lifecycle or InstanceLifecycle()
        self.reconciler = reconciler or FirewallReconciler()
        self.telemetry = telemetry

    def dispatch(self, command: Command) -> DispatchReport:
        name = command_name(command)
        logger.info("Running command: %s", command)

        with self._span(f"drawbridge.{name}", names=",".join(command.names)):
            if isinstance(command, (OpenCommand, CloseCommand)):
                return self._reconcile_firewalls(name, command.names, command.desired_rules())
            if isinstance(command, StartCommand):
                return self._start_instances(name, command)
            if isinstance(command, StopCommand):
                return self._stop_instances(name, command)
            raise TypeError(f"unsupported command: {command!r}")

    def _reconcile_firewalls(
        self, name: str, names: Sequence[str], desired: frozenset[IngressRule]
    ) -> DispatchReport:
        firewalls = self.cloud.list_firewalls(names)
        logger.info("Found firewalls: %s", _describe(firewalls))

        results = []
        for fw in firewalls:
            logger.info(
                "Processing firewall: %s (%s)", fw.name, fw.id,
                extra=_log_context(fw.id, fw.name, name),
            )
            with self._span("drawbridge.firewall", id=fw.id, name=fw.name):
                result = self.reconciler.reconcile(fw, desired)
            results.append(result)
            self._record("drawbridge.firewall.rules_added", len(result.added), fw.name)
            self._record("drawbridge.firewall.rules_removed", len(result.removed), fw.name)

        return DispatchReport(
            command=name,
            firewalls=tuple(results),
            missing=_missing(names, firewalls),
        )

    def _start_instances(self, name: str, command: StartCommand) -> DispatchReport:
        instances = self.cloud.list_instances(command.names)
        logger.info("Found instances: %s", _describe(instances))

        outcomes = []
        for instance in instances:
            logger.info(
                "Processing instance: %s (%s)", instance.name, instance.id,
                extra=_log_context(instance.id, instance.name, name),
            )
            with self._span("drawbridge.instance", id=instance.id, name=instance.name):
                running = self.lifecycle.ensure_running(instance, command.instance_type)
                logger.info(
                    "Instance %s running with type %s and address %s",
                    instance.name,
                    running.instance_type,
                    running.address,
                )
                zone = None
                if instance.fqdn:
                    zone = self.binder.sync(instance.fqdn, running.address).name
            outcomes.append(
                InstanceOutcome(instance.name, running=running, fqdn=instance.fqdn, zone=zone)
            )
            self._record("drawbridge.instance.converged", 1, instance.name, state="running")

        return DispatchReport(
            command=name,
            instances=tuple(outcomes),
            missing=_missing(command.names, instances),
        )

    def _stop_instances(self, name: str, command: StopCommand) -> DispatchReport:
        instances = self.cloud.list_instances(command.names)
        logger.info("Found instances: %s", _describe(instances))

        outcomes = []
        for instance in instances:
            logger.info(
                "Processing instance: %s (%s)", instance.name, instance.id,
                extra=_log_context(instance.id, instance.name, name),
            )
            with self._span("drawbridge.instance", id=instance.id, name=instance.name):
                zone = None
                if instance.fqdn:
                    zone = self.binder.sync(instance.fqdn, None).name
                self.lifecycle.ensure_stopped(instance)
            logger.info("Instance %s stopped", instance.name)
            outcomes.append(InstanceOutcome(instance.name, fqdn=instance.fqdn, zone=zone))
            self._record("drawbridge.instance.converged", 1, instance.name, state="stopped")

        return DispatchReport(
            command=name,
            instances=tuple(outcomes),
            missing=_missing(command.names, instances),
        )

    def _record(self, metric: str, value: float, resource: str, **attributes: str) -> None:
        if self.telemetry is not None:
            self.telemetry.record_metric(
                metric, value, attributes={"resource": resource, **attributes}
            )

    @contextmanager
    def _span(self, span_name: str, /, **attributes: str) -> Iterator[Any]:
        if self.telemetry is None:
            yield None
            return
        span = self.telemetry.start_span(span_name, attributes)
        try:
            yield span
        except BaseException as e:
            self.telemetry.end_span(span, e)
            raise
        self.telemetry.end_span(span)


def _log_context(resource_id: str, resource_name: str, command: str) -> dict[str, str]:
    return {"resource_id": resource_id, "resource_name": resource_name, "command": command}


def _describe(resources: Iterable[FirewallPort | InstancePort]) -> str:
    return ", ".join(f"{r.name} ({r.id})" for r in resources) or "none"


def _missing(
    names: Sequence[str], found: Iterable[FirewallPort | InstancePort]
) -> tuple[str, ...]:
    found_names = {r.name for r in found}
    missing = tuple(n for n in dict.fromkeys(names) if n not in found_names)
    for n in missing:
        logger.warning("No resource named %s is visible to drawbridge", n)
    return missing
