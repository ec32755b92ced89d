"""
Firewall Reconciler Service

Architectural Intent:
- Domain service converging one firewall's ingress rules to a desired set
- Issues the minimal mutation: only missing rules are added and only extra
  rules are removed, compared by full structural equality
- Additions are requested before removals so the firewall never holds
  fewer permitted rules than both states have in common

Failure semantics:
- Provider errors propagate unchanged; re-running converges because the
  operation is idempotent
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from drawbridge.domain.ports.cloud_provider_port import FirewallPort
from drawbridge.domain.value_objects.ingress_rule import IngressRule, format_rules

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcileResult:
    firewall: str
    added: frozenset[IngressRule] = field(default_factory=frozenset)
    removed: frozenset[IngressRule] = field(default_factory=frozenset)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


class FirewallReconciler:
    """
    Drives a firewall's rule set to be set-equal to a desired rule set.
    """

    def reconcile(
        self, firewall: FirewallPort, desired: Iterable[IngressRule]
    ) -> ReconcileResult:
        desired = frozenset(desired)
        existing = frozenset(firewall.list_ingress_rules())
        logger.info("Existing rules on %s: %s", firewall.name, format_rules(existing))

        missing = desired - existing
        extra = existing - desired

        if missing:
            logger.info("Adding rules to %s: %s", firewall.name, format_rules(missing))
            firewall.add_ingress_rules(missing)
        if extra:
            logger.info("Removing rules from %s: %s", firewall.name, format_rules(extra))
            firewall.remove_ingress_rules(extra)

        if not (missing or extra):
            logger.info("Firewall %s already matches desired rules", firewall.name)

        return ReconcileResult(firewall=firewall.name, added=missing, removed=extra)
