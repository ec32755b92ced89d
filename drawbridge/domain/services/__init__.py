"""
Domain Services Package

Architectural Intent:
- Contains domain services implementing the reconciliation logic
- Each service is written against ports only, never against an adapter
"""

from drawbridge.domain.services.firewall_reconciler import (
    FirewallReconciler,
    ReconcileResult,
)
from drawbridge.domain.services.instance_lifecycle import InstanceLifecycle
from drawbridge.domain.services.dns_binder import DnsBinder, dns_labels

__all__ = [
    "FirewallReconciler",
    "ReconcileResult",
    "InstanceLifecycle",
    "DnsBinder",
    "dns_labels",
]
