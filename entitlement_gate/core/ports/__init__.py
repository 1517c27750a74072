# entitlement-gate: Ports (Protocol Interfaces)
# Abstract interfaces for adapters; no implementations here

from entitlement_gate.core.ports.clock import ClockPort
from entitlement_gate.core.ports.lookup import (
    LookupKind,
    LookupResult,
    PaymentLookupPort,
)
from entitlement_gate.core.ports.store import EntitlementStorePort

__all__ = [
    "ClockPort",
    "EntitlementStorePort",
    "LookupKind",
    "LookupResult",
    "PaymentLookupPort",
]
