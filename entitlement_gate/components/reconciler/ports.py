"""
Reconciler component - Port interfaces.
"""

from __future__ import annotations

from typing import Protocol

from entitlement_gate.core.ports.store import EntitlementStorePort


class ReplayGuardPort(Protocol):
    """Remembers processed webhook-ids."""

    def seen(self, webhook_id: str) -> bool:
        """True if this delivery id was already processed."""
        ...

    def record(self, webhook_id: str) -> None:
        """Mark a delivery id as processed."""
        ...


__all__ = ["EntitlementStorePort", "ReplayGuardPort"]
