"""
Access component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from entitlement_gate.domain.entities import AccessType, ProductGrant, SubscriptionState


@dataclass(frozen=True)
class AccessView:
    """What a customer may use right now."""

    email: str
    has_active_access: bool
    subscription: SubscriptionState | None = None
    products: tuple[ProductGrant, ...] = ()
    access_type: list[AccessType] = field(default_factory=list)
