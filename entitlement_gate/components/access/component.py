"""
Access component - Read-only access queries.

Invariants:
- has_active_access is true iff the subscription is active or at least one
  product has been granted
- Queries never write to the store
- An unknown email is a normal result, not an error
"""

from __future__ import annotations

import logging

from entitlement_gate.core.ports.store import EntitlementStorePort
from entitlement_gate.domain.entities import AccessType, CustomerEntitlement, normalize_email

from .models import AccessView

logger = logging.getLogger(__name__)


def derive_access(email: str, record: CustomerEntitlement | None) -> AccessView:
    """Project a stored record (or its absence) into an AccessView."""
    if record is None:
        return AccessView(email=email, has_active_access=False)

    access_type: list[AccessType] = []
    subscription_active = (
        record.subscription is not None and record.subscription.status == "active"
    )
    if subscription_active:
        access_type.append("subscription")
    if record.products:
        access_type.append("product")

    return AccessView(
        email=email,
        has_active_access=bool(access_type),
        subscription=record.subscription,
        products=record.products,
        access_type=access_type,
    )


class AccessQueryService:
    """Answers "what can this email use?" from the entitlement store."""

    def __init__(self, store: EntitlementStorePort) -> None:
        self._store = store

    def query_access(self, email: str) -> AccessView:
        """
        Raises:
            StorageError: the store could not be read
        """
        key = normalize_email(email)
        record = self._store.get(key)
        if record is None:
            logger.debug(f"No entitlement record for {key}")
        return derive_access(key, record)
