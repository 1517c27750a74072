"""
Entitlement store port.

Durable key-value persistence of one CustomerEntitlement per normalized email.

Consistency contract:
- get() returns the last successfully written record, or None for an unseen key
- put() replaces the whole record; there are no partial-field updates
- put() is a compare-and-swap on record.version: the stored version must be
  record.version - 1 (no stored record counts as version 0), otherwise
  ConcurrentUpdateError is raised and nothing is written
- every call is bounded by the adapter's timeout; on timeout or IO failure the
  adapter raises StorageError

Implementations:
- InMemoryEntitlementStore: process-local dict (dev/tests)
- SQLiteEntitlementStore: single-file SQLite database
"""

from __future__ import annotations

from typing import Protocol

from entitlement_gate.domain.entities import CustomerEntitlement


class EntitlementStorePort(Protocol):
    """Port for entitlement persistence."""

    def get(self, email: str) -> CustomerEntitlement | None:
        """
        Get the stored record for a normalized email.

        Returns:
            The record, or None if no event has ever been applied for it.

        Raises:
            StorageError: store unavailable or timed out
        """
        ...

    def put(self, email: str, record: CustomerEntitlement) -> CustomerEntitlement:
        """
        Store a full record for a normalized email.

        Returns:
            The record as stored.

        Raises:
            ConcurrentUpdateError: stored version is not record.version - 1
            StorageError: store unavailable or timed out
        """
        ...
