"""
In-memory entitlement store (dev/tests).

Process-local implementation of EntitlementStorePort. Records are kept as
their JSON serialization so callers never share mutable state with the store,
and so the persisted layout matches the SQLite adapter.

The internal lock only guards single dict operations; it is never held across
a caller's read-modify-write. Per-key serialization of that cycle is the
reconciler's job, backed by the version check in put().
"""

from __future__ import annotations

import logging
from threading import Lock

from entitlement_gate.domain.entities import CustomerEntitlement
from entitlement_gate.domain.errors import ConcurrentUpdateError, StorageError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0


class InMemoryEntitlementStore:
    """Dict-backed EntitlementStorePort."""

    def __init__(self, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self._records: dict[str, str] = {}
        self._lock = Lock()
        self._timeout = timeout_seconds

    def _acquire(self) -> None:
        if not self._lock.acquire(timeout=self._timeout):
            raise StorageError(f"In-memory store lock not acquired within {self._timeout}s")

    def get(self, email: str) -> CustomerEntitlement | None:
        self._acquire()
        try:
            raw = self._records.get(email)
        finally:
            self._lock.release()
        return CustomerEntitlement.from_json(raw) if raw is not None else None

    def put(self, email: str, record: CustomerEntitlement) -> CustomerEntitlement:
        payload = record.to_json()
        self._acquire()
        try:
            raw = self._records.get(email)
            current = CustomerEntitlement.from_json(raw).version if raw is not None else 0
            if current != record.version - 1:
                raise ConcurrentUpdateError(
                    email, record.version - 1, current if raw is not None else None
                )
            self._records[email] = payload
        finally:
            self._lock.release()

        logger.debug("InMemoryEntitlementStore.put: email=%s version=%s", email, record.version)
        return record

    # --- Testing Helpers ---

    def keys(self) -> list[str]:
        """Stored emails, for assertions."""
        with self._lock:
            return list(self._records)

    def raw(self, email: str) -> str | None:
        """Persisted JSON for an email, for assertions."""
        with self._lock:
            return self._records.get(email)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
