"""
SQLite entitlement store.

Implements EntitlementStorePort on a single SQLite file. One row per
normalized email; the record is stored as JSON next to its version so the
compare-and-swap in put() is a single conditional statement and works across
processes sharing the file.

Every connection is opened with a busy timeout, so no call blocks longer than
timeout_seconds on a locked database; sqlite3 errors surface as StorageError.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import UTC, datetime

from entitlement_gate.domain.entities import CustomerEntitlement
from entitlement_gate.domain.errors import ConcurrentUpdateError, StorageError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0


class SQLiteEntitlementStore:
    """SQLite implementation of EntitlementStorePort."""

    def __init__(self, db_path: str, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        self.db_path = db_path
        self._timeout = timeout_seconds

    def _get_conn(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path, timeout=self._timeout)

    def get(self, email: str) -> CustomerEntitlement | None:
        try:
            conn = self._get_conn()
            try:
                row = conn.execute(
                    "SELECT record_json FROM customer_entitlements WHERE email = ?",
                    (email,),
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read entitlement for {email}: {e}") from e

        return CustomerEntitlement.from_json(row[0]) if row else None

    def put(self, email: str, record: CustomerEntitlement) -> CustomerEntitlement:
        updated_at = (record.updated_at or datetime.now(UTC)).isoformat()
        payload = record.to_json()

        try:
            conn = self._get_conn()
            try:
                with conn:
                    if record.version == 1:
                        cursor = conn.execute(
                            """
                            INSERT INTO customer_entitlements
                                (email, record_json, version, updated_at)
                            VALUES (?, ?, ?, ?)
                            ON CONFLICT(email) DO NOTHING
                            """,
                            (email, payload, record.version, updated_at),
                        )
                    else:
                        cursor = conn.execute(
                            """
                            UPDATE customer_entitlements
                            SET record_json = ?, version = ?, updated_at = ?
                            WHERE email = ? AND version = ?
                            """,
                            (payload, record.version, updated_at, email, record.version - 1),
                        )

                    if cursor.rowcount != 1:
                        raise ConcurrentUpdateError(
                            email, record.version - 1, self._current_version(conn, email)
                        )
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write entitlement for {email}: {e}") from e

        logger.debug("SQLiteEntitlementStore.put: email=%s version=%s", email, record.version)
        return record

    def _current_version(self, conn: sqlite3.Connection, email: str) -> int | None:
        row = conn.execute(
            "SELECT version FROM customer_entitlements WHERE email = ?", (email,)
        ).fetchone()
        return row[0] if row else None

    def count(self) -> int:
        """Number of stored records."""
        try:
            conn = self._get_conn()
            try:
                row = conn.execute("SELECT COUNT(*) FROM customer_entitlements").fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to count entitlements: {e}") from e
        return int(row[0])
