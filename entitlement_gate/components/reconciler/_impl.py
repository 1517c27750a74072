"""
EntitlementReconciler - folds webhook events into customer entitlements.

Two layers:
- reconcile(): pure merge (old record, event) -> new record, no I/O
- EntitlementReconciler.apply(): read-modify-write against the store

Merge rules:
- PaymentSucceeded: append a grant unless its payment_id is already present
- SubscriptionActive / SubscriptionRenewed: upsert the single subscription
  slot as active; activated_at is set once, when the slot is first filled;
  a renewal stamps last_renewed
- SubscriptionCancelled / SubscriptionFailed: only touch an existing
  subscription; the slot is never created by a termination

Concurrency:
- Writes for one email are serialized by an in-process per-key lock
- put() is a versioned compare-and-swap, so writers in other processes
  cannot cause lost updates; a conflict re-reads and re-merges
- Writes for different emails never wait on each other
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from threading import Lock
from typing import assert_never

from entitlement_gate.adapters.clock import SystemClock
from entitlement_gate.components.events import (
    PaymentSucceeded,
    SubscriptionActive,
    SubscriptionCancelled,
    SubscriptionFailed,
    SubscriptionRenewed,
    Unrecognized,
    WebhookEvent,
)
from entitlement_gate.core.ports.clock import ClockPort
from entitlement_gate.domain.entities import (
    CustomerEntitlement,
    ProductGrant,
    SubscriptionState,
    normalize_email,
)
from entitlement_gate.domain.errors import ConcurrentUpdateError, StorageError

from .models import (
    REASON_DUPLICATE_PAYMENT,
    REASON_GRANTED,
    REASON_NO_EMAIL,
    REASON_NO_SUBSCRIPTION,
    REASON_SUBSCRIPTION_ACTIVATED,
    REASON_SUBSCRIPTION_CANCELLED,
    REASON_SUBSCRIPTION_FAILED,
    REASON_SUBSCRIPTION_RENEWED,
    REASON_UNCHANGED,
    REASON_UNRECOGNIZED,
    ApplyOutcome,
    ReconcileResult,
)
from .ports import EntitlementStorePort

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT_SECONDS = 5.0
DEFAULT_MAX_RETRIES = 3


# --- Pure Merge ---


def _apply_payment(record: CustomerEntitlement, event: PaymentSucceeded) -> ReconcileResult:
    if record.has_payment(event.payment_id):
        return ReconcileResult(record=record, changed=False, reason=REASON_DUPLICATE_PAYMENT)

    grant = ProductGrant(
        payment_id=event.payment_id,
        product_id=event.product_id,
        purchased_at=event.purchased_at,
        amount=event.amount,
        currency=event.currency,
    )
    return ReconcileResult(
        record=record.model_copy(update={"products": (*record.products, grant)}),
        changed=True,
        reason=REASON_GRANTED,
    )


def _apply_activation(
    record: CustomerEntitlement,
    event: SubscriptionActive | SubscriptionRenewed,
) -> ReconcileResult:
    prior = record.subscription
    # Fields carried over only while the slot holds the same subscription.
    kept = prior if prior is not None and prior.subscription_id == event.subscription_id else None
    renewal = isinstance(event, SubscriptionRenewed)

    if isinstance(event, SubscriptionActive) and event.recurring_amount is not None:
        recurring_amount = event.recurring_amount
    else:
        recurring_amount = kept.recurring_amount if kept else None

    if renewal:
        last_renewed: datetime | None = event.occurred_at
    else:
        last_renewed = kept.last_renewed if kept else None

    subscription = SubscriptionState(
        subscription_id=event.subscription_id,
        product_id=event.product_id or (kept.product_id if kept else None),
        status="active",
        next_billing_date=event.next_billing_date
        or (kept.next_billing_date if kept else None),
        activated_at=prior.activated_at if prior else event.occurred_at,
        last_renewed=last_renewed,
        failure_reason=None,
        recurring_amount=recurring_amount,
    )

    if subscription == prior:
        return ReconcileResult(record=record, changed=False, reason=REASON_UNCHANGED)

    return ReconcileResult(
        record=record.model_copy(update={"subscription": subscription}),
        changed=True,
        reason=REASON_SUBSCRIPTION_RENEWED if renewal else REASON_SUBSCRIPTION_ACTIVATED,
    )


def _apply_termination(
    old: CustomerEntitlement | None,
    event: SubscriptionCancelled | SubscriptionFailed,
) -> ReconcileResult:
    if old is None or old.subscription is None:
        return ReconcileResult(record=old, changed=False, reason=REASON_NO_SUBSCRIPTION)

    prior = old.subscription
    if isinstance(event, SubscriptionFailed):
        subscription = prior.model_copy(
            update={"status": "failed", "failure_reason": event.failure_reason}
        )
        reason = REASON_SUBSCRIPTION_FAILED
    else:
        subscription = prior.model_copy(update={"status": "cancelled"})
        reason = REASON_SUBSCRIPTION_CANCELLED

    if subscription == prior:
        return ReconcileResult(record=old, changed=False, reason=REASON_UNCHANGED)

    return ReconcileResult(
        record=old.model_copy(update={"subscription": subscription}),
        changed=True,
        reason=reason,
    )


def reconcile(old: CustomerEntitlement | None, event: WebhookEvent) -> ReconcileResult:
    """
    Fold one event into a customer's record.

    Pure: never touches the store, never mutates old. version and updated_at
    are left as they were; stamping them is the writer's job.

    Args:
        old: Current record, or None if the customer has never been seen
        event: Parsed webhook event

    Returns:
        ReconcileResult with the full new record and whether it changed
    """
    if isinstance(event, Unrecognized):
        return ReconcileResult(record=old, changed=False, reason=REASON_UNRECOGNIZED)

    if event.email is None:
        return ReconcileResult(record=old, changed=False, reason=REASON_NO_EMAIL)

    if isinstance(event, SubscriptionCancelled | SubscriptionFailed):
        return _apply_termination(old, event)

    base = old if old is not None else CustomerEntitlement.empty(event.email)

    if isinstance(event, PaymentSucceeded):
        return _apply_payment(base, event)

    if isinstance(event, SubscriptionActive | SubscriptionRenewed):
        return _apply_activation(base, event)

    assert_never(event)


# --- Per-key locking ---


@dataclass
class _LockEntry:
    lock: Lock
    refs: int = 0


class KeyedLocks:
    """
    One lock per key, created on demand and dropped when unused.

    Holding the lock for one key never blocks another key.
    """

    def __init__(self) -> None:
        self._guard = Lock()
        self._entries: dict[str, _LockEntry] = {}

    @contextmanager
    def hold(self, key: str, timeout: float) -> Iterator[None]:
        """Hold the lock for key; raises StorageError if not acquired within timeout."""
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _LockEntry(lock=Lock())
            entry.refs += 1

        try:
            if not entry.lock.acquire(timeout=timeout):
                raise StorageError(f"Timed out after {timeout}s waiting for the lock on {key}")
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            with self._guard:
                entry.refs -= 1
                if entry.refs == 0:
                    del self._entries[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)


# --- Reconciler Service ---


class EntitlementReconciler:
    """
    Applies webhook events to the entitlement store.

    The store is injected; the same instance (and its KeyedLocks) must be
    shared by every request handler in the process.
    """

    def __init__(
        self,
        store: EntitlementStorePort,
        locks: KeyedLocks | None = None,
        clock: ClockPort | None = None,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        self._store = store
        self._locks = locks or KeyedLocks()
        self._clock = clock or SystemClock()
        self._lock_timeout = lock_timeout
        self._max_retries = max_retries

    @property
    def store(self) -> EntitlementStorePort:
        return self._store

    def apply(self, event: WebhookEvent) -> ApplyOutcome:
        """
        Apply one event.

        Events without an email and unrecognized events are acknowledged
        without touching the store.

        Raises:
            StorageError: store failure, lock timeout, or CAS retries exhausted
        """
        if isinstance(event, Unrecognized):
            logger.info(f"Ignoring unrecognized webhook event type '{event.raw_type}'")
            return ApplyOutcome(applied=False, reason=REASON_UNRECOGNIZED)

        if event.email is None:
            logger.info(f"Ignoring {type(event).__name__} without customer email")
            return ApplyOutcome(applied=False, reason=REASON_NO_EMAIL)

        email = normalize_email(event.email)

        with self._locks.hold(email, self._lock_timeout):
            for attempt in range(1, self._max_retries + 2):
                current = self._store.get(email)
                result = reconcile(current, event)

                if not result.changed or result.record is None:
                    logger.info(f"No-op {type(event).__name__} for {email}: {result.reason}")
                    return ApplyOutcome(
                        applied=False, reason=result.reason, email=email, record=current
                    )

                base_version = current.version if current is not None else 0
                new_record = result.record.model_copy(
                    update={"version": base_version + 1, "updated_at": self._clock.now_utc()}
                )

                try:
                    self._store.put(email, new_record)
                except ConcurrentUpdateError as e:
                    logger.warning(f"Concurrent update on attempt {attempt} for {email}: {e}")
                    continue

                logger.info(f"Applied {type(event).__name__} for {email}: {result.reason}")
                return ApplyOutcome(
                    applied=True, reason=result.reason, email=email, record=new_record
                )

        raise StorageError(
            f"Gave up applying {type(event).__name__} for {email} "
            f"after {self._max_retries + 1} conflicting attempts"
        )
