"""
Reconciler component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from entitlement_gate.components.signature import WebhookHeaders
from entitlement_gate.domain.entities import CustomerEntitlement

# --- Outcome reasons ---

REASON_GRANTED = "product_granted"
REASON_SUBSCRIPTION_ACTIVATED = "subscription_activated"
REASON_SUBSCRIPTION_RENEWED = "subscription_renewed"
REASON_SUBSCRIPTION_CANCELLED = "subscription_cancelled"
REASON_SUBSCRIPTION_FAILED = "subscription_failed"

REASON_NO_EMAIL = "no_email"
REASON_UNRECOGNIZED = "unrecognized"
REASON_DUPLICATE_PAYMENT = "duplicate_payment"
REASON_NO_SUBSCRIPTION = "no_subscription"
REASON_UNCHANGED = "unchanged"
REASON_REPLAYED = "replayed"


# --- Merge Result ---


@dataclass(frozen=True)
class ReconcileResult:
    """
    Result of folding one event into a record.

    record is the full new record when changed, otherwise the record as it
    was (None if there was none).
    """

    record: CustomerEntitlement | None
    changed: bool
    reason: str


@dataclass(frozen=True)
class ApplyOutcome:
    """Result of applying an event through the store."""

    applied: bool
    reason: str
    email: str | None = None
    record: CustomerEntitlement | None = None


# --- Webhook pipeline ---


@dataclass(frozen=True)
class WebhookInput:
    """One inbound webhook delivery."""

    raw_body: bytes
    headers: WebhookHeaders
    received_at: datetime | None = None


@dataclass(frozen=True)
class WebhookOutput:
    """Result of a verified, parsed, and applied delivery."""

    event_type: str
    outcome: ApplyOutcome
    replayed: bool = False
