"""
Events component - Data models.

Closed set of webhook events the engine understands. Every provider type
string the parser does not map lands in Unrecognized, so dispatch over
WebhookEvent is exhaustive.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

# --- Provider event type strings ---

PAYMENT_SUCCEEDED = "payment.succeeded"
SUBSCRIPTION_ACTIVE = "subscription.active"
SUBSCRIPTION_RENEWED = "subscription.renewed"
SUBSCRIPTION_CANCELLED = "subscription.cancelled"
SUBSCRIPTION_FAILED = "subscription.failed"


# --- Event Variants ---


@dataclass(frozen=True)
class PaymentSucceeded:
    """One-time purchase completed."""

    email: str | None
    payment_id: str
    product_id: str | None
    purchased_at: datetime
    amount: int | float | None = None
    currency: str | None = None
    occurred_at: datetime | None = None


@dataclass(frozen=True)
class SubscriptionActive:
    """Subscription started (or re-activated)."""

    email: str | None
    subscription_id: str
    product_id: str | None
    next_billing_date: datetime | None
    occurred_at: datetime
    recurring_amount: int | None = None


@dataclass(frozen=True)
class SubscriptionRenewed:
    """Recurring charge succeeded; billing period extended."""

    email: str | None
    subscription_id: str
    next_billing_date: datetime | None
    occurred_at: datetime
    product_id: str | None = None


@dataclass(frozen=True)
class SubscriptionCancelled:
    email: str | None
    subscription_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class SubscriptionFailed:
    email: str | None
    subscription_id: str
    failure_reason: str | None
    occurred_at: datetime


@dataclass(frozen=True)
class Unrecognized:
    """Any event type outside the set above. Acknowledged, never applied."""

    raw_type: str

    @property
    def email(self) -> None:
        return None


WebhookEvent = (
    PaymentSucceeded
    | SubscriptionActive
    | SubscriptionRenewed
    | SubscriptionCancelled
    | SubscriptionFailed
    | Unrecognized
)
