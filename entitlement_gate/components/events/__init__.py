"""
Events component - webhook event decoding.
"""

from ._impl import (
    event_type_of,
    extract_email,
    extract_product_id,
    parse_event,
    parse_timestamp,
)
from .models import (
    PAYMENT_SUCCEEDED,
    SUBSCRIPTION_ACTIVE,
    SUBSCRIPTION_CANCELLED,
    SUBSCRIPTION_FAILED,
    SUBSCRIPTION_RENEWED,
    PaymentSucceeded,
    SubscriptionActive,
    SubscriptionCancelled,
    SubscriptionFailed,
    SubscriptionRenewed,
    Unrecognized,
    WebhookEvent,
)

__all__ = [
    # Functions
    "event_type_of",
    "extract_email",
    "extract_product_id",
    "parse_event",
    "parse_timestamp",
    # Event types
    "PAYMENT_SUCCEEDED",
    "SUBSCRIPTION_ACTIVE",
    "SUBSCRIPTION_CANCELLED",
    "SUBSCRIPTION_FAILED",
    "SUBSCRIPTION_RENEWED",
    # Models
    "PaymentSucceeded",
    "SubscriptionActive",
    "SubscriptionCancelled",
    "SubscriptionFailed",
    "SubscriptionRenewed",
    "Unrecognized",
    "WebhookEvent",
]
