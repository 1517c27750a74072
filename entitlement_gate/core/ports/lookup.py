"""
Payment lookup port (advisory).

Used only on the checkout return path to personalize the redirect when the
provider did not round-trip the customer's email. Results are never written
to the entitlement store: the webhook-reconciled record stays authoritative.

Implementations:
- DodoPaymentsLookup: provider REST API via httpx
- LookupStubAdapter: returns configured results (dev/tests)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

LookupKind = Literal["payment", "subscription"]


@dataclass(frozen=True)
class LookupResult:
    """
    Subset of a provider payment/subscription object.

    Attributes:
        kind: Which object was looked up
        object_id: payment_id or subscription_id
        status: Provider status string (e.g. "succeeded", "active")
        customer_email: Customer email as known to the provider
        product_id: Product, when the provider reports one
    """

    kind: LookupKind
    object_id: str
    status: str | None = None
    customer_email: str | None = None
    product_id: str | None = None


class PaymentLookupPort(Protocol):
    """Port for best-effort provider lookups."""

    def lookup_payment(self, payment_id: str) -> LookupResult | None:
        """
        Fetch a payment by ID.

        Returns None on any failure (timeout, HTTP error, unknown id).
        Never raises.
        """
        ...

    def lookup_subscription(self, subscription_id: str) -> LookupResult | None:
        """
        Fetch a subscription by ID.

        Returns None on any failure. Never raises.
        """
        ...
