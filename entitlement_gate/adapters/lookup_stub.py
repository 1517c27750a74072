"""
Payment lookup stub adapter (dev/tests).

Stub implementation of PaymentLookupPort. Knows nothing by default, so the
return path behaves exactly as if the provider lookup had failed. Results can
be registered per ID for testing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from entitlement_gate.core.ports.lookup import LookupResult, PaymentLookupPort

logger = logging.getLogger(__name__)


@dataclass
class LookupStubAdapter:
    """
    Stub lookup adapter.

    Returns registered results, None otherwise. Records every requested ID
    so tests can assert whether a lookup happened.
    """

    _payments: dict[str, LookupResult] = field(default_factory=dict)
    _subscriptions: dict[str, LookupResult] = field(default_factory=dict)
    calls: list[tuple[str, str]] = field(default_factory=list)

    def lookup_payment(self, payment_id: str) -> LookupResult | None:
        self.calls.append(("payment", payment_id))
        result = self._payments.get(payment_id)
        logger.debug(
            f"LookupStubAdapter.lookup_payment: payment_id={payment_id}, found={result is not None}"
        )
        return result

    def lookup_subscription(self, subscription_id: str) -> LookupResult | None:
        self.calls.append(("subscription", subscription_id))
        result = self._subscriptions.get(subscription_id)
        logger.debug(
            f"LookupStubAdapter.lookup_subscription: "
            f"subscription_id={subscription_id}, found={result is not None}"
        )
        return result

    # --- Testing Helpers ---

    def add_payment(self, payment_id: str, email: str | None, status: str = "succeeded") -> None:
        self._payments[payment_id] = LookupResult(
            kind="payment", object_id=payment_id, status=status, customer_email=email
        )

    def add_subscription(
        self, subscription_id: str, email: str | None, status: str = "active"
    ) -> None:
        self._subscriptions[subscription_id] = LookupResult(
            kind="subscription", object_id=subscription_id, status=status, customer_email=email
        )

    def clear(self) -> None:
        self._payments.clear()
        self._subscriptions.clear()
        self.calls.clear()


# Verify protocol compliance at module load time
def _verify_protocol_compliance() -> None:
    """Verify LookupStubAdapter satisfies PaymentLookupPort protocol."""
    adapter: PaymentLookupPort = LookupStubAdapter()
    _ = adapter.lookup_payment("pay_probe")


_verify_protocol_compliance()
