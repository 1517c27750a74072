"""
Dodo Payments lookup adapter (advisory).

Fetches a payment or subscription from the provider's REST API so the
checkout return handler can personalize its redirect. Every failure mode
(missing API key, timeout, non-2xx, unexpected body) yields None: the lookup
races the webhook and must never block or fail the customer's redirect.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from entitlement_gate.core.ports.lookup import LookupKind, LookupResult

logger = logging.getLogger(__name__)

LIVE_API_URL = "https://live.dodopayments.com"
TEST_API_URL = "https://test.dodopayments.com"

DEFAULT_TIMEOUT_SECONDS = 2.0


def api_base_url(environment: str | None) -> str:
    """Provider API root for the configured environment."""
    return LIVE_API_URL if environment == "live_mode" else TEST_API_URL


class DodoPaymentsLookup:
    """PaymentLookupPort backed by the Dodo Payments API."""

    def __init__(
        self,
        api_key: str | None,
        environment: str | None = "test_mode",
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.Client | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = api_base_url(environment)
        self._timeout = timeout_seconds
        self._client = client

    def lookup_payment(self, payment_id: str) -> LookupResult | None:
        body = self._fetch(f"/payments/{quote(payment_id, safe='')}")
        if body is None:
            return None
        return self._to_result("payment", payment_id, body)

    def lookup_subscription(self, subscription_id: str) -> LookupResult | None:
        body = self._fetch(f"/subscriptions/{quote(subscription_id, safe='')}")
        if body is None:
            return None
        return self._to_result("subscription", subscription_id, body)

    def _fetch(self, path: str) -> dict[str, Any] | None:
        if not self._api_key:
            logger.debug("DodoPaymentsLookup: no API key configured, skipping %s", path)
            return None

        headers = {"Authorization": f"Bearer {self._api_key}"}
        try:
            if self._client is not None:
                response = self._client.get(
                    f"{self._base_url}{path}", headers=headers, timeout=self._timeout
                )
            else:
                with httpx.Client(timeout=self._timeout) as client:
                    response = client.get(f"{self._base_url}{path}", headers=headers)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            logger.warning("DodoPaymentsLookup: %s failed: %s", path, e)
            return None

        if not isinstance(body, dict):
            logger.warning("DodoPaymentsLookup: %s returned non-object body", path)
            return None
        return body

    @staticmethod
    def _to_result(kind: LookupKind, object_id: str, body: dict[str, Any]) -> LookupResult:
        customer = body.get("customer")
        email = customer.get("email") if isinstance(customer, dict) else None

        product_id = body.get("product_id")
        cart = body.get("product_cart")
        if product_id is None and isinstance(cart, list) and cart and isinstance(cart[0], dict):
            product_id = cart[0].get("product_id")

        status = body.get("status")
        return LookupResult(
            kind=kind,
            object_id=object_id,
            status=status if isinstance(status, str) else None,
            customer_email=email if isinstance(email, str) else None,
            product_id=product_id if isinstance(product_id, str) else None,
        )
